import abc as _abc
import collections.abc as _cabc
import dataclasses as _dc
import typing as _tp

import jsonrpcserver.codes as _jrpcsc

import jsonrpc_marshal.jsonrpc.exceptions as _jmje
import jsonrpc_marshal.jsonrpc.returns as _jmjr
import jsonrpc_marshal.jsonrpc.shapes as _jmjs
import jsonrpc_marshal.jsonrpc.types as _tps
import jsonrpc_marshal.jsonrpc.versions as _jmjv


@_dc.dataclass(frozen=True, kw_only=True)
class Call(_abc.ABC):
    version: _tp.ClassVar[_jmjv.Version]
    return_class: _tp.ClassVar[type[_jmjr.Return]]

    method: str
    params: _tps.Params = None
    id: _tps.Id = None

    def __post_init__(self) -> None:
        if not isinstance(self.method, str) or not self.method:
            raise _jmje.MalformedField("method", "Method must be a non-empty string.")

        if self.params is not None and not _tps.is_structured(self.params):
            raise _jmje.MalformedField("params", "Params must be an array or an object.")

    @property
    def is_notification(self) -> bool:
        return self.id is None

    @property
    def is_service(self) -> bool:
        return False

    def has_params(self) -> bool:
        return self.params is not None

    def has_id(self) -> bool:
        return self.id is not None

    def return_result(self, result: _tps.Json) -> _jmjr.Return:
        return self.return_class(id=self.id, result=result)

    def return_error(
        self,
        message: str,
        code: int = _jrpcsc.ERROR_INTERNAL_ERROR,
        data: _tps.Json = None,
    ) -> _jmjr.Return:
        return self.return_class(id=self.id, error=_jmjr.Error(code, message, data))

    @classmethod
    @_abc.abstractmethod
    def from_data(cls, data: _cabc.Mapping[str, object]) -> _tp.Self:
        raise NotImplementedError()

    @_abc.abstractmethod
    def deflate(self) -> dict[str, _tps.Json]:
        raise NotImplementedError()

    def _deflate_params(self) -> dict[str, _tps.Json]:
        if self.params is None:
            return {}

        return {"params": _copy_params(self.params)}


@_dc.dataclass(frozen=True, kw_only=True)
class Call10(Call):
    version = _jmjv.Version.V1_0
    return_class = _jmjr.Return10

    def __post_init__(self) -> None:
        super().__post_init__()

        if self.params is not None and not _tps.is_array(self.params):
            raise _jmje.MalformedField("params", "1.0 params must be an array.")

    @classmethod
    @_tp.override
    def from_data(cls, data: _cabc.Mapping[str, object]) -> _tp.Self:
        shape = _jmjs.validate(_jmjs.Call10Shape, data)
        return cls(method=shape.method, params=shape.params, id=shape.id)

    @_tp.override
    def deflate(self) -> dict[str, _tps.Json]:
        # 1.0 notifications carry a null id
        return {"method": self.method, **self._deflate_params(), "id": self.id}


@_dc.dataclass(frozen=True, kw_only=True)
class Call11(Call):
    """
    JSON-RPC 1.1 working draft call, including the alternative proposition
    which puts named params under ``kwparams``.

    1.1 has no notifications. ``kwparams`` is accepted as an alias of
    ``params`` and implies ``alt_spec``; giving both is an error.
    """

    version = _jmjv.Version.V1_1
    return_class = _jmjr.Return11

    alt_spec: bool = False
    kwparams: _dc.InitVar[_tps.JsonObject | None] = None

    def __post_init__(self, kwparams: _tps.JsonObject | None) -> None:
        if kwparams is not None:
            if self.params is not None:
                raise _jmje.ConflictingParams()
            if not _tps.is_object(kwparams):
                raise _jmje.MalformedField("kwparams", "kwparams must be an object.")

            object.__setattr__(self, "params", kwparams)
            object.__setattr__(self, "alt_spec", True)

        super().__post_init__()

        # alt_spec only changes how named params are written
        if self.alt_spec and not _tps.is_object(self.params):
            object.__setattr__(self, "alt_spec", False)

    @property
    @_tp.override
    def is_notification(self) -> bool:
        return False

    @property
    @_tp.override
    def is_service(self) -> bool:
        return self.method.startswith("system.")

    @classmethod
    @_tp.override
    def from_data(cls, data: _cabc.Mapping[str, object]) -> _tp.Self:
        if "params" in data and "kwparams" in data:
            raise _jmje.ConflictingParams()

        shape = _jmjs.validate(_jmjs.Call11Shape, data)
        return cls(
            method=shape.method,
            params=shape.params,
            kwparams=shape.kwparams,
            id=shape.id,
        )

    @_tp.override
    def deflate(self) -> dict[str, _tps.Json]:
        data: dict[str, _tps.Json] = {
            "version": self.version.value,
            "method": self.method,
        }

        # JSON-RPC 1.1 alt specifies that named params go in kwparams
        if self.alt_spec and _tps.is_object(self.params):
            data["kwparams"] = _copy_params(self.params)
        else:
            data.update(self._deflate_params())

        if self.id is not None:
            data["id"] = self.id

        return data


@_dc.dataclass(frozen=True, kw_only=True)
class Call20(Call):
    version = _jmjv.Version.V2_0
    return_class = _jmjr.Return20

    @classmethod
    @_tp.override
    def from_data(cls, data: _cabc.Mapping[str, object]) -> _tp.Self:
        shape = _jmjs.validate(_jmjs.CallShape, data)
        return cls(method=shape.method, params=shape.params, id=shape.id)

    @_tp.override
    def deflate(self) -> dict[str, _tps.Json]:
        data: dict[str, _tps.Json] = {
            "jsonrpc": self.version.value,
            "method": self.method,
            **self._deflate_params(),
        }

        if self.id is not None:
            data["id"] = self.id

        return data


type AnyCall = Call10 | Call11 | Call20


def _copy_params(params: _tps.JsonStructured) -> _tps.Json:
    if _tps.is_object(params):
        return dict(params)
    return list(params)
