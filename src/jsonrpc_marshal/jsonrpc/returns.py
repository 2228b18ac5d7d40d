import abc as _abc
import collections.abc as _cabc
import dataclasses as _dc
import typing as _tp

import jsonrpcserver.codes as _jrpcsc

import jsonrpc_marshal.jsonrpc.exceptions as _jmje
import jsonrpc_marshal.jsonrpc.shapes as _jmjs
import jsonrpc_marshal.jsonrpc.types as _tps
import jsonrpc_marshal.jsonrpc.versions as _jmjv

# JSON-RPC over HTTP: http://www.jsonrpc.org/historical/json-rpc-over-http.html
_HTTP_STATUSES_BY_CODE: _cabc.Mapping[int, int] = {
    _jrpcsc.ERROR_PARSE_ERROR: 500,
    _jrpcsc.ERROR_INVALID_REQUEST: 400,
    _jrpcsc.ERROR_METHOD_NOT_FOUND: 404,
    _jrpcsc.ERROR_INVALID_PARAMS: 500,
    _jrpcsc.ERROR_INTERNAL_ERROR: 500,
}

_ERROR_11_NAME = "JSONRPCError"


def http_status_for_code(code: int) -> int:
    if code in _HTTP_STATUSES_BY_CODE:
        return _HTTP_STATUSES_BY_CODE[code]

    # 1.x servers commonly reuse HTTP statuses as error codes.
    if 400 <= code <= 599:
        return code

    return 500


@_dc.dataclass(frozen=True)
class Error:
    code: int
    message: str
    data: _tps.Json = None
    http_status: int | None = _dc.field(default=None, compare=False, kw_only=True)

    def __post_init__(self) -> None:
        if self.http_status is None:
            object.__setattr__(self, "http_status", http_status_for_code(self.code))

    @property
    def json(self) -> _tps.ErrorData:
        data: _tps.ErrorData = {"code": self.code, "message": self.message}
        if self.data is not None:
            data["data"] = self.data
        return data

    @classmethod
    def parse_error(cls, data: _tps.Json = None) -> "Error":
        return cls(_jrpcsc.ERROR_PARSE_ERROR, "Parse error", data)

    @classmethod
    def invalid_request(cls, data: _tps.Json = None) -> "Error":
        return cls(_jrpcsc.ERROR_INVALID_REQUEST, "Invalid Request", data)

    @classmethod
    def method_not_found(cls, data: _tps.Json = None) -> "Error":
        return cls(_jrpcsc.ERROR_METHOD_NOT_FOUND, "Method not found", data)

    @classmethod
    def invalid_params(cls, data: _tps.Json = None) -> "Error":
        return cls(_jrpcsc.ERROR_INVALID_PARAMS, "Invalid params", data)

    @classmethod
    def internal_error(cls, data: _tps.Json = None) -> "Error":
        return cls(_jrpcsc.ERROR_INTERNAL_ERROR, "Internal error", data)

    @classmethod
    def from_exception(cls, exception: _jmje.MarshalError) -> "Error":
        return cls(exception.code, str(exception))


@_dc.dataclass(kw_only=True)
class Return(_abc.ABC):
    """
    Response to a call: either a result (which may be JSON null) or an error.

    Returns are treated as values; `set_error` is the only mutation, used to
    attach an error to a return decoded from a failed HTTP response.
    """

    version: _tp.ClassVar[_jmjv.Version]

    id: _tps.Id = None
    result: _tps.Json = None
    error: Error | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.result is not None:
            raise _jmje.MalformedField(
                "error", "result and error are mutually exclusive."
            )

    def has_error(self) -> bool:
        return self.error is not None

    def set_error(
        self,
        message: str,
        code: int = _jrpcsc.ERROR_INTERNAL_ERROR,
        data: _tps.Json = None,
        http_status: int | None = None,
    ) -> None:
        self.error = Error(code, message, data, http_status=http_status)
        self.result = None

    @classmethod
    def from_data(cls, data: _cabc.Mapping[str, object]) -> _tp.Self:
        shape = _jmjs.validate(_jmjs.ReturnShape, data)

        error = None if shape.error is None else cls._inflate_error(shape.error)
        if error is None and "result" not in shape.model_fields_set:
            raise _jmje.MalformedField("result", "Either result or error must be set.")

        return cls(id=shape.id, result=shape.result, error=error)

    @classmethod
    @_abc.abstractmethod
    def _inflate_error(cls, value: _tps.Json) -> Error:
        raise NotImplementedError()

    @_abc.abstractmethod
    def deflate(self) -> dict[str, _tps.Json]:
        raise NotImplementedError()


class Return10(Return):
    version = _jmjv.Version.V1_0

    @classmethod
    @_tp.override
    def _inflate_error(cls, value: _tps.Json) -> Error:
        # 1.0 leaves the error object unspecified, take whatever makes sense.
        if isinstance(value, str):
            return Error(_jrpcsc.ERROR_INTERNAL_ERROR, value)

        if not _tps.is_object(value):
            return Error(_jrpcsc.ERROR_INTERNAL_ERROR, "Unknown error", value)

        if "code" not in value and "message" not in value:
            return Error(_jrpcsc.ERROR_INTERNAL_ERROR, "Unknown error", dict(value))

        code = value.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            code = _jrpcsc.ERROR_INTERNAL_ERROR

        message = value.get("message")
        return Error(code, "" if message is None else str(message), value.get("data"))

    @_tp.override
    def deflate(self) -> dict[str, _tps.Json]:
        data: _tps.Return10Data = {
            "id": self.id,
            "result": self.result if self.error is None else None,
            "error": None if self.error is None else self.error.json,
        }
        return dict(data)


class Return11(Return):
    version = _jmjv.Version.V1_1

    @classmethod
    @_tp.override
    def _inflate_error(cls, value: _tps.Json) -> Error:
        if not _tps.is_object(value):
            raise _jmje.MalformedField("error", "Error must be an object.")

        shape = _jmjs.validate(_jmjs.Error11Shape, value, prefix="error")
        data = shape.data if "data" in shape.model_fields_set else shape.error
        return Error(shape.code, shape.message, data)

    @_tp.override
    def deflate(self) -> dict[str, _tps.Json]:
        data: _tps.Return11Data = {"version": self.version.value}

        if self.id is not None:
            data["id"] = self.id

        if self.error is None:
            data["result"] = self.result
        else:
            error: _tps.Error11Data = {
                "name": _ERROR_11_NAME,
                "code": self.error.code,
                "message": self.error.message,
            }
            if self.error.data is not None:
                error["error"] = self.error.data
            data["error"] = error

        return dict(data)


class Return20(Return):
    version = _jmjv.Version.V2_0

    @classmethod
    @_tp.override
    def _inflate_error(cls, value: _tps.Json) -> Error:
        if not _tps.is_object(value):
            raise _jmje.MalformedField("error", "Error must be an object.")

        shape = _jmjs.validate(_jmjs.ErrorShape, value, prefix="error")
        return Error(shape.code, shape.message, shape.data)

    @_tp.override
    def deflate(self) -> dict[str, _tps.Json]:
        data: _tps.Return20Data = {"jsonrpc": self.version.value, "id": self.id}

        if self.error is None:
            data["result"] = self.result
        else:
            data["error"] = self.error.json

        return dict(data)


type AnyReturn = Return10 | Return11 | Return20
