import collections.abc as _cabc
import logging as _log
import typing as _tp

import jsonrpc_marshal.jsonrpc.calls as _jmjc
import jsonrpc_marshal.jsonrpc.exceptions as _jmje
import jsonrpc_marshal.jsonrpc.returns as _jmjr
import jsonrpc_marshal.jsonrpc.types as _tps
import jsonrpc_marshal.jsonrpc.versions as _jmjv

_LOGGER = _log.getLogger(__name__)

type AnyMessage = _jmjc.AnyCall | _jmjr.AnyReturn


def call_class(version: _jmjv.Version) -> type[_jmjc.AnyCall]:
    match version:
        case _jmjv.Version.V1_0:
            return _jmjc.Call10
        case _jmjv.Version.V1_1:
            return _jmjc.Call11
        case _jmjv.Version.V2_0:
            return _jmjc.Call20
        case _:
            _tp.assert_never(version)


def return_class(version: _jmjv.Version) -> type[_jmjr.AnyReturn]:
    match version:
        case _jmjv.Version.V1_0:
            return _jmjr.Return10
        case _jmjv.Version.V1_1:
            return _jmjr.Return11
        case _jmjv.Version.V2_0:
            return _jmjr.Return20
        case _:
            _tp.assert_never(version)


def inflate(
    data: object, kind: _jmjv.MessageKind | None = None
) -> AnyMessage:
    """
    Build the canonical message for a decoded payload.

    The revision comes from the ``jsonrpc`` marker, then the ``version``
    marker, then defaults to 1.0. Unless `kind` is given, payloads with a
    ``method`` are calls and payloads with an ``id`` or ``result`` are
    returns.
    """
    payload = _as_payload(data)

    version = _jmjv.parse_version(_jmjv.get_version(payload))

    if kind is None:
        kind = _jmjv.get_kind(payload)

    _LOGGER.debug("Inflating %s %s from %s.", version, kind, payload)

    match kind:
        case _jmjv.MessageKind.CALL:
            return call_class(version).from_data(payload)
        case _jmjv.MessageKind.RETURN:
            return return_class(version).from_data(payload)
        case _:
            _tp.assert_never(kind)


def inflate_call(data: object) -> _jmjc.AnyCall:
    return _tp.cast(_jmjc.AnyCall, inflate(data, _jmjv.MessageKind.CALL))


def inflate_return(data: object) -> _jmjr.AnyReturn:
    return _tp.cast(_jmjr.AnyReturn, inflate(data, _jmjv.MessageKind.RETURN))


def deflate(message: AnyMessage) -> dict[str, _tps.Json]:
    return message.deflate()


def new_call(
    version: str | _jmjv.Version,
    method: str,
    params: _tps.Params = None,
    id: _tps.Id = None,
    *,
    kwparams: _tps.JsonObject | None = None,
    alt_spec: bool = False,
) -> _jmjc.AnyCall:
    resolved_version, is_alt_spec = _jmjv.parse_version_tag(version)

    match resolved_version:
        case _jmjv.Version.V1_1:
            return _jmjc.Call11(
                method=method,
                params=params,
                id=id,
                kwparams=kwparams,
                alt_spec=alt_spec or is_alt_spec,
            )
        case _jmjv.Version.V1_0 | _jmjv.Version.V2_0:
            if kwparams is not None:
                raise _jmje.MalformedField(
                    "kwparams", f"kwparams aren't supported by version {resolved_version}."
                )
            return call_class(resolved_version)(method=method, params=params, id=id)
        case _:
            _tp.assert_never(resolved_version)


def new_return(
    version: str | _jmjv.Version,
    id: _tps.Id = None,
    result: _tps.Json = None,
    error: _jmjr.Error | None = None,
) -> _jmjr.AnyReturn:
    return return_class(_jmjv.parse_version(version))(id=id, result=result, error=error)


def _as_payload(data: object) -> _cabc.Mapping[str, object]:
    if not isinstance(data, _cabc.Mapping):
        raise _jmje.MalformedField(
            "payload", f"Expected a JSON object, got {type(data).__name__}."
        )
    return data
