import typing as _tp

import jsonrpcclient as _jrpcc

import jsonrpc_marshal.jsonrpc.registry as _jmjreg
import jsonrpc_marshal.jsonrpc.returns as _jmjr
import jsonrpc_marshal.jsonrpc.versions as _jmjv


def to_client_response(result: _jmjr.Return) -> _jrpcc.responses.Response:
    """Convert a return into the response types used by ``jsonrpcclient``."""
    if result.error is None:
        return _jrpcc.Ok(result.result, result.id)

    error = result.error
    return _jrpcc.Error(error.code, error.message, error.data, result.id)


def from_client_response(
    response: _jrpcc.responses.Response,
    version: str | _jmjv.Version = _jmjv.Version.V2_0,
) -> _jmjr.AnyReturn:
    match response:
        case _jrpcc.Ok(result, id):
            return _jmjreg.new_return(version, id=id, result=result)
        case _jrpcc.Error(code, message, data, id):
            error = _jmjr.Error(code, message, data)
            return _jmjreg.new_return(version, id=id, error=error)
        case _:
            _tp.assert_never(response)
