import logging as _log

import jsonrpc_marshal.jsonrpc.calls as _jmjc
import jsonrpc_marshal.jsonrpc.codec as _jmjcod
import jsonrpc_marshal.jsonrpc.exceptions as _jmje
import jsonrpc_marshal.jsonrpc.registry as _jmjreg
import jsonrpc_marshal.jsonrpc.returns as _jmjr
import jsonrpc_marshal.jsonrpc.types as _tps

_LOGGER = _log.getLogger(__name__)


class TextMarshal:
    def __init__(self, codec: _jmjcod.JsonCodec | None = None) -> None:
        self._codec = codec or _jmjcod.StdlibJsonCodec()

    def encode(self, value: _tps.Json) -> str:
        return self._codec.encode(value)

    def decode(self, text: str | bytes) -> _tps.Json:
        try:
            return self._codec.decode(text)
        except ValueError as error:
            # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise _jmje.UnparsableJson(text, str(error)) from error

    def call_to_json(self, call: _jmjc.AnyCall) -> str:
        return self.encode(call.deflate())

    def return_to_json(self, result: _jmjr.AnyReturn) -> str:
        return self.encode(result.deflate())

    def json_to_call(self, text: str | bytes) -> _jmjc.AnyCall:
        _LOGGER.debug("Decoding call %r.", text)
        return _jmjreg.inflate_call(self.decode(text))

    def json_to_return(self, text: str | bytes) -> _jmjr.AnyReturn:
        _LOGGER.debug("Decoding return %r.", text)
        return _jmjreg.inflate_return(self.decode(text))

    def json_to_message(self, text: str | bytes) -> _jmjreg.AnyMessage:
        return _jmjreg.inflate(self.decode(text))
