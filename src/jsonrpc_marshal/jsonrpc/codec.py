import json as _json
import typing as _tp

import jsonrpc_marshal.jsonrpc.types as _tps


class JsonCodec(_tp.Protocol):
    def encode(self, value: _tps.Json) -> str: ...
    def decode(self, text: str | bytes) -> _tps.Json: ...


class StdlibJsonCodec:
    def encode(self, value: _tps.Json) -> str:
        return _json.dumps(value)

    def decode(self, text: str | bytes) -> _tps.Json:
        return _json.loads(text)
