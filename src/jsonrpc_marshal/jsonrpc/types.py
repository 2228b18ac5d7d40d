import collections.abc as _cabc
import typing as _tp

type JsonScalar = bool | int | float | str | None
type JsonObject = _cabc.Mapping[str, "Json"]
type JsonArray = _cabc.Sequence["Json"]
type JsonStructured = JsonArray | JsonObject
type Json = JsonScalar | JsonStructured

type Id = bool | int | float | str | None
type Params = JsonStructured | None


class ErrorData(_tp.TypedDict):
    code: int
    message: str
    data: _tp.NotRequired[Json]


class Error11Data(_tp.TypedDict):
    name: str
    code: int
    message: str
    error: _tp.NotRequired[Json]


class Call10Data(_tp.TypedDict):
    method: str
    params: _tp.NotRequired[JsonArray]
    id: Id


class Call11Data(_tp.TypedDict):
    version: str
    method: str
    params: _tp.NotRequired[JsonStructured]
    kwparams: _tp.NotRequired[JsonObject]
    id: _tp.NotRequired[Id]


class Call20Data(_tp.TypedDict):
    jsonrpc: str
    method: str
    params: _tp.NotRequired[JsonStructured]
    id: _tp.NotRequired[Id]


class Return10Data(_tp.TypedDict):
    id: Id
    result: Json
    error: ErrorData | None


class Return11Data(_tp.TypedDict):
    version: str
    id: _tp.NotRequired[Id]
    result: _tp.NotRequired[Json]
    error: _tp.NotRequired[Error11Data]


class Return20Data(_tp.TypedDict):
    jsonrpc: str
    id: Id
    result: _tp.NotRequired[Json]
    error: _tp.NotRequired[ErrorData]


def is_array(value: object) -> _tp.TypeGuard[JsonArray]:
    return isinstance(value, _cabc.Sequence) and not isinstance(
        value, (str, bytes, bytearray)
    )


def is_object(value: object) -> _tp.TypeGuard[JsonObject]:
    return isinstance(value, _cabc.Mapping)


def is_structured(value: object) -> _tp.TypeGuard[JsonStructured]:
    return is_array(value) or is_object(value)
