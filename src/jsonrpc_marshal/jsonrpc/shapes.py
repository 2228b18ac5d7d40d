import collections.abc as _cabc
import logging as _log

import pydantic as _pyd

import jsonrpc_marshal.jsonrpc.exceptions as _jmje

_LOGGER = _log.getLogger(__name__)

# strict: true and false only validate as bool
WireId = bool | str | int | float | None
WireParams = list[_pyd.JsonValue] | dict[str, _pyd.JsonValue] | None


class Shape(_pyd.BaseModel):
    model_config = _pyd.ConfigDict(strict=True, extra="ignore", frozen=True)


class CallShape(Shape):
    method: str = _pyd.Field(min_length=1)
    params: WireParams = None
    id: WireId = None


class Call10Shape(CallShape):
    params: list[_pyd.JsonValue] | None = None


class Call11Shape(CallShape):
    kwparams: dict[str, _pyd.JsonValue] | None = None


class ReturnShape(Shape):
    id: WireId = None
    result: _pyd.JsonValue = None
    error: _pyd.JsonValue = None


class ErrorShape(Shape):
    code: int
    message: str
    data: _pyd.JsonValue = None


class Error11Shape(ErrorShape):
    name: str | None = None
    error: _pyd.JsonValue = None


def validate[S: Shape](
    shape: type[S], data: _cabc.Mapping[str, object], prefix: str | None = None
) -> S:
    try:
        return shape.model_validate(dict(data))
    except _pyd.ValidationError as validation_error:
        first_error = validation_error.errors()[0]
        location = first_error["loc"]
        field = str(location[0]) if location else "payload"
        if prefix:
            field = f"{prefix}.{field}"

        _LOGGER.debug(
            "Payload failed %s validation: %s", shape.__name__, validation_error
        )
        raise _jmje.MalformedField(field, first_error["msg"]) from validation_error
