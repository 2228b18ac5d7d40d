import collections.abc as _cabc

import jsonrpcserver.codes as _jrpcsc


class MarshalError(Exception):
    """
    Base class of every failure raised while converting between wire payloads,
    canonical messages and HTTP field bags.

    `code` is the JSON-RPC error code a server should answer with when the
    failure was caused by an inbound request.
    """

    code: int = _jrpcsc.ERROR_INVALID_REQUEST


class UnsupportedTransportMethod(MarshalError):
    def __init__(self, http_method: str) -> None:
        super().__init__(f"Unsupported HTTP request method {http_method}.")
        self.http_method = http_method


class UnsupportedVersion(MarshalError):
    def __init__(self, version: object) -> None:
        super().__init__(f"Unsupported JSON-RPC version {version!r}.")
        self.version = version


class AmbiguousMessageKind(MarshalError):
    def __init__(self, keys: _cabc.Iterable[str]) -> None:
        self.keys = tuple(sorted(keys))
        super().__init__(
            f"Couldn't determine type of message (call or return) from keys {self.keys}."
        )


class ConflictingParams(MarshalError):
    code = _jrpcsc.ERROR_INVALID_PARAMS

    def __init__(self) -> None:
        super().__init__("params and kwparams are mutually exclusive.")


class MalformedField(MarshalError):
    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Malformed field {field!r}: {reason}")
        self.field = field
        self.reason = reason
        if field in ("params", "kwparams"):
            self.code = _jrpcsc.ERROR_INVALID_PARAMS


class ProtocolViolation(MarshalError):
    pass


class ResponseWriteFailure(MarshalError):
    code = _jrpcsc.ERROR_INTERNAL_ERROR

    def __init__(self, missing_setters: _cabc.Iterable[str]) -> None:
        self.missing_setters = tuple(missing_setters)
        super().__init__(
            f"Response object doesn't support {', '.join(self.missing_setters)}."
        )


class UnparsableJson(MarshalError):
    code = _jrpcsc.ERROR_PARSE_ERROR

    def __init__(self, text: str | bytes, reason: str) -> None:
        super().__init__(f"Couldn't decode JSON: {reason}")
        self.text = text
        self.reason = reason
