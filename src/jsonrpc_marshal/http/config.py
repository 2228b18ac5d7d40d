import collections.abc as _cabc

import pydantic as _pyd

import jsonrpc_marshal.jsonrpc.versions as _jmjv

USER_AGENT = "jsonrpc-marshal/0.1.0"

DEFAULT_CONTENT_TYPES: _cabc.Mapping[_jmjv.Version, str] = {
    _jmjv.Version.V1_0: "application/json",
    _jmjv.Version.V1_1: "application/json",
    _jmjv.Version.V2_0: "application/json-rpc",
}


def _default_content_types() -> dict[_jmjv.Version, str]:
    return dict(DEFAULT_CONTENT_TYPES)


class HttpMarshalConfig(_pyd.BaseModel):
    """
    Options of `HttpMarshal`.

    prefer_get
        Encode calls as GET requests. Not recommended, POST is the default.
    rest_style_methods
        For query style GET requests put the method into the last path
        segment instead of a ``method`` query parameter.
    prefer_encoded_get
        Treat a ``params`` query parameter as (Base64 encoded) JSON holding
        all params, and produce such requests.
    expand
        Expand dotted/bracketed query parameter names into nested params and
        collapse nested params when writing query style requests.
    decode_query_values
        Decode query values which are valid JSON, so ``?x=1`` gives ``1``
        rather than ``"1"``.
    """

    model_config = _pyd.ConfigDict(frozen=True, extra="forbid")

    prefer_get: bool = False
    rest_style_methods: bool = True
    prefer_encoded_get: bool = True
    expand: bool = False
    decode_query_values: bool = True

    content_type: str | None = None
    content_types: dict[_jmjv.Version, str] = _pyd.Field(
        default_factory=_default_content_types
    )
    accept_content_type: str | None = None
    accept_content_types: dict[_jmjv.Version, str] = _pyd.Field(
        default_factory=_default_content_types
    )

    default_version: _jmjv.Version = _jmjv.Version.V2_0
    user_agent: str = USER_AGENT

    def get_content_type(self, version: _jmjv.Version) -> str:
        if self.content_type is not None:
            return self.content_type
        return self.content_types.get(version, DEFAULT_CONTENT_TYPES[version])

    def get_accept_content_type(self, version: _jmjv.Version) -> str:
        if self.accept_content_type is not None:
            return self.accept_content_type
        return self.accept_content_types.get(version, DEFAULT_CONTENT_TYPES[version])
