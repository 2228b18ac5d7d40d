import base64 as _b64
import binascii as _binascii
import collections.abc as _cabc
import logging as _log

import aiohttp.hdrs as _hdrs
import multidict as _md
import yarl as _yarl

import jsonrpc_marshal.http.config as _jmhc
import jsonrpc_marshal.http.expander as _jmhe
import jsonrpc_marshal.http.types as _jmht
import jsonrpc_marshal.jsonrpc.calls as _jmjc
import jsonrpc_marshal.jsonrpc.codec as _jmjcod
import jsonrpc_marshal.jsonrpc.exceptions as _jmje
import jsonrpc_marshal.jsonrpc.registry as _jmjreg
import jsonrpc_marshal.jsonrpc.returns as _jmjr
import jsonrpc_marshal.jsonrpc.text as _jmjt
import jsonrpc_marshal.jsonrpc.types as _tps
import jsonrpc_marshal.jsonrpc.versions as _jmjv

_LOGGER = _log.getLogger(__name__)

_RESERVED_QUERY_PARAMS = frozenset(("version", "jsonrpc", "method", "id"))

_BASE64_ALTCHARS = str.maketrans("-_", "+/")

type Uri = _yarl.URL | str


class HttpMarshal(_jmjt.TextMarshal):
    """
    Converts calls and returns to and from HTTP requests and responses.

    Calls travel as POST requests with a JSON body, as GET requests with
    (Base64 encoded) JSON in a ``params`` query parameter ("encoded" style,
    see http://json-rpc.googlegroups.com/web/json-rpc-over-http.html) or as
    GET requests with one query parameter per named param ("query" style).
    GET requests for 1.1 calls with ``kwparams`` carry the ``1.1-alt`` version
    tag so the alternative form survives the trip.
    """

    def __init__(
        self,
        config: _jmhc.HttpMarshalConfig | None = None,
        expander: _jmhe.Expander | None = None,
        codec: _jmjcod.JsonCodec | None = None,
    ) -> None:
        super().__init__(codec)
        self._config = config or _jmhc.HttpMarshalConfig()
        self._expander = expander or _jmhe.DottedKeyExpander()

    @property
    def config(self) -> _jmhc.HttpMarshalConfig:
        return self._config

    def get_content_type(self, message: _jmjreg.AnyMessage) -> str:
        return self._config.get_content_type(message.version)

    def get_accept_content_type(self, message: _jmjreg.AnyMessage) -> str:
        return self._config.get_accept_content_type(message.version)

    def call_to_request(
        self,
        call: _jmjc.AnyCall,
        *,
        uri: Uri | None = None,
        prefer_get: bool | None = None,
        encoded: bool | None = None,
    ) -> _jmht.HttpRequest:
        if prefer_get is None:
            prefer_get = self._config.prefer_get

        if prefer_get:
            return self.call_to_get_request(call, uri=uri, encoded=encoded)

        return self.call_to_post_request(call, uri=uri)

    def call_to_post_request(
        self, call: _jmjc.AnyCall, *, uri: Uri | None = None
    ) -> _jmht.HttpRequest:
        body = self.call_to_json(call).encode()

        headers = _md.CIMultiDict[str]()
        headers[_hdrs.USER_AGENT] = self._config.user_agent
        headers[_hdrs.CONTENT_TYPE] = self.get_content_type(call)
        headers[_hdrs.ACCEPT] = self.get_accept_content_type(call)
        headers[_hdrs.CONTENT_LENGTH] = str(len(body))

        _LOGGER.debug("Created POST request for %s.", call)
        return _jmht.HttpRequest("POST", _base_url(uri), headers, body)

    def call_to_get_request(
        self,
        call: _jmjc.AnyCall,
        *,
        uri: Uri | None = None,
        encoded: bool | None = None,
    ) -> _jmht.HttpRequest:
        url = self.call_to_uri(call, uri=uri, encoded=encoded)

        headers = _md.CIMultiDict[str]()
        headers[_hdrs.USER_AGENT] = self._config.user_agent
        headers[_hdrs.ACCEPT] = self.get_accept_content_type(call)

        _LOGGER.debug("Created GET request for %s.", call)
        return _jmht.HttpRequest("GET", url, headers)

    def call_to_uri(
        self,
        call: _jmjc.AnyCall,
        *,
        uri: Uri | None = None,
        encoded: bool | None = None,
    ) -> _yarl.URL:
        _check_get_allowed(call.version)

        if encoded is None:
            encoded = (
                call.version is _jmjv.Version.V2_0 or self._config.prefer_encoded_get
            )

        if encoded:
            return self.call_to_encoded_uri(call, uri=uri)

        return self.call_to_query_uri(call, uri=uri)

    def call_to_encoded_uri(
        self, call: _jmjc.AnyCall, *, uri: Uri | None = None
    ) -> _yarl.URL:
        _check_get_allowed(call.version)

        version = _jmjv.ALT_SPEC_TAG if _is_alt_spec(call) else call.version.value
        query = {_version_marker(call.version): version, "method": call.method}

        if call.params is not None:
            json = self.encode(_plain(call.params))
            query["params"] = _b64.b64encode(json.encode()).decode("ascii")

        if call.id is not None:
            query["id"] = self._encode_query_value(call.id)

        return _base_url(uri).update_query(query)

    def call_to_query_uri(
        self, call: _jmjc.AnyCall, *, uri: Uri | None = None
    ) -> _yarl.URL:
        _check_get_allowed(call.version)

        if call.params is not None and not _tps.is_object(call.params):
            raise _jmje.MalformedField(
                "params", "Query style GET requests only support named params."
            )

        params = self.collapse_query_params(dict(call.params or {}))

        reserved = set(_RESERVED_QUERY_PARAMS)
        if self._config.prefer_encoded_get:
            # would be read back as an encoded GET request
            reserved.add("params")

        if clashes := reserved.intersection(params):
            raise _jmje.MalformedField(
                "params", f"Names {sorted(clashes)} are reserved in query style GET requests."
            )

        query = {name: self._encode_query_value(value) for name, value in params.items()}

        if call.id is not None:
            query["id"] = self._encode_query_value(call.id)

        if call.version is _jmjv.Version.V2_0:
            query["jsonrpc"] = call.version.value
        elif _is_alt_spec(call):
            query["version"] = _jmjv.ALT_SPEC_TAG

        url = _base_url(uri)

        if self._config.rest_style_methods:
            path = url.path.rstrip("/") + "/" + call.method
            url = url.with_path(path).with_query(list(url.query.items()))
        else:
            query["method"] = call.method

        return url.update_query(query)

    def request_to_call(self, request: _jmht.ReadRequest) -> _jmjc.AnyCall:
        match request.method.upper():
            case "POST":
                return self.request_to_call_post(request)
            case "GET":
                return self.request_to_call_get(request)
            case _:
                raise _jmje.UnsupportedTransportMethod(request.method)

    def request_to_call_post(self, request: _jmht.ReadRequest) -> _jmjc.AnyCall:
        return self.json_to_call(request.body)

    def request_to_call_get(self, request: _jmht.ReadRequest) -> _jmjc.AnyCall:
        query = _query_mapping(request.url)

        if "params" in query and self._config.prefer_encoded_get:
            return self.request_to_call_get_encoded(request, query)

        return self.request_to_call_get_query(request, query)

    def request_to_call_get_encoded(
        self, request: _jmht.ReadRequest, query: _cabc.Mapping[str, _tps.Json]
    ) -> _jmjc.AnyCall:
        _LOGGER.debug("Decoding encoded GET request %s.", request.url)

        rpc: dict[str, _tps.Json] = {
            key: query[key] for key in _RESERVED_QUERY_PARAMS if key in query
        }

        if "jsonrpc" not in rpc and "version" not in rpc:
            rpc["jsonrpc"] = _jmjv.Version.V2_0.value

        if "id" in rpc:
            rpc["id"] = self._decode_query_value(rpc["id"])

        rpc["params"] = self._decode_encoded_params(query["params"])

        return self._inflate_get_call(rpc)

    def request_to_call_get_query(
        self, request: _jmht.ReadRequest, query: _cabc.Mapping[str, _tps.Json]
    ) -> _jmjc.AnyCall:
        _LOGGER.debug("Decoding query GET request %s.", request.url)

        params = dict(query)
        rpc: dict[str, _tps.Json] = {
            key: params.pop(key) for key in _RESERVED_QUERY_PARAMS if key in params
        }

        if "method" not in rpc and self._config.rest_style_methods:
            if method := request.url.name:
                rpc["method"] = method

        if "jsonrpc" not in rpc and "version" not in rpc:
            rpc["version"] = _jmjv.Version.V1_1.value

        if "id" in rpc:
            rpc["id"] = self._decode_query_value(rpc["id"])

        if params:
            decoded_params = {
                name: self._decode_query_value(value) for name, value in params.items()
            }
            rpc["params"] = self.expand_query_params(decoded_params)

        return self._inflate_get_call(rpc)

    def expand_query_params(
        self, params: dict[str, _tps.Json]
    ) -> dict[str, _tps.Json]:
        if self._config.expand:
            return self._expander.expand(params)
        return params

    def collapse_query_params(
        self, params: dict[str, _tps.Json]
    ) -> dict[str, _tps.Json]:
        if self._config.expand:
            return self._expander.collapse(params)
        return params

    def response_to_result(self, response: _jmht.ReadResponse) -> _jmjr.AnyReturn:
        if _jmht.is_success(response.status):
            return self.response_to_result_success(response)
        return self.response_to_result_error(response)

    def response_to_result_success(
        self, response: _jmht.ReadResponse
    ) -> _jmjr.AnyReturn:
        return self.json_to_return(response.body)

    def response_to_result_error(
        self, response: _jmht.ReadResponse
    ) -> _jmjr.AnyReturn:
        try:
            result = self.json_to_return(response.body)
        except _jmje.MarshalError as error:
            _LOGGER.warning(
                "Couldn't decode body of HTTP %d response: %s", response.status, error
            )
            result = _jmjreg.return_class(self._config.default_version)()

        if not result.has_error():
            result.set_error(
                message=response.reason or _jmht.status_phrase(response.status),
                code=response.status,
                data={"status": response.status},
                http_status=response.status,
            )

        return result

    def result_to_response_params(
        self, result: _jmjr.AnyReturn
    ) -> _jmht.ResponseParams:
        status = 200
        if result.error is not None:
            status = result.error.http_status or _jmjr.http_status_for_code(
                result.error.code
            )

        return _jmht.ResponseParams(
            status=status,
            content_type=self.get_content_type(result),
            body=self.return_to_json(result).encode(),
        )

    def result_to_response(self, result: _jmjr.AnyReturn) -> _jmht.HttpResponse:
        params = self.result_to_response_params(result)

        headers = _md.CIMultiDict[str]()
        headers[_hdrs.CONTENT_TYPE] = params.content_type
        headers[_hdrs.CONTENT_LENGTH] = str(len(params.body))

        return _jmht.HttpResponse(
            params.status, _jmht.status_phrase(params.status), headers, params.body
        )

    def write_result_to_response(
        self, result: _jmjr.AnyReturn, response: object
    ) -> None:
        if not isinstance(response, _jmht.ResponseWriter):
            missing = [
                name
                for name in _jmht.RESPONSE_WRITER_SETTERS
                if not callable(getattr(response, name, None))
            ]
            raise _jmje.ResponseWriteFailure(missing)

        params = self.result_to_response_params(result)

        response.set_status(params.status)
        response.set_content_type(params.content_type)
        response.set_body(params.body)

    def _inflate_get_call(self, rpc: _cabc.Mapping[str, _tps.Json]) -> _jmjc.AnyCall:
        version, alt_spec = _jmjv.parse_version_tag(_jmjv.get_version(rpc))
        _check_get_allowed(version)

        data = dict(rpc)
        if alt_spec:
            data["version"] = version.value
            if _tps.is_object(data.get("params")):
                data["kwparams"] = data.pop("params")

        return _jmjreg.inflate_call(data)

    def _decode_encoded_params(self, params: _tps.Json) -> _tps.Json:
        if not isinstance(params, str):
            raise _jmje.MalformedField("params", "params must be given exactly once.")

        # try as unencoded JSON first
        try:
            return self.decode(params)
        except _jmje.UnparsableJson:
            pass

        normalized = params.strip().replace(" ", "+").translate(_BASE64_ALTCHARS)
        normalized += "=" * (-len(normalized) % 4)

        try:
            json = _b64.b64decode(normalized, validate=True)
        except _binascii.Error as error:
            raise _jmje.MalformedField("params", "params are not Base64 encoded.") from error

        try:
            return self.decode(json)
        except _jmje.UnparsableJson as error:
            raise _jmje.MalformedField("params", error.reason) from error

    def _decode_query_value(self, value: _tps.Json) -> _tps.Json:
        if isinstance(value, list):
            return [self._decode_query_value(item) for item in value]

        if not self._config.decode_query_values or not isinstance(value, str):
            return value

        try:
            return self.decode(value)
        except _jmje.UnparsableJson:
            return value

    def _encode_query_value(self, value: _tps.Json) -> str:
        if isinstance(value, str) and not self._is_decodable(value):
            return value
        return self.encode(_plain(value))

    def _is_decodable(self, text: str) -> bool:
        if not self._config.decode_query_values:
            return False

        try:
            self.decode(text)
        except _jmje.UnparsableJson:
            return False
        return True


def _base_url(uri: Uri | None) -> _yarl.URL:
    if uri is None:
        return _yarl.URL("/")
    return _yarl.URL(uri)


def _is_alt_spec(call: _jmjc.AnyCall) -> bool:
    return (
        isinstance(call, _jmjc.Call11) and call.alt_spec and _tps.is_object(call.params)
    )


def _version_marker(version: _jmjv.Version) -> str:
    return "jsonrpc" if version is _jmjv.Version.V2_0 else "version"


def _check_get_allowed(version: _jmjv.Version) -> None:
    if version is _jmjv.Version.V1_0:
        raise _jmje.ProtocolViolation("JSON-RPC 1.0 calls can't be made over GET.")


def _query_mapping(url: _yarl.URL) -> dict[str, _tps.Json]:
    query: dict[str, _tps.Json] = {}
    for name in dict.fromkeys(url.query.keys()):
        values = url.query.getall(name)
        query[name] = values[0] if len(values) == 1 else list(values)
    return query


def _plain(value: _tps.Json) -> _tps.Json:
    if _tps.is_object(value):
        return {key: _plain(item) for key, item in value.items()}
    if _tps.is_array(value):
        return [_plain(item) for item in value]
    return value
