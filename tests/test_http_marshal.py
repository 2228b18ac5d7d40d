import base64
import json

import pytest
from yarl import URL

from jsonrpc_marshal.http.config import HttpMarshalConfig
from jsonrpc_marshal.http.marshal import HttpMarshal
from jsonrpc_marshal.http.types import HttpRequest, HttpResponse
from jsonrpc_marshal.jsonrpc.calls import Call10, Call11, Call20
from jsonrpc_marshal.jsonrpc.exceptions import (
    MalformedField,
    ProtocolViolation,
    ResponseWriteFailure,
    UnsupportedTransportMethod,
)
from jsonrpc_marshal.jsonrpc.returns import Error, Return10, Return11, Return20


class _RecordingWriter:
    def __init__(self):
        self.status = None
        self.content_type = None
        self.body = None

    def set_status(self, status):
        self.status = status

    def set_content_type(self, content_type):
        self.content_type = content_type

    def set_body(self, body):
        self.body = body


class _WriterWithoutBody:
    def set_status(self, status):
        pass

    def set_content_type(self, content_type):
        pass


def _get(url):
    return HttpRequest("GET", URL(url))


def test_post_request():
    marshal = HttpMarshal()
    call = Call20(method="add", params=[1, 2], id=1)

    request = marshal.call_to_request(call)

    assert request.method == "POST"
    assert request.url == URL("/")
    assert request.headers["Content-Type"] == "application/json-rpc"
    assert request.headers["Accept"] == "application/json-rpc"
    assert request.headers["Content-Length"] == str(len(request.body))
    assert "User-Agent" in request.headers
    assert json.loads(request.body) == call.deflate()
    assert marshal.request_to_call(request) == call


@pytest.mark.parametrize(
    ("call", "content_type"),
    [
        (Call10(method="m", params=[], id=1), "application/json"),
        (Call11(method="m", id=1), "application/json"),
        (Call20(method="m", id=1), "application/json-rpc"),
    ],
)
def test_content_type_follows_version(call, content_type):
    request = HttpMarshal().call_to_request(call, uri="http://example.com/rpc")

    assert request.url == URL("http://example.com/rpc")
    assert request.headers["Content-Type"] == content_type


def test_content_type_override():
    marshal = HttpMarshal(
        HttpMarshalConfig(content_type="text/plain", accept_content_types={"2.0": "*/*"})
    )

    request = marshal.call_to_request(Call20(method="m", id=1))

    assert request.headers["Content-Type"] == "text/plain"
    assert request.headers["Accept"] == "*/*"


def test_encoded_get_request():
    marshal = HttpMarshal()
    call = Call20(method="add", params={"a": [1, 2]}, id=1)

    request = marshal.call_to_request(call, prefer_get=True)

    assert request.method == "GET"
    assert request.body == b""
    query = request.url.query
    assert query["method"] == "add"
    assert query["id"] == "1"
    assert json.loads(base64.b64decode(query["params"])) == {"a": [1, 2]}
    assert marshal.request_to_call(request) == call


def test_encoded_get_request_round_trips_1_1():
    marshal = HttpMarshal(HttpMarshalConfig(prefer_get=True))
    call = Call11(method="m", params={"a": "b c+d"}, id="x")

    request = marshal.call_to_request(call)

    assert request.url.query["version"] == "1.1"
    assert marshal.request_to_call(request) == call


def test_encoded_get_without_params_round_trips():
    marshal = HttpMarshal()
    call = Call20(method="ping", id=5)

    assert marshal.request_to_call(marshal.call_to_request(call, prefer_get=True)) == call


def test_encoded_get_accepts_raw_json_params():
    request = HttpRequest(
        "GET", URL("/").with_query({"method": "add", "id": "1", "params": "[1, 2]"})
    )

    assert HttpMarshal().request_to_call(request) == Call20(
        method="add", params=[1, 2], id=1
    )


def test_encoded_get_accepts_url_safe_base64_without_padding():
    encoded = base64.urlsafe_b64encode(b'{"q": "??>>"}').rstrip(b"=").decode()
    request = HttpRequest(
        "GET", URL("/").with_query({"method": "find", "params": encoded})
    )

    call = HttpMarshal().request_to_call(request)

    assert call == Call20(method="find", params={"q": "??>>"})
    assert call.is_notification


def test_encoded_get_rejects_garbage_params():
    request = HttpRequest("GET", URL("/").with_query({"method": "m", "params": "%%%"}))

    with pytest.raises(MalformedField) as exc_info:
        HttpMarshal().request_to_call(request)

    assert exc_info.value.field == "params"


def test_query_get_with_rest_style_method():
    call = HttpMarshal().request_to_call(_get("/add?x=1&y=2&id=3"))

    assert call == Call11(method="add", params={"x": 1, "y": 2}, id=3)


def test_query_get_with_method_parameter():
    marshal = HttpMarshal(HttpMarshalConfig(rest_style_methods=False))

    call = marshal.request_to_call(_get("/rpc?method=add&x=abc&jsonrpc=2.0"))

    assert call == Call20(method="add", params={"x": "abc"})


def test_query_get_without_value_decoding():
    marshal = HttpMarshal(HttpMarshalConfig(decode_query_values=False))

    call = marshal.request_to_call(_get("/add?x=1&id=3"))

    assert call == Call11(method="add", params={"x": "1"}, id="3")


def test_query_get_collects_repeated_parameters():
    call = HttpMarshal().request_to_call(_get("/add?x=1&x=2"))

    assert call.params == {"x": [1, 2]}


def test_query_get_with_expansion():
    marshal = HttpMarshal(HttpMarshalConfig(expand=True))

    call = marshal.request_to_call(_get("/m?a.b=1&a.c.0=x&a[c][1]=y"))

    assert call.params == {"a": {"b": 1, "c": ["x", "y"]}}


def test_query_get_without_method():
    with pytest.raises(MalformedField) as exc_info:
        HttpMarshal().request_to_call(_get("/?x=1"))

    assert exc_info.value.field == "method"


def test_get_rejects_1_0():
    with pytest.raises(ProtocolViolation):
        HttpMarshal().request_to_call(_get("/add?version=1.0&x=1"))


def test_query_get_request_round_trip():
    marshal = HttpMarshal(HttpMarshalConfig(prefer_get=True))
    call = Call11(method="add", params={"x": 1, "y": "2", "z": "abc", "w": [1]}, id=3)

    request = marshal.call_to_request(call, encoded=False, uri="http://example.com/rpc/")

    assert request.url.path == "/rpc/add"
    query = request.url.query
    assert query["x"] == "1"
    assert query["y"] == '"2"'
    assert query["z"] == "abc"
    assert query["w"] == "[1]"
    assert query["id"] == "3"
    assert "method" not in query
    assert marshal.request_to_call(request) == call


def test_query_get_request_with_method_parameter():
    marshal = HttpMarshal(HttpMarshalConfig(rest_style_methods=False))
    call = Call20(method="add", params={"x": 1}, id=3)

    request = marshal.call_to_request(call, prefer_get=True, encoded=False)

    assert request.url.path == "/"
    assert request.url.query["method"] == "add"
    assert request.url.query["jsonrpc"] == "2.0"
    assert marshal.request_to_call(request) == call


def test_query_get_request_with_collapse():
    marshal = HttpMarshal(HttpMarshalConfig(expand=True))
    call = Call11(method="m", params={"a": {"b": [1, 2]}}, id=1)

    request = marshal.call_to_request(call, prefer_get=True, encoded=False)

    assert request.url.query["a.b.0"] == "1"
    assert marshal.request_to_call(request) == call


def test_query_get_request_rejects_positional_params():
    with pytest.raises(MalformedField):
        HttpMarshal().call_to_request(
            Call11(method="m", params=[1], id=1), prefer_get=True, encoded=False
        )


def test_query_get_request_rejects_reserved_names():
    with pytest.raises(MalformedField):
        HttpMarshal().call_to_request(
            Call11(method="m", params={"id": 1}, id=1), prefer_get=True, encoded=False
        )


def test_query_get_request_rejects_params_name_read_as_encoded():
    with pytest.raises(MalformedField):
        HttpMarshal().call_to_request(
            Call11(method="m", params={"params": "x"}, id=1),
            prefer_get=True,
            encoded=False,
        )


def test_query_get_request_allows_params_name_without_encoded_get():
    marshal = HttpMarshal(HttpMarshalConfig(prefer_encoded_get=False))
    call = Call11(method="m", params={"params": "x"}, id=1)

    request = marshal.call_to_request(call, prefer_get=True, encoded=False)

    assert request.url.query["params"] == "x"
    assert marshal.request_to_call(request) == call


@pytest.mark.parametrize("encoded", [True, False])
def test_get_request_keeps_alt_spec(encoded):
    marshal = HttpMarshal()
    call = Call11(method="m", params={"a": 1}, id=1, alt_spec=True)

    request = marshal.call_to_request(call, prefer_get=True, encoded=encoded)

    assert request.url.query["version"] == "1.1-alt"
    result = marshal.request_to_call(request)
    assert result == call
    assert result.alt_spec



def test_get_request_rejects_1_0():
    with pytest.raises(ProtocolViolation):
        HttpMarshal().call_to_request(Call10(method="m", id=1), prefer_get=True)


def test_unsupported_http_method():
    with pytest.raises(UnsupportedTransportMethod) as exc_info:
        HttpMarshal().request_to_call(HttpRequest("PUT", URL("/")))

    assert exc_info.value.http_method == "PUT"


def test_result_to_response_success():
    marshal = HttpMarshal()
    result = Return20(id=1, result=3)

    response = marshal.result_to_response(result)

    assert response.status == 200
    assert response.reason == "OK"
    assert response.content_type == "application/json-rpc"
    assert json.loads(response.body) == result.deflate()


def test_result_to_response_error_status():
    marshal = HttpMarshal()
    result = Return11(id=1, error=Error(-32601, "Method not found", "add"))

    response = marshal.result_to_response(result)

    assert response.status == 404
    assert response.content_type == "application/json"
    assert marshal.response_to_result(response) == result


def test_response_to_result_success():
    response = HttpResponse(200, "OK", body=b'{"jsonrpc": "2.0", "id": 1, "result": 3}')

    assert HttpMarshal().response_to_result(response) == Return20(id=1, result=3)


def test_response_to_result_synthesizes_error_for_garbage_body():
    response = HttpResponse(502, "Bad Gateway", body=b"<html>oops</html>")

    result = HttpMarshal().response_to_result(response)

    assert isinstance(result, Return20)
    assert result.has_error()
    assert result.error == Error(502, "Bad Gateway", {"status": 502})
    assert result.error.http_status == 502


def test_response_to_result_adds_error_to_successful_looking_return():
    response = HttpResponse(
        500, "", body=b'{"version": "1.1", "id": 1, "result": null}'
    )

    result = HttpMarshal().response_to_result(response)

    assert isinstance(result, Return11)
    assert result.id == 1
    assert result.error == Error(500, "Internal Server Error", {"status": 500})


def test_response_to_result_keeps_existing_error():
    response = HttpResponse(
        404, "Not Found", body=b'{"id": 1, "result": null, "error": "no such method"}'
    )

    result = HttpMarshal().response_to_result(response)

    assert result == Return10(id=1, error=Error(-32603, "no such method"))


def test_write_result_to_response():
    marshal = HttpMarshal()
    writer = _RecordingWriter()
    result = Return20(id=1, error=Error.invalid_request())

    marshal.write_result_to_response(result, writer)

    assert writer.status == 400
    assert writer.content_type == "application/json-rpc"
    assert json.loads(writer.body) == result.deflate()


def test_write_result_to_response_requires_setters():
    with pytest.raises(ResponseWriteFailure) as exc_info:
        HttpMarshal().write_result_to_response(Return20(id=1, result=1), _WriterWithoutBody())

    assert exc_info.value.missing_setters == ("set_body",)
