import logging as _log
import typing as _tp

import aiohttp as _ahttp
import aiohttp.hdrs as _hdrs
import aiohttp.web as _ahttpw
import multidict as _md

import jsonrpc_marshal.http.types as _jmht

_LOGGER = _log.getLogger(__name__)


async def read_request(request: _ahttpw.BaseRequest) -> _jmht.HttpRequest:
    body = await request.read() if request.can_read_body else b""

    _LOGGER.debug("Read %s request to %s.", request.method, request.url)
    return _jmht.HttpRequest(
        request.method, request.url, _md.CIMultiDict(request.headers), body
    )


async def read_client_response(
    response: _ahttp.ClientResponse,
) -> _jmht.HttpResponse:
    body = await response.read()

    return _jmht.HttpResponse(
        response.status,
        response.reason or _jmht.status_phrase(response.status),
        _md.CIMultiDict(response.headers),
        body,
    )


def to_web_response(response: _jmht.HttpResponse) -> _ahttpw.Response:
    # aiohttp computes the length from the body itself
    headers = _md.CIMultiDict(response.headers)
    headers.popall(_hdrs.CONTENT_LENGTH, None)

    return _ahttpw.Response(
        status=response.status,
        reason=response.reason or None,
        headers=headers,
        body=response.body,
    )


def to_client_request_kwargs(request: _jmht.HttpRequest) -> dict[str, _tp.Any]:
    """Keyword arguments for `aiohttp.ClientSession.request`."""
    headers = _md.CIMultiDict(request.headers)
    headers.popall(_hdrs.CONTENT_LENGTH, None)

    kwargs: dict[str, _tp.Any] = {
        "method": request.method,
        "url": request.url,
        "headers": headers,
    }
    if request.body:
        kwargs["data"] = request.body

    return kwargs


class WebResponseWriter:
    """Writes marshalled returns into an `aiohttp.web.Response`."""

    def __init__(self, response: _ahttpw.Response | None = None) -> None:
        self._response = response if response is not None else _ahttpw.Response()

    @property
    def response(self) -> _ahttpw.Response:
        return self._response

    def set_status(self, status: int) -> None:
        self._response.set_status(status)

    def set_content_type(self, content_type: str) -> None:
        self._response.content_type = content_type

    def set_body(self, body: bytes) -> None:
        self._response.body = body
