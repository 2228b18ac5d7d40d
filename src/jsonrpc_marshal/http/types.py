import dataclasses as _dc
import http as _http
import typing as _tp

import aiohttp.hdrs as _hdrs
import multidict as _md
import yarl as _yarl


@_dc.dataclass(frozen=True)
class HttpRequest:
    method: str
    url: _yarl.URL
    headers: _md.CIMultiDict[str] = _dc.field(default_factory=_md.CIMultiDict)
    body: bytes = b""


@_dc.dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    headers: _md.CIMultiDict[str] = _dc.field(default_factory=_md.CIMultiDict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return is_success(self.status)

    @property
    def content_type(self) -> str | None:
        return self.headers.get(_hdrs.CONTENT_TYPE)


@_dc.dataclass(frozen=True)
class ResponseParams:
    status: int
    content_type: str
    body: bytes


class ReadRequest(_tp.Protocol):
    @property
    def method(self) -> str: ...
    @property
    def url(self) -> _yarl.URL: ...
    @property
    def body(self) -> bytes: ...


class ReadResponse(_tp.Protocol):
    @property
    def status(self) -> int: ...
    @property
    def reason(self) -> str: ...
    @property
    def body(self) -> bytes: ...


@_tp.runtime_checkable
class ResponseWriter(_tp.Protocol):
    def set_status(self, status: int) -> None: ...
    def set_content_type(self, content_type: str) -> None: ...
    def set_body(self, body: bytes) -> None: ...


RESPONSE_WRITER_SETTERS = ("set_status", "set_content_type", "set_body")


def is_success(status: int) -> bool:
    return 200 <= status < 300


def status_phrase(status: int) -> str:
    try:
        return _http.HTTPStatus(status).phrase
    except ValueError:
        return ""
