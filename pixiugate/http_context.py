"""HTTP request context: request data, response writing and route matching."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote, urlsplit
from wsgiref.headers import Headers

from .bootstrap import Bootstrap
from .context import API, BaseContext, get_must_filter_func
from .model import FilterChain, Listener
from .routes import HeaderMatcher, HttpConnectionManager, RouteAction, RouterMatch
from .writer import ResponseRecorder, ResponseWriter

HEADER_KEY_CONTENT_TYPE = "Content-Type"
HEADER_VALUE_JSON_UTF8 = "application/json;charset=UTF-8"
HEADER_VALUE_TEXT_PLAIN = "text/plain"


def _canonical_key(key: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _split_host(hostport: str) -> str:
    """Return the host part of host:port; raise ValueError if there is no port."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0 or not hostport[end + 1 :].startswith(":"):
            raise ValueError(f"address {hostport}: missing port in address")
        return hostport[1:end]
    host, sep, _ = hostport.rpartition(":")
    if not sep:
        raise ValueError(f"address {hostport}: missing port in address")
    if ":" in host:
        raise ValueError(f"address {hostport}: too many colons in address")
    return host


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    path: str = ""
    raw_path: str = ""
    raw_query: str = ""
    host: str = ""
    headers: Headers = field(default_factory=lambda: Headers([]))
    remote_addr: str = ""
    request_uri: str = ""
    body: bytes = b""

    @classmethod
    def from_url(cls, method: str, url: str, body: bytes = b"") -> "Request":
        """Build a request for a method and an absolute or relative URL."""
        parts = urlsplit(url)
        raw = parts.path
        path = unquote(raw)
        target = raw or "/"
        if parts.query:
            target += "?" + parts.query
        return cls(
            method=method,
            path=path,
            raw_path=raw if "%" in raw else "",
            raw_query=parts.query,
            host=parts.netloc,
            request_uri=target,
            body=bytes(body),
        )


@dataclass
class Response:
    """The result of a client call."""

    data: Any = None


class HttpContext(BaseContext):
    """Filter chain context for one HTTP request."""

    def __init__(
        self,
        request: Request | None = None,
        listener: Listener | None = None,
        filter_chains: list[FilterChain] | None = None,
        http_connection_manager: HttpConnectionManager | None = None,
        writer: Any = None,
    ) -> None:
        super().__init__()
        self.request = request if request is not None else Request()
        self.listener = listener
        self.filter_chains = list(filter_chains or [])
        self.http_connection_manager = http_connection_manager or HttpConnectionManager()
        self._api = API()
        self._writermem = ResponseWriter(writer if writer is not None else ResponseRecorder())
        self.writer = self._writermem

    def next(self) -> None:
        """Run the filters after the current one."""
        self.index += 1
        while self.index < len(self.filters):
            self.filters[self.index](self)
            self.index += 1

    def reset(self) -> None:
        """Clear the filter state and point the writer at the wrapped response."""
        BaseContext.__init__(self)
        self.writer = self._writermem

    def status(self, code: int) -> None:
        self.writer.write_header(code)

    def status_code(self) -> int:
        return self.writer.status

    def write(self, data: bytes) -> int:
        return self.writer.write(data)

    def write_header_now(self) -> None:
        self._writermem.write_header_now()

    def write_with_status(self, code: int, data: bytes) -> int:
        self.writer.write_header(code)
        return self.writer.write(data)

    def add_header(self, key: str, value: str) -> None:
        """Add a response header value."""
        self.writer.headers.setdefault(_canonical_key(key), []).append(value)

    def get_header(self, key: str) -> str:
        """Return the first request header value, or an empty string."""
        return self.request.headers.get(key) or ""

    def all_headers(self) -> Headers:
        return self.request.headers

    def get_url(self) -> str:
        return self.request.path

    def get_method(self) -> str:
        return self.request.method

    def set_api(self, api: API) -> None:
        """Attach the routed API; its timeout becomes the context timeout."""
        self.timeout = api.timeout
        self._api = api

    def get_api(self) -> API:
        return self._api

    def get_client_ip(self) -> str:
        """Client address from X-Forwarded-For, X-Real-Ip or the remote address."""
        forwarded = self.get_header("X-Forwarded-For")
        ip = forwarded.split(",")[0].strip()
        if ip:
            return ip
        ip = self.get_header("X-Real-Ip").strip()
        if ip:
            return ip
        try:
            ip = _split_host(self.request.remote_addr.strip())
        except ValueError:
            return ""
        return ip

    def get_application_name(self) -> str:
        """The first segment of the request URI path."""
        try:
            path = urlsplit(self.request.request_uri).path
        except ValueError:
            return ""
        return path.split("/")[0]

    def write_json_with_status(self, code: int, res: Any) -> None:
        self._do_write_json(code, res)

    def write_err(self, payload: Any) -> None:
        self._do_write_json(500, payload)

    def write_success(self) -> None:
        self._do_write_json(200, None)

    def write_response(self, resp: Response) -> None:
        self._do_write_json(200, resp.data)

    def _do_write_json(self, code: int, data: Any) -> None:
        self._do_write({HEADER_KEY_CONTENT_TYPE: HEADER_VALUE_JSON_UTF8}, code, data)

    def _do_write(self, headers: dict[str, str], code: int, data: Any) -> None:
        for key, value in headers.items():
            self.writer.headers[_canonical_key(key)] = [value]
        self.writer.write_header(code)
        if data is None:
            return
        if isinstance(data, (bytes, bytearray)):
            self.writer.write(bytes(data))
            return
        try:
            encoded = json.dumps(data, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            self.writer.write(str(exc).encode("utf-8"))
        else:
            self.writer.write(encoded)

    def build_filters(self) -> None:
        """Append the filters named by the routed API."""
        self.append_filter_func(*(get_must_filter_func(name) for name in self._api.filters))

    def reset_writermen(self, writer: Any) -> None:
        self._writermem.reset(writer)


def http_header_match(ctx: HttpContext, matcher: HeaderMatcher) -> bool:
    """Whether the request headers satisfy a header matcher."""
    if not matcher.name:
        return True
    if not matcher.value:
        return ctx.get_header(matcher.name) == ""
    if matcher.regex:
        return True
    return ctx.get_header(matcher.name) == matcher.value


def http_route_match(ctx: HttpContext, match: RouterMatch) -> bool:
    """Whether the request URL satisfies a route match."""
    url = ctx.get_url()
    if match.prefix and not url.startswith(match.path):
        return False
    if match.path and url != match.path:
        return False
    if match.regex and not re.search(match.regex, url):
        return False
    return True


def http_route_action_match(ctx: HttpContext, action: RouteAction, bootstrap: Bootstrap) -> bool:
    """Whether the action names a cluster that the configuration has."""
    return bool(action.cluster) and bootstrap.exist_cluster(action.cluster)