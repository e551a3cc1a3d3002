"""HTTP listener: routes requests to APIs and runs their filter chain."""

from __future__ import annotations

import re
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from wsgiref.headers import Headers

from . import log
from .access_log_filter import ACCESS_LOG_FILTER
from .bootstrap import Bootstrap
from .context import API, get_must_filter_func
from .header import HeaderFilter
from .host import HostFilter
from .http_context import HEADER_KEY_CONTENT_TYPE, HEADER_VALUE_TEXT_PLAIN, HttpContext, Request
from .model import Listener, ProtocolType
from .plugins import get_api_filter_funcs_with_api_url
from .recovery import RECOVERY_FILTER
from .replacepath import ReplacePathFilter
from .request_logger import LOGGER_FILTER
from .response import RESPONSE_FILTER
from .routes import (
    HttpConfig,
    HttpConnectionManager,
    HTTPFilter,
    RouteAction,
    RouteConfiguration,
    Router,
    RouterMatch,
)
from .timeout import TIMEOUT_FILTER
from .writer import ResponseRecorder

HTTP_CONNECT_MANAGER_FILTER = "dgp.filters.http_connect_manager"
HTTP_ROUTER_FILTER = "dgp.filters.http.router"
REMOTE_CALL_FILTER = "dgp.filters.remote_call"
HEADER_VALUE_ALL = "*"
DUBBO_REQUEST = "dubbo"
HTTP_REQUEST = "http"
DEFAULT_404_BODY = b"404 page not found"
DEFAULT_406_BODY = b"406 api not up"
DEFAULT_SERVER_TIMEOUT = 20.0
DEFAULT_MAX_HEADER_BYTES = 1 << 20


class RouteNotFoundError(LookupError):
    """Raised when no API matches the request."""


class ApiOfflineError(Exception):
    """Raised when the matching API is not on air."""


class LocalApiDiscoveryService:
    """In-memory APIs keyed by URL pattern and HTTP verb."""

    def __init__(self) -> None:
        self._apis: dict[tuple[str, str], API] = {}

    def add_api(self, api: API) -> None:
        self._apis[(api.url_pattern, api.http_verb.upper())] = api

    def get_api(self, url: str, method: str) -> API:
        """The API for a URL and method; raise KeyError if there is none."""
        try:
            return self._apis[(url, method.upper())]
        except KeyError:
            raise KeyError(f"{method} {url}") from None


def default_http_connection_manager() -> HttpConnectionManager:
    """A manager routing /api/v1 to every cluster through the router filter."""
    return HttpConnectionManager(
        route_config=RouteConfiguration(
            routes=[
                Router(
                    match=RouterMatch(prefix="/api/v1"),
                    route=RouteAction(cluster=HEADER_VALUE_ALL),
                )
            ]
        ),
        http_filters=[HTTPFilter(name=HTTP_ROUTER_FILTER)],
    )


def resolve_int_prop(current: int, default: int) -> int:
    return default if current == 0 else current


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def _parse_duration(text: str) -> float:
    s = text
    sign = 1.0
    if s and s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]
    if s == "0":
        return 0.0
    if not s:
        raise ValueError(f"invalid duration {text!r}")
    total = 0.0
    pos = 0
    while pos < len(s):
        match = _DURATION_PART.match(s, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def resolve_duration(current: str, default: float) -> float:
    """Parse a duration such as '1m30s' into seconds; empty gives the default."""
    if not current:
        return default
    try:
        return _parse_duration(current)
    except ValueError:
        return DEFAULT_SERVER_TIMEOUT


def resolve_address(addr: str) -> str:
    if not addr:
        log.debug("Addr is undefined. Using port :8080 by default")
        return ":8080"
    return addr


class DefaultHttpListener:
    """Entry point for each HTTP request."""

    def __init__(
        self,
        context_factory: Callable[[], HttpContext] | None = None,
        discovery: LocalApiDiscoveryService | None = None,
        bootstrap: Bootstrap | None = None,
    ) -> None:
        self.context_factory = context_factory or HttpContext
        self.discovery = discovery if discovery is not None else LocalApiDiscoveryService()
        self.bootstrap = bootstrap if bootstrap is not None else Bootstrap()

    def serve_http(self, writer: Any, request: Request) -> None:
        """Route the request, build its filter chain and run it into the writer."""
        ctx = self.context_factory()
        ctx.request = request
        ctx.reset_writermen(writer)
        ctx.reset()
        try:
            api = self.route_request(ctx, request)
        except (RouteNotFoundError, ApiOfflineError):
            return
        self._add_filters(ctx, api)
        self.handle_http_request(ctx)

    def route_request(self, ctx: HttpContext, request: Request) -> API:
        """Find the API for the request; answer 404 or 406 and raise if there is none."""
        try:
            api = self.discovery.get_api(request.path, request.method)
        except KeyError:
            ctx.write_with_status(404, DEFAULT_404_BODY)
            ctx.add_header(HEADER_KEY_CONTENT_TYPE, HEADER_VALUE_TEXT_PLAIN)
            message = f"Requested URL {request.path} not found"
            log.debug(message)
            raise RouteNotFoundError(message) from None
        if not api.on_air:
            ctx.write_with_status(406, DEFAULT_406_BODY)
            ctx.add_header(HEADER_KEY_CONTENT_TYPE, HEADER_VALUE_TEXT_PLAIN)
            message = f"Requested API {request.method} {request.path} does not online"
            log.debug(message)
            raise ApiOfflineError(message)
        ctx.set_api(api)
        return api

    def _add_filters(self, ctx: HttpContext, api: API) -> None:
        ctx.append_filter_func(
            get_must_filter_func(LOGGER_FILTER),
            get_must_filter_func(RECOVERY_FILTER),
            get_must_filter_func(TIMEOUT_FILTER),
        )
        if self.bootstrap.static_resources.access_log_config.enable:
            ctx.append_filter_func(get_must_filter_func(ACCESS_LOG_FILTER))
        if api.request_type == HTTP_REQUEST:
            if api.host:
                ctx.append_filter_func(HostFilter(api.host).do())
            if api.path:
                ctx.append_filter_func(ReplacePathFilter(api.path).do())
        plugin_chain = get_api_filter_funcs_with_api_url(ctx.request.path)
        ctx.append_filter_func(*plugin_chain.pre)
        ctx.append_filter_func(HeaderFilter().do(), get_must_filter_func(REMOTE_CALL_FILTER))
        ctx.build_filters()
        ctx.append_filter_func(*plugin_chain.post)
        ctx.append_filter_func(get_must_filter_func(RESPONSE_FILTER))

    def handle_http_request(self, ctx: HttpContext) -> None:
        """Run the filter chain and make sure the status goes out."""
        if ctx.filters:
            ctx.next()
            ctx.write_header_now()


@dataclass
class _ServerSettings:
    read_timeout: float
    write_timeout: float
    idle_timeout: float
    max_header_bytes: int


def _make_handler(
    http_listener: DefaultHttpListener, settings: _ServerSettings
) -> type[BaseHTTPRequestHandler]:
    class _Handler(BaseHTTPRequestHandler):
        timeout = settings.read_timeout

        def _serve(self) -> None:
            header_size = sum(len(k) + len(v) + 4 for k, v in self.headers.items())
            if header_size > settings.max_header_bytes:
                self.send_error(431)
                return
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length > 0 else b""
            request = Request.from_url(self.command, self.path, body)
            request.host = self.headers.get("Host", "")
            request.headers = Headers(list(self.headers.items()))
            request.remote_addr = f"{self.client_address[0]}:{self.client_address[1]}"
            recorder = ResponseRecorder()
            http_listener.serve_http(recorder, request)
            self.send_response(recorder.code)
            for key, values in recorder.headers.items():
                for value in values:
                    self.send_header(key, value)
            if "Content-Length" not in recorder.headers:
                self.send_header("Content-Length", str(len(recorder.body)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(bytes(recorder.body))

        do_GET = do_POST = do_PUT = do_DELETE = do_HEAD = do_PATCH = do_OPTIONS = _serve

        def log_message(self, format: str, *args: Any) -> None:
            log.debugf("%s", format % args)

    return _Handler


class ListenerService:
    """Runs one configured listener."""

    def __init__(
        self,
        listener: Listener,
        discovery: LocalApiDiscoveryService | None = None,
        bootstrap: Bootstrap | None = None,
    ) -> None:
        self.listener = listener
        self.discovery = discovery
        self.bootstrap = bootstrap

    def start(self) -> None:
        """Serve the listener's protocol; blocks until the server stops."""
        socket_address = self.listener.address.socket_address
        if socket_address.protocol != ProtocolType.HTTP:
            raise ValueError("unsupported protocol start: " + socket_address.protocol_str)
        server = self._make_server()
        server.serve_forever()

    def _make_server(self) -> ThreadingHTTPServer:
        http_listener = DefaultHttpListener(
            context_factory=self.allocate_context,
            discovery=self.discovery,
            bootstrap=self.bootstrap,
        )
        config = self.listener.config if isinstance(self.listener.config, HttpConfig) else HttpConfig()
        settings = _ServerSettings(
            read_timeout=resolve_duration(config.read_timeout_str, DEFAULT_SERVER_TIMEOUT),
            write_timeout=resolve_duration(config.write_timeout_str, DEFAULT_SERVER_TIMEOUT),
            idle_timeout=resolve_duration(config.idle_timeout_str, DEFAULT_SERVER_TIMEOUT),
            max_header_bytes=resolve_int_prop(config.max_header_bytes, DEFAULT_MAX_HEADER_BYTES),
        )
        socket_address = self.listener.address.socket_address
        addr = resolve_address(f"{socket_address.address}:{socket_address.port}")
        host, _, port = addr.rpartition(":")
        log.infof("[dubbo-go-pixiu] httpListener start at : %s", addr)
        log.debugf(
            "server timeouts read %v write %v idle %v",
            settings.read_timeout,
            settings.write_timeout,
            settings.idle_timeout,
        )
        return ThreadingHTTPServer((host, int(port or 0)), _make_handler(http_listener, settings))

    def allocate_context(self) -> HttpContext:
        return HttpContext(
            listener=self.listener,
            filter_chains=self.listener.filter_chains,
            http_connection_manager=self.find_http_manager(),
        )

    def find_http_manager(self) -> HttpConnectionManager:
        """The configured connection manager, or the default one."""
        for chain in self.listener.filter_chains:
            for item in chain.filters:
                if item.name == HTTP_CONNECT_MANAGER_FILTER:
                    if not isinstance(item.config, HttpConnectionManager):
                        raise TypeError(
                            f"filter {item.name} config is {type(item.config).__name__}, "
                            "not HttpConnectionManager"
                        )
                    return item.config
        return default_http_connection_manager()