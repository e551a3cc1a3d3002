"""HTTP connection manager, route and matcher configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .model import AuthorityConfiguration, HeaderValueOption


class RequestMethod(IntEnum):
    """HTTP request method."""

    METHOD_UNSPECIFIED = 0
    GET = 1
    HEAD = 2
    POST = 3
    PUT = 4
    DELETE = 5
    CONNECT = 6
    OPTIONS = 7
    TRACE = 8


class MatcherType(IntEnum):
    """How a string matcher compares its value."""

    Exact = 0
    Prefix = 1
    Suffix = 2
    Regex = 3


@dataclass
class StringMatcher:
    """Matches a string; currently every value matches."""

    matcher: MatcherType = MatcherType.Exact

    def match(self) -> bool:
        return True


@dataclass
class HeaderMatcher:
    """Header key, expected value, and whether the value is a regex."""

    name: str = ""
    value: str = ""
    regex: bool = False


@dataclass
class CorsPolicy:
    allow_origin: list[str] = field(default_factory=list)
    allow_methods: str = ""
    allow_headers: str = ""
    expose_headers: str = ""
    max_age: str = ""
    allow_credentials: bool = False
    enabled: bool = False


@dataclass
class HTTPFilter:
    """A named HTTP filter with its configuration."""

    name: str = ""
    config: Any = None


@dataclass
class HttpConfig:
    """User settings for the HTTP server."""

    idle_timeout_str: str = ""
    read_timeout_str: str = ""
    write_timeout_str: str = ""
    max_header_bytes: int = 0


@dataclass
class RouterMatch:
    prefix: str = ""
    path: str = ""
    regex: str = ""
    case_sensitive: bool = False
    headers: list[HeaderMatcher] = field(default_factory=list)


@dataclass
class RouteAction:
    """What to do with a request that matched a route."""

    cluster: str = ""
    cluster_not_found_response_code: int = 0
    prefix_rewrite: str = ""
    host_rewrite: str = ""
    timeout: str = ""
    priority: int = 0
    response_headers_to_add: HeaderValueOption = field(default_factory=HeaderValueOption)
    response_headers_to_remove: list[str] = field(default_factory=list)
    request_headers_to_add: HeaderValueOption = field(default_factory=HeaderValueOption)
    cors: CorsPolicy = field(default_factory=CorsPolicy)


@dataclass
class Router:
    match: RouterMatch = field(default_factory=RouterMatch)
    route: RouteAction = field(default_factory=RouteAction)
    redirect: RouteAction = field(default_factory=RouteAction)


@dataclass
class RouteConfiguration:
    internal_only_headers: list[str] = field(default_factory=list)
    response_headers_to_add: HeaderValueOption = field(default_factory=HeaderValueOption)
    response_headers_to_remove: list[str] = field(default_factory=list)
    request_headers_to_add: HeaderValueOption = field(default_factory=HeaderValueOption)
    routes: list[Router] = field(default_factory=list)


@dataclass
class HttpConnectionManager:
    """Routes, authority rules and filters of an HTTP listener."""

    route_config: RouteConfiguration = field(default_factory=RouteConfiguration)
    authority_config: AuthorityConfiguration = field(default_factory=AuthorityConfiguration)
    http_filters: list[HTTPFilter] = field(default_factory=list)
    server_name: str = ""
    idle_timeout_str: str = ""
    generate_request_id: bool = False