"""Filter that writes the upstream result back to the client."""

from __future__ import annotations

import http.client
import json
import os
from dataclasses import fields, is_dataclass
from typing import Any, Callable

from .context import set_filter_func
from .http_context import HEADER_KEY_CONTENT_TYPE, HEADER_VALUE_TEXT_PLAIN, HttpContext, Response

RESPONSE_FILTER = "dgp.filters.response"
ENV_RESPONSE_STRATEGY = "dgp-response-strategy"
RESPONSE_STRATEGY_NORMAL = "normal"
RESPONSE_STRATEGY_HUMP = "hump"

_SERVICE_UNAVAILABLE = 503


def _error_body(message: str) -> bytes:
    return json.dumps({"message": message}, separators=(",", ":")).encode("utf-8")


def _key_str(key: Any) -> str:
    if key is None:
        return "<nil>"
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def _is_string_map(value: Any) -> bool:
    return isinstance(value, dict) and all(isinstance(k, str) for k in value)


def _to_string_map(value: Any) -> Any:
    """Turn a map with arbitrary keys into one with string keys, dropping nulls and 'class'."""
    if not isinstance(value, dict) or _is_string_map(value):
        return value
    out: dict[str, Any] = {}
    for key, item in value.items():
        if item is None:
            continue
        name = _key_str(key)
        if name == "class":
            continue
        if isinstance(item, dict):
            item = _to_string_map(item)
        elif isinstance(item, (list, tuple)):
            item = [_to_string_map(element) for element in item]
        out[name] = item
    return out


def _struct_to_map(obj: Any) -> dict[str, Any]:
    return {f.name: getattr(obj, f.name) for f in fields(obj)}


def _hump_to_line(value: Any) -> Any:
    """Rename every key of a string-keyed map from camel case to snake case."""
    if not _is_string_map(value):
        return value
    out: dict[str, Any] = {}
    for key, item in value.items():
        name = hump_to_underline(key)
        if item is None:
            out[name] = None
        elif is_dataclass(item) and not isinstance(item, type):
            out[name] = _hump_to_line(_struct_to_map(item))
        elif isinstance(item, (list, tuple)):
            out[name] = [_hump_to_line(element) for element in item]
        elif isinstance(item, dict):
            out[name] = _hump_to_line(item)
        else:
            out[name] = item
    return out


def hump_to_underline(s: str) -> str:
    """Convert a camel case name to lower snake case."""
    chars: list[str] = []
    seen_non_underscore = False
    for position, ch in enumerate(s):
        if position > 0 and "A" <= ch <= "Z" and seen_non_underscore:
            chars.append("_")
        if ch != "_":
            seen_non_underscore = True
        chars.append(ch)
    return "".join(chars).lower()


def deal_resp(value: Any, hump_to_line: bool) -> Any:
    """Normalise a client result into JSON-friendly maps and lists."""
    if value is None:
        return None
    if isinstance(value, dict):
        if _is_string_map(value):
            return _hump_to_line(value) if hump_to_line else value
        converted = _to_string_map(value)
        return _hump_to_line(converted) if hump_to_line else converted
    if isinstance(value, (list, tuple)):
        return [deal_resp(item, hump_to_line) for item in value]
    return value


class ResponseFilter:
    """Writes the error, the upstream HTTP response or the converted result."""

    def __init__(self, strategy: str = "") -> None:
        self.strategy = strategy

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            self._do_response(ctx)

        return run

    def _do_response(self, ctx: HttpContext) -> None:
        if ctx.err is not None:
            body = _error_body(str(ctx.err))
            ctx.source_resp = body
            ctx.target_resp = Response(data=body)
            ctx.write_json_with_status(_SERVICE_UNAVAILABLE, body)
            ctx.abort()
            return

        upstream = ctx.source_resp
        if isinstance(upstream, http.client.HTTPResponse):
            ctx.target_resp = Response(data=upstream)
            try:
                body = upstream.read()
            except (OSError, http.client.HTTPException):
                ctx.add_header(HEADER_KEY_CONTENT_TYPE, HEADER_VALUE_TEXT_PLAIN)
                status_line = f"{upstream.status} {upstream.reason}"
                ctx.write_with_status(upstream.status, status_line.encode("utf-8"))
                ctx.abort()
                return
            for key in dict.fromkeys(upstream.headers.keys()):
                ctx.add_header(key, upstream.headers.get(key, ""))
            ctx.write_with_status(upstream.status, body)
            ctx.abort()
            return

        ctx.target_resp = self.new_response(ctx.source_resp)
        ctx.write_response(ctx.target_resp)
        ctx.abort()

    def new_response(self, data: Any) -> Response:
        """Wrap a client result, converting keys when the hump strategy is set."""
        hump = self.strategy == RESPONSE_STRATEGY_HUMP
        return Response(data=deal_resp(data, hump))


def _default_strategy() -> str:
    strategy = os.environ.get(ENV_RESPONSE_STRATEGY, "")
    if strategy:
        strategy = RESPONSE_STRATEGY_NORMAL
    return strategy


def init() -> None:
    """Register the response filter."""
    set_filter_func(RESPONSE_FILTER, ResponseFilter(_default_strategy()).do())