"""Filter that replaces the request path, keeping the old one in a header."""

from __future__ import annotations

import re
from typing import Callable
from urllib.parse import quote, unquote

from .http_context import HEADER_KEY_CONTENT_TYPE, HEADER_VALUE_TEXT_PLAIN, HttpContext

REPLACED_PATH_HEADER = "X-Replaced-Path"
REPLACE_PATH_ERROR = "replace path fail"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_PATH_SAFE = "/:@!$&'()*+,;=-._~"
_VALID_RAW = re.compile(r"^[A-Za-z0-9/:@!$&'()*+,;=\-._~%]*$")


def _path_unescape(raw: str) -> str:
    if _BAD_ESCAPE.search(raw):
        raise ValueError(f"invalid URL escape in {raw!r}")
    return unquote(raw)


def _escaped_path(raw_path: str, path: str) -> str:
    if raw_path and _VALID_RAW.match(raw_path) and unquote(raw_path) == path:
        return raw_path
    return quote(path, safe=_PATH_SAFE)


class ReplacePathFilter:
    """Replaces the request path with a fixed one."""

    def __init__(self, path: str) -> None:
        self.path = path

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            req = ctx.request
            req.headers.add_header(REPLACED_PATH_HEADER, req.raw_path or req.path)
            req.raw_path = self.path
            try:
                req.path = _path_unescape(req.raw_path)
            except ValueError:
                ctx.add_header(HEADER_KEY_CONTENT_TYPE, HEADER_VALUE_TEXT_PLAIN)
                ctx.write_with_status(500, REPLACE_PATH_ERROR.encode("utf-8"))
                ctx.abort()
                return
            uri = _escaped_path(req.raw_path, req.path) or "/"
            if req.raw_query:
                uri += "?" + req.raw_query
            req.request_uri = uri
            ctx.next()

        return run