"""Filter that rewrites the request host."""

from __future__ import annotations

from typing import Callable

from .http_context import HttpContext


class HostFilter:
    """Sets the request host to a fixed value."""

    def __init__(self, host: str) -> None:
        self.host = host

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            ctx.request.host = self.host
            ctx.next()

        return run