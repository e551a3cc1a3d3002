"""Filter that requires the request headers an API declares."""

from __future__ import annotations

from typing import Any, Callable

from .http_context import HttpContext


class HeaderFilter:
    """Aborts the chain when a declared header is missing or has another value."""

    def do(self) -> Callable[[Any], None]:
        def run(ctx: Any) -> None:
            expected = ctx.get_api().headers
            if not expected:
                ctx.next()
                return
            if not isinstance(ctx, HttpContext):
                return
            request_headers = ctx.all_headers()
            if len(request_headers) == 0:
                ctx.abort()
                return
            for name, value in expected.items():
                values = request_headers.get_all(name.lower())
                if not values:
                    ctx.abort()
                    return
                if value not in values:
                    ctx.abort()

        return run