"""Filter that logs each request with its status and latency."""

from __future__ import annotations

import time
from typing import Callable

from . import log
from .context import set_filter_func
from .http_context import HttpContext

LOGGER_FILTER = "dgp.filters.logger"


def _duration(seconds: float) -> str:
    nanos = int(seconds * 1e9)
    if nanos < 1_000:
        return f"{nanos}ns"
    if nanos < 1_000_000:
        return f"{nanos / 1e3:g}µs"
    if nanos < 1_000_000_000:
        return f"{nanos / 1e6:g}ms"
    return f"{nanos / 1e9:g}s"


class LoggerFilter:
    """Runs the rest of the chain, then logs status, latency, method and URL."""

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            start = time.monotonic()
            ctx.next()
            latency = time.monotonic() - start
            log.infof(
                "[dubbo go pixiu] [UPSTREAM] receive request | %d | %s | %s | %s | ",
                ctx.status_code(),
                _duration(latency),
                ctx.get_method(),
                ctx.get_url(),
            )

        return run


def init() -> None:
    """Register the logger filter."""
    set_filter_func(LOGGER_FILTER, LoggerFilter().do())