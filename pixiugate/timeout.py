"""Filter that bounds how long the rest of the chain may run."""

from __future__ import annotations

import json
import threading
from typing import Callable

from . import log
from .context import set_filter_func
from .http_context import HttpContext, Response

TIMEOUT_FILTER = "dgp.filters.timeout"
DEFAULT_TIMEOUT = 60.0
HANDLER_TIMEOUT_MESSAGE = "http: Handler timeout"

_GATEWAY_TIMEOUT = 504


class TimeoutFilter:
    """Answers 504 when the rest of the chain takes longer than the timeout."""

    def __init__(self, timeout: float = 0) -> None:
        self.wait_time = timeout if timeout > 0 else DEFAULT_TIMEOUT

    def get_timeout(self, timeout: float) -> float:
        """The API timeout if set, else the filter's own."""
        return timeout if timeout > 0 else self.wait_time

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            finished = threading.Event()
            failures: list[BaseException] = []

            def call_rest() -> None:
                try:
                    ctx.next()
                except BaseException as exc:
                    failures.append(exc)
                finally:
                    finished.set()

            worker = threading.Thread(target=call_rest, name="timeout-filter", daemon=True)
            worker.start()

            if finished.wait(self.get_timeout(ctx.timeout)):
                if failures:
                    raise failures[0]
                return

            log.warnf("api:%s request timeout", ctx.get_api().url_pattern)
            body = json.dumps(
                {"message": HANDLER_TIMEOUT_MESSAGE}, separators=(",", ":")
            ).encode("utf-8")
            ctx.source_resp = body
            ctx.target_resp = Response(data=body)
            ctx.write_json_with_status(_GATEWAY_TIMEOUT, body)
            ctx.abort()

        return run


def init() -> None:
    """Register the timeout filter with the default timeout."""
    set_filter_func(TIMEOUT_FILTER, TimeoutFilter(0).do())