"""Filter that turns an exception in the chain into a 500 response."""

from __future__ import annotations

from typing import Callable

from . import log
from .context import set_filter_func
from .http_context import HttpContext

RECOVERY_FILTER = "dgp.filters.recovery"


class RecoveryFilter:
    """Catches errors raised by later filters, logs them and answers 500."""

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            try:
                ctx.next()
            except Exception as err:
                log.warnf("[dubbopixiu go] error:%+v", err)
                ctx.write_err(str(err))

        return run


def init() -> None:
    """Register the recovery filter."""
    set_filter_func(RECOVERY_FILTER, RecoveryFilter().do())