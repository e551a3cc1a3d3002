"""Blacklist and whitelist filter on client IP or application name."""

from __future__ import annotations

from typing import Callable

from .context import set_filter_func
from .http_context import HttpContext
from .model import AuthorityRule, LimitType, StrategyType

HTTP_AUTHORITY_FILTER = "dgp.filters.http.authority"
DEFAULT_403_BODY = b"403 for bidden"
_FORBIDDEN = 403


def pass_check(item: str, rule: AuthorityRule) -> bool:
    """Whether an item is allowed by one rule."""
    listed = item in rule.items
    if rule.strategy == StrategyType.Blacklist and listed:
        return False
    if rule.strategy == StrategyType.Whitelist and not listed:
        return False
    return True


class AuthorityFilter:
    """Rejects requests that any configured authority rule forbids."""

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            for rule in ctx.http_connection_manager.authority_config.rules:
                if rule.limit == LimitType.App:
                    item = ctx.get_application_name()
                else:
                    item = ctx.get_client_ip()
                if not pass_check(item, rule):
                    ctx.write_with_status(_FORBIDDEN, DEFAULT_403_BODY)
                    ctx.abort()
                    return
            ctx.next()

        return run


def init() -> None:
    """Register the authority filter."""
    set_filter_func(HTTP_AUTHORITY_FILTER, AuthorityFilter().do())