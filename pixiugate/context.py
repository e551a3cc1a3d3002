"""Filter chain context and the registry of named filters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

ABORT_INDEX = 127 // 2


class FilterNotFoundError(KeyError):
    """Raised when no filter is registered under a name."""


@dataclass
class API:
    """An API definition routed by the gateway."""

    url_pattern: str = ""
    http_verb: str = ""
    on_air: bool = True
    filters: list[str] = field(default_factory=list)
    request_type: str = ""
    host: str = ""
    path: str = ""
    mock: bool = False
    timeout: float = 0.0
    headers: dict[str, str] = field(default_factory=dict)


FilterFunc = Callable[[Any], None]


class BaseContext:
    """Runs a chain of filters; each filter may call next() to run the rest."""

    def __init__(self) -> None:
        self.index = -1
        self.filters: list[FilterFunc] = []
        self.timeout = 0.0
        self.target_resp: Any = None
        self.source_resp: Any = None
        self.err: BaseException | None = None

    def next(self) -> None:
        """Run the filters after the current one."""
        self.index += 1
        while self.index < len(self.filters):
            self.filters[self.index](self)
            self.index += 1

    def abort(self) -> None:
        """Stop the chain: no later filter runs."""
        self.index = ABORT_INDEX

    def abort_with_error(self, message: str, err: BaseException | None) -> None:
        self.abort()

    def append_filter_func(self, *args: FilterFunc) -> None:
        self.filters.extend(args)


_filters: dict[str, FilterFunc] = {}


def set_filter_func(name: str, func: FilterFunc) -> None:
    """Register a filter under a name, replacing any earlier one."""
    _filters[name] = func


def get_must_filter_func(name: str) -> FilterFunc:
    """Return the filter registered under a name."""
    try:
        return _filters[name]
    except KeyError:
        raise FilterNotFoundError(f"filter func for {name} is not existing!") from None