"""Filter that records one access log line per request."""

from __future__ import annotations

import json
import time
from datetime import datetime
from typing import Any, Callable
from urllib.parse import parse_qsl, urlencode

from .accesslog import AccessLogConfig, AccessLogData, AccessLogWriter
from .context import set_filter_func
from .http_context import HttpContext

ACCESS_LOG_FILTER = "dgp.filters.access_log"
MESSAGE_DATE_LAYOUT = "%Y-%m-%d %H:%M:%S"


def _response_text(data: Any) -> str:
    """Render a response for the log; raise ValueError when it cannot be."""
    if data is None:
        raise ValueError("nil response")
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    if isinstance(data, str):
        return data
    try:
        return json.dumps(data, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ValueError(str(exc)) from exc


def build_access_log_msg(ctx: HttpContext, cost: float) -> str:
    """Build the access log line; cost is in seconds."""
    req = ctx.request
    pairs = sorted(parse_qsl(req.raw_query, keep_blank_values=True), key=lambda p: p[0])
    params = urlencode(pairs).replace("&", ",")

    parts = [
        "[",
        datetime.now().strftime(MESSAGE_DATE_LAYOUT),
        "] ",
        req.remote_addr,
        " -> ",
        req.host,
        " - ",
    ]
    if params:
        parts += ["request params: [", params, "] "]
    parts.append(f"cost time [ {round(cost * 1e9)} ]")
    if ctx.err is not None:
        parts += [f"invoke err [ {ctx.err}", "] "]
    data = ctx.target_resp.data if ctx.target_resp is not None else None
    try:
        text = _response_text(data)
    except ValueError:
        parts += [" response can not convert to string", "] "]
    else:
        parts += [f" response [ {text}", "] "]
    return "".join(parts)


class AccessLogFilter:
    """Runs the rest of the chain, then queues an access log line."""

    def __init__(self, config: AccessLogConfig, writer: AccessLogWriter) -> None:
        self.config = config
        self.writer = writer

    def do(self) -> Callable[[HttpContext], None]:
        def run(ctx: HttpContext) -> None:
            if not self.config.enable:
                return
            start = time.monotonic()
            ctx.next()
            cost = time.monotonic() - start
            message = build_access_log_msg(ctx, cost)
            if message:
                self.writer.writer(
                    AccessLogData(access_log_msg=message, access_log_config=self.config)
                )

        return run


def init(config: AccessLogConfig, writer: AccessLogWriter) -> None:
    """Register the access log filter and start its writer."""
    set_filter_func(ACCESS_LOG_FILTER, AccessLogFilter(config, writer).do())
    writer.write()