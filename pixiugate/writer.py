"""Response writer that tracks status and body size."""

from __future__ import annotations

from typing import Any

from . import log

NO_WRITTEN = -1
DEFAULT_STATUS = 200


class ResponseRecorder:
    """An in-memory response: status code, headers and body."""

    def __init__(self) -> None:
        self.code = DEFAULT_STATUS
        self.headers: dict[str, list[str]] = {}
        self.body = bytearray()
        self.wrote_header = False

    def write_header(self, code: int) -> None:
        if self.wrote_header:
            return
        self.code = code
        self.wrote_header = True

    def write(self, data: bytes) -> int:
        if not self.wrote_header:
            self.write_header(DEFAULT_STATUS)
        self.body.extend(data)
        return len(data)


class ResponseWriter:
    """Wraps a response, delaying the status until the first write."""

    def __init__(self, writer: Any = None) -> None:
        self.reset(writer)

    def reset(self, writer: Any) -> None:
        self._writer = writer
        self.size = NO_WRITTEN
        self.status = DEFAULT_STATUS

    @property
    def headers(self) -> dict[str, list[str]]:
        return self._writer.headers

    def write_header(self, code: int) -> None:
        """Record a status; it is sent with the first write."""
        if code > 0 and self.status != code:
            if self.written():
                log.debugf(
                    "[WARNING] Headers were already written. Wanted to override status with %d code with %d",
                    self.status,
                    code,
                )
            self.status = code

    def write_header_now(self) -> None:
        """Send the status if it has not been sent."""
        if not self.written():
            self.size = 0
            self._writer.write_header(self.status)

    def write(self, data: bytes) -> int:
        self.write_header_now()
        count = self._writer.write(data)
        self.size += count
        return count

    def write_string(self, s: str) -> int:
        return self.write(s.encode("utf-8"))

    def written(self) -> bool:
        return self.size != NO_WRITTEN

    def flush(self) -> None:
        self.write_header_now()
        flush = getattr(self._writer, "flush", None)
        if callable(flush):
            flush()