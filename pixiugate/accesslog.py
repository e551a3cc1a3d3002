"""Access log configuration and a background writer to console or files."""

from __future__ import annotations

import os
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import IO

from . import log

CONSOLE = "console"
LOG_DATA_BUFFER = 5000
FILE_DATE_FORMAT = "%Y-%m-%d"
LOG_FILE_MODE = 0o600

_STOP = object()


@dataclass
class AccessLogConfig:
    """Whether access logging is on and where it goes."""

    enable: bool = True
    out_put_path: str = CONSOLE


@dataclass
class AccessLogData:
    access_log_msg: str = ""
    access_log_config: AccessLogConfig = field(default_factory=AccessLogConfig)


def _open_append(path: Path) -> IO[str]:
    fd = os.open(path, os.O_CREAT | os.O_APPEND | os.O_RDWR, LOG_FILE_MODE)
    return os.fdopen(fd, "a", encoding="utf-8")


def write_to_file(message: str, file_path: str) -> None:
    """Append one line; the file is rotated when its last write was on another day."""
    path = Path(file_path)
    parent = path.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log.warnf("can not create log dir: %s, %v", file_path, exc)
            raise
    try:
        handle = _open_append(path)
    except OSError as exc:
        log.warnf("can not open the access log file: %s, %v", file_path, exc)
        raise
    try:
        now = datetime.now().strftime(FILE_DATE_FORMAT)
        last = datetime.fromtimestamp(os.fstat(handle.fileno()).st_mtime).strftime(
            FILE_DATE_FORMAT
        )
        if now != last:
            handle.close()
            try:
                path.replace(path.with_name(f"{path.name}.{now}"))
            except OSError as exc:
                log.warnf("can not rename access log file: %s, %v", file_path, exc)
                raise
            try:
                handle = _open_append(path)
            except OSError as exc:
                log.warnf("can not open access log file: %s, %v", file_path, exc)
                raise
        try:
            handle.write(message + "\n")
        except OSError as exc:
            log.warnf("can not write to access log file: %s, %v", file_path, exc)
            raise
    finally:
        handle.close()


class AccessLogWriter:
    """Queues access log entries and writes them on a background thread."""

    def __init__(self, buffer_size: int = LOG_DATA_BUFFER) -> None:
        self.queue: queue.Queue[object] = queue.Queue(maxsize=buffer_size)
        self._thread: threading.Thread | None = None

    def writer(self, data: AccessLogData) -> None:
        """Queue an entry, dropping it when the queue is full."""
        try:
            self.queue.put_nowait(data)
        except queue.Full:
            log.warn("the channel is full and the access logIntoChannel data will be dropped")

    def write(self) -> None:
        """Start the background thread that drains the queue."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._drain, name="access-log-writer", daemon=True
        )
        self._thread.start()

    def close(self) -> None:
        """Write what is queued and stop the background thread."""
        thread = self._thread
        if thread is None:
            return
        self.queue.put(_STOP)
        thread.join()
        self._thread = None

    def __enter__(self) -> "AccessLogWriter":
        self.write()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _drain(self) -> None:
        while True:
            item = self.queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, AccessLogData):
                    self._write_log(item)
            finally:
                self.queue.task_done()

    @staticmethod
    def _write_log(data: AccessLogData) -> None:
        target = data.access_log_config.out_put_path
        if not target or target == CONSOLE:
            log.info(data.access_log_msg)
            return
        try:
            write_to_file(data.access_log_msg, target)
        except OSError:
            pass