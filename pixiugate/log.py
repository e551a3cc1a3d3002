"""Process-wide logger with a level that can be changed at run time."""

from __future__ import annotations

import json
import logging
import re
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml

DEFAULT_LOG_CONF_FILE = "./conf/log.yml"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}


class LogConfigError(Exception):
    """Raised when the log configuration cannot be used."""


def _parse_level(text: Any) -> int:
    if not isinstance(text, str) or text.lower() not in _LEVELS:
        raise ValueError(f'unrecognized level: "{text}"')
    return _LEVELS[text.lower()]


def _value_str(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _sprint(args: tuple[Any, ...]) -> str:
    """Join operands, adding a space between two operands that are not strings."""
    parts: list[str] = []
    prev_is_str = True
    for position, arg in enumerate(args):
        is_str = isinstance(arg, str)
        if position > 0 and not is_str and not prev_is_str:
            parts.append(" ")
        parts.append(_value_str(arg))
        prev_is_str = is_str
    return "".join(parts)


_VERB = re.compile(r"%([-+# 0]*\d*(?:\.\d+)?)([a-zA-Z%])")


def _format_one(flags: str, verb: str, arg: Any) -> str:
    try:
        if verb in "vs":
            return ("%" + flags.replace("+", "").replace("#", "") + "s") % _value_str(arg)
        if verb == "d" and isinstance(arg, int) and not isinstance(arg, bool):
            return ("%" + flags + "d") % arg
        if verb in "feEgGxXo" and isinstance(arg, (int, float)) and not isinstance(arg, bool):
            return ("%" + flags + verb) % arg
        if verb == "q":
            return json.dumps(_value_str(arg))
        if verb == "t" and isinstance(arg, bool):
            return _value_str(arg)
        if verb == "T":
            return type(arg).__name__
    except (TypeError, ValueError):
        pass
    return f"%!{verb}({_value_str(arg)})"


def _sprintf(template: str, args: tuple[Any, ...]) -> str:
    """Format with printf-style verbs, where %v prints any value."""
    remaining: Iterator[Any] = iter(args)
    used = 0

    def replace(match: re.Match[str]) -> str:
        nonlocal used
        flags, verb = match.group(1), match.group(2)
        if verb == "%":
            return "%"
        try:
            arg = next(remaining)
        except StopIteration:
            return f"%!{verb}(MISSING)"
        used += 1
        return _format_one(flags, verb, arg)

    text = _VERB.sub(replace, template)
    extra = args[used:]
    if extra:
        described = ", ".join(f"{type(a).__name__}={_value_str(a)}" for a in extra)
        text += f"%!(EXTRA {described})"
    return text


class _SugaredLogger:
    """Leveled logging methods over a standard library logger."""

    def __init__(self, target: logging.Logger) -> None:
        self._target = target

    def _emit(self, level: int, message: str) -> None:
        self._target.log(level, message)

    def _enabled(self, level: int) -> bool:
        return self._target.isEnabledFor(level)

    def info(self, *args: Any) -> None:
        if self._enabled(logging.INFO):
            self._emit(logging.INFO, _sprint(args))

    def warn(self, *args: Any) -> None:
        if self._enabled(logging.WARNING):
            self._emit(logging.WARNING, _sprint(args))

    def error(self, *args: Any) -> None:
        if self._enabled(logging.ERROR):
            self._emit(logging.ERROR, _sprint(args))

    def debug(self, *args: Any) -> None:
        if self._enabled(logging.DEBUG):
            self._emit(logging.DEBUG, _sprint(args))

    def infof(self, fmt: str, *args: Any) -> None:
        if self._enabled(logging.INFO):
            self._emit(logging.INFO, _sprintf(fmt, args))

    def warnf(self, fmt: str, *args: Any) -> None:
        if self._enabled(logging.WARNING):
            self._emit(logging.WARNING, _sprintf(fmt, args))

    def errorf(self, fmt: str, *args: Any) -> None:
        if self._enabled(logging.ERROR):
            self._emit(logging.ERROR, _sprintf(fmt, args))

    def debugf(self, fmt: str, *args: Any) -> None:
        if self._enabled(logging.DEBUG):
            self._emit(logging.DEBUG, _sprintf(fmt, args))


class PixiuLogger:
    """The default logger: forwards to an inner logger and owns its level."""

    def __init__(self, logger: Any, level_target: logging.Logger) -> None:
        self.logger = logger
        self._level_target = level_target
        self._lock = threading.Lock()

    def info(self, *args: Any) -> None:
        self.logger.info(*args)

    def warn(self, *args: Any) -> None:
        self.logger.warn(*args)

    def error(self, *args: Any) -> None:
        self.logger.error(*args)

    def debug(self, *args: Any) -> None:
        self.logger.debug(*args)

    def infof(self, fmt: str, *args: Any) -> None:
        self.logger.infof(fmt, *args)

    def warnf(self, fmt: str, *args: Any) -> None:
        self.logger.warnf(fmt, *args)

    def errorf(self, fmt: str, *args: Any) -> None:
        self.logger.errorf(fmt, *args)

    def debugf(self, fmt: str, *args: Any) -> None:
        self.logger.debugf(fmt, *args)

    def set_logger_level(self, level: str) -> None:
        """Change the level; an unknown name falls back to info."""
        try:
            value = _parse_level(level)
        except ValueError:
            value = logging.INFO
        with self._lock:
            self._level_target.setLevel(value)


class _Formatter(logging.Formatter):
    def __init__(self, encoding: str, message_key: str, level_key: str, time_key: str) -> None:
        super().__init__()
        self._encoding = encoding
        self._message_key = message_key
        self._level_key = level_key
        self._time_key = time_key

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds")
        level = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        message = record.getMessage()
        if self._encoding == "json":
            return json.dumps(
                {self._level_key: level, self._time_key: stamp, self._message_key: message}
            )
        return f"{stamp}\t{level.upper()}\t{message}"


@dataclass
class _Settings:
    level: int = logging.INFO
    encoding: str = "console"
    outputs: list[str] = field(default_factory=list)
    message_key: str = "msg"
    level_key: str = "level"
    time_key: str = "ts"


_DEVELOPMENT = _Settings(
    level=logging.DEBUG,
    encoding="console",
    outputs=["stderr"],
    message_key="message",
    level_key="level",
    time_key="time",
)


def _parse_config(data: Any) -> _Settings:
    if not isinstance(data, Mapping):
        raise ValueError(f"log configuration must be a mapping, not {type(data).__name__}")
    level_text = data.get("level")
    level = logging.INFO if level_text in (None, "") else _parse_level(level_text)
    encoding = data.get("encoding") or "console"
    if encoding not in ("console", "json"):
        raise ValueError(f'no encoder registered for name "{encoding}"')
    outputs = data.get("outputPaths") or []
    if not isinstance(outputs, list) or not all(isinstance(p, str) for p in outputs):
        raise ValueError("outputPaths must be a list of strings")
    encoder = data.get("encoderConfig") or {}
    if not isinstance(encoder, Mapping):
        raise ValueError("encoderConfig must be a mapping")
    return _Settings(
        level=level,
        encoding=encoding,
        outputs=list(outputs),
        message_key=str(encoder.get("messageKey") or "msg"),
        level_key=str(encoder.get("levelKey") or "level"),
        time_key=str(encoder.get("timeKey") or "ts"),
    )


def _handler_for(output: str) -> logging.Handler:
    if output == "stdout":
        return logging.StreamHandler(sys.stdout)
    if output == "stderr":
        return logging.StreamHandler(sys.stderr)
    return logging.FileHandler(output, mode="a", encoding="utf-8")


def _install(settings: _Settings) -> None:
    global _logger
    target = logging.getLogger("pixiugate")
    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()
    target.propagate = False
    target.setLevel(settings.level)
    formatter = _Formatter(
        settings.encoding, settings.message_key, settings.level_key, settings.time_key
    )
    handlers = [_handler_for(o) for o in settings.outputs] or [logging.NullHandler()]
    for handler in handlers:
        handler.setFormatter(formatter)
        target.addHandler(handler)
    _logger = PixiuLogger(_SugaredLogger(target), target)


def init_logger(conf: Mapping[str, Any] | None = None) -> None:
    """Install a new logger from a configuration mapping, or development defaults."""
    if conf is None:
        _install(_DEVELOPMENT)
        return
    try:
        settings = _parse_config(conf)
    except ValueError as exc:
        raise LogConfigError(str(exc)) from exc
    _install(settings)


def _extension(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def init_log(log_conf_file: str) -> None:
    """Load the logger from a .yml file; on failure install defaults and raise."""
    if not log_conf_file:
        init_logger(None)
        raise LogConfigError("log configure file name is nil")
    if _extension(log_conf_file) != ".yml":
        init_logger(None)
        raise LogConfigError(f"log configure file name {log_conf_file} suffix must be .yml")
    try:
        raw = Path(log_conf_file).read_bytes()
    except OSError as exc:
        init_logger(None)
        raise LogConfigError(f"read file:{log_conf_file}, error:{exc}") from exc
    try:
        data = yaml.safe_load(raw)
        settings = _parse_config({} if data is None else data)
    except (yaml.YAMLError, ValueError) as exc:
        init_logger(None)
        raise LogConfigError(f"[Unmarshal]init logger error: {exc}") from exc
    _install(settings)


def set_logger(logger: Any) -> None:
    """Replace the process-wide logger."""
    global _logger
    _logger = logger


def get_logger() -> Any:
    """Return the process-wide logger."""
    return _logger


def set_logger_level(level: str) -> bool:
    """Change the level if the current logger supports it; report whether it did."""
    setter = getattr(_logger, "set_logger_level", None)
    if callable(setter):
        setter(level)
        return True
    return False


def info(*args: Any) -> None:
    _logger.info(*args)


def warn(*args: Any) -> None:
    _logger.warn(*args)


def error(*args: Any) -> None:
    _logger.error(*args)


def debug(*args: Any) -> None:
    _logger.debug(*args)


def infof(fmt: str, *args: Any) -> None:
    _logger.infof(fmt, *args)


def warnf(fmt: str, *args: Any) -> None:
    _logger.warnf(fmt, *args)


def errorf(fmt: str, *args: Any) -> None:
    _logger.errorf(fmt, *args)


def debugf(fmt: str, *args: Any) -> None:
    _logger.debugf(fmt, *args)


_logger: Any = None

try:
    init_log(DEFAULT_LOG_CONF_FILE)
except LogConfigError as _exc:
    _logger.infof("[InitLog] warn: %v", _exc)