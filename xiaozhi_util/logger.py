"""Leveled logging with a caller-first, bracketed line format."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from types import FrameType
from typing import Any, Optional, TextIO, Union

TYPE_HTTP = 1

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
FIELDS_ORDER = ("time", "level", "caller", "msg")

TRACE = 5

_LEVEL_NAMES = {
    TRACE: "trace",
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}

_LEVELS_BY_NAME = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}

_LEVEL_COLORS = {
    TRACE: 37,
    logging.DEBUG: 37,
    logging.WARNING: 33,
    logging.ERROR: 31,
    logging.CRITICAL: 31,
}
_DEFAULT_COLOR = 36


class _NestedFormatter(logging.Formatter):
    """Formats records as ``time [level] [caller] [field]... message``."""

    def __init__(self, is_console: bool) -> None:
        super().__init__()
        self.is_console = is_console

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created)
        time_text = f"{stamp.strftime(TIMESTAMP_FORMAT)}.{stamp.microsecond // 1000:03d}"

        level = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        level_text = f"[{level}]"
        if self.is_console:
            color = _LEVEL_COLORS.get(record.levelno, _DEFAULT_COLOR)
            level_text = f"\x1b[{color}m{level_text}\x1b[0m"

        fields = dict(getattr(record, "fields", None) or {})
        caller = fields.pop("caller", f"{record.filename}:{record.lineno}")

        parts = [time_text, level_text, f"[{caller}]"]
        parts.extend(f"[{fields[key]}]" for key in sorted(fields))
        parts.append(record.getMessage())
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def formatter(is_console: bool) -> logging.Formatter:
    """Return the line formatter; coloured levels when ``is_console`` is true."""
    return _NestedFormatter(bool(is_console))


_LOGGER = logging.getLogger("xiaozhi_util")
_LOGGER.propagate = False
_LOGGER.setLevel(logging.INFO)
_HANDLER = logging.StreamHandler()
_HANDLER.setFormatter(formatter(False))
_LOGGER.addHandler(_HANDLER)


class _Entry(logging.LoggerAdapter):
    """A logger bound to a fixed set of fields."""

    def process(self, msg: Any, kwargs: Any) -> tuple:
        kwargs["extra"] = {"fields": dict(self.extra)}
        return msg, kwargs


def set_output(stream: TextIO) -> None:
    """Send log lines to ``stream``."""
    _HANDLER.setStream(stream)


def set_level(level: Union[int, str]) -> None:
    """Set the minimum level, given as a number or a name such as ``"debug"``."""
    if isinstance(level, str):
        try:
            level = _LEVELS_BY_NAME[level.lower()]
        except KeyError:
            raise ValueError(f"not a valid log level: {level!r}") from None
    _LOGGER.setLevel(level)


def use_stdout() -> None:
    """Write to standard output with coloured levels."""
    _HANDLER.setStream(sys.stdout)
    _HANDLER.setFormatter(formatter(True))


def _describe(frame: Optional[FrameType]) -> str:
    if frame is None:
        return "unknown:0"
    return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"


def _sprint(args: tuple) -> str:
    """Join operands, with a space only between two that are not strings."""
    pieces = []
    previous: Any = None
    for position, arg in enumerate(args):
        if position and not isinstance(arg, str) and not isinstance(previous, str):
            pieces.append(" ")
        pieces.append(str(arg))
        previous = arg
    return "".join(pieces)


def _sprintf(format: str, args: tuple) -> str:
    return format % args if args else format


def _emit(level: int, message: str) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    try:
        frame: Optional[FrameType] = sys._getframe(2)
    except ValueError:
        frame = None
    _LOGGER.log(level, "%s", message, extra={"fields": {"caller": _describe(frame)}})


def info(*args: Any) -> None:
    _emit(logging.INFO, _sprint(args))


def error(*args: Any) -> None:
    _emit(logging.ERROR, _sprint(args))


def debug(*args: Any) -> None:
    _emit(logging.DEBUG, _sprint(args))


def warn(*args: Any) -> None:
    _emit(logging.WARNING, _sprint(args))


def fatal(*args: Any) -> None:
    """Log at fatal level, then exit with status 1."""
    _emit(logging.CRITICAL, _sprint(args))
    raise SystemExit(1)


def infof(format: str, *args: Any) -> None:
    _emit(logging.INFO, _sprintf(format, args))


def errorf(format: str, *args: Any) -> None:
    _emit(logging.ERROR, _sprintf(format, args))


def debugf(format: str, *args: Any) -> None:
    _emit(logging.DEBUG, _sprintf(format, args))


def warnf(format: str, *args: Any) -> None:
    _emit(logging.WARNING, _sprintf(format, args))


def fatalf(format: str, *args: Any) -> None:
    """Log a formatted message at fatal level, then exit with status 1."""
    _emit(logging.CRITICAL, _sprintf(format, args))
    raise SystemExit(1)


def log(*args: Any) -> logging.LoggerAdapter:
    """Return a logger carrying fields from alternating key/value arguments.

    Pairs whose key is not a string are skipped; a trailing key without a
    value gets an empty string.
    """
    fields: dict = {}
    items = iter(args)
    for key in items:
        value = next(items, "")
        if isinstance(key, str):
            fields[key] = value
    fields["caller"] = _describe(sys._getframe(1))
    _HANDLER.setFormatter(formatter(True))
    return _Entry(_LOGGER, fields)


def debug_stack() -> None:
    """Log the innermost five frames of the current call stack."""
    frame: Optional[FrameType] = sys._getframe()
    for depth in range(5):
        if frame is None:
            break
        _LOGGER.info("call stack[%d]: %s", depth, _describe(frame))
        frame = frame.f_back


class DbLog:
    """Printf-style adapter that writes database messages at info level."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def printf(self, format: str, *args: Any) -> None:
        self.logger.info("%s", _sprintf(format, args))


DB_LOG: Optional[DbLog] = None


def init_db_log(logger: logging.Logger) -> DbLog:
    """Create the shared database log writer around ``logger``."""
    global DB_LOG
    DB_LOG = DbLog(logger)
    return DB_LOG