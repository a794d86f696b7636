"""Log severity levels and the process-wide minimum level."""

from __future__ import annotations

import re
import threading

_INTEGER = re.compile(r"[+-]?[0-9]+")


class Level(int):
    """A log severity. Values below TRACE are kept and printed as numbers."""

    __slots__ = ()

    TRACE: Level
    DEBUG: Level
    INFO: Level
    WARN: Level
    ERROR: Level
    FATAL: Level
    PANIC: Level
    NO_LEVEL: Level
    DISABLED: Level

    def __str__(self) -> str:
        return _TEXT.get(int(self), str(int(self)))

    def __repr__(self) -> str:
        name = _MEMBER_NAMES.get(int(self))
        return f"Level.{name}" if name else f"Level({int(self)})"

    def marshal_text(self) -> str:
        """Return the textual form used in configuration files."""
        return str(self)

    @classmethod
    def from_text(cls, text: str | bytes | bytearray) -> Level:
        """Parse a level from its textual form."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8")
        return parse_level(text)


Level.TRACE = Level(-1)
Level.DEBUG = Level(0)
Level.INFO = Level(1)
Level.WARN = Level(2)
Level.ERROR = Level(3)
Level.FATAL = Level(4)
Level.PANIC = Level(5)
Level.NO_LEVEL = Level(6)
Level.DISABLED = Level(7)

_TEXT = {
    -1: "trace",
    0: "debug",
    1: "info",
    2: "warn",
    3: "error",
    4: "fatal",
    5: "panic",
    6: "",
    7: "disabled",
}

_MEMBER_NAMES = {
    -1: "TRACE",
    0: "DEBUG",
    1: "INFO",
    2: "WARN",
    3: "ERROR",
    4: "FATAL",
    5: "PANIC",
    6: "NO_LEVEL",
    7: "DISABLED",
}

_PARSE_ORDER = (
    Level.TRACE,
    Level.DEBUG,
    Level.INFO,
    Level.WARN,
    Level.ERROR,
    Level.FATAL,
    Level.PANIC,
    Level.DISABLED,
    Level.NO_LEVEL,
)


def parse_level(text: str) -> Level:
    """Convert a level name or a number in [-128, 127] into a Level.

    Raises ValueError when the text is neither.
    """
    folded = text.casefold()
    for level in _PARSE_ORDER:
        if folded == str(level).casefold():
            return level
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"Unknown Level String: '{text}', defaulting to NoLevel")
    value = int(text)
    if not -128 <= value <= 127:
        raise ValueError(f"Out-Of-Bounds Level: '{value}', defaulting to NoLevel")
    return Level(value)


_global_lock = threading.Lock()
_global_level = Level.TRACE


def set_global_level(level: int) -> None:
    """Set the minimum level accepted by every logger."""
    global _global_level
    with _global_lock:
        _global_level = Level(level)


def global_level() -> Level:
    """Return the minimum level accepted by every logger."""
    with _global_lock:
        return _global_level