"""A LevelWriter that routes each line to the matching syslog priority."""

from __future__ import annotations

from typing import Any

from jlog.level import Level
from jlog.writer import LevelWriter

CEE_PREFIX = "@cee:"

_PRIORITY = {
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warning",
    Level.ERROR: "err",
    Level.FATAL: "emerg",
    Level.PANIC: "crit",
    Level.NO_LEVEL: "info",
}


class SyslogLevelWriter(LevelWriter):
    """Wraps a syslog-like writer and calls the method for each level.

    The wrapped object needs ``write`` plus ``debug``, ``info``, ``warning``,
    ``err``, ``emerg`` and ``crit`` methods taking a string. Trace lines are
    dropped. An optional prefix is put in front of every message.
    """

    def __init__(self, writer: Any, prefix: str = "") -> None:
        self.writer = writer
        self.prefix = prefix

    def write(self, data: bytes) -> int:
        written = 0
        if self.prefix:
            head = self.prefix.encode("utf-8")
            result = self.writer.write(head)
            written += len(head) if result is None else result
        result = self.writer.write(data)
        return written + (len(data) if result is None else result)

    def write_level(self, level: int, data: bytes) -> int:
        if level == Level.TRACE:
            return len(data)
        priority = _PRIORITY.get(level)
        if priority is None:
            raise ValueError("invalid level")
        message = self.prefix + bytes(data).decode("utf-8", "replace")
        getattr(self.writer, priority)(message)
        return len(data)

    def close(self) -> None:
        close = getattr(self.writer, "close", None)
        if callable(close):
            close()


def syslog_level_writer(writer: Any) -> SyslogLevelWriter:
    """Wrap writer so each level goes to the matching syslog method."""
    return SyslogLevelWriter(writer)


def syslog_cee_writer(writer: Any) -> SyslogLevelWriter:
    """Like syslog_level_writer, adding the CEE prefix for JSON syslog."""
    return SyslogLevelWriter(writer, CEE_PREFIX)