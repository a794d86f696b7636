"""Output writers that may receive the level along with each log line."""

from __future__ import annotations

import abc
import io
import os
import sys
import threading
from dataclasses import dataclass
from typing import Any

from jlog.level import Level


def _implements(cls: type, *names: str) -> bool:
    return all(
        any(base.__dict__.get(name) is not None for base in cls.__mro__)
        for name in names
    )


class LevelWriter(abc.ABC):
    """A writer that also accepts the level of what it writes.

    Any object with both ``write`` and ``write_level`` counts as one.
    """

    @classmethod
    def __subclasshook__(cls, candidate: type) -> Any:
        if cls is LevelWriter:
            return _implements(candidate, "write", "write_level")
        return NotImplemented

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Write data, returning the number of bytes written."""
        raise NotImplementedError

    @abc.abstractmethod
    def write_level(self, level: int, data: bytes) -> int:
        """Write data logged at level, returning the number of bytes written."""
        raise NotImplementedError


def _written(result: Any, data: bytes) -> int:
    return len(data) if result is None else result


def _close(writer: Any) -> None:
    close = getattr(writer, "close", None)
    if callable(close):
        close()


class _Discard:
    def write(self, data: bytes) -> int:
        return len(data)


class LevelWriterAdapter(LevelWriter):
    """Adapts a plain writer, binary or text, to a LevelWriter."""

    def __init__(self, writer: Any) -> None:
        self.writer = writer

    def write(self, data: bytes) -> int:
        if isinstance(self.writer, io.TextIOBase):
            self.writer.write(bytes(data).decode("utf-8", "replace"))
            return len(data)
        return _written(self.writer.write(data), data)

    def write_level(self, level: int, data: bytes) -> int:
        return self.write(data)

    def close(self) -> None:
        _close(self.writer)


def as_level_writer(writer: Any) -> LevelWriter:
    """Return writer as a LevelWriter; None becomes a writer that discards."""
    if writer is None:
        return LevelWriterAdapter(_Discard())
    if isinstance(writer, LevelWriter):
        return writer
    return LevelWriterAdapter(writer)


class SyncWriter(LevelWriter):
    """Serialises every write to the wrapped writer with a lock."""

    def __init__(self, writer: Any) -> None:
        self._writer = as_level_writer(writer)
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            return _written(self._writer.write(data), data)

    def write_level(self, level: int, data: bytes) -> int:
        with self._lock:
            return _written(self._writer.write_level(level, data), data)

    def close(self) -> None:
        with self._lock:
            _close(self._writer)


class MultiLevelWriter(LevelWriter):
    """Duplicates every write to all its writers, like tee(1).

    Every writer is always called; the first failure is raised afterwards.
    """

    def __init__(self, *writers: Any) -> None:
        self.writers = [as_level_writer(writer) for writer in writers]

    def _fan_out(self, data: bytes, call) -> int:
        written = 0
        failure: BaseException | None = None
        for writer in self.writers:
            try:
                count = _written(call(writer), data)
            except Exception as exc:  # noqa: BLE001 - every writer must be tried
                if failure is None:
                    failure = exc
                continue
            if failure is None:
                written = count
                if count != len(data):
                    failure = OSError("short write")
        if failure is not None:
            raise failure
        return written

    def write(self, data: bytes) -> int:
        return self._fan_out(data, lambda writer: writer.write(data))

    def write_level(self, level: int, data: bytes) -> int:
        return self._fan_out(data, lambda writer: writer.write_level(level, data))

    def close(self) -> None:
        """Close the writers in order, stopping at the first failure."""
        for writer in self.writers:
            _close(writer)


def multi_level_writer(*args: Any) -> MultiLevelWriter:
    """Create a writer that duplicates its writes to all of args."""
    return MultiLevelWriter(*args)


@dataclass
class TestWriter:
    """Sends each line to an object with a ``log(message)`` method.

    With ``frame`` above zero, the line is prefixed with the file name and
    line number of the frame that many levels above the caller of ``write``.
    """

    __test__ = False

    t: Any
    frame: int = 0

    def write(self, data: bytes) -> int:
        text = bytes(data).rstrip(b"\n").decode("utf-8", "replace")
        if self.frame > 0:
            try:
                caller = sys._getframe(1 + self.frame)
            except ValueError:
                caller = None
            if caller is not None:
                location = os.path.basename(caller.f_code.co_filename)
                self.t.log(f"{location}:{caller.f_lineno}: {text}")
                return len(data)
        self.t.log(text)
        return len(data)


@dataclass
class FilteredLevelWriter(LevelWriter):
    """Writes only lines at ``level`` or above to the wrapped LevelWriter."""

    writer: Any
    level: int

    def write(self, data: bytes) -> int:
        return _written(self.writer.write(data), data)

    def write_level(self, level: int, data: bytes) -> int:
        if level >= self.level:
            return _written(self.writer.write_level(level, data), data)
        return len(data)


class TriggerLevelWriter(LevelWriter):
    """Holds back low-level lines until a line at the trigger level arrives.

    Lines at ``conditional_level`` or below are buffered until the first line
    at ``trigger_level`` or above, which flushes them in order. Lines above
    ``conditional_level`` always pass through. Without a trigger the buffered
    lines are never written.
    """

    def __init__(self, writer: Any, conditional_level: int, trigger_level: int) -> None:
        self.writer = writer
        self.conditional_level = conditional_level
        self.trigger_level = trigger_level
        self._buffer: list[tuple[Level, bytes]] = []
        self._triggered = False
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        return _written(self.writer.write(data), data)

    def _forward(self, level: int, data: bytes) -> int:
        if isinstance(self.writer, LevelWriter):
            return _written(self.writer.write_level(level, data), data)
        return self.write(data)

    def write_level(self, level: int, data: bytes) -> int:
        with self._lock:
            if not self._triggered and level >= self.trigger_level:
                self._trigger()
            if not self._triggered and level <= self.conditional_level:
                self._buffer.append((Level(level), bytes(data)))
                return len(data)
            return self._forward(level, data)

    def _trigger(self) -> None:
        if self._triggered:
            return
        self._triggered = True
        pending, self._buffer = self._buffer, []
        for level, line in pending:
            self._forward(level, line)

    def trigger(self) -> None:
        """Flush the buffer and pass everything through from now on."""
        with self._lock:
            self._trigger()

    def close(self) -> None:
        """Drop whatever is still buffered."""
        with self._lock:
            self._buffer.clear()