"""Loggers that write each event as one line of JSON."""

from __future__ import annotations

import abc
import datetime as _dt
import json
import math
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from jlog.level import Level, global_level
from jlog.writer import LevelWriter, as_level_writer


def _default_error_marshal(error: BaseException) -> Any:
    """Keep errors that marshal themselves; use the text of any other."""
    if hasattr(error, "marshal_object"):
        return error
    return str(error)


def _default_error_handler(error: BaseException) -> None:
    print(f"jlog: could not write event: {error}", file=sys.stderr)


def _now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


@dataclass
class Settings:
    """Process-wide settings shared by every logger."""

    timestamp_field_name: str = "time"
    level_field_name: str = "level"
    message_field_name: str = "message"
    error_field_name: str = "error"
    # An empty format writes timestamps as Unix seconds.
    time_field_format: str = "rfc3339"
    timestamp_func: Callable[[], _dt.datetime] = _now
    level_field_marshal_func: Callable[[Level], str] = str
    error_marshal_func: Callable[[BaseException], Any] = _default_error_marshal
    error_handler: Callable[[BaseException], None] = _default_error_handler


config = Settings()


class LogPanic(RuntimeError):
    """Raised after an event at panic level has been written."""


class Hook(abc.ABC):
    """Runs on each event just before its message is written."""

    @classmethod
    def __subclasshook__(cls, candidate: type) -> Any:
        if cls is Hook:
            return any("run" in base.__dict__ for base in candidate.__mro__)
        return NotImplemented

    @abc.abstractmethod
    def run(self, event: Event, level: Level, message: str) -> None:
        """Add to or inspect the event."""
        raise NotImplementedError


class _TimestampHook(Hook):
    def run(self, event: Event, level: Level, message: str) -> None:
        event.timestamp()


class _Object:
    __slots__ = ("pairs",)

    def __init__(self, pairs: list[tuple[str, Any]]) -> None:
        self.pairs = pairs


def _format_time(value: _dt.datetime | _dt.date) -> Any:
    if not isinstance(value, _dt.datetime):
        value = _dt.datetime(value.year, value.month, value.day)
    if not config.time_field_format:
        stamp = value if value.tzinfo else value.replace(tzinfo=_dt.timezone.utc)
        return int(stamp.timestamp())
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _normalize(value: Any) -> Any:
    """Turn a Python value into something _encode can write."""
    if value is None or isinstance(value, (bool, str, int, float, _Object)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "replace")
    if isinstance(value, (_dt.datetime, _dt.date)):
        return _format_time(value)
    if isinstance(value, _dt.timedelta):
        millis = value / _dt.timedelta(milliseconds=1)
        return int(millis) if millis.is_integer() else millis
    if hasattr(value, "marshal_object"):
        sub = Event._collector()
        value.marshal_object(sub)
        return _Object(sub._pairs)
    if isinstance(value, BaseException):
        return str(value)
    if isinstance(value, dict):
        return _Object([(str(k), _normalize(v)) for k, v in value.items()])
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_normalize(item) for item in value]
    return str(value)


def _encode(value: Any) -> str:
    if isinstance(value, _Object):
        inner = ",".join(f"{json.dumps(k, ensure_ascii=False)}:{_encode(v)}" for k, v in value.pairs)
        return "{" + inner + "}"
    if isinstance(value, list):
        return "[" + ",".join(_encode(item) for item in value) + "]"
    if isinstance(value, float) and not isinstance(value, bool):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        if not math.isfinite(value):
            return json.dumps(str(value))
        return repr(value)
    return json.dumps(value, ensure_ascii=False)


def _marshal_error(error: BaseException) -> Any:
    marshaled = config.error_marshal_func(error)
    if isinstance(marshaled, BaseException) and not hasattr(marshaled, "marshal_object"):
        return str(marshaled)
    return _normalize(marshaled)


def _sprint(args: Iterable[Any]) -> str:
    parts: list[str] = []
    previous_is_str = True
    for index, arg in enumerate(args):
        is_str = isinstance(arg, str)
        if index and not is_str and not previous_is_str:
            parts.append(" ")
        parts.append(str(arg))
        previous_is_str = is_str
    return "".join(parts)


class Event:
    """One log line under construction; ``msg`` writes it.

    A disabled event accepts every call and writes nothing.
    """

    def __init__(
        self,
        writer: LevelWriter | None,
        level: Level,
        enabled: bool = True,
        hooks: tuple[Any, ...] = (),
        done: Callable[[str], None] | None = None,
    ) -> None:
        self._writer = writer
        self._level = Level(level)
        self._enabled = enabled
        self._hooks = hooks
        self._done = done
        self._pairs: list[tuple[str, Any]] = []

    @classmethod
    def _collector(cls) -> Event:
        return cls(None, Level.NO_LEVEL)

    def enabled(self) -> bool:
        """Return True if the event will be written."""
        return self._enabled

    def discard(self) -> Event:
        """Disable the event so that nothing is written."""
        self._enabled = False
        return self

    def field(self, key: str, value: Any) -> Event:
        """Add a field of any supported type."""
        if self._enabled:
            self._pairs.append((key, _normalize(value)))
        return self

    def str(self, key: str, value: str) -> Event:
        return self.field(key, value)

    def int(self, key: str, value: int) -> Event:
        return self.field(key, int(value))

    def float(self, key: str, value: float) -> Event:
        return self.field(key, float(value))

    def bool(self, key: str, value: bool) -> Event:
        return self.field(key, bool(value))

    def err(self, error: BaseException | None) -> Event:
        """Add error under the error field name; None adds nothing."""
        if self._enabled and error is not None:
            self._pairs.append((config.error_field_name, _marshal_error(error)))
        return self

    def fields(self, fields: Any) -> Event:
        """Add a mapping (sorted by key) or a flat key/value list."""
        if self._enabled:
            self._pairs.extend(_field_pairs(fields))
        return self

    def dict(self, key: str, values: Any) -> Event:
        """Add a nested object built from a mapping or another event."""
        if isinstance(values, Event):
            return self.field(key, _Object(list(values._pairs)))
        return self.field(key, dict(values))

    def timestamp(self) -> Event:
        """Add the current time under the timestamp field name."""
        return self.field(config.timestamp_field_name, config.timestamp_func())

    def msg(self, message: str) -> None:
        """Run the hooks, add message if not empty and write the line."""
        if not self._enabled:
            return
        for hook in self._hooks:
            hook.run(self, self._level, message)
        if message:
            self._pairs.append((config.message_field_name, message))
        line = (_encode(_Object(self._pairs)) + "\n").encode("utf-8")
        self._enabled = False
        try:
            if self._writer is not None:
                self._writer.write_level(self._level, line)
        except Exception as exc:  # noqa: BLE001 - reported through the handler
            config.error_handler(exc)
        if self._done is not None:
            self._done(message)

    def msgf(self, fmt: str, *args: Any) -> None:
        """Write the event with fmt % args as its message."""
        if self._enabled:
            self.msg(fmt % args if args else fmt)

    def send(self) -> None:
        """Write the event with no message."""
        self.msg("")


def _field_pairs(fields: Any) -> list[tuple[str, Any]]:
    if isinstance(fields, dict):
        return [(key, _normalize(fields[key])) for key in sorted(fields)]
    if isinstance(fields, (list, tuple)):
        pairs = []
        items = list(fields)
        for key, value in zip(items[0::2], items[1::2]):
            if isinstance(key, str):
                if isinstance(value, BaseException):
                    pairs.append((key, _marshal_error(value)))
                else:
                    pairs.append((key, _normalize(value)))
        return pairs
    return []


class Context:
    """Builds the fields that a child logger adds to every event."""

    def __init__(self, logger: Logger) -> None:
        self._logger = logger
        self._pairs: list[tuple[str, Any]] = list(logger._context)

    def field(self, key: str, value: Any) -> Context:
        self._pairs.append((key, _normalize(value)))
        return self

    def str(self, key: str, value: str) -> Context:
        return self.field(key, value)

    def int(self, key: str, value: int) -> Context:
        return self.field(key, int(value))

    def float(self, key: str, value: float) -> Context:
        return self.field(key, float(value))

    def bool(self, key: str, value: bool) -> Context:
        return self.field(key, bool(value))

    def err(self, error: BaseException | None) -> Context:
        if error is not None:
            self._pairs.append((config.error_field_name, _marshal_error(error)))
        return self

    def fields(self, fields: Any) -> Context:
        self._pairs.extend(_field_pairs(fields))
        return self

    def timestamp(self) -> Context:
        """Add the time at which each event is written."""
        self._logger = self._logger.hook(_TimestampHook())
        return self

    def logger(self) -> Logger:
        """Return the child logger carrying these fields."""
        return self._logger._replace(context=tuple(self._pairs))


@dataclass(frozen=True)
class _State:
    writer: LevelWriter | None
    threshold: Level = Level.TRACE
    sampler: Any = None
    context: tuple[tuple[str, Any], ...] = ()
    hooks: tuple[Any, ...] = field(default=())


class Logger:
    """Writes JSON events to a writer; configuration methods return copies."""

    def __init__(self, writer: Any = None) -> None:
        self._set(_State(as_level_writer(writer)))

    def _set(self, state: _State) -> None:
        self._state = state

    @property
    def _context(self) -> tuple[tuple[str, Any], ...]:
        return self._state.context

    @property
    def threshold(self) -> Level:
        """The minimum level this logger accepts."""
        return self._state.threshold

    def _replace(self, **changes: Any) -> Logger:
        copy = Logger.__new__(Logger)
        values = {**self._state.__dict__, **changes}
        copy._set(_State(**values))
        return copy

    def output(self, writer: Any) -> Logger:
        """Return a copy writing to writer."""
        return self._replace(writer=as_level_writer(writer))

    def with_(self) -> Context:
        """Start building a child logger with more context fields."""
        return Context(self)

    def update_context(self, update: Callable[[Context], Context]) -> None:
        """Replace this logger's context in place; not thread safe."""
        built = update(Context(self))
        self._set(self._replace(context=tuple(built._pairs), hooks=built._logger._state.hooks)._state)

    def level(self, level: int) -> Logger:
        return self._replace(threshold=Level(level))

    def sample(self, sampler: Any) -> Logger:
        return self._replace(sampler=sampler)

    def hook(self, *args: Any) -> Logger:
        if not args:
            return self
        return self._replace(hooks=self._state.hooks + tuple(args))

    def _should(self, level: Level) -> bool:
        state = self._state
        if state.writer is None:
            return False
        if level < state.threshold or level < global_level():
            return False
        if state.sampler is not None:
            return bool(state.sampler.sample(level))
        return True

    def _new_event(self, level: int, done: Callable[[str], None] | None = None) -> Event:
        level = Level(level)
        if not self._should(level):
            if done is not None:
                done("")
            return Event(None, level, enabled=False)
        state = self._state
        event = Event(state.writer, level, hooks=state.hooks, done=done)
        if level != Level.NO_LEVEL and config.level_field_name:
            event.str(config.level_field_name, config.level_field_marshal_func(level))
        event._pairs.extend(state.context)
        return event

    def trace(self) -> Event:
        return self._new_event(Level.TRACE)

    def debug(self) -> Event:
        return self._new_event(Level.DEBUG)

    def info(self) -> Event:
        return self._new_event(Level.INFO)

    def warn(self) -> Event:
        return self._new_event(Level.WARN)

    def error(self) -> Event:
        return self._new_event(Level.ERROR)

    def err(self, error: BaseException | None) -> Event:
        """Error level with error as a field, or info level if error is None."""
        if error is not None:
            return self.error().err(error)
        return self.info()

    def fatal(self) -> Event:
        """Fatal level; writing the event closes the writer and exits with 1."""

        def done(message: str) -> None:
            close = getattr(self._state.writer, "close", None)
            if callable(close):
                close()
            sys.exit(1)

        return self._new_event(Level.FATAL, done)

    def panic(self) -> Event:
        """Panic level; writing the event raises LogPanic."""

        def done(message: str) -> None:
            raise LogPanic(message)

        return self._new_event(Level.PANIC, done)

    def with_level(self, level: int) -> Event:
        """Start an event at level without exiting or raising afterwards."""
        if level == Level.DISABLED:
            return Event(None, Level.DISABLED, enabled=False)
        return self._new_event(level)

    def log(self) -> Event:
        return self._new_event(Level.NO_LEVEL)

    def print(self, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(_sprint(args))

    def printf(self, fmt: str, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(fmt % args if args else fmt)

    def println(self, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(" ".join(str(arg) for arg in args) + "\n")

    def write(self, data: bytes | str) -> int:
        """Log data without a level; a trailing newline is dropped."""
        raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        text = raw[:-1] if raw.endswith(b"\n") else raw
        self.log().msg(text.decode("utf-8", "replace"))
        return len(raw)


def nop() -> Logger:
    """Return a disabled logger."""
    return Logger(None).level(Level.DISABLED)