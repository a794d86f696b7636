# jlog

Structured logging that writes each event as a single line of JSON.

Build a logger on any writable object, binary or text, chain fields onto an
event and write it with `msg`:

```python
import sys
from jlog.logger import Logger

log = Logger(sys.stdout)
log.info().str("foo", "bar").int("n", 123).msg("hello world")
# {"level":"info","foo":"bar","n":123,"message":"hello world"}
```

Events take `str`, `int`, `float`, `bool`, `field` (any value: dates,
timedeltas as milliseconds, mappings, lists, objects with a
`marshal_object(event)` method), `err`, `fields` (a mapping, written sorted
by key, or a flat key/value list), `dict` and `timestamp`. `send()` writes an
event with no message and `msgf(fmt, *args)` formats one with `%`. An event
from a logger that does not accept its level is disabled: every call on it
is accepted and nothing is written. `discard()` disables an event by hand.

## Context

Child loggers carry fields that go into every event they write:

```python
sub = log.with_().str("component", "db").timestamp().logger()
sub.warn().msg("slow query")
```

`Logger.update_context(fn)` changes a logger's context in place; it is not
thread safe. `Logger.output(writer)` returns a copy writing elsewhere.

## Levels

`jlog.level.Level` runs from `TRACE` through `DEBUG`, `INFO`, `WARN`,
`ERROR`, `FATAL` and `PANIC`, with `NO_LEVEL` and `DISABLED` as the two
special values; lower values are kept and printed as numbers.
`Logger.level(...)` sets the lowest level a logger accepts, and
`jlog.level.set_global_level(...)` sets it for every logger at once.
`jlog.level.parse_level("warn")` turns a name or a number back into a level,
raising `ValueError` for anything else.

`Logger.log()` starts an event with no level. `Logger.fatal()` exits the
process with status 1 after writing, and `Logger.panic()` raises
`jlog.logger.LogPanic`; `Logger.with_level(...)` does neither. `Logger` can
also stand in as a writer itself: `Logger.write(data)` logs the data with no
level.

Field names, the time format (an empty `time_field_format` writes Unix
seconds), the clock, level and error marshalling and the handler for failed
writes live in `jlog.logger.config`.

## Sampling and hooks

```python
from jlog.sampler import BasicSampler

sampled = log.sample(BasicSampler(2))  # writes the 1st, 3rd, 5th... event
```

`jlog.sampler` also has `RandomSampler`, `BurstSampler` (a burst per period
in seconds, then an optional next sampler) and `LevelSampler`, plus the
ready-made `OFTEN`, `SOMETIMES` and `RARELY`.

A hook is any object with a `run(event, level, message)` method. Pass it to
`Logger.hook(...)` and it can add fields to each event just before the event
is written.

## Writers

`jlog.writer` has writers that sit between a logger and its output:

- `MultiLevelWriter` (or `multi_level_writer(...)`) copies each line to
  several outputs.
- `SyncWriter` holds a lock around every write.
- `FilteredLevelWriter` drops lines below a set level.
- `TriggerLevelWriter` holds back low-level lines until a line at the
  trigger level arrives.
- `TestWriter` passes each line to an object's `log(message)` method.

`jlog.syslog_writer.syslog_level_writer` passes each line to the syslog
method that matches its level and drops trace lines. `syslog_cee_writer`
does the same and puts an `@cee:` prefix in front of each line.

## Stack traces

`jlog.stacktrace.marshal_stack(error)` turns the traceback of an exception,
or of the first exception in its chain that has one, into a list of
`{"func", "line", "source"}` records, innermost frame first. It returns
`None` when there is no traceback.

## What it does not do

There is no shared process-wide logger with module-level shortcut functions:
create a `Logger` and pass it around. There is no console pretty-printer and
no command-line tool.