import io
import threading

import pytest

from jlog.level import Level
from jlog.syslog_writer import syslog_level_writer
from jlog.writer import (
    FilteredLevelWriter,
    LevelWriter,
    LevelWriterAdapter,
    MultiLevelWriter,
    SyncWriter,
    TestWriter,
    TriggerLevelWriter,
    as_level_writer,
    multi_level_writer,
)


class _SyslogRecorder:
    def __init__(self):
        self.events = []

    def write(self, data):
        return 0

    def debug(self, message):
        self.events.append(("Debug", message))

    def info(self, message):
        self.events.append(("Info", message))

    def warning(self, message):
        self.events.append(("Warning", message))

    def err(self, message):
        self.events.append(("Err", message))

    def emerg(self, message):
        self.events.append(("Emerg", message))

    def crit(self, message):
        self.events.append(("Crit", message))


class _MockedWriter:
    def __init__(self, fail, calls):
        self.fail = fail
        self.calls = calls

    def write(self, data):
        self.calls.append(data)
        if self.fail:
            raise OSError("Expected error")
        return len(data)


class _LevelRecorder:
    def __init__(self):
        self.ops = []

    def write(self, data):
        self.ops.append((None, bytes(data)))
        return len(data)

    def write_level(self, level, data):
        self.ops.append((level, bytes(data)))
        return len(data)


class _Closing:
    def __init__(self, log, name, fail=False):
        self.log = log
        self.name = name
        self.fail = fail

    def write(self, data):
        return len(data)

    def close(self):
        if self.fail:
            raise OSError(f"{self.name} failed")
        self.log.append(self.name)


class _TestingLog:
    def __init__(self):
        self.entries = []

    def log(self, message):
        self.entries.append(message)


def test_multi_syslog_writer():
    recorder = _SyslogRecorder()
    writer = multi_level_writer(syslog_level_writer(recorder))
    writer.write_level(Level.DEBUG, b'{"level":"debug","message":"debug"}\n')
    writer.write_level(Level.INFO, b'{"level":"info","message":"info"}\n')
    writer.write_level(Level.WARN, b'{"level":"warn","message":"warn"}\n')
    writer.write_level(Level.ERROR, b'{"level":"error","message":"error"}\n')
    writer.write_level(Level.NO_LEVEL, b'{"message":"nolevel"}\n')
    assert recorder.events == [
        ("Debug", '{"level":"debug","message":"debug"}\n'),
        ("Info", '{"level":"info","message":"info"}\n'),
        ("Warning", '{"level":"warn","message":"warn"}\n'),
        ("Err", '{"level":"error","message":"error"}\n'),
        ("Info", '{"message":"nolevel"}\n'),
    ]


def test_multi_writer_all_valid():
    calls = []
    writer = multi_level_writer(_MockedWriter(False, calls), _MockedWriter(False, calls))
    assert writer.write_level(Level.INFO, b"Test msg\n") == 9
    assert len(calls) == 2


@pytest.mark.parametrize(
    "fails",
    [(True, True), (True, False), (False, True)],
    ids=["all-invalid", "first-invalid", "first-valid"],
)
def test_multi_writer_calls_every_writer_despite_errors(fails):
    calls = []
    writer = multi_level_writer(*(_MockedWriter(fail, calls) for fail in fails))
    with pytest.raises(OSError, match="Expected error"):
        writer.write_level(Level.INFO, b"Test msg\n")
    assert len(calls) == 2


def test_multi_writer_short_write():
    class Short:
        def write(self, data):
            return 1

    with pytest.raises(OSError, match="short write"):
        MultiLevelWriter(Short()).write(b"abc")


def test_multi_writer_plain_write_uses_write():
    recorder = _LevelRecorder()
    buf = io.BytesIO()
    writer = MultiLevelWriter(recorder, buf)
    assert writer.write(b"line\n") == 5
    assert recorder.ops == [(None, b"line\n")]
    assert buf.getvalue() == b"line\n"


def test_multi_writer_close_stops_at_first_failure():
    log = []
    writer = MultiLevelWriter(_Closing(log, "a"), _Closing(log, "b", fail=True), _Closing(log, "c"))
    with pytest.raises(OSError, match="b failed"):
        writer.close()
    assert log == ["a"]


@pytest.mark.parametrize(
    "written, expected",
    [(b"newline\n", "newline"), (b"oneline", "oneline"), (b"twoline\n\n", "twoline")],
)
def test_test_writer(written, expected):
    sink = _TestingLog()
    writer = TestWriter(sink)
    assert writer.write(written) == len(written)
    assert sink.entries == [expected]


def _write_through(writer, data):
    return writer.write(data)


def test_test_writer_frame_reports_caller_location():
    sink = _TestingLog()
    writer = TestWriter(sink, frame=1)
    assert _write_through(writer, b"hello\n") == 6
    (entry,) = sink.entries
    assert entry.startswith("test_writer.py:")
    assert entry.endswith(": hello")


def test_filtered_level_writer():
    buf = io.BytesIO()
    writer = FilteredLevelWriter(writer=LevelWriterAdapter(buf), level=Level.INFO)
    assert writer.write_level(Level.DEBUG, b"no") == 2
    assert writer.write_level(Level.INFO, b"yes") == 3
    assert buf.getvalue() == b"yes"


@pytest.mark.parametrize(
    "writes, want, everything",
    [
        (
            [(Level.DEBUG, b"no\n"), (Level.INFO, b"yes\n")],
            b"yes\n",
            b"yes\nno\n",
        ),
        (
            [
                (Level.DEBUG, b"yes1\n"),
                (Level.INFO, b"yes2\n"),
                (Level.ERROR, b"yes3\n"),
                (Level.DEBUG, b"yes4\n"),
            ],
            b"yes2\nyes1\nyes3\nyes4\n",
            b"yes2\nyes1\nyes3\nyes4\n",
        ),
    ],
)
def test_trigger_level_writer(writes, want, everything):
    buf = io.BytesIO()
    writer = TriggerLevelWriter(
        writer=LevelWriterAdapter(buf),
        conditional_level=Level.DEBUG,
        trigger_level=Level.ERROR,
    )
    for level, line in writes:
        assert writer.write_level(level, line) == len(line)
    assert buf.getvalue() == want
    writer.trigger()
    assert buf.getvalue() == everything
    writer.close()


def test_trigger_level_writer_passes_levels_to_level_writer():
    recorder = _LevelRecorder()
    writer = TriggerLevelWriter(recorder, Level.DEBUG, Level.ERROR)
    writer.write_level(Level.DEBUG, b"a\n")
    writer.write_level(Level.ERROR, b"b\n")
    assert recorder.ops == [(Level.DEBUG, b"a\n"), (Level.ERROR, b"b\n")]


def test_trigger_level_writer_plain_destination():
    buf = io.BytesIO()
    writer = TriggerLevelWriter(buf, Level.DEBUG, Level.ERROR)
    writer.write_level(Level.DEBUG, b"low\n")
    writer.write_level(Level.FATAL, b"high\n")
    assert buf.getvalue() == b"low\nhigh\n"


def test_trigger_level_writer_close_drops_buffer():
    buf = io.BytesIO()
    writer = TriggerLevelWriter(buf, Level.DEBUG, Level.ERROR)
    writer.write_level(Level.DEBUG, b"dropped\n")
    writer.close()
    writer.trigger()
    assert buf.getvalue() == b""


def test_adapter_text_stream():
    out = io.StringIO()
    adapter = LevelWriterAdapter(out)
    assert adapter.write_level(Level.WARN, b"abc") == 3
    assert out.getvalue() == "abc"


def test_adapter_close_closes_underlying():
    log = []
    LevelWriterAdapter(_Closing(log, "inner")).close()
    assert log == ["inner"]


def test_as_level_writer():
    recorder = _LevelRecorder()
    assert isinstance(recorder, LevelWriter)
    assert as_level_writer(recorder) is recorder
    buf = io.BytesIO()
    assert not isinstance(buf, LevelWriter)
    wrapped = as_level_writer(buf)
    assert isinstance(wrapped, LevelWriterAdapter)
    assert wrapped.writer is buf


def test_as_level_writer_none_discards():
    assert as_level_writer(None).write_level(Level.INFO, b"gone") == 4


def test_sync_writer():
    recorder = _LevelRecorder()
    writer = SyncWriter(recorder)
    assert writer.write_level(Level.WARN, b"x\n") == 2
    assert writer.write(b"y\n") == 2
    assert recorder.ops == [(Level.WARN, b"x\n"), (None, b"y\n")]


def test_sync_writer_concurrent_writes():
    recorder = _LevelRecorder()
    writer = SyncWriter(recorder)

    def worker():
        for _ in range(200):
            writer.write_level(Level.INFO, b"line\n")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(recorder.ops) == 800


def test_sync_writer_close():
    log = []
    SyncWriter(_Closing(log, "inner")).close()
    assert log == ["inner"]