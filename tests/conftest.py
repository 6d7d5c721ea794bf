from types import SimpleNamespace

import pytest

from sessionscribe.recorder import AudioCapture


class FakeStream:
    def __init__(self, callback=None, fail_on_start=False, **kwargs):
        self.callback = callback
        self.kwargs = kwargs
        self.fail_on_start = fail_on_start
        self.started = 0
        self.stopped = 0
        self.closed = 0

    def start(self):
        if self.fail_on_start:
            raise OSError("Permission denied")
        self.started += 1

    def stop(self):
        self.stopped += 1

    def close(self):
        self.closed += 1

    def feed(self, block):
        self.callback(block, len(block), None, None)


class FakeStreamFactory:
    def __init__(self, fail_on_start=False, fail_on_open=False):
        self.fail_on_start = fail_on_start
        self.fail_on_open = fail_on_open
        self.streams = []

    def __call__(self, **kwargs):
        if self.fail_on_open:
            raise OSError("No input device")
        stream = FakeStream(fail_on_start=self.fail_on_start, **kwargs)
        self.streams.append(stream)
        return stream

    @property
    def last(self):
        return self.streams[-1]


class FakeOpenAI:
    """Stands in for the ``openai.OpenAI`` client surface we call."""

    def __init__(self, transcript="", chat_content="", error=None):
        self.transcript = transcript
        self.chat_content = chat_content
        self.error = error
        self.transcription_calls = []
        self.chat_calls = []
        self.audio = SimpleNamespace(
            transcriptions=SimpleNamespace(create=self._transcribe)
        )
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._complete))

    def _transcribe(self, **kwargs):
        self.transcription_calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.transcript)

    def _complete(self, **kwargs):
        self.chat_calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.chat_content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.operation = None
        self.payload = None
        self.filters = []

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.operation = "update"
        self.payload = payload
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def execute(self):
        if self.db.fail_on == self.table:
            raise RuntimeError(f"{self.table} unavailable")
        self.db.executed.append(self)
        if self.operation == "insert":
            return SimpleNamespace(data=[dict(self.payload, id="note-1")])
        return SimpleNamespace(data=[])


class FakeSupabase:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def stream_factory():
    return FakeStreamFactory()


@pytest.fixture
def make_capture(stream_factory):
    def _make(**kwargs):
        kwargs.setdefault("stream_factory", stream_factory)
        kwargs.setdefault("tick_seconds", None)
        return AudioCapture(**kwargs)

    return _make
