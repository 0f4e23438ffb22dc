# pylint: disable=missing-docstring
# pylint: disable=protected-access
from flowprep.abc.readable import Readable
from flowprep.abc.stream import Stream
from flowprep.abc.transform import Transform
from flowprep.abc.writable import Writable
from flowprep.runtime.operations import delay


def stream_config(high_water_mark: int = 16) -> Stream.Config:
    return Stream.Config(type="test_stream", high_water_mark=high_water_mark)


class RecordingConsumer:
    def __init__(self):
        self.chunks = []
        self.ended = 0
        self.errors = []

    def on_data(self, chunk):
        self.chunks.append(chunk)

    def on_end(self):
        self.ended += 1

    def on_error(self, error):
        self.errors.append(error)


class RecordingProducer:
    def __init__(self):
        self.drains = 0
        self.finishes = 0
        self.aborts = []

    def on_drain(self):
        self.drains += 1

    def on_finish(self):
        self.finishes += 1

    def on_abort(self, error):
        self.aborts.append(error)


class PushSource(Readable):
    """Readable that is fed from the outside"""


class CountingSource(Readable):
    """Readable that emits the given chunks on pull and records every pull in a journal"""

    def __init__(self, name, configuration, scheduler=None, chunks=(), journal=None):
        super().__init__(name, configuration, scheduler)
        self.remaining = list(chunks)
        self.journal = journal if journal is not None else []
        self.reads = 0

    def _read(self):
        self.reads += 1
        if not self.remaining:
            self.end()
            return
        chunk = self.remaining.pop(0)
        self.journal.append(("pull", chunk))
        self.push(chunk)


class ListSink(Writable):
    """Writable acknowledging every chunk synchronously"""

    def __init__(self, name, configuration, scheduler=None):
        super().__init__(name, configuration, scheduler)
        self.chunks = []
        self.finals = 0

    def _write(self, chunk):
        self.chunks.append(chunk)

    def _final(self):
        self.finals += 1


class SlowSink(Writable):
    """Writable acknowledging every chunk after a delay and recording it in a journal"""

    def __init__(self, name, configuration, scheduler=None, seconds=0.01, journal=None):
        super().__init__(name, configuration, scheduler)
        self.seconds = seconds
        self.journal = journal if journal is not None else []
        self.chunks = []

    def _write(self, chunk):
        self.journal.append(("write", chunk))

        def _stored(_):
            self.chunks.append(chunk)
            self.journal.append(("ack", chunk))

        return delay(self.scheduler, self.seconds).then(_stored)


class Upper(Transform):
    """Transform emitting every chunk upper cased and a trailer on flush"""

    def _transform(self, chunk):
        return [chunk.upper()]

    def _flush(self):
        return ["END"]
