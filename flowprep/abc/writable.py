"""
Writable
========

A writable stream buffers written chunks and hands them one at a time, in write order, to its
sink hook :code:`_write`. The next chunk is handed over only after the previous one was
acknowledged. :code:`_write` acknowledges by returning, or, for asynchronous sinks, by
returning a task that fulfills once the chunk is stored.

:code:`write` returns False as soon as the buffer reaches the high-water mark. The producer
should then wait for the drain notification (or :code:`drained()`) before writing again.

Example
^^^^^^^
..  code-block:: python

    class Collect(Writable):

        def __init__(self, name, configuration, scheduler=None):
            super().__init__(name, configuration, scheduler)
            self.chunks = []

        def _write(self, chunk):
            self.chunks.append(chunk)
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any

from flowprep.abc.exceptions import ContractViolation
from flowprep.abc.stream import Stream, StreamState, StreamStateType, WritableProducer
from flowprep.runtime.task import Task

logger = logging.getLogger("Stream")


class WritableRole(ABC):
    """Writable half of a stream. Mixed into :code:`Stream` subclasses."""

    __slots__ = ()

    _writable_state: StreamState
    _write_buffer: deque
    _producer: WritableProducer | None
    _writing: bool
    _write_scheduled: bool
    _finish_requested: bool
    _finalizing: bool
    _needs_drain: bool
    _drain_waiters: list
    finished: Task

    def _init_writable(self) -> None:
        self._writable_state = StreamState()
        self._write_buffer = deque()
        self._producer = None
        self._writing = False
        self._write_scheduled = False
        self._finish_requested = False
        self._finalizing = False
        self._needs_drain = False
        self._drain_waiters = []
        self.finished = Task(self.scheduler, name=f"{self.name} finished")
        # the producer is notified through on_abort already
        self.finished.handled = True

    @property
    def writable_state(self) -> StreamStateType:
        """State of the writable side."""
        return self._writable_state.current_state

    @property
    def writable_length(self) -> int:
        """Number of chunks written but not yet acknowledged by the sink."""
        return len(self._write_buffer)

    @property
    def producer(self) -> WritableProducer | None:
        """The registered producer, if any."""
        return self._producer

    def write(self, chunk: Any) -> bool:
        """Enqueue a chunk for the sink.

        Returns
        -------
        bool
            False if the buffer reached the high-water mark. The chunk is accepted anyway.

        Raises
        ------
        ContractViolation
            If the stream was finished, errored or :code:`chunk` is None.
        """
        return self._enqueue(chunk, None)

    def send(self, chunk: Any) -> Task:
        """Enqueue a chunk and return a task fulfilling once the sink acknowledged it.

        The task rejects if the stream errors before the acknowledgement.
        """
        acknowledgement = Task(self.scheduler, name=f"{self.name} send")
        self._enqueue(chunk, acknowledgement)
        return acknowledgement

    def finish(self) -> None:
        """Flush the buffer, finalize the sink and end the stream.

        Finishing a second time does nothing.
        """
        if self._finish_requested or self._writable_state.is_terminal:
            logger.debug("%s: finish was already requested, ignoring", self.describe())
            return
        self._finish_requested = True
        if self.writable_state is StreamStateType.IDLE:
            self._writable_state.transition(StreamStateType.FLOWING)
        self._schedule_write()

    def drained(self) -> Task:
        """Return a task fulfilling once the buffer is below the high-water mark."""
        if self.writable_state is StreamStateType.ERRORED:
            return Task.rejected(self.scheduler, self.finished.error)
        if not self._needs_drain:
            return Task.resolved(self.scheduler, self)
        waiter = Task(self.scheduler, name=f"{self.name} drained")
        self._drain_waiters.append(waiter)
        return waiter

    def attach_producer(self, producer: WritableProducer) -> None:
        """Register the sole producer observing drain, finish and abort.

        Raises
        ------
        ContractViolation
            If a producer is already registered or the stream is terminated.
        """
        if self._producer is not None:
            raise ContractViolation(f"{self.describe()} already has a producer")
        if self._writable_state.is_terminal:
            raise ContractViolation(
                f"cannot attach to {self.describe()}, it is {self.writable_state}"
            )
        self._producer = producer

    def detach_producer(self) -> None:
        """Unregister the producer."""
        self._producer = None

    @abstractmethod
    def _write(self, chunk: Any) -> Task | None:
        """Store one chunk. Return a task to acknowledge asynchronously."""

    def _final(self) -> Task | None:
        """Finalize the sink after the last chunk. Optional."""

    def _enqueue(self, chunk: Any, acknowledgement: Task | None) -> bool:
        if chunk is None:
            raise ContractViolation(f"{self.describe()}: chunks must not be None")
        if self._finish_requested:
            raise ContractViolation(f"{self.describe()}: write after finish")
        if self._writable_state.is_terminal:
            raise ContractViolation(f"{self.describe()}: write to {self.writable_state} stream")
        if self.writable_state is StreamStateType.IDLE:
            self._writable_state.transition(StreamStateType.FLOWING)
        self._write_buffer.append((chunk, acknowledgement))
        below_high_water_mark = len(self._write_buffer) < self.high_water_mark
        if not below_high_water_mark:
            self.metrics.number_of_backpressure_signals += 1
            self._needs_drain = True
            self._writable_state.transition(StreamStateType.PAUSED)
        self._schedule_write()
        return below_high_water_mark

    def _schedule_write(self) -> None:
        if self._writing or self._write_scheduled:
            return
        self._write_scheduled = True
        self.scheduler.call_soon(self._write_next)

    def _write_next(self) -> None:
        self._write_scheduled = False
        if self._writing or self._writable_state.is_terminal:
            return
        if not self._write_buffer:
            if self._finish_requested:
                self._finalize()
            return
        self._writing = True
        chunk, _ = self._write_buffer[0]
        try:
            result = self._write(chunk)
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            self.destroy(self._fault(error))
            return
        if isinstance(result, Task):
            result.on_settle(lambda _: self._acknowledge(), self._sink_failed)
            return
        self._acknowledge()

    def _acknowledge(self) -> None:
        if self._writable_state.is_terminal:
            return
        self._writing = False
        chunk, acknowledgement = self._write_buffer.popleft()
        self.metrics.number_of_written_chunks += 1
        if acknowledgement is not None:
            acknowledgement.settle_value(chunk)
        if self._needs_drain and len(self._write_buffer) < self.high_water_mark:
            self._drain()
        if self._writable_state.is_terminal:
            return
        if self._write_buffer or self._finish_requested:
            self._schedule_write()

    def _drain(self) -> None:
        self._needs_drain = False
        self._writable_state.transition(StreamStateType.FLOWING)
        waiters, self._drain_waiters = self._drain_waiters, []
        for waiter in waiters:
            waiter.settle_value(self)
        producer = self._producer
        if producer is not None:
            producer.on_drain()

    def _finalize(self) -> None:
        if self._finalizing:
            return
        self._finalizing = True
        try:
            result = self._final()
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            self.destroy(self._fault(error))
            return
        if isinstance(result, Task):
            result.on_settle(lambda _: self._complete_finish(), self._sink_failed)
            return
        self._complete_finish()

    def _complete_finish(self) -> None:
        if self._writable_state.is_terminal:
            return
        self._writable_state.transition(StreamStateType.ENDED)
        logger.debug("%s: writable side finished", self.describe())
        producer = self._producer
        if producer is not None:
            producer.on_finish()
        self.finished.settle_value(self)
        self._maybe_close()

    def _sink_failed(self, error: Exception) -> None:
        self.destroy(self._fault(error))

    def _abort_writable(self, error: Exception) -> None:
        if self._writable_state.is_terminal:
            return
        pending, self._write_buffer = self._write_buffer, deque()
        self._writable_state.transition(StreamStateType.ERRORED)
        for _, acknowledgement in pending:
            if acknowledgement is not None:
                acknowledgement.settle_error(error)
        waiters, self._drain_waiters = self._drain_waiters, []
        for waiter in waiters:
            waiter.settle_error(error)
        producer = self._producer
        if producer is not None:
            self.scheduler.call_soon(producer.on_abort, error)
        self.finished.settle_error(error)


class Writable(WritableRole, Stream):
    """Abstract writable stream."""

    def __init__(self, name: str, configuration: Stream.Config, scheduler=None):
        super().__init__(name, configuration, scheduler)
        self._init_writable()

    @property
    def state(self) -> StreamStateType:
        """Current state of the stream."""
        return self.writable_state

    @property
    def terminated(self) -> bool:
        return self._writable_state.is_terminal

    def _abort(self, error: Exception) -> None:
        self._abort_writable(error)
