"""
Readable
========

A readable stream buffers chunks pushed by its producer and delivers them, in push order, to
exactly one consumer. Implementations either push from the outside (e.g. a socket callback)
or implement :code:`_read`, which is called whenever the buffer is below the high-water mark
and more chunks are wanted.

Example
^^^^^^^
..  code-block:: python

    class Counter(Readable):

        def __init__(self, name, configuration, scheduler=None):
            super().__init__(name, configuration, scheduler)
            self._count = 0

        def _read(self):
            self._count += 1
            if self._count > 3:
                self.end()
                return
            self.push(self._count)
"""

import logging
from collections import deque
from typing import Any

from flowprep.abc.exceptions import ContractViolation
from flowprep.abc.stream import ReadableConsumer, Stream, StreamState, StreamStateType
from flowprep.runtime.task import Task

logger = logging.getLogger("Stream")


class ReadableRole:
    """Readable half of a stream. Mixed into :code:`Stream` subclasses."""

    __slots__ = ()

    _readable_state: StreamState
    _read_buffer: deque
    _consumer: ReadableConsumer | None
    _consumer_paused: bool
    _end_requested: bool
    _flow_scheduled: bool
    _reading: bool
    ended: Task

    def _init_readable(self) -> None:
        self._readable_state = StreamState()
        self._read_buffer = deque()
        self._consumer = None
        self._consumer_paused = False
        self._end_requested = False
        self._flow_scheduled = False
        self._reading = False
        self.ended = Task(self.scheduler, name=f"{self.name} ended")
        # the consumer is notified through on_error already
        self.ended.handled = True

    @property
    def readable_state(self) -> StreamStateType:
        """State of the readable side."""
        return self._readable_state.current_state

    @property
    def readable_length(self) -> int:
        """Number of buffered chunks not yet delivered."""
        return len(self._read_buffer)

    @property
    def consumer(self) -> ReadableConsumer | None:
        """The registered consumer, if any."""
        return self._consumer

    def push(self, chunk: Any) -> bool:
        """Append a chunk to the buffer.

        Returns
        -------
        bool
            False if the buffer reached the high-water mark and the producer should hold off
            until :code:`_read` is called again.

        Raises
        ------
        ContractViolation
            If the producer already ended, the stream errored or :code:`chunk` is None.
        """
        if chunk is None:
            raise ContractViolation(f"{self.describe()}: chunks must not be None")
        if self._end_requested:
            raise ContractViolation(f"{self.describe()}: push after end")
        if self._readable_state.is_terminal:
            raise ContractViolation(f"{self.describe()}: push to {self.readable_state} stream")
        self._read_buffer.append(chunk)
        self.metrics.number_of_pushed_chunks += 1
        below_high_water_mark = len(self._read_buffer) < self.high_water_mark
        if not below_high_water_mark:
            self.metrics.number_of_backpressure_signals += 1
        self._update_readable_state()
        self._schedule_flow()
        return below_high_water_mark

    def end(self) -> None:
        """Signal that no more chunks follow. Ending a second time does nothing."""
        if self._end_requested or self._readable_state.is_terminal:
            logger.debug("%s: end was already signaled, ignoring", self.describe())
            return
        self._end_requested = True
        self._schedule_flow()

    def attach(self, consumer: ReadableConsumer) -> None:
        """Register the sole consumer and start flowing.

        Raises
        ------
        ContractViolation
            If a consumer is already registered or the stream is terminated.
        """
        if self._consumer is not None:
            raise ContractViolation(f"{self.describe()} already has a consumer")
        if self._readable_state.is_terminal:
            raise ContractViolation(
                f"cannot attach to {self.describe()}, it is {self.readable_state}"
            )
        self._consumer = consumer
        self._consumer_paused = False
        self._readable_state.transition(StreamStateType.FLOWING)
        self._update_readable_state()
        self._schedule_flow()
        logger.debug("%s: consumer attached", self.describe())

    def detach(self) -> None:
        """Unregister the consumer. Buffered chunks stay buffered."""
        self._consumer = None

    def pause(self) -> None:
        """Stop delivering chunks to the consumer."""
        self._consumer_paused = True
        self._update_readable_state()

    def resume(self) -> None:
        """Continue delivering chunks to the consumer."""
        self._consumer_paused = False
        self._update_readable_state()
        self._schedule_flow()

    def pull(self) -> Any:
        """Take the next buffered chunk without a consumer.

        Returns
        -------
        Any
            The next chunk or None if nothing is buffered right now.

        Raises
        ------
        ContractViolation
            If a consumer is registered or the stream errored.
        """
        if self._consumer is not None:
            raise ContractViolation(f"{self.describe()}: pull while a consumer is attached")
        if self.readable_state is StreamStateType.ERRORED:
            raise ContractViolation(f"{self.describe()}: pull from errored stream")
        if self.readable_state is StreamStateType.ENDED:
            return None
        self._readable_state.transition(StreamStateType.FLOWING)
        if not self._read_buffer:
            self._maybe_read()
        chunk = self._read_buffer.popleft() if self._read_buffer else None
        if self._end_requested and not self._read_buffer:
            self._complete_end()
        else:
            self._update_readable_state()
            self._maybe_read()
        return chunk

    def _read(self) -> None:
        """Produce more chunks by calling :code:`push`. Optional."""

    def _schedule_flow(self) -> None:
        if self._flow_scheduled:
            return
        self._flow_scheduled = True
        self.scheduler.call_soon(self._flow)

    def _flow(self) -> None:
        self._flow_scheduled = False
        if self._consumer is None or self._readable_state.is_terminal:
            return
        while self._read_buffer and not self._consumer_paused and self._consumer is not None:
            chunk = self._read_buffer.popleft()
            try:
                self._consumer.on_data(chunk)
            except ContractViolation:
                raise
            except Exception as error:  # pylint: disable=broad-except
                self.destroy(self._fault(error))
            if self._readable_state.is_terminal:
                return
        if self._consumer is None:
            return
        if self._end_requested and not self._read_buffer:
            self._complete_end()
            return
        self._update_readable_state()
        if not self._consumer_paused:
            self._maybe_read()

    def _maybe_read(self) -> None:
        if self._reading or self._end_requested or self._readable_state.is_terminal:
            return
        if len(self._read_buffer) >= self.high_water_mark:
            return
        self._reading = True
        try:
            self._read()
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            self.destroy(self._fault(error))
        finally:
            self._reading = False

    def _update_readable_state(self) -> None:
        if not self._readable_state.is_active:
            return
        full = len(self._read_buffer) >= self.high_water_mark
        if self._consumer_paused or full:
            self._readable_state.transition(StreamStateType.PAUSED)
        else:
            self._readable_state.transition(StreamStateType.FLOWING)

    def _complete_end(self) -> None:
        self._readable_state.transition(StreamStateType.ENDED)
        logger.debug("%s: readable side ended", self.describe())
        consumer = self._consumer
        if consumer is not None:
            consumer.on_end()
        self.ended.settle_value(self)
        self._maybe_close()

    def _abort_readable(self, error: Exception) -> None:
        if self._readable_state.is_terminal:
            return
        self._read_buffer.clear()
        self._readable_state.transition(StreamStateType.ERRORED)
        consumer = self._consumer
        if consumer is not None:
            self.scheduler.call_soon(consumer.on_error, error)
        self.ended.settle_error(error)


class Readable(ReadableRole, Stream):
    """Abstract readable stream."""

    def __init__(self, name: str, configuration: Stream.Config, scheduler=None):
        super().__init__(name, configuration, scheduler)
        self._init_readable()

    @property
    def state(self) -> StreamStateType:
        """Current state of the stream."""
        return self.readable_state

    @property
    def terminated(self) -> bool:
        return self._readable_state.is_terminal

    def _abort(self, error: Exception) -> None:
        self._abort_readable(error)
