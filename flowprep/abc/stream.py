# type: ignore
# -> mypy does not correctly handle IntEnum or StrEnum in some cases

"""
This module provides the abstract base class for all streams.

A stream is an endpoint of a data flow with a bounded buffer. Its role decides how chunks
get in and out:

- a readable stream buffers chunks pushed by its producer and delivers them to one consumer,
- a writable stream buffers chunks written by its producer and hands them to a sink,
- a duplex stream has both roles, independent of each other,
- a transform stream is a duplex stream whose readable side is derived from its writable side.

Every role follows the same state machine:

.. code-block:: text

    IDLE ──> FLOWING <──> PAUSED
      │         │           │
      │         ├──> ENDED <┤
      └─────────┴──> ERRORED┘

:code:`ENDED` and :code:`ERRORED` are terminal.
"""

import logging
from abc import abstractmethod
from enum import StrEnum
from typing import Any, Protocol

from attrs import define, field, validators

from flowprep.abc.component import Component
from flowprep.abc.exceptions import ContractViolation, FlowprepException
from flowprep.metrics.metrics import CounterMetric, HistogramMetric
from flowprep.runtime.scheduler import Scheduler
from flowprep.util.defaults import DEFAULT_HIGH_WATER_MARK

logger = logging.getLogger("Stream")


class StreamError(FlowprepException):
    """Unrecoverable producer, consumer or sink fault. Terminal for the stream."""

    def __init__(self, stream: "Stream", message: str) -> None:
        super().__init__(f"{self.__class__.__name__} in {stream.describe()}: {message}")


class TransformError(StreamError):
    """The transform function of a transform stream raised."""


class StreamStateType(StrEnum):
    """States of one role of a stream."""

    IDLE = "idle"
    """No consumer registered and nothing pulled or written yet."""

    FLOWING = "flowing"
    """Chunks move and the buffer is below the high-water mark."""

    PAUSED = "paused"
    """The buffer reached the high-water mark or the consumer paused the stream."""

    ENDED = "ended"
    """No more chunks: the producer ended (readable) or the writer finished (writable)."""

    ERRORED = "errored"
    """An unrecoverable fault occurred, the buffer was discarded."""


class StreamState:
    """
    Guards the transitions of one stream role.

    Examples
    --------
    >>> state = StreamState()
    >>> state.transition(StreamStateType.FLOWING)
    <StreamStateType.FLOWING: 'flowing'>

    >>> state.transition(StreamStateType.PAUSED)
    <StreamStateType.PAUSED: 'paused'>

    >>> state.is_terminal
    False
    """

    _state_machine: dict[StreamStateType, list[StreamStateType]] = {
        StreamStateType.IDLE: [StreamStateType.FLOWING, StreamStateType.ERRORED],
        StreamStateType.FLOWING: [
            StreamStateType.PAUSED,
            StreamStateType.ENDED,
            StreamStateType.ERRORED,
        ],
        StreamStateType.PAUSED: [
            StreamStateType.FLOWING,
            StreamStateType.ENDED,
            StreamStateType.ERRORED,
        ],
        StreamStateType.ENDED: [],
        StreamStateType.ERRORED: [],
    }

    __slots__ = ("current_state",)

    def __init__(self) -> None:
        self.current_state: StreamStateType = StreamStateType.IDLE

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return not self._state_machine[self.current_state]

    @property
    def is_active(self) -> bool:
        """Whether the role is flowing or paused."""
        return self.current_state in (StreamStateType.FLOWING, StreamStateType.PAUSED)

    def transition(self, target: StreamStateType) -> StreamStateType:
        """
        Move to :code:`target`. Moving to the current state does nothing.

        Raises
        ------
        ContractViolation
            If the transition is not part of the state machine.
        """
        if target is self.current_state:
            return self.current_state
        if target not in self._state_machine[self.current_state]:
            raise ContractViolation(
                f"Invalid state transition from {self.current_state} to {target}"
            )
        self.current_state = target
        return self.current_state

    def __str__(self) -> str:
        return f"<StreamState: {self.current_state}>"


class ReadableConsumer(Protocol):
    """The sole consumer of a readable stream, e.g. a pipe."""

    def on_data(self, chunk) -> None:
        """Receive the next chunk."""

    def on_end(self) -> None:
        """The stream ended, no more chunks follow."""

    def on_error(self, error: Exception) -> None:
        """The stream errored, no more chunks follow."""


class WritableProducer(Protocol):
    """The sole producer observing a writable stream, e.g. a pipe."""

    def on_drain(self) -> None:
        """The buffer fell below the high-water mark after signaling backpressure."""

    def on_finish(self) -> None:
        """All chunks were written and the sink was finalized."""

    def on_abort(self, error: Exception) -> None:
        """The stream errored, written but unacknowledged chunks were dropped."""


class Stream(Component):
    """Abstract stream bound to one scheduler."""

    @define(kw_only=True)
    class Config(Component.Config):
        """Common stream configuration"""

        high_water_mark: int = field(
            validator=[validators.instance_of(int), validators.gt(0)],
            default=DEFAULT_HIGH_WATER_MARK,
        )
        """Number of buffered chunks at which the stream signals backpressure.
        Defaults to :code:`16`."""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about this stream"""

        number_of_pushed_chunks: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of chunks pushed to the readable side",
                name="number_of_pushed_chunks",
            )
        )
        """Number of chunks pushed to the readable side"""

        number_of_written_chunks: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of chunks acknowledged by the writable side",
                name="number_of_written_chunks",
            )
        )
        """Number of chunks acknowledged by the writable side"""

        number_of_backpressure_signals: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of times a push or write reported a full buffer",
                name="number_of_backpressure_signals",
            )
        )
        """Number of times a push or write reported a full buffer"""

        number_of_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of errors that terminated the stream",
                name="number_of_errors",
            )
        )
        """Number of errors that terminated the stream"""

        processing_time_per_chunk: HistogramMetric = field(
            factory=lambda: HistogramMetric(
                description="Time in seconds that it took to process a chunk",
                name="processing_time_per_chunk",
            )
        )
        """Time in seconds that it took to process a chunk"""

    _scheduler: Scheduler
    _closed: bool

    __slots__ = ["_scheduler", "_closed"]

    def __init__(
        self, name: str, configuration: "Stream.Config", scheduler: Scheduler | None = None
    ):
        super().__init__(name, configuration)
        self._scheduler = scheduler if scheduler is not None else Scheduler(f"{name}-scheduler")
        self._closed = False

    @property
    def scheduler(self) -> Scheduler:
        """The scheduler all callbacks of this stream run on."""
        return self._scheduler

    @property
    def high_water_mark(self) -> int:
        """Buffered chunk count at which backpressure is signaled."""
        return self._config.high_water_mark

    @property
    @abstractmethod
    def terminated(self) -> bool:
        """Whether every role of the stream reached a terminal state."""

    def destroy(self, error: Exception | None = None) -> None:
        """Move every role to :code:`ERRORED`, discard buffers and notify the peers once.

        Destroying a terminated stream does nothing.
        """
        if self.terminated:
            return
        if error is None:
            error = StreamError(self, "stream was destroyed")
        self.metrics.number_of_errors += 1
        logger.error("%s errored: %s", self.describe(), error)
        self._abort(error)
        self._maybe_close()

    @abstractmethod
    def _abort(self, error: Exception) -> None:
        """Move the roles of this stream to :code:`ERRORED`."""

    def _as_bytes(self, chunk: Any, encoding: str) -> bytes:
        """Return a byte chunk as bytes and encode a string chunk.

        Raises
        ------
        StreamError
            If the chunk is neither bytes-like nor a string.
        """
        if isinstance(chunk, str):
            return chunk.encode(encoding)
        if isinstance(chunk, (bytes, bytearray, memoryview)):
            return bytes(chunk)
        raise StreamError(self, f"expected a bytes or str chunk, got {type(chunk).__name__}")

    def _fault(self, error: Exception) -> StreamError:
        """Wrap an exception raised by a hook into a :code:`StreamError`."""
        if isinstance(error, StreamError):
            return error
        fault = StreamError(self, f"{type(error).__name__}: {error}")
        fault.__cause__ = error
        return fault

    def _maybe_close(self) -> None:
        if self._closed or not self.terminated:
            return
        self._closed = True
        self._close()

    def _close(self) -> None:
        """Release resources once every role is terminal. Called exactly once."""

    def shut_down(self):
        if not self.terminated:
            self.destroy(StreamError(self, "stream was shut down"))
        super().shut_down()
