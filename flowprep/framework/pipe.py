# type: ignore
# -> mypy does not correctly handle StrEnum in some cases

"""
Pipe
====

A pipe connects one readable source to one writable destination and carries chunks from the
source to the destination with backpressure:

- a full destination pauses the source until the destination drained,
- the end of the source finishes the destination,
- an error of either side tears the pipe down and destroys the other side with that error.

The destination of a pipe may be a duplex or transform stream which is the source of the next
pipe. :code:`pipeline` connects such a sequence of streams and returns one task for the whole
flow.

Example
^^^^^^^
..  code-block:: python

    scheduler = Scheduler()
    source = Factory.create({"input": {"type": "file_input", "path": "in.log"}}, scheduler)
    sink = Factory.create({"output": {"type": "file_output", "path": "out.log"}}, scheduler)
    scheduler.run_until_settled(pipeline(source, sink))
"""

import logging
from enum import StrEnum
from typing import Any

from flowprep.abc.exceptions import ContractViolation
from flowprep.abc.readable import ReadableRole
from flowprep.abc.stream import StreamStateType
from flowprep.abc.writable import WritableRole
from flowprep.runtime.combinators import all_of
from flowprep.runtime.task import Task

logger = logging.getLogger("Pipe")


class PipeStateType(StrEnum):
    """States of a pipe."""

    ACTIVE = "active"
    """Chunks are forwarded."""

    PAUSED = "paused"
    """The destination signaled backpressure, the source is paused."""

    CLOSED = "closed"
    """The pipe completed or was torn down."""


class Pipe:
    """Connection of one readable source and one writable destination."""

    def __init__(self, source: ReadableRole, destination: WritableRole) -> None:
        """
        Parameters
        ----------
        source : ReadableRole
            The stream chunks are read from.
        destination : WritableRole
            The stream chunks are written to.

        Raises
        ------
        ContractViolation
            If the streams have the wrong roles or run on different schedulers.
        """
        if not isinstance(source, ReadableRole):
            raise ContractViolation(f"pipe source must be readable, got {source!r}")
        if not isinstance(destination, WritableRole):
            raise ContractViolation(f"pipe destination must be writable, got {destination!r}")
        if source.scheduler is not destination.scheduler:
            raise ContractViolation(
                f"cannot pipe {source.describe()} to {destination.describe()}: "
                "they run on different schedulers"
            )
        self.source = source
        self.destination = destination
        self._state = PipeStateType.ACTIVE
        self._started = False
        self.completion = Task(
            source.scheduler, name=f"pipe {source.name} -> {destination.name}"
        )
        # errors are forwarded to both streams already
        self.completion.handled = True

    @property
    def state(self) -> PipeStateType:
        """Current state of the pipe."""
        return self._state

    def start(self) -> "Pipe":
        """Register the pipe as consumer of the source and producer of the destination."""
        if self._started:
            raise ContractViolation(f"{self!r} was already started")
        self._started = True
        self.destination.attach_producer(self)
        self.source.attach(self)
        logger.debug("Started %r", self)
        return self

    def on_data(self, chunk: Any) -> None:
        if self._state is PipeStateType.CLOSED:
            return
        if self.destination.writable_state is StreamStateType.ERRORED:
            # on_abort is already scheduled
            return
        if not self.destination.write(chunk) and self._state is PipeStateType.ACTIVE:
            logger.debug("%r: destination is full, pausing source", self)
            self._state = PipeStateType.PAUSED
            self.source.pause()

    def on_drain(self) -> None:
        if self._state is not PipeStateType.PAUSED:
            return
        logger.debug("%r: destination drained, resuming source", self)
        self._state = PipeStateType.ACTIVE
        self.source.resume()

    def on_end(self) -> None:
        if self._state is PipeStateType.CLOSED:
            return
        self.destination.finish()

    def on_finish(self) -> None:
        if self._state is PipeStateType.CLOSED:
            return
        self._close()
        logger.debug("%r completed", self)
        self.completion.settle_value(self.destination)

    def on_error(self, error: Exception) -> None:
        if self._state is PipeStateType.CLOSED:
            return
        self._close()
        logger.warning("%r: source failed, destroying destination: %s", self, error)
        self.destination.destroy(error)
        self.completion.settle_error(error)

    def on_abort(self, error: Exception) -> None:
        if self._state is PipeStateType.CLOSED:
            return
        self._close()
        logger.warning("%r: destination failed, destroying source: %s", self, error)
        self.source.destroy(error)
        self.completion.settle_error(error)

    def _close(self) -> None:
        self._state = PipeStateType.CLOSED
        if self.source.consumer is self:
            self.source.detach()
        if self.destination.producer is self:
            self.destination.detach_producer()

    def __repr__(self) -> str:
        return f"<Pipe {self.source.name} -> {self.destination.name} {self._state}>"


def pipe(source: ReadableRole, destination: WritableRole) -> Pipe:
    """Connect :code:`source` to :code:`destination` and start the flow."""
    return Pipe(source, destination).start()


def pipeline(source: ReadableRole, *streams: WritableRole) -> Task:
    """Pipe :code:`source` through :code:`streams` in order.

    Every stream but the last must be a duplex or transform stream.

    Returns
    -------
    Task
        Fulfills with the last stream once it finished, rejects with the first error of any
        stream in the sequence.
    """
    if not streams:
        raise ContractViolation("pipeline needs at least one destination")
    links = [source, *streams]
    pipes = [Pipe(upstream, downstream) for upstream, downstream in zip(links, links[1:])]
    for connection in pipes:
        connection.start()
    completion = all_of(source.scheduler, [connection.completion for connection in pipes])
    return completion.then(lambda _: links[-1])
