"""
Duplex
======

A duplex stream is readable and writable at the same time. Both sides keep their own buffer,
state and high-water mark accounting and are independent of each other. Ending one side does
not end the other. Destroying the stream errors both sides.
"""

from flowprep.abc.readable import ReadableRole
from flowprep.abc.stream import Stream
from flowprep.abc.writable import WritableRole


class Duplex(ReadableRole, WritableRole, Stream):
    """Abstract duplex stream."""

    def __init__(self, name: str, configuration: Stream.Config, scheduler=None):
        super().__init__(name, configuration, scheduler)
        self._init_readable()
        self._init_writable()

    @property
    def terminated(self) -> bool:
        return self._readable_state.is_terminal and self._writable_state.is_terminal

    def _abort(self, error: Exception) -> None:
        self._abort_readable(error)
        self._abort_writable(error)
