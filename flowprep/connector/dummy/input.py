"""
DummyInput
==========

A dummy input that emits the chunks it was initialized with, one chunk per read.

If a chunk is an exception class, the stream is destroyed with an instance of that exception
instead of emitting a chunk. The stream ends after the last chunk unless
:code:`repeat_chunks` is set.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    source:
      mydummyinput:
        type: dummy_input
        chunks: [{"document":"one"}, {"document":"two"}]
"""

import copy
from functools import cached_property

from attr import field, validators
from attrs import define

from flowprep.abc.readable import Readable


class DummyInput(Readable):
    """DummyInput Connector"""

    @define(kw_only=True)
    class Config(Readable.Config):
        """DummyInput specific configuration"""

        chunks: list = field(validator=validators.instance_of(list))
        """A list of chunks that should be emitted."""

        repeat_chunks: bool = field(validator=validators.instance_of(bool), default=False)
        """If set to :code:`true`, then the given chunks will be repeated after the last
        one is reached. Default: :code:`False`"""

    @cached_property
    def _chunks(self) -> list:
        return copy.copy(self._config.chunks)

    def _read(self) -> None:
        """Emit the next configured chunk or end the stream"""
        if not self._chunks:
            if not self._config.repeat_chunks:
                self.end()
                return
            del self.__dict__["_chunks"]
            if not self._chunks:
                self.end()
                return
        chunk = self._chunks.pop(0)
        if isinstance(chunk, type) and issubclass(chunk, Exception):
            self.destroy(chunk(f"{self.describe()} emitted {chunk.__name__}"))
            return
        self.push(chunk)
