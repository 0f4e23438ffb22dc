"""
DummyOutput
===========

The Dummy Output Connector can be used to store unmodified chunks.
It only requires the connector type to be configured.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    sink:
      my_dummy_output:
        type: dummy_output
"""

from typing import Any, List

from attr import define, field
from attrs import validators

from flowprep.abc.writable import Writable
from flowprep.runtime.operations import delay
from flowprep.runtime.task import Task


class DummyOutput(Writable):
    """
    A dummy output that stores unmodified chunks unless an exception was configured.
    """

    @define(kw_only=True)
    class Config(Writable.Config):
        """Common Configurations"""

        do_nothing: bool = field(default=False)
        """Acknowledge chunks without storing them."""

        exceptions: List[str | None] = field(
            validator=validators.deep_iterable(
                member_validator=validators.instance_of((str, type(None))),
                iterable_validator=validators.instance_of(list),
            ),
            default=[],
        )
        """Error messages to fail the writes with, in order. :code:`None` entries let the
        corresponding write pass."""

        latency: float = field(
            validator=[validators.instance_of((int, float)), validators.ge(0)], default=0
        )
        """Seconds a write takes until it is acknowledged. Defaults to :code:`0`, which
        acknowledges synchronously."""

    events: list
    shut_down_called_count: int
    _exceptions: list

    __slots__ = [
        "events",
        "shut_down_called_count",
        "_exceptions",
    ]

    def __init__(self, name: str, configuration: "DummyOutput.Config", scheduler=None):
        super().__init__(name, configuration, scheduler)
        self.events = []
        self.shut_down_called_count = 0
        self._exceptions = list(configuration.exceptions)

    def _write(self, chunk: Any) -> Task | None:
        """Store the chunk in the output destination.

        Parameters
        ----------
        chunk : Any
           Chunk that will be stored.
        """
        if self._config.do_nothing:
            return None
        if self._exceptions:
            exception = self._exceptions.pop(0)
            if exception is not None:
                raise Exception(exception)  # pylint: disable=broad-exception-raised
        if self._config.latency:
            return delay(self.scheduler, self._config.latency, chunk).then(self.events.append)
        self.events.append(chunk)
        return None

    def shut_down(self):
        self.shut_down_called_count += 1
        super().shut_down()
