"""
Transform
=========

A transform stream is a duplex stream whose readable side is derived from its writable side.
Every written chunk is handed to :code:`_transform`, which returns zero or more output chunks.
The output chunks are pushed to the readable side in order. When the readable side is full,
the written chunk is acknowledged only after the consumer of the readable side caught up,
which propagates backpressure upstream.

Finishing the writable side calls :code:`_flush` for trailing output and ends the readable
side afterwards.

Example
^^^^^^^
..  code-block:: python

    class Upper(Transform):

        def _transform(self, chunk):
            return [chunk.upper()]
"""

from abc import abstractmethod
from collections.abc import Iterable
from typing import Any

from flowprep.abc.duplex import Duplex
from flowprep.abc.exceptions import ContractViolation
from flowprep.abc.stream import Stream, TransformError
from flowprep.metrics.metrics import Metric
from flowprep.runtime.task import Task


class Transform(Duplex):
    """Abstract transform stream."""

    def __init__(self, name: str, configuration: Stream.Config, scheduler=None):
        super().__init__(name, configuration, scheduler)
        self._pending_acknowledgement: Task | None = None

    @abstractmethod
    def _transform(self, chunk: Any) -> Iterable:
        """Return the output chunks for one input chunk."""

    def _flush(self) -> Iterable:
        """Return trailing output chunks after the last input chunk. Optional."""
        return ()

    @Metric.measure_time()
    def _apply(self, function, *args) -> list:
        try:
            return list(function(*args))
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            transform_error = TransformError(self, f"{type(error).__name__}: {error}")
            raise transform_error from error

    def _write(self, chunk: Any) -> Task | None:
        if not self._push_all(self._apply(self._transform, chunk)):
            self._pending_acknowledgement = Task(self.scheduler, name=f"{self.name} backpressure")
            return self._pending_acknowledgement
        return None

    def _final(self) -> None:
        self._push_all(self._apply(self._flush))
        self.end()

    def _read(self) -> None:
        pending, self._pending_acknowledgement = self._pending_acknowledgement, None
        if pending is not None:
            pending.settle_value(None)

    def _push_all(self, chunks: list) -> bool:
        below_high_water_mark = True
        for chunk in chunks:
            below_high_water_mark = self.push(chunk)
        return below_high_water_mark
