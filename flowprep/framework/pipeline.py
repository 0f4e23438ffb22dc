"""This module contains the configured pipeline.

A pipeline instance owns one scheduler. It builds the configured source, transforms and sink
on that scheduler and pipes them into each other. Independent pipeline instances share no
state and can be run side by side.
"""

import logging
from copy import deepcopy
from functools import cached_property

from flowprep.abc.exceptions import ContractViolation
from flowprep.abc.stream import Stream
from flowprep.factory import Factory
from flowprep.framework.pipe import pipeline
from flowprep.runtime.scheduler import Scheduler
from flowprep.runtime.task import Task
from flowprep.util.configuration import Configuration

logger = logging.getLogger("Pipeline")


class Pipeline:
    """Pipeline of one source, a sequence of transforms and one sink."""

    _configuration: Configuration
    """ the current configuration """

    _completion: Task | None
    """ the task of the running pipe chain """

    def __init__(
        self, configuration: Configuration, scheduler: Scheduler | None = None, name="pipeline"
    ) -> None:
        self.name = name
        self._configuration = configuration
        self.scheduler = scheduler if scheduler is not None else Scheduler(name)
        self._completion = None

    @cached_property
    def source(self) -> Stream:
        """the readable source"""
        return Factory.create(deepcopy(self._configuration.source), self.scheduler)

    @cached_property
    def transforms(self) -> list[Stream]:
        """the transforms in flow order"""
        return [
            Factory.create(deepcopy(transform), self.scheduler)
            for transform in self._configuration.transforms
        ]

    @cached_property
    def sink(self) -> Stream:
        """the writable sink"""
        return Factory.create(deepcopy(self._configuration.sink), self.scheduler)

    @property
    def streams(self) -> list[Stream]:
        """all streams in flow order"""
        return [self.source, *self.transforms, self.sink]

    def setup(self) -> None:
        """Set up all streams."""
        for stream in self.streams:
            stream.setup()
        logger.info("Finished building pipeline (%s)", self.name)

    def run(self) -> Task:
        """Start the flow from the source into the sink.

        Returns
        -------
        Task
            Fulfills with the sink once it finished, rejects with the first stream error.
        """
        if self._completion is not None:
            raise ContractViolation(f"pipeline '{self.name}' was already started")
        self.setup()
        self._completion = pipeline(self.source, *self.transforms, self.sink)
        logger.info(
            "Started pipeline (%s): %s",
            self.name,
            " -> ".join(stream.describe() for stream in self.streams),
        )
        return self._completion

    def run_until_complete(self) -> Stream:
        """Start the pipeline if necessary and drive the scheduler until the flow settled.

        Returns
        -------
        Stream
            The finished sink.

        Raises
        ------
        Exception
            The first error of any stream of the pipeline.
        """
        completion = self._completion if self._completion is not None else self.run()
        try:
            return self.scheduler.run_until_settled(completion)
        finally:
            logger.info("Pipeline (%s) completed with %r", self.name, completion)

    def shut_down(self) -> None:
        """Shut down all streams."""
        for stream in self.streams:
            stream.shut_down()
        logger.info("Shut down pipeline (%s)", self.name)
