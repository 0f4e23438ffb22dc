# type: ignore
# -> mypy does not correctly handle StrEnum in some cases

"""
Combinators
===========

Functions composing several tasks into one task.

- :code:`chain` runs steps strictly one after another and stops at the first rejection.
- :code:`all_of` fulfills with all values in input order or rejects with the first rejection
  by settlement time.
- :code:`race` settles like the first input that settles. Losing inputs keep running, their
  outcome is ignored.
- :code:`all_settled` never rejects and reports an :code:`Outcome` per input in input order.

Inputs are only observed. Errors of inputs are surfaced unchanged, never wrapped.

Example
^^^^^^^
..  code-block:: python

    scheduler = Scheduler()
    fetch = delay(scheduler, 5.0, "payload")
    winner = race(scheduler, [fetch, timeout(scheduler, 1.0, "Timeout! Too slow.")])
    scheduler.run_until_settled(winner)  # raises TaskTimeoutError
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from enum import StrEnum
from typing import Any

from attrs import define, field, validators

from flowprep.abc.exceptions import ContractViolation
from flowprep.runtime.scheduler import Scheduler
from flowprep.runtime.task import Task

logger = logging.getLogger("Combinator")

Step = Callable[[Any], Any]


class OutcomeStatus(StrEnum):
    """Status of a settled input reported by :code:`all_settled`."""

    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@define(kw_only=True, frozen=True)
class Outcome:
    """Settlement record of one input task."""

    status: OutcomeStatus = field(validator=validators.instance_of(OutcomeStatus))
    value: Any = field(default=None)
    error: Exception | None = field(default=None)

    @classmethod
    def fulfilled(cls, value: Any) -> "Outcome":
        """Record a fulfilled input."""
        return cls(status=OutcomeStatus.FULFILLED, value=value)

    @classmethod
    def rejected(cls, error: Exception) -> "Outcome":
        """Record a rejected input."""
        return cls(status=OutcomeStatus.REJECTED, error=error)


def _as_task(scheduler: Scheduler, candidate: Any) -> Task:
    if isinstance(candidate, Task):
        return candidate
    return Task.resolved(scheduler, candidate)


def chain(scheduler: Scheduler, start: Any, steps: Sequence[Step]) -> Task:
    """Run :code:`steps` sequentially, feeding each the value of the previous one.

    Parameters
    ----------
    scheduler : Scheduler
        The run-loop to schedule the steps on.
    start : Any
        The value handed to the first step.
    steps : Sequence[Callable]
        Functions taking the previous value and returning a task or a plain value.

    Returns
    -------
    Task
        Fulfills with the value of the last step or rejects with the first error. No step
        runs after a rejection.
    """
    output = Task(scheduler, name="chain")
    steps = list(steps)

    def _run_step(index: int, value: Any) -> None:
        if index == len(steps):
            output.settle_value(value)
            return
        try:
            result = steps[index](value)
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            logger.debug("chain step %d raised %r", index, error)
            output.settle_error(error)
            return
        _as_task(scheduler, result).on_settle(
            lambda next_value: _run_step(index + 1, next_value), output.settle_error
        )

    scheduler.call_soon(_run_step, 0, start)
    return output


def all_of(scheduler: Scheduler, tasks: Iterable[Any]) -> Task:
    """Fulfill with the list of all values once every input fulfilled.

    Rejects with the error of the first input that rejects. Values of inputs still pending
    at that point are discarded.
    """
    inputs = [_as_task(scheduler, task) for task in tasks]
    output = Task(scheduler, name="all_of")
    if not inputs:
        output.settle_value([])
        return output
    values: list[Any] = [None] * len(inputs)
    remaining = len(inputs)

    def _collect(index: int, value: Any) -> None:
        nonlocal remaining
        values[index] = value
        remaining -= 1
        if remaining == 0:
            output.settle_value(values)

    for index, task in enumerate(inputs):
        task.on_settle(
            lambda value, index=index: _collect(index, value), output.settle_error
        )
    return output


def race(scheduler: Scheduler, tasks: Iterable[Any]) -> Task:
    """Settle like the first input that settles.

    The other inputs are not cancelled, their outcome is ignored. Racing zero inputs is a
    caller error: the returned task never settles.
    """
    inputs = [_as_task(scheduler, task) for task in tasks]
    output = Task(scheduler, name="race")
    if not inputs:
        logger.warning("race called without inputs, the returned task will never settle")
        return output
    for task in inputs:
        task.on_settle(output.settle_value, output.settle_error)
    return output


def all_settled(scheduler: Scheduler, tasks: Iterable[Any]) -> Task:
    """Fulfill with one :code:`Outcome` per input, in input order, once all inputs settled.

    Never rejects.
    """
    inputs = [_as_task(scheduler, task) for task in tasks]
    output = Task(scheduler, name="all_settled")
    if not inputs:
        output.settle_value([])
        return output
    outcomes: list[Outcome | None] = [None] * len(inputs)
    remaining = len(inputs)

    def _record(index: int, outcome: Outcome) -> None:
        nonlocal remaining
        outcomes[index] = outcome
        remaining -= 1
        if remaining == 0:
            output.settle_value(outcomes)

    for index, task in enumerate(inputs):
        task.on_settle(
            lambda value, index=index: _record(index, Outcome.fulfilled(value)),
            lambda error, index=index: _record(index, Outcome.rejected(error)),
        )
    return output
