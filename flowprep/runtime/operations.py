"""
Operations
==========

Adapters turning external asynchronous operations into tasks.

- :code:`delay` and :code:`timeout` are timer backed tasks. A timeout raced against real work
  bounds that work without cancelling it.
- :code:`from_callback` adapts error-first callback APIs.
- :code:`from_callable` runs a plain function on the next scheduler iteration.
- :code:`spawn` drives an :code:`async def` coroutine that awaits tasks.

Example
^^^^^^^
..  code-block:: python

    async def read_files(read):
        first = await read("file1.txt")
        second = await read("file2.txt")
        return first + second

    scheduler = Scheduler()
    task = spawn(scheduler, read_files(lambda path: from_callable(scheduler, load, path)))
    content = scheduler.run_until_settled(task)
"""

import inspect
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from flowprep.abc.exceptions import ContractViolation, OperationError, TaskTimeoutError
from flowprep.runtime.scheduler import Scheduler
from flowprep.runtime.task import Task
from flowprep.util.helper import describe_callable

logger = logging.getLogger("Task")


def delay(scheduler: Scheduler, seconds: float, value: Any = None) -> Task:
    """Return a task fulfilling with :code:`value` after :code:`seconds`."""

    def _executor(settle_value, _):
        scheduler.call_later(seconds, settle_value, value)

    return Task(scheduler, _executor, name=f"delay({seconds})")


def timeout(scheduler: Scheduler, seconds: float, message: str = "operation timed out") -> Task:
    """Return a task rejecting with :code:`TaskTimeoutError` after :code:`seconds`."""

    def _executor(_, settle_error):
        scheduler.call_later(seconds, settle_error, TaskTimeoutError(message))

    return Task(scheduler, _executor, name=f"timeout({seconds})")


def from_callback(scheduler: Scheduler, function: Callable, *args: Any) -> Task:
    """Call :code:`function(*args, callback)` and settle with what the callback reports.

    The callback follows the error-first convention :code:`callback(error, value)`. Errors
    that are not exceptions are wrapped into :code:`OperationError`. Only the first
    invocation of the callback counts.
    """

    def _executor(settle_value, settle_error):
        def _callback(error: Any = None, value: Any = None) -> None:
            if error is None:
                settle_value(value)
                return
            if not isinstance(error, Exception):
                error = OperationError(str(error))
            settle_error(error)

        function(*args, _callback)

    return Task(scheduler, _executor, name=describe_callable(function))


def from_callable(scheduler: Scheduler, function: Callable, *args: Any, **kwargs: Any) -> Task:
    """Run :code:`function` on the next iteration and settle with its outcome."""
    task = Task(scheduler, name=describe_callable(function))

    def _run() -> None:
        try:
            value = function(*args, **kwargs)
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            task.settle_error(error)
            return
        task.settle_value(value)

    scheduler.call_soon(_run)
    return task


def spawn(scheduler: Scheduler, coroutine: Coroutine, name: str | None = None) -> Task:
    """Drive :code:`coroutine` on the scheduler and return a task for its outcome.

    The coroutine body runs synchronously up to its first :code:`await`. Every awaited task
    resumes the coroutine in a later scheduler iteration.

    Raises
    ------
    ContractViolation
        If :code:`coroutine` is not a coroutine object.
    """
    if not inspect.iscoroutine(coroutine):
        raise ContractViolation(f"spawn expects a coroutine, got {type(coroutine).__name__}")
    output = Task(scheduler, name=name or coroutine.__qualname__)

    def _resume(error: Exception | None = None) -> None:
        try:
            if error is None:
                awaited = coroutine.send(None)
            else:
                awaited = coroutine.throw(error)
        except StopIteration as stop:
            output.settle_value(stop.value)
            return
        except ContractViolation:
            raise
        except Exception as raised:  # pylint: disable=broad-except
            output.settle_error(raised)
            return
        if not isinstance(awaited, Task) or awaited.scheduler is not scheduler:
            logger.debug("%r awaited %r which is not a task of %r", output, awaited, scheduler)
            violation = ContractViolation(
                f"coroutines spawned on '{scheduler.name}' can only await its tasks, "
                f"got {type(awaited).__name__}"
            )
            scheduler.call_soon(_resume, violation)
            return
        awaited.on_settle(lambda _: _resume(), lambda _: _resume())

    _resume()
    return output
