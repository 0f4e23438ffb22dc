"""
Task
====

A task is a single deferred computation that settles exactly once, either with a value or with
an error. Continuations registered on a task always run on the task's scheduler, never
synchronously, and in the order they were registered.

Example
^^^^^^^
..  code-block:: python

    scheduler = Scheduler()

    def read_user(settle_value, settle_error):
        scheduler.call_later(0.1, settle_value, {"name": "ada"})

    task = Task(scheduler, read_user)
    names = task.then(lambda user: user["name"])
    assert scheduler.run_until_settled(names) == "ada"
"""

import logging
from collections.abc import Callable, Generator
from typing import Any, Generic, TypeVar

from flowprep.abc.exceptions import ContractViolation
from flowprep.runtime.scheduler import Scheduler
from flowprep.runtime.task_state import TaskState, TaskStateType

logger = logging.getLogger("Task")

T = TypeVar("T")

ValueHandler = Callable[[Any], Any]
ErrorHandler = Callable[[Exception], Any]


class Task(Generic[T]):
    """Deferred value with an ordered list of continuations."""

    __slots__ = (
        "_scheduler",
        "_state",
        "_value",
        "_error",
        "_continuations",
        "_adopting",
        "handled",
        "name",
    )

    def __init__(
        self,
        scheduler: Scheduler,
        executor: Callable[[Callable[[Any], None], Callable[[Exception], None]], Any] | None = None,
        name: str | None = None,
    ) -> None:
        """
        Parameters
        ----------
        scheduler : Scheduler
            The run-loop the continuations of this task are executed on.
        executor : Callable, optional
            Invoked synchronously with :code:`settle_value` and :code:`settle_error`.
            An executor that raises rejects the task with the raised exception.
        name : str, optional
            Name used in log messages.
        """
        self._scheduler = scheduler
        self._state = TaskState()
        self._value: Any = None
        self._error: Exception | None = None
        self._continuations: list[tuple[ValueHandler | None, ErrorHandler | None]] = []
        self._adopting = False
        self.handled = False
        self.name = name
        if executor is None:
            return
        if not callable(executor):
            raise ContractViolation(f"executor must be callable, got {type(executor).__name__}")
        try:
            executor(self.settle_value, self.settle_error)
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            self.settle_error(error)

    @classmethod
    def resolved(cls, scheduler: Scheduler, value: Any = None) -> "Task":
        """Return a task fulfilled with :code:`value`."""
        task = cls(scheduler)
        task.settle_value(value)
        return task

    @classmethod
    def rejected(cls, scheduler: Scheduler, error: Exception) -> "Task":
        """Return a task rejected with :code:`error`."""
        task = cls(scheduler)
        task.settle_error(error)
        return task

    @property
    def scheduler(self) -> Scheduler:
        """The scheduler this task runs its continuations on."""
        return self._scheduler

    @property
    def state(self) -> TaskStateType:
        """The current lifecycle state."""
        return self._state.current_state

    @property
    def error(self) -> Exception | None:
        """The rejection error without marking the rejection as handled."""
        return self._error

    def done(self) -> bool:
        """Whether the task has settled."""
        return self._state.is_settled

    def result(self) -> T:
        """Return the value, raise the error, or raise :code:`ContractViolation` if pending."""
        if not self.done():
            raise ContractViolation(f"{self!r} has not settled yet")
        if self._error is not None:
            self.handled = True
            raise self._error
        return self._value

    def exception(self) -> Exception | None:
        """Return the rejection error or None; raises :code:`ContractViolation` if pending."""
        if not self.done():
            raise ContractViolation(f"{self!r} has not settled yet")
        self.handled = True
        return self._error

    def settle_value(self, value: Any = None) -> None:
        """Fulfill the task. A task value adopts the outcome of that task.

        Calls after the task settled, or after it started adopting another task, are ignored.
        """
        if self.done() or self._adopting:
            return
        if value is self:
            raise ContractViolation(f"{self!r} cannot be settled with itself")
        if isinstance(value, Task):
            self._adopting = True
            value.on_settle(self._adopt_value, self._adopt_error)
            return
        self._value = value
        self._state.settle(success=True)
        self._schedule_continuations()

    def settle_error(self, error: Exception) -> None:
        """Reject the task. Calls after the task settled are ignored."""
        if self.done() or self._adopting:
            return
        if not isinstance(error, Exception):
            raise ContractViolation(
                f"tasks must be rejected with an exception, got {type(error).__name__}"
            )
        self._error = error
        self._state.settle(success=False)
        if not self.handled:
            self._scheduler.track_rejection(self)
        self._schedule_continuations()

    def on_settle(
        self, on_value: ValueHandler | None = None, on_error: ErrorHandler | None = None
    ) -> None:
        """Register continuations.

        The matching continuation runs as a new item on the scheduler once the task settled,
        also if the task is already settled.
        """
        if on_error is not None:
            self.handled = True
        self._continuations.append((on_value, on_error))
        if self.done():
            self._schedule(on_value, on_error)

    def then(
        self, on_value: ValueHandler | None = None, on_error: ErrorHandler | None = None
    ) -> "Task":
        """Return a task settled by the result of the matching handler.

        A missing handler passes the outcome through. A handler returning a task is adopted,
        a raising handler rejects the returned task.
        """
        derived = Task(self._scheduler, name=self.name)

        def _handle_value(value: Any) -> None:
            if on_value is None:
                derived.settle_value(value)
                return
            derived._run_handler(on_value, value)  # pylint: disable=protected-access

        def _handle_error(error: Exception) -> None:
            if on_error is None:
                derived.settle_error(error)
                return
            derived._run_handler(on_error, error)  # pylint: disable=protected-access

        self.on_settle(_handle_value, _handle_error)
        return derived

    def catch(self, on_error: ErrorHandler) -> "Task":
        """Shorthand for :code:`then(None, on_error)`."""
        return self.then(None, on_error)

    def _run_handler(self, handler: Callable, argument: Any) -> None:
        try:
            result = handler(argument)
        except ContractViolation:
            raise
        except Exception as error:  # pylint: disable=broad-except
            self.settle_error(error)
            return
        self.settle_value(result)

    def _adopt_value(self, value: Any) -> None:
        self._adopting = False
        self.settle_value(value)

    def _adopt_error(self, error: Exception) -> None:
        self._adopting = False
        self.settle_error(error)

    def _schedule_continuations(self) -> None:
        for on_value, on_error in self._continuations:
            self._schedule(on_value, on_error)

    def _schedule(self, on_value: ValueHandler | None, on_error: ErrorHandler | None) -> None:
        if self._error is None:
            if on_value is not None:
                self._scheduler.call_soon(on_value, self._value)
            return
        if on_error is not None:
            self._scheduler.call_soon(on_error, self._error)

    def __await__(self) -> Generator["Task", Any, T]:
        yield self
        return self.result()

    def __repr__(self) -> str:
        name = f" {self.name}" if self.name else ""
        return f"<Task{name} {self.state}>"
