"""
Scheduler
=========

The scheduler is the single-threaded cooperative run-loop every task, combinator and stream of
one pipeline instance runs on. It is an ordinary object: create one per pipeline instance and
hand it to everything that belongs to that instance.

One iteration (:code:`step`) consists of

1. draining the FIFO queue of ready continuations completely, including continuations that are
   appended while draining,
2. reporting task rejections that are still unhandled,
3. firing every timer whose deadline has elapsed, each at most once.

Example
^^^^^^^
..  code-block:: python

    scheduler = Scheduler()
    scheduler.call_later(0.5, print, "half a second later")
    scheduler.call_soon(print, "first")
    scheduler.run()
"""

import heapq
import itertools
import logging
import time
from collections import deque
from functools import cached_property
from typing import TYPE_CHECKING, Any, Callable, Protocol

from attrs import define, field

from flowprep.abc.component import Component
from flowprep.abc.exceptions import ContractViolation
from flowprep.metrics.metrics import CounterMetric
from flowprep.util.helper import describe_callable

if TYPE_CHECKING:  # pragma: no cover
    from flowprep.runtime.task import Task

logger = logging.getLogger("Scheduler")


class Clock(Protocol):
    """Time source of a scheduler."""

    def time(self) -> float:
        """Return the current time in seconds."""

    def sleep(self, seconds: float) -> None:
        """Block until :code:`seconds` have passed."""


class SystemClock:
    """Monotonic wall clock."""

    def time(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class VirtualClock:
    """Clock whose time only moves when somebody sleeps or advances it.

    Sleeping returns immediately, which makes timer heavy code deterministic and fast to test.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self.now += seconds

    def advance(self, seconds: float) -> None:
        """Move the clock forward by :code:`seconds`."""
        self.sleep(seconds)


class Timer:
    """A callback scheduled for a deadline. Returned by :code:`Scheduler.call_later`."""

    __slots__ = ("deadline", "sequence", "callback", "args", "cancelled")

    def __init__(self, deadline: float, sequence: int, callback: Callable, args: tuple) -> None:
        self.deadline = deadline
        self.sequence = sequence
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        """Prevent the callback from running. Cancelling a fired timer has no effect."""
        self.cancelled = True

    def __lt__(self, other: "Timer") -> bool:
        return (self.deadline, self.sequence) < (other.deadline, other.sequence)

    def __repr__(self) -> str:
        return f"<Timer {describe_callable(self.callback)} at {self.deadline:.6f}>"


class Scheduler:
    """Cooperative run-loop with a continuation queue and a timer heap."""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about a scheduler"""

        number_of_callbacks: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of executed continuations and timer callbacks",
                name="number_of_callbacks",
            )
        )
        """Number of executed continuations and timer callbacks"""

        number_of_fired_timers: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of timers that reached their deadline",
                name="number_of_fired_timers",
            )
        )
        """Number of timers that reached their deadline"""

        number_of_callback_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of callbacks that raised an exception",
                name="number_of_callback_errors",
            )
        )
        """Number of callbacks that raised an exception"""

        number_of_unhandled_rejections: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of task rejections nobody registered an error handler for",
                name="number_of_unhandled_rejections",
            )
        )
        """Number of task rejections nobody registered an error handler for"""

    def __init__(self, name: str = "scheduler", clock: Clock | None = None) -> None:
        self.name = name
        self._clock = clock if clock is not None else SystemClock()
        self._ready: deque[tuple[Callable, tuple]] = deque()
        self._timers: list[Timer] = []
        self._sequence = itertools.count()
        self._rejections: list["Task"] = []

    @cached_property
    def metrics(self):
        """create and return metrics object"""
        return self.Metrics(labels=self.metric_labels)

    @property
    def metric_labels(self) -> dict:
        """Labels for the metrics"""
        return {"component": "scheduler", "name": self.name, "description": "", "type": ""}

    @property
    def clock(self) -> Clock:
        """The time source of this scheduler."""
        return self._clock

    def time(self) -> float:
        """Current time of the scheduler clock."""
        return self._clock.time()

    def call_soon(self, callback: Callable, *args: Any) -> None:
        """Append a continuation to the ready queue."""
        self._ready.append((callback, args))

    def call_later(self, delay: float, callback: Callable, *args: Any) -> Timer:
        """Run :code:`callback` once :code:`delay` seconds have elapsed.

        Parameters
        ----------
        delay : float
            Seconds from now. Negative delays are treated as zero.
        callback : Callable
            The function to call.

        Returns
        -------
        Timer
            A handle that can be cancelled.
        """
        timer = Timer(self.time() + max(delay, 0), next(self._sequence), callback, args)
        heapq.heappush(self._timers, timer)
        return timer

    @property
    def has_pending_work(self) -> bool:
        """Whether continuations or live timers are queued."""
        return bool(self._ready) or self._next_deadline() is not None

    def step(self) -> bool:
        """Run one iteration of the loop.

        Returns
        -------
        bool
            True if there is still work queued afterwards.
        """
        self._drain_ready()
        self._report_unhandled_rejections()
        self._fire_due_timers()
        return self.has_pending_work

    def run(self) -> None:
        """Run until neither continuations nor timers are left."""
        while True:
            self.step()
            if self._ready:
                continue
            deadline = self._next_deadline()
            if deadline is None:
                return
            self._sleep_until(deadline)

    def run_until_settled(self, task: "Task") -> Any:
        """Run the loop until :code:`task` settled and return its result.

        Raises
        ------
        ContractViolation
            If the task belongs to another scheduler or the loop runs out of work while the
            task is still pending.
        Exception
            The error the task rejected with.
        """
        if task.scheduler is not self:
            raise ContractViolation(f"{task!r} is not bound to scheduler '{self.name}'")
        task.handled = True
        while not task.done():
            self.step()
            if task.done() or self._ready:
                continue
            deadline = self._next_deadline()
            if deadline is None:
                raise ContractViolation(
                    f"{task!r} can never settle: scheduler '{self.name}' ran out of work"
                )
            self._sleep_until(deadline)
        return task.result()

    def track_rejection(self, task: "Task") -> None:
        """Remember a rejected task that had no error handler when it rejected."""
        self._rejections.append(task)

    def _drain_ready(self) -> None:
        while self._ready:
            callback, args = self._ready.popleft()
            self._run_callback(callback, args)

    def _fire_due_timers(self) -> None:
        now = self.time()
        due = []
        while self._timers and self._timers[0].deadline <= now:
            timer = heapq.heappop(self._timers)
            if not timer.cancelled:
                due.append(timer)
        for timer in due:
            self.metrics.number_of_fired_timers += 1
            self._run_callback(timer.callback, timer.args)

    def _run_callback(self, callback: Callable, args: tuple) -> None:
        self.metrics.number_of_callbacks += 1
        try:
            callback(*args)
        except ContractViolation:
            raise
        except Exception:  # pylint: disable=broad-except
            self.metrics.number_of_callback_errors += 1
            logger.error(
                "Callback '%s' raised an exception", describe_callable(callback), exc_info=True
            )

    def _report_unhandled_rejections(self) -> None:
        if not self._rejections:
            return
        rejections, self._rejections = self._rejections, []
        for task in rejections:
            if task.handled:
                continue
            self.metrics.number_of_unhandled_rejections += 1
            logger.error("Unhandled rejection of %r: %r", task, task.error)

    def _next_deadline(self) -> float | None:
        while self._timers and self._timers[0].cancelled:
            heapq.heappop(self._timers)
        if not self._timers:
            return None
        return self._timers[0].deadline

    def _sleep_until(self, deadline: float) -> None:
        delay = deadline - self.time()
        if delay > 0:
            self._clock.sleep(delay)

    def __repr__(self) -> str:
        return f"<Scheduler {self.name}>"
