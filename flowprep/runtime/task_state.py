# type: ignore
# -> mypy does not correctly handle IntEnum or StrEnum in some cases

"""The task states and their transitions"""

from enum import StrEnum

from flowprep.abc.exceptions import ContractViolation


class TaskStateType(StrEnum):
    """Task states representing the lifecycle of a deferred computation."""

    PENDING = "pending"
    """The task has not settled yet."""

    FULFILLED = "fulfilled"
    """The task settled with a value."""

    REJECTED = "rejected"
    """The task settled with an error."""


class TaskState:
    """
    Guards the lifecycle of a task.

    A task starts in :code:`PENDING` and settles exactly once, either to
    :code:`FULFILLED` or to :code:`REJECTED`. Settled states are terminal.

    Examples
    --------
    >>> state = TaskState()
    >>> state.current_state
    <TaskStateType.PENDING: 'pending'>

    >>> state.settle(success=True)
    <TaskStateType.FULFILLED: 'fulfilled'>

    >>> state.is_settled
    True
    """

    _state_machine: dict[TaskStateType, list[TaskStateType]] = {
        TaskStateType.PENDING: [TaskStateType.FULFILLED, TaskStateType.REJECTED],
        TaskStateType.FULFILLED: [],
        TaskStateType.REJECTED: [],
    }

    __slots__ = ("current_state",)

    def __init__(self) -> None:
        self.current_state: TaskStateType = TaskStateType.PENDING

    @property
    def is_settled(self) -> bool:
        """Whether the task reached a terminal state."""
        return self.current_state is not TaskStateType.PENDING

    def settle(self, *, success: bool) -> TaskStateType:
        """
        Move from :code:`PENDING` to the terminal state matching the outcome.

        Parameters
        ----------
        success : bool
            True settles to :code:`FULFILLED`, False to :code:`REJECTED`.

        Returns
        -------
        TaskStateType
            The new current state.

        Raises
        ------
        ContractViolation
            If the task was already settled.
        """
        target = TaskStateType.FULFILLED if success else TaskStateType.REJECTED
        if target not in self._state_machine[self.current_state]:
            raise ContractViolation(
                f"Invalid state transition from {self.current_state} to {target}"
            )
        self.current_state = target
        return self.current_state

    def __str__(self) -> str:
        return f"<TaskState: {self.current_state}>"
