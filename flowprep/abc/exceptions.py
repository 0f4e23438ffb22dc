"""abstract module for exceptions"""


class FlowprepException(Exception):
    """Base class for flowprep related exceptions."""

    def __init__(self, message: str, *args) -> None:
        self.message = message
        super().__init__(message, *args)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FlowprepException):
            return self.args == other.args
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.__class__, self.args))


class ContractViolation(FlowprepException):
    """Misuse of the runtime by the caller, e.g. pushing to an ended stream.

    Must not be caught. It is raised synchronously at the offending call site and is never
    carried as a rejection value.
    """


class OperationError(FlowprepException):
    """An external asynchronous operation failed."""


class TaskTimeoutError(OperationError):
    """A timeout task expired before the operation it was raced against settled."""
