"""Errors raised while the Factory turns stream definitions into streams."""

from flowprep.abc.exceptions import FlowprepException


class FactoryError(FlowprepException):
    """Base class for errors of the stream Factory."""


class InvalidConfigurationError(FactoryError):
    """Raise if a stream definition can not be turned into a stream."""


class InvalidConfigSpecificationError(InvalidConfigurationError):
    """Raise if a stream definition or its configuration is not a mapping."""

    def __init__(self, stream_name=None):
        if stream_name:
            super().__init__(f'The configuration of stream "{stream_name}" must be a mapping.')
        else:
            super().__init__("A stream definition must map the stream name to its configuration.")


class NoTypeSpecifiedError(InvalidConfigurationError):
    """Raise if a stream configuration lacks the :code:`type` key."""

    def __init__(self, stream_name=None):
        message = "The stream type is missing"
        if stream_name:
            message += f" in the configuration of '{stream_name}'"
        super().__init__(message)


class UnknownComponentTypeError(FactoryError):
    """Raise if no stream class is registered for the configured :code:`type`."""

    def __init__(self, stream_name, stream_type):
        super().__init__(f"Unknown type '{stream_type}' for '{stream_name}'")
