"""This module contains helper functions that are shared by different modules."""

import re


def camel_to_snake(camel: str) -> str:
    """ensures that the input string is snake_case"""

    _underscorer1 = re.compile(r"(.)([A-Z][a-z]+)")
    _underscorer2 = re.compile("([a-z0-9])([A-Z])")

    subbed = _underscorer1.sub(r"\1_\2", camel)
    return _underscorer2.sub(r"\1_\2", subbed).lower()


def describe_callable(callback) -> str:
    """Return a readable name for a callable, used in log messages."""
    callback_self = getattr(callback, "__self__", None)
    name = getattr(callback, "__qualname__", None) or getattr(callback, "__name__", None)
    if name is None:
        return repr(callback)
    if callback_self is not None and "." not in name:
        return f"{callback_self.__class__.__name__}.{name}"
    return name
