"""Deferred tasks, task combinators and backpressure-aware streams on a cooperative run-loop."""

from flowprep._version import get_versions

__version__ = get_versions()["version"]
