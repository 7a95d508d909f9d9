"""Async Fan-out - concurrent service dispatch with failure-handling policies."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("async-fanout")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"
