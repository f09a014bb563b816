"""Exception hierarchy shared by the benchmark core.

Query and statement failures raised by the database drivers are not wrapped;
they propagate to the caller unchanged.
"""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for all hierbench errors."""


class InvalidConfigurationError(BenchmarkError, ValueError):
    """A run was configured in a way that cannot be executed.

    Always raised before any backend I/O is attempted.
    """


class BackendConnectionError(BenchmarkError, RuntimeError):
    """A backend could not be reached, or was used before ``connect()``."""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class InstrumentationError(BenchmarkError, RuntimeError):
    """The external power sampler could not be started or died early."""
