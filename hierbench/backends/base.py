"""
Backend interface for hierbench.

Defines the abstraction that lets the same hierarchical workload be executed
against differently-modelled data stores (MongoDB, PostgreSQL/JSONB).

Architecture
------------
- :class:`DatabaseBackend` – ABC that each store adapter implements.
- :func:`register_backend` – decorator to register an adapter class by name.
- :func:`get_backend`      – factory that returns a configured adapter by name.
- :func:`list_backends`    – enumerate all registered backend names.
- :func:`load_all_backends` – import the bundled adapters so they register.

Adding a new backend
--------------------
1. Create ``hierbench/backends/<name>_backend.py`` with a translator for its
   path syntax in :mod:`hierbench.backends.translators`.
2. Implement :class:`DatabaseBackend` and decorate with
   ``@register_backend("<name>")``.
3. Add the module to :data:`BUNDLED_BACKEND_MODULES`.
"""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from hierbench.backends.translators import validate_depth
from hierbench.common.errors import BackendConnectionError
from hierbench.common.instrumentation import PowerMonitor
from hierbench.common.scheduler import (
    ScheduleResult,
    WorkloadTarget,
    plan_interleaving,
    run_schedule,
    shape_for,
)

if TYPE_CHECKING:
    from hierbench.config.config_loader import BenchmarkConfig

logger = logging.getLogger(__name__)

BUNDLED_BACKEND_MODULES: tuple[str, ...] = (
    "hierbench.backends.mongodb_backend",
    "hierbench.backends.postgres_backend",
)


# ---------------------------------------------------------------------------
# Backend interface
# ---------------------------------------------------------------------------


class DatabaseBackend(ABC):
    """Abstract base class for benchmarked data stores.

    An adapter exclusively owns its client connection between
    :meth:`connect` and :meth:`disconnect`. Workload execution is shared:
    :meth:`run_workload` validates the request, optionally creates the
    index, asks the adapter for a prepared :class:`WorkloadTarget` and drives
    it inside a measurement window.
    """

    def __init__(self, monitor: PowerMonitor):
        self.monitor = monitor

    @property
    @abstractmethod
    def name(self) -> str:
        """Display label used in artifact names (e.g. ``"MongoDB"``)."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @classmethod
    @abstractmethod
    def from_config(cls, config: BenchmarkConfig, monitor: PowerMonitor) -> DatabaseBackend:
        """Build an adapter from the benchmark configuration."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Open the client connection.

        Raises
        ------
        BackendConnectionError
            If the store is unreachable or misconfigured.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the client connection; a no-op when not connected."""
        ...

    @abstractmethod
    async def clean(self) -> None:
        """Drop the benchmark table or collection."""
        ...

    @abstractmethod
    async def insert(self, batch_size: int, documents: list[dict[str, Any]]) -> None:
        """Bulk-load *documents* in chunks of *batch_size*."""
        ...

    @abstractmethod
    async def create_index(self, depth: int) -> None:
        """Create the read-path index for *depth*; safe to call repeatedly."""
        ...

    @abstractmethod
    async def prepare_workload(self, depth: int, doc_count: int) -> WorkloadTarget:
        """Compile the read query and write statement for *depth*."""
        ...

    def _require_connected(self) -> None:
        if not self.is_connected:
            raise BackendConnectionError(self.name, "not connected; call connect() first")

    async def run_workload(
        self,
        depth: int,
        num_reads: int,
        num_writes: int,
        use_index: bool,
        doc_count: int,
        measurement_label: str,
    ) -> ScheduleResult:
        """Run one interleaved workload inside a measurement window.

        Read-heavy when ``num_reads > num_writes``, write-heavy otherwise.
        Invalid depths and zero ratio denominators are rejected before any
        backend call. The window is closed even when an operation fails. The
        returned ``elapsed_seconds`` covers the scheduled operations only, not
        index creation or sampler start-up.
        """
        validate_depth(depth)
        plan = plan_interleaving(shape_for(num_reads, num_writes), num_reads, num_writes)
        self._require_connected()

        if use_index:
            await self.create_index(depth)

        target = await self.prepare_workload(depth, doc_count)
        logger.info(
            "%s: %s depth=%d index=%s (%d reads, %d writes)",
            self.name,
            plan.shape.value,
            depth,
            use_index,
            plan.total_reads,
            plan.total_writes,
        )
        async with self.monitor.window(measurement_label):
            return await run_schedule(target, plan)


# ---------------------------------------------------------------------------
# Registry and factory
# ---------------------------------------------------------------------------

_REGISTRY: dict[str, type[DatabaseBackend]] = {}


def register_backend(name: str):
    """Class decorator: register a :class:`DatabaseBackend` subclass by name.

    Example
    -------
    .. code-block:: python

        @register_backend("my_store")
        class MyStoreBackend(DatabaseBackend):
            ...
    """

    def decorator(cls: type[DatabaseBackend]) -> type[DatabaseBackend]:
        _REGISTRY[name.lower()] = cls
        return cls

    return decorator


def get_backend(backend: str, config: BenchmarkConfig, monitor: PowerMonitor) -> DatabaseBackend:
    """Instantiate and return the adapter registered as *backend*.

    Parameters
    ----------
    backend:
        Case-insensitive backend name (e.g. ``"mongodb"``).
    config:
        Benchmark configuration supplying connection settings.
    monitor:
        Power monitor that opens the adapter's measurement windows.

    Raises
    ------
    ValueError
        If *backend* has not been registered.
    """
    key = backend.lower()
    if key not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY)) or "(none registered)"
        raise ValueError(
            f"Unknown backend '{backend}'. Available backends: {available}. "
            f"Make sure the corresponding backend module is imported."
        )
    return _REGISTRY[key].from_config(config, monitor)


def list_backends() -> list[str]:
    """Return sorted list of all currently registered backend names."""
    return sorted(_REGISTRY)


def load_all_backends() -> list[str]:
    """Import the bundled adapters so they register, and list the result."""
    for module_name in BUNDLED_BACKEND_MODULES:
        importlib.import_module(module_name)
    return list_backends()
