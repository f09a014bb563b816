"""Test-matrix driver.

One epoch runs the idle baseline (C1) and then, for every backend and depth:

- 1A / 1B: read-heavy and write-heavy without an index
- 2A / 2B: read-heavy and write-heavy with the index

Each index variant starts from a freshly cleaned and reloaded store. Windows
never overlap: every run closes its window before the next one opens.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from pathlib import Path

from hierbench.backends.base import DatabaseBackend
from hierbench.common.errors import BackendConnectionError
from hierbench.common.fixtures import load_fixture
from hierbench.common.instrumentation import PowerMonitor, measure_idle
from hierbench.common.metrics_schema import MeasurementRecord
from hierbench.common.result_writer import ResultWriter
from hierbench.common.scheduler import WorkloadShape
from hierbench.config.config_loader import BenchmarkConfig, WorkloadConfig

logger = logging.getLogger(__name__)

IDLE_TEST_ID = "C1"
_TEST_IDS = {
    (WorkloadShape.READ_HEAVY, False): "1A",
    (WorkloadShape.WRITE_HEAVY, False): "1B",
    (WorkloadShape.READ_HEAVY, True): "2A",
    (WorkloadShape.WRITE_HEAVY, True): "2B",
}


def matrix_id_for(shape: WorkloadShape, use_index: bool) -> str:
    return _TEST_IDS[(shape, use_index)]


def measurement_label(
    backend_name: str,
    shape: WorkloadShape,
    depth: int,
    epoch: int,
    use_index: bool,
) -> str:
    """Name of the energy artifact for one test combination."""
    suffix = "_with_index" if use_index else ""
    return f"{backend_name}_{shape.value}_depth_{depth}_epoch_{epoch}{suffix}.csv"


def idle_label(epoch: int) -> str:
    return f"Control Test C1 epoch {epoch}.csv"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


async def run_measured(
    backend: DatabaseBackend,
    shape: WorkloadShape,
    depth: int,
    use_index: bool,
    num_docs: int,
    epoch: int,
    num_reads: int,
    num_writes: int,
) -> MeasurementRecord:
    """Run one workload and return its record.

    ``duration_ms`` times the scheduled reads and writes only.
    """
    label = measurement_label(backend.name, shape, depth, epoch, use_index)
    result = await backend.run_workload(depth, num_reads, num_writes, use_index, num_docs, label)
    duration_ms = result.elapsed_seconds * 1000.0

    return MeasurementRecord(
        backend=backend.name,
        workload=shape.value,
        test_id=matrix_id_for(shape, use_index),
        depth=depth,
        epoch=epoch,
        use_index=use_index,
        duration_ms=duration_ms,
        energy_artifact=str(backend.monitor.artifact_path(label)),
        num_reads=num_reads,
        num_writes=num_writes,
        num_docs=num_docs,
    )


async def run_read_heavy(
    backend: DatabaseBackend,
    depth: int,
    use_index: bool,
    num_docs: int,
    epoch: int,
    num_reads: int = 1000,
    num_writes: int = 200,
) -> float:
    """Run the read-heavy workload and return elapsed milliseconds."""
    record = await run_measured(
        backend, WorkloadShape.READ_HEAVY, depth, use_index, num_docs, epoch, num_reads, num_writes
    )
    return record.duration_ms


async def run_write_heavy(
    backend: DatabaseBackend,
    depth: int,
    use_index: bool,
    num_docs: int,
    epoch: int,
    num_reads: int = 200,
    num_writes: int = 1000,
) -> float:
    """Run the write-heavy workload and return elapsed milliseconds."""
    record = await run_measured(
        backend, WorkloadShape.WRITE_HEAVY, depth, use_index, num_docs, epoch, num_reads, num_writes
    )
    return record.duration_ms


async def measure_idle_energy_consumption(
    monitor: PowerMonitor,
    epoch: int,
    duration_s: float = 1800.0,
) -> MeasurementRecord:
    """Record the idle baseline for *epoch*."""
    start = time.perf_counter()
    artifact = await measure_idle(monitor, idle_label(epoch), duration_s)
    return MeasurementRecord(
        backend="idle",
        workload="idle",
        test_id=IDLE_TEST_ID,
        depth=None,
        epoch=epoch,
        use_index=False,
        duration_ms=_elapsed_ms(start),
        energy_artifact=str(artifact),
    )


async def clean_and_insert_data(
    backend: DatabaseBackend,
    depth: int,
    fixtures_dir: str | Path,
    batch_size: int = 1000,
) -> int:
    """Reload the store with the fixture for *depth*; returns documents loaded."""
    documents = load_fixture(depth, fixtures_dir)
    if not backend.is_connected:
        await backend.connect()
    await backend.clean()
    await backend.insert(batch_size, documents)
    return len(documents)


async def _run_depth(
    backend: DatabaseBackend,
    depth: int,
    epoch: int,
    workload: WorkloadConfig,
    fixtures_dir: str | Path,
    writer: ResultWriter,
) -> None:
    for use_index in (False, True):
        await clean_and_insert_data(backend, depth, fixtures_dir, workload.insert_batch_size)
        runs = (
            (WorkloadShape.READ_HEAVY, workload.read_heavy_reads, workload.read_heavy_writes),
            (WorkloadShape.WRITE_HEAVY, workload.write_heavy_reads, workload.write_heavy_writes),
        )
        for shape, num_reads, num_writes in runs:
            record = await run_measured(
                backend, shape, depth, use_index, workload.num_docs, epoch, num_reads, num_writes
            )
            writer.write(record)
            print(
                f"Test {record.test_id} - {backend.name} Depth {depth}: "
                f"Epoch: {epoch} {record.duration_ms:.0f}ms"
            )


async def run_matrix(
    backends: Sequence[DatabaseBackend],
    config: BenchmarkConfig,
    monitor: PowerMonitor,
    writer: ResultWriter,
    include_idle: bool = True,
) -> list[MeasurementRecord]:
    """Run every (epoch, backend, depth, index flag) combination.

    A connection error aborts the remaining combinations of that backend
    only; any other error aborts the whole matrix. Backends are always
    disconnected on the way out.
    """
    workload = config.workload
    fixtures_dir = config.output.fixtures_dir

    for epoch in workload.epochs:
        if include_idle:
            print(f"Control Test {IDLE_TEST_ID} - epoch {epoch}")
            record = await measure_idle_energy_consumption(
                monitor, epoch, config.instrumentation.idle_duration_s
            )
            writer.write(record)

        for backend in backends:
            try:
                await backend.connect()
                for depth in workload.depths:
                    await _run_depth(backend, depth, epoch, workload, fixtures_dir, writer)
            except BackendConnectionError as exc:
                logger.error("Skipping remaining %s tests for epoch %d: %s", backend.name, epoch, exc)
            finally:
                await backend.disconnect()

    return writer.records
