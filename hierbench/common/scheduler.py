"""Ratio-driven read/write interleaving.

Both workload shapes use the same loop: ``outer`` iterations, each running
``inner`` operations of the dominant kind followed by exactly one operation of
the other kind.

- read-heavy:  ``outer = num_writes``, ``inner = num_reads // num_writes``
- write-heavy: ``outer = num_reads``,  ``inner = num_writes // num_reads``

Integer division truncates and the remainder is dropped, so a 1000:300
read-heavy request executes 900 reads and 300 writes. Operations are awaited
one at a time; the first failing operation aborts the run.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidConfigurationError

logger = logging.getLogger(__name__)


class WorkloadShape(str, Enum):
    READ_HEAVY = "read_heavy"
    WRITE_HEAVY = "write_heavy"


def shape_for(num_reads: int, num_writes: int) -> WorkloadShape:
    """Pick the shape implied by the requested operation counts."""
    if num_reads > num_writes:
        return WorkloadShape.READ_HEAVY
    return WorkloadShape.WRITE_HEAVY


@dataclass(frozen=True)
class InterleavingPlan:
    """Loop bounds for one scheduled run."""

    shape: WorkloadShape
    outer: int
    inner: int

    @property
    def total_reads(self) -> int:
        if self.shape is WorkloadShape.READ_HEAVY:
            return self.outer * self.inner
        return self.outer

    @property
    def total_writes(self) -> int:
        if self.shape is WorkloadShape.READ_HEAVY:
            return self.outer
        return self.outer * self.inner


def plan_interleaving(shape: WorkloadShape, num_reads: int, num_writes: int) -> InterleavingPlan:
    """Compute the loop bounds for *shape*.

    Raises
    ------
    InvalidConfigurationError
        If a count is negative or the ratio denominator (``num_writes`` for
        read-heavy, ``num_reads`` for write-heavy) is zero.
    """
    if num_reads < 0 or num_writes < 0:
        raise InvalidConfigurationError(
            f"operation counts must be non-negative; got reads={num_reads}, writes={num_writes}"
        )

    if shape is WorkloadShape.READ_HEAVY:
        if num_writes == 0:
            raise InvalidConfigurationError(
                "read-heavy workload needs num_writes > 0 to derive the read:write ratio"
            )
        return InterleavingPlan(shape=shape, outer=num_writes, inner=num_reads // num_writes)

    if num_reads == 0:
        raise InvalidConfigurationError(
            "write-heavy workload needs num_reads > 0 to derive the write:read ratio"
        )
    return InterleavingPlan(shape=shape, outer=num_reads, inner=num_writes // num_reads)


class WorkloadTarget(ABC):
    """Prepared backend operations driven by the scheduler.

    Implementations hold the compiled read query and write statement for one
    depth and execute them against the backend connection they were built
    from.
    """

    @abstractmethod
    async def execute_read(self) -> None:
        """Run the read query once and fully drain its results."""
        ...

    @abstractmethod
    async def execute_write(self) -> None:
        """Run the targeted update once against all matching documents."""
        ...


@dataclass
class ScheduleResult:
    """Counts and timing of a completed schedule."""

    shape: WorkloadShape
    reads: int
    writes: int
    elapsed_seconds: float


async def run_schedule(target: WorkloadTarget, plan: InterleavingPlan) -> ScheduleResult:
    """Execute *plan* against *target* and return what was executed."""
    reads = 0
    writes = 0
    start = time.perf_counter()

    if plan.shape is WorkloadShape.READ_HEAVY:
        for _ in range(plan.outer):
            for _ in range(plan.inner):
                await target.execute_read()
                reads += 1
            await target.execute_write()
            writes += 1
    else:
        for _ in range(plan.outer):
            for _ in range(plan.inner):
                await target.execute_write()
                writes += 1
            await target.execute_read()
            reads += 1

    elapsed = time.perf_counter() - start
    logger.debug(
        "Schedule %s finished: %d reads, %d writes in %.3fs",
        plan.shape.value,
        reads,
        writes,
        elapsed,
    )
    return ScheduleResult(shape=plan.shape, reads=reads, writes=writes, elapsed_seconds=elapsed)
