"""Shared building blocks for hierbench: generation, scheduling, instrumentation."""

from hierbench.common.data_generator import (
    READ_TARGET_SENTINEL,
    WRITE_TARGET_BYTE_SIZE,
    generate,
    generate_fixed_size_word,
)
from hierbench.common.errors import (
    BackendConnectionError,
    BenchmarkError,
    InstrumentationError,
    InvalidConfigurationError,
)
from hierbench.common.instrumentation import MeasurementWindow, PowerMonitor, measure_idle
from hierbench.common.scheduler import (
    InterleavingPlan,
    WorkloadShape,
    WorkloadTarget,
    plan_interleaving,
    run_schedule,
)

__all__ = [
    "READ_TARGET_SENTINEL",
    "WRITE_TARGET_BYTE_SIZE",
    "generate",
    "generate_fixed_size_word",
    "BenchmarkError",
    "BackendConnectionError",
    "InstrumentationError",
    "InvalidConfigurationError",
    "MeasurementWindow",
    "PowerMonitor",
    "measure_idle",
    "InterleavingPlan",
    "WorkloadShape",
    "WorkloadTarget",
    "plan_interleaving",
    "run_schedule",
]
