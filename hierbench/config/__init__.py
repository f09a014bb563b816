"""Configuration module for hierbench."""

from hierbench.config.config_loader import (
    BenchmarkConfig,
    ConfigLoader,
    InstrumentationConfig,
    MongoConfig,
    OutputConfig,
    PostgresConfig,
    WorkloadConfig,
)

__all__ = [
    "BenchmarkConfig",
    "ConfigLoader",
    "InstrumentationConfig",
    "MongoConfig",
    "OutputConfig",
    "PostgresConfig",
    "WorkloadConfig",
]
