"""Measurement record schema shared by the harness and the comparison report.

All records include the same key set; missing values are stored as ``None``
(serialized as ``null`` in JSON) rather than omitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

REQUIRED_FIELDS: tuple[str, ...] = (
    "backend",
    "workload",
    "test_id",
    "depth",
    "epoch",
    "use_index",
    "num_reads",
    "num_writes",
    "num_docs",
    "duration_ms",
    "energy_artifact",
    "timestamp",
    "run_id",
)


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class MeasurementRecord:
    """One measured test combination.

    ``workload`` is ``"read_heavy"``, ``"write_heavy"`` or ``"idle"``;
    ``test_id`` is the matrix label (``"1A"``, ``"1B"``, ``"2A"``, ``"2B"``,
    ``"C1"``).
    """

    backend: str
    workload: str
    test_id: str
    depth: int | None
    epoch: int
    use_index: bool
    duration_ms: float
    energy_artifact: str | None = None
    num_reads: int | None = None
    num_writes: int | None = None
    num_docs: int | None = None
    run_id: str | None = None
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        """Convert record to a JSON-serialisable dict with fixed key set."""
        return {
            "backend": self.backend,
            "workload": self.workload,
            "test_id": self.test_id,
            "depth": self.depth,
            "epoch": int(self.epoch),
            "use_index": bool(self.use_index),
            "num_reads": self.num_reads,
            "num_writes": self.num_writes,
            "num_docs": self.num_docs,
            "duration_ms": float(self.duration_ms),
            "energy_artifact": self.energy_artifact,
            "timestamp": self.timestamp,
            "run_id": self.run_id,
        }


def normalize_measurement_record(record: dict[str, Any]) -> dict[str, Any]:
    """Normalize an input record to the schema key set.

    Missing fields are set to ``None``; unknown keys are dropped.
    """
    return {key: record.get(key, None) for key in REQUIRED_FIELDS}
