"""Result writers for measurement records."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

from .metrics_schema import REQUIRED_FIELDS, MeasurementRecord, normalize_measurement_record

CSV_FIELD_ORDER: tuple[str, ...] = REQUIRED_FIELDS


def append_jsonl_record(path: str | Path, record: MeasurementRecord | dict[str, Any]) -> Path:
    """Append one normalized measurement record to a JSONL file."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = record.to_dict() if isinstance(record, MeasurementRecord) else record
    normalized = normalize_measurement_record(payload)
    with target.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(normalized, ensure_ascii=False) + "\n")
    return target


def read_jsonl_records(path: str | Path) -> list[dict[str, Any]]:
    """Read normalized records from a JSONL file, skipping blank lines."""
    records: list[dict[str, Any]] = []
    with Path(path).open("r", encoding="utf-8") as handle:
        for line in handle:
            stripped = line.strip()
            if not stripped:
                continue
            records.append(normalize_measurement_record(json.loads(stripped)))
    return records


def write_csv_records(rows: list[dict[str, Any]], csv_path: str | Path) -> Path:
    """Write records to CSV with stable column order; no rows gives a header-only file."""
    target = Path(csv_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    with target.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(CSV_FIELD_ORDER))
        writer.writeheader()
        writer.writerows({key: row.get(key) for key in CSV_FIELD_ORDER} for row in rows)

    return target


def export_jsonl_to_csv(jsonl_path: str | Path, csv_path: str | Path) -> Path:
    """Export JSONL records to CSV with stable column order."""
    return write_csv_records(read_jsonl_records(jsonl_path), csv_path)


class ResultWriter:
    """Appends records of one run to ``<results_dir>/measurements.jsonl``."""

    FILENAME = "measurements.jsonl"

    def __init__(self, results_dir: str | Path, run_id: str | None = None):
        self.results_dir = Path(results_dir)
        self.run_id = run_id
        self.path = self.results_dir / self.FILENAME
        self.records: list[MeasurementRecord] = []

    def write(self, record: MeasurementRecord) -> MeasurementRecord:
        if record.run_id is None:
            record.run_id = self.run_id
        append_jsonl_record(self.path, record)
        self.records.append(record)
        return record

    def export_csv(self) -> Path:
        csv_path = self.results_dir / "measurements.csv"
        # Nothing is appended when every backend was skipped.
        if not self.path.exists():
            return write_csv_records([], csv_path)
        return export_jsonl_to_csv(self.path, csv_path)
