"""Tests for the measurement record schema and writers."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from hierbench.common.metrics_schema import (
    REQUIRED_FIELDS,
    MeasurementRecord,
    normalize_measurement_record,
)
from hierbench.common.result_writer import (
    CSV_FIELD_ORDER,
    ResultWriter,
    append_jsonl_record,
    export_jsonl_to_csv,
)


def _record(**overrides) -> MeasurementRecord:
    values = dict(
        backend="MongoDB",
        workload="read_heavy",
        test_id="1A",
        depth=3,
        epoch=1,
        use_index=False,
        duration_ms=12.5,
    )
    values.update(overrides)
    return MeasurementRecord(**values)


def test_record_contains_all_required_fields():
    record = _record().to_dict()
    for key in REQUIRED_FIELDS:
        assert key in record
    assert record["energy_artifact"] is None
    assert record["num_reads"] is None


def test_normalize_fills_missing_with_none_and_drops_unknown():
    normalized = normalize_measurement_record({"backend": "PostgreSQL", "extra": 1})
    assert set(normalized) == set(REQUIRED_FIELDS)
    assert normalized["backend"] == "PostgreSQL"
    assert normalized["depth"] is None


def test_append_jsonl_record_writes_one_line_per_record(tmp_path: Path):
    path = tmp_path / "out" / "measurements.jsonl"
    append_jsonl_record(path, _record())
    append_jsonl_record(path, _record(test_id="1B", workload="write_heavy"))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["test_id"] for line in lines] == ["1A", "1B"]


def test_export_csv_uses_stable_column_order(tmp_path: Path):
    jsonl = tmp_path / "measurements.jsonl"
    append_jsonl_record(jsonl, {"duration_ms": 3.0, "backend": "MongoDB"})
    csv_path = export_jsonl_to_csv(jsonl, tmp_path / "measurements.csv")

    with csv_path.open(encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle)
        header = next(reader)
    assert header == list(CSV_FIELD_ORDER)


def test_result_writer_stamps_run_id(tmp_path: Path):
    writer = ResultWriter(tmp_path, run_id="run-1")
    writer.write(_record())
    writer.write(_record(run_id="explicit"))

    assert [r.run_id for r in writer.records] == ["run-1", "explicit"]
    assert writer.export_csv() == tmp_path / "measurements.csv"


def test_result_writer_exports_header_only_csv_without_records(tmp_path: Path):
    writer = ResultWriter(tmp_path / "run")

    csv_path = writer.export_csv()

    lines = csv_path.read_text(encoding="utf-8").splitlines()
    assert lines == [",".join(CSV_FIELD_ORDER)]
    assert not writer.path.exists()
