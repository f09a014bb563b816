"""Tests for the MongoDB vs PostgreSQL comparison report."""

from __future__ import annotations

import math
from pathlib import Path

import pandas as pd
import pytest

from hierbench.analysis.compare_backends import (
    build_duration_summary,
    build_ratio_table,
    detect_config_mismatches,
    discover_result_files,
    load_normalized_records,
    run_comparison,
)
from hierbench.common.metrics_schema import MeasurementRecord
from hierbench.common.result_writer import ResultWriter


def _write_run(results_dir: Path, rows: list[dict[str, object]], run_id: str = "run-1") -> Path:
    writer = ResultWriter(results_dir, run_id=run_id)
    for row in rows:
        writer.write(MeasurementRecord(**row))
    return writer.export_csv()


def _row(backend: str, depth: int, duration: float, **overrides) -> dict[str, object]:
    row: dict[str, object] = dict(
        backend=backend,
        workload="read_heavy",
        test_id="1A",
        depth=depth,
        epoch=1,
        use_index=False,
        duration_ms=duration,
        num_reads=1000,
        num_writes=200,
        num_docs=3000,
    )
    row.update(overrides)
    return row


def test_discover_result_files_finds_nested_inputs(tmp_path: Path):
    first_csv = _write_run(tmp_path / "a", [_row("MongoDB", 3, 10.0)])
    _write_run(tmp_path / "b" / "nested", [_row("PostgreSQL", 3, 20.0)])
    csv_only = tmp_path / "c" / "measurements.csv"
    csv_only.parent.mkdir()
    pd.DataFrame([_row("MongoDB", 5, 11.0)]).to_csv(csv_only, index=False)

    files = discover_result_files([tmp_path / "a", tmp_path / "b", tmp_path / "c", first_csv])

    assert files == sorted(
        [
            (tmp_path / "a" / "measurements.jsonl").resolve(),
            (tmp_path / "b" / "nested" / "measurements.jsonl").resolve(),
            csv_only.resolve(),
        ]
    )


def test_records_are_not_double_counted(tmp_path: Path):
    _write_run(tmp_path, [_row("MongoDB", 3, 10.0), _row("PostgreSQL", 3, 20.0)])
    df = load_normalized_records(discover_result_files([tmp_path]))
    assert len(df) == 2


def test_discover_missing_path_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        discover_result_files([tmp_path / "missing"])


def test_idle_records_are_excluded(tmp_path: Path):
    csv_path = _write_run(
        tmp_path,
        [
            _row("MongoDB", 3, 10.0),
            dict(
                backend="idle",
                workload="idle",
                test_id="C1",
                depth=None,
                epoch=1,
                use_index=False,
                duration_ms=1.0,
            ),
        ],
    )
    df = load_normalized_records([csv_path])
    assert list(df["backend"]) == ["MongoDB"]


def test_summary_and_ratio_per_depth():
    df = pd.DataFrame(
        [
            _row("MongoDB", 3, 10.0),
            _row("MongoDB", 3, 30.0, epoch=2),
            _row("PostgreSQL", 3, 40.0),
            _row("MongoDB", 5, 10.0),
        ]
    )

    summary = build_duration_summary(df)
    mongo3 = summary[(summary["backend"] == "MongoDB") & (summary["depth"] == 3)].iloc[0]
    assert mongo3["records"] == 2
    assert mongo3["duration_mean_ms"] == pytest.approx(20.0)

    ratio = build_ratio_table(summary).set_index("depth")
    assert ratio.loc[3, "postgres_over_mongo"] == pytest.approx(2.0)
    assert math.isnan(ratio.loc[5, "postgres_over_mongo"])


def test_detect_config_mismatches_flags_different_sizes():
    df = pd.DataFrame(
        [
            dict(_row("MongoDB", 3, 10.0), run_id="r1"),
            dict(_row("PostgreSQL", 3, 12.0, num_reads=500), run_id="r1"),
        ]
    )
    mismatches = detect_config_mismatches(df)
    assert len(mismatches) == 1
    assert "reads=500" in mismatches.iloc[0]["detail"]


def test_run_comparison_writes_all_artifacts(tmp_path: Path):
    _write_run(
        tmp_path / "results",
        [
            _row("MongoDB", 3, 10.0),
            _row("PostgreSQL", 3, 25.0),
            _row("MongoDB", 3, 11.0, use_index=True, test_id="2A"),
            _row("PostgreSQL", 3, 9.0, use_index=True, test_id="2A"),
            _row("MongoDB", 5, 14.0, workload="write_heavy", test_id="1B"),
            _row("PostgreSQL", 5, 28.0, workload="write_heavy", test_id="1B"),
        ],
    )

    artifacts = run_comparison([tmp_path / "results"], tmp_path / "report")

    for path in artifacts.values():
        assert path.exists()
    summary = artifacts["summary"].read_text(encoding="utf-8")
    assert "# Backend Comparison Report" in summary
    assert "- Backends: MongoDB, PostgreSQL" in summary
    assert "| read_heavy | 3 | no | 2.500 |" in summary
    assert "No workload-size mismatches detected" in summary


def test_run_comparison_without_artifacts_raises(tmp_path: Path):
    (tmp_path / "empty").mkdir()
    with pytest.raises(FileNotFoundError):
        run_comparison([tmp_path / "empty"], tmp_path / "report")
