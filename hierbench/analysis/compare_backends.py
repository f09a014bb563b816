"""MongoDB vs PostgreSQL comparison report generator.

Consumes one or more result directories/files containing ``measurements.csv``
or ``measurements.jsonl`` artifacts, merges records, checks that the compared
backends ran the same workload sizes, and exports:

- summary markdown
- merged comparison CSV
- duration plot per depth
- per-depth PostgreSQL/MongoDB duration ratio table
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from hierbench.common.metrics_schema import normalize_measurement_record

SUPPORTED_RESULT_FILENAMES: tuple[str, ...] = (
    "measurements.csv",
    "measurements.jsonl",
)
NUMERIC_COLUMNS: tuple[str, ...] = (
    "depth",
    "epoch",
    "num_reads",
    "num_writes",
    "num_docs",
    "duration_ms",
)
GROUP_COLUMNS: list[str] = ["workload", "depth", "use_index", "backend"]


def discover_result_files(input_paths: list[Path]) -> list[Path]:
    """Discover supported result artifacts from directories or file paths."""
    discovered: set[Path] = set()

    for raw_path in input_paths:
        path = raw_path.expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Input path does not exist: {path}")

        if path.is_file():
            if path.name in SUPPORTED_RESULT_FILENAMES:
                discovered.add(path)
            continue

        for file_name in SUPPORTED_RESULT_FILENAMES:
            for candidate in path.rglob(file_name):
                if candidate.is_file():
                    discovered.add(candidate.resolve())

    # measurements.csv is exported from the JSONL beside it; count each run once.
    jsonl_dirs = {p.parent for p in discovered if p.suffix == ".jsonl"}
    return sorted(p for p in discovered if p.suffix == ".jsonl" or p.parent not in jsonl_dirs)


def _load_jsonl(path: Path) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            stripped = line.strip()
            if not stripped:
                continue
            records.append(json.loads(stripped))
    return records


def _load_csv(path: Path) -> list[dict[str, Any]]:
    df = pd.read_csv(path)
    return df.to_dict(orient="records")


def load_normalized_records(result_files: list[Path]) -> pd.DataFrame:
    """Load and normalize measurement records, dropping idle baselines."""
    rows: list[dict[str, Any]] = []

    for file_path in result_files:
        if file_path.name.endswith(".jsonl"):
            raw_records = _load_jsonl(file_path)
        else:
            raw_records = _load_csv(file_path)

        for raw in raw_records:
            normalized = normalize_measurement_record(raw)
            normalized["source_file"] = str(file_path)
            rows.append(normalized)

    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame(rows)
    df = df[df["workload"] != "idle"].copy()
    if df.empty:
        return df

    for column in NUMERIC_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce")

    df["backend"] = df["backend"].fillna("unknown").astype(str)
    df["workload"] = df["workload"].fillna("unknown").astype(str)
    df["run_id"] = df["run_id"].fillna("unknown").astype(str)
    df["use_index"] = df["use_index"].map(_as_bool)

    return df


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    if pd.isna(value):
        return False
    return bool(value)


def detect_config_mismatches(df: pd.DataFrame) -> pd.DataFrame:
    """Detect test groups where backends ran different workload sizes."""
    if df.empty:
        return pd.DataFrame()

    mismatch_rows: list[dict[str, Any]] = []
    size_columns = ["num_reads", "num_writes", "num_docs"]

    for (run_id, test_id, depth), group in df.groupby(
        ["run_id", "test_id", "depth"], dropna=False
    ):
        if group["backend"].nunique() < 2:
            continue

        signatures = group[["backend", *size_columns]].drop_duplicates()
        if signatures[size_columns].drop_duplicates().shape[0] <= 1:
            continue

        detail = "; ".join(
            f"{row.backend}: reads={row.num_reads}, writes={row.num_writes}, docs={row.num_docs}"
            for row in signatures.itertuples(index=False)
        )
        mismatch_rows.append(
            {
                "run_id": run_id,
                "test_id": test_id,
                "depth": depth,
                "detail": detail,
            }
        )

    return pd.DataFrame(mismatch_rows)


def build_duration_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Mean and spread of duration per (workload, depth, index flag, backend)."""
    summary = (
        df.groupby(GROUP_COLUMNS, dropna=False)
        .agg(
            records=("duration_ms", "count"),
            duration_mean_ms=("duration_ms", "mean"),
            duration_std_ms=("duration_ms", "std"),
            duration_min_ms=("duration_ms", "min"),
            duration_max_ms=("duration_ms", "max"),
        )
        .reset_index()
        .sort_values(GROUP_COLUMNS)
    )
    summary["duration_std_ms"] = summary["duration_std_ms"].fillna(0.0)
    return summary


def _backend_column(pivot: pd.DataFrame, backend: str) -> np.ndarray:
    if backend in pivot.columns:
        return pivot[backend].to_numpy(dtype=float)
    return np.full(len(pivot), np.nan)


def build_ratio_table(summary: pd.DataFrame) -> pd.DataFrame:
    """PostgreSQL mean duration divided by MongoDB mean duration.

    Rows missing either backend get ``NaN``.
    """
    pivot = summary.pivot_table(
        index=["workload", "depth", "use_index"],
        columns="backend",
        values="duration_mean_ms",
    ).reset_index()

    mongo = _backend_column(pivot, "MongoDB")
    postgres = _backend_column(pivot, "PostgreSQL")
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = postgres / mongo
    pivot["postgres_over_mongo"] = np.where(np.isfinite(ratio), ratio, np.nan)
    pivot.columns.name = None
    return pivot


def _safe_float(value: Any) -> str:
    if pd.isna(value):
        return "n/a"
    return f"{float(value):.3f}"


def write_summary_markdown(
    output_path: Path,
    merged_df: pd.DataFrame,
    summary_df: pd.DataFrame,
    ratio_df: pd.DataFrame,
    mismatch_df: pd.DataFrame,
    csv_path: Path,
    duration_plot_path: Path,
) -> Path:
    """Write markdown summary report."""
    lines: list[str] = []
    lines.append("# Backend Comparison Report")
    lines.append("")
    lines.append(f"- Total records: {len(merged_df)}")
    lines.append(f"- Backends: {', '.join(sorted(merged_df['backend'].unique()))}")
    lines.append(f"- Workloads: {', '.join(sorted(merged_df['workload'].unique()))}")
    depths = sorted(int(d) for d in merged_df["depth"].dropna().unique())
    lines.append(f"- Depths: {', '.join(str(d) for d in depths)}")
    lines.append("")
    lines.append("## Artifacts")
    lines.append("")
    lines.append(f"- Comparison CSV: `{csv_path.name}`")
    lines.append(f"- Duration plot: `{duration_plot_path.name}`")
    lines.append("")

    lines.append("## Duration Summary")
    lines.append("")
    lines.append("| workload | depth | index | backend | records | mean_ms | std_ms |")
    lines.append("|---|---:|---|---|---:|---:|---:|")
    for row in summary_df.itertuples(index=False):
        lines.append(
            f"| {row.workload} | {int(row.depth)} | {'yes' if row.use_index else 'no'} | "
            f"{row.backend} | {row.records} | {_safe_float(row.duration_mean_ms)} | "
            f"{_safe_float(row.duration_std_ms)} |"
        )

    lines.append("")
    lines.append("## PostgreSQL / MongoDB Duration Ratio")
    lines.append("")
    lines.append("| workload | depth | index | ratio |")
    lines.append("|---|---:|---|---:|")
    for row in ratio_df.itertuples(index=False):
        lines.append(
            f"| {row.workload} | {int(row.depth)} | {'yes' if row.use_index else 'no'} | "
            f"{_safe_float(row.postgres_over_mongo)} |"
        )

    lines.append("")
    lines.append("## Configuration Mismatches")
    lines.append("")

    if mismatch_df.empty:
        lines.append("No workload-size mismatches detected across compared backends.")
    else:
        lines.append("| run_id | test_id | depth | detail |")
        lines.append("|---|---|---:|---|")
        for row in mismatch_df.itertuples(index=False):
            detail = str(row.detail).replace("|", "\\|")
            lines.append(f"| {row.run_id} | {row.test_id} | {row.depth} | {detail} |")

    output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return output_path


def _plot_durations(summary: pd.DataFrame, output_path: Path) -> Path:
    workloads = sorted(summary["workload"].unique())
    fig, axes = plt.subplots(1, len(workloads), figsize=(7 * len(workloads), 6), squeeze=False)

    for ax, workload in zip(axes[0], workloads):
        subset = summary[summary["workload"] == workload].copy()
        subset["series"] = [
            f"{backend} (index)" if use_index else backend
            for backend, use_index in zip(subset["backend"], subset["use_index"])
        ]
        pivot = subset.pivot(index="depth", columns="series", values="duration_mean_ms")
        pivot.plot(kind="bar", ax=ax)
        ax.set_title(f"{workload} duration")
        ax.set_xlabel("Depth")
        ax.set_ylabel("Duration (ms)")
        ax.tick_params(axis="x", rotation=0)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def run_comparison(input_paths: list[Path], output_dir: Path) -> dict[str, Path]:
    """Run the backend comparison pipeline and return artifact paths."""
    output_dir.mkdir(parents=True, exist_ok=True)

    result_files = discover_result_files(input_paths)
    if not result_files:
        raise FileNotFoundError(
            "No measurement artifacts found. Expected measurements.csv/jsonl in input paths."
        )

    merged_df = load_normalized_records(result_files)
    if merged_df.empty:
        raise ValueError("No workload records found in discovered artifacts.")

    merged_df = merged_df.sort_values(
        ["workload", "depth", "use_index", "backend", "epoch"]
    ).reset_index(drop=True)

    comparison_csv = output_dir / "comparison.csv"
    merged_df.to_csv(comparison_csv, index=False)

    summary_df = build_duration_summary(merged_df)
    ratio_df = build_ratio_table(summary_df)
    mismatch_df = detect_config_mismatches(merged_df)

    duration_plot = output_dir / "duration_by_depth.png"
    _plot_durations(summary_df, duration_plot)

    summary_md = output_dir / "summary.md"
    write_summary_markdown(
        output_path=summary_md,
        merged_df=merged_df,
        summary_df=summary_df,
        ratio_df=ratio_df,
        mismatch_df=mismatch_df,
        csv_path=comparison_csv,
        duration_plot_path=duration_plot,
    )

    return {
        "summary": summary_md,
        "comparison_csv": comparison_csv,
        "duration_plot": duration_plot,
    }


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare MongoDB and PostgreSQL measurements and generate a report.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        help="Input result directories/files (supports recursive discovery).",
    )
    parser.add_argument(
        "--output-dir",
        default="artifacts/backend_comparison",
        help="Output directory for summary markdown, CSV and plots.",
    )
    return parser


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    artifacts = run_comparison(
        input_paths=[Path(item) for item in args.inputs],
        output_dir=Path(args.output_dir),
    )

    print("Backend comparison report generated:")
    for key, value in artifacts.items():
        print(f"- {key}: {value}")

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
