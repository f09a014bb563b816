"""CLI entry point for the hierarchical workload energy benchmark.

Usage examples:

    python -m hierbench --action generate
    python -m hierbench --action run --backend mongodb --depth 3 --depth 5
    python -m hierbench --action run --quick --config my.yaml
    python -m hierbench --action idle --epochs 1
    python -m hierbench --action compare --inputs results/
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

ACTIONS: tuple[str, ...] = ("generate", "run", "idle", "compare")

logger = logging.getLogger("hierbench")


def _build_parser() -> argparse.ArgumentParser:
    from hierbench.common.cli_args import add_common_benchmark_args

    parser = argparse.ArgumentParser(
        prog="python -m hierbench",
        description="Energy benchmark of hierarchical document workloads on MongoDB and PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
    # Write data_depth_{3,5,10}.json fixtures
    python -m hierbench --action generate

    # Full matrix (idle baseline + 1A/1B/2A/2B) against both stores
    python -m hierbench --action run

    # Smoke run against PostgreSQL only
    python -m hierbench --action run --backend postgresql --quick

    # Validate configuration without touching any store
    python -m hierbench --action run --dry-run

    # Summarise one or more result directories
    python -m hierbench --action compare --inputs results/
""",
    )

    action_grp = parser.add_argument_group("action selection")
    action_grp.add_argument(
        "--action",
        "-a",
        type=str,
        choices=ACTIONS,
        help="What to do: generate fixtures, run the matrix, record the idle baseline, or compare results.",
    )
    action_grp.add_argument(
        "--inputs",
        nargs="+",
        default=None,
        help="Result directories/files for --action compare (default: the results directory).",
    )
    action_grp.add_argument(
        "--no-idle",
        action="store_true",
        default=False,
        help="Skip the idle baseline at the start of each epoch for --action run.",
    )

    add_common_benchmark_args(parser, include_quick=True, include_dry_run=True)
    return parser


def _load_config(args: argparse.Namespace):
    from hierbench.common.cli_args import resolve_backends
    from hierbench.config.config_loader import ConfigLoader

    loader = ConfigLoader()
    config = loader.load(args.config) if args.config else loader.load_default()

    if args.quick:
        config = loader.apply_quick_mode(config)

    if args.backend:
        config.backends = resolve_backends(args.backend)
    if args.depth:
        config.workload.depths = list(args.depth)
    if args.epochs is not None:
        config.workload.epochs = list(range(1, args.epochs + 1))
    if args.seed is not None:
        config.workload.seed = args.seed
    if args.output_dir:
        config.output.results_dir = args.output_dir

    return config.validate()


def _action_generate(config) -> int:
    from hierbench.common.fixtures import generate_fixtures
    from hierbench.common.reproducibility import set_global_seed

    set_global_seed(config.workload.seed)
    written = generate_fixtures(
        config.workload.depths,
        config.workload.fixture_docs,
        config.output.fixtures_dir,
        seed=config.workload.seed,
    )
    for depth, path in written.items():
        print(f"  depth {depth}: {path}")
    return 0


def _prepare_run(config, run_cfg: dict):
    from hierbench.common.instrumentation import PowerMonitor
    from hierbench.common.reproducibility import build_run_id, compute_config_fingerprint
    from hierbench.common.result_writer import ResultWriter

    run_id = build_run_id(config.to_dict())
    results_dir = Path(config.output.results_dir) / run_id
    results_dir.mkdir(parents=True, exist_ok=True)

    run_cfg = dict(run_cfg, run_id=run_id, config_hash=compute_config_fingerprint(config.to_dict()))
    (results_dir / "run_config.json").write_text(
        json.dumps({"args": run_cfg, "config": config.to_dict()}, indent=2), encoding="utf-8"
    )

    monitor = PowerMonitor.from_config(config.instrumentation)
    monitor.output_dir.mkdir(parents=True, exist_ok=True)
    return ResultWriter(results_dir, run_id=run_id), monitor


def _action_run(config, run_cfg: dict, include_idle: bool) -> int:
    from hierbench.backends.base import get_backend, load_all_backends
    from hierbench.harness import run_matrix

    load_all_backends()
    writer, monitor = _prepare_run(config, run_cfg)
    backends = [get_backend(name, config, monitor) for name in config.backends]

    records = asyncio.run(run_matrix(backends, config, monitor, writer, include_idle=include_idle))
    csv_path = writer.export_csv()

    print(f"\n{'=' * 60}")
    print("Benchmark Summary")
    print(f"{'=' * 60}")
    print(f"  records: {len(records)}")
    print(f"  results: {csv_path.parent.absolute()}")
    print(f"  energy artifacts: {monitor.output_dir.absolute()}")
    return 0


def _action_idle(config, run_cfg: dict) -> int:
    from hierbench.harness import measure_idle_energy_consumption

    writer, monitor = _prepare_run(config, run_cfg)

    async def _run_idle() -> None:
        for epoch in config.workload.epochs:
            print(f"Control Test C1 - epoch {epoch}")
            writer.write(
                await measure_idle_energy_consumption(
                    monitor, epoch, config.instrumentation.idle_duration_s
                )
            )

    asyncio.run(_run_idle())
    writer.export_csv()
    print(f"\nResults saved to: {writer.results_dir.absolute()}")
    return 0


def _action_compare(config, inputs: list[str] | None) -> int:
    from hierbench.analysis.compare_backends import run_comparison

    input_paths = [Path(item) for item in (inputs or [config.output.results_dir])]
    artifacts = run_comparison(
        input_paths=input_paths,
        output_dir=Path(config.output.results_dir) / "comparison",
    )
    print("Backend comparison report generated:")
    for key, value in artifacts.items():
        print(f"- {key}: {value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    from hierbench.common.cli_args import build_run_config, validate_benchmark_args
    from hierbench.common.errors import BenchmarkError

    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.action:
        parser.print_help()
        return 1

    validate_benchmark_args(args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _load_config(args)
    except (BenchmarkError, FileNotFoundError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    run_cfg = build_run_config(args, action=args.action)
    print(f"\n{'=' * 60}")
    print(f"Action: {args.action}")
    print(
        f"  backends={','.join(config.backends)}  depths={config.workload.depths}  "
        f"epochs={config.workload.epochs}  seed={config.workload.seed}"
    )
    print(f"{'=' * 60}\n")

    if args.dry_run:
        print("[DRY RUN] Config validation passed.")
        return 0

    try:
        if args.action == "generate":
            return _action_generate(config)
        if args.action == "run":
            return _action_run(config, run_cfg, include_idle=not args.no_idle)
        if args.action == "idle":
            return _action_idle(config, run_cfg)
        return _action_compare(config, args.inputs)
    except BenchmarkError as exc:
        logger.error("%s failed: %s", args.action, exc)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
