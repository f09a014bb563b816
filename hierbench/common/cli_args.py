"""Shared argparse helpers for the hierbench entry point.

:func:`add_common_benchmark_args` registers the canonical flag set and
:func:`validate_benchmark_args` catches bad combinations before any backend is
contacted.

Standardised flags
------------------
- ``--backend {mongodb,postgresql,all}`` – which store(s) to measure
- ``--depth``                             – nesting depth, repeatable
- ``--epochs``                            – number of epochs to run
- ``--seed``                              – global RNG seed for fixtures
- ``--output-dir``                        – root directory for result artefacts
- ``--config``                            – YAML configuration file

Run configuration recording
----------------------------
:func:`build_run_config` serialises the parsed args into a plain ``dict`` so
that every result file can carry the exact flags it was produced with.
"""

from __future__ import annotations

import argparse
from typing import Any

# ---------------------------------------------------------------------------
# Canonical backend list
# ---------------------------------------------------------------------------

SUPPORTED_BACKENDS: tuple[str, ...] = ("mongodb", "postgresql")
ALL_BACKENDS: str = "all"


def resolve_backends(selection: str) -> list[str]:
    """Expand ``--backend`` into registry keys."""
    if selection == ALL_BACKENDS:
        return list(SUPPORTED_BACKENDS)
    return [selection]


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def add_common_benchmark_args(
    parser: argparse.ArgumentParser,
    *,
    include_quick: bool = True,
    include_dry_run: bool = True,
) -> argparse.ArgumentParser:
    """Add the standardised benchmark flag set to *parser*.

    Parameters
    ----------
    parser:
        The :class:`argparse.ArgumentParser` to mutate in-place.
    include_quick:
        Whether to add the ``--quick`` shortcut flag (default: ``True``).
    include_dry_run:
        Whether to add the ``--dry-run`` flag (default: ``True``).

    Returns
    -------
    argparse.ArgumentParser
        The same *parser* object.
    """
    grp = parser.add_argument_group(
        "common benchmark arguments",
        description="Flags shared by every action.",
    )

    # ── Backend ─────────────────────────────────────────────────────────────
    grp.add_argument(
        "--backend",
        "-b",
        type=str,
        default=None,
        choices=(*SUPPORTED_BACKENDS, ALL_BACKENDS),
        metavar="BACKEND",
        help=(
            f"Store to measure. Choices: {', '.join(SUPPORTED_BACKENDS)}, {ALL_BACKENDS}. "
            "(default: the backends enabled in the config)"
        ),
    )

    # ── Matrix ──────────────────────────────────────────────────────────────
    grp.add_argument(
        "--depth",
        type=int,
        action="append",
        default=None,
        metavar="D",
        help="Nesting depth to test; repeat for several (default: from config).",
    )
    grp.add_argument(
        "--epochs",
        type=int,
        default=None,
        metavar="N",
        help="Number of epochs to run (default: from config).",
    )
    grp.add_argument(
        "--seed",
        type=int,
        default=None,
        metavar="SEED",
        help="Global RNG seed for fixture generation (default: from config).",
    )

    # ── Output / config ────────────────────────────────────────────────────
    grp.add_argument(
        "--output-dir",
        type=str,
        default=None,
        metavar="DIR",
        help="Root directory for result artefacts (default: from config).",
    )
    grp.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        metavar="PATH",
        help="YAML configuration file (default: built-in default.yaml).",
    )

    # ── Modifiers ───────────────────────────────────────────────────────────
    grp.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Enable debug logging.",
    )

    if include_quick:
        grp.add_argument(
            "--quick",
            action="store_true",
            default=False,
            help="Run a reduced-scale version suitable for smoke-testing.",
        )

    if include_dry_run:
        grp.add_argument(
            "--dry-run",
            action="store_true",
            default=False,
            help="Validate configuration without contacting any backend.",
        )

    return parser


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_benchmark_args(args: argparse.Namespace) -> None:
    """Validate *args* for out-of-range values.

    Uses argparse's own error mechanism, so failures exit with status 2 and an
    actionable message.

    Checks performed
    ----------------
    * every ``--depth`` must be ≥ 1.
    * ``--epochs`` must be ≥ 1.
    * ``--seed`` must be ≥ 0.
    """
    errors: list[str] = []

    for depth in getattr(args, "depth", None) or []:
        if depth < 1:
            errors.append(f"--depth must be ≥ 1; got {depth}.")

    epochs: int | None = getattr(args, "epochs", None)
    if epochs is not None and epochs < 1:
        errors.append(f"--epochs must be ≥ 1; got {epochs}.")

    seed: int | None = getattr(args, "seed", None)
    if seed is not None and seed < 0:
        errors.append(f"--seed must be ≥ 0; got {seed}.")

    if errors:
        _fake_parser = argparse.ArgumentParser()
        _fake_parser.error("argument validation failed:\n  " + "\n  ".join(errors))


# ---------------------------------------------------------------------------
# Run config serialisation
# ---------------------------------------------------------------------------


def build_run_config(args: argparse.Namespace, **extra: Any) -> dict[str, Any]:
    """Build a standardised run-configuration dict from *args*.

    Parameters
    ----------
    args:
        Parsed namespace containing the flags added by
        :func:`add_common_benchmark_args`.
    **extra:
        Action-specific key/value pairs to merge into the record.
    """
    cfg: dict[str, Any] = {
        "backend": getattr(args, "backend", None),
        "depths": list(getattr(args, "depth", None) or []),
        "epochs": getattr(args, "epochs", None),
        "seed": getattr(args, "seed", None),
        "output_dir": getattr(args, "output_dir", None),
        "config": getattr(args, "config", None),
        "quick": getattr(args, "quick", False),
        "dry_run": getattr(args, "dry_run", False),
        "verbose": getattr(args, "verbose", False),
    }
    cfg.update(extra)
    return cfg
