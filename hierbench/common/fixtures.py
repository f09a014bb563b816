"""Fixture files: one JSON array of generated documents per depth."""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .data_generator import generate

logger = logging.getLogger(__name__)


def fixture_path(depth: int, directory: str | Path) -> Path:
    """Return the deterministic fixture path for *depth*."""
    return Path(directory) / f"data_depth_{depth}.json"


def save_fixture(documents: list[dict[str, Any]], depth: int, directory: str | Path) -> Path:
    """Write *documents* as a pretty-printed JSON array and return the path."""
    target = fixture_path(depth, directory)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(documents, handle, indent=2, ensure_ascii=False)
    logger.info("Saved %d documents for depth %d to %s", len(documents), depth, target)
    return target


def load_fixture(depth: int, directory: str | Path) -> list[dict[str, Any]]:
    """Load the fixture for *depth* from *directory*."""
    source = fixture_path(depth, directory)
    if not source.exists():
        raise FileNotFoundError(
            f"Fixture for depth {depth} not found: {source}. "
            "Generate it first with `python -m hierbench --action generate`."
        )
    with source.open("r", encoding="utf-8") as handle:
        documents = json.load(handle)
    logger.debug("Loaded %d documents for depth %d from %s", len(documents), depth, source)
    return documents


def generate_fixtures(
    depths: Iterable[int],
    count: int,
    directory: str | Path,
    seed: int | None = None,
) -> dict[int, Path]:
    """Generate and save one fixture file per depth.

    Each depth gets its own ``random.Random(seed + depth)`` so regenerating a
    single depth reproduces the same file as a full run.
    """
    written: dict[int, Path] = {}
    for depth in depths:
        rng = random.Random(seed + depth) if seed is not None else None
        documents = generate(depth, count, rng)
        written[depth] = save_fixture(documents, depth, directory)
    return written
