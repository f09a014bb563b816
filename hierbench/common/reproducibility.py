"""Reproducibility utilities for benchmark runs.

This module centralizes deterministic controls used by the entry point:
- global seed propagation (``random`` + ``numpy``)
- canonical configuration fingerprint
- run identifiers that embed the fingerprint
"""

from __future__ import annotations

import hashlib
import json
import random
from datetime import datetime, timezone
from typing import Any

import numpy as np


def set_global_seed(seed: int) -> None:
    """Propagate *seed* to supported RNG backends.

    Parameters
    ----------
    seed:
        Non-negative global seed.
    """
    if seed < 0:
        raise ValueError("seed must be non-negative")

    random.seed(seed)
    np.random.seed(seed)


def compute_config_fingerprint(config: dict[str, Any]) -> str:
    """Return a deterministic SHA-256 hash for *config*."""
    canonical = json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def build_run_id(config: dict[str, Any], explicit_run_id: str | None = None) -> str:
    """Build a run identifier from a UTC timestamp and the config fingerprint."""
    if explicit_run_id:
        return explicit_run_id.strip()
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"run-{stamp}-{compute_config_fingerprint(config)[:12]}"
