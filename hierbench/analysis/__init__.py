"""Post-run analysis of measurement records."""

from .compare_backends import run_comparison

__all__ = ["run_comparison"]
