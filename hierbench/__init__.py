"""Energy and throughput benchmarks for hierarchical documents.

This package drives controlled read-heavy and write-heavy workloads against a
document store (MongoDB) and a relational store with a JSONB column
(PostgreSQL) at varying document nesting depths, while an external power
sampler records energy draw for each measurement window.
"""

from hierbench._version import __author__, __email__, __version__

__all__ = ["__version__", "__author__", "__email__"]
