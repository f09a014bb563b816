"""
Backend abstraction layer for hierbench.

See backends/base.py for the DatabaseBackend ABC and registry,
backends/translators.py for depth-to-query translation,
backends/mongodb_backend.py for the document store
and backends/postgres_backend.py for the JSONB relational store.

Import individual sub-modules directly, or call ``load_all_backends()``:

    from hierbench.backends.base import get_backend, load_all_backends
    load_all_backends()  # registers "mongodb" and "postgresql"
"""
