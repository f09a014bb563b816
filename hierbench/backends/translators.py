"""Depth-to-query translation for each backend.

A translator turns a document depth into the backend-native artifacts a run
needs: the logical paths to the two leaf fields, the read query, the targeted
write statement and the optional index definition. Translators never touch a
connection; the adapters in :mod:`hierbench.backends.mongodb_backend` and
:mod:`hierbench.backends.postgres_backend` execute what they build.

Path syntax per backend, for ``depth == 3``::

    MongoDB      children.children.read_target
    PostgreSQL   children,0,children,0,read_target   (a text[] path)

Read queries only return the matched leaf value, never whole documents, so
result transfer does not dominate the measurement.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from hierbench.common.data_generator import (
    CHILDREN_KEY,
    READ_TARGET_KEY,
    READ_TARGET_SENTINEL,
    WRITE_TARGET_BYTE_SIZE,
    WRITE_TARGET_KEY,
    generate_fixed_size_word,
)
from hierbench.common.errors import InvalidConfigurationError


def validate_depth(depth: int) -> int:
    """Reject depths that would underflow path construction."""
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
        raise InvalidConfigurationError(f"depth must be an integer >= 1; got {depth!r}")
    return depth


@dataclass(frozen=True)
class BackendPaths:
    """Logical paths to the two leaf fields, in one backend's syntax."""

    read_path: str
    write_path: str


# ---------------------------------------------------------------------------
# MongoDB
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MongoReadQuery:
    """Aggregation pipeline that matches targetable documents."""

    pipeline: list[dict[str, Any]]
    batch_size: int | None = None


@dataclass(frozen=True)
class MongoWriteStatement:
    """Filtered ``update_many`` arguments."""

    filter: dict[str, Any]
    update: dict[str, Any]


@dataclass(frozen=True)
class MongoIndexDefinition:
    keys: list[tuple[str, int]]
    name: str


class MongoTranslator:
    """Builds dot-notation paths and MongoDB query documents."""

    def read_path(self, depth: int) -> str:
        validate_depth(depth)
        return f"{CHILDREN_KEY}." * (depth - 1) + READ_TARGET_KEY

    def write_path(self, depth: int) -> str:
        validate_depth(depth)
        return f"{CHILDREN_KEY}." * (depth - 1) + WRITE_TARGET_KEY

    def update_path(self, depth: int) -> str:
        # Updates cannot traverse arrays implicitly, so address element 0.
        validate_depth(depth)
        return f"{CHILDREN_KEY}.0." * (depth - 1) + WRITE_TARGET_KEY

    def paths(self, depth: int) -> BackendPaths:
        return BackendPaths(read_path=self.read_path(depth), write_path=self.write_path(depth))

    def read_filter(self, depth: int) -> dict[str, Any]:
        return {self.read_path(depth): READ_TARGET_SENTINEL}

    def build_read_query(self, depth: int, batch_size: int | None = None) -> MongoReadQuery:
        path = self.read_path(depth)
        pipeline = [
            {"$match": {path: READ_TARGET_SENTINEL}},
            {"$project": {"_id": 0, "value": f"${path}"}},
        ]
        return MongoReadQuery(pipeline=pipeline, batch_size=batch_size)

    def build_write_statement(self, depth: int) -> MongoWriteStatement:
        """Build an update that sets a fresh 16-character ``write_target``."""
        value = generate_fixed_size_word(WRITE_TARGET_BYTE_SIZE)
        return MongoWriteStatement(
            filter=self.read_filter(depth),
            update={"$set": {self.update_path(depth): value}},
        )

    def index_definition(self, depth: int) -> MongoIndexDefinition:
        path = self.read_path(depth)
        return MongoIndexDefinition(keys=[(path, 1)], name=f"{path}_1")


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PostgresStatement:
    """SQL text plus positional arguments for ``$n`` placeholders."""

    sql: str
    args: tuple[Any, ...] = field(default_factory=tuple)


class PostgresTranslator:
    """Builds ``text[]`` paths and JSONB SQL for one table."""

    INDEX_NAME = "idx_gin_data"

    def __init__(self, table: str = "hierarchical_data"):
        if not table.replace("_", "").isalnum():
            raise InvalidConfigurationError(f"invalid table name: {table!r}")
        self.table = table

    def read_path(self, depth: int) -> str:
        validate_depth(depth)
        return f"{CHILDREN_KEY},0," * (depth - 1) + READ_TARGET_KEY

    def write_path(self, depth: int) -> str:
        validate_depth(depth)
        return f"{CHILDREN_KEY},0," * (depth - 1) + WRITE_TARGET_KEY

    def paths(self, depth: int) -> BackendPaths:
        return BackendPaths(read_path=self.read_path(depth), write_path=self.write_path(depth))

    @staticmethod
    def path_array(path: str) -> list[str]:
        return path.split(",")

    def containment_document(self, depth: int) -> dict[str, Any]:
        """Return the sub-document that every targetable row contains.

        For ``depth == 3``::

            {"children": [{"children": [{"read_target": "read_target"}]}]}
        """
        validate_depth(depth)
        node: dict[str, Any] = {READ_TARGET_KEY: READ_TARGET_SENTINEL}
        for _ in range(depth - 1):
            node = {CHILDREN_KEY: [node]}
        return node

    def containment_json(self, depth: int) -> str:
        return json.dumps(self.containment_document(depth), separators=(",", ":"))

    def create_table_sql(self) -> str:
        return (
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            "id SERIAL PRIMARY KEY, "
            "data JSONB NOT NULL)"
        )

    def drop_table_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {self.table}"

    def build_read_query(self, depth: int) -> PostgresStatement:
        sql = f"SELECT data #> $1::text[] FROM {self.table} WHERE data @> $2::jsonb"
        return PostgresStatement(
            sql=sql,
            args=(self.path_array(self.read_path(depth)), self.containment_json(depth)),
        )

    def write_sql(self) -> str:
        return (
            f"UPDATE {self.table} "
            "SET data = jsonb_set(data, $1::text[], to_jsonb($2::text)) "
            "WHERE data @> $3::jsonb"
        )

    def build_write_statement(self, depth: int) -> PostgresStatement:
        """Build a containment-filtered update with a fresh 16-character value."""
        value = generate_fixed_size_word(WRITE_TARGET_BYTE_SIZE)
        return PostgresStatement(
            sql=self.write_sql(),
            args=(self.path_array(self.write_path(depth)), value, self.containment_json(depth)),
        )

    def create_index_sql(self) -> str:
        # Per-path indexes are not native to JSONB; index value containment
        # over the whole column instead.
        return (
            f"CREATE INDEX IF NOT EXISTS {self.INDEX_NAME} "
            f"ON {self.table} USING GIN (data jsonb_path_ops)"
        )
