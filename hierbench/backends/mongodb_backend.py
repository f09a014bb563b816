"""
MongoDB backend for hierbench.

Documents are stored as-is in one collection. Reads run an aggregation that
matches the read sentinel and projects only the matched value; writes run a
filtered ``update_many`` that sets the leaf ``write_target``. The optional
index is a single-field ascending index on the read path.

Uses the asyncio client shipped with PyMongo (``pymongo.AsyncMongoClient``).
"""

from __future__ import annotations

import logging
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from hierbench.backends.base import DatabaseBackend, register_backend
from hierbench.backends.translators import MongoTranslator
from hierbench.common.errors import BackendConnectionError, InvalidConfigurationError
from hierbench.common.instrumentation import PowerMonitor
from hierbench.common.scheduler import WorkloadTarget

logger = logging.getLogger(__name__)


class MongoWorkloadTarget(WorkloadTarget):
    """Compiled aggregation and update for one depth."""

    def __init__(self, collection: Any, translator: MongoTranslator, depth: int, batch_size: int | None):
        self._collection = collection
        self._translator = translator
        self._depth = depth
        self._read = translator.build_read_query(depth, batch_size=batch_size)

    async def execute_read(self) -> None:
        kwargs: dict[str, Any] = {}
        if self._read.batch_size:
            kwargs["batchSize"] = self._read.batch_size
        cursor = await self._collection.aggregate(self._read.pipeline, **kwargs)
        await cursor.to_list(None)

    async def execute_write(self) -> None:
        statement = self._translator.build_write_statement(self._depth)
        await self._collection.update_many(statement.filter, statement.update)


@register_backend("mongodb")
class MongoDBBackend(DatabaseBackend):
    """Document-store adapter."""

    def __init__(
        self,
        monitor: PowerMonitor,
        uri: str = "mongodb://localhost:27017",
        database: str = "benchmark",
        collection: str = "data",
        client_factory: Any = AsyncMongoClient,
    ):
        super().__init__(monitor)
        self.uri = uri
        self.database_name = database
        self.collection_name = collection
        self.translator = MongoTranslator()
        self._client_factory = client_factory
        self._client: Any = None

    @property
    def name(self) -> str:
        return "MongoDB"

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @classmethod
    def from_config(cls, config, monitor: PowerMonitor) -> MongoDBBackend:
        return cls(
            monitor,
            uri=config.mongodb.uri,
            database=config.mongodb.database,
            collection=config.mongodb.collection,
        )

    @property
    def collection(self) -> Any:
        self._require_connected()
        return self._client[self.database_name][self.collection_name]

    async def connect(self) -> None:
        client = None
        try:
            client = self._client_factory(self.uri)
            await client.admin.command("ping")
        except PyMongoError as exc:
            if client is not None:
                await client.close()
            raise BackendConnectionError(self.name, f"cannot reach {self.uri}: {exc}") from exc
        self._client = client
        logger.info("Connected to MongoDB at %s", self.uri)

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.close()
            logger.info("Disconnected from MongoDB")

    async def clean(self) -> None:
        await self.collection.drop()
        logger.info("Dropped collection %s.%s", self.database_name, self.collection_name)

    async def insert(self, batch_size: int, documents: list[dict[str, Any]]) -> None:
        if batch_size < 1:
            raise InvalidConfigurationError(f"batch_size must be >= 1; got {batch_size}")
        collection = self.collection
        inserted = 0
        for start in range(0, len(documents), batch_size):
            # insert_many adds ``_id`` to each dict it is given.
            chunk = [dict(doc) for doc in documents[start : start + batch_size]]
            result = await collection.insert_many(chunk)
            inserted += len(result.inserted_ids)
        logger.info("Inserted %d documents into %s", inserted, self.collection_name)

    async def create_index(self, depth: int) -> None:
        definition = self.translator.index_definition(depth)
        name = await self.collection.create_index(definition.keys, name=definition.name)
        logger.info("Ensured index %s", name)

    async def prepare_workload(self, depth: int, doc_count: int) -> MongoWorkloadTarget:
        batch_size = doc_count if doc_count > 0 else None
        return MongoWorkloadTarget(self.collection, self.translator, depth, batch_size)
