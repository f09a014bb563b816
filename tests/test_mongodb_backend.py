"""Tests for the MongoDB adapter against an in-memory async client."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from hierbench.backends.mongodb_backend import MongoDBBackend
from hierbench.common.data_generator import generate
from hierbench.common.errors import BackendConnectionError, InvalidConfigurationError


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeCursor:
    def __init__(self, rows: list[dict[str, Any]]):
        self.rows = rows
        self.drained = False

    async def to_list(self, length=None):
        self.drained = True
        return list(self.rows)


class FakeCollection:
    def __init__(self):
        self.documents: list[dict[str, Any]] = []
        self.indexes: dict[str, list[tuple[str, int]]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.dropped = 0
        self.cursors: list[FakeCursor] = []

    async def drop(self):
        self.dropped += 1
        self.documents.clear()
        self.indexes.clear()

    async def insert_many(self, docs):
        self.calls.append(("insert_many", len(docs)))
        for i, doc in enumerate(docs):
            doc["_id"] = len(self.documents) + i
        self.documents.extend(docs)
        return SimpleNamespace(inserted_ids=[doc["_id"] for doc in docs])

    async def create_index(self, keys, name=None):
        existing = self.indexes.get(name)
        if existing is not None and existing != list(keys):
            raise OperationFailure(f"index {name} exists with different keys")
        self.indexes[name] = list(keys)
        self.calls.append(("create_index", name))
        return name

    async def aggregate(self, pipeline, **kwargs):
        self.calls.append(("aggregate", pipeline, kwargs))
        cursor = FakeCursor([{"value": "read_target"}])
        self.cursors.append(cursor)
        return cursor

    async def update_many(self, filter, update):
        self.calls.append(("update_many", filter, update))
        return SimpleNamespace(modified_count=0)


class FakeAdmin:
    def __init__(self, fail: bool):
        self.fail = fail

    async def command(self, name):
        if self.fail:
            raise ServerSelectionTimeoutError("no servers")
        return {"ok": 1}


class FakeClient:
    def __init__(self, uri: str, fail: bool = False):
        self.uri = uri
        self.admin = FakeAdmin(fail)
        self.closed = False
        self.collection = FakeCollection()

    def __getitem__(self, database: str):
        return {"data": self.collection}

    async def close(self):
        self.closed = True


def _backend(recording_monitor, fail: bool = False) -> tuple[MongoDBBackend, list[FakeClient]]:
    clients: list[FakeClient] = []

    def factory(uri):
        client = FakeClient(uri, fail=fail)
        clients.append(client)
        return client

    backend = MongoDBBackend(recording_monitor, uri="mongodb://fake", client_factory=factory)
    return backend, clients


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_connect_pings_and_disconnect_closes(recording_monitor):
    backend, clients = _backend(recording_monitor)
    await backend.connect()
    assert backend.is_connected
    assert clients[0].uri == "mongodb://fake"

    await backend.disconnect()
    assert not backend.is_connected
    assert clients[0].closed


@pytest.mark.asyncio
async def test_unreachable_server_raises_connection_error(recording_monitor):
    backend, clients = _backend(recording_monitor, fail=True)
    with pytest.raises(BackendConnectionError, match="MongoDB: cannot reach"):
        await backend.connect()
    assert not backend.is_connected
    assert clients[0].closed


@pytest.mark.asyncio
async def test_malformed_uri_raises_connection_error(recording_monitor):
    backend = MongoDBBackend(recording_monitor, uri="bogus://nowhere")
    with pytest.raises(BackendConnectionError, match="MongoDB: cannot reach bogus://nowhere"):
        await backend.connect()
    assert not backend.is_connected


@pytest.mark.asyncio
async def test_disconnect_without_connect_is_noop(recording_monitor):
    backend, _ = _backend(recording_monitor)
    await backend.disconnect()


def test_collection_requires_connection(recording_monitor):
    backend, _ = _backend(recording_monitor)
    with pytest.raises(BackendConnectionError):
        backend.collection


# ---------------------------------------------------------------------------
# Data management
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_insert_chunks_by_batch_size_without_mutating_input(recording_monitor):
    backend, clients = _backend(recording_monitor)
    await backend.connect()
    docs = generate(3, 25)

    await backend.insert(10, docs)

    collection = clients[0].collection
    assert [c for c in collection.calls if c[0] == "insert_many"] == [
        ("insert_many", 10),
        ("insert_many", 10),
        ("insert_many", 5),
    ]
    assert len(collection.documents) == 25
    assert all("_id" not in doc for doc in docs)


@pytest.mark.asyncio
async def test_insert_rejects_non_positive_batch(recording_monitor):
    backend, _ = _backend(recording_monitor)
    await backend.connect()
    with pytest.raises(InvalidConfigurationError):
        await backend.insert(0, generate(2, 3))


@pytest.mark.asyncio
async def test_clean_drops_collection(recording_monitor):
    backend, clients = _backend(recording_monitor)
    await backend.connect()
    await backend.insert(100, generate(2, 4))
    await backend.clean()
    assert clients[0].collection.dropped == 1
    assert clients[0].collection.documents == []


@pytest.mark.asyncio
async def test_create_index_twice_is_harmless(recording_monitor):
    backend, clients = _backend(recording_monitor)
    await backend.connect()

    await backend.create_index(3)
    await backend.create_index(3)

    assert clients[0].collection.indexes == {
        "children.children.read_target_1": [("children.children.read_target", 1)]
    }


# ---------------------------------------------------------------------------
# Workload execution
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_read_drains_aggregation_with_doc_count_batch(recording_monitor):
    backend, clients = _backend(recording_monitor)
    await backend.connect()
    target = await backend.prepare_workload(3, 3000)

    await target.execute_read()

    collection = clients[0].collection
    _, pipeline, kwargs = collection.calls[-1]
    assert pipeline[0] == {"$match": {"children.children.read_target": "read_target"}}
    assert kwargs == {"batchSize": 3000}
    assert collection.cursors[-1].drained


@pytest.mark.asyncio
async def test_writes_use_positional_update_path_and_fresh_values(recording_monitor):
    backend, clients = _backend(recording_monitor)
    await backend.connect()
    target = await backend.prepare_workload(2, 0)

    for _ in range(5):
        await target.execute_write()

    updates = [c for c in clients[0].collection.calls if c[0] == "update_many"]
    assert len(updates) == 5
    for _, filter_, update in updates:
        assert filter_ == {"children.read_target": "read_target"}
        assert set(update["$set"]) == {"children.0.write_target"}
    assert len({u[2]["$set"]["children.0.write_target"] for u in updates}) > 1


@pytest.mark.asyncio
async def test_run_workload_write_heavy_with_index(recording_monitor):
    backend, clients = _backend(recording_monitor)
    await backend.connect()

    result = await backend.run_workload(5, 2, 10, True, 100, "MongoDB_write_heavy.csv")

    calls = [c[0] for c in clients[0].collection.calls]
    assert calls[0] == "create_index"
    assert calls.count("update_many") == 10
    assert calls.count("aggregate") == 2
    assert (result.reads, result.writes) == (2, 10)
    assert recording_monitor.events == [
        ("open", "MongoDB_write_heavy.csv"),
        ("close", "MongoDB_write_heavy.csv"),
    ]
