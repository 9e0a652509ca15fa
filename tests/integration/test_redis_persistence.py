"""Redis persistence integration tests.

Tests exercise ``RedisMemoryPersistence`` and the service on top of it
against a real Redis container.
"""

from __future__ import annotations

import json

import pytest

from contextmem import ContextMemoryService
from contextmem.memory import ContextPattern
from contextmem.memory import MemoryEntry
from contextmem.memory import MemoryStore
from contextmem.memory import RedisMemoryPersistence


@pytest.fixture()
def persistence(redis_client) -> RedisMemoryPersistence:
    return RedisMemoryPersistence(redis_client)


def _entries() -> list[MemoryEntry]:
    return [
        MemoryEntry(session_id="s1", user_query="send invoice", topics=["financial"]),
        MemoryEntry(session_id="s1", user_query="schedule meeting"),
    ]


class TestRedisMemoryPersistence:
    async def test_save_writes_three_keys(self, persistence, redis_client):
        await persistence.save(_entries(), [ContextPattern(pattern="invoice")])

        keys = sorted(k.decode() for k in await redis_client.keys("contextmem:*"))
        assert keys == [
            "contextmem:memory",
            "contextmem:memory:backup",
            "contextmem:patterns",
        ]
        primary = json.loads(await redis_client.get("contextmem:memory"))
        assert [e["user_query"] for e in primary] == ["send invoice", "schedule meeting"]

    async def test_round_trip(self, persistence):
        entries = _entries()
        await persistence.save(entries, [ContextPattern(pattern="invoice", frequency=4)])

        loaded = await persistence.load()
        assert loaded.source == "primary"
        assert [e.id for e in loaded.entries] == [e.id for e in entries]
        assert loaded.patterns[0].frequency == 4

    async def test_corrupt_primary_falls_back_to_backup(self, persistence, redis_client):
        entries = _entries()
        await persistence.save(entries, [])
        await redis_client.set("contextmem:memory", "{broken")

        loaded = await persistence.load()
        assert loaded.source == "backup"
        assert [e.id for e in loaded.entries] == [e.id for e in entries]

    async def test_clear_deletes_keys(self, persistence, redis_client):
        await persistence.save(_entries(), [])
        await persistence.clear()
        assert await redis_client.keys("contextmem:*") == []

    async def test_custom_prefix(self, redis_client):
        persistence = RedisMemoryPersistence(redis_client, prefix="tenant-a")
        await persistence.save(_entries(), [])
        assert persistence.key_for("memory") == "tenant-a:memory"
        assert await redis_client.exists("tenant-a:memory:backup") == 1


class TestServiceOverRedis:
    async def test_turns_survive_restart(self, persistence, redis_client):
        first = ContextMemoryService(MemoryStore(), persistence)
        recorded = await first.record_turn("send the invoice to acme", "sent", "s1")

        second = ContextMemoryService(MemoryStore(), RedisMemoryPersistence(redis_client))
        persisted = await second.load()

        assert persisted.source == "primary"
        assert [e.id for e in second.store.entries] == [recorded.id]
        assert second.search_memory("acme")[0].id == recorded.id
