import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from banforge.storage.base import SnapshotRecord
from banforge.storage.memory import InMemoryPlayerStore, InMemorySnapshotStore

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio()
async def test_concurrent_first_heartbeats_create_one_record():
    store = InMemoryPlayerStore()
    await asyncio.gather(
        *(store.upsert_presence("abc123", f"name{i}", now=NOW) for i in range(10))
    )
    players = await store.list_players()
    assert len(players) == 1
    assert players[0].aliases == [f"name{i}" for i in range(10)]


@pytest.mark.asyncio()
async def test_upsert_keeps_first_seen_and_unique_aliases():
    store = InMemoryPlayerStore()
    await store.upsert_presence("abc123", "Bob", now=NOW)
    later = NOW + timedelta(minutes=5)
    record = await store.upsert_presence("abc123", "Bob", now=later, wallet={"sheckles": 10})
    assert record.first_seen == NOW
    assert record.last_seen == later
    assert record.aliases == ["Bob"]
    assert record.wallet == {"sheckles": 10.0}


@pytest.mark.asyncio()
async def test_returned_records_are_copies():
    store = InMemoryPlayerStore()
    record = await store.upsert_presence("abc123", "Bob", now=NOW)
    record.aliases.append("Mallory")
    record.is_banned = True
    stored = await store.get("abc123")
    assert stored.aliases == ["Bob"]
    assert stored.is_banned is False


@pytest.mark.asyncio()
async def test_apply_ban_respects_create_missing():
    store = InMemoryPlayerStore()
    common = dict(reason="cheating", expires_at=None, reference_id=None, now=NOW)
    assert await store.apply_ban("abc123", **common) is None
    record = await store.apply_ban("abc123", create_missing=True, **common)
    assert record.is_banned
    assert record.ban_count == 1


@pytest.mark.asyncio()
async def test_clear_ban_only_clears_the_ban_that_was_read():
    store = InMemoryPlayerStore()
    await store.upsert_presence("abc123", None, now=NOW)
    await store.apply_ban("abc123", reason="x", expires_at=None, reference_id="ref-1", now=NOW)

    assert await store.clear_ban("abc123", expected_reference="ref-0", expected_count=1) is None
    assert await store.clear_ban("abc123", expected_reference="ref-1", expected_count=0) is None
    assert (await store.get("abc123")).is_banned

    record = await store.clear_ban("abc123", expected_reference="ref-1", expected_count=1)
    assert not record.is_banned
    assert record.sanction_reference_id is None
    assert await store.clear_ban("abc123", expected_reference=None) is None
    assert await store.clear_ban("ghost1") is None


@pytest.mark.asyncio()
async def test_expire_bans_only_touches_expired_timed_bans():
    store = InMemoryPlayerStore()
    for player_id in ("expired1", "running1", "forever1"):
        await store.upsert_presence(player_id, None, now=NOW)
    await store.apply_ban(
        "expired1", reason="x", expires_at=NOW - timedelta(seconds=1), reference_id=None, now=NOW
    )
    await store.apply_ban(
        "running1", reason="x", expires_at=NOW + timedelta(hours=1), reference_id=None, now=NOW
    )
    await store.apply_ban("forever1", reason="x", expires_at=None, reference_id=None, now=NOW)

    assert await store.expire_bans(NOW) == 1
    assert not (await store.get("expired1")).is_banned
    assert (await store.get("running1")).is_banned
    assert (await store.get("forever1")).is_banned
    assert (await store.get("expired1")).ban_count == 1


@pytest.mark.asyncio()
async def test_snapshot_payload_is_isolated_from_callers():
    store = InMemorySnapshotStore()
    entry = {"productUserId": "abc123", "username": "Bob"}
    await store.add(
        SnapshotRecord(
            snapshot_id="snap1",
            taken_at=NOW,
            label="manual",
            total_count=1,
            banned_count=0,
            clean_count=1,
            payload=(entry,),
        )
    )
    entry["username"] = "changed"
    fetched = await store.get("snap1")
    fetched.payload[0]["username"] = "changed again"

    assert (await store.get("snap1")).payload[0]["username"] == "Bob"
    assert await store.delete("snap1") is True
    assert await store.delete("snap1") is False
