"""In-memory storage backend for BanForge.

Every mutation below runs without awaiting in between the lookup and the
write, so on a single event loop each call is atomic per identity.
"""

from __future__ import annotations

import copy
from collections import deque
from dataclasses import replace
from datetime import datetime, timezone
from typing import Deque, Mapping, Sequence

from .base import AuditStore, PlayerRecord, PlayerStore, SnapshotRecord, SnapshotStore


def _copy(record: PlayerRecord) -> PlayerRecord:
    return replace(record, aliases=list(record.aliases), wallet=dict(record.wallet))


def _clear_ban_fields(record: PlayerRecord) -> None:
    record.is_banned = False
    record.ban_reason = ""
    record.ban_expires_at = None
    record.sanction_reference_id = None


class InMemoryPlayerStore(PlayerStore):
    def __init__(self) -> None:
        self._records: dict[str, PlayerRecord] = {}

    async def upsert_presence(
        self,
        player_id: str,
        username: str | None,
        *,
        now: datetime,
        wallet: Mapping[str, float] | None = None,
    ) -> PlayerRecord:
        record = self._records.get(player_id)
        if record is None:
            record = PlayerRecord(player_id=player_id, first_seen=now, last_seen=now)
            self._records[player_id] = record
        record.last_seen = now
        if username:
            record.username = username
            if username not in record.aliases:
                record.aliases.append(username)
        if wallet:
            record.wallet.update({key: float(value) for key, value in wallet.items()})
        return _copy(record)

    async def get(self, player_id: str) -> PlayerRecord | None:
        record = self._records.get(player_id)
        return _copy(record) if record else None

    async def list_players(self) -> Sequence[PlayerRecord]:
        records = sorted(self._records.values(), key=lambda rec: rec.last_seen, reverse=True)
        return [_copy(record) for record in records]

    async def delete(self, player_id: str) -> None:
        self._records.pop(player_id, None)

    async def apply_ban(
        self,
        player_id: str,
        *,
        reason: str,
        expires_at: datetime | None,
        reference_id: str | None,
        now: datetime,
        create_missing: bool = False,
    ) -> PlayerRecord | None:
        record = self._records.get(player_id)
        if record is None:
            if not create_missing:
                return None
            record = PlayerRecord(player_id=player_id, first_seen=now, last_seen=now)
            self._records[player_id] = record
        record.is_banned = True
        record.ban_reason = reason
        record.ban_expires_at = expires_at
        record.sanction_reference_id = reference_id
        record.ban_count += 1
        return _copy(record)

    async def clear_ban(
        self,
        player_id: str,
        *,
        expected_reference: str | None = None,
        expected_count: int | None = None,
    ) -> PlayerRecord | None:
        record = self._records.get(player_id)
        if record is None or not record.is_banned:
            return None
        if record.sanction_reference_id != expected_reference:
            return None
        if expected_count is not None and record.ban_count != expected_count:
            return None
        _clear_ban_fields(record)
        return _copy(record)

    async def expire_bans(self, now: datetime, player_id: str | None = None) -> int:
        if player_id is not None:
            candidates = [self._records[player_id]] if player_id in self._records else []
        else:
            candidates = list(self._records.values())
        expired = 0
        for record in candidates:
            if record.is_banned and record.ban_expires_at is not None and record.ban_expires_at <= now:
                _clear_ban_fields(record)
                expired += 1
        return expired

    async def replace(self, record: PlayerRecord) -> None:
        self._records[record.player_id] = _copy(record)


class InMemorySnapshotStore(SnapshotStore):
    def __init__(self) -> None:
        self._snapshots: dict[str, SnapshotRecord] = {}

    async def add(self, snapshot: SnapshotRecord) -> None:
        self._snapshots[snapshot.snapshot_id] = replace(
            snapshot, payload=copy.deepcopy(snapshot.payload)
        )

    async def get(self, snapshot_id: str) -> SnapshotRecord | None:
        snapshot = self._snapshots.get(snapshot_id)
        if snapshot is None:
            return None
        return replace(snapshot, payload=copy.deepcopy(snapshot.payload))

    async def list_snapshots(self) -> Sequence[SnapshotRecord]:
        ordered = sorted(self._snapshots.values(), key=lambda snap: snap.taken_at, reverse=True)
        return [replace(snap, payload=copy.deepcopy(snap.payload)) for snap in ordered]

    async def delete(self, snapshot_id: str) -> bool:
        return self._snapshots.pop(snapshot_id, None) is not None


class InMemoryAuditStore(AuditStore):
    def __init__(self, *, maxlen: int = 1000) -> None:
        self._entries: Deque[tuple[datetime, str, dict]] = deque(maxlen=maxlen)

    async def add_entry(self, action: str, payload: dict) -> None:
        self._entries.append((datetime.now(timezone.utc), action, payload))

    def dump(self) -> list[tuple[datetime, str, dict]]:
        return list(self._entries)
