"""Point-in-time exports of the player store and their retention."""

from __future__ import annotations

import asyncio
import enum
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Sequence

from .bans import BanEngine
from .exceptions import SnapshotNotFound
from ..storage.base import PlayerStore, SnapshotRecord, SnapshotStore
from ..storage.documents import document_to_record, record_to_document

logger = logging.getLogger(__name__)


class RetentionMode(str, enum.Enum):
    COUNT = "count"
    AGE = "age"


@dataclass(slots=True, frozen=True)
class RetentionPolicy:
    """Exactly one pruning rule applies: keep N snapshots, or keep a time window."""

    mode: RetentionMode = RetentionMode.COUNT
    max_count: int = 24
    max_age: timedelta = timedelta(hours=24)

    def select_expired(
        self, snapshots: Sequence[SnapshotRecord], now: datetime
    ) -> list[SnapshotRecord]:
        ordered = sorted(snapshots, key=lambda snap: snap.taken_at, reverse=True)
        if RetentionMode(self.mode) is RetentionMode.COUNT:
            return ordered[max(self.max_count, 1):]
        cutoff = now - self.max_age
        # The newest snapshot survives even if the clock jumped.
        return [snap for snap in ordered[1:] if snap.taken_at < cutoff]


class SnapshotService:
    """Take, prune, restore and export snapshots of the player store."""

    def __init__(
        self,
        players: PlayerStore,
        snapshots: SnapshotStore,
        engine: BanEngine,
        *,
        retention: RetentionPolicy | None = None,
        export_prefix: str = "GW",
    ) -> None:
        self._players = players
        self._snapshots = snapshots
        self._engine = engine
        self._retention = retention or RetentionPolicy()
        self._export_prefix = export_prefix
        self._pass_lock = asyncio.Lock()

    @property
    def retention(self) -> RetentionPolicy:
        return self._retention

    async def take_snapshot(self, label: str | None = None) -> SnapshotRecord | None:
        async with self._pass_lock:
            records = await self._engine.list_players()
            if not records:
                logger.info("Player store is empty; snapshot skipped.")
                return None
            taken_at = self._engine.now()
            payload = tuple(record_to_document(record) for record in records)
            banned = sum(1 for record in records if record.is_banned)
            snapshot = SnapshotRecord(
                snapshot_id=uuid.uuid4().hex,
                taken_at=taken_at,
                label=(label or "").strip() or f"auto-{taken_at.isoformat()}",
                total_count=len(records),
                banned_count=banned,
                clean_count=len(records) - banned,
                payload=payload,
            )
            await self._snapshots.add(snapshot)
            logger.info(
                "Snapshot %s stored (%s players, %s banned).",
                snapshot.snapshot_id,
                snapshot.total_count,
                snapshot.banned_count,
            )
            await self._prune(taken_at)
            return snapshot

    async def list_snapshots(self) -> Sequence[SnapshotRecord]:
        return await self._snapshots.list_snapshots()

    async def get_snapshot(self, snapshot_id: str) -> SnapshotRecord:
        snapshot = await self._snapshots.get(snapshot_id)
        if snapshot is None:
            raise SnapshotNotFound(snapshot_id)
        return snapshot

    async def delete_snapshot(self, snapshot_id: str) -> bool:
        return await self._snapshots.delete(snapshot_id)

    async def restore(
        self,
        snapshot_id: str | None = None,
        payload: Iterable[Mapping[str, Any]] | None = None,
    ) -> int:
        """Overwrite players from a stored snapshot or a raw payload; return records written."""
        if (snapshot_id is None) == (payload is None):
            raise ValueError("Provide exactly one of snapshot_id or payload")
        if snapshot_id is not None:
            payload = (await self.get_snapshot(snapshot_id)).payload

        now = self._engine.now()
        records = []
        skipped = 0
        for entry in payload or ():
            try:
                record = document_to_record(entry, default_time=now)
            except (TypeError, ValueError, OverflowError) as exc:
                logger.warning("Skipping malformed backup entry: %s", exc)
                record = None
            if record is None:
                skipped += 1
                continue
            records.append(record)

        # Nothing is written until every entry has been parsed.
        for record in records:
            await self._players.replace(record)
        logger.info("Restored %s player(s), skipped %s entries.", len(records), skipped)
        return len(records)

    def export_snapshot(self, snapshot: SnapshotRecord) -> tuple[str, bytes]:
        """Render a snapshot as the JSON attachment sent to the backup channel."""
        stamp = snapshot.taken_at.isoformat().replace(":", "-")
        filename = f"{self._export_prefix}_Backup_{stamp}.json"
        data = json.dumps(list(snapshot.payload), indent=2, ensure_ascii=False)
        return filename, data.encode("utf-8")

    async def _prune(self, now: datetime) -> None:
        expired = self._retention.select_expired(await self._snapshots.list_snapshots(), now)
        for snapshot in expired:
            await self._snapshots.delete(snapshot.snapshot_id)
        if expired:
            logger.info(
                "Retention (%s) removed %s snapshot(s).",
                RetentionMode(self._retention.mode).value,
                len(expired),
            )
