"""Administrative operations for BanForge."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from ..domain import events
from ..domain.bans import BanEngine
from ..domain.events import EventBus
from ..domain.player import PlayerProfile, PlayerService
from ..domain.snapshots import SnapshotService
from ..storage.base import AuditStore, SnapshotRecord


class AdminService:
    """Ban, unban, delete and backup actions with an audit trail."""

    def __init__(
        self,
        engine: BanEngine,
        players: PlayerService,
        snapshots: SnapshotService,
        audit_store: AuditStore,
        event_bus: EventBus,
        *,
        audit_enabled: bool = True,
    ) -> None:
        self._engine = engine
        self._players = players
        self._snapshots = snapshots
        self._audit_store = audit_store
        self._events = event_bus
        self._audit_enabled = audit_enabled

    async def ban_player(
        self,
        player_id: str,
        *,
        reason: str | None = None,
        duration: timedelta | None = None,
        actor: str = "api",
    ) -> PlayerProfile:
        record = await self._engine.ban(player_id, reason, duration)
        payload = {
            "player_id": record.player_id,
            "reason": record.ban_reason,
            "expires_at": record.ban_expires_at.isoformat() if record.ban_expires_at else None,
            "ban_count": record.ban_count,
            "actor": actor,
        }
        await self._audit("ban", payload)
        await self._events.publish(events.PLAYER_BANNED, payload)
        return self._players.to_profile(record)

    async def unban_player(self, player_id: str, *, actor: str = "api") -> PlayerProfile | None:
        record = await self._engine.unban(player_id)
        payload = {"player_id": player_id, "known": record is not None, "actor": actor}
        await self._audit("unban", payload)
        await self._events.publish(events.PLAYER_UNBANNED, payload)
        return self._players.to_profile(record) if record else None

    async def delete_player(self, player_id: str, *, actor: str = "api") -> None:
        await self._players.delete(player_id)
        payload = {"player_id": player_id, "actor": actor}
        await self._audit("delete", payload)
        await self._events.publish(events.PLAYER_DELETED, payload)

    async def create_snapshot(
        self, label: str | None = None, *, actor: str = "api"
    ) -> SnapshotRecord | None:
        snapshot = await self._snapshots.take_snapshot(label)
        if snapshot is not None:
            await self.record_snapshot(snapshot, actor=actor)
        return snapshot

    async def record_snapshot(self, snapshot: SnapshotRecord, *, actor: str) -> None:
        payload = {
            "snapshot_id": snapshot.snapshot_id,
            "label": snapshot.label,
            "total": snapshot.total_count,
            "actor": actor,
        }
        await self._audit("snapshot", payload)
        await self._events.publish(events.SNAPSHOT_CREATED, payload)

    async def restore(
        self,
        *,
        snapshot_id: str | None = None,
        players: Iterable[Mapping[str, Any]] | None = None,
        actor: str = "api",
    ) -> int:
        restored = await self._snapshots.restore(snapshot_id=snapshot_id, payload=players)
        payload = {"snapshot_id": snapshot_id, "restored": restored, "actor": actor}
        await self._audit("restore", payload)
        await self._events.publish(events.SNAPSHOT_RESTORED, payload)
        return restored

    async def delete_snapshot(self, snapshot_id: str, *, actor: str = "api") -> bool:
        removed = await self._snapshots.delete_snapshot(snapshot_id)
        payload = {"snapshot_id": snapshot_id, "removed": removed, "actor": actor}
        await self._audit("delete_snapshot", payload)
        await self._events.publish(events.SNAPSHOT_DELETED, payload)
        return removed

    async def _audit(self, action: str, payload: dict) -> None:
        if not self._audit_enabled:
            return
        await self._audit_store.add_entry(
            action,
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **payload,
            },
        )
