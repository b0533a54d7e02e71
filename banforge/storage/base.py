"""Storage abstractions used by the BanForge services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence

DEFAULT_BAN_REASON = "Manual Ban via Admin Tool"


@dataclass(slots=True)
class PlayerRecord:
    player_id: str
    first_seen: datetime
    last_seen: datetime
    username: str | None = None
    aliases: list[str] = field(default_factory=list)
    wallet: dict[str, float] = field(default_factory=dict)
    is_banned: bool = False
    ban_reason: str = ""
    ban_expires_at: datetime | None = None
    ban_count: int = 0
    sanction_reference_id: str | None = None


@dataclass(slots=True, frozen=True)
class SnapshotRecord:
    snapshot_id: str
    taken_at: datetime
    label: str
    total_count: int
    banned_count: int
    clean_count: int
    payload: tuple[dict[str, Any], ...] = ()


class PlayerStore(Protocol):
    async def upsert_presence(
        self,
        player_id: str,
        username: str | None,
        *,
        now: datetime,
        wallet: Mapping[str, float] | None = None,
    ) -> PlayerRecord:
        ...

    async def get(self, player_id: str) -> PlayerRecord | None:
        ...

    async def list_players(self) -> Sequence[PlayerRecord]:
        ...

    async def delete(self, player_id: str) -> None:
        ...

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
        ...

    async def clear_ban(
        self,
        player_id: str,
        *,
        expected_reference: str | None = None,
        expected_count: int | None = None,
    ) -> PlayerRecord | None:
        """Clear a ban only if it is still the one the caller read; ``None`` otherwise."""
        ...

    async def expire_bans(self, now: datetime, player_id: str | None = None) -> int:
        ...

    async def replace(self, record: PlayerRecord) -> None:
        ...


class SnapshotStore(Protocol):
    async def add(self, snapshot: SnapshotRecord) -> None:
        ...

    async def get(self, snapshot_id: str) -> SnapshotRecord | None:
        ...

    async def list_snapshots(self) -> Sequence[SnapshotRecord]:
        """Return snapshots newest first."""
        ...

    async def delete(self, snapshot_id: str) -> bool:
        ...


class AuditStore(Protocol):
    async def add_entry(self, action: str, payload: dict) -> None:
        ...
