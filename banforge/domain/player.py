"""Player-centric utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Sequence

from .bans import BanEngine, BanState
from .exceptions import PlayerNotFound
from .identity import validate_identity
from ..storage.base import PlayerRecord, PlayerStore


@dataclass(slots=True)
class PlayerProfile:
    player_id: str
    username: str | None
    aliases: Sequence[str]
    wallet: Mapping[str, float]
    first_seen: datetime
    last_seen: datetime
    is_banned: bool
    ban_reason: str
    ban_expires_at: datetime | None
    ban_count: int
    state: BanState


class PlayerService:
    """Presence tracking plus read/delete access to player state."""

    def __init__(self, store: PlayerStore, engine: BanEngine) -> None:
        self._store = store
        self._engine = engine

    async def track(
        self,
        player_id: str,
        username: str | None,
        wallet: Mapping[str, float] | None = None,
    ) -> PlayerProfile:
        """Record a heartbeat and return the player's current ban status."""
        player_id = validate_identity(player_id)
        await self._engine.check_expirations(player_id)
        record = await self._store.upsert_presence(
            player_id,
            (username or "").strip() or None,
            now=self._engine.now(),
            wallet={key: value for key, value in (wallet or {}).items() if value is not None},
        )
        return self.to_profile(record)

    async def fetch(self, player_id: str) -> PlayerProfile:
        record = await self._engine.get(player_id)
        if record is None:
            raise PlayerNotFound(player_id)
        return self.to_profile(record)

    async def list_profiles(self) -> list[PlayerProfile]:
        return [self.to_profile(record) for record in await self._engine.list_players()]

    async def delete(self, player_id: str) -> None:
        await self._store.delete(validate_identity(player_id))

    def to_profile(self, record: PlayerRecord) -> PlayerProfile:
        return PlayerProfile(
            player_id=record.player_id,
            username=record.username,
            aliases=tuple(record.aliases),
            wallet=dict(record.wallet),
            first_seen=record.first_seen,
            last_seen=record.last_seen,
            is_banned=record.is_banned,
            ban_reason=record.ban_reason,
            ban_expires_at=record.ban_expires_at,
            ban_count=record.ban_count,
            state=self._engine.state_of(record),
        )
