"""JSON shapes returned by the HTTP API."""

from __future__ import annotations

from typing import Any

from ..domain.player import PlayerProfile
from ..storage.base import SnapshotRecord


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def player_to_json(profile: PlayerProfile) -> dict[str, Any]:
    data: dict[str, Any] = {
        "productUserId": profile.player_id,
        "username": profile.username,
        "aliases": list(profile.aliases),
        "firstSeen": _iso(profile.first_seen),
        "lastSeen": _iso(profile.last_seen),
        "isBanned": profile.is_banned,
        "banReason": profile.ban_reason,
        "banExpiresAt": _iso(profile.ban_expires_at),
        "banCount": profile.ban_count,
        "banState": profile.state.value,
        "sheckles": profile.wallet.get("sheckles", 0),
        "scrap": profile.wallet.get("scrap", 0),
    }
    return data


def snapshot_summary(snapshot: SnapshotRecord) -> dict[str, Any]:
    return {
        "id": snapshot.snapshot_id,
        "label": snapshot.label,
        "takenAt": _iso(snapshot.taken_at),
        "totalCount": snapshot.total_count,
        "bannedCount": snapshot.banned_count,
        "cleanCount": snapshot.clean_count,
    }


def snapshot_to_json(snapshot: SnapshotRecord) -> dict[str, Any]:
    return {**snapshot_summary(snapshot), "payload": list(snapshot.payload)}
