"""Conversion between player records and their JSON documents.

Every document that enters the system (snapshot payloads, backup files,
restore requests) passes through :func:`document_to_record` once, so the rest
of the code only ever sees canonical :class:`PlayerRecord` objects.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from ..domain.identity import is_valid_identity
from .base import DEFAULT_BAN_REASON, PlayerRecord

IDENTITY_KEYS = ("productUserId", "playerId", "id")
WALLET_KEYS = ("sheckles", "scrap")
TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "off", ""})


def utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def record_to_document(record: PlayerRecord) -> dict[str, Any]:
    document: dict[str, Any] = {
        "productUserId": record.player_id,
        "username": record.username,
        "aliases": list(record.aliases),
        "firstSeen": _format_timestamp(record.first_seen),
        "lastSeen": _format_timestamp(record.last_seen),
        "isBanned": record.is_banned,
        "banReason": record.ban_reason,
        "banExpiresAt": _format_timestamp(record.ban_expires_at),
        "banCount": record.ban_count,
        "sanctionReferenceId": record.sanction_reference_id,
    }
    for key in WALLET_KEYS:
        document[key] = record.wallet.get(key, 0)
    for key, value in record.wallet.items():
        document.setdefault(key, value)
    return document


def extract_identity(document: Mapping[str, Any]) -> str | None:
    for key in IDENTITY_KEYS:
        value = document.get(key)
        if isinstance(value, str) and is_valid_identity(value):
            return value.strip()
    return None


def document_to_record(
    document: Mapping[str, Any], *, default_time: datetime | None = None
) -> PlayerRecord | None:
    """Build a record from any known document shape; ``None`` if it has no identity."""
    if not isinstance(document, Mapping):
        return None
    player_id = extract_identity(document)
    if player_id is None:
        return None

    now = default_time or datetime.now(timezone.utc)
    first_seen = _parse_timestamp(document.get("firstSeen")) or now
    last_seen = _parse_timestamp(document.get("lastSeen")) or first_seen

    username = document.get("username")
    aliases = _dedupe(str(alias) for alias in document.get("aliases") or () if alias)
    if username and username not in aliases:
        aliases.append(username)

    wallet = dict(document.get("wallet") or {})
    for key in WALLET_KEYS:
        if document.get(key) is not None:
            wallet[key] = float(document[key])

    is_banned = _parse_bool(document.get("isBanned", False))
    ban_reason = ""
    if is_banned:
        ban_reason = str(document.get("banReason") or "").strip() or DEFAULT_BAN_REASON
    ban_expires_at = _parse_timestamp(document.get("banExpiresAt")) if is_banned else None
    return PlayerRecord(
        player_id=player_id,
        username=username,
        aliases=aliases,
        first_seen=first_seen,
        last_seen=last_seen,
        wallet={str(k): float(v) for k, v in wallet.items()},
        is_banned=is_banned,
        ban_reason=ban_reason,
        ban_expires_at=ban_expires_at,
        ban_count=int(document.get("banCount") or 0),
        sanction_reference_id=(document.get("sanctionReferenceId") or None) if is_banned else None,
    )


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
        raise ValueError(f"Invalid boolean {raw!r}")
    return bool(raw)


def _format_timestamp(value: datetime | None) -> str | None:
    value = utc(value)
    return value.isoformat() if value else None


def _parse_timestamp(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return utc(raw)
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError(f"Invalid timestamp {raw!r}") from exc
    text = str(raw)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp {raw!r}") from exc
