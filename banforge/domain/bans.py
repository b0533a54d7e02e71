"""Ban reconciliation between the local store and the sanctions authority.

A player is in one of three states: clean, banned permanently, or banned
until ``ban_expires_at``. Timed bans are never lifted by a timer. Every read
and write that goes through :class:`BanEngine` first clears the bans whose
expiry has passed ("lazy expiry"), so callers never observe a stale ban.

When a sanctions authority is configured the remote call always happens
before the local write. A ban is only stored once the authority accepted it,
and an unban only clears the local flag once the authority dropped the
sanction, so local and remote state cannot disagree after a failure.
"""

from __future__ import annotations

import enum
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol, Sequence

from .exceptions import ExternalSanctionFailed, InvalidBanDuration, PlayerNotFound
from .identity import IdentityNormalizer, passthrough_identity, validate_identity
from ..storage.base import DEFAULT_BAN_REASON, PlayerRecord, PlayerStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ban_duration(minutes: float | None) -> timedelta | None:
    """Turn a duration in minutes into a timedelta; zero, negative or missing means permanent."""
    if minutes is None:
        return None
    if not math.isfinite(minutes):
        raise InvalidBanDuration(minutes)
    if minutes <= 0:
        return None
    try:
        return timedelta(minutes=minutes)
    except OverflowError as exc:
        raise InvalidBanDuration(minutes) from exc


class BanState(str, enum.Enum):
    CLEAN = "clean"
    BANNED_PERMANENT = "banned_permanent"
    BANNED_TIMED = "banned_timed"


class UnknownPlayerPolicy(str, enum.Enum):
    """What a ban does with an identity the store has never seen."""

    REJECT = "reject"
    CREATE = "create"


class SanctionsAuthority(Protocol):
    async def create_sanction(
        self, subject_id: str, *, justification: str, expires_at: datetime | None
    ) -> str | None:
        """Create a sanction and return its reference id (if the authority issues one)."""
        ...

    async def remove_sanction(self, reference_id: str) -> None:
        ...


class BanEngine:
    """Apply bans and unbans, and enforce timed expiry on access."""

    def __init__(
        self,
        store: PlayerStore,
        *,
        sanctions: SanctionsAuthority | None = None,
        normalizer: IdentityNormalizer = passthrough_identity,
        unknown_policy: UnknownPlayerPolicy = UnknownPlayerPolicy.REJECT,
        default_reason: str = DEFAULT_BAN_REASON,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._sanctions = sanctions
        self._normalizer = normalizer
        self._unknown_policy = UnknownPlayerPolicy(unknown_policy)
        self._default_reason = default_reason
        self._clock = clock

    @property
    def sanctions_enabled(self) -> bool:
        return self._sanctions is not None

    def now(self) -> datetime:
        return self._clock()

    def state_of(self, record: PlayerRecord, now: datetime | None = None) -> BanState:
        if not record.is_banned:
            return BanState.CLEAN
        if record.ban_expires_at is None:
            return BanState.BANNED_PERMANENT
        if record.ban_expires_at <= (now or self._clock()):
            return BanState.CLEAN
        return BanState.BANNED_TIMED

    async def check_expirations(self, player_id: str | None = None) -> int:
        expired = await self._store.expire_bans(self._clock(), player_id)
        if expired:
            logger.info("Lifted %s expired ban(s)%s.", expired, f" for {player_id}" if player_id else "")
        return expired

    async def get(self, player_id: str) -> PlayerRecord | None:
        player_id = validate_identity(player_id)
        await self.check_expirations(player_id)
        return await self._store.get(player_id)

    async def list_players(self) -> Sequence[PlayerRecord]:
        await self.check_expirations()
        return await self._store.list_players()

    async def ban(
        self,
        player_id: str,
        reason: str | None = None,
        duration: timedelta | None = None,
    ) -> PlayerRecord:
        player_id = validate_identity(player_id)
        await self.check_expirations(player_id)
        existing = await self._store.get(player_id)
        if existing is None and self._unknown_policy is UnknownPlayerPolicy.REJECT:
            raise PlayerNotFound(player_id)

        now = self._clock()
        expires_at = None
        if duration and duration > timedelta(0):
            try:
                expires_at = now + duration
            except OverflowError as exc:
                raise InvalidBanDuration(duration) from exc
        justification = (reason or "").strip() or self._default_reason

        reference_id = None
        if self._sanctions is not None:
            subject_id = self._normalizer(player_id)
            logger.info("Creating external sanction for %s (subject %s).", player_id, subject_id)
            reference_id = await self._sanctions.create_sanction(
                subject_id, justification=justification, expires_at=expires_at
            )

        record = await self._store.apply_ban(
            player_id,
            reason=justification,
            expires_at=expires_at,
            reference_id=reference_id,
            now=now,
            create_missing=self._unknown_policy is UnknownPlayerPolicy.CREATE,
        )
        if record is None:
            # Deleted while the authority was being called.
            if reference_id:
                await self._revoke_quietly(reference_id, player_id)
            raise PlayerNotFound(player_id)

        previous_reference = existing.sanction_reference_id if existing else None
        if previous_reference and previous_reference != reference_id:
            await self._revoke_quietly(previous_reference, player_id)

        logger.info(
            "Banned %s (%s, count=%s, expires=%s).",
            player_id,
            justification,
            record.ban_count,
            expires_at.isoformat() if expires_at else "never",
        )
        return record

    async def unban(self, player_id: str) -> PlayerRecord | None:
        player_id = validate_identity(player_id)
        await self.check_expirations(player_id)
        record = await self._store.get(player_id)
        if record is None or not record.is_banned:
            return record

        if self._sanctions is not None and record.sanction_reference_id:
            logger.info(
                "Removing external sanction %s for %s.", record.sanction_reference_id, player_id
            )
            await self._sanctions.remove_sanction(record.sanction_reference_id)

        cleared = await self._store.clear_ban(
            player_id,
            expected_reference=record.sanction_reference_id,
            expected_count=record.ban_count,
        )
        if cleared is None:
            # A ban, expiry or delete landed after the read; keep what is stored now.
            current = await self._store.get(player_id)
            logger.warning("Ban on %s changed during unban; local record left as stored.", player_id)
            return current
        logger.info("Unbanned %s.", player_id)
        return cleared

    async def _revoke_quietly(self, reference_id: str, player_id: str) -> None:
        assert self._sanctions is not None
        try:
            await self._sanctions.remove_sanction(reference_id)
        except ExternalSanctionFailed as exc:
            logger.warning(
                "Could not revoke superseded sanction %s for %s: %s", reference_id, player_id, exc
            )
