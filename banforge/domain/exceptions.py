"""Exceptions raised by BanForge domain services."""

from __future__ import annotations

from typing import Any, Mapping


class BanForgeError(RuntimeError):
    """Base class for domain exceptions."""

    kind = "BanForgeError"


class InvalidIdentity(BanForgeError):
    """Raised when a player identity is empty, too short or a sentinel value."""

    kind = "InvalidIdentity"

    def __init__(self, player_id: object, reason: str = "invalid player identity") -> None:
        super().__init__(f"{reason}: {player_id!r}")
        self.player_id = player_id
        self.reason = reason


class PlayerNotFound(BanForgeError):
    """Raised when an operation targets an identity unknown to the store."""

    kind = "PlayerNotFound"

    def __init__(self, player_id: str) -> None:
        super().__init__(f"Player {player_id} not found")
        self.player_id = player_id


class SnapshotNotFound(BanForgeError):
    """Raised when a snapshot id does not exist."""

    kind = "SnapshotNotFound"

    def __init__(self, snapshot_id: str) -> None:
        super().__init__(f"Snapshot {snapshot_id} not found")
        self.snapshot_id = snapshot_id


class ExternalSanctionFailed(BanForgeError):
    """Raised when the sanctions authority is unreachable or rejects a request."""

    kind = "ExternalSanctionFailed"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: Mapping[str, Any] | str | None = None,
    ) -> None:
        text = message
        if status_code is not None:
            text = f"{text} (HTTP {status_code})"
        if detail:
            text = f"{text}: {detail}"
        super().__init__(text)
        self.status_code = status_code
        self.detail = detail


class InvalidBanDuration(BanForgeError):
    """Raised when a ban duration is not finite or lands beyond the calendar."""

    kind = "InvalidBanDuration"

    def __init__(self, duration: object) -> None:
        super().__init__(f"Invalid ban duration: {duration!r}")
        self.duration = duration


class StorageUnavailable(BanForgeError):
    """Raised when the database cannot be reached."""

    kind = "StorageUnavailable"


class Unauthorized(BanForgeError):
    """Raised when the admin secret does not match."""

    kind = "Unauthorized"
