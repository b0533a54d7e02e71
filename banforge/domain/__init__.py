"""Domain models and services."""

from .exceptions import (
    BanForgeError,
    ExternalSanctionFailed,
    InvalidBanDuration,
    InvalidIdentity,
    PlayerNotFound,
    SnapshotNotFound,
    StorageUnavailable,
    Unauthorized,
)
from .identity import HexIdentityNormalizer, passthrough_identity, validate_identity
from .bans import BanEngine, BanState, ban_duration, SanctionsAuthority, UnknownPlayerPolicy
from .player import PlayerProfile, PlayerService
from .snapshots import RetentionMode, RetentionPolicy, SnapshotService

__all__ = [
    "BanEngine",
    "BanState",
    "ban_duration",
    "SanctionsAuthority",
    "UnknownPlayerPolicy",
    "HexIdentityNormalizer",
    "passthrough_identity",
    "validate_identity",
    "PlayerProfile",
    "PlayerService",
    "RetentionMode",
    "RetentionPolicy",
    "SnapshotService",
    "BanForgeError",
    "ExternalSanctionFailed",
    "InvalidBanDuration",
    "InvalidIdentity",
    "PlayerNotFound",
    "SnapshotNotFound",
    "StorageUnavailable",
    "Unauthorized",
]
