"""Player identity validation and normalization for the sanctions authority."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Callable

from .exceptions import InvalidIdentity

MIN_IDENTITY_LENGTH = 5
SENTINEL_IDENTITIES = frozenset({"undefined"})

IdentityNormalizer = Callable[[str], str]
"""Accepts a raw identity and returns the form the authority expects.

Implementations raise :class:`InvalidIdentity` when no usable form exists.
"""


def validate_identity(player_id: object) -> str:
    """Return the stripped identity or raise :class:`InvalidIdentity`."""
    if not isinstance(player_id, str):
        raise InvalidIdentity(player_id, "player identity must be a string")
    cleaned = player_id.strip()
    if not cleaned:
        raise InvalidIdentity(player_id, "player identity is empty")
    if cleaned in SENTINEL_IDENTITIES:
        raise InvalidIdentity(player_id, "player identity is a placeholder value")
    if len(cleaned) < MIN_IDENTITY_LENGTH:
        raise InvalidIdentity(
            player_id, f"player identity shorter than {MIN_IDENTITY_LENGTH} characters"
        )
    return cleaned


def is_valid_identity(player_id: object) -> bool:
    try:
        validate_identity(player_id)
    except InvalidIdentity:
        return False
    return True


def passthrough_identity(player_id: str) -> str:
    return validate_identity(player_id)


@dataclass(slots=True, frozen=True)
class HexIdentityNormalizer:
    """Keep hexadecimal characters only and require a fixed length.

    Epic Online Services product user ids are 32 lowercase hex characters;
    clients occasionally send them with dashes, braces or upper case.
    """

    length: int = 32

    def __call__(self, player_id: str) -> str:
        cleaned = validate_identity(player_id)
        digits = "".join(ch for ch in cleaned.lower() if ch in string.hexdigits)
        if len(digits) != self.length:
            raise InvalidIdentity(
                player_id, f"expected {self.length} hexadecimal characters, got {len(digits)}"
            )
        return digits


def build_normalizer(identity_format: str) -> IdentityNormalizer:
    if identity_format == "raw":
        return passthrough_identity
    if identity_format.startswith("hex"):
        suffix = identity_format[3:]
        return HexIdentityNormalizer(length=int(suffix) if suffix else 32)
    raise ValueError(f"Unsupported identity format {identity_format!r}")
