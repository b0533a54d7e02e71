"""Testing utilities for BanForge."""

from .factory import PlayerFactory
from .fakes import FakeSanctionsAuthority, FrozenClock, RecordingBackupChannel
from .fixtures import TEST_ADMIN_SECRET, app_fixture, memory_app

__all__ = [
    "FakeSanctionsAuthority",
    "FrozenClock",
    "PlayerFactory",
    "RecordingBackupChannel",
    "TEST_ADMIN_SECRET",
    "app_fixture",
    "memory_app",
]
