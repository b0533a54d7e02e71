"""Pytest fixtures for BanForge."""

from __future__ import annotations

from typing import Any

import pytest

from ..app import ServiceApp
from ..config import AdminConfig, BanForgeConfig
from .fakes import FrozenClock

TEST_ADMIN_SECRET = "test-admin-secret"


@pytest.fixture()
def memory_app() -> ServiceApp:
    return app_fixture()


def app_fixture(config: BanForgeConfig | None = None, **services: Any) -> ServiceApp:
    """Helper for ad-hoc tests where pytest is not available."""
    config = config or BanForgeConfig(admin=AdminConfig(secret=TEST_ADMIN_SECRET))
    services.setdefault("clock", FrozenClock())
    return ServiceApp(config, **services)
