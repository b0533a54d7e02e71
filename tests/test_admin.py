from datetime import timedelta
from types import SimpleNamespace

import pytest

from banforge.admin.commands import build_admin_router, parse_ban_arguments
from banforge.config import AdminConfig, BanForgeConfig
from banforge.domain import events
from banforge.domain.exceptions import InvalidBanDuration
from banforge.telegram.filters import AdminFilter
from banforge.testing import FakeSanctionsAuthority, app_fixture


@pytest.fixture()
def admin_app():
    return app_fixture(sanctions=FakeSanctionsAuthority())


@pytest.mark.asyncio()
async def test_ban_unban_audited_and_published(admin_app):
    received = []

    async def listener(payload):
        received.append(payload)

    admin_app.event_bus.subscribe(events.PLAYER_BANNED, listener)
    admin_app.event_bus.subscribe(events.PLAYER_UNBANNED, listener)
    await admin_app.player_service.track("abc123", "Bob")

    profile = await admin_app.admin_service.ban_player(
        "abc123", reason="cheating", duration=timedelta(minutes=10), actor="tester"
    )
    assert profile.is_banned
    await admin_app.admin_service.unban_player("abc123", actor="tester")

    actions = [action for _, action, _ in admin_app.audit_store.dump()]
    assert actions == ["ban", "unban"]
    assert received[0]["player_id"] == "abc123"
    assert received[0]["ban_count"] == 1
    assert received[0]["actor"] == "tester"
    assert received[1]["known"] is True


@pytest.mark.asyncio()
async def test_failing_listener_does_not_abort_ban(admin_app):
    async def broken(_payload):
        raise RuntimeError("listener down")

    admin_app.event_bus.subscribe(events.PLAYER_BANNED, broken)
    await admin_app.player_service.track("abc123", "Bob")
    profile = await admin_app.admin_service.ban_player("abc123")
    assert profile.is_banned


@pytest.mark.asyncio()
async def test_audit_can_be_disabled():
    app = app_fixture(BanForgeConfig(admin=AdminConfig(enable_audit_logs=False)))
    await app.player_service.track("abc123", "Bob")
    await app.admin_service.delete_player("abc123")
    assert app.audit_store.dump() == []


@pytest.mark.asyncio()
async def test_snapshot_actions_are_audited(admin_app):
    await admin_app.player_service.track("abc123", "Bob")
    snapshot = await admin_app.admin_service.create_snapshot("manual")
    restored = await admin_app.admin_service.restore(snapshot_id=snapshot.snapshot_id)
    removed = await admin_app.admin_service.delete_snapshot(snapshot.snapshot_id)

    assert restored == 1 and removed is True
    actions = [action for _, action, _ in admin_app.audit_store.dump()]
    assert actions == ["snapshot", "restore", "delete_snapshot"]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("/ban", None),
        ("/ban abc123", ("abc123", None, None)),
        ("/ban abc123 30", ("abc123", timedelta(minutes=30), None)),
        ("/ban abc123 0 spam bot", ("abc123", None, "spam bot")),
        ("/ban abc123 speed hacking", ("abc123", None, "speed hacking")),
    ],
)
def test_parse_ban_arguments(text, expected):
    assert parse_ban_arguments(text) == expected


@pytest.mark.parametrize("text", ["/ban abc123 inf", "/ban abc123 nan spam", "/ban abc123 1e15"])
def test_parse_ban_arguments_rejects_unusable_minutes(text):
    with pytest.raises(InvalidBanDuration):
        parse_ban_arguments(text)


def test_admin_router_registers_commands():
    app = app_fixture()
    app.config.admin.telegram_admin_ids = {1}
    router = build_admin_router(app)
    assert len(router.message.handlers) == 4


@pytest.mark.asyncio()
async def test_admin_filter_checks_user_id():
    app = app_fixture()
    app.config.admin.telegram_admin_ids = {42}
    admin_filter = AdminFilter(app.config)
    assert await admin_filter(SimpleNamespace(from_user=SimpleNamespace(id=42)))
    assert not await admin_filter(SimpleNamespace(from_user=SimpleNamespace(id=7)))
    assert not await admin_filter(SimpleNamespace(from_user=None))
