from datetime import datetime, timedelta, timezone

from banforge.domain.bans import BanState
from banforge.domain.player import PlayerProfile
from banforge.storage.base import SnapshotRecord
from banforge.telegram.formatters import format_backup_caption, format_player_status

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _profile(**overrides):
    values = dict(
        player_id="abc123",
        username="tester",
        aliases=("tester", "alt"),
        wallet={"sheckles": 10.0, "scrap": 2.5},
        first_seen=NOW,
        last_seen=NOW,
        is_banned=False,
        ban_reason="",
        ban_expires_at=None,
        ban_count=0,
        state=BanState.CLEAN,
    )
    values.update(overrides)
    return PlayerProfile(**values)


def test_format_player_status_clean_player():
    text = format_player_status(_profile())
    assert "tester (abc123)" in text
    assert "Aliases: tester, alt" in text
    assert "✅ Not banned" in text
    assert "scrap: 2.5, sheckles: 10" in text


def test_format_player_status_timed_and_permanent_bans():
    timed = _profile(
        is_banned=True,
        ban_reason="cheating",
        ban_expires_at=NOW + timedelta(minutes=10),
        ban_count=2,
        state=BanState.BANNED_TIMED,
    )
    assert "Banned until 2026-01-01 12:10 UTC: cheating" in format_player_status(timed)
    assert "Bans so far: 2" in format_player_status(timed)

    permanent = _profile(is_banned=True, ban_reason="botting", state=BanState.BANNED_PERMANENT)
    assert "Banned permanently: botting" in format_player_status(permanent)


def test_format_backup_caption():
    snapshot = SnapshotRecord(
        snapshot_id="snap1",
        taken_at=NOW,
        label="nightly",
        total_count=5,
        banned_count=2,
        clean_count=3,
    )
    auto = format_backup_caption(snapshot)
    assert "AUTO BACKUP: nightly" in auto
    assert "Players: 5" in auto
    assert "Banned: 2" in auto and "Clean: 3" in auto
    assert "MANUAL BACKUP" in format_backup_caption(snapshot, manual=True)
