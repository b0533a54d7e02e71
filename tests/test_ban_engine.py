from datetime import timedelta

import pytest

from banforge.domain.bans import BanEngine, BanState, UnknownPlayerPolicy, ban_duration
from banforge.domain.exceptions import (
    ExternalSanctionFailed,
    InvalidBanDuration,
    InvalidIdentity,
    PlayerNotFound,
)
from banforge.domain.identity import HexIdentityNormalizer
from banforge.storage.memory import InMemoryPlayerStore
from banforge.testing import FakeSanctionsAuthority, FrozenClock

PLAYER = "0002abcdef0123456789abcdef012345"


@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def store():
    return InMemoryPlayerStore()


async def _seen(store, clock, player_id=PLAYER):
    await store.upsert_presence(player_id, "Bob", now=clock())


@pytest.mark.asyncio()
async def test_state_machine(store, clock):
    engine = BanEngine(store, clock=clock)
    await _seen(store, clock)
    record = await engine.get(PLAYER)
    assert engine.state_of(record) is BanState.CLEAN

    record = await engine.ban(PLAYER, "cheating", timedelta(minutes=10))
    assert engine.state_of(record) is BanState.BANNED_TIMED
    assert record.ban_expires_at == clock() + timedelta(minutes=10)

    record = await engine.ban(PLAYER, "again")
    assert engine.state_of(record) is BanState.BANNED_PERMANENT
    assert record.ban_expires_at is None

    record = await engine.unban(PLAYER)
    assert engine.state_of(record) is BanState.CLEAN
    assert record.ban_count == 2


@pytest.mark.asyncio()
async def test_timed_ban_lifts_lazily_on_read(store, clock):
    engine = BanEngine(store, clock=clock)
    await _seen(store, clock)
    await engine.ban(PLAYER, "cheating", timedelta(minutes=10))

    clock.advance(minutes=9)
    assert (await engine.get(PLAYER)).is_banned

    clock.advance(minutes=1)
    raw = await store.get(PLAYER)
    assert raw.is_banned  # nothing touched it yet
    record = await engine.get(PLAYER)
    assert not record.is_banned
    assert record.ban_reason == ""
    assert record.ban_expires_at is None
    assert record.ban_count == 1


@pytest.mark.asyncio()
async def test_listing_expires_every_player(store, clock):
    engine = BanEngine(store, clock=clock)
    for player_id in ("player1", "player2"):
        await _seen(store, clock, player_id)
        await engine.ban(player_id, None, timedelta(minutes=1))
    clock.advance(minutes=2)
    assert [record.is_banned for record in await engine.list_players()] == [False, False]


@pytest.mark.asyncio()
async def test_zero_duration_is_permanent_and_default_reason(store, clock):
    engine = BanEngine(store, clock=clock, default_reason="Manual Ban via Admin Tool")
    await _seen(store, clock)
    record = await engine.ban(PLAYER, "   ", timedelta(0))
    assert record.ban_expires_at is None
    assert record.ban_reason == "Manual Ban via Admin Tool"


@pytest.mark.asyncio()
async def test_unban_is_idempotent(store, clock):
    engine = BanEngine(store, clock=clock)
    assert await engine.unban(PLAYER) is None
    await _seen(store, clock)
    first = await engine.unban(PLAYER)
    second = await engine.unban(PLAYER)
    assert not first.is_banned and not second.is_banned
    assert second.ban_count == 0


@pytest.mark.asyncio()
async def test_invalid_identity_rejected(store, clock):
    engine = BanEngine(store, clock=clock)
    with pytest.raises(InvalidIdentity):
        await engine.ban("undefined")
    with pytest.raises(InvalidIdentity):
        await engine.unban("")
    assert await store.list_players() == []


@pytest.mark.asyncio()
async def test_unknown_player_policy(store, clock):
    rejecting = BanEngine(store, clock=clock)
    with pytest.raises(PlayerNotFound):
        await rejecting.ban(PLAYER)

    creating = BanEngine(store, clock=clock, unknown_policy=UnknownPlayerPolicy.CREATE)
    record = await creating.ban(PLAYER, "pre-emptive")
    assert record.is_banned
    assert record.username is None


@pytest.mark.asyncio()
async def test_external_sanction_created_before_local_write(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(
        store, sanctions=sanctions, normalizer=HexIdentityNormalizer(), clock=clock
    )
    await _seen(store, clock)
    record = await engine.ban(PLAYER, "cheating", timedelta(minutes=10))

    assert sanctions.created == [
        {
            "subject_id": PLAYER,
            "justification": "cheating",
            "expires_at": clock() + timedelta(minutes=10),
            "reference_id": "ref-1",
        }
    ]
    assert record.sanction_reference_id == "ref-1"


@pytest.mark.asyncio()
async def test_external_failure_leaves_local_state_untouched(store, clock):
    sanctions = FakeSanctionsAuthority(fail=True)
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)

    with pytest.raises(ExternalSanctionFailed):
        await engine.ban(PLAYER, "cheating")
    record = await store.get(PLAYER)
    assert not record.is_banned
    assert record.ban_count == 0


@pytest.mark.asyncio()
async def test_normalizer_failure_happens_before_any_call(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(
        store, sanctions=sanctions, normalizer=HexIdentityNormalizer(), clock=clock
    )
    await _seen(store, clock, "not-a-product-id")
    with pytest.raises(InvalidIdentity):
        await engine.ban("not-a-product-id")
    assert sanctions.created == []
    assert not (await store.get("not-a-product-id")).is_banned


@pytest.mark.asyncio()
async def test_unban_removes_remote_sanction_first(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)
    await engine.ban(PLAYER, "cheating")

    sanctions.fail = True
    with pytest.raises(ExternalSanctionFailed):
        await engine.unban(PLAYER)
    assert (await store.get(PLAYER)).is_banned

    sanctions.fail = False
    record = await engine.unban(PLAYER)
    assert sanctions.removed == ["ref-1"]
    assert not record.is_banned
    assert record.sanction_reference_id is None


@pytest.mark.asyncio()
async def test_reban_revokes_superseded_sanction(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)
    await engine.ban(PLAYER, "first", timedelta(minutes=5))
    record = await engine.ban(PLAYER, "second")

    assert record.sanction_reference_id == "ref-2"
    assert sanctions.removed == ["ref-1"]
    assert list(sanctions.active) == ["ref-2"]
    assert record.ban_count == 2


@pytest.mark.asyncio()
async def test_unban_without_reference_skips_remote_call(store, clock):
    sanctions = FakeSanctionsAuthority(fail=True)
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)
    await store.apply_ban(PLAYER, reason="legacy", expires_at=None, reference_id=None, now=clock())

    record = await engine.unban(PLAYER)
    assert not record.is_banned
    assert sanctions.removed == []


@pytest.mark.asyncio()
async def test_unban_after_expiry_is_local_only(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)
    await engine.ban(PLAYER, "cheating", timedelta(minutes=10))

    clock.advance(minutes=10)
    record = await engine.unban(PLAYER)

    assert not record.is_banned
    assert record.ban_expires_at is None
    assert record.sanction_reference_id is None
    assert record.ban_count == 1
    assert sanctions.removed == []


@pytest.mark.asyncio()
async def test_ban_after_expiry_leaves_expired_sanction_alone(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)
    await engine.ban(PLAYER, "first", timedelta(minutes=10))

    clock.advance(minutes=11)
    record = await engine.ban(PLAYER, "second")

    assert sanctions.removed == []
    assert record.sanction_reference_id == "ref-2"
    assert record.ban_count == 2
    assert record.ban_reason == "second"


@pytest.mark.asyncio()
async def test_unban_keeps_ban_that_landed_during_remote_removal(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)
    await engine.ban(PLAYER, "first")

    remove = sanctions.remove_sanction

    async def remove_then_reban(reference_id):
        await remove(reference_id)
        await store.apply_ban(
            PLAYER, reason="second", expires_at=None, reference_id="ref-9", now=clock()
        )

    sanctions.remove_sanction = remove_then_reban
    record = await engine.unban(PLAYER)

    assert sanctions.removed == ["ref-1"]
    assert record.is_banned
    assert record.sanction_reference_id == "ref-9"
    assert (await store.get(PLAYER)).ban_reason == "second"


@pytest.mark.asyncio()
async def test_ban_rejects_expiry_beyond_calendar(store, clock):
    sanctions = FakeSanctionsAuthority()
    engine = BanEngine(store, sanctions=sanctions, clock=clock)
    await _seen(store, clock)

    with pytest.raises(InvalidBanDuration):
        await engine.ban(PLAYER, "forever and a day", timedelta.max)
    assert sanctions.created == []
    assert not (await store.get(PLAYER)).is_banned


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [(None, None), (0, None), (-5, None), (30, timedelta(minutes=30)), (1.5, timedelta(seconds=90))],
)
def test_ban_duration(minutes, expected):
    assert ban_duration(minutes) == expected


@pytest.mark.parametrize("minutes", [float("inf"), float("nan"), -float("inf"), 1e15])
def test_ban_duration_rejects_unusable_minutes(minutes):
    with pytest.raises(InvalidBanDuration):
        ban_duration(minutes)
