from __future__ import annotations

import json

import pytest

from movecar.config import MoveCarConfig
from movecar.exceptions import RateLimitedError
from movecar.models import Coordinates, SessionStatus
from movecar.session import SessionStateMachine, begin_waiting, mark_confirmed
from movecar.store import MemoryStore


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _machine(clock: _Clock | None = None) -> tuple[SessionStateMachine, MemoryStore]:
    store = MemoryStore(clock=clock) if clock is not None else MemoryStore()
    return SessionStateMachine(store, MoveCarConfig()), store


SHANGHAI = Coordinates(lat=31.23, lng=121.47)


def test_transition_helpers() -> None:
    waiting = begin_waiting("m1")
    assert waiting.status is SessionStatus.WAITING
    confirmed = mark_confirmed(waiting)
    assert confirmed.status is SessionStatus.CONFIRMED
    assert confirmed.session_id == "m1"


@pytest.mark.asyncio
async def test_read_without_session_is_none() -> None:
    machine, _ = _machine()

    snapshot = await machine.read("alice", "m1")

    assert snapshot.status is SessionStatus.NONE
    assert snapshot.owner_location is None
    assert snapshot.is_live is False


@pytest.mark.asyncio
async def test_open_then_read_is_waiting_and_idempotent() -> None:
    machine, _ = _machine()

    opened = await machine.open("alice", "blocking the gate", None, "m1")
    assert opened.status is SessionStatus.WAITING

    first = await machine.read("alice", "m1")
    second = await machine.read("alice", "m1")
    assert first == second
    assert first.status is SessionStatus.WAITING
    assert first.owner_location is None


@pytest.mark.asyncio
async def test_open_writes_keys_with_ttls() -> None:
    machine, store = _machine(_Clock())

    await machine.open("alice", "hi", Coordinates(lat=39.9, lng=116.4), "m1")

    assert store.keys() == ["lock_alice", "loc_alice", "status_alice"]
    assert store.ttl_of("status_alice") == 1800
    assert store.ttl_of("loc_alice") == 3600
    assert store.ttl_of("lock_alice") == 60
    assert json.loads((await store.get("status_alice")) or "") == {"status": "waiting", "sessionId": "m1"}


@pytest.mark.asyncio
async def test_users_are_isolated() -> None:
    machine, _ = _machine()

    await machine.open("alice", None, None, "a1")
    await machine.open("bob", None, None, "b1")
    await machine.confirm("bob")

    assert (await machine.read("alice", "a1")).status is SessionStatus.WAITING
    assert (await machine.read("bob", "b1")).status is SessionStatus.CONFIRMED


@pytest.mark.asyncio
async def test_user_id_is_case_folded() -> None:
    machine, _ = _machine()

    await machine.open("Alice", None, None, "m1")

    assert (await machine.read("alice", "m1")).status is SessionStatus.WAITING
    with pytest.raises(RateLimitedError):
        await machine.open("ALICE", None, None, "m2")


@pytest.mark.asyncio
async def test_rate_limited_open_leaves_session_untouched() -> None:
    machine, store = _machine()

    await machine.open("alice", "first", SHANGHAI, "m1")
    before = {key: await store.get(key) for key in store.keys()}

    with pytest.raises(RateLimitedError):
        await machine.open("alice", "second", Coordinates(lat=39.9, lng=116.4), "m2")

    after = {key: await store.get(key) for key in store.keys()}
    assert after == before
    assert (await machine.read("alice", "m1")).status is SessionStatus.WAITING
    assert (await machine.read("alice", "m2")).status is SessionStatus.NONE


@pytest.mark.asyncio
async def test_confirm_with_location_exposes_owner_links() -> None:
    machine, store = _machine(_Clock())

    await machine.open("alice", None, None, "m1")
    assert await machine.confirm("alice", SHANGHAI) is True

    snapshot = await machine.read("alice", "m1")
    assert snapshot.status is SessionStatus.CONFIRMED
    assert snapshot.is_confirmed
    owner = snapshot.owner_location
    assert owner is not None
    assert (owner.lat, owner.lng) == (31.23, 121.47)
    assert owner.amap_url.startswith("https://uri.amap.com/marker?position=121.4745")
    assert owner.apple_url.startswith("https://maps.apple.com/?ll=31.23,121.47")
    # Confirmed state and owner location expire together.
    assert store.ttl_of("status_alice") == 600
    assert store.ttl_of("owner_loc_alice") == 600


@pytest.mark.asyncio
async def test_confirm_without_location() -> None:
    machine, _ = _machine()

    await machine.open("alice", None, None, "m1")
    await machine.confirm("alice")

    snapshot = await machine.read("alice", "m1")
    assert snapshot.status is SessionStatus.CONFIRMED
    assert snapshot.owner_location is None


@pytest.mark.asyncio
async def test_confirm_without_session_is_noop() -> None:
    machine, store = _machine()

    assert await machine.confirm("alice", SHANGHAI) is False
    assert store.keys() == []
    assert (await machine.read("alice")).status is SessionStatus.NONE


@pytest.mark.asyncio
async def test_session_id_mismatch_reads_none() -> None:
    machine, _ = _machine()

    await machine.open("alice", None, None, "m1")
    await machine.confirm("alice", SHANGHAI)

    other = await machine.read("alice", "m2")
    assert other.status is SessionStatus.NONE
    assert other.owner_location is None
    assert (await machine.read("alice", None)).status is SessionStatus.NONE


@pytest.mark.asyncio
async def test_session_without_id_is_hidden_from_every_poller() -> None:
    machine, _ = _machine()

    await machine.open("alice")
    assert await machine.confirm("alice", SHANGHAI) is True

    for token in (None, "", "m1"):
        snapshot = await machine.read("alice", token)
        assert snapshot.status is SessionStatus.NONE
        assert snapshot.owner_location is None


@pytest.mark.asyncio
async def test_empty_session_id_is_a_token() -> None:
    machine, _ = _machine()

    await machine.open("alice", None, None, "")

    assert (await machine.read("alice", "")).status is SessionStatus.WAITING
    assert (await machine.read("alice", None)).status is SessionStatus.NONE


@pytest.mark.asyncio
async def test_waiting_session_expires() -> None:
    clock = _Clock()
    machine, _ = _machine(clock)

    await machine.open("alice", None, SHANGHAI, "m1")
    clock.now += 1799
    assert (await machine.read("alice", "m1")).status is SessionStatus.WAITING

    clock.now += 1
    assert (await machine.read("alice", "m1")).status is SessionStatus.NONE
    # The requester location outlives the session.
    assert await machine.get_requester_location("alice") is not None


@pytest.mark.asyncio
async def test_confirmed_session_expires_with_owner_location() -> None:
    clock = _Clock()
    machine, _ = _machine(clock)

    await machine.open("alice", None, None, "m1")
    await machine.confirm("alice", SHANGHAI)
    clock.now += 600

    snapshot = await machine.read("alice", "m1")
    assert snapshot.status is SessionStatus.NONE
    assert snapshot.owner_location is None


@pytest.mark.asyncio
async def test_new_open_clears_stale_owner_location() -> None:
    clock = _Clock()
    machine, _ = _machine(clock)

    await machine.open("alice", None, None, "m1")
    await machine.confirm("alice", SHANGHAI)
    clock.now += 61

    await machine.open("alice", None, None, "m2")

    snapshot = await machine.read("alice", "m2")
    assert snapshot.status is SessionStatus.WAITING
    assert snapshot.owner_location is None


@pytest.mark.asyncio
async def test_requester_location_round_trip() -> None:
    machine, _ = _machine()

    assert await machine.get_requester_location("alice") is None
    await machine.open("alice", None, Coordinates(lat=39.9, lng=116.4), "m1")

    location = await machine.get_requester_location("ALICE")
    assert location is not None
    assert (location.lat, location.lng) == (39.9, 116.4)
    assert "name=Requester%20location" in location.amap_url
    assert location.apple_url == "https://maps.apple.com/?ll=39.9,116.4&q=Requester%20location"


@pytest.mark.asyncio
async def test_zero_latitude_counts_as_location() -> None:
    machine, _ = _machine()

    await machine.open("alice", None, Coordinates(lat=0, lng=0), "m1")

    location = await machine.get_requester_location("alice")
    assert location is not None
    assert (location.lat, location.lng) == (0.0, 0.0)


@pytest.mark.asyncio
async def test_malformed_record_reads_as_none() -> None:
    machine, store = _machine()

    await store.put("status_alice", "not json", 100)

    assert (await machine.read("alice")).status is SessionStatus.NONE
    assert await machine.confirm("alice") is False
