"""Tests for the presence directory."""

import pytest

from heychat.realtime import PresenceDirectory
from tests.conftest import FakeConnection


@pytest.mark.asyncio
async def test_register_keeps_every_handle_of_a_user():
    presence = PresenceDirectory()
    first, second = FakeConnection("a"), FakeConnection("a")

    assert await presence.register("a", first) is True
    assert await presence.register("a", second) is False

    assert presence.lookup("a") == frozenset({first, second})
    assert presence.is_online("a")
    assert presence.online_users() == ["a"]


@pytest.mark.asyncio
async def test_online_broadcast_goes_to_other_users_once():
    presence = PresenceDirectory()
    watcher = FakeConnection("w")
    await presence.register("w", watcher)

    own_tab = FakeConnection("a")
    await presence.register("a", own_tab)
    await presence.register("a", FakeConnection("a"))

    assert watcher.payloads("userOnline") == [{"userId": "a"}]
    assert own_tab.frames == []


@pytest.mark.asyncio
async def test_remove_only_drops_the_given_handle():
    presence = PresenceDirectory()
    watcher = FakeConnection("w")
    await presence.register("w", watcher)
    first, second = FakeConnection("a"), FakeConnection("a")
    await presence.register("a", first)
    await presence.register("a", second)

    assert await presence.remove("a", first) is False
    assert presence.lookup("a") == frozenset({second})
    assert watcher.payloads("userOffline") == []

    assert await presence.remove("a", second) is True
    assert "a" not in presence
    offline = watcher.payloads("userOffline")
    assert len(offline) == 1
    assert offline[0]["userId"] == "a"
    assert "lastActive" in offline[0]


@pytest.mark.asyncio
async def test_remove_unknown_handle_is_noop():
    presence = PresenceDirectory()
    await presence.register("a", FakeConnection("a"))

    assert await presence.remove("a", FakeConnection("a")) is False
    assert await presence.remove("ghost", FakeConnection("ghost")) is False
    assert presence.is_online("a")


@pytest.mark.asyncio
async def test_emit_skips_closed_handles():
    presence = PresenceDirectory()
    live, dead = FakeConnection("a"), FakeConnection("a")
    await presence.register("a", live)
    await presence.register("a", dead)
    dead.mark_closed()

    sent = await presence.emit("a", "ping", {"n": 1})

    assert sent == 1
    assert live.frames == [("ping", {"n": 1})]
    assert dead.frames == []


@pytest.mark.asyncio
async def test_emit_to_offline_user_sends_nothing():
    presence = PresenceDirectory()
    assert await presence.emit("nobody", "ping", {}) == 0
    assert presence.lookup("nobody") == frozenset()
