"""Tests for delivered/seen transitions and receipt relay."""

import asyncio
import logging

import pytest

from heychat.models import Message
from heychat.realtime import ForbiddenEventError
from tests.conftest import FakeConnection


@pytest.mark.asyncio
async def test_flush_marks_backlog_and_notifies_sender(hub, db_session, make_message, alice, bob, conversation):
    first = make_message(conversation, alice, bob, content="one")
    second = make_message(conversation, alice, bob, content="two")
    sender_tab = FakeConnection(alice.id)
    await hub.presence.register(alice.id, sender_tab)

    flushed = await hub.status.flush_backlog(bob.id)

    assert flushed == [first.id, second.id]
    assert sender_tab.payloads("messageDelivered") == [{"messageId": first.id}, {"messageId": second.id}]
    db_session.expire_all()
    assert db_session.get(Message, first.id).delivered is True
    assert db_session.get(Message, second.id).delivered is True


@pytest.mark.asyncio
async def test_flush_is_idempotent(hub, make_message, alice, bob, conversation):
    make_message(conversation, alice, bob)
    sender_tab = FakeConnection(alice.id)
    await hub.presence.register(alice.id, sender_tab)

    await hub.status.flush_backlog(bob.id)
    assert await hub.status.flush_backlog(bob.id) == []
    assert len(sender_tab.payloads("messageDelivered")) == 1


@pytest.mark.asyncio
async def test_concurrent_flushes_report_each_message_once(hub, make_message, alice, bob, conversation):
    ids = [make_message(conversation, alice, bob, content=str(n)).id for n in range(3)]
    sender_tab = FakeConnection(alice.id)
    await hub.presence.register(alice.id, sender_tab)

    results = await asyncio.gather(
        hub.status.flush_backlog(bob.id),
        hub.status.flush_backlog(bob.id),
    )

    assert sorted(results[0] + results[1]) == ids
    assert sorted(p["messageId"] for p in sender_tab.payloads("messageDelivered")) == ids


@pytest.mark.asyncio
async def test_flush_skips_deleted_and_already_delivered(hub, make_message, alice, bob, conversation):
    make_message(conversation, alice, bob, deleted_for_everyone=True)
    make_message(conversation, alice, bob, delivered=True)
    queued = make_message(conversation, alice, bob)

    assert await hub.status.flush_backlog(bob.id) == [queued.id]


@pytest.mark.asyncio
async def test_flush_with_offline_sender_still_transitions(hub, db_session, make_message, alice, bob, conversation):
    queued = make_message(conversation, alice, bob)

    assert await hub.status.flush_backlog(bob.id) == [queued.id]
    db_session.expire_all()
    assert db_session.get(Message, queued.id).delivered is True


@pytest.mark.asyncio
async def test_seen_relays_to_sender_and_implies_delivered(hub, db_session, make_message, alice, bob, conversation):
    message = make_message(conversation, alice, bob)
    sender_tab = FakeConnection(alice.id)
    await hub.presence.register(alice.id, sender_tab)

    updated = await hub.status.mark_seen(bob.id, message.id)

    assert updated.seen is True
    assert updated.delivered is True
    assert updated.seen_at >= updated.created_at
    assert sender_tab.payloads("messageSeen") == [
        {"messageId": message.id, "seenAt": updated.seen_at.isoformat()}
    ]
    db_session.expire_all()
    stored = db_session.get(Message, message.id)
    assert stored.seen is True
    assert stored.delivered is True


@pytest.mark.asyncio
async def test_first_seen_time_wins(hub, make_message, alice, bob, conversation):
    message = make_message(conversation, alice, bob)

    first = await hub.status.mark_seen(bob.id, message.id)
    second = await hub.status.mark_seen(bob.id, message.id)

    assert second.seen_at == first.seen_at


@pytest.mark.asyncio
async def test_only_recipient_can_mark_seen(hub, make_user, make_message, alice, bob, conversation):
    message = make_message(conversation, alice, bob)
    mallory = make_user("mallory")

    with pytest.raises(ForbiddenEventError):
        await hub.status.mark_seen(alice.id, message.id)
    with pytest.raises(ForbiddenEventError):
        await hub.status.mark_seen(mallory.id, message.id)


@pytest.mark.asyncio
async def test_missing_message_returns_none(hub, bob):
    assert await hub.status.mark_seen(bob.id, 4242) is None


@pytest.mark.asyncio
async def test_claimed_sender_mismatch_relays_to_recorded_sender(
    hub, caplog, make_user, make_message, alice, bob, conversation
):
    message = make_message(conversation, alice, bob)
    mallory = make_user("mallory")
    sender_tab = FakeConnection(alice.id)
    mallory_tab = FakeConnection(mallory.id)
    await hub.presence.register(alice.id, sender_tab)
    await hub.presence.register(mallory.id, mallory_tab)

    with caplog.at_level(logging.WARNING, logger="heychat.realtime.status"):
        await hub.status.mark_seen(bob.id, message.id, claimed_sender_id=mallory.id)

    assert len(sender_tab.payloads("messageSeen")) == 1
    assert mallory_tab.payloads("messageSeen") == []
    assert "claimed sender" in caplog.text
