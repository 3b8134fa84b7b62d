"""Tests for the service endpoints."""

import asyncio

from tests.conftest import FakeConnection


def test_health_reports_online_users(client, hub, alice):
    assert client.get("/health").json() == {"status": "ok", "online": 0}

    asyncio.run(hub.presence.register(alice.id, FakeConnection(alice.id)))

    assert client.get("/health").json() == {"status": "ok", "online": 1}


def test_root_points_to_realtime_endpoint(client):
    body = client.get("/").json()
    assert body["realtime"] == "/ws"
    assert body["name"]
