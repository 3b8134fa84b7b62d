"""End-to-end tests of the WebSocket endpoint."""

import pytest
from starlette.websockets import WebSocketDisconnect

from heychat.core.security import create_access_token


def ws_url(user) -> str:
    return f"/ws?token={create_access_token(user.id)}"


def test_connection_without_token_is_refused(client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/ws"):
            pass
    assert excinfo.value.code == 1008


def test_connection_with_bad_token_is_refused(client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/ws?token=garbage"):
            pass
    assert excinfo.value.code == 1008


def test_banned_user_is_refused(client, make_user):
    banned = make_user("spammer", is_banned=True)
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect(ws_url(banned)):
            pass
    assert excinfo.value.code == 1008


def test_authorization_header_is_accepted(client, hub, alice):
    headers = {"Authorization": f"Bearer {create_access_token(alice.id)}"}
    with client.websocket_connect("/ws", headers=headers) as socket:
        socket.send_json({"event": "typing", "data": {"to": "nobody"}})
        socket.send_json({"event": "bogus", "data": {}})
        # Nothing comes back for either frame; the socket stays usable.
        socket.send_json({"event": "privateMessage", "data": {"to": alice.id, "content": "self"}})
        assert socket.receive_json() == {"event": "error", "data": {"message": "No active chat with this user"}}


def test_presence_and_message_flow(client, alice, bob, conversation):
    with client.websocket_connect(ws_url(alice)) as alice_ws:
        with client.websocket_connect(ws_url(bob)) as bob_ws:
            assert alice_ws.receive_json() == {"event": "userOnline", "data": {"userId": bob.id}}

            alice_ws.send_json({"event": "privateMessage", "data": {"to": bob.id, "content": "hello bob"}})

            received = bob_ws.receive_json()
            assert received["event"] == "receiveMessage"
            assert received["data"]["content"] == "hello bob"
            assert received["data"]["sender"] == alice.id
            assert received["data"]["delivered"] is True

            sent = alice_ws.receive_json()
            assert sent["event"] == "messageSent"
            message_id = sent["data"]["id"]
            assert alice_ws.receive_json() == {"event": "messageDelivered", "data": {"messageId": message_id}}

            bob_ws.send_json({"event": "typing", "data": {"to": alice.id}})
            assert alice_ws.receive_json() == {"event": "userTyping", "data": {"from": bob.id}}

            bob_ws.send_json({"event": "messageSeen", "data": {"messageId": message_id, "senderId": alice.id}})
            seen = alice_ws.receive_json()
            assert seen["event"] == "messageSeen"
            assert seen["data"]["messageId"] == message_id

        offline = alice_ws.receive_json()
        assert offline["event"] == "userOffline"
        assert offline["data"]["userId"] == bob.id


def test_queued_message_is_flushed_on_connect(client, make_message, alice, bob, conversation):
    queued = make_message(conversation, alice, bob, content="while you were out")

    with client.websocket_connect(ws_url(alice)) as alice_ws:
        with client.websocket_connect(ws_url(bob)):
            assert alice_ws.receive_json()["event"] == "userOnline"
            assert alice_ws.receive_json() == {"event": "messageDelivered", "data": {"messageId": queued.id}}


def test_binary_frames_are_dispatched(client, alice, bob, conversation):
    with client.websocket_connect(ws_url(alice)) as alice_ws:
        with client.websocket_connect(ws_url(bob)) as bob_ws:
            assert alice_ws.receive_json()["event"] == "userOnline"

            alice_ws.send_bytes(b'{"event":"privateMessage","data":{"to":"%s","content":"bytes"}}' % bob.id.encode())
            assert bob_ws.receive_json()["data"]["content"] == "bytes"
            assert alice_ws.receive_json()["event"] == "messageSent"
            assert alice_ws.receive_json()["event"] == "messageDelivered"

            # Garbage bytes are dropped and the socket keeps working.
            alice_ws.send_bytes(b"\xff\xfe")
            alice_ws.send_json({"event": "typing", "data": {"to": bob.id}})
            assert bob_ws.receive_json() == {"event": "userTyping", "data": {"from": alice.id}}
