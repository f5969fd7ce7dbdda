from __future__ import annotations

import asyncio
import json
import uuid

import pytest

from direct_chat.domain.value_objects.enums import DeliveryResult
from direct_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from direct_chat.realtime.connections import ConnectionTable
from direct_chat.realtime.gateway import CLOSE_AUTH_FAILED, ConnectionGateway
from direct_chat.realtime.registry import SessionRegistry
from direct_chat.realtime.router import EventRouter
from tests.conftest import FakeWebSocket


def _build(verifier: HS256Verifier | None = None):
    registry = SessionRegistry()
    connections = ConnectionTable()
    router = EventRouter(registry, connections)
    gateway = ConnectionGateway(registry, connections, router, verifier, heartbeat_seconds=3600)
    return gateway, registry, connections


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


async def _open(gateway: ConnectionGateway, user_id: str, token: str | None = None):
    ws = FakeWebSocket()
    task = asyncio.create_task(gateway.serve(ws, user_id, token))
    await _settle()
    return ws, task


async def _close(ws: FakeWebSocket, task: asyncio.Task) -> None:
    ws.disconnect()
    await asyncio.wait_for(task, timeout=1)


def _frames(ws: FakeWebSocket) -> list[dict]:
    return [json.loads(s) for s in ws.sent]


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [None, "", "undefined", "not-a-uuid"])
async def test_rejects_missing_or_invalid_user_id(user_id):
    gateway, registry, connections = _build()
    ws = FakeWebSocket()

    await gateway.serve(ws, user_id)

    assert ws.accepted is False
    assert ws.close_code == CLOSE_AUTH_FAILED
    assert len(registry) == 0
    assert len(connections) == 0


@pytest.mark.asyncio
async def test_connect_registers_and_broadcasts_presence():
    gateway, registry, _ = _build()
    u1, u2 = str(uuid.uuid4()), str(uuid.uuid4())

    ws1, t1 = await _open(gateway, u1)
    ws2, t2 = await _open(gateway, u2)

    assert ws1.accepted and ws2.accepted
    assert registry.lookup(u1) is not None
    assert _frames(ws1) == [
        {"type": "getOnlineUsers", "data": [u1]},
        {"type": "getOnlineUsers", "data": [u1, u2]},
    ]
    assert _frames(ws2) == [{"type": "getOnlineUsers", "data": [u1, u2]}]

    await _close(ws2, t2)

    assert registry.lookup(u2) is None
    assert _frames(ws1)[-1] == {"type": "getOnlineUsers", "data": [u1]}

    await _close(ws1, t1)
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_typing_relayed_to_receiver_only():
    gateway, _, _ = _build()
    u1, u2, u3 = (str(uuid.uuid4()) for _ in range(3))
    ws1, t1 = await _open(gateway, u1)
    ws2, t2 = await _open(gateway, u2)
    ws3, t3 = await _open(gateway, u3)
    before = len(ws3.sent)

    ws1.feed(json.dumps({"type": "typing", "data": {"receiverId": u2}}))
    await _settle()
    ws1.feed(json.dumps({"type": "stopTyping", "data": {"receiverId": u2}}))
    await _settle()

    typing = [f for f in _frames(ws2) if f["type"] == "userTyping"]
    assert typing == [
        {"type": "userTyping", "data": {"senderId": u1, "isTyping": True}},
        {"type": "userTyping", "data": {"senderId": u1, "isTyping": False}},
    ]
    assert len(ws3.sent) == before

    for ws, task in ((ws1, t1), (ws2, t2), (ws3, t3)):
        await _close(ws, task)


@pytest.mark.asyncio
async def test_typing_to_offline_user_is_dropped():
    gateway, _, _ = _build()
    u1 = str(uuid.uuid4())
    ws1, t1 = await _open(gateway, u1)
    sent_before = len(ws1.sent)

    ws1.feed(json.dumps({"type": "typing", "data": {"receiverId": str(uuid.uuid4())}}))
    await _settle()

    assert len(ws1.sent) == sent_before
    await _close(ws1, t1)


@pytest.mark.asyncio
async def test_ping_and_bad_frames():
    gateway, _, _ = _build()
    u1 = str(uuid.uuid4())
    ws1, t1 = await _open(gateway, u1)

    ws1.feed(json.dumps({"type": "ping"}))
    ws1.feed("{not json")
    ws1.feed(json.dumps({"type": "shout", "data": {}}))
    ws1.feed(json.dumps({"type": "typing", "data": {"receiverId": "nope"}}))
    await _settle()

    assert _frames(ws1)[1:] == [
        {"type": "pong", "data": {}},
        {"type": "error", "data": {"code": "invalid_payload"}},
        {"type": "error", "data": {"code": "unknown_type", "type": "shout"}},
        {"type": "error", "data": {"code": "invalid_data", "type": "typing"}},
    ]
    await _close(ws1, t1)


@pytest.mark.asyncio
async def test_superseded_connection_disconnect_keeps_newer_session():
    gateway, registry, _ = _build()
    u1, watcher = str(uuid.uuid4()), str(uuid.uuid4())
    ws_w, t_w = await _open(gateway, watcher)
    old_ws, old_task = await _open(gateway, u1)
    new_ws, new_task = await _open(gateway, u1)
    current = registry.lookup(u1)
    presence_before = len(ws_w.sent)

    await _close(old_ws, old_task)

    assert registry.lookup(u1) == current
    assert len(ws_w.sent) == presence_before

    await _close(new_ws, new_task)
    assert registry.lookup(u1) is None
    assert _frames(ws_w)[-1] == {"type": "getOnlineUsers", "data": [watcher]}
    await _close(ws_w, t_w)


@pytest.mark.asyncio
async def test_token_subject_must_match_user_id():
    verifier = HS256Verifier("k" * 32)
    gateway, registry, _ = _build(verifier)
    u1, other = uuid.uuid4(), uuid.uuid4()

    rejected = FakeWebSocket()
    await gateway.serve(rejected, str(u1), verifier.issue(other))
    missing = FakeWebSocket()
    await gateway.serve(missing, str(u1), None)
    garbage = FakeWebSocket()
    await gateway.serve(garbage, str(u1), "garbage")

    for ws in (rejected, missing, garbage):
        assert ws.close_code == CLOSE_AUTH_FAILED
    assert len(registry) == 0

    ws, task = await _open(gateway, str(u1), verifier.issue(u1))
    assert ws.accepted is True
    assert str(u1) in registry
    await _close(ws, task)


@pytest.mark.asyncio
async def test_new_message_reaches_connection_until_disconnect():
    gateway, registry, connections = _build()
    router = EventRouter(registry, connections)
    u1, u2 = str(uuid.uuid4()), str(uuid.uuid4())
    ws2, t2 = await _open(gateway, u2)
    payload = {"id": str(uuid.uuid4()), "senderId": u1, "receiverId": u2, "text": "hi"}

    assert await router.deliver(u2, "newMessage", payload) == DeliveryResult.DELIVERED
    assert _frames(ws2)[-1] == {"type": "newMessage", "data": payload}

    await _close(ws2, t2)
    sent_before = len(ws2.sent)

    assert registry.lookup(u2) is None
    assert await router.deliver(u2, "newMessage", payload) == DeliveryResult.OFFLINE
    assert len(ws2.sent) == sent_before
