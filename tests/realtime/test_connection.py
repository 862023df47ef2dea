import asyncio
import json

import pytest
from starlette.websockets import WebSocketDisconnect

from core.config import ChatSettings
from domain.chat.entity import ChatMessage
from domain.common.exceptions import InvalidChatMessageException
from infrastructure.realtime.connection import ChatConnection, serve_ws
from infrastructure.realtime.hub import ChatHub
from tests.realtime.fakes import FakeStore, FakeTransport


FAST = ChatSettings(
    send_queue_max=8,
    write_wait_s=0.5,
    pong_wait_s=0.5,
    ping_period_s=0.1,
)
SLOW_PING = ChatSettings(
    send_queue_max=8,
    write_wait_s=0.5,
    pong_wait_s=10,
    ping_period_s=5,
)


class RecordingHub:
    def __init__(self):
        self.broadcasts = []
        self.unregistered = []

    async def broadcast(self, message):
        self.broadcasts.append(message)

    async def unregister(self, conn):
        self.unregistered.append(conn)


def _frames(transport: FakeTransport, kind: str):
    return [f for f in map(json.loads, transport.sent) if f["type"] == kind]


async def _eventually(predicate, timeout: float = 1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


# -------------------- decode --------------------

def _conn(options=SLOW_PING):
    return ChatConnection(RecordingHub(), FakeTransport(), "alice", options)


def test_decode_builds_message_with_connection_identity():
    message = _conn().decode_frame(json.dumps({"text": "hello", "user_id": "mallory"}))
    assert isinstance(message, ChatMessage)
    assert message.user_id == "alice"
    assert message.text == "hello"
    assert message.id


@pytest.mark.parametrize("kind", ["ping", "pong"])
def test_decode_keepalive_frames_yield_nothing(kind):
    assert _conn().decode_frame(json.dumps({"type": kind})) is None


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        json.dumps({"message": "no text field"}),
        json.dumps({"text": ""}),
        json.dumps(["text", "hello"]),
    ],
)
def test_decode_rejects_invalid_frames(raw):
    with pytest.raises(InvalidChatMessageException):
        _conn().decode_frame(raw)


def test_decode_rejects_oversized_frame():
    raw = json.dumps({"text": "x" * 600})
    with pytest.raises(InvalidChatMessageException) as exc:
        _conn().decode_frame(raw)
    assert exc.value.details["reason"] == "frame too large"


def test_decode_counts_bytes_not_characters():
    # 200 three-byte characters fit the text limit but not the frame limit
    raw = json.dumps({"text": "聊" * 200}, ensure_ascii=False)
    with pytest.raises(InvalidChatMessageException):
        _conn().decode_frame(raw)


# -------------------- inbound loop --------------------

@pytest.mark.asyncio
async def test_read_loop_submits_messages_and_unregisters_on_disconnect():
    hub = RecordingHub()
    transport = FakeTransport()
    conn = ChatConnection(hub, transport, "alice", SLOW_PING)

    transport.feed(json.dumps({"type": "pong"}))
    transport.feed(json.dumps({"text": "one"}))
    transport.feed(json.dumps({"text": "two"}))
    transport.disconnect(WebSocketDisconnect(code=1001))

    await asyncio.wait_for(conn.read_loop(), timeout=1)

    assert [m.text for m in hub.broadcasts] == ["one", "two"]
    assert hub.unregistered == [conn]


@pytest.mark.asyncio
async def test_read_loop_stops_at_first_invalid_frame():
    hub = RecordingHub()
    transport = FakeTransport()
    conn = ChatConnection(hub, transport, "alice", SLOW_PING)

    transport.feed("{broken")
    transport.feed(json.dumps({"text": "never read"}))

    await asyncio.wait_for(conn.read_loop(), timeout=1)

    assert hub.broadcasts == []
    assert hub.unregistered == [conn]
    assert transport.inbound.qsize() == 1


@pytest.mark.asyncio
async def test_read_loop_times_out_without_traffic():
    hub = RecordingHub()
    conn = ChatConnection(hub, FakeTransport(), "alice", FAST)

    await asyncio.wait_for(conn.read_loop(), timeout=2)

    assert hub.unregistered == [conn]


# -------------------- outbound loop --------------------

@pytest.mark.asyncio
async def test_write_loop_sends_envelopes_then_closes_normally():
    transport = FakeTransport()
    conn = ChatConnection(RecordingHub(), transport, "alice", SLOW_PING)
    message = ChatMessage.create("bob", "hey")
    conn.mailbox.put_nowait(message)
    conn.mailbox.close()

    await asyncio.wait_for(conn.write_loop(), timeout=1)

    frames = _frames(transport, "message")
    assert len(frames) == 1
    assert frames[0]["data"]["id"] == message.id
    assert frames[0]["data"]["user_id"] == "bob"
    assert frames[0]["data"]["text"] == "hey"
    assert frames[0]["data"]["created_at"].endswith("Z")
    assert transport.closed_with == [1000]


@pytest.mark.asyncio
async def test_write_loop_pings_when_idle():
    transport = FakeTransport()
    conn = ChatConnection(RecordingHub(), transport, "alice", FAST)
    writer = asyncio.create_task(conn.write_loop())

    await _eventually(lambda: len(_frames(transport, "ping")) >= 2)
    conn.mailbox.close()
    await asyncio.wait_for(writer, timeout=1)

    assert transport.closed_with == [1000]


@pytest.mark.asyncio
async def test_write_failure_closes_with_error_code():
    transport = FakeTransport()
    transport.fail_send = True
    conn = ChatConnection(RecordingHub(), transport, "alice", SLOW_PING)
    conn.mailbox.put_nowait(ChatMessage.create("bob", "hey"))

    await asyncio.wait_for(conn.write_loop(), timeout=1)

    assert transport.sent == []
    assert transport.closed_with == [1011]


# -------------------- full session --------------------

@pytest.mark.asyncio
async def test_two_sessions_exchange_messages_through_hub():
    store = FakeStore()
    hub = ChatHub(store)
    hub.start()
    try:
        alice_ws, bob_ws = FakeTransport(), FakeTransport()

        bob = asyncio.create_task(serve_ws(hub, bob_ws, "bob", SLOW_PING))
        await asyncio.sleep(0)
        await hub.wait_idle()
        alice = asyncio.create_task(serve_ws(hub, alice_ws, "alice", SLOW_PING))
        await asyncio.sleep(0)
        await hub.wait_idle()

        alice_ws.feed(json.dumps({"text": "hello bob"}))
        await _eventually(lambda: _frames(bob_ws, "message") and _frames(alice_ws, "message"))

        received = _frames(bob_ws, "message")[0]["data"]
        assert received["user_id"] == "alice"
        assert received["text"] == "hello bob"
        assert [m.text for m in store.saved] == ["hello bob"]

        alice_ws.disconnect(WebSocketDisconnect(code=1000))
        await asyncio.wait_for(alice, timeout=2)
        assert alice_ws.closed_with == [1000]

        # bob keeps working after alice left
        bob_ws.feed(json.dumps({"text": "bye"}))
        await _eventually(lambda: len(_frames(bob_ws, "message")) == 2)
        assert len(_frames(alice_ws, "message")) == 1

        bob_ws.disconnect(WebSocketDisconnect(code=1000))
        await asyncio.wait_for(bob, timeout=2)
    finally:
        await hub.shutdown()


@pytest.mark.asyncio
async def test_hub_shutdown_ends_live_session():
    hub = ChatHub(FakeStore())
    hub.start()
    transport = FakeTransport()
    session = asyncio.create_task(serve_ws(hub, transport, "alice", SLOW_PING))
    await asyncio.sleep(0)
    await hub.wait_idle()

    await hub.shutdown()
    await _eventually(lambda: transport.closed_with == [1000])

    # the reader only notices once the peer goes away
    transport.disconnect(WebSocketDisconnect(code=1001))
    await asyncio.wait_for(session, timeout=2)
