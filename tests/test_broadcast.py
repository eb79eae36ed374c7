import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from verse_relay.schemas.messages import ReadRequest
from verse_relay.services.broadcast import ConnectionManager


class FakeWebSocket:
    def __init__(self, *, fail: bool = False, stall: bool = False) -> None:
        self.client_state = WebSocketState.CONNECTING
        self.application_state = WebSocketState.CONNECTING
        self.sent: list[dict] = []
        self.fail = fail
        self.stall = stall

    async def accept(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket gone")
        if self.stall:
            await asyncio.Event().wait()
        self.sent.append(json.loads(text))


@pytest.mark.asyncio
async def test_broadcast_reaches_every_ready_player() -> None:
    manager = ConnectionManager(clock=lambda: 42.0)
    first, second = FakeWebSocket(), FakeWebSocket()
    await manager.connect(first)  # type: ignore[arg-type]
    await manager.connect(second)  # type: ignore[arg-type]

    delivered = await manager.send_read(ReadRequest(reference="John 3:16", source_user="amy"))

    assert delivered == 2
    expected = {"type": "read", "reference": "John 3:16", "sourceUser": "amy"}
    assert first.sent == [expected]
    assert second.sent == [expected]
    assert manager.last_broadcast_at == 42.0


@pytest.mark.asyncio
async def test_players_that_are_not_ready_are_skipped() -> None:
    manager = ConnectionManager()
    closing = FakeWebSocket()
    client_id = await manager.connect(closing)  # type: ignore[arg-type]
    closing.client_state = WebSocketState.DISCONNECTED

    assert await manager.send_clear() == 0
    assert closing.sent == []
    assert client_id in manager.active_connections


@pytest.mark.asyncio
async def test_failing_player_is_dropped_without_affecting_others() -> None:
    manager = ConnectionManager()
    healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
    await manager.connect(healthy)  # type: ignore[arg-type]
    await manager.connect(broken)  # type: ignore[arg-type]

    assert await manager.send_clear() == 1
    assert healthy.sent == [{"type": "clear"}]
    assert manager.connection_count == 1


@pytest.mark.asyncio
async def test_messages_arrive_in_broadcast_order() -> None:
    manager = ConnectionManager()
    player = FakeWebSocket()
    await manager.connect(player)  # type: ignore[arg-type]

    await manager.send_read(ReadRequest(reference="Psalm 23:1"))
    await manager.send_bulk(
        [ReadRequest(reference="John 1:1", text="In the beginning"), ReadRequest(reference="Gen 1:1")]
    )
    await manager.send_clear()

    assert [message["type"] for message in player.sent] == ["read", "bulk", "clear"]
    assert player.sent[1]["items"] == [
        {"reference": "John 1:1", "text": "In the beginning", "sourceUser": "anon"},
        {"reference": "Gen 1:1", "sourceUser": "anon"},
    ]


@pytest.mark.asyncio
async def test_late_joiner_receives_only_new_messages() -> None:
    manager = ConnectionManager()
    early = FakeWebSocket()
    await manager.connect(early)  # type: ignore[arg-type]
    await manager.send_read(ReadRequest(reference="John 3:16"))

    late = FakeWebSocket()
    await manager.connect(late)  # type: ignore[arg-type]
    await manager.send_read(ReadRequest(reference="Psalm 23:1"))

    assert [m["reference"] for m in early.sent] == ["John 3:16", "Psalm 23:1"]
    assert [m["reference"] for m in late.sent] == ["Psalm 23:1"]


@pytest.mark.asyncio
async def test_broadcast_with_no_players_still_records_activity() -> None:
    manager = ConnectionManager(clock=lambda: 7.0)

    assert await manager.send_clear() == 0
    assert manager.last_broadcast_at == 7.0


@pytest.mark.asyncio
async def test_disconnect_is_idempotent() -> None:
    manager = ConnectionManager()
    client_id = await manager.connect(FakeWebSocket())  # type: ignore[arg-type]

    manager.disconnect(client_id)
    manager.disconnect(client_id)

    assert manager.connection_count == 0


@pytest.mark.asyncio
async def test_stalled_player_is_dropped_after_send_timeout() -> None:
    manager = ConnectionManager(send_timeout=0.05)
    stalled, healthy = FakeWebSocket(stall=True), FakeWebSocket()
    await manager.connect(stalled)  # type: ignore[arg-type]
    await manager.connect(healthy)  # type: ignore[arg-type]

    delivered = await asyncio.wait_for(
        manager.send_read(ReadRequest(reference="John 3:16")), timeout=1
    )

    assert delivered == 1
    assert [m["reference"] for m in healthy.sent] == ["John 3:16"]
    assert manager.connection_count == 1

    # the next broadcast no longer waits on the stalled socket
    assert await asyncio.wait_for(manager.send_clear(), timeout=1) == 1
