"""Unit tests for the push connection registry, heartbeat and notifier."""

from __future__ import annotations

import asyncio

import pytest

from modules.realtime.notifier import ChangeNotifier
from modules.realtime.registry import ConnectionRegistry

pytestmark = pytest.mark.unit


class FakeConnection:
    def __init__(self, fail: bool = False) -> None:
        self.sent = []
        self.closed = False
        self.fail = fail

    async def send_json(self, content, close=False):
        if self.fail:
            raise ConnectionResetError("peer gone")
        self.sent.append(content)

    async def close(self, code=None):
        self.closed = True


class TestMembership:
    def test_register_until_full(self):
        registry = ConnectionRegistry(max_connections=2)
        first, second, third = FakeConnection(), FakeConnection(), FakeConnection()

        assert registry.register(first)
        assert registry.register(second)
        assert registry.is_full
        assert registry.register(third) is False
        assert third not in registry
        assert len(registry) == 2

    def test_register_is_idempotent(self):
        registry = ConnectionRegistry(max_connections=1)
        connection = FakeConnection()
        assert registry.register(connection)
        assert registry.register(connection)
        assert len(registry) == 1

    def test_unregister_unknown_connection_is_harmless(self):
        registry = ConnectionRegistry()
        registry.unregister(FakeConnection())
        assert len(registry) == 0


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_delivers_to_every_connection(self):
        registry = ConnectionRegistry()
        connections = [FakeConnection() for _ in range(3)]
        for connection in connections:
            registry.register(connection)

        delivered = await registry.broadcast({"type": "orders_changed", "timestamp": 1})

        assert delivered == 3
        assert all(c.sent == [{"type": "orders_changed", "timestamp": 1}] for c in connections)

    @pytest.mark.asyncio
    async def test_failed_send_prunes_connection(self):
        registry = ConnectionRegistry()
        healthy, broken = FakeConnection(), FakeConnection(fail=True)
        registry.register(healthy)
        registry.register(broken)

        delivered = await registry.broadcast({"type": "orders_changed", "timestamp": 1})

        assert delivered == 1
        assert healthy in registry
        assert broken not in registry

    @pytest.mark.asyncio
    async def test_empty_registry_delivers_nothing(self):
        assert await ConnectionRegistry().broadcast({"type": "orders_changed"}) == 0


class TestHeartbeat:
    @pytest.mark.asyncio
    async def test_unanswered_probe_prunes_on_next_cycle(self):
        registry = ConnectionRegistry()
        answering, silent = FakeConnection(), FakeConnection()
        registry.register(answering)
        registry.register(silent)

        await registry.probe()
        assert [m["type"] for m in answering.sent] == ["ping"]
        assert [m["type"] for m in silent.sent] == ["ping"]

        registry.mark_alive(answering)
        await registry.probe()

        assert answering in registry
        assert len(answering.sent) == 2
        assert silent not in registry
        assert silent.closed is True
        assert len(silent.sent) == 1

    @pytest.mark.asyncio
    async def test_run_heartbeat_pings_periodically(self):
        registry = ConnectionRegistry()
        connection = FakeConnection()
        registry.register(connection)

        task = asyncio.create_task(registry.run_heartbeat(interval=0.01))
        await asyncio.sleep(0.015)
        registry.mark_alive(connection)
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert any(message["type"] == "ping" for message in connection.sent)

    @pytest.mark.asyncio
    async def test_heartbeat_stops_with_last_connection(self):
        registry = ConnectionRegistry(heartbeat_interval=60)
        connection = FakeConnection()
        registry.register(connection)

        registry.ensure_heartbeat()
        task = registry._heartbeat_task
        registry.ensure_heartbeat()
        assert registry._heartbeat_task is task

        registry.unregister(connection)
        assert registry._heartbeat_task is None
        await asyncio.sleep(0.01)
        assert task.cancelled()


class TestChangeNotifier:
    def test_broadcasts_payload_minimal_message(self):
        registry = ConnectionRegistry()
        connection = FakeConnection()
        registry.register(connection)

        delivered = ChangeNotifier(registry).notify_orders_changed()

        assert delivered == 1
        (message,) = connection.sent
        assert set(message) == {"type", "timestamp"}
        assert message["type"] == "orders_changed"
        assert isinstance(message["timestamp"], int)

    def test_no_connections_is_not_an_error(self):
        assert ChangeNotifier(ConnectionRegistry()).notify_orders_changed() == 0
