import json

import pytest

from farming_magazine.realtime.registry import NORMAL_CLOSURE
from farming_magazine.realtime.registry import SHUTDOWN_REASON
from farming_magazine.realtime.registry import ConnectionRegistry
from farming_magazine.realtime.registry import EventKind
from farming_magazine.realtime.registry import MessageType
from farming_magazine.realtime.registry import RegistryClosedError
from farming_magazine.realtime.registry import encode_frame

from .fakes import FakeTransport


@pytest.fixture
def registry():
    return ConnectionRegistry()


def connect(registry, user_id, role="subscriber", **kwargs):
    transport = FakeTransport(**kwargs)
    return registry.register(transport, user_id, role), transport


class TestEncodeFrame:
    def test_adds_type_and_timestamp(self):
        frame = json.loads(encode_frame(MessageType.PONG))
        assert frame["type"] == "pong"
        assert "timestamp" in frame

    def test_server_fields_win_over_payload(self):
        frame = json.loads(
            encode_frame(
                MessageType.NOTIFICATION,
                {"type": "spoofed", "timestamp": "yesterday", "title": "Hi"},
            )
        )
        assert frame["type"] == "notification"
        assert frame["timestamp"] != "yesterday"
        assert frame["title"] == "Hi"


class TestRegister:
    def test_confirms_connection_to_client(self, registry):
        _, transport = connect(registry, 1)

        [frame] = transport.frames
        assert frame["type"] == MessageType.CONNECTION_CONFIRMED
        assert frame["message"] == "Real-time notifications connected"

    def test_counts_every_socket(self, registry):
        connect(registry, 1)
        connect(registry, 1)
        connect(registry, 2, role="admin")

        assert registry.connection_count == 3
        stats = registry.get_stats()
        assert stats["totalConnections"] == 3
        assert stats["uniqueUsers"] == 2
        assert stats["adminConnections"] == 1
        assert stats["uptimeSeconds"] >= 0

    def test_publishes_connected_event(self, registry):
        connect(registry, 7, role="editor")

        [event] = registry.drain_events()
        assert event.kind == EventKind.USER_CONNECTED
        assert event.user_id == 7
        assert event.data == {"role": "editor", "connection_count": 1}

    def test_refused_after_shutdown(self, registry):
        registry.shutdown()
        with pytest.raises(RegistryClosedError):
            connect(registry, 1)
        assert registry.connection_count == 0


class TestUnregister:
    def test_removes_user_entry_with_last_socket(self, registry):
        first, _ = connect(registry, 1)
        second, _ = connect(registry, 1)

        registry.unregister(first)
        assert registry.user_ids() == [1]
        registry.unregister(second)
        assert registry.user_ids() == []
        assert registry.connection_count == 0

    def test_is_idempotent(self, registry):
        connection, _ = connect(registry, 1)
        registry.drain_events()

        assert registry.unregister(connection) is True
        assert registry.unregister(connection) is False
        assert registry.connection_count == 0
        kinds = [e.kind for e in registry.drain_events()]
        assert kinds == [EventKind.USER_DISCONNECTED]


class TestInbound:
    def test_ping_answered_with_pong(self, registry):
        connection, transport = connect(registry, 1)

        registry.handle_inbound_message(connection, '{"type": "ping"}')

        assert len(transport.frames_of(MessageType.PONG)) == 1

    def test_invalid_json_is_ignored(self, registry):
        connection, transport = connect(registry, 1)
        registry.drain_events()

        registry.handle_inbound_message(connection, "not json{")
        registry.handle_inbound_message(connection, "[1, 2]")

        assert len(transport.sent) == 1
        assert registry.drain_events() == []
        assert registry.connection_count == 1

    def test_unknown_type_is_ignored(self, registry):
        connection, transport = connect(registry, 1)

        registry.handle_inbound_message(connection, {"type": "dance"})

        assert len(transport.sent) == 1

    def test_mark_read_publishes_event(self, registry):
        connection, _ = connect(registry, 4)
        registry.drain_events()

        registry.handle_inbound_message(
            connection, {"type": "mark_read", "notificationId": 42}
        )

        [event] = registry.drain_events()
        assert event.kind == EventKind.NOTIFICATION_READ
        assert event.user_id == 4
        assert event.data == {"notification_id": 42}

    def test_mark_read_without_id_is_ignored(self, registry):
        connection, _ = connect(registry, 4)
        registry.drain_events()

        registry.handle_inbound_message(connection, {"type": "mark_read"})

        assert registry.drain_events() == []

    def test_mark_all_read_publishes_event(self, registry):
        connection, _ = connect(registry, 4)
        registry.drain_events()

        registry.handle_inbound_message(connection, {"type": "mark_all_read"})

        [event] = registry.drain_events()
        assert event.kind == EventKind.ALL_NOTIFICATIONS_READ
        assert event.user_id == 4

    def test_admin_subscription_confirmed(self, registry):
        connection, transport = connect(registry, 1, role="admin")

        registry.handle_inbound_message(connection, {"type": "subscribe_admin"})

        assert connection.is_admin_subscribed is True
        [frame] = transport.frames_of(MessageType.ADMIN_SUBSCRIPTION_CONFIRMED)
        assert frame["message"] == "Subscribed to admin notifications"

    def test_admin_subscription_ignored_for_non_admin(self, registry):
        connection, transport = connect(registry, 1, role="editor")

        registry.handle_inbound_message(connection, {"type": "subscribe_admin"})

        assert connection.is_admin_subscribed is False
        assert transport.frames_of(MessageType.ADMIN_SUBSCRIPTION_CONFIRMED) == []


class TestDelivery:
    def test_send_to_user_reaches_every_socket_of_that_user(self, registry):
        _, tab_one = connect(registry, 1)
        _, tab_two = connect(registry, 1)
        _, other = connect(registry, 2)

        delivered = registry.send_to_user(1, {"title": "Harvest report"})

        assert delivered == 2
        for transport in (tab_one, tab_two):
            [frame] = transport.frames_of(MessageType.NOTIFICATION)
            assert frame["title"] == "Harvest report"
        assert other.frames_of(MessageType.NOTIFICATION) == []

    def test_send_to_user_without_sockets_is_noop(self, registry):
        assert registry.send_to_user(99, {"title": "x"}) == 0

    def test_send_to_admins_only_reaches_subscribed_admins(self, registry):
        subscribed, subscribed_transport = connect(registry, 1, role="admin")
        registry.handle_inbound_message(subscribed, {"type": "subscribe_admin"})
        _, unsubscribed_transport = connect(registry, 2, role="admin")
        _, reader_transport = connect(registry, 3)

        delivered = registry.send_to_admins({"title": "New signup"})

        assert delivered == 1
        assert len(subscribed_transport.frames_of(MessageType.ADMIN_NOTIFICATION)) == 1
        assert unsubscribed_transport.frames_of(MessageType.ADMIN_NOTIFICATION) == []
        assert reader_transport.frames_of(MessageType.ADMIN_NOTIFICATION) == []

    def test_broadcast_honours_exclusion(self, registry):
        _, sender = connect(registry, 1)
        _, reader_a = connect(registry, 2)
        _, reader_b = connect(registry, 3)

        delivered = registry.broadcast({"message": "Maintenance"}, exclude_user_id=1)

        assert delivered == 2
        assert sender.frames_of(MessageType.BROADCAST) == []
        assert len(reader_a.frames_of(MessageType.BROADCAST)) == 1
        assert len(reader_b.frames_of(MessageType.BROADCAST)) == 1

    def test_closed_sockets_are_skipped(self, registry):
        _, transport = connect(registry, 1)
        transport.close(NORMAL_CLOSURE, "bye")

        assert registry.send_to_user(1, {"title": "x"}) == 0

    def test_failed_send_drops_connection(self, registry):
        connection, transport = connect(registry, 1)
        transport.fail_sends = True

        assert registry.send_to_user(1, {"title": "x"}) == 0
        assert registry.connections_for(1) == []
        assert registry.connection_count == 0


class TestLiveness:
    def test_first_sweep_probes_second_terminates_silent_peer(self, registry):
        connection, transport = connect(registry, 1)

        assert registry.sweep_liveness() == 0
        assert transport.probes == 1
        assert connection.is_alive is False

        assert registry.sweep_liveness() == 1
        assert transport.terminated is True
        assert registry.connection_count == 0

    def test_acknowledged_probe_keeps_connection_without_frames(self, registry):
        connection, transport = connect(registry, 1)
        sent_before = list(transport.sent)

        for _ in range(3):
            assert registry.sweep_liveness() == 0
            registry.mark_alive(connection)

        assert transport.probes == 3
        assert transport.terminated is False
        assert transport.sent == sent_before
        assert registry.connection_count == 1

    def test_pong_keeps_connection(self, registry):
        connection, transport = connect(registry, 1)

        registry.sweep_liveness()
        registry.handle_inbound_message(connection, {"type": "pong"})
        registry.sweep_liveness()

        assert transport.terminated is False
        assert transport.probes == 2
        assert registry.connection_count == 1

    def test_any_valid_frame_counts_as_alive(self, registry):
        connection, transport = connect(registry, 1)

        registry.sweep_liveness()
        registry.handle_inbound_message(connection, {"type": "mark_all_read"})
        registry.sweep_liveness()

        assert transport.terminated is False


class TestShutdown:
    def test_closes_sockets_with_normal_closure(self, registry):
        _, first = connect(registry, 1)
        _, second = connect(registry, 2)

        registry.shutdown()

        for transport in (first, second):
            assert transport.closed_with == (NORMAL_CLOSURE, SHUTDOWN_REASON)
        assert registry.connection_count == 0
        assert registry.is_closed is True

    def test_is_idempotent(self, registry):
        _, transport = connect(registry, 1)

        registry.shutdown()
        transport.closed_with = None
        registry.shutdown()

        assert transport.closed_with is None

    def test_stops_sweeper(self, registry):
        class StubSweeper:
            stopped = False

            def stop(self):
                self.stopped = True

        registry.sweeper = StubSweeper()
        registry.shutdown()

        assert registry.sweeper.stopped is True
