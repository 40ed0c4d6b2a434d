"""Tests for the WebSocket broadcast hub."""

import json
import threading
import time

import pytest
import simple_websocket
from werkzeug.serving import make_server

from stowkiosk.realtime import BroadcastEvent, BroadcastHub

from conftest import FakeConnection


class TestBroadcastEvent:
    """Test BroadcastEvent."""

    def test_to_json(self):
        event = BroadcastEvent('stationUpdate', {'id': 5})
        assert json.loads(event.to_json()) == {'type': 'stationUpdate', 'data': {'id': 5}}

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            BroadcastEvent('stationDeleted', {})


class TestBroadcastHub:
    """Test registration and fan-out."""

    def test_register_sends_info(self, hub):
        conn = FakeConnection()

        hub.register(conn)

        assert conn.messages() == [{'type': 'info', 'message': 'Connected to WebSocket'}]
        assert len(hub) == 1

    def test_broadcast_after_one_disconnects(self, hub):
        first, second = FakeConnection(), FakeConnection()
        hub.register(first)
        hub.register(second)

        second.connected = False
        hub.unregister(second)
        delivered = hub.broadcast(BroadcastEvent('stationUpdate', {'id': 1}))

        assert delivered == 1
        assert first.messages()[-1] == {'type': 'stationUpdate', 'data': {'id': 1}}
        assert len(second.sent) == 1

    def test_skips_connections_not_open(self, hub):
        open_conn, closing = FakeConnection(), FakeConnection()
        hub.register(open_conn)
        hub.register(closing)
        closing.connected = False

        delivered = hub.broadcast(BroadcastEvent('info', {'note': 'hello'}))

        assert delivered == 1
        assert len(closing.sent) == 1

    def test_send_failure_does_not_raise(self, hub):
        good = FakeConnection()
        bad = FakeConnection()
        hub.register(good)
        hub.register(bad)
        bad.fail_on_send = True

        delivered = hub.broadcast(BroadcastEvent('safetyMessageUpdate', {'id': 2}))

        assert delivered == 1
        assert good.messages()[-1]['type'] == 'safetyMessageUpdate'

    def test_register_closed_during_welcome(self, hub):
        conn = FakeConnection(fail_on_send=True)

        hub.register(conn)

        assert len(hub) == 0

    def test_unregister_unknown_is_noop(self, hub):
        hub.unregister(FakeConnection())
        assert len(hub) == 0

    def test_close_drops_everything(self, hub):
        conns = [FakeConnection() for _ in range(3)]
        for conn in conns:
            hub.register(conn)

        hub.close()

        assert len(hub) == 0
        assert all(conn.closed for conn in conns)

    def test_broken_pipe_does_not_stop_fan_out(self, hub):
        broken = FakeConnection()
        good = [FakeConnection() for _ in range(3)]
        hub.register(broken)
        for conn in good:
            hub.register(conn)
        # Still flagged open when the socket write fails
        broken.send_error = BrokenPipeError(32, 'Broken pipe')

        delivered = hub.broadcast(BroadcastEvent('stationUpdate', {'id': 5}))

        assert delivered == 3
        for conn in good:
            assert conn.messages()[-1] == {'type': 'stationUpdate', 'data': {'id': 5}}

    def test_connection_reset_during_welcome(self, hub):
        conn = FakeConnection(send_error=ConnectionResetError(104, 'Connection reset by peer'))

        hub.register(conn)

        assert len(hub) == 0


def wait_for(predicate, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


class TestKioskSocket:
    """Test the WebSocket endpoint over a real server."""

    @pytest.fixture
    def server_url(self, app):
        server = make_server('127.0.0.1', 0, app, threaded=True)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        yield f'ws://127.0.0.1:{server.server_port}/'
        server.shutdown()
        thread.join(timeout=5)

    def test_connect_push_and_close(self, server_url, services):
        station = services.stations.create('A', level=1, station_number=123, status='AQ')

        ws = simple_websocket.Client(server_url)
        try:
            welcome = json.loads(ws.receive(timeout=5))
            assert welcome == {'type': 'info', 'message': 'Connected to WebSocket'}
            assert wait_for(lambda: len(services.hub) == 1)

            updated = services.protocol.apply(station['id'], status='PS')

            event = json.loads(ws.receive(timeout=5))
            assert event == {'type': 'stationUpdate', 'data': updated}
        finally:
            ws.close()

        assert wait_for(lambda: len(services.hub) == 0)
