import pytest

from signaling import SignalingServer


class RecordingConnections:
    """Stands in for ConnectionManager and records every frame sent"""

    def __init__(self):
        self.connected = set()
        self.sent = []

    def send(self, connection_id, event, data):
        if connection_id not in self.connected:
            return False
        self.sent.append((connection_id, event, data))
        return True

    def frames(self, connection_id, event=None):
        return [
            (sent_event, data)
            for target, sent_event, data in self.sent
            if target == connection_id and (event is None or sent_event == event)
        ]

    def payloads(self, connection_id, event):
        return [data for _, data in self.frames(connection_id, event)]

    def clear(self):
        self.sent.clear()

    def __len__(self):
        return len(self.connected)


@pytest.fixture
def connections():
    return RecordingConnections()


@pytest.fixture
def server(connections):
    return SignalingServer(connections=connections, rejoin_policy="reject", emit_error_events=False)


@pytest.fixture
def connect(server, connections):
    def _connect(*connection_ids):
        for connection_id in connection_ids:
            connections.connected.add(connection_id)
            server.open(connection_id)
    return _connect


@pytest.fixture
def join(server, connect):
    def _join(connection_id, room_id, name=None):
        connect(connection_id)
        return server.lifecycle.join(connection_id, room_id, name or connection_id.upper())
    return _join
