import asyncio

from connection_manager import ConnectionManager


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def accept(self):
        pass

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


def test_frames_are_written_in_order():
    async def scenario():
        manager = ConnectionManager()
        socket = FakeSocket()
        connection_id = await manager.connect(socket)
        manager.send(connection_id, "one", 1)
        manager.send(connection_id, "two", 2)
        for _ in range(10):
            await asyncio.sleep(0)
        await manager.disconnect(connection_id)
        return connection_id, socket.sent

    connection_id, sent = asyncio.run(scenario())
    assert [frame["event"] for frame in sent] == ["connected", "one", "two"]
    assert sent[0]["data"] == {"connectionId": connection_id}


def test_failed_write_stops_accepting_frames():
    async def scenario():
        manager = ConnectionManager()
        connection_id = await manager.connect(FakeSocket(fail=True))
        await asyncio.wait_for(manager._writers[connection_id], timeout=1)
        result = (manager.is_connected(connection_id), manager.send(connection_id, "late", {}))
        await manager.disconnect(connection_id)
        return result, len(manager)

    (connected, delivered), remaining = asyncio.run(scenario())
    assert connected is False
    assert delivered is False
    assert remaining == 0


def test_send_to_unknown_connection_is_dropped():
    assert ConnectionManager().send("nobody", "offer", {}) is False
