"""Tests for the control channel over a real Unix socket."""
import asyncio
import shutil
import tempfile
from pathlib import Path

import pytest

from panetree.ipc import ControlServer, send_command, send_command_async
from panetree.models.message import Close, Ping, Pong, Ready, Refresh, SetCwd


@pytest.fixture
def sock_path():
    """Socket path short enough for AF_UNIX, which pytest's tmp_path may not be."""
    directory = tempfile.mkdtemp(prefix="ptt-")
    yield Path(directory) / "view.sock"
    shutil.rmtree(directory, ignore_errors=True)


class Recorder:
    """Collects messages and answers pings the way a view does."""

    def __init__(self):
        self.messages = []
        self.server = None

    def __call__(self, msg):
        self.messages.append(msg)
        if isinstance(msg, Ping):
            self.server.broadcast(Pong())


def _serve(sock_path, scenario):
    async def main():
        recorder = Recorder()
        server = ControlServer(sock_path, recorder)
        recorder.server = server
        await server.start()
        try:
            return await scenario(server, recorder)
        finally:
            server.close()

    return asyncio.run(main())


async def _wait_for(predicate, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def test_ping_gets_exactly_one_pong(sock_path):
    async def scenario(server, recorder):
        reader, writer = await asyncio.open_unix_connection(str(sock_path))
        writer.write(b'{"type":"ping"}\n')
        await writer.drain()
        first = await asyncio.wait_for(reader.readline(), 1.0)
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(reader.readline(), 0.2)
        writer.close()
        return first

    assert _serve(sock_path, scenario) == b'{"type":"pong"}\n'


def test_send_command_returns_reply(sock_path):
    async def scenario(server, recorder):
        return await send_command_async(sock_path, Ping(), timeout=1.0)

    assert isinstance(_serve(sock_path, scenario), Pong)


def test_bogus_line_is_ignored_without_reply(sock_path):
    async def scenario(server, recorder):
        reader, writer = await asyncio.open_unix_connection(str(sock_path))
        writer.write(b'this is not json\n{"type":"bogus"}\n\n')
        await writer.drain()
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(reader.readline(), 0.2)

        # The connection and server are still usable
        writer.write(b'{"type":"ping"}\n')
        await writer.drain()
        reply = await asyncio.wait_for(reader.readline(), 1.0)
        writer.close()
        return reply, recorder.messages

    reply, messages = _serve(sock_path, scenario)

    assert reply == b'{"type":"pong"}\n'
    assert messages == [Ping()]


def test_fragmented_and_batched_writes(sock_path):
    async def scenario(server, recorder):
        reader, writer = await asyncio.open_unix_connection(str(sock_path))
        writer.write(b'{"type":"set')
        await writer.drain()
        await asyncio.sleep(0.05)
        writer.write(b'Cwd","cwd":"/a"}\n{"type":"refresh"}\n{"type":"close"}\n')
        await writer.drain()
        await _wait_for(lambda: len(recorder.messages) == 3)
        writer.close()
        return recorder.messages

    assert _serve(sock_path, scenario) == [SetCwd(cwd="/a"), Refresh(), Close()]


def test_broadcast_reaches_every_client(sock_path):
    async def scenario(server, recorder):
        first = await asyncio.open_unix_connection(str(sock_path))
        second = await asyncio.open_unix_connection(str(sock_path))
        await _wait_for(lambda: server.client_count == 2)

        server.broadcast(Ready())
        lines = [await asyncio.wait_for(reader.readline(), 1.0) for reader, _ in (first, second)]
        for _, writer in (first, second):
            writer.close()
        await _wait_for(lambda: server.client_count == 0)
        return lines

    assert _serve(sock_path, scenario) == [b'{"type":"ready"}\n'] * 2


def test_connect_and_disconnect_callbacks(sock_path):
    events = []

    async def main():
        server = ControlServer(
            sock_path, lambda msg: None,
            on_connect=lambda: events.append("connect"),
            on_disconnect=lambda: events.append("disconnect"),
        )
        await server.start()
        try:
            _, writer = await asyncio.open_unix_connection(str(sock_path))
            await _wait_for(lambda: events == ["connect"])
            writer.close()
            await _wait_for(lambda: events == ["connect", "disconnect"])
        finally:
            server.close()

    asyncio.run(main())


def test_stale_socket_file_is_replaced(sock_path):
    sock_path.write_text("left over by a dead view")

    async def scenario(server, recorder):
        return await send_command_async(sock_path, Ping(), timeout=1.0)

    assert isinstance(_serve(sock_path, scenario), Pong)


def test_close_removes_socket_and_is_idempotent(sock_path):
    async def main():
        server = ControlServer(sock_path, lambda msg: None)
        await server.start()
        assert sock_path.exists()
        server.close()
        server.close()
        assert not sock_path.exists()

    asyncio.run(main())


def test_no_server_returns_none(sock_path):
    assert send_command(sock_path, Ping(), timeout=0.5) is None


def test_silent_server_times_out(sock_path):
    async def scenario(server, recorder):
        loop = asyncio.get_running_loop()
        started = loop.time()
        reply = await send_command_async(sock_path, Refresh(), timeout=0.2)
        return reply, loop.time() - started

    reply, elapsed = _serve(sock_path, scenario)

    assert reply is None
    assert elapsed < 1.0


def test_unrecognized_reply_returns_none(sock_path):
    async def handle(reader, writer):
        await reader.readline()
        writer.write(b'{"type":"ping"}\n')
        await writer.drain()
        writer.close()

    async def main():
        server = await asyncio.start_unix_server(handle, path=str(sock_path))
        try:
            return await send_command_async(sock_path, Ping(), timeout=1.0)
        finally:
            server.close()

    assert asyncio.run(main()) is None
