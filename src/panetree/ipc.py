"""Control channel between controllers and a live view.

The view hosts a Unix socket server; controllers connect, send one line and
wait briefly for one line back. See :mod:`panetree.models.message` for the
wire format.
"""
import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Set, Union

from pydantic import BaseModel

from .models.message import (
    ControllerMessage, ViewMessage, encode_message, parse_controller_message, parse_view_message,
)

logger = logging.getLogger(__name__)

# Upper bound on a single line, well above any real message
LINE_LIMIT = 1024 * 1024


class ControlServer:
    """Unix socket server fanning view messages out to every client."""

    def __init__(
        self,
        socket_path: Union[str, Path],
        on_message: Callable[[ControllerMessage], None],
        on_connect: Optional[Callable[[], None]] = None,
        on_disconnect: Optional[Callable[[], None]] = None,
    ):
        self.socket_path = Path(socket_path)
        self.on_message = on_message
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect

        self._server: Optional[asyncio.AbstractServer] = None
        self._clients: Set[asyncio.StreamWriter] = set()
        self._closed = False

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        """Bind the socket, replacing a stale one left by a dead view."""
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        if self.socket_path.exists() or self.socket_path.is_symlink():
            logger.info(f"Removing stale socket {self.socket_path}")
            try:
                self.socket_path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove stale socket {self.socket_path}: {e}")

        self._server = await asyncio.start_unix_server(
            self._handle_client, path=str(self.socket_path), limit=LINE_LIMIT
        )
        logger.info(f"Control server listening on {self.socket_path}")

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._clients.add(writer)
        if self.on_connect:
            self.on_connect()

        try:
            while True:
                try:
                    line = await reader.readline()
                except ValueError:
                    logger.warning("Dropping client that sent an oversized line")
                    break
                if not line:
                    break
                if not line.strip():
                    continue

                msg = parse_controller_message(line)
                if msg is None:
                    logger.debug(f"Ignoring unrecognized control line: {line[:200]!r}")
                    continue
                logger.debug(f"Control message: {msg.type}")
                self.on_message(msg)
        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.debug(f"Client connection lost: {e}")
        finally:
            self._clients.discard(writer)
            writer.close()
            if self.on_disconnect:
                self.on_disconnect()

    def broadcast(self, msg: BaseModel) -> None:
        """Send ``msg`` to every connected client, without acknowledgment."""
        data = encode_message(msg)
        for writer in list(self._clients):
            try:
                writer.write(data)
            except (ConnectionError, RuntimeError) as e:
                logger.debug(f"Broadcast to client failed: {e}")
                self._clients.discard(writer)

    def close(self) -> None:
        """Stop accepting, drop clients and remove the socket file. Idempotent."""
        if not self._closed:
            self._closed = True
            if self._server is not None:
                self._server.close()
            for writer in list(self._clients):
                writer.close()
            self._clients.clear()
            logger.info("Control server closed")

        try:
            self.socket_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove socket {self.socket_path}: {e}")


async def send_command_async(
    socket_path: Union[str, Path],
    msg: BaseModel,
    timeout: float = 3.0,
) -> Optional[ViewMessage]:
    """Send one message and wait for one reply line.

    Returns:
        The parsed reply, or ``None`` when the view is absent, slow, or
        answers with something unrecognized
    """
    async def exchange() -> Optional[ViewMessage]:
        reader, writer = await asyncio.open_unix_connection(str(socket_path), limit=LINE_LIMIT)
        try:
            writer.write(encode_message(msg))
            await writer.drain()
            line = await reader.readline()
        finally:
            writer.close()
        if not line:
            return None
        return parse_view_message(line)

    try:
        return await asyncio.wait_for(exchange(), timeout)
    except asyncio.TimeoutError:
        logger.debug(f"No reply from {socket_path} within {timeout}s")
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot reach {socket_path}: {e}")
    return None


def send_command(
    socket_path: Union[str, Path],
    msg: BaseModel,
    timeout: float = 3.0,
) -> Optional[ViewMessage]:
    """Blocking wrapper around :func:`send_command_async`."""
    return asyncio.run(send_command_async(socket_path, msg, timeout))
