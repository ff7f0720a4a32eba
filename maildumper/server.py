# maildumper
# MIT licensed

import asyncio
import logging
import socket
from pathlib import Path
from typing import Optional, Set

from .channel import LineChannel
from .errors import InvalidStateError
from .session import Session
from .store import MessageStore

logger = logging.getLogger(__name__)

STREAM_LIMIT = 1024 * 1024  # longest accepted dialogue line


# --- Task Manager ---
class TaskManager:
    def __init__(self):
        self.tasks: Set[asyncio.Task] = set()

    def create_task(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task


# --- Capture Server ---
class SMTPServer:
    """Stub SMTP server that serves exactly one client.

    ``port`` is only known once ``start()`` has bound the socket; with no
    port given the OS picks an ephemeral one.
    """

    def __init__(self, host: str, storage_path: Path, port: Optional[int] = None, hostname: str = 'mail.dumper'):
        self.host = host
        self.storage_path = Path(storage_path)
        self.requested_port = port or 0
        self.hostname = hostname
        self.session: Optional[Session] = None
        self._port: Optional[int] = None
        self._socket: Optional[socket.socket] = None
        self._started = False
        self._stopped = False
        self._accepted = asyncio.Event()
        self._acceptor: Optional[asyncio.Task] = None
        self._session_task: Optional[asyncio.Task] = None
        self._task_manager = TaskManager()

    @property
    def port(self) -> int:
        if self._port is None:
            raise InvalidStateError("Server not started")
        return self._port

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            raise InvalidStateError("Server already started")
        self._socket = socket.create_server((self.host, self.requested_port))
        self._socket.setblocking(False)
        self._port = self._socket.getsockname()[1]
        self._started = True
        self._acceptor = self._task_manager.create_task(self._accept_one())
        logger.info(f"SMTP server listening on {self.host}:{self._port}")

    async def _accept_one(self) -> None:
        loop = asyncio.get_running_loop()
        fd = self._socket.fileno()
        accepted = loop.create_future()

        def on_readable():
            if accepted.done():
                loop.remove_reader(fd)
                return
            try:
                conn, peer = self._socket.accept()
            except (BlockingIOError, InterruptedError):
                return
            except OSError as e:
                loop.remove_reader(fd)
                accepted.set_exception(e)
                return
            loop.remove_reader(fd)
            conn.setblocking(False)
            accepted.set_result((conn, peer))

        loop.add_reader(fd, on_readable)
        try:
            conn, peer = await accepted
        except asyncio.CancelledError:
            loop.remove_reader(fd)
            # accepted but not yet resumed when stop() cancelled us
            if accepted.done() and not accepted.cancelled() and accepted.exception() is None:
                accepted.result()[0].close()
            raise
        except OSError as e:
            logger.error(f"Error accepting connection on {self.host}:{self._port}: {e}")
            return
        self._accepted.set()
        logger.debug(f"Accepted connection from {peer}")

        writer = None
        try:
            reader, writer = await asyncio.open_connection(sock=conn, limit=STREAM_LIMIT)
            self.session = Session(LineChannel(reader, writer), MessageStore(self.storage_path), self.hostname)
        except Exception as e:
            logger.error(f"Error setting up session with {peer[0]}: {e}", exc_info=True)
            if writer is not None:
                writer.close()
            else:
                conn.close()
            return
        self._session_task = self._task_manager.create_task(self.session.run())

    async def wait_closed(self) -> None:
        """Wait until a client has connected and its session has ended."""
        if not self._started:
            raise InvalidStateError("Server not started")
        await asyncio.gather(self._acceptor, return_exceptions=True)
        if self._session_task is not None:
            await asyncio.shield(self._session_task)

    async def stop(self) -> None:
        if not self._started or self._stopped:
            return
        self._stopped = True
        if not self._accepted.is_set():
            self._acceptor.cancel()
            await asyncio.gather(self._acceptor, return_exceptions=True)
        self._socket.close()
        logger.info(f"SMTP server on {self.host}:{self._port} stopped")

    async def __aenter__(self) -> 'SMTPServer':
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
