# maildumper
# MIT licensed

import asyncio
import logging

from .errors import UnexpectedDisconnect

logger = logging.getLogger(__name__)

LINE_TERMINATOR = b'\r\n'
ENCODING = 'utf-8'
ERRORS = 'surrogateescape'


class LineChannel:
    """CRLF framed text lines over an accepted stream connection."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        peer = writer.get_extra_info('peername')
        self.peer_address = peer[0] if peer else 'unknown'

    async def read_line(self) -> str:
        chunks = []
        while True:
            try:
                chunks.append(await self.reader.readuntil(b'\n'))
                break
            except asyncio.LimitOverrunError as e:
                # Lines longer than the stream limit are taken piecewise
                chunks.append(await self.reader.readexactly(e.consumed))
            except asyncio.IncompleteReadError as e:
                # A partial line at EOF means the peer went away mid-line
                raise UnexpectedDisconnect() from e
            except ConnectionError as e:
                raise UnexpectedDisconnect() from e
        raw = b''.join(chunks)
        raw = raw[:-1]
        if raw.endswith(b'\r'):
            raw = raw[:-1]
        return raw.decode(ENCODING, ERRORS)

    async def write_line(self, text: str) -> None:
        try:
            self.writer.write(text.encode(ENCODING, ERRORS) + LINE_TERMINATOR)
            await self.writer.drain()
        except ConnectionError as e:
            raise UnexpectedDisconnect() from e

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except ConnectionError as e:
            logger.debug(f"Connection with {self.peer_address} already gone: {e}")
