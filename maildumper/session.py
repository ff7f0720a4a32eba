# maildumper
# MIT licensed

import enum
import logging
from pathlib import Path
from typing import List, Optional

from . import commands
from .channel import LineChannel
from .errors import ProtocolViolation, UnexpectedDisconnect
from .store import MessageStore

logger = logging.getLogger(__name__)

# --- Replies ---
BAD_SEQUENCE = '503 bad sequence of commands'
START_MAIL_INPUT = "354 enter mail, end with '.' on a line by itself"
MESSAGE_ACCEPTED = '250 message accepted for delivery'


class State(enum.Enum):
    GREETING = 'greeting'
    AWAIT_EHLO = 'await_ehlo'
    AWAIT_MAIL_FROM = 'await_mail_from'
    AWAIT_RCPT_LOOP = 'await_rcpt_loop'
    RECEIVING_BODY = 'receiving_body'
    AWAIT_QUIT = 'await_quit'
    CLOSED = 'closed'


class Session:
    """Scripted SMTP dialogue for one accepted connection.

    The states only move forward. Any line that does not fit the current
    state is answered with 503 and ends the session; so does a peer that
    goes away. A message file is written only once the terminator line of
    the DATA phase has been read.
    """

    def __init__(self, channel: LineChannel, store: MessageStore, hostname: str = 'mail.dumper'):
        self.channel = channel
        self.store = store
        self.hostname = hostname
        self.state = State.GREETING
        self.client_id: Optional[str] = None
        self.mail_from: Optional[str] = None
        self.rcpt_tos: List[str] = []
        self.lines: List[str] = []
        self.message_path: Optional[Path] = None
        self.completed = False

    @property
    def peer_address(self) -> str:
        return self.channel.peer_address

    async def run(self) -> None:
        logger.info(f"client {self.peer_address} connected")
        try:
            await self._greet()
            await self._ehlo()
            await self._mail_from()
            await self._rcpt_loop()
            await self._receive_body()
            await self._quit()
            self.completed = True
        except ProtocolViolation as e:
            logger.error(str(e))
            try:
                await self.channel.write_line(BAD_SEQUENCE)
            except UnexpectedDisconnect:
                logger.error(f"client {self.peer_address} gone before 503 could be sent")
        except UnexpectedDisconnect as e:
            logger.error(f"{e} from {self.peer_address}")
        except Exception as e:
            logger.error(f"Error in session with {self.peer_address}: {e}", exc_info=True)
        finally:
            self.state = State.CLOSED
            await self.channel.close()

    async def _read(self) -> str:
        try:
            return await self.channel.read_line()
        except UnexpectedDisconnect:
            raise UnexpectedDisconnect(self.state.value) from None

    async def _greet(self) -> None:
        await self.channel.write_line(f"220 {self.hostname}")
        self.state = State.AWAIT_EHLO

    async def _ehlo(self) -> None:
        line = await self._read()
        client_id = commands.parse_ehlo(line)
        if client_id is None:
            raise ProtocolViolation(line, 'EHLO')
        self.client_id = client_id
        logger.info(f"receive EHLO from {client_id}")
        await self.channel.write_line(f"250 hello {client_id} [{self.peer_address}]")
        self.state = State.AWAIT_MAIL_FROM

    async def _mail_from(self) -> None:
        line = await self._read()
        sender = commands.parse_mail_from(line)
        if sender is None:
            raise ProtocolViolation(line, 'MAIL FROM')
        self.mail_from = sender
        logger.info(f"receive MAIL FROM:<{sender}>")
        await self.channel.write_line(f"250 {sender} sender accepted")
        self.state = State.AWAIT_RCPT_LOOP

    async def _rcpt_loop(self) -> None:
        # Zero recipients before DATA is let through
        while True:
            line = (await self._read()).strip()
            if commands.is_data(line):
                break
            recipient = commands.parse_rcpt_to(line)
            if recipient is None:
                raise ProtocolViolation(line, 'RCPT TO')
            self.rcpt_tos.append(recipient)
            logger.info(f"receive RCPT TO:<{recipient}>")
            await self.channel.write_line(f"250 {recipient} ok")
        logger.info("receive DATA")
        await self.channel.write_line(START_MAIL_INPUT)
        self.state = State.RECEIVING_BODY

    async def _receive_body(self) -> None:
        while True:
            line = await self._read()
            if commands.is_terminator(line):
                break
            self.lines.append(line)
        self.message_path = await self.store.save(self.lines)
        await self.channel.write_line(MESSAGE_ACCEPTED)
        self.state = State.AWAIT_QUIT

    async def _quit(self) -> None:
        line = await self._read()
        if not commands.is_quit(line):
            raise ProtocolViolation(line, 'QUIT')
        logger.info(f"receive QUIT from {self.peer_address}")
        await self.channel.write_line(f"221 {self.hostname} closing connection")
