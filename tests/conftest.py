import asyncio
import re
from pathlib import Path
from typing import List

import pytest

from maildumper import SMTPServer

GOLD_DIR = Path(__file__).parent / 'gold'
DATE_RX = re.compile(r'Date:.+')


class Client:
    """Raw line-by-line SMTP client for driving scripted dialogues."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer

    @classmethod
    async def connect(cls, port: int, host: str = '127.0.0.1') -> 'Client':
        reader, writer = await asyncio.open_connection(host, port)
        return cls(reader, writer)

    async def reply(self) -> str:
        line = await asyncio.wait_for(self.reader.readline(), timeout=5)
        return line.decode().rstrip('\r\n')

    async def send(self, line: str) -> None:
        self.writer.write(line.encode() + b'\r\n')
        await self.writer.drain()

    async def command(self, line: str) -> str:
        await self.send(line)
        return await self.reply()

    async def at_eof(self) -> bool:
        rest = await asyncio.wait_for(self.reader.read(), timeout=5)
        return rest == b''

    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except ConnectionError:
            pass


def captured_files(storage: Path) -> List[Path]:
    if not storage.exists():
        return []
    return sorted(storage.iterdir())


def mask_date(text: str) -> str:
    return DATE_RX.sub('DATE: $DATE$', text)


def assert_matches_gold(name: str, text: str) -> None:
    gold_file = GOLD_DIR / f'{name}.gold'
    temp_file = GOLD_DIR / f'{name}.temp'
    if temp_file.exists():
        temp_file.unlink()
    if not gold_file.exists():
        temp_file.write_text(text)
        pytest.fail(f"Gold file: '{gold_file}' not exists")
    gold = gold_file.read_text()
    if text != gold:
        temp_file.write_text(text)
    assert text == gold


@pytest.fixture
def storage(tmp_path) -> Path:
    return tmp_path / 'mail'


@pytest.fixture
async def server(storage):
    async with SMTPServer('127.0.0.1', storage) as smtp_server:
        yield smtp_server


@pytest.fixture
async def client(server):
    c = await Client.connect(server.port)
    yield c
    await c.close()
