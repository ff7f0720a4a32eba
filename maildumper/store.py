# maildumper
# MIT licensed

import asyncio
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import aiofiles

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%d_%H-%M-%S'
FILE_EXTENSION = '.txt'


def message_filename(now: Optional[datetime] = None) -> str:
    """Timestamp to the second plus a uuid4 token, e.g. 2021-05-01_10-00-00_<uuid>.txt"""
    now = now or datetime.now()
    return f"{now.strftime(TIMESTAMP_FORMAT)}_{uuid.uuid4()}{FILE_EXTENSION}"


class MessageStore:
    def __init__(self, directory: Path):
        self.directory = Path(directory)

    async def save(self, lines: Iterable[str]) -> Path:
        # exist_ok tolerates a concurrent creator
        await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
        filepath = self.directory / message_filename()
        # 'x' refuses to overwrite an existing file; text mode writes the platform line terminator
        async with aiofiles.open(filepath, 'x', encoding='utf-8', errors='surrogateescape') as f:
            for line in lines:
                await f.write(line + '\n')
        logger.info(f"Message saved to {filepath}")
        return filepath
