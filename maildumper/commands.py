# maildumper
# MIT licensed

import re
from typing import Optional

EHLO_RX = re.compile(r'EHLO (.+)')
MAIL_FROM_RX = re.compile(r'MAIL FROM:<(.+)>')
RCPT_TO_RX = re.compile(r'RCPT TO:<(.+)>')

DATA = 'DATA'
QUIT = 'QUIT'
TERMINATOR = '.'


def _capture(pattern: re.Pattern, line: str) -> Optional[str]:
    m = pattern.match(line)
    return m.group(1) if m else None


def parse_ehlo(line: str) -> Optional[str]:
    """Return the client identifier of an EHLO line, or None."""
    return _capture(EHLO_RX, line)


def parse_mail_from(line: str) -> Optional[str]:
    """Return the sender address of a MAIL FROM line, or None."""
    return _capture(MAIL_FROM_RX, line)


def parse_rcpt_to(line: str) -> Optional[str]:
    """Return the recipient address of a RCPT TO line, or None."""
    return _capture(RCPT_TO_RX, line)


def is_data(line: str) -> bool:
    return line.strip() == DATA


def is_quit(line: str) -> bool:
    return line == QUIT


def is_terminator(line: str) -> bool:
    return line == TERMINATOR
