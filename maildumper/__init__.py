# maildumper
# MIT licensed
"""Stub SMTP server that captures one submitted message to a file."""

from .errors import InvalidStateError, MailDumperError, ProtocolViolation, UnexpectedDisconnect
from .server import SMTPServer
from .session import Session, State
from .store import MessageStore

__all__ = [
    'InvalidStateError',
    'MailDumperError',
    'MessageStore',
    'ProtocolViolation',
    'SMTPServer',
    'Session',
    'State',
    'UnexpectedDisconnect',
]
