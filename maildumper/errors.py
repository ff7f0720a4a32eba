# maildumper
# MIT licensed


class MailDumperError(Exception):
    pass


class InvalidStateError(MailDumperError, RuntimeError):
    """Raised when the server is used out of lifecycle order."""


class ProtocolViolation(MailDumperError):
    def __init__(self, line: str, expected: str):
        self.line = line
        self.expected = expected
        super().__init__(f"invalid '{expected}' message format: '{line}'")


class UnexpectedDisconnect(MailDumperError):
    def __init__(self, state: str = ''):
        self.state = state
        super().__init__(f"broken pipe{f' in {state}' if state else ''}")
