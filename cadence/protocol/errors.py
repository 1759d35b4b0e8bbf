"""
Error taxonomy for the MPD client.

Every failure raised by the protocol layer is an MpdError subclass so
callers can catch the whole family at once, or pick out Disconnected to
drive their own reconnect policy.
"""

from __future__ import annotations

import re

# ACK [error@command_listNum] {current_command} message_text
ACK_PATTERN = re.compile(r"^ACK \[(\d+)@(\d+)\] \{([^}]*)\} ?(.*)$")


class MpdError(Exception):
    """Base exception for all MPD client errors."""

    pass


class TransportError(MpdError):
    """Low-level I/O failure on the socket."""

    pass


class Disconnected(MpdError):
    """The server closed the connection (or it was never opened)."""

    def __init__(self, message: str = "The server closed the connection") -> None:
        super().__init__(message)


class CommandError(MpdError):
    """
    The server rejected the issued command with an ACK line.

    Attributes:
        text: The raw ACK line as received.
        code: Numeric MPD error code, or 0 if the line could not be parsed.
        index: Position of the failing command in a command list.
        command: Name of the command the server complained about.
        message: Human readable server diagnostic.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.code = 0
        self.index = 0
        self.command = ""
        self.message = text

        match = ACK_PATTERN.match(text)
        if match:
            self.code = int(match.group(1))
            self.index = int(match.group(2))
            self.command = match.group(3)
            self.message = match.group(4)

        super().__init__(text)


class ResponseError(MpdError):
    """The reply terminated normally but did not have the expected shape."""

    def __init__(self, errmsg: str, reply: str = "") -> None:
        self.errmsg = errmsg
        self.reply = reply
        if reply:
            super().__init__(f"{errmsg}: {reply!r}")
        else:
            super().__init__(errmsg)


class ProtocolError(ResponseError):
    """Missing or malformed server greeting."""

    pass


class FieldValueError(MpdError, ValueError):
    """A present field could not be coerced to its declared type."""

    def __init__(self, key: str, value: str, reason: str = "") -> None:
        self.key = key
        self.value = value
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Invalid value for {key!r}: {value!r}{detail}")
