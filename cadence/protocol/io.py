"""
Line framing for the MPD protocol.

MPD speaks newline-terminated UTF-8 text in both directions. LineStream
wraps an asyncio reader/writer pair and maps socket failures onto the
client's error taxonomy.
"""

from __future__ import annotations

import asyncio
import logging

from cadence.protocol.errors import Disconnected, TransportError

logger = logging.getLogger(__name__)

# Errors that mean the peer went away rather than a generic I/O fault
_DISCONNECT_ERRORS = (ConnectionResetError, BrokenPipeError, ConnectionAbortedError)


class LineStream:
    """
    Buffered line reader/writer over one socket connection.

    Attributes:
        reader: The asyncio stream reader.
        writer: The asyncio stream writer.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.reader = reader
        self.writer = writer

    async def write_line(self, line: str) -> None:
        """
        Send a fully formatted line (including the trailing newline).

        Raises:
            Disconnected: If the peer has closed the connection.
            TransportError: On any other socket failure.
        """
        try:
            self.writer.write(line.encode("utf-8"))
            await self.writer.drain()
        except _DISCONNECT_ERRORS as e:
            raise Disconnected(f"Connection lost while sending: {e}") from e
        except OSError as e:
            raise TransportError(f"Failed to send command: {e}") from e

    async def read_line(self) -> str:
        """
        Read one line with trailing CR/LF stripped.

        A zero-byte read means the server closed the socket, which MPD does
        on its own for idle clients.

        Raises:
            Disconnected: At end of stream or on a connection reset.
            TransportError: On any other socket failure or an over-long line.
        """
        try:
            data = await self.reader.readline()
        except _DISCONNECT_ERRORS as e:
            raise Disconnected(f"Connection lost while reading: {e}") from e
        except ValueError as e:
            # StreamReader raises ValueError when the line exceeds its limit
            raise TransportError(f"Reply line too long: {e}") from e
        except OSError as e:
            raise TransportError(f"Failed to read reply: {e}") from e

        if not data:
            raise Disconnected()
        if not data.endswith(b"\n"):
            # Stream ended partway through a line
            raise Disconnected(f"Connection closed mid-line: {data!r}")

        line = data.decode("utf-8", errors="replace").rstrip("\r\n")
        logger.debug("RX %r", line)
        return line

    async def close(self) -> None:
        """Close the connection."""
        try:
            self.writer.close()
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass  # Already disconnected
