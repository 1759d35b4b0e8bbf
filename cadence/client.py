"""
MPD client for Cadence.

MpdClient owns one connection to an MPD server and runs commands over it
strictly one at a time. Each command is encoded, written, and its reply
decoded by the handler bound to the command's class.

The client never retries. When the server drops the connection (MPD
closes idle clients after its connection_timeout) the next command fails
with Disconnected, and the caller decides whether to reconnect() and
resubmit.

Usage:
    async with MpdClient() as mpd:
        status = await mpd.status()
        print(status.state)
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import TypeVar

from cadence.config import ClientConfig, get_client_config
from cadence.core.events import ConnectedEvent, DiagnosticSink, ReconnectEvent, log_event
from cadence.core.filter import Filter
from cadence.core.models import (
    DatabaseVersion,
    Listing,
    PathListing,
    Stats,
    Status,
    Subsystem,
    Track,
)
from cadence.protocol import commands as cmd
from cadence.protocol.errors import (
    CommandError,
    Disconnected,
    FieldValueError,
    MpdError,
    ProtocolError,
    ResponseError,
    TransportError,
)
from cadence.protocol.io import LineStream

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Every greeting starts with this, e.g. "OK MPD 0.23.5"
GREETING_PREFIX = "OK "

# Errors after which the reply has been fully consumed
_IN_SYNC_ERRORS = (CommandError, ResponseError, FieldValueError)


class MpdClient:
    """
    Asynchronous client for one MPD server connection.

    Commands are serialized through an asyncio lock, so concurrent callers
    queue up instead of interleaving requests on the socket.

    Attributes:
        config: Client configuration (default host/port, reader limit).
        sink: Receives diagnostic events (unknown reply keys, reconnects).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        """
        Initialize an unconnected client.

        Args:
            config: Client configuration. Defaults to the bundled config.
            sink: Diagnostic event sink. Defaults to forwarding to logging.
        """
        self.config = config if config is not None else get_client_config()
        self.sink: DiagnosticSink = sink if sink is not None else log_event

        self._stream: LineStream | None = None
        self._address: tuple[str, int] | None = None
        self._version = ""
        self._lock = asyncio.Lock()

        # Command currently awaiting its reply
        self._in_flight: cmd.Command[object] | None = None

        # Set when the connection state is unknown (cancelled or broken exec)
        self._stale = False

    # =========================================================================
    # Connection management
    # =========================================================================

    @property
    def version(self) -> str:
        """The server greeting, e.g. "OK MPD 0.23.5"."""
        return self._version

    @property
    def protocol_version(self) -> str:
        """Protocol version announced in the greeting, e.g. "0.23.5"."""
        parts = self._version.split()
        return parts[-1] if len(parts) >= 3 else ""

    @property
    def address(self) -> tuple[str, int] | None:
        """Resolved peer address used for reconnects."""
        return self._address

    @property
    def is_connected(self) -> bool:
        """True if a connection is open and in a known state."""
        return self._stream is not None and not self._stale

    async def connect(self, host: str | None = None, port: int | None = None) -> str:
        """
        Connect to a server and read its greeting.

        The peer's concrete address is remembered so reconnect() goes back
        to the same endpoint without resolving the host name again.

        Args:
            host: Host name or address. Defaults to the configured host.
            port: TCP port. Defaults to the configured port.

        Returns:
            The greeting line.

        Raises:
            TransportError: If the socket could not be opened.
            ProtocolError: If no valid greeting arrived.
        """
        host = host if host is not None else self.config.host
        port = port if port is not None else self.config.port

        async with self._lock:
            return await self._open(host, port)

    async def reconnect(self) -> str:
        """
        Replace the connection with a fresh one to the same address.

        Makes exactly one attempt.

        Returns:
            The new greeting line.

        Raises:
            Disconnected: If connect() was never called.
            TransportError: If the socket could not be opened.
            ProtocolError: If no valid greeting arrived.
        """
        async with self._lock:
            if self._address is None:
                logger.warning("Reconnect without previous connection")
                raise Disconnected("Never connected")

            host, port = self._address
            logger.debug("Reconnecting to %s:%d", host, port)
            self.sink(ReconnectEvent(address=f"{host}:{port}"))
            return await self._open(host, port)

    async def close(self) -> None:
        """Close the connection. The address is kept for reconnect()."""
        stream, self._stream = self._stream, None
        self._in_flight = None
        if stream is not None:
            await stream.close()
            logger.debug("Connection closed")

    async def __aenter__(self) -> "MpdClient":
        if self._stream is None:
            await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _open(self, host: str, port: int) -> str:
        """Open a new stream, read the greeting and swap it in."""
        try:
            reader, writer = await asyncio.open_connection(
                host,
                port,
                limit=self.config.read_limit,
            )
        except OSError as e:
            raise TransportError(f"Failed to connect to {host}:{port}: {e}") from e

        stream = LineStream(reader, writer)
        peername = writer.get_extra_info("peername")
        address = (peername[0], peername[1]) if peername else (host, port)

        try:
            greeting = await stream.read_line()
        except Disconnected as e:
            await stream.close()
            raise ProtocolError("Server closed the connection before the greeting") from e
        except MpdError:
            await stream.close()
            raise

        if not greeting.startswith(GREETING_PREFIX):
            await stream.close()
            raise ProtocolError("Unexpected greeting", reply=greeting)

        old_stream = self._stream
        self._stream = stream
        self._address = address
        self._version = greeting
        self._stale = False
        self._in_flight = None

        if old_stream is not None:
            await old_stream.close()

        logger.info("Connected to %s:%d (%s)", address[0], address[1], greeting)
        self.sink(ConnectedEvent(address=f"{address[0]}:{address[1]}", version=greeting))
        return greeting

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def exec(self, command: cmd.Command[T]) -> T:
        """
        Run one command and return its decoded reply.

        If the awaiting task is cancelled, or anything other than a server
        or reply-shape error escapes the handler (including an exception
        raised by the diagnostic sink), the reply may be partly unread. The
        connection is then unusable and every later call raises
        Disconnected until reconnect() succeeds.

        Raises:
            Disconnected: Not connected, or the server closed the connection.
            TransportError: On low-level socket failures.
            CommandError: If the server rejected the command.
            ResponseError: If the reply had an unexpected shape.
            FieldValueError: If a load-bearing reply field was invalid.
        """
        async with self._lock:
            stream = self._require_stream()
            line = command.to_line()
            logger.debug("Sending: %s", line.rstrip("\n"))

            try:
                await stream.write_line(line)
                self._in_flight = command
                return await command.handler.handle(stream, self.sink)
            except BaseException as e:
                # Anything else may have left part of the reply unread
                if not isinstance(e, _IN_SYNC_ERRORS):
                    self._stale = True
                raise
            finally:
                self._in_flight = None

    def _require_stream(self) -> LineStream:
        if self._stream is None:
            raise Disconnected("Not connected")
        if self._stale:
            raise Disconnected("Connection state unknown, reconnect first")
        return self._stream

    # =========================================================================
    # Status
    # =========================================================================

    async def status(self) -> Status:
        """Get the player status."""
        return await self.exec(cmd.Status())

    async def stats(self) -> Stats:
        """Get stats on the music database."""
        return await self.exec(cmd.Stats())

    async def idle(self) -> Subsystem | None:
        """
        Wait until a subsystem changes.

        Returns:
            The changed subsystem, or None if the wait was ended by noidle().
        """
        return await self.exec(cmd.Idle())

    async def noidle(self) -> None:
        """
        Cancel a pending idle().

        While an idle is waiting for its reply this writes directly to the
        socket, bypassing the command lock; the pending idle() then returns
        None. Without a pending idle the server ignores the command.
        """
        if isinstance(self._in_flight, cmd.Idle) and self._stream is not None:
            await self._stream.write_line(cmd.NoIdle().to_line())
            return
        await self.exec(cmd.NoIdle())

    # =========================================================================
    # Playback options
    # =========================================================================

    async def setvol(self, volume: int) -> None:
        await self.exec(cmd.SetVol(volume))

    async def repeat(self, repeat: bool) -> None:
        await self.exec(cmd.Repeat(repeat))

    async def random(self, random: bool) -> None:
        await self.exec(cmd.Random(random))

    async def consume(self, consume: bool) -> None:
        await self.exec(cmd.Consume(consume))

    # =========================================================================
    # Playback control
    # =========================================================================

    async def play(self) -> None:
        """Resume playback."""
        await self.play_pause(True)

    async def pause(self) -> None:
        """Pause playback."""
        await self.play_pause(False)

    async def play_pause(self, play: bool) -> None:
        await self.exec(cmd.PlayPause(not play))

    async def playid(self, song_id: int) -> None:
        """Start playing the queue entry with the given song id."""
        await self.exec(cmd.PlayId(song_id))

    async def next(self) -> None:
        await self.exec(cmd.Next())

    async def prev(self) -> None:
        await self.exec(cmd.Prev())

    async def stop(self) -> None:
        await self.exec(cmd.Stop())

    # =========================================================================
    # Music database
    # =========================================================================

    async def update(self, path: str | None = None) -> DatabaseVersion:
        """Start a database update; returns the update job id."""
        return await self.exec(cmd.Update(path))

    async def rescan(self, path: str | None = None) -> DatabaseVersion:
        """Like update(), but also rescans unmodified files."""
        return await self.exec(cmd.Rescan(path))

    async def listall(self, path: str | None = None) -> PathListing:
        return await self.exec(cmd.Listall(path))

    async def listallinfo(self, path: str | None = None) -> Listing:
        return await self.exec(cmd.ListallInfo(path))

    async def search(self, filter: Filter) -> list[Track]:
        """
        Search the database.

        Usage:
            tracks = await mpd.search(
                Filter().and_(Tag.ARTIST.equals("The Beatles")).and_(Tag.ALBUM.contains("White"))
            )
        """
        return await self.exec(cmd.Search(filter.to_query()))

    # =========================================================================
    # Queue
    # =========================================================================

    async def queue_add(self, path: str) -> None:
        await self.exec(cmd.QueueAdd(path))

    async def queue_clear(self) -> None:
        await self.exec(cmd.QueueClear())

    async def queue(self) -> list[Track]:
        """Get every track in the queue."""
        return await self.exec(cmd.PlaylistInfo())
