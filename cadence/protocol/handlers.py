"""
Response handlers.

A handler knows how to read the reply to a command and what domain value
it turns into. Handlers are stateless; each command class holds exactly
one of the instances defined at the bottom of this module.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Generic, TypeVar

from cadence.core.events import DiagnosticSink
from cadence.core.models import (
    DatabaseVersion,
    Listing,
    PathListing,
    Stats,
    Status,
    Subsystem,
    Track,
    database_version_from_respmap,
    subsystem_from_respmap,
)
from cadence.protocol.errors import ResponseError
from cadence.protocol.io import LineStream
from cadence.protocol.records import read_records
from cadence.protocol.respmap import RespMap, read_respmap

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResponseHandler(ABC, Generic[T]):
    """Base class for reply decoders."""

    @abstractmethod
    async def handle(self, stream: LineStream, sink: DiagnosticSink) -> T:
        """
        Read one complete reply from stream and convert it.

        Raises:
            CommandError: If the server answered with ACK.
            Disconnected: If the connection dropped mid-reply.
            ResponseError: If the reply has the wrong shape.
            FieldValueError: If a load-bearing field is invalid.
        """


class OkHandler(ResponseHandler[None]):
    """Reply must be a bare OK."""

    async def handle(self, stream: LineStream, sink: DiagnosticSink) -> None:
        respmap = await read_respmap(stream, sink)
        if not respmap.is_empty():
            # Reply was drained up to OK, so the connection is still in sync
            raise ResponseError("Expected OK", reply=str(respmap.remaining()))


class NoReplyHandler(ResponseHandler[None]):
    """The server sends nothing back (noidle outside of idle)."""

    async def handle(self, stream: LineStream, sink: DiagnosticSink) -> None:
        return None


class RespMapHandler(ResponseHandler[T]):
    """Read the whole reply into one RespMap and convert it."""

    def __init__(self, convert: Callable[[RespMap, DiagnosticSink], T]) -> None:
        self.convert = convert

    async def handle(self, stream: LineStream, sink: DiagnosticSink) -> T:
        respmap = await read_respmap(stream, sink)
        return self.convert(respmap, sink)


class ListingHandler(ResponseHandler[Listing]):
    """Multi-record reply, all record kinds kept."""

    async def handle(self, stream: LineStream, sink: DiagnosticSink) -> Listing:
        return await read_records(stream, sink)


class TracksHandler(ResponseHandler[list[Track]]):
    """Multi-record reply where only songs matter."""

    async def handle(self, stream: LineStream, sink: DiagnosticSink) -> list[Track]:
        listing = await read_records(stream, sink)
        tracks = listing.files
        skipped = len(listing) - len(tracks)
        if skipped:
            logger.debug("Ignored %d non-track records", skipped)
        return tracks


OK = OkHandler()
NO_REPLY = NoReplyHandler()
STATUS: RespMapHandler[Status] = RespMapHandler(Status.from_respmap)
STATS: RespMapHandler[Stats] = RespMapHandler(Stats.from_respmap)
DATABASE_VERSION: RespMapHandler[DatabaseVersion] = RespMapHandler(database_version_from_respmap)
SUBSYSTEM: RespMapHandler[Subsystem | None] = RespMapHandler(subsystem_from_respmap)
PATH_LISTING: RespMapHandler[PathListing] = RespMapHandler(PathListing.from_respmap)
LISTING = ListingHandler()
TRACKS = TracksHandler()
