"""
Record splitting for multi-entity replies.

Listing commands (listallinfo, playlistinfo, search, ...) answer with a
flat run of "key: value" lines holding many records back to back. There is
no per-record terminator: a record starts at one of the boundary keys and
runs until the next boundary key or the end of the reply.

This relies on every record's boundary key being its first field, which
is how MPD orders its output. A reply that put a boundary key anywhere else
would be split in the wrong place; the splitter does not try to detect
that.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from cadence.core.events import DiagnosticSink, log_event
from cadence.core.models import Directory, Listing, Playlist, Record, Track
from cadence.protocol.io import LineStream
from cadence.protocol.respmap import RespMap, iter_pairs

logger = logging.getLogger(__name__)

# Keys that open a new record
BOUNDARY_KEYS = frozenset({"file", "directory", "playlist"})


def to_record(respmap: RespMap, sink: DiagnosticSink = log_event) -> Record:
    """
    Decode one finalized record.

    Priority: a "directory" key makes it a Directory, otherwise a "playlist"
    key makes it a Playlist, anything else is a Track.
    """
    if "directory" in respmap:
        return Directory.from_respmap(respmap, sink)
    if "playlist" in respmap:
        return Playlist.from_respmap(respmap, sink)
    return Track.from_respmap(respmap, sink)


class RecordSplitter:
    """
    Incremental splitter: feed pairs in, get finished records out.

    Usage:
        splitter = RecordSplitter()
        for key, value in pairs:
            record = splitter.feed(key, value)
            if record is not None:
                ...
        last = splitter.finish()
    """

    def __init__(self, sink: DiagnosticSink = log_event) -> None:
        self._sink = sink
        self._current = RespMap()

    def feed(self, key: str, value: str) -> Record | None:
        """
        Add one pair.

        Returns:
            The previous record if this pair started a new one, else None.
        """
        finished = None
        if key in BOUNDARY_KEYS and not self._current.is_empty():
            finished = to_record(self._current, self._sink)
            self._current = RespMap()

        self._current.insert(key, value)
        return finished

    def finish(self) -> Record | None:
        """Finalize the record in progress, if any."""
        if self._current.is_empty():
            return None

        record = to_record(self._current, self._sink)
        self._current = RespMap()
        return record


def split_records(
    pairs: Iterable[tuple[str, str]],
    sink: DiagnosticSink = log_event,
) -> list[Record]:
    """Split an already collected sequence of pairs into records."""
    splitter = RecordSplitter(sink)
    records: list[Record] = []

    for key, value in pairs:
        record = splitter.feed(key, value)
        if record is not None:
            records.append(record)

    last = splitter.finish()
    if last is not None:
        records.append(last)

    return records


async def read_records(stream: LineStream, sink: DiagnosticSink = log_event) -> Listing:
    """
    Read a multi-record reply up to its terminator.

    Raises:
        CommandError: If the server answered with ACK.
        Disconnected: If the stream ends before the terminator.
    """
    splitter = RecordSplitter(sink)
    listing = Listing()

    async for key, value in iter_pairs(stream, sink):
        record = splitter.feed(key, value)
        if record is not None:
            listing.records.append(record)

    last = splitter.finish()
    if last is not None:
        listing.records.append(last)

    logger.debug("Read %d records", len(listing.records))
    return listing
