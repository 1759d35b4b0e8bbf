"""
Domain models returned by the MPD client.

Each entity is a plain dataclass plus an extraction table that says which
reply key fills which attribute, how the raw token is coerced, and what
happens when it is missing. A single materialize() routine applies the
table, so the "default on missing", "warn on malformed" and "warn on
unknown key" policies live in exactly one place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, TypeVar

from cadence.core.events import (
    DiagnosticSink,
    DiscardedLineEvent,
    MalformedFieldEvent,
    UnknownKeysEvent,
    log_event,
)
from cadence.protocol.errors import FieldValueError, ResponseError
from cadence.protocol.respmap import (
    RespMap,
    to_bint,
    to_datetime,
    to_duration,
    to_float,
    to_int,
    to_number_of,
)

logger = logging.getLogger(__name__)

E = TypeVar("E")


class PlayerState(Enum):
    """Playback state reported by the status command."""

    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"


class Subsystem(Enum):
    """Server subsystems reported as changed by the idle command."""

    DATABASE = "database"
    UPDATE = "update"
    STORED_PLAYLIST = "stored_playlist"
    PLAYLIST = "playlist"
    PLAYER = "player"
    MIXER = "mixer"
    OUTPUT = "output"
    OPTIONS = "options"
    PARTITION = "partition"
    STICKER = "sticker"
    SUBSCRIPTION = "subscription"
    MESSAGE = "message"
    NEIGHBOR = "neighbor"
    MOUNT = "mount"


class DatabaseVersion(int):
    """Job id returned by the update and rescan commands."""

    def __repr__(self) -> str:
        return f"DatabaseVersion({int(self)})"


# =============================================================================
# Extraction tables
# =============================================================================


class FieldKind(Enum):
    """How a reply key is pulled out of a RespMap."""

    SINGLE = "single"  # one value, type default when absent
    OPTIONAL = "optional"  # one value or None
    LIST = "list"  # every value, in order


@dataclass(frozen=True)
class FieldSpec:
    """One row of an extraction table."""

    key: str
    attr: str
    coerce: Callable[[str], Any] = str
    kind: FieldKind = FieldKind.OPTIONAL
    default: Any = None
    load_bearing: bool = False


def materialize(
    cls: Callable[..., E],
    specs: tuple[FieldSpec, ...],
    respmap: RespMap,
    sink: DiagnosticSink = log_event,
) -> E:
    """
    Build an entity from a RespMap using its extraction table.

    Args:
        cls: The dataclass to instantiate.
        specs: Extraction table for cls.
        respmap: Reply fields. Consumed keys are removed from it.
        sink: Receives malformed-field and unknown-key events.

    Returns:
        The populated entity.

    Raises:
        FieldValueError: If a load-bearing field holds an invalid token.
    """
    entity = getattr(cls, "__name__", str(cls))
    values: dict[str, Any] = {}

    for spec in specs:
        if spec.kind is FieldKind.LIST:
            values[spec.attr] = respmap.get_all(spec.key)
            continue

        try:
            value = respmap.get_optional(spec.key, spec.coerce)
        except FieldValueError as e:
            if spec.load_bearing:
                raise
            sink(MalformedFieldEvent(entity=entity, key=e.key, value=e.value, error=e.reason))
            value = None

        if value is None and spec.kind is FieldKind.SINGLE:
            value = spec.default
        values[spec.attr] = value

    if not respmap.is_empty():
        sink(UnknownKeysEvent(entity=entity, fields=respmap.remaining()))

    return cls(**values)


# =============================================================================
# Status / Stats
# =============================================================================


@dataclass
class Status:
    """Reply to the status command."""

    partition: str | None = None
    volume: int | None = None
    repeat: bool = False
    random: bool = False
    single: str = "0"  # "0", "1" or "oneshot"
    consume: bool = False
    playlist: int = 0  # playlist version number
    playlistlength: int = 0
    song: int | None = None
    songid: int | None = None
    nextsong: int | None = None
    nextsongid: int | None = None
    time: str | None = None  # "elapsed:total" in whole seconds
    elapsed: timedelta | None = None
    duration: timedelta | None = None
    mixrampdb: float = 0.0
    mixrampdelay: float | None = None
    state: PlayerState = PlayerState.STOP
    bitrate: int | None = None  # kbps
    xfade: int | None = None  # seconds
    audio: str | None = None  # "samplerate:bits:channels"
    updating_db: int | None = None
    error: str | None = None

    @classmethod
    def from_respmap(cls, respmap: RespMap, sink: DiagnosticSink = log_event) -> "Status":
        return materialize(cls, STATUS_FIELDS, respmap, sink)


STATUS_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("partition", "partition"),
    FieldSpec("volume", "volume", to_int),
    FieldSpec("repeat", "repeat", to_bint, FieldKind.SINGLE, False),
    FieldSpec("random", "random", to_bint, FieldKind.SINGLE, False),
    FieldSpec("single", "single", str, FieldKind.SINGLE, "0"),
    FieldSpec("consume", "consume", to_bint, FieldKind.SINGLE, False),
    FieldSpec("playlist", "playlist", to_int, FieldKind.SINGLE, 0),
    FieldSpec("playlistlength", "playlistlength", to_int, FieldKind.SINGLE, 0),
    FieldSpec("song", "song", to_int),
    FieldSpec("songid", "songid", to_int),
    FieldSpec("nextsong", "nextsong", to_int),
    FieldSpec("nextsongid", "nextsongid", to_int),
    FieldSpec("time", "time"),
    FieldSpec("elapsed", "elapsed", to_duration),
    FieldSpec("duration", "duration", to_duration),
    FieldSpec("mixrampdb", "mixrampdb", to_float, FieldKind.SINGLE, 0.0),
    FieldSpec("mixrampdelay", "mixrampdelay", to_float),
    FieldSpec("state", "state", PlayerState, FieldKind.SINGLE, PlayerState.STOP, load_bearing=True),
    FieldSpec("bitrate", "bitrate", to_int),
    FieldSpec("xfade", "xfade", to_int),
    FieldSpec("audio", "audio"),
    FieldSpec("updating_db", "updating_db", to_int),
    FieldSpec("error", "error"),
)


@dataclass
class Stats:
    """Reply to the stats command."""

    uptime: timedelta = field(default_factory=timedelta)
    playtime: timedelta = field(default_factory=timedelta)
    artists: int = 0
    albums: int = 0
    songs: int = 0
    db_playtime: timedelta = field(default_factory=timedelta)
    db_update: int = 0  # unix timestamp of the last database update

    @classmethod
    def from_respmap(cls, respmap: RespMap, sink: DiagnosticSink = log_event) -> "Stats":
        return materialize(cls, STATS_FIELDS, respmap, sink)


STATS_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("uptime", "uptime", to_duration, FieldKind.SINGLE, timedelta()),
    FieldSpec("playtime", "playtime", to_duration, FieldKind.SINGLE, timedelta()),
    FieldSpec("artists", "artists", to_int, FieldKind.SINGLE, 0),
    FieldSpec("albums", "albums", to_int, FieldKind.SINGLE, 0),
    FieldSpec("songs", "songs", to_int, FieldKind.SINGLE, 0),
    FieldSpec("db_playtime", "db_playtime", to_duration, FieldKind.SINGLE, timedelta()),
    FieldSpec("db_update", "db_update", to_int, FieldKind.SINGLE, 0),
)


# =============================================================================
# Records: Track / Directory / Playlist
# =============================================================================


@dataclass
class Track:
    """A song in the database or the queue."""

    file: str = ""
    artist: str | None = None
    artist_sort: str | None = None
    album: str | None = None
    album_sort: str | None = None
    album_artist: str | None = None
    album_artist_sort: str | None = None
    title: str | None = None
    track: int | None = None
    genre: str | None = None
    date: str | None = None
    original_date: str | None = None
    disc: int | None = None
    label: str | None = None
    format: str | None = None
    composer: list[str] = field(default_factory=list)
    performer: list[str] = field(default_factory=list)
    pos: int | None = None
    id: int | None = None
    time: int | None = None
    duration: timedelta = field(default_factory=timedelta)
    last_modified: datetime | None = None
    musicbrainz_trackid: str | None = None
    musicbrainz_albumid: str | None = None
    musicbrainz_albumartistid: str | None = None
    musicbrainz_artistid: str | None = None
    musicbrainz_releasetrackid: str | None = None
    musicbrainz_workid: str | None = None

    @classmethod
    def from_respmap(cls, respmap: RespMap, sink: DiagnosticSink = log_event) -> "Track":
        return materialize(cls, TRACK_FIELDS, respmap, sink)


TRACK_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("file", "file", str, FieldKind.SINGLE, ""),
    FieldSpec("Artist", "artist"),
    FieldSpec("ArtistSort", "artist_sort"),
    FieldSpec("Album", "album"),
    FieldSpec("AlbumSort", "album_sort"),
    FieldSpec("AlbumArtist", "album_artist"),
    FieldSpec("AlbumArtistSort", "album_artist_sort"),
    FieldSpec("Title", "title"),
    FieldSpec("Track", "track", to_number_of),
    FieldSpec("Genre", "genre"),
    FieldSpec("Date", "date"),
    FieldSpec("OriginalDate", "original_date"),
    FieldSpec("Disc", "disc", to_number_of),
    FieldSpec("Label", "label"),
    FieldSpec("Format", "format"),
    FieldSpec("Composer", "composer", kind=FieldKind.LIST),
    FieldSpec("Performer", "performer", kind=FieldKind.LIST),
    FieldSpec("Pos", "pos", to_int),
    FieldSpec("Id", "id", to_int),
    FieldSpec("Time", "time", to_int),
    FieldSpec("duration", "duration", to_duration, FieldKind.SINGLE, timedelta()),
    FieldSpec("Last-Modified", "last_modified", to_datetime),
    FieldSpec("MUSICBRAINZ_TRACKID", "musicbrainz_trackid"),
    FieldSpec("MUSICBRAINZ_ALBUMID", "musicbrainz_albumid"),
    FieldSpec("MUSICBRAINZ_ALBUMARTISTID", "musicbrainz_albumartistid"),
    FieldSpec("MUSICBRAINZ_ARTISTID", "musicbrainz_artistid"),
    FieldSpec("MUSICBRAINZ_RELEASETRACKID", "musicbrainz_releasetrackid"),
    FieldSpec("MUSICBRAINZ_WORKID", "musicbrainz_workid"),
)


@dataclass
class Directory:
    """A directory in the music database."""

    path: str = ""
    last_modified: datetime | None = None

    @classmethod
    def from_respmap(cls, respmap: RespMap, sink: DiagnosticSink = log_event) -> "Directory":
        return materialize(cls, DIRECTORY_FIELDS, respmap, sink)


DIRECTORY_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("directory", "path", str, FieldKind.SINGLE, ""),
    FieldSpec("Last-Modified", "last_modified", to_datetime),
)


@dataclass
class Playlist:
    """A stored playlist."""

    path: str = ""
    last_modified: datetime | None = None

    @classmethod
    def from_respmap(cls, respmap: RespMap, sink: DiagnosticSink = log_event) -> "Playlist":
        return materialize(cls, PLAYLIST_FIELDS, respmap, sink)


PLAYLIST_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("playlist", "path", str, FieldKind.SINGLE, ""),
    FieldSpec("Last-Modified", "last_modified", to_datetime),
)

# One entity within a listing reply
Record = Track | Directory | Playlist


@dataclass
class Listing:
    """Reply to listallinfo: every record, in server order."""

    records: list[Record] = field(default_factory=list)

    @property
    def files(self) -> list[Track]:
        return [r for r in self.records if isinstance(r, Track)]

    @property
    def directories(self) -> list[Directory]:
        return [r for r in self.records if isinstance(r, Directory)]

    @property
    def playlists(self) -> list[Playlist]:
        return [r for r in self.records if isinstance(r, Playlist)]

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class PathListing:
    """Reply to listall: bare paths grouped by kind."""

    files: list[str] = field(default_factory=list)
    directories: list[str] = field(default_factory=list)
    playlists: list[str] = field(default_factory=list)

    @classmethod
    def from_respmap(cls, respmap: RespMap, sink: DiagnosticSink = log_event) -> "PathListing":
        return materialize(cls, PATH_LISTING_FIELDS, respmap, sink)


PATH_LISTING_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("file", "files", kind=FieldKind.LIST),
    FieldSpec("directory", "directories", kind=FieldKind.LIST),
    FieldSpec("playlist", "playlists", kind=FieldKind.LIST),
)


# =============================================================================
# Single value replies
# =============================================================================


def database_version_from_respmap(
    respmap: RespMap,
    sink: DiagnosticSink = log_event,
) -> DatabaseVersion:
    """
    Extract the update job id from an update/rescan reply.

    Raises:
        ResponseError: If the reply has no updating_db field.
        FieldValueError: If the job id is not an integer.
    """
    reply = respmap.remaining()
    version = respmap.get_optional("updating_db", to_int)
    if version is None:
        raise ResponseError("Expected 'updating_db' in reply", reply=str(reply))

    if not respmap.is_empty():
        sink(UnknownKeysEvent(entity="DatabaseVersion", fields=respmap.remaining()))

    return DatabaseVersion(version)


def subsystem_from_respmap(
    respmap: RespMap,
    sink: DiagnosticSink = log_event,
) -> Subsystem | None:
    """
    Extract the changed subsystem from an idle reply.

    Returns None for an empty reply, which is what the server sends when
    the idle was cancelled with noidle.

    Raises:
        ResponseError: If the reply has fields but no 'changed' entry.
        FieldValueError: If the subsystem name is not recognized.
    """
    if respmap.is_empty():
        return None

    reply = respmap.remaining()
    changed = respmap.get_all("changed")
    if not changed:
        raise ResponseError("Expected 'changed' in idle reply", reply=str(reply))

    first, *rest = changed
    for extra in rest:
        sink(DiscardedLineEvent(line=f"changed: {extra}", reason="more than one change in idle reply"))

    if not respmap.is_empty():
        sink(UnknownKeysEvent(entity="Subsystem", fields=respmap.remaining()))

    try:
        return Subsystem(first)
    except ValueError as e:
        raise FieldValueError("changed", first, "unknown subsystem") from e
