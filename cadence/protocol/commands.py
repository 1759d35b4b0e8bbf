"""
MPD commands (Client → Server).

Every supported operation is its own frozen dataclass holding at most one
argument. A command renders itself as a single wire line:

    VERB\\n            (no argument)
    VERB "ARG"\\n      (one argument)

The argument is quoted but not escaped here. Anything that needs escaping
(search filter expressions) is escaped by the code that builds it, see
cadence.core.filter.

Each command class binds its response handler as a class attribute, and
Command[T] carries the handler's result type, so MpdClient.exec() can
never decode a reply with the wrong handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from cadence.core import models
from cadence.core.models import DatabaseVersion, Listing, PathListing, Subsystem, Track
from cadence.protocol import handlers
from cadence.protocol.handlers import ResponseHandler

T = TypeVar("T")


def _flag(value: bool) -> str:
    """Render a boolean argument."""
    return "1" if value else "0"


@dataclass(frozen=True)
class Command(Generic[T]):
    """
    Base class for all commands.

    Subclasses must define:
        verb: The protocol command name.
        handler: The ResponseHandler that decodes the reply.
    """

    verb: ClassVar[str]
    handler: ClassVar[ResponseHandler[Any]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for attr in ("verb", "handler"):
            if not hasattr(cls, attr):
                raise TypeError(f"Command {cls.__name__} must define {attr!r}")
        if not isinstance(cls.handler, ResponseHandler):
            raise TypeError(f"Command {cls.__name__} has an invalid handler: {cls.handler!r}")

    def argument(self) -> str | None:
        """The single argument, already converted to text."""
        return None

    def to_line(self) -> str:
        """Render the command as a wire line."""
        arg = self.argument()
        if arg is None:
            return f"{self.verb}\n"
        return f'{self.verb} "{arg}"\n'


# =============================================================================
# Status commands
# =============================================================================


@dataclass(frozen=True)
class Status(Command[models.Status]):
    verb = "status"
    handler = handlers.STATUS


@dataclass(frozen=True)
class Stats(Command[models.Stats]):
    verb = "stats"
    handler = handlers.STATS


@dataclass(frozen=True)
class Idle(Command[Subsystem | None]):
    """Block until a subsystem changes; None if cancelled with noidle."""

    verb = "idle"
    handler = handlers.SUBSYSTEM


@dataclass(frozen=True)
class NoIdle(Command[None]):
    verb = "noidle"
    handler = handlers.NO_REPLY


# =============================================================================
# Playback options
# =============================================================================


@dataclass(frozen=True)
class SetVol(Command[None]):
    volume: int

    verb = "setvol"
    handler = handlers.OK

    def argument(self) -> str | None:
        return str(self.volume)


@dataclass(frozen=True)
class Repeat(Command[None]):
    enabled: bool

    verb = "repeat"
    handler = handlers.OK

    def argument(self) -> str | None:
        return _flag(self.enabled)


@dataclass(frozen=True)
class Random(Command[None]):
    enabled: bool

    verb = "random"
    handler = handlers.OK

    def argument(self) -> str | None:
        return _flag(self.enabled)


@dataclass(frozen=True)
class Consume(Command[None]):
    enabled: bool

    verb = "consume"
    handler = handlers.OK

    def argument(self) -> str | None:
        return _flag(self.enabled)


# =============================================================================
# Playback control
# =============================================================================


@dataclass(frozen=True)
class PlayId(Command[None]):
    song_id: int

    verb = "playid"
    handler = handlers.OK

    def argument(self) -> str | None:
        return str(self.song_id)


@dataclass(frozen=True)
class PlayPause(Command[None]):
    """pause "1" pauses, pause "0" resumes."""

    paused: bool

    verb = "pause"
    handler = handlers.OK

    def argument(self) -> str | None:
        return _flag(self.paused)


@dataclass(frozen=True)
class Next(Command[None]):
    verb = "next"
    handler = handlers.OK


@dataclass(frozen=True)
class Prev(Command[None]):
    verb = "previous"
    handler = handlers.OK


@dataclass(frozen=True)
class Stop(Command[None]):
    verb = "stop"
    handler = handlers.OK


# =============================================================================
# Queue
# =============================================================================


@dataclass(frozen=True)
class QueueAdd(Command[None]):
    path: str

    verb = "add"
    handler = handlers.OK

    def argument(self) -> str | None:
        return self.path


@dataclass(frozen=True)
class QueueClear(Command[None]):
    verb = "clear"
    handler = handlers.OK


@dataclass(frozen=True)
class PlaylistInfo(Command[list[Track]]):
    verb = "playlistinfo"
    handler = handlers.TRACKS


# =============================================================================
# Music database
# =============================================================================


@dataclass(frozen=True)
class Search(Command[list[Track]]):
    """Search with an already escaped filter expression."""

    query: str | None = None

    verb = "search"
    handler = handlers.TRACKS

    def argument(self) -> str | None:
        return self.query


@dataclass(frozen=True)
class Listall(Command[PathListing]):
    path: str | None = None

    verb = "listall"
    handler = handlers.PATH_LISTING

    def argument(self) -> str | None:
        return self.path


@dataclass(frozen=True)
class ListallInfo(Command[Listing]):
    path: str | None = None

    verb = "listallinfo"
    handler = handlers.LISTING

    def argument(self) -> str | None:
        return self.path


@dataclass(frozen=True)
class Update(Command[DatabaseVersion]):
    path: str | None = None

    verb = "update"
    handler = handlers.DATABASE_VERSION

    def argument(self) -> str | None:
        return self.path


@dataclass(frozen=True)
class Rescan(Command[DatabaseVersion]):
    path: str | None = None

    verb = "rescan"
    handler = handlers.DATABASE_VERSION

    def argument(self) -> str | None:
        return self.path
