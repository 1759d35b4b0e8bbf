"""
Reply decoding for the MPD protocol.

A reply is zero or more "Key: value" lines followed by either "OK" or an
"ACK ..." error line. This module turns that line stream into RespMap, an
ordered multimap, and provides the typed extractors the response mapping
layer is built on.

Extraction consumes keys. After an entity has pulled every field it knows,
whatever is left in the map is by definition unknown to this client.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from cadence.core.events import DiagnosticSink, DiscardedLineEvent, log_event
from cadence.protocol.errors import CommandError, FieldValueError
from cadence.protocol.io import LineStream

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Reply terminators
OK_LINE = "OK"
ACK_PREFIX = "ACK "

# Separator between field name and value
KEY_SEPARATOR = ": "


# =============================================================================
# Coercions
# =============================================================================


def to_int(token: str) -> int:
    """Parse an integer token."""
    return int(token)


def to_float(token: str) -> float:
    """Parse a float token."""
    return float(token)


def to_bint(token: str) -> bool:
    """Parse a protocol boolean: exactly "0" or "1"."""
    if token == "1":
        return True
    if token == "0":
        return False
    raise ValueError(f"expected '0' or '1', got {token!r}")


def to_duration(token: str) -> timedelta:
    """Parse integer or fractional seconds into a timedelta."""
    seconds = float(token)
    if seconds != seconds or seconds < 0:  # NaN or negative
        raise ValueError(f"invalid duration {token!r}")
    return timedelta(seconds=seconds)


def to_datetime(token: str) -> datetime:
    """Parse an ISO 8601 timestamp such as 2021-03-04T19:21:05Z."""
    value = datetime.fromisoformat(token)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_number_of(token: str) -> int:
    """Parse a "n" or "n/total" position tag (Track, Disc)."""
    return int(token.split("/", 1)[0])


# =============================================================================
# RespMap
# =============================================================================


class RespMap:
    """
    Ordered multimap built from one contiguous reply.

    Keys are case-sensitive as received. Values for the same key keep
    their insertion order.
    """

    def __init__(self) -> None:
        self._data: dict[str, list[str]] = {}

    @classmethod
    def from_lines(cls, lines: str | list[str]) -> "RespMap":
        """
        Build a map from already received lines.

        Lines without a key separator are skipped. Terminator lines are
        not expected here.
        """
        if isinstance(lines, str):
            lines = lines.splitlines()

        respmap = cls()
        for line in lines:
            pair = split_pair(line)
            if pair is not None:
                respmap.insert(*pair)
        return respmap

    def insert(self, key: str, value: str) -> None:
        """Append a value under key."""
        self._data.setdefault(key, []).append(value)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"RespMap({self._data!r})"

    def is_empty(self) -> bool:
        """Return True if no fields are left."""
        return not self._data

    def keys(self) -> list[str]:
        """Field names in first-seen order."""
        return list(self._data)

    def peek_all(self, key: str) -> list[str]:
        """Return all values for key without consuming them."""
        return list(self._data.get(key, []))

    def remaining(self) -> dict[str, list[str]]:
        """Snapshot of the fields that have not been consumed."""
        return {key: list(values) for key, values in self._data.items()}

    # -------------------------------------------------------------------------
    # Extractors
    # -------------------------------------------------------------------------

    def get_all(self, key: str) -> list[str]:
        """Consume and return every value for key, in insertion order."""
        return self._data.pop(key, [])

    def get_optional(self, key: str, coerce: Callable[[str], T]) -> T | None:
        """
        Consume key and return its coerced value, or None if absent.

        When the key occurs more than once the last value wins.

        Raises:
            FieldValueError: If the value cannot be coerced.
        """
        values = self._data.pop(key, None)
        if not values:
            return None

        token = values[-1]
        try:
            return coerce(token)
        except (ValueError, TypeError, OverflowError) as e:
            raise FieldValueError(key, token, str(e)) from e

    def get(self, key: str, coerce: Callable[[str], T], default: T) -> T:
        """Consume key and return its coerced value, or default if absent."""
        value = self.get_optional(key, coerce)
        return default if value is None else value

    def get_str(self, key: str) -> str | None:
        """Consume key and return its raw value, or None if absent."""
        return self.get_optional(key, str)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Consume a bint field."""
        return self.get(key, to_bint, default)

    def get_duration(self, key: str) -> timedelta | None:
        """Consume a seconds field as a timedelta, or None if absent."""
        return self.get_optional(key, to_duration)


# =============================================================================
# Stream decoding
# =============================================================================


def split_pair(line: str) -> tuple[str, str] | None:
    """Split a reply line on the first key separator."""
    key, sep, value = line.partition(KEY_SEPARATOR)
    if not sep:
        return None
    return key, value


async def iter_pairs(
    stream: LineStream,
    sink: DiagnosticSink = log_event,
) -> AsyncIterator[tuple[str, str]]:
    """
    Yield (key, value) pairs until the reply terminator.

    The generator finishes normally on "OK". An ACK line aborts the reply.

    Raises:
        CommandError: If the server answered with ACK.
        Disconnected: If the stream ends before the terminator.
    """
    while True:
        line = await stream.read_line()

        if line == OK_LINE:
            return

        if line.startswith(ACK_PREFIX):
            logger.debug("Command error: %s", line)
            raise CommandError(line)

        pair = split_pair(line)
        if pair is None:
            sink(DiscardedLineEvent(line=line, reason="missing key separator"))
            continue

        yield pair


async def read_respmap(stream: LineStream, sink: DiagnosticSink = log_event) -> RespMap:
    """
    Read one complete reply into a RespMap.

    Raises:
        CommandError: If the server answered with ACK (partial data is dropped).
        Disconnected: If the stream ends before the terminator.
    """
    respmap = RespMap()
    async for key, value in iter_pairs(stream, sink):
        respmap.insert(key, value)
    return respmap
