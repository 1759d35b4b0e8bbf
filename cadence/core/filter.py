"""
Search filter expressions.

MPD filters look like (Artist == "Queen") and can be combined with AND
and negated with !. Filter.to_query() produces the complete, escaped
expression that is passed as the single argument of the search command.

Usage:
    query = (
        Filter()
        .and_(Tag.ARTIST.equals("The Beatles"))
        .and_(Tag.ALBUM.contains("White"))
        .to_query()
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Tag(Enum):
    """Tags a filter can match on (values are the protocol names)."""

    ARTIST = "Artist"
    ARTIST_SORT = "ArtistSort"
    ALBUM = "Album"
    ALBUM_SORT = "AlbumSort"
    ALBUM_ARTIST = "AlbumArtist"
    ALBUM_ARTIST_SORT = "AlbumArtistSort"
    TITLE = "Title"
    TRACK = "Track"
    NAME = "Name"
    GENRE = "Genre"
    DATE = "Date"
    ORIGINAL_DATE = "OriginalDate"
    COMPOSER = "Composer"
    PERFORMER = "Performer"
    CONDUCTOR = "Conductor"
    WORK = "Work"
    GROUPING = "Grouping"
    COMMENT = "Comment"
    DISC = "Disc"
    LABEL = "Label"
    MUSICBRAINZ_ARTISTID = "MUSICBRAINZ_ARTISTID"
    MUSICBRAINZ_ALBUMID = "MUSICBRAINZ_ALBUMID"
    MUSICBRAINZ_ALBUMARTISTID = "MUSICBRAINZ_ALBUMARTISTID"
    MUSICBRAINZ_TRACKID = "MUSICBRAINZ_TRACKID"
    MUSICBRAINZ_RELEASETRACKID = "MUSICBRAINZ_RELEASETRACKID"
    MUSICBRAINZ_WORKID = "MUSICBRAINZ_WORKID"
    ANY = "any"

    def equals(self, value: object) -> "FilterExpr":
        """Tag value must match exactly."""
        return FilterExpr(self, "==", str(value))

    def contains(self, value: object) -> "FilterExpr":
        """Tag value must contain the given substring."""
        return FilterExpr(self, "contains", str(value))


@dataclass(frozen=True)
class FilterExpr:
    """A single comparison, optionally negated."""

    tag: Tag
    operator: str
    value: str
    negated: bool = False

    def negate(self) -> "FilterExpr":
        return FilterExpr(self.tag, self.operator, self.value, not self.negated)

    def to_query(self) -> str:
        # Value is escaped once for the filter syntax, to_query() escapes the
        # whole expression again for the command argument
        expr = f'({self.tag.value} {self.operator} "{escape(self.value)}")'
        return f"!{expr}" if self.negated else expr


@dataclass
class Filter:
    """A conjunction of filter expressions."""

    exprs: list[FilterExpr] = field(default_factory=list)

    @classmethod
    def with_(cls, expr: FilterExpr) -> "Filter":
        return cls([expr])

    def and_(self, expr: FilterExpr) -> "Filter":
        self.exprs.append(expr)
        return self

    def and_not(self, expr: FilterExpr) -> "Filter":
        self.exprs.append(expr.negate())
        return self

    def to_query(self) -> str | None:
        """The escaped expression, or None for an empty filter."""
        if not self.exprs:
            return None

        joined = " AND ".join(expr.to_query() for expr in self.exprs)
        return f"({escape(joined)})"


def escape(text: str) -> str:
    """Escape backslash, double quote and apostrophe for use in an argument."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("'", "\\'")
