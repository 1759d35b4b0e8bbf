"""
Tests for reply decoding.

Covers the RespMap multimap, its typed extractors, and reading complete
replies (OK / ACK / end of stream) from a line stream.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from cadence.core.events import DiscardedLineEvent, Event
from cadence.protocol.errors import CommandError, Disconnected, FieldValueError
from cadence.protocol.io import LineStream
from cadence.protocol.respmap import (
    RespMap,
    iter_pairs,
    read_respmap,
    split_pair,
    to_bint,
    to_datetime,
    to_duration,
    to_number_of,
)

# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------


def make_stream(data: bytes) -> LineStream:
    """Create a LineStream that replays data and then hits end of stream."""
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()

    writer = MagicMock(spec=asyncio.StreamWriter)
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    return LineStream(reader, writer)


class TestCoercions:
    """Tests for the token coercion functions."""

    def test_bint_true(self) -> None:
        assert to_bint("1") is True

    def test_bint_false(self) -> None:
        assert to_bint("0") is False

    @pytest.mark.parametrize("token", ["2", "true", "", " 1", "yes"])
    def test_bint_rejects_other_tokens(self, token: str) -> None:
        with pytest.raises(ValueError):
            to_bint(token)

    def test_duration_fractional(self) -> None:
        """149.029 seconds keeps its millisecond part."""
        duration = to_duration("149.029")
        assert duration.total_seconds() == pytest.approx(149.029)

    def test_duration_integer(self) -> None:
        assert to_duration("307") == timedelta(seconds=307)

    @pytest.mark.parametrize("token", ["abc", "-1", "nan"])
    def test_duration_rejects_invalid(self, token: str) -> None:
        with pytest.raises(ValueError):
            to_duration(token)

    def test_datetime_utc_suffix(self) -> None:
        value = to_datetime("2021-03-04T19:21:05Z")
        assert value == datetime(2021, 3, 4, 19, 21, 5, tzinfo=timezone.utc)

    def test_datetime_naive_is_utc(self) -> None:
        value = to_datetime("2021-03-04T19:21:05")
        assert value.tzinfo == timezone.utc

    def test_number_of_total(self) -> None:
        assert to_number_of("3/12") == 3
        assert to_number_of("7") == 7


class TestSplitPair:
    """Tests for splitting reply lines."""

    def test_simple(self) -> None:
        assert split_pair("Title: Song") == ("Title", "Song")

    def test_splits_on_first_separator_only(self) -> None:
        """Values may contain ': ' themselves."""
        assert split_pair("Title: Intro: Part 1") == ("Title", "Intro: Part 1")

    def test_colon_without_space_is_part_of_value(self) -> None:
        assert split_pair("time: 149:308") == ("time", "149:308")

    def test_no_separator(self) -> None:
        assert split_pair("garbage") is None

    def test_empty_value(self) -> None:
        assert split_pair("Title: ") == ("Title", "")


class TestRespMap:
    """Tests for the RespMap multimap."""

    def test_get_all_returns_values_in_insertion_order(self) -> None:
        respmap = RespMap.from_lines(
            "Composer: A\nTitle: X\nComposer: B\nPerformer: P\nComposer: C"
        )

        assert respmap.get_all("Composer") == ["A", "B", "C"]
        assert respmap.get_all("Performer") == ["P"]

    def test_get_all_missing_key(self) -> None:
        assert RespMap().get_all("Composer") == []

    def test_keys_are_case_sensitive(self) -> None:
        respmap = RespMap.from_lines(["Title: upper", "title: lower"])

        assert respmap.get_str("Title") == "upper"
        assert respmap.get_str("title") == "lower"

    def test_extraction_consumes_key(self) -> None:
        respmap = RespMap.from_lines(["volume: 50", "state: play"])

        assert respmap.get("volume", int, 0) == 50
        assert "volume" not in respmap
        assert respmap.remaining() == {"state": ["play"]}

    def test_get_default_when_absent(self) -> None:
        assert RespMap().get("playlistlength", int, 0) == 0

    def test_get_optional_absent(self) -> None:
        assert RespMap().get_optional("song", int) is None

    def test_last_value_wins_for_single_extraction(self) -> None:
        respmap = RespMap.from_lines(["Title: first", "Title: second"])
        assert respmap.get_str("Title") == "second"

    def test_coercion_failure_carries_key_and_value(self) -> None:
        respmap = RespMap.from_lines(["volume: loud"])

        with pytest.raises(FieldValueError) as excinfo:
            respmap.get_optional("volume", int)

        assert excinfo.value.key == "volume"
        assert excinfo.value.value == "loud"

    def test_field_value_error_is_value_error(self) -> None:
        respmap = RespMap.from_lines(["repeat: maybe"])

        with pytest.raises(ValueError):
            respmap.get_bool("repeat")

    def test_get_bool(self) -> None:
        respmap = RespMap.from_lines(["repeat: 1", "random: 0"])

        assert respmap.get_bool("repeat") is True
        assert respmap.get_bool("random") is False
        assert respmap.get_bool("consume") is False

    def test_get_duration(self) -> None:
        respmap = RespMap.from_lines(["elapsed: 149.029"])

        elapsed = respmap.get_duration("elapsed")
        assert elapsed is not None
        assert elapsed.total_seconds() == pytest.approx(149.029)
        assert respmap.get_duration("duration") is None

    def test_from_lines_skips_lines_without_separator(self) -> None:
        respmap = RespMap.from_lines(["volume: 50", "nonsense"])
        assert respmap.keys() == ["volume"]

    def test_peek_does_not_consume(self) -> None:
        respmap = RespMap.from_lines(["file: a.flac"])

        assert respmap.peek_all("file") == ["a.flac"]
        assert "file" in respmap


class TestReadRespmap:
    """Tests for reading complete replies from a stream."""

    @pytest.mark.asyncio
    async def test_reads_until_ok(self) -> None:
        stream = make_stream(b"volume: 50\nstate: play\nOK\nleftover: 1\n")

        respmap = await read_respmap(stream)

        assert respmap.remaining() == {"volume": ["50"], "state": ["play"]}
        # Lines after the terminator stay in the stream
        assert await stream.read_line() == "leftover: 1"

    @pytest.mark.asyncio
    async def test_empty_reply(self) -> None:
        respmap = await read_respmap(make_stream(b"OK\n"))
        assert respmap.is_empty()

    @pytest.mark.asyncio
    async def test_crlf_line_endings(self) -> None:
        respmap = await read_respmap(make_stream(b"volume: 50\r\nOK\r\n"))
        assert respmap.get_str("volume") == "50"

    @pytest.mark.asyncio
    async def test_ack_raises_command_error(self) -> None:
        stream = make_stream(b"volume: 50\nACK [5@0] {play} argument missing\n")

        with pytest.raises(CommandError) as excinfo:
            await read_respmap(stream)

        error = excinfo.value
        assert error.text == "ACK [5@0] {play} argument missing"
        assert error.code == 5
        assert error.index == 0
        assert error.command == "play"
        assert error.message == "argument missing"

    @pytest.mark.asyncio
    async def test_unparseable_ack_keeps_text(self) -> None:
        with pytest.raises(CommandError) as excinfo:
            await read_respmap(make_stream(b"ACK something odd\n"))

        assert excinfo.value.text == "ACK something odd"
        assert excinfo.value.code == 0

    @pytest.mark.asyncio
    async def test_end_of_stream_is_disconnect(self) -> None:
        with pytest.raises(Disconnected):
            await read_respmap(make_stream(b"volume: 50\n"))

    @pytest.mark.asyncio
    async def test_zero_byte_read_is_disconnect(self) -> None:
        with pytest.raises(Disconnected):
            await read_respmap(make_stream(b""))

    @pytest.mark.asyncio
    async def test_line_without_separator_is_reported(self) -> None:
        events: list[Event] = []
        stream = make_stream(b"volume: 50\nstrange line\nOK\n")

        respmap = await read_respmap(stream, events.append)

        assert respmap.keys() == ["volume"]
        assert len(events) == 1
        assert isinstance(events[0], DiscardedLineEvent)
        assert events[0].line == "strange line"

    @pytest.mark.asyncio
    async def test_iter_pairs_yields_in_order(self) -> None:
        stream = make_stream(b"file: a\nTitle: A\nfile: b\nOK\n")

        pairs = [pair async for pair in iter_pairs(stream)]

        assert pairs == [("file", "a"), ("Title", "A"), ("file", "b")]
