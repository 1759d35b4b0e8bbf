"""
Tests for command encoding and handler binding.
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from cadence.core.filter import Filter, Tag
from cadence.protocol import commands as cmd
from cadence.protocol import handlers


class TestEncoding:
    """Tests for rendering commands as wire lines."""

    def test_no_argument(self) -> None:
        assert cmd.Stop().to_line() == "stop\n"
        assert cmd.Status().to_line() == "status\n"

    def test_integer_argument_is_quoted(self) -> None:
        assert cmd.PlayId(7).to_line() == 'playid "7"\n'
        assert cmd.SetVol(75).to_line() == 'setvol "75"\n'

    @pytest.mark.parametrize(
        "command,expected",
        [
            (cmd.Repeat(True), 'repeat "1"\n'),
            (cmd.Repeat(False), 'repeat "0"\n'),
            (cmd.Random(True), 'random "1"\n'),
            (cmd.Consume(False), 'consume "0"\n'),
        ],
    )
    def test_boolean_flags(self, command: cmd.Command[None], expected: str) -> None:
        assert command.to_line() == expected

    def test_play_pause(self) -> None:
        """pause "1" pauses, pause "0" resumes."""
        assert cmd.PlayPause(True).to_line() == 'pause "1"\n'
        assert cmd.PlayPause(False).to_line() == 'pause "0"\n'

    def test_protocol_verbs(self) -> None:
        assert cmd.Prev().to_line() == "previous\n"
        assert cmd.Next().to_line() == "next\n"
        assert cmd.QueueClear().to_line() == "clear\n"
        assert cmd.PlaylistInfo().to_line() == "playlistinfo\n"
        assert cmd.Idle().to_line() == "idle\n"
        assert cmd.NoIdle().to_line() == "noidle\n"

    def test_optional_path(self) -> None:
        assert cmd.Update().to_line() == "update\n"
        assert cmd.Update("Albums").to_line() == 'update "Albums"\n'
        assert cmd.Rescan().to_line() == "rescan\n"
        assert cmd.Listall().to_line() == "listall\n"
        assert cmd.ListallInfo("a b").to_line() == 'listallinfo "a b"\n'

    def test_queue_add(self) -> None:
        assert cmd.QueueAdd("Albums/01.flac").to_line() == 'add "Albums/01.flac"\n'

    def test_search_with_filter(self) -> None:
        query = Filter.with_(Tag.ARTIST.equals("Queen")).to_query()

        assert cmd.Search(query).to_line() == 'search "((Artist == \\"Queen\\"))"\n'

    def test_search_without_filter(self) -> None:
        assert cmd.Search().to_line() == "search\n"

    def test_commands_are_immutable(self) -> None:
        command = cmd.PlayId(3)

        with pytest.raises(FrozenInstanceError):
            command.song_id = 4  # type: ignore[misc]

    def test_commands_compare_by_value(self) -> None:
        assert cmd.SetVol(10) == cmd.SetVol(10)
        assert cmd.SetVol(10) != cmd.SetVol(11)


class TestHandlerBinding:
    """Every command class carries the handler for its reply."""

    @pytest.mark.parametrize(
        "command_class,handler",
        [
            (cmd.Status, handlers.STATUS),
            (cmd.Stats, handlers.STATS),
            (cmd.Idle, handlers.SUBSYSTEM),
            (cmd.NoIdle, handlers.NO_REPLY),
            (cmd.SetVol, handlers.OK),
            (cmd.PlayPause, handlers.OK),
            (cmd.Stop, handlers.OK),
            (cmd.QueueAdd, handlers.OK),
            (cmd.PlaylistInfo, handlers.TRACKS),
            (cmd.Search, handlers.TRACKS),
            (cmd.Listall, handlers.PATH_LISTING),
            (cmd.ListallInfo, handlers.LISTING),
            (cmd.Update, handlers.DATABASE_VERSION),
            (cmd.Rescan, handlers.DATABASE_VERSION),
        ],
    )
    def test_handler(self, command_class: type, handler: handlers.ResponseHandler) -> None:
        assert command_class.handler is handler

    def test_missing_verb_is_rejected(self) -> None:
        with pytest.raises(TypeError, match="verb"):

            @dataclass(frozen=True)
            class Broken(cmd.Command[None]):
                handler = handlers.OK

    def test_missing_handler_is_rejected(self) -> None:
        with pytest.raises(TypeError, match="handler"):

            @dataclass(frozen=True)
            class Broken(cmd.Command[None]):
                verb = "broken"

    def test_invalid_handler_is_rejected(self) -> None:
        with pytest.raises(TypeError):

            @dataclass(frozen=True)
            class Broken(cmd.Command[None]):
                verb = "broken"
                handler = "not a handler"

    def test_abstract_handler_is_rejected(self) -> None:
        """The base handler cannot be instantiated, so it can never be bound."""
        with pytest.raises(TypeError):
            handlers.ResponseHandler()  # type: ignore[abstract]
