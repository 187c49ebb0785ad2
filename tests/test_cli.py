"""Tests for the terminal front end and the rich renderers."""

import asyncio
import io
import logging
import sys

import pytest
from rich.console import Console

from core.storage import JsonFileStore
from games import get_game_module
from games.memory_match import create_game
from games.memory_match.board_renderer import format_timer, render_board, render_status
from games.memory_match.cli import _StdinReader, main, parse_move, play
from games.memory_match.config import MemoryMatchConfig
from games.memory_match.deck import DeckBuilder
from leaderboard.data import RankingStore, ScoreEntry, build_rows
from leaderboard.display import format_duration, format_time, render_ranking, render_result


# ── helpers ────────────────────────────────────────────────────────────────


def _console() -> Console:
    return Console(record=True, width=120, color_system=None)


def _deck():
    return DeckBuilder(seed=11).build(21, 16)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ── TestParseMove ──────────────────────────────────────────────────────────


class TestParseMove:
    def test_row_col(self):
        deck = _deck()
        assert parse_move("1 2", deck) == deck.at(1, 2).id
        assert parse_move(" 3,7 ", deck) == deck.at(3, 7).id

    def test_index(self):
        deck = _deck()
        assert parse_move("10", deck) == deck.cards[10].id

    def test_card_id(self):
        deck = _deck()
        assert parse_move("card-5", deck) == "card-5"

    @pytest.mark.parametrize("text", ["", "4 0", "0 8", "32", "card-99", "hello"])
    def test_rejected(self, text):
        with pytest.raises(ValueError):
            parse_move(text, _deck())


# ── TestRendering ──────────────────────────────────────────────────────────


class TestRendering:
    def test_time_formats(self):
        assert format_timer(300) == "05:00"
        assert format_timer(65) == "01:05"
        assert format_timer(-3) == "00:00"
        assert format_time(95) == "1:35"
        assert format_duration(95) == "1m 35s"

    def test_status_line(self):
        controller = create_game(seed=1)
        controller.start("alice")
        assert render_status(controller.get_public_state()).plain == "Timer: 05:00   Score: 0/16"

    def test_board_hides_face_down_cards(self):
        controller = create_game(seed=1)
        controller.start("alice")
        card = controller.deck.at(0, 0)
        controller.request_flip(card.id)

        console = _console()
        render_board(controller.get_public_state(), console)
        text = console.export_text()
        assert text.count("▒▒") == 31
        assert f"{card.image_id:02d}" in text

    def test_board_before_deal(self):
        console = _console()
        render_board(create_game().get_public_state(), console)
        assert "No cards dealt." in console.export_text()

    def test_ranking_table(self):
        console = _console()
        rows = build_rows([ScoreEntry.create("alice", 16, 95)], total_pairs=16)
        render_ranking(rows, console)
        text = console.export_text()
        assert "alice" in text
        assert "16/16" in text
        assert "1:35" in text

    def test_empty_ranking(self):
        console = _console()
        render_ranking([], console)
        assert "No ranking data yet." in console.export_text()

    def test_result_panels(self):
        console = _console()
        render_result(True, 16, 16, 95, console)
        render_result(False, 7, 16, 300, console)
        text = console.export_text()
        assert "GAME CLEAR!" in text
        assert "Elapsed time: 1m 35s" in text
        assert "TIME UP!" in text
        assert "Pairs found: 7/16" in text


# ── TestMain ───────────────────────────────────────────────────────────────


class TestMain:
    def test_ranking_command(self, tmp_path, restore_logging):
        path = tmp_path / "ranking.json"
        RankingStore(JsonFileStore(path)).record(ScoreEntry.create("bob", 12, 200))

        console = _console()
        assert main(["ranking", "--store", str(path)], console=console) == 0
        text = console.export_text()
        assert "bob" in text
        assert "12/16" in text

    def test_ranking_command_without_file(self, tmp_path, restore_logging):
        console = _console()
        assert main(["ranking", "--store", str(tmp_path / "none.json")], console=console) == 0
        assert "No ranking data yet." in console.export_text()

    def test_blank_name_rejected(self, tmp_path, restore_logging):
        console = _console()
        argv = ["play", "--name", "   ", "--store", str(tmp_path / "r.json")]
        assert main(argv, console=console) == 1
        assert "Please enter a name." in console.export_text()

    def test_name_is_required(self, restore_logging):
        with pytest.raises(SystemExit):
            main(["play"], console=_console())

    @pytest.mark.parametrize("suffix, content", [
        (".json", '{"time_limit": 0}'),
        (".json", "{not json"),
        (".json", '{"difficulty": "hard"}'),
        (".yaml", "time_limit: [unclosed"),
    ])
    def test_bad_config_reported(self, tmp_path, restore_logging, suffix, content):
        path = tmp_path / f"config{suffix}"
        path.write_text(content)
        console = _console()
        argv = ["ranking", "--store", str(tmp_path / "r.json"), "--config", str(path)]
        assert main(argv, console=console) == 1
        assert "Cannot load config" in console.export_text()

    def test_missing_config_reported(self, tmp_path, restore_logging):
        console = _console()
        argv = ["play", "--name", "alice", "--config", str(tmp_path / "none.yaml")]
        assert main(argv, console=console) == 1
        assert "Cannot load config" in console.export_text()

    def test_no_command_prints_help(self, restore_logging, capsys):
        assert main([], console=_console()) == 0
        assert "play" in capsys.readouterr().out


# ── TestPlay ───────────────────────────────────────────────────────────────


class TestPlay:
    @pytest.mark.parametrize("stdin", ["q\n", ""])
    def test_quit_abandons_session(self, tmp_path, monkeypatch, stdin):
        monkeypatch.setattr(sys, "stdin", io.StringIO(stdin))
        path = tmp_path / "r.json"
        console = _console()

        result = asyncio.run(play(
            "alice", MemoryMatchConfig(), str(path), seed=3, countdown=False, console=console
        ))

        assert result is None
        assert "Game abandoned." in console.export_text()
        assert not path.exists()

    def test_reader_delivers_lines_then_eof(self, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("1 2\nq\n"))

        async def collect():
            reader = _StdinReader(asyncio.get_running_loop())
            return [await reader.readline() for _ in range(3)]

        assert asyncio.run(collect()) == ["1 2\n", "q\n", ""]

    def test_invalid_moves_do_not_end_session(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("9 9\nhello\nq\n"))
        console = _console()

        result = asyncio.run(play(
            "alice", MemoryMatchConfig(), str(tmp_path / "r.json"), seed=3,
            countdown=False, console=console,
        ))

        text = console.export_text()
        assert result is None
        assert "outside the 8x4 grid" in text
        assert "Cannot read move 'hello'" in text
        assert "Game abandoned." in text


# ── TestGameRegistry ───────────────────────────────────────────────────────


class TestGameRegistry:
    def test_known_game(self):
        module = get_game_module("memory_match")
        assert module.GAME_TYPE == "memory_match"
        assert module.create_game is create_game

    def test_unknown_game(self):
        with pytest.raises(ValueError):
            get_game_module("chess")
