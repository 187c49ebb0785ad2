#!/usr/bin/env python3
"""
Command-line interface for Memory Match.

Usage:
    memory-match play --name alice
    memory-match play --name alice --seed 7 --store ./ranking.json
    memory-match ranking --store ./ranking.json
"""

import argparse
import asyncio
import logging
import re
import sys
import threading
from typing import List, Optional

import yaml
from rich.console import Console
from rich.logging import RichHandler

from core.scheduler import AsyncioScheduler
from core.storage import JsonFileStore
from games.memory_match import create_game
from games.memory_match.board_renderer import render_board
from games.memory_match.config import GAME_CONFIG, MemoryMatchConfig, load_config
from games.memory_match.deck import Deck
from games.memory_match.errors import MemoryMatchError
from games.memory_match.events import (
    CardMatched,
    CardReset,
    GameEnded,
    SessionEvent,
    SessionResult,
    SessionUpdated,
)
from leaderboard.data import RankingStore
from leaderboard.display import render_ranking, render_result

logger = logging.getLogger(__name__)

DEFAULT_STORE = "./memory_match_ranking.json"

_SLOT_RE = re.compile(r"^\s*(\d+)\s*[,\s]\s*(\d+)\s*$")


def parse_move(text: str, deck: Deck) -> str:
    """
    Turn player input into a card id.

    Accepts ``row col`` (or ``row,col``), a grid index, or a card id such
    as ``card-3``.

    Raises:
        ValueError: If the input names no card on the board
    """
    text = text.strip()
    if not text:
        raise ValueError("Enter 'row col' or a grid index")

    match = _SLOT_RE.match(text)
    if match:
        row, col = int(match.group(1)), int(match.group(2))
        try:
            return deck.at(row, col).id
        except IndexError as e:
            raise ValueError(str(e))

    if text.isdigit():
        index = int(text)
        if not 0 <= index < len(deck):
            raise ValueError(f"Index {index} is outside 0..{len(deck) - 1}")
        return deck.cards[index].id

    if text in deck:
        return text

    raise ValueError(f"Cannot read move {text!r}; use 'row col' or a grid index")


def configure_logging(verbose: bool, console: Optional[Console] = None) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(path: Optional[str]) -> MemoryMatchConfig:
    return load_config(path) if path else GAME_CONFIG


class _StdinReader:
    """
    Feeds stdin lines into an asyncio queue from a daemon thread.

    The thread never holds up interpreter or event-loop shutdown, so
    Ctrl-C returns without waiting for the player to press Enter. An empty
    string marks end of input.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        threading.Thread(target=self._worker, daemon=True).start()

    def _worker(self) -> None:
        while True:
            line = sys.stdin.readline()
            try:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, line)
            except RuntimeError:
                return  # loop already closed
            if not line:
                return

    async def readline(self) -> str:
        return await self._queue.get()


async def _countdown(console: Console, count: int = 3) -> None:
    """Pre-game 3-2-1; presentation only."""
    for n in range(count, 0, -1):
        console.print(f"[bold bright_cyan]{n}[/]")
        await asyncio.sleep(1)
    console.print("[bold bright_green]START![/]")


async def play(
    name: str,
    config: MemoryMatchConfig,
    store_path: str,
    seed: Optional[int] = None,
    countdown: bool = True,
    console: Optional[Console] = None,
) -> Optional[SessionResult]:
    """
    Run one interactive session on the running event loop.

    Returns:
        The session result, or None if the player quit
    """
    console = console or Console()
    loop = asyncio.get_running_loop()
    controller = create_game(
        config,
        scheduler=AsyncioScheduler(loop),
        store=JsonFileStore(store_path),
        seed=seed,
    )
    ended: asyncio.Future = loop.create_future()
    redraw = False

    def on_event(event: SessionEvent) -> None:
        nonlocal redraw
        if isinstance(event, (CardMatched, CardReset)):
            redraw = True
        elif isinstance(event, SessionUpdated) and redraw:
            redraw = False
            render_board(controller.get_public_state(), console)
        elif isinstance(event, GameEnded):
            result = event.result
            render_result(
                result.is_win,
                result.matched_pairs,
                result.total_pairs,
                result.elapsed_seconds,
                console,
            )
            render_ranking(event.ranking, console)
            if not ended.done():
                ended.set_result(result)

    controller.subscribe(on_event)

    if countdown:
        await _countdown(console)
    controller.start(name)
    render_board(controller.get_public_state(), console)
    console.print("[dim]Pick a card with 'row col' or its index; 'q' quits.[/]")

    reader = _StdinReader(loop)
    read = None
    while not ended.done():
        read = loop.create_task(reader.readline())
        done, _ = await asyncio.wait({read, ended}, return_when=asyncio.FIRST_COMPLETED)
        if ended in done:
            break

        line = read.result()
        read = None
        if not line or line.strip().lower() in ("q", "quit", "exit"):
            controller.reset()
            console.print("[dim]Game abandoned.[/]")
            return None

        try:
            card_id = parse_move(line, controller.deck)
        except ValueError as e:
            console.print(f"[red]{e}[/]")
            continue

        if controller.request_flip(card_id):
            render_board(controller.get_public_state(), console)
        else:
            console.print("[dim]Not now: card already open or flips are locked.[/]")

    if read is not None and not read.done():
        console.print("[dim]Press Enter to continue.[/]")
        await read

    return ended.result()


def cmd_play(args, config: MemoryMatchConfig, console: Console) -> int:
    """Play a game."""
    try:
        asyncio.run(play(
            args.name,
            config,
            args.store,
            seed=args.seed,
            countdown=not args.no_countdown,
            console=console,
        ))
    except MemoryMatchError as e:
        logger.debug("Session aborted", exc_info=True)
        console.print(f"[red]{e}[/]")
        return 1
    except KeyboardInterrupt:
        console.print("[dim]Interrupted.[/]")
        return 130
    return 0


def cmd_ranking(args, config: MemoryMatchConfig, console: Console) -> int:
    """Show the persisted ranking."""
    ranking = RankingStore(
        JsonFileStore(args.store),
        key=config.storage_key,
        size=config.ranking_size,
    )
    render_ranking(ranking.snapshot(config.total_pairs), console)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Memory Match: find all 16 pairs before the clock runs out"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    play_parser = subparsers.add_parser("play", help="Play a game")
    play_parser.add_argument("--name", "-n", required=True, help="Name recorded in the ranking")
    play_parser.add_argument("--store", default=DEFAULT_STORE, help="Ranking file")
    play_parser.add_argument("--config", "-c", help="Config file (YAML or JSON)")
    play_parser.add_argument("--seed", type=int, help="Random seed")
    play_parser.add_argument("--no-countdown", action="store_true", help="Skip the 3-2-1 countdown")

    ranking_parser = subparsers.add_parser("ranking", help="Show the ranking")
    ranking_parser.add_argument("--store", default=DEFAULT_STORE, help="Ranking file")
    ranking_parser.add_argument("--config", "-c", help="Config file (YAML or JSON)")

    return parser


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    console = console or Console()
    configure_logging(args.verbose, console)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = _load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.debug("Config load failed", exc_info=True)
        console.print(f"[red]Cannot load config {args.config}: {e}[/]")
        return 1

    if args.command == "play":
        if not args.name.strip():
            console.print("[red]Please enter a name.[/]")
            return 1
        return cmd_play(args, config, console)
    return cmd_ranking(args, config, console)


if __name__ == "__main__":
    sys.exit(main())
