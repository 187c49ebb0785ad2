"""
Memory Match (concentration) game implementation.

A single player reveals two cards at a time on an 8x4 board of 16 pairs.
Matching pairs stay face up, mismatches turn back after a short delay.
The session ends when every pair is found or the 5-minute clock runs out,
and the result goes into a persisted top-10 ranking.

Components:
- deck.py: Card/Deck types and the shuffling DeckBuilder
- game.py: SessionController state machine
- events.py: Snapshots, results and state-change events
- config.py: Game rules (Pydantic model)
- board_renderer.py: Rich board and status rendering
- cli.py: Terminal front end
- create_game(): Factory wiring the controller and its collaborators
"""

from typing import Optional

from core.clock import Clock
from core.scheduler import ManualScheduler, Scheduler
from core.storage import KeyValueStore
from games.memory_match.config import GAME_CONFIG, MemoryMatchConfig, load_config
from games.memory_match.deck import Card, Deck, DeckBuilder, Position
from games.memory_match.errors import (
    DeckInvariantError,
    InvalidInputError,
    InvalidPlayerNameError,
    InvalidSlotError,
    MemoryMatchError,
    SessionStateError,
    UnknownCardError,
)
from games.memory_match.events import Outcome, SessionResult, SessionSnapshot
from games.memory_match.game import Phase, SessionController
from leaderboard.data import RankingStore

__all__ = [
    "Card",
    "Deck",
    "DeckBuilder",
    "Position",
    "SessionController",
    "Phase",
    "Outcome",
    "SessionResult",
    "SessionSnapshot",
    "MemoryMatchConfig",
    "GAME_CONFIG",
    "load_config",
    "MemoryMatchError",
    "InvalidInputError",
    "InvalidPlayerNameError",
    "UnknownCardError",
    "InvalidSlotError",
    "DeckInvariantError",
    "SessionStateError",
    "create_game",
]

GAME_TYPE = "memory_match"


def create_game(
    config: Optional[MemoryMatchConfig] = None,
    scheduler: Optional[Scheduler] = None,
    store: Optional[KeyValueStore] = None,
    seed: Optional[int] = None,
) -> SessionController:
    """
    Factory: wire a SessionController with its collaborators.

    Without a scheduler a ManualScheduler is used, which only moves when
    advanced explicitly. Without a store no ranking is kept.
    """
    config = config or GAME_CONFIG
    scheduler = scheduler or ManualScheduler()
    ranking_store = (
        RankingStore(store, key=config.storage_key, size=config.ranking_size)
        if store is not None
        else None
    )
    return SessionController(
        deck_builder=DeckBuilder(config.grid_cols, config.grid_rows, seed=seed),
        clock=Clock(scheduler),
        scheduler=scheduler,
        ranking_store=ranking_store,
        config=config,
    )
