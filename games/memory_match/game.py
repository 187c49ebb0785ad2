"""Memory Match session engine.

Phase state-machine
-------------------
IDLE       ->  start(name)                     ->  PLAYING

PLAYING    ->  first flip                      ->  PLAYING
               second flip                     ->  RESOLVING (flips locked)
               clock reaches the time limit    ->  ENDED (timeout)

RESOLVING  ->  after the flip delay:
               +-- images equal   ->  pair matched
               |     +-- all pairs matched  ->  ENDED (win)
               |     +-- else               ->  PLAYING
               +-- images differ  ->  both cards turned back, PLAYING
               clock reaches the time limit    ->  ENDED (timeout)

any        ->  reset()                         ->  IDLE

Every scheduled callback captures the controller's epoch when it is
scheduled. ``start``, ``reset`` and game end bump the epoch, so a
resolution or tick that fires afterwards sees a different epoch and does
nothing.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from core.clock import Clock
from core.scheduler import Scheduler, TimerHandle
from games.memory_match.config import GAME_CONFIG, MemoryMatchConfig
from games.memory_match.deck import Card, Deck, DeckBuilder
from games.memory_match.errors import (
    InvalidPlayerNameError,
    InvalidSlotError,
    SessionStateError,
    UnknownCardError,
)
from games.memory_match.events import (
    CardFlipped,
    CardMatched,
    CardReset,
    DeckDealt,
    GameEnded,
    Outcome,
    SessionEvent,
    SessionReset,
    SessionResult,
    SessionSnapshot,
    SessionUpdated,
    TimerTick,
)
from leaderboard.data import RankingRow, RankingStore, ScoreEntry, build_rows

logger = logging.getLogger(__name__)

Listener = Callable[[SessionEvent], None]


class Phase(Enum):
    """Distinct stages of a session."""

    IDLE = "idle"
    PLAYING = "playing"
    RESOLVING = "resolving"
    ENDED = "ended"


class SessionController:
    """
    Owns a single Memory Match session.

    Design invariants:
    - At most two cards are pending; ``can_flip`` is False exactly while two
      cards wait for resolution or while no game is being played.
    - A flip that is not admissible is dropped, never queued or raised.
    - The game ends at most once per start; the clock is stopped and the
      score recorded exactly once.
    - ``reset()`` leaves no live timers behind and is valid in every phase.
    """

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        deck_builder: DeckBuilder,
        clock: Clock,
        scheduler: Optional[Scheduler] = None,
        ranking_store: Optional[RankingStore] = None,
        config: MemoryMatchConfig = GAME_CONFIG,
    ):
        """
        Args:
            deck_builder: Deals a fresh deck on every start.
            clock:        Countdown clock; owned by this controller.
            scheduler:    Runs the delayed flip resolution. Defaults to the
                          clock's scheduler.
            ranking_store: Receives the score when a game ends. ``None``
                          disables ranking.
            config:       Game rules.
        """
        self._deck_builder = deck_builder
        self._clock = clock
        self._scheduler = scheduler or clock.scheduler
        self._ranking_store = ranking_store
        self.config = config

        self._listeners: List[Listener] = []
        self._epoch = 0
        self._resolution_handle: Optional[TimerHandle] = None
        self._clear_session()

    def _clear_session(self) -> None:
        self._phase: Phase = Phase.IDLE
        self._player_name: Optional[str] = None
        self._deck: Optional[Deck] = None
        self._matched_pairs: int = 0
        self._flipped_cards: List[Card] = []
        self._can_flip: bool = False
        self._elapsed_time: int = 0
        self._result: Optional[SessionResult] = None
        self._ranking: List[RankingRow] = []

    # ------------------------------------------------------------------
    # subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register an event listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # read-only state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_playing(self) -> bool:
        return self._phase in (Phase.PLAYING, Phase.RESOLVING)

    @property
    def can_flip(self) -> bool:
        return self._can_flip

    @property
    def matched_pairs(self) -> int:
        return self._matched_pairs

    @property
    def flipped_cards(self) -> List[Card]:
        return list(self._flipped_cards)

    @property
    def elapsed_time(self) -> int:
        if self.is_playing:
            return self._clock.elapsed_seconds
        return self._elapsed_time

    @property
    def remaining_time(self) -> int:
        return max(0, self.config.time_limit - self.elapsed_time)

    @property
    def player_name(self) -> Optional[str]:
        return self._player_name

    @property
    def deck(self) -> Optional[Deck]:
        return self._deck

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def ranking(self) -> List[RankingRow]:
        """Ranking returned when the last game ended."""
        return list(self._ranking)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            remaining_seconds=self.remaining_time,
            matched_pairs=self._matched_pairs,
            total_pairs=self.config.total_pairs,
        )

    def get_public_state(self) -> Dict[str, Any]:
        """
        Board view safe to show a player.

        Face-down cards carry ``image_id: None``.
        """
        board: List[List[Dict[str, Any]]] = []
        if self._deck is not None:
            for row in range(self._deck.grid_rows):
                cells = []
                for col in range(self._deck.grid_cols):
                    card = self._deck.at(row, col)
                    cells.append({
                        "id": card.id,
                        "index": card.position.index,
                        "image_id": card.image_id if card.is_face_up else None,
                        "is_flipped": card.is_flipped,
                        "is_matched": card.is_matched,
                    })
                board.append(cells)

        return {
            "phase": self._phase.value,
            "player_name": self._player_name,
            "board": board,
            "remaining_seconds": self.remaining_time,
            "elapsed_seconds": self.elapsed_time,
            "matched_pairs": self._matched_pairs,
            "total_pairs": self.config.total_pairs,
            "can_flip": self._can_flip,
            "result": self._result.to_dict() if self._result else None,
        }

    def get_state(self) -> Dict[str, Any]:
        return {
            "public": self.get_public_state(),
            "deck": [c.to_dict() for c in self._deck] if self._deck else [],
            "metadata": {
                "epoch": self._epoch,
                "flipped_card_ids": [c.id for c in self._flipped_cards],
                "clock_running": self._clock.is_running,
            },
        }

    def serialize(self) -> Dict[str, Any]:
        return {
            "game_type": "memory_match",
            "config": self.config.model_dump(),
            **self.get_state(),
        }

    # ------------------------------------------------------------------
    # start / reset
    # ------------------------------------------------------------------

    def start(self, player_name: str) -> None:
        """
        Deal a new deck and start the clock.

        Raises:
            InvalidPlayerNameError: If the name is empty or blank
            SessionStateError: If a game is already in progress
            DeckInvariantError: If the dealt deck is corrupt (nothing changes)
        """
        name = (player_name or "").strip()
        if not name:
            raise InvalidPlayerNameError("Player name must not be empty")
        if self.is_playing:
            raise SessionStateError(f"Cannot start while {self._phase.value}")

        deck = self._deck_builder.build(self.config.total_images, self.config.total_pairs)

        if self._phase is Phase.ENDED:
            self.reset()

        self._epoch += 1
        epoch = self._epoch

        self._player_name = name
        self._deck = deck
        self._matched_pairs = 0
        self._flipped_cards = []
        self._can_flip = True
        self._elapsed_time = 0
        self._result = None
        self._ranking = []
        self._phase = Phase.PLAYING

        self._clock.reset()
        self._clock.on_tick(lambda elapsed: self._on_tick(epoch, elapsed))
        self._clock.on_expire(lambda: self._on_expire(epoch))
        self._clock.start(self.config.time_limit)

        logger.info("Session started for %s", name)
        self._emit(DeckDealt(tuple(c.id for c in deck)))
        self._emit(SessionUpdated(self.snapshot()))

    def reset(self) -> None:
        """Return to IDLE from any phase, cancelling everything pending."""
        self._epoch += 1
        self._cancel_resolution()
        self._clock.reset()
        self._clear_session()
        logger.info("Session reset")
        self._emit(SessionReset())

    # ------------------------------------------------------------------
    # flips
    # ------------------------------------------------------------------

    def request_flip(self, card_id: str) -> bool:
        """
        Reveal one card.

        Returns:
            True if the flip was accepted, False if it was ignored because
            flips are locked, no game is running, or the card is already
            face up.

        Raises:
            UnknownCardError: If a game is running and the id is not on the
                board
        """
        if self._phase is not Phase.PLAYING or not self._can_flip:
            logger.debug("Flip of %s ignored in phase %s", card_id, self._phase.value)
            return False

        card = self._deck.get(card_id)
        if card is None:
            raise UnknownCardError(card_id)
        if card.is_flipped or card.is_matched:
            logger.debug("Flip of %s ignored: already face up", card_id)
            return False

        card.is_flipped = True
        self._flipped_cards.append(card)
        self._emit(CardFlipped(card.id, card.image_id))

        if len(self._flipped_cards) == 2:
            self._can_flip = False
            self._phase = Phase.RESOLVING
            epoch = self._epoch
            self._resolution_handle = self._scheduler.call_later(
                self.config.card_flip_delay, lambda: self._resolve(epoch)
            )
        return True

    def flip_at(self, row: int, col: int) -> bool:
        """
        Flip by grid slot. Ignored unless a game is in play.

        Raises:
            InvalidSlotError: If a game is in play and the slot is off the board
        """
        if self._phase is not Phase.PLAYING or self._deck is None:
            logger.debug("Flip at (%s, %s) ignored in phase %s", row, col, self._phase.value)
            return False
        try:
            card = self._deck.at(row, col)
        except IndexError as e:
            raise InvalidSlotError(row, col, str(e))
        return self.request_flip(card.id)

    def _resolve(self, epoch: int) -> None:
        if epoch != self._epoch or self._phase is not Phase.RESOLVING:
            logger.debug("Stale resolution dropped")
            return
        self._resolution_handle = None

        first, second = self._flipped_cards
        if first.image_id == second.image_id:
            first.is_matched = True
            second.is_matched = True
            self._matched_pairs += 1
            self._emit(CardMatched(first.id))
            self._emit(CardMatched(second.id))
        else:
            first.is_flipped = False
            second.is_flipped = False
            self._emit(CardReset(first.id))
            self._emit(CardReset(second.id))

        self._flipped_cards = []
        if self._matched_pairs >= self.config.total_pairs:
            self._end(Outcome.WIN)
            return

        self._can_flip = True
        self._phase = Phase.PLAYING
        self._emit(SessionUpdated(self.snapshot()))

    def _cancel_resolution(self) -> None:
        if self._resolution_handle is not None:
            self._resolution_handle.cancel()
            self._resolution_handle = None

    # ------------------------------------------------------------------
    # clock
    # ------------------------------------------------------------------

    def _on_tick(self, epoch: int, elapsed: int) -> None:
        if epoch != self._epoch or not self.is_playing:
            return
        self._elapsed_time = elapsed
        remaining = max(0, self.config.time_limit - elapsed)
        self._emit(TimerTick(remaining))
        self._emit(SessionUpdated(self.snapshot()))

    def _on_expire(self, epoch: int) -> None:
        if epoch != self._epoch or not self.is_playing:
            return
        self._end(Outcome.TIMEOUT)

    # ------------------------------------------------------------------
    # end of game
    # ------------------------------------------------------------------

    def _end(self, outcome: Outcome) -> None:
        if not self.is_playing:
            return

        elapsed = self._clock.elapsed_seconds
        self._clock.stop()
        self._epoch += 1
        self._cancel_resolution()

        self._phase = Phase.ENDED
        self._can_flip = False
        self._flipped_cards = []
        self._elapsed_time = elapsed
        self._result = SessionResult(
            outcome=outcome,
            matched_pairs=self._matched_pairs,
            elapsed_seconds=elapsed,
            total_pairs=self.config.total_pairs,
        )
        logger.info(
            "Session ended (%s): %d/%d pairs in %ds",
            outcome.value, self._matched_pairs, self.config.total_pairs, elapsed,
        )

        self._ranking = self._record_score()
        self._emit(SessionUpdated(self.snapshot()))
        self._emit(GameEnded(self._result, list(self._ranking)))

    def _record_score(self) -> List[RankingRow]:
        if self._ranking_store is None:
            return []
        entry = ScoreEntry.create(
            name=self._player_name,
            pairs=self._matched_pairs,
            time=self._elapsed_time,
        )
        rankings = self._ranking_store.record(entry)
        return build_rows(rankings, self.config.total_pairs)
