"""
Session outputs: snapshots, results and the state-change events the
controller emits to rendering collaborators.

The engine never looks at presentation state; renderers subscribe to these
events and redraw from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

from leaderboard.data import RankingRow


class Outcome(Enum):
    """How a session ended."""
    WIN = "win"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class SessionSnapshot:
    """Numbers a status bar needs."""
    remaining_seconds: int
    matched_pairs: int
    total_pairs: int


@dataclass(frozen=True)
class SessionResult:
    """Terminal result of a session."""
    outcome: Outcome
    matched_pairs: int
    elapsed_seconds: int
    total_pairs: int

    @property
    def is_win(self) -> bool:
        return self.outcome is Outcome.WIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "matched_pairs": self.matched_pairs,
            "elapsed_seconds": self.elapsed_seconds,
            "total_pairs": self.total_pairs,
        }


class SessionEvent:
    """Marker base class for everything passed to subscribers."""


@dataclass(frozen=True)
class DeckDealt(SessionEvent):
    card_ids: Tuple[str, ...]


@dataclass(frozen=True)
class CardFlipped(SessionEvent):
    card_id: str
    image_id: int


@dataclass(frozen=True)
class CardMatched(SessionEvent):
    card_id: str


@dataclass(frozen=True)
class CardReset(SessionEvent):
    card_id: str


@dataclass(frozen=True)
class TimerTick(SessionEvent):
    remaining_seconds: int


@dataclass(frozen=True)
class SessionUpdated(SessionEvent):
    snapshot: SessionSnapshot


@dataclass(frozen=True)
class GameEnded(SessionEvent):
    result: SessionResult
    ranking: List[RankingRow] = field(default_factory=list)


@dataclass(frozen=True)
class SessionReset(SessionEvent):
    pass
