"""
Ranking data structures and the persisted top-N ranking store.

Ranking order is ``pairs`` descending, then ``time`` ascending (faster is
better). The stored ``score`` (``pairs * 100 - time``) is informational
only and never used as a sort key. Ties keep insertion order, so an older
entry stays ahead of a newer one with the same pairs and time.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter

from core.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "memoryGameRanking"
DEFAULT_RANKING_SIZE = 10


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


def calculate_score(pairs: int, time: int) -> int:
    """Score shown next to an entry: 100 per pair minus elapsed seconds."""
    return pairs * 100 - time


def format_date(moment: datetime) -> str:
    """Short calendar date, e.g. ``2026/1/5``."""
    return f"{moment.year}/{moment.month}/{moment.day}"


class ScoreEntry(BaseModel):
    """One finished session in the ranking."""

    name: str = Field(..., min_length=1, description="Player name")
    pairs: int = Field(..., ge=0, description="Pairs found")
    time: int = Field(..., ge=0, description="Elapsed seconds")
    date: str = Field(..., description="Date the session was played")
    score: int = Field(..., description="pairs * 100 - time")

    @classmethod
    def create(
        cls,
        name: str,
        pairs: int,
        time: int,
        played_at: Optional[datetime] = None,
    ) -> "ScoreEntry":
        """Build an entry, deriving ``score`` and ``date``."""
        return cls(
            name=name,
            pairs=pairs,
            time=time,
            date=format_date(played_at or datetime.now()),
            score=calculate_score(pairs, time),
        )

    class Config:
        frozen = True


@dataclass(frozen=True)
class RankingRow:
    """Display row for one ranked entry."""

    rank: int
    name: str
    pairs: int
    total_pairs: int
    time: int
    date: str


def sort_entries(entries: List[ScoreEntry]) -> List[ScoreEntry]:
    """Order entries best-first (stable)."""
    return sorted(entries, key=lambda e: (-e.pairs, e.time))


def build_rows(entries: List[ScoreEntry], total_pairs: int) -> List[RankingRow]:
    return [
        RankingRow(
            rank=i + 1,
            name=e.name,
            pairs=e.pairs,
            total_pairs=total_pairs,
            time=e.time,
            date=e.date,
        )
        for i, e in enumerate(entries)
    ]


_ENTRY_LIST = TypeAdapter(List[ScoreEntry])


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class RankingStore:
    """
    Persisted top-N ranking.

    Persistence is best-effort: read or write failures are logged and the
    store falls back to the last ranking it held in memory. No method
    raises because of the backing store.

    Example:
        ranking = RankingStore(InMemoryStore())
        top = ranking.record(ScoreEntry.create("alice", pairs=16, time=95))
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_STORAGE_KEY,
        size: int = DEFAULT_RANKING_SIZE,
    ):
        if size < 1:
            raise ValueError(f"Ranking size must be positive, got {size}")
        self._store = store
        self._key = key
        self._size = size
        self._cache: List[ScoreEntry] = []

    @property
    def size(self) -> int:
        return self._size

    def record(self, entry: ScoreEntry) -> List[ScoreEntry]:
        """
        Add an entry and return the updated ranking.

        Args:
            entry: The finished session's score

        Returns:
            The top ``size`` entries, best first
        """
        rankings = self.list()
        rankings.append(entry)
        rankings = sort_entries(rankings)[: self._size]
        self._cache = list(rankings)
        self._save(rankings)
        logger.info(
            "Recorded score for %s: %d pairs in %ds", entry.name, entry.pairs, entry.time
        )
        return rankings

    def list(self) -> List[ScoreEntry]:
        """Return the current ranking without changing it."""
        try:
            raw = self._store.get(self._key)
        except Exception as e:
            logger.warning("Failed to read ranking %r: %s", self._key, e)
            return list(self._cache)

        if not raw:
            self._cache = []
            return []

        try:
            entries = _ENTRY_LIST.validate_python(json.loads(raw))
        except Exception as e:
            logger.warning("Discarding unreadable ranking data under %r: %s", self._key, e)
            return list(self._cache)

        self._cache = list(entries)
        return list(entries)

    def snapshot(self, total_pairs: int) -> List[RankingRow]:
        """Ranking as display rows."""
        return build_rows(self.list(), total_pairs)

    def _save(self, rankings: List[ScoreEntry]) -> None:
        payload: List[Dict[str, Any]] = [e.model_dump() for e in rankings]
        try:
            self._store.set(self._key, json.dumps(payload, ensure_ascii=False))
        except Exception as e:
            logger.warning("Failed to save ranking %r: %s", self._key, e)
