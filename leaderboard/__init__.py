"""
Memory Match ranking: persisted top-10 store and Rich terminal renderer.

Programmatic
------------
    from core.storage import JsonFileStore
    from leaderboard import RankingStore, ScoreEntry, render_ranking

    ranking = RankingStore(JsonFileStore("./memory_match_ranking.json"))
    ranking.record(ScoreEntry.create("alice", pairs=16, time=95))
    render_ranking(ranking.snapshot(total_pairs=16))
"""

from leaderboard.data import (
    RankingStore,
    ScoreEntry,
    RankingRow,
    calculate_score,
    sort_entries,
    build_rows,
    DEFAULT_STORAGE_KEY,
    DEFAULT_RANKING_SIZE,
)
from leaderboard.display import render_ranking, render_result

__all__ = [
    "RankingStore",
    "ScoreEntry",
    "RankingRow",
    "calculate_score",
    "sort_entries",
    "build_rows",
    "render_ranking",
    "render_result",
    "DEFAULT_STORAGE_KEY",
    "DEFAULT_RANKING_SIZE",
]
