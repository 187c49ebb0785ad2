"""
Rich terminal display for the Memory Match ranking and game results.

Renders two things:
  1. The ranking table (rank badge, name, pairs, time, date)
  2. The end-of-game panel (clear / time up, pairs found, elapsed time)
"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from leaderboard.data import RankingRow


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_time(seconds: int) -> str:
    """``M:SS`` as shown in the ranking."""
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_duration(seconds: int) -> str:
    """``Xm Ys`` as shown in the result panel."""
    return f"{seconds // 60}m {seconds % 60}s"


def _rank_badge(rank: int) -> str:
    if rank == 1:
        return "[bold gold1]#1[/]"
    if rank == 2:
        return "[bold bright_white]#2[/]"
    if rank == 3:
        return "[bold orange1]#3[/]"
    return f"[dim]#{rank}[/]"


def _pairs_markup(pairs: int, total_pairs: int) -> str:
    if pairs >= total_pairs:
        return f"[bold bright_green]{pairs}/{total_pairs}[/]"
    return f"{pairs}/{total_pairs}"


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def render_ranking(rows: List[RankingRow], console: Optional[Console] = None) -> None:
    """Render the ranking table, or a placeholder when it is empty."""
    if console is None:
        console = Console()

    if not rows:
        console.print("[dim italic]No ranking data yet.[/]")
        return

    table = Table(
        box=box.ROUNDED,
        show_header=True,
        header_style="bold dim",
        title="[bold]Ranking[/]",
        min_width=60,
    )
    table.add_column("#", width=4, justify="right")
    table.add_column("Name", width=20)
    table.add_column("Pairs", width=7, justify="right")
    table.add_column("Time", width=6, justify="right")
    table.add_column("Date", width=11, style="dim")

    for row in rows:
        table.add_row(
            _rank_badge(row.rank),
            row.name,
            _pairs_markup(row.pairs, row.total_pairs),
            format_time(row.time),
            row.date,
        )

    console.print(table)


def render_result(
    is_win: bool,
    matched_pairs: int,
    total_pairs: int,
    elapsed_seconds: int,
    console: Optional[Console] = None,
) -> None:
    """Render the end-of-game panel."""
    if console is None:
        console = Console()

    if is_win:
        title = "[bold bright_green]  GAME CLEAR!  [/]"
        message = ("Congratulations!", "bold green")
        border = "green"
    else:
        title = "[bold orange1]  TIME UP!  [/]"
        message = ("Give it another try!", "orange1")
        border = "orange1"

    console.print()
    console.print(Panel(
        Text.assemble(
            ("Pairs found: ", "dim"),
            (f"{matched_pairs}/{total_pairs}", "bold"),
            "\n",
            ("Elapsed time: ", "dim"),
            (format_duration(elapsed_seconds), "bold"),
            "\n\n",
            message,
        ),
        title=title,
        border_style=border,
        expand=False,
        padding=(0, 2),
    ))
    console.print()
