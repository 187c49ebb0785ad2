"""
Rich rendering of the Memory Match board and status line.

Works purely from ``SessionController.get_public_state()`` so it never
sees the image behind a face-down card.
"""

from typing import Any, Dict, Optional

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text


def format_timer(seconds: int) -> str:
    """``MM:SS`` for the countdown display."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def _cell(cell: Dict[str, Any]) -> Text:
    if cell["is_matched"]:
        return Text(f"{cell['image_id']:02d}", style="bold green")
    if cell["is_flipped"]:
        return Text(f"{cell['image_id']:02d}", style="bold bright_yellow")
    return Text("▒▒", style="blue")


def render_status(public_state: Dict[str, Any]) -> Text:
    """``Timer: MM:SS   Score: n/16`` line."""
    remaining = public_state["remaining_seconds"]
    timer_style = "bold red" if remaining <= 30 else "bold cyan"
    return Text.assemble(
        ("Timer: ", "dim"),
        (format_timer(remaining), timer_style),
        ("   ", ""),
        ("Score: ", "dim"),
        (f"{public_state['matched_pairs']}/{public_state['total_pairs']}", "bold"),
    )


def render_board(public_state: Dict[str, Any], console: Optional[Console] = None) -> None:
    """Print the status line and the card grid."""
    if console is None:
        console = Console()

    board = public_state["board"]
    console.print(render_status(public_state))

    if not board:
        console.print("[dim]No cards dealt.[/]")
        return

    table = Table(box=box.ROUNDED, show_header=True, header_style="dim", pad_edge=True)
    table.add_column("", justify="right", style="dim")
    for col in range(len(board[0])):
        table.add_column(str(col), justify="center", width=4)

    for row, cells in enumerate(board):
        table.add_row(str(row), *[_cell(c) for c in cells])

    console.print(table)
