"""Terminal output for CLI handlers: ok/error messages and board tables."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from koban.models import Board, Card


class Printer:
    """Writes plain or coloured messages. Errors go to stderr."""

    def __init__(self, color: bool = True) -> None:
        self.out = Console(no_color=not color, highlight=False, soft_wrap=True)
        self.err = Console(no_color=not color, highlight=False, soft_wrap=True, stderr=True)

    def ok(self, text: str) -> None:
        self.out.print(text, style="green", markup=False)

    def error(self, text: str) -> None:
        self.err.print(text, style="red", markup=False)

    def line(self, text: str | Text = "") -> None:
        if isinstance(text, Text):
            self.out.print(text)
        else:
            self.out.print(text, markup=False)

    def board(self, board: Board) -> None:
        """Render lists as columns with their cards underneath."""
        table = Table(title=board.id, show_lines=False, expand=False)
        for lst in board.lists:
            table.add_column(lst.id, justify="center")
        depth = max((len(lst.cards) for lst in board.lists), default=0)
        for row in range(depth):
            cells = []
            for lst in board.lists:
                if row < len(lst.cards):
                    card = lst.cards[row]
                    cells.append(Text(card.title) + Text("\n") + Text(card.id[:8], style="dim"))
                else:
                    cells.append(Text(""))
            table.add_row(*cells)
        self.out.print(table)

    def card(self, card: Card) -> None:
        created = card.created_at.strftime("%Y-%m-%d %H:%M UTC")
        footer = Text(f"{card.id} (created at {created})", style="dim")
        parts = [Text(card.content), Text("\n"), footer] if card.content else [footer]
        self.out.print(Panel(Text.assemble(*parts), title=Text(card.title), title_align="left"))
