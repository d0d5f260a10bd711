"""Data models for koban boards."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Card:
    """A single task item. The id is opaque and stable; titles may repeat."""

    id: str
    title: str
    content: str = ""
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class BoardList:
    """A named, ordered group of cards within one board."""

    id: str
    created_at: datetime = field(default_factory=utcnow)
    cards: list[Card] = field(default_factory=list)

    def card_ids(self) -> list[str]:
        return [card.id for card in self.cards]


@dataclass
class Board:
    """A board and its lists, as stored on the branch named after its id."""

    id: str
    created_at: datetime = field(default_factory=utcnow)
    lists: list[BoardList] = field(default_factory=list)
    repo_path: Path | None = None

    def list_ids(self) -> list[str]:
        return [lst.id for lst in self.lists]

    def get_list(self, list_id: str) -> BoardList | None:
        for lst in self.lists:
            if lst.id == list_id:
                return lst
        return None

    def cards(self) -> list[Card]:
        """Every card on the board, in list order then creation order."""
        return [card for lst in self.lists for card in lst.cards]

    def list_of(self, card: Card) -> BoardList | None:
        for lst in self.lists:
            if any(c.id == card.id for c in lst.cards):
                return lst
        return None
