"""Boards, lists and cards on top of branch-per-board storage."""

import logging
import re
import uuid

from koban.constants import DEFAULT_BRANCH
from koban.errors import Ambiguous, DuplicateId, InvalidId, KobanError, NotFound
from koban.git import VersionControlBackend
from koban.model.loader import load_board
from koban.model.writer import board_files
from koban.models import Board, BoardList, Card
from koban.registry import RepositoryRegistry

logger = logging.getLogger(__name__)

_VALID_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_id(kind: str, value: str) -> str:
    """Check value can name a branch and a directory."""
    if (
        not value
        or not _VALID_ID.match(value)
        or ".." in value
        or value.endswith((".", ".lock"))
        or value == DEFAULT_BRANCH
    ):
        raise InvalidId(f"'{value}' is not a valid {kind} ID.")
    return value


def match_card(cards: list[Card], query: str) -> Card:
    """Find one card by id or title.

    Tries an exact id, then an exact title, then a case-insensitive title
    prefix, then an id prefix. The first stage with any match decides: one
    match is returned, several raise Ambiguous.
    """
    folded = query.casefold()
    stages = (
        lambda c: c.id == query,
        lambda c: c.title == query,
        lambda c: c.title.casefold().startswith(folded),
        lambda c: c.id.startswith(query),
    )
    for matches_stage in stages:
        found = [c for c in cards if matches_stage(c)]
        if len(found) == 1:
            return found[0]
        if found:
            listing = ", ".join(f"{c.id[:8]} ({c.title})" for c in found)
            raise Ambiguous(f"'{query}' matches more than one card: {listing}", [c.id for c in found])
    raise NotFound("The specified card does not exist.")


def _normalize_content(content: str) -> str:
    """Trim blank lines and trailing space the way a reload from the branch does."""
    return content.strip("\n").rstrip()


class BoardStore:
    """Creates, loads and deletes boards and the lists and cards inside them.

    Every mutation commits the board's full tree to its branch. Operations
    take the board explicitly; nothing here consults the current board
    except delete, which must leave the working tree on a neutral branch.
    """

    def __init__(self, registry: RepositoryRegistry) -> None:
        self.registry = registry
        self.config = registry.config

    def backend(self, board: Board | str) -> VersionControlBackend:
        board_id = board.id if isinstance(board, Board) else board
        return self.registry.backend_for(board_id)

    # --- Boards ---

    def get(self, board_id: str) -> Board | None:
        """Load a board, or None if its branch or record does not exist."""
        backend = self.backend(board_id)
        if not backend.has_branch(board_id):
            return None
        board = load_board(board_id, backend.read_files(board_id))
        if board is not None:
            board.repo_path = backend.location
        return board

    def get_or_raise(self, board_id: str) -> Board:
        board = self.get(board_id)
        if board is None:
            raise NotFound("The specified board does not exist.")
        return board

    def create(self, board_id: str, custom_repo: str | None = None) -> Board:
        """Create a board on a new branch named board_id.

        With custom_repo the board lives in that repository; the override is
        saved before the branch is written and removed again if writing fails.
        """
        validate_id("board", board_id)
        if self.get(board_id) is not None:
            raise DuplicateId("A board with this ID already exists.")

        if custom_repo:
            self.config.set_custom_repo(board_id, custom_repo)
            self.config.save()

        try:
            backend = self.backend(board_id)
            if backend.has_branch(board_id):
                raise DuplicateId(f"A branch named '{board_id}' already exists in {backend.location}.")
            backend.create_branch(board_id)
            board = Board(id=board_id, repo_path=backend.location)
            try:
                backend.write_files(board_id, board_files(board), f"Create board {board_id}")
            except KobanError:
                backend.delete_branch(board_id, force=True)
                raise
        except Exception:
            if custom_repo:
                self.config.drop_custom_repo(board_id)
                self.config.save()
            raise

        logger.info("created board %s in %s", board_id, backend.location)
        return board

    def delete(self, board: Board) -> None:
        """Force-delete a board's branch and its history.

        If the board is current, local modifications are discarded, the
        working tree returns to DEFAULT_BRANCH and the pointer is cleared
        first. Other boards are deleted without touching the working tree.
        """
        backend = self.backend(board)
        if self.config.current_board_id == board.id:
            backend.reset_hard()
            backend.checkout(DEFAULT_BRANCH)
            self.config.current_board_id = None
            self.config.save()
        backend.delete_branch(board.id, force=True)
        self.config.drop_custom_repo(board.id)
        self.config.save()
        logger.info("deleted board %s", board.id)

    def all(self) -> list[Board]:
        """Every board in every known repository, oldest first."""
        custom = self.config.custom_repos
        boards = []
        for location in self.registry.locations():
            backend = self.registry.open(location)
            if location == self.registry.default_location:
                candidates = [b for b in backend.branches() if b != DEFAULT_BRANCH and b not in custom]
            else:
                candidates = [bid for bid in custom if self.registry.resolve(bid) == location]
            for board_id in candidates:
                board = self.get(board_id)
                if board is not None:
                    boards.append(board)
        return sorted(boards, key=lambda b: (b.created_at, b.id))

    def is_published(self, board: Board) -> bool:
        """True if any remote has a copy of the board's branch."""
        backend = self.backend(board)
        return any(backend.remote_has_branch(remote, board.id) for remote in backend.list_remotes())

    def save(self, board: Board, message: str) -> str:
        """Commit the board's full tree and return the commit."""
        return self.backend(board).write_files(board.id, board_files(board), message)

    # --- Lists ---

    def create_list(self, board: Board, list_id: str) -> BoardList:
        validate_id("list", list_id)
        if board.get_list(list_id) is not None:
            raise DuplicateId("A list with this ID already exists.")
        lst = BoardList(id=list_id)
        board.lists.append(lst)
        self.save(board, f"Create list {list_id}")
        return lst

    def get_list(self, board: Board, list_id: str) -> BoardList:
        lst = board.get_list(list_id)
        if lst is None:
            raise NotFound("The specified list does not exist.")
        return lst

    def delete_list(self, board: Board, list_id: str) -> None:
        lst = self.get_list(board, list_id)
        board.lists.remove(lst)
        self.save(board, f"Delete list {list_id}")

    # --- Cards ---

    def cards(self, board: Board) -> list[Card]:
        return board.cards()

    def create_card(self, board: Board, list_id: str, title: str, content: str = "") -> Card:
        lst = self.get_list(board, list_id)
        title = title.strip()
        if not title or "\n" in title:
            raise InvalidId("A card title must be a single non-empty line.")
        card = Card(id=uuid.uuid4().hex, title=title, content=_normalize_content(content))
        lst.cards.append(card)
        self.save(board, f"Create card {title}")
        return card

    def find_card(self, board: Board, query: str) -> Card:
        return match_card(board.cards(), query)

    def update_card(self, board: Board, card: Card, title: str | None = None, content: str | None = None) -> bool:
        """Change a card's title and/or content. Returns whether anything changed."""
        new_title = title.strip() if title is not None else card.title
        new_content = _normalize_content(content) if content is not None else card.content
        if not new_title or "\n" in new_title:
            raise InvalidId("A card title must be a single non-empty line.")
        if (new_title, new_content) == (card.title, card.content):
            return False
        card.title, card.content = new_title, new_content
        self.save(board, f"Update card {new_title}")
        return True

    def delete_card(self, board: Board, query: str) -> Card:
        card = self.find_card(board, query)
        lst = board.list_of(card)
        lst.cards = [c for c in lst.cards if c.id != card.id]
        self.save(board, f"Delete card {card.title}")
        return card
