"""The persisted pointer to the current board."""

import logging

from koban.config import Config
from koban.errors import NoBoardSelected
from koban.models import Board
from koban.store import BoardStore

logger = logging.getLogger(__name__)


class CurrentBoardPointer:
    """Tracks which board commands target when no id is given.

    The pointer only holds an id. It is re-resolved through the store on
    every read, so a board deleted behind koban's back resolves to None.
    """

    def __init__(self, config: Config, store: BoardStore) -> None:
        self.config = config
        self.store = store

    @property
    def board_id(self) -> str | None:
        return self.config.current_board_id

    def select(self, board_id: str | None) -> bool:
        """Point at board_id. Returns whether the config was written."""
        self.config.current_board_id = board_id
        written = self.config.save()
        if written:
            logger.debug("current board is now %s", board_id)
        return written

    def unselect(self) -> bool:
        return self.select(None)

    def current(self) -> Board | None:
        if self.board_id is None:
            return None
        return self.store.get(self.board_id)

    def current_or_raise(self) -> Board:
        board = self.current()
        if board is None:
            raise NoBoardSelected("No board has been checked out yet.")
        return board

    def is_current(self, board: Board) -> bool:
        return board.id == self.board_id

    def checkout(self, board: Board) -> None:
        """Select board and check its branch out in its repository."""
        self.select(board.id)
        self.store.backend(board).checkout(board.id)
