"""Board serialization to and from branch trees."""

from koban.model.loader import load_board
from koban.model.writer import board_files

__all__ = [
    "board_files",
    "load_board",
]
