"""Serialize a koban board into the files stored on its branch."""

from koban.constants import BOARD_FILE, LIST_INDEX, LISTS_DIR
from koban.models import Board, BoardList, Card
from koban.parser import serialize_document


def _timestamp(card_or_list) -> str:
    return card_or_list.created_at.isoformat()


def card_text(card: Card) -> str:
    return serialize_document(card.title, card.content, {"id": card.id, "created_at": _timestamp(card)})


def _list_files(lst: BoardList) -> dict[str, str]:
    prefix = f"{LISTS_DIR}/{lst.id}/"
    meta = {"id": lst.id, "created_at": _timestamp(lst), "cards": lst.card_ids()}
    files = {prefix + LIST_INDEX: serialize_document(lst.id, "", meta)}
    for card in lst.cards:
        files[f"{prefix}{card.id}.md"] = card_text(card)
    return files


def board_files(board: Board) -> dict[str, str]:
    """Return {path: text} for the complete tree of a board branch."""
    meta = {"id": board.id, "created_at": _timestamp(board), "lists": board.list_ids()}
    files = {BOARD_FILE: serialize_document(board.id, "", meta)}
    for lst in board.lists:
        files.update(_list_files(lst))
    return files
