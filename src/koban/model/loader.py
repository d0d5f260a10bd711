"""Load a koban board from the files on its branch."""

import logging
from datetime import datetime, timezone

from koban.constants import BOARD_FILE, LIST_INDEX, LISTS_DIR
from koban.models import Board, BoardList, Card
from koban.parser import parse_document

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value) -> datetime:
    """Read a created_at value written as ISO text (YAML may pre-parse it)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return _EPOCH
    else:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _ordered(declared, present: list[str]) -> list[str]:
    """Declared order first, then anything present but undeclared.

    Declared ids with no files behind them are dropped.
    """
    declared = [str(x) for x in declared] if isinstance(declared, list) else []
    result = [x for x in declared if x in present]
    result.extend(sorted(x for x in present if x not in result))
    return result


def _load_card(card_id: str, text: str) -> Card:
    title, body, meta = parse_document(text)
    return Card(
        id=str(meta.get("id", card_id)),
        title=title,
        content=body,
        created_at=parse_timestamp(meta.get("created_at")),
    )


def _load_list(list_id: str, files: dict[str, str]) -> BoardList:
    """Build a BoardList from the files under lists/<list_id>/."""
    prefix = f"{LISTS_DIR}/{list_id}/"
    index_text = files.get(prefix + LIST_INDEX, "")
    _, _, meta = parse_document(index_text)

    card_files = {
        path[len(prefix) : -len(".md")]: text
        for path, text in files.items()
        if path.startswith(prefix) and path.endswith(".md") and path != prefix + LIST_INDEX
    }
    cards = [_load_card(cid, card_files[cid]) for cid in _ordered(meta.get("cards"), list(card_files))]

    return BoardList(
        id=list_id,
        created_at=parse_timestamp(meta.get("created_at")),
        cards=cards,
    )


def load_board(board_id: str, files: dict[str, str]) -> Board | None:
    """Deserialize a board branch's files. None if there is no board record."""
    if BOARD_FILE not in files:
        return None
    _, _, meta = parse_document(files[BOARD_FILE])

    list_ids = {
        path.split("/")[1]
        for path in files
        if path.startswith(f"{LISTS_DIR}/") and path.count("/") == 2
    }
    lists = [_load_list(lid, files) for lid in _ordered(meta.get("lists"), sorted(list_ids))]

    stored_id = meta.get("id")
    if stored_id is not None and str(stored_id) != board_id:
        logger.warning("board record on branch %s names id %s", board_id, stored_id)

    return Board(
        id=board_id,
        created_at=parse_timestamp(meta.get("created_at")),
        lists=lists,
    )
