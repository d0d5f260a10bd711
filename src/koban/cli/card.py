"""Handlers for 'koban card' commands."""

import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from koban.cli._common import command
from koban.constants import Settings
from koban.parser import parse_document, serialize_document


def find_editor() -> str | None:
    """$KOBAN_EDITOR, falling back to $EDITOR."""
    return Settings().editor.strip() or None


@command
def card_board(args, session) -> int:
    """Show the board as a table of lists and cards."""
    board = session.board(args.board)
    if not board.lists:
        session.printer.error("No lists were found.")
        return 1
    session.printer.board(board)
    return 0


@command
def card_show(args, session) -> int:
    board = session.board(args.board)
    card = session.store.find_card(board, args.query)
    session.printer.card(card)
    return 0


@command
def card_add(args, session) -> int:
    board = session.board(args.board)
    session.store.create_card(board, args.list, args.title, args.body)
    session.printer.ok("Card created.")
    return 0


@command
def card_delete(args, session) -> int:
    board = session.board(args.board)
    session.store.delete_card(board, args.query)
    session.printer.ok("Card deleted.")
    return 0


@command
def card_edit(args, session) -> int:
    """Open the card in an editor and save whatever comes back."""
    board = session.board(args.board)
    card = session.store.find_card(board, args.query)

    editor = find_editor()
    if editor is None:
        session.printer.error("To edit a card set $EDITOR or $KOBAN_EDITOR.")
        return 1

    fd, path = tempfile.mkstemp(prefix="koban_", suffix=".md")
    os.close(fd)
    try:
        Path(path).write_text(serialize_document(card.title, card.content), encoding="utf-8")
        try:
            returncode = subprocess.run([*shlex.split(editor), path]).returncode
        except OSError:
            returncode = -1
        if returncode != 0:
            session.printer.error(f"Could not run `{editor} {path}`.")
            return 1
        title, body, _ = parse_document(Path(path).read_text(encoding="utf-8"))
    finally:
        os.unlink(path)

    if session.store.update_card(board, card, title=title or card.title, content=body):
        session.printer.ok("Card updated.")
        return 0
    session.printer.error("The editor exited without changes.")
    return 1
