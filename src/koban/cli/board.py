"""Handlers for 'koban board' commands."""

from rich.text import Text

from koban.cli._common import command


@command
def board_list(args, session) -> int:
    """List boards, marking the current one."""
    boards = session.store.all()
    if not boards:
        session.printer.error("No boards were found.")
        return 1

    width = max(len(b.id) for b in boards)
    for board in boards:
        marker = "* " if session.pointer.is_current(board) else "  "
        visibility = "(shared)" if session.store.is_published(board) else "(private)"
        session.printer.line(Text(marker + board.id.ljust(width + 2)) + Text(visibility, style="dim"))
    return 0


@command
def board_add(args, session) -> int:
    """Create a board; the very first board is selected automatically."""
    board = session.store.create(args.id, custom_repo=args.repo)
    if len(session.store.all()) == 1:
        session.pointer.select(board.id)
        session.printer.ok("Board created and selected.")
    else:
        session.printer.ok("Board created.")
    return 0


@command
def board_delete(args, session) -> int:
    board = session.board(args.id)
    session.store.delete(board)
    session.printer.ok("Board deleted.")
    return 0


@command
def board_switch(args, session) -> int:
    """Make a board current, optionally checking its branch out."""
    board = session.store.get_or_raise(args.id)
    if args.checkout:
        session.pointer.checkout(board)
    else:
        session.pointer.select(board.id)
    session.printer.ok(f"Board switched to {board.id}.")
    return 0
