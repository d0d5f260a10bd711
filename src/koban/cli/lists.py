"""Handlers for 'koban list' commands."""

from koban.cli._common import command


@command
def list_show(args, session) -> int:
    board = session.board(args.board)
    if not board.lists:
        session.printer.error("No lists were found.")
        return 1
    for list_id in board.list_ids():
        session.printer.line(list_id)
    return 0


@command
def list_add(args, session) -> int:
    board = session.board(args.board)
    session.store.create_list(board, args.id)
    session.printer.ok("List created.")
    return 0


@command
def list_delete(args, session) -> int:
    board = session.board(args.board)
    session.store.delete_list(board, args.id)
    session.printer.ok("List deleted.")
    return 0
