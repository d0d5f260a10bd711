"""CLI argument parser and dispatch for koban."""

import argparse

from koban import __version__
from koban.cli.board import board_add, board_delete, board_list, board_switch
from koban.cli.card import card_add, card_board, card_delete, card_edit, card_show
from koban.cli.lists import list_add, list_delete, list_show
from koban.cli.sync import pull, push, sync
from koban.constants import DEFAULT_REMOTE


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    # SUPPRESS: flags given before the noun survive the subparser defaults
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--no-color", action="store_true", default=argparse.SUPPRESS, help="Disable colorized output")
    common.add_argument("--debug", action="store_true", default=argparse.SUPPRESS, help="Log git commands and tracebacks")

    scoped = argparse.ArgumentParser(add_help=False, parents=[common])
    scoped.add_argument("-b", "--board", help="Board ID (default: the current board)")

    parser = argparse.ArgumentParser(
        prog="koban",
        description="Task boards stored as git branches",
        parents=[common],
    )
    parser.add_argument("--version", action="version", version=f"koban {__version__}")

    nouns = parser.add_subparsers(dest="noun")

    # --- board ---
    board_p = nouns.add_parser("board", aliases=["boards"], help="Display and manage boards", parents=[common])
    board_verbs = board_p.add_subparsers(dest="verb")

    board_list_p = board_verbs.add_parser("list", help="List boards", parents=[common])
    board_list_p.set_defaults(func=board_list)

    board_add_p = board_verbs.add_parser("add", help="Create a board", parents=[common])
    board_add_p.add_argument("id", help="Board ID")
    board_add_p.add_argument("-r", "--repo", help="Store the board in an external repository")
    board_add_p.set_defaults(func=board_add)

    board_delete_p = board_verbs.add_parser("delete", help="Delete a board", parents=[common])
    board_delete_p.add_argument("id", nargs="?", help="Board ID (default: the current board)")
    board_delete_p.set_defaults(func=board_delete)

    board_switch_p = board_verbs.add_parser("switch", aliases=["select"], help="Switch boards", parents=[common])
    board_switch_p.add_argument("id", help="Board ID")
    board_switch_p.add_argument("--checkout", action="store_true", help="Also check the branch out")
    board_switch_p.set_defaults(func=board_switch)

    # board with no verb = list
    board_p.set_defaults(func=board_list)

    # --- list ---
    list_p = nouns.add_parser("list", aliases=["lists"], help="Display and manage lists", parents=[scoped])
    list_verbs = list_p.add_subparsers(dest="verb")

    list_show_p = list_verbs.add_parser("show", help="Show list IDs", parents=[scoped])
    list_show_p.set_defaults(func=list_show)

    list_add_p = list_verbs.add_parser("add", help="Create a list", parents=[scoped])
    list_add_p.add_argument("id", help="List ID")
    list_add_p.set_defaults(func=list_add)

    list_delete_p = list_verbs.add_parser("delete", help="Delete a list", parents=[scoped])
    list_delete_p.add_argument("id", help="List ID")
    list_delete_p.set_defaults(func=list_delete)

    # list with no verb = show
    list_p.set_defaults(func=list_show)

    # --- card ---
    card_p = nouns.add_parser("card", aliases=["cards"], help="Display and manage cards", parents=[scoped])
    card_verbs = card_p.add_subparsers(dest="verb")

    card_show_p = card_verbs.add_parser("show", help="Show a card", parents=[scoped])
    card_show_p.add_argument("query", help="Card ID or title")
    card_show_p.set_defaults(func=card_show)

    card_add_p = card_verbs.add_parser("add", help="Create a card", parents=[scoped])
    card_add_p.add_argument("title", help="Card title")
    card_add_p.add_argument("-l", "--list", required=True, help="Target list ID")
    card_add_p.add_argument("--body", default="", help="Card content")
    card_add_p.set_defaults(func=card_add)

    card_delete_p = card_verbs.add_parser("delete", help="Delete a card", parents=[scoped])
    card_delete_p.add_argument("query", help="Card ID or title")
    card_delete_p.set_defaults(func=card_delete)

    card_edit_p = card_verbs.add_parser("edit", help="Edit a card in $EDITOR", parents=[scoped])
    card_edit_p.add_argument("query", help="Card ID or title")
    card_edit_p.set_defaults(func=card_edit)

    # card with no verb = board table
    card_p.set_defaults(func=card_board)

    # --- pull / push / sync ---
    for name, func, text in (
        ("pull", pull, "Pull the board from a remote"),
        ("push", push, "Push the board to a remote"),
        ("sync", sync, "Pull, then push the board"),
    ):
        p = nouns.add_parser(name, help=text, parents=[common])
        p.add_argument("id", nargs="?", help="Board ID (default: the current board)")
        p.add_argument("-r", "--remote", default=DEFAULT_REMOTE, help=f"Remote name (default: {DEFAULT_REMOTE})")
        p.set_defaults(func=func)

    return parser
