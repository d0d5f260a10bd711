"""Handlers for 'koban pull', 'koban push' and 'koban sync'."""

from koban.cli._common import command
from koban.errors import RemoteMisconfigured, UnexpectedBackendError
from koban.sync import Outcome, check

MESSAGES = {
    "pull": {
        Outcome.UP_TO_DATE: "Board already up-to-date.",
        Outcome.UPDATED: "Board updated successfully.",
    },
    "push": {
        Outcome.UP_TO_DATE: "Board in central server already up-to-date.",
        Outcome.UPDATED: "Board in central server updated successfully.",
    },
}
MESSAGES["sync"] = MESSAGES["push"]


def _report(session, verb: str, board, remote: str) -> int:
    operation = getattr(session.coordinator, verb)
    result = operation(board, remote)
    printer = session.printer
    try:
        outcome = check(result, remote, session.store.backend(board))
    except RemoteMisconfigured as exc:
        printer.error(f'You received the following error from git: "{remote}" does not appear to be a git repository.')
        printer.error(f'This may be because you have not set the "{remote}" remote on your git repository.')
        if exc.remotes:
            printer.error(f"Koban found the following remotes: {'; '.join(exc.remotes)}")
        else:
            printer.error("Koban can't find any existing remotes.")
        return 1
    except UnexpectedBackendError as exc:
        printer.error("The following unexpected error was received from git:")
        printer.error(exc.diagnostic)
        return 1
    printer.ok(MESSAGES[verb][outcome])
    return 0


@command
def pull(args, session) -> int:
    """Pull the board's branch from a remote."""
    return _report(session, "pull", session.board(args.id), args.remote)


@command
def push(args, session) -> int:
    """Push the board's branch to a remote."""
    return _report(session, "push", session.board(args.id), args.remote)


@command
def sync(args, session) -> int:
    """Pull, then push if the pull succeeded."""
    return _report(session, "sync", session.board(args.id), args.remote)
