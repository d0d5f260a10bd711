"""Pull, push and sync a board's branch with a remote.

Each operation runs inside a guard: local changes are stashed, the board's
branch is checked out, the git command runs, then the previous branch and
the stash are restored. Restoration happens on every exit path, so a failed
pull or push leaves the repository as it was found.
"""

import enum
import logging
import re
from contextlib import contextmanager

from koban.constants import DEFAULT_REMOTE
from koban.errors import RemoteMisconfigured, UnexpectedBackendError
from koban.git import SyncResult, VersionControlBackend, strip_fatal
from koban.models import Board
from koban.store import BoardStore

logger = logging.getLogger(__name__)

UP_TO_DATE_MARKERS = ("Already up to date", "Already up-to-date", "Everything up-to-date")
MISCONFIGURED_REMOTE = re.compile(r"does not appear to be a git repository|not a valid remote", re.IGNORECASE)


class SyncState(enum.Enum):
    IDLE = "idle"
    STASH_GUARDED = "stash-guarded"
    BRANCH_GUARDED = "branch-guarded"
    BACKEND_CALL_RUNNING = "backend-call-running"
    BRANCH_RESTORED = "branch-restored"
    STASH_RESTORED = "stash-restored"


class Outcome(enum.Enum):
    UP_TO_DATE = "up-to-date"
    UPDATED = "updated"
    REMOTE_MISCONFIGURED = "remote-misconfigured"
    UNEXPECTED = "unexpected"


def classify(result: SyncResult) -> Outcome:
    """Interpret a pull/push result. Push reports its status on stderr."""
    if result.ok:
        output = result.stdout + result.stderr
        if any(marker in output for marker in UP_TO_DATE_MARKERS):
            return Outcome.UP_TO_DATE
        return Outcome.UPDATED
    if MISCONFIGURED_REMOTE.search(result.stderr):
        return Outcome.REMOTE_MISCONFIGURED
    return Outcome.UNEXPECTED


def check(result: SyncResult, remote: str, backend: VersionControlBackend) -> Outcome:
    """Classify result, raising for the failure outcomes.

    RemoteMisconfigured carries the remotes that are configured; the
    unexpected case carries git's own diagnostic without "fatal: ".
    """
    outcome = classify(result)
    if outcome is Outcome.REMOTE_MISCONFIGURED:
        raise RemoteMisconfigured(remote, backend.list_remotes())
    if outcome is Outcome.UNEXPECTED:
        raise UnexpectedBackendError(strip_fatal(result.stderr) or strip_fatal(result.stdout))
    return outcome


class SyncCoordinator:
    """Runs guarded pull/push/sync for boards resolved by a BoardStore.

    trace holds the guard states the last operation passed through.
    Non-zero git exits are returned, never raised.
    """

    def __init__(self, store: BoardStore) -> None:
        self.store = store
        self.trace: list[SyncState] = [SyncState.IDLE]

    def _enter(self, state: SyncState) -> None:
        self.trace.append(state)
        logger.debug("sync: %s", state.value)

    @contextmanager
    def guard(self, backend: VersionControlBackend, branch: str):
        """Stash local changes and check out branch; undo both on exit."""
        self.trace = [SyncState.IDLE]
        stash_id = backend.stash_save()
        self._enter(SyncState.STASH_GUARDED)
        try:
            previous = backend.active_branch() or backend.head_commit()
            switched = previous != branch
            if switched:
                backend.checkout(branch)
            self._enter(SyncState.BRANCH_GUARDED)
            try:
                yield
            finally:
                if switched:
                    backend.checkout(previous)
                self._enter(SyncState.BRANCH_RESTORED)
        finally:
            if stash_id is not None:
                backend.stash_pop(stash_id)
            self._enter(SyncState.STASH_RESTORED)
            self._enter(SyncState.IDLE)

    def _run(self, command: str, board: Board, remote: str) -> SyncResult:
        backend = self.store.backend(board)
        with self.guard(backend, board.id):
            self._enter(SyncState.BACKEND_CALL_RUNNING)
            try:
                result = getattr(backend, command)(remote, board.id)
            finally:
                # a conflicted pull must not keep the guard from restoring
                if command == "pull":
                    backend.abort_merge()
        logger.info("%s %s %s: exit %d", command, remote, board.id, result.status)
        return result

    def pull(self, board: Board, remote: str = DEFAULT_REMOTE) -> SyncResult:
        return self._run("pull", board, remote)

    def push(self, board: Board, remote: str = DEFAULT_REMOTE) -> SyncResult:
        return self._run("push", board, remote)

    def sync(self, board: Board, remote: str = DEFAULT_REMOTE) -> SyncResult:
        """Pull, then push only if the pull succeeded."""
        result = self.pull(board, remote)
        if not result.ok:
            return result
        return self.push(board, remote)
