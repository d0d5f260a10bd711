"""In-memory VersionControlBackend for tests and dry runs.

Models just enough of git for koban: branches holding file snapshots, a
checked-out ref with possibly-uncommitted changes, a stash, and remotes
holding their own branch snapshots. Every call is recorded in ``calls``.
"""

import hashlib
from dataclasses import dataclass, field
from pathlib import Path

from koban.constants import DEFAULT_BRANCH
from koban.errors import BackendError
from koban.git import SyncResult


def _digest(files: dict[str, str], message: str, parent: str | None) -> str:
    h = hashlib.sha1()
    h.update((parent or "").encode("utf-8"))
    h.update(message.encode("utf-8"))
    for path in sorted(files):
        h.update(path.encode("utf-8"))
        h.update(files[path].encode("utf-8"))
    return h.hexdigest()


@dataclass
class MemoryCommit:
    sha: str
    files: dict[str, str]
    parent: str | None = None


@dataclass
class MemoryRemote:
    branches: dict[str, MemoryCommit] = field(default_factory=dict)


class MemoryBackend:
    """A fake repository living entirely in process memory."""

    def __init__(self, location: str | Path = "memory") -> None:
        self.location = Path(location)
        self.initialized = False
        self.heads: dict[str, MemoryCommit] = {}
        self.objects: dict[str, MemoryCommit] = {}
        self.head: str | None = None
        self.detached: MemoryCommit | None = None
        self.local_changes: dict[str, str] = {}
        self.stashes: list[tuple[str, dict[str, str]]] = []
        self.remotes: dict[str, MemoryRemote] = {}
        self.calls: list[str] = []
        self.fail_next: dict[str, SyncResult] = {}
        self.raise_next: dict[str, Exception] = {}
        self.merge_in_progress = False

    def _record(self, name: str) -> None:
        self.calls.append(name)

    def call_count(self, name: str) -> int:
        return self.calls.count(name)

    def init(self) -> None:
        self._record("init")
        self.initialized = True

    # --- Branches ---

    def has_branch(self, name: str) -> bool:
        return name in self.heads

    def branches(self) -> list[str]:
        return list(self.heads)

    def create_root_commit(self, branch: str = DEFAULT_BRANCH) -> str:
        self._record("create_root_commit")
        commit = MemoryCommit(_digest({}, "init", None), {})
        self.objects[commit.sha] = commit
        self.heads[branch] = commit
        if self.head is None and self.detached is None:
            self.head = branch
        return commit.sha

    def create_branch(self, name: str, start: str = DEFAULT_BRANCH) -> None:
        if name in self.heads:
            raise BackendError(f"a branch named '{name}' already exists")
        if start not in self.heads:
            raise BackendError(f"not a valid object name: '{start}'")
        self.heads[name] = self.heads[start]

    def delete_branch(self, name: str, force: bool = False) -> None:
        self._record("delete_branch")
        if name not in self.heads:
            raise BackendError(f"branch '{name}' not found")
        if name == self.head:
            raise BackendError(f"cannot delete branch '{name}' checked out")
        del self.heads[name]

    # --- Working tree ---

    def active_branch(self) -> str | None:
        return None if self.detached is not None else self.head

    def head_commit(self) -> str | None:
        if self.detached is not None:
            return self.detached.sha
        commit = self.heads.get(self.head) if self.head else None
        return commit.sha if commit else None

    def checkout(self, ref: str) -> None:
        """Check out a branch name or a commit sha (detaching HEAD)."""
        self._record("checkout")
        if self.merge_in_progress:
            raise BackendError("you need to resolve your current index first")
        if self.local_changes:
            raise BackendError("your local changes would be overwritten by checkout")
        if ref in self.heads:
            self.head, self.detached = ref, None
            return
        if ref in self.objects:
            self.detached = self.objects[ref]
            return
        raise BackendError(f"pathspec '{ref}' did not match any file(s) known to git")

    def reset_hard(self) -> None:
        self._record("reset_hard")
        self.local_changes = {}

    def is_dirty(self) -> bool:
        return bool(self.local_changes)

    def edit(self, path: str, text: str) -> None:
        """Simulate an uncommitted working-tree modification."""
        self.local_changes[path] = text

    def stash_save(self) -> str | None:
        self._record("stash_save")
        if not self.local_changes:
            return None
        stash_id = _digest(self.local_changes, "stash", str(len(self.stashes)))
        self.stashes.insert(0, (stash_id, self.local_changes))
        self.local_changes = {}
        return stash_id

    def stash_pop(self, stash_id: str) -> None:
        self._record("stash_pop")
        for i, (sid, changes) in enumerate(self.stashes):
            if sid == stash_id:
                del self.stashes[i]
                self.local_changes = {**changes, **self.local_changes}
                return
        raise BackendError(f"stash {stash_id[:7]} not found")

    def stash_count(self) -> int:
        return len(self.stashes)

    # --- Tracked content ---

    def read_files(self, branch: str) -> dict[str, str]:
        if branch not in self.heads:
            raise BackendError(f"branch {branch} does not exist")
        return dict(self.heads[branch].files)

    def write_files(self, branch: str, files: dict[str, str], message: str) -> str:
        self._record("write_files")
        parent = self.heads.get(branch) or self.heads.get(DEFAULT_BRANCH)
        if parent is not None and parent.files == files:
            if branch not in self.heads:
                self.heads[branch] = parent
            return parent.sha
        parent_sha = parent.sha if parent else None
        commit = MemoryCommit(_digest(files, message, parent_sha), dict(files), parent_sha)
        self.objects[commit.sha] = commit
        self.heads[branch] = commit
        return commit.sha

    def abort_merge(self) -> bool:
        self._record("abort_merge")
        aborted, self.merge_in_progress = self.merge_in_progress, False
        return aborted

    # --- Remotes ---

    def add_remote(self, name: str) -> MemoryRemote:
        self.remotes[name] = MemoryRemote()
        return self.remotes[name]

    def _remote_or_error(self, remote: str) -> tuple[MemoryRemote | None, SyncResult | None]:
        if remote not in self.remotes:
            return None, SyncResult(
                128,
                "",
                f"fatal: '{remote}' does not appear to be a git repository\n"
                "fatal: Could not read from remote repository.\n",
            )
        return self.remotes[remote], None

    def pull(self, remote: str, ref: str) -> SyncResult:
        """Fast-forward ref from remote. A canned result mentioning CONFLICT
        leaves a merge in progress, as a conflicted git pull would.
        """
        self._record("pull")
        if "pull" in self.raise_next:
            raise self.raise_next.pop("pull")
        if "pull" in self.fail_next:
            result = self.fail_next.pop("pull")
            self.merge_in_progress = "CONFLICT" in result.stdout + result.stderr
            return result
        target, error = self._remote_or_error(remote)
        if error:
            return error
        theirs = target.branches.get(ref)
        if theirs is None:
            return SyncResult(1, "", f"fatal: couldn't find remote ref {ref}\n")
        if self.heads.get(ref) is theirs:
            return SyncResult(0, "Already up to date.\n", "")
        self.heads[ref] = theirs
        return SyncResult(0, "Fast-forward\n", "")

    def push(self, remote: str, ref: str) -> SyncResult:
        self._record("push")
        if "push" in self.raise_next:
            raise self.raise_next.pop("push")
        if "push" in self.fail_next:
            return self.fail_next.pop("push")
        target, error = self._remote_or_error(remote)
        if error:
            return error
        ours = self.heads.get(ref)
        if ours is None:
            return SyncResult(1, "", f"error: src refspec {ref} does not match any\n")
        if target.branches.get(ref) is ours:
            return SyncResult(0, "", "Everything up-to-date\n")
        target.branches[ref] = ours
        return SyncResult(0, "", f"To {remote}\n   {ref} -> {ref}\n")

    def list_remotes(self) -> list[str]:
        return list(self.remotes)

    def remote_has_branch(self, remote: str, branch: str) -> bool:
        return remote in self.remotes and branch in self.remotes[remote].branches
