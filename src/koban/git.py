"""Git operations for koban boards.

GitBackend binds one repository location. Porcelain goes through GitPython;
tree writes use git plumbing so a board branch can be committed to without
checking it out.
"""

import logging
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from koban.constants import DEFAULT_BRANCH
from koban.errors import BackendError

logger = logging.getLogger(__name__)

STASH_MESSAGE = "koban: sync guard"


@dataclass
class SyncResult:
    """Exit status and captured output of a pull or push."""

    status: int
    stdout: str = ""
    stderr: str = ""

    def __iter__(self):
        return iter((self.status, self.stdout, self.stderr))

    @property
    def ok(self) -> bool:
        return self.status == 0


class VersionControlBackend(Protocol):
    """The narrow set of git primitives koban relies on.

    Every method except pull and push raises BackendError when git refuses.
    pull and push report failure through SyncResult.status instead, because
    a non-zero exit there is routine.
    """

    location: Path

    def init(self) -> None: ...

    def has_branch(self, name: str) -> bool: ...

    def branches(self) -> list[str]: ...

    def create_root_commit(self, branch: str = DEFAULT_BRANCH) -> str: ...

    def create_branch(self, name: str, start: str = DEFAULT_BRANCH) -> None: ...

    def delete_branch(self, name: str, force: bool = False) -> None: ...

    def active_branch(self) -> str | None: ...

    def head_commit(self) -> str | None: ...

    def checkout(self, ref: str) -> None: ...

    def reset_hard(self) -> None: ...

    def is_dirty(self) -> bool: ...

    def stash_save(self) -> str | None: ...

    def stash_pop(self, stash_id: str) -> None: ...

    def stash_count(self) -> int: ...

    def read_files(self, branch: str) -> dict[str, str]: ...

    def write_files(self, branch: str, files: dict[str, str], message: str) -> str: ...

    def abort_merge(self) -> bool: ...

    def pull(self, remote: str, ref: str) -> SyncResult: ...

    def push(self, remote: str, ref: str) -> SyncResult: ...

    def list_remotes(self) -> list[str]: ...

    def remote_has_branch(self, remote: str, branch: str) -> bool: ...


def is_git_repo(path: str | Path) -> bool:
    """Check if path is itself a git repository."""
    try:
        Repo(path)
        return True
    except (InvalidGitRepositoryError, NoSuchPathError):
        return False


def strip_fatal(text: str) -> str:
    """Drop git's "fatal: " prefixes from diagnostic text."""
    return text.replace("fatal: ", "").strip()


@contextmanager
def _translate_errors(action: str):
    """Re-raise GitPython command failures as BackendError."""
    try:
        yield
    except GitCommandError as exc:
        stderr = exc.stderr if isinstance(exc.stderr, str) else ""
        detail = strip_fatal(stderr.strip().removeprefix("stderr:").strip(" '\n"))
        logger.debug("git %s failed: %s", action, exc)
        raise BackendError(f"git {action} failed: {detail or exc}") from exc


# --- Plumbing ---


def _git(repo_path: Path, args: list[str], content: str | None = None) -> str:
    """Run a git command, feeding content on stdin, and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        input=content.encode("utf-8") if content is not None else None,
        capture_output=True,
    )
    if result.returncode != 0:
        detail = strip_fatal(result.stderr.decode("utf-8"))
        raise BackendError(f"git {args[0]} failed: {detail}")
    return result.stdout.decode("utf-8").strip()


def _hash_object(repo_path: Path, content: str) -> str:
    """Write content to the object store and return the blob hash."""
    return _git(repo_path, ["hash-object", "-w", "--stdin"], content)


def _mktree(repo_path: Path, entries: list[tuple[str, str, str, str]]) -> str:
    """Create a tree object from (mode, type, sha, name) entries."""
    lines = [f"{mode} {typ} {sha}\t{name}" for mode, typ, sha, name in entries]
    return _git(repo_path, ["mktree"], "\n".join(lines) + "\n" if lines else "")


def _build_tree(repo_path: Path, files: dict[str, str]) -> str:
    """Build a (nested) tree from a {path: text} mapping and return its hash."""
    blobs: dict[str, str] = {}
    subdirs: dict[str, dict[str, str]] = {}
    for path, content in files.items():
        head, sep, rest = path.partition("/")
        if sep:
            subdirs.setdefault(head, {})[rest] = content
        else:
            blobs[head] = content

    entries = [("100644", "blob", _hash_object(repo_path, text), name) for name, text in blobs.items()]
    for name, subfiles in subdirs.items():
        entries.append(("040000", "tree", _build_tree(repo_path, subfiles), name))
    return _mktree(repo_path, entries)


class GitBackend:
    """VersionControlBackend for one on-disk repository."""

    def __init__(self, location: str | Path) -> None:
        self.location = Path(location)
        self._repo: Repo | None = None

    def __repr__(self) -> str:
        return f"GitBackend({str(self.location)!r})"

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            try:
                self._repo = Repo(self.location)
            except (InvalidGitRepositoryError, NoSuchPathError) as exc:
                raise BackendError(f"{self.location} is not a git repository") from exc
        return self._repo

    def init(self) -> None:
        """Initialize the repository if the location is not one yet."""
        if is_git_repo(self.location):
            return
        self.location.mkdir(parents=True, exist_ok=True)
        logger.debug("initializing repository at %s", self.location)
        self._repo = Repo.init(self.location)

    # --- Branches ---

    def has_branch(self, name: str) -> bool:
        return name in self.branches()

    def branches(self) -> list[str]:
        return [head.name for head in self.repo.heads]

    def create_root_commit(self, branch: str = DEFAULT_BRANCH) -> str:
        """Create branch pointing at a parentless empty commit.

        An unborn HEAD is pointed at the new branch; an existing HEAD and
        the working tree are left alone.
        """
        with _translate_errors("commit-tree"):
            empty_tree = self.repo.git.hash_object("-t", "tree", "/dev/null")
            commit = self.repo.git.commit_tree(empty_tree, m="init")
            self.repo.git.update_ref(f"refs/heads/{branch}", commit)
            if not self.repo.head.is_valid():
                self.repo.git.symbolic_ref("HEAD", f"refs/heads/{branch}")
        logger.debug("created root commit %s on %s", commit[:7], branch)
        return commit

    def create_branch(self, name: str, start: str = DEFAULT_BRANCH) -> None:
        with _translate_errors("branch"):
            self.repo.git.branch(name, start)

    def delete_branch(self, name: str, force: bool = False) -> None:
        with _translate_errors("branch"):
            self.repo.git.branch("-D" if force else "-d", name)

    # --- Working tree ---

    def active_branch(self) -> str | None:
        """Name of the checked-out branch, or None when HEAD is detached."""
        try:
            return self.repo.active_branch.name
        except TypeError:
            return None

    def head_commit(self) -> str | None:
        if not self.repo.head.is_valid():
            return None
        return self.repo.head.commit.hexsha

    def checkout(self, ref: str) -> None:
        with _translate_errors("checkout"):
            self.repo.git.checkout("-q", ref)

    def reset_hard(self) -> None:
        with _translate_errors("reset"):
            self.repo.git.reset("--hard", "-q")

    def is_dirty(self) -> bool:
        return self.repo.is_dirty(untracked_files=True)

    def stash_save(self) -> str | None:
        """Stash local changes, untracked files included.

        Returns the stash commit, or None if there was nothing to stash.
        """
        if not self.is_dirty():
            return None
        with _translate_errors("stash"):
            self.repo.git.stash("push", "--include-untracked", "-m", STASH_MESSAGE)
            stash_id = self.repo.git.rev_parse("refs/stash")
        logger.debug("stashed local changes as %s", stash_id[:7])
        return stash_id

    def stash_pop(self, stash_id: str) -> None:
        """Pop the stash entry whose commit is stash_id."""
        with _translate_errors("stash"):
            entries = self.repo.git.stash("list", "--format=%H").splitlines()
            if stash_id not in entries:
                raise BackendError(f"stash {stash_id[:7]} not found")
            self.repo.git.stash("pop", "-q", f"stash@{{{entries.index(stash_id)}}}")
        logger.debug("restored stash %s", stash_id[:7])

    def stash_count(self) -> int:
        return len(self.repo.git.stash("list").splitlines())

    # --- Tracked content ---

    def read_files(self, branch: str) -> dict[str, str]:
        """Return {path: text} for every blob on a branch."""
        if not self.has_branch(branch):
            raise BackendError(f"branch {branch} does not exist")
        tree = self.repo.commit(f"refs/heads/{branch}").tree
        return {
            item.path: item.data_stream.read().decode("utf-8")
            for item in tree.traverse()
            if item.type == "blob"
        }

    def write_files(self, branch: str, files: dict[str, str], message: str) -> str:
        """Commit files as the full tree of branch and return the commit.

        A missing branch is started from DEFAULT_BRANCH. No commit is made
        if the tree is unchanged. When branch is checked out, the index and
        working tree are moved to the new commit, refusing to overwrite
        local modifications.
        """
        path = self.location
        tree = _build_tree(path, files)

        ref = f"refs/heads/{branch}"
        parent = self._tip(branch) or self._tip(DEFAULT_BRANCH)
        if parent and _git(path, ["rev-parse", f"{parent}^{{tree}}"]) == tree:
            return parent

        parent_args = ["-p", parent] if parent else []
        commit = _git(path, ["commit-tree", tree, *parent_args, "-m", message])

        old = self._tip(branch)
        if old and self.active_branch() == branch:
            _git(path, ["read-tree", "-m", "-u", old, commit])
        _git(path, ["update-ref", ref, commit, *([old] if old else [])])
        logger.debug("committed %s to %s: %s", commit[:7], branch, message)
        return commit

    def _tip(self, branch: str) -> str | None:
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "-q", f"refs/heads/{branch}"],
            cwd=self.location,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        return result.stdout.decode("utf-8").strip()

    def abort_merge(self) -> bool:
        """Abort a merge left in progress by a failed pull."""
        if not (Path(self.repo.git_dir) / "MERGE_HEAD").exists():
            return False
        with _translate_errors("merge"):
            self.repo.git.merge("--abort")
        logger.debug("aborted merge in %s", self.location)
        return True

    # --- Remotes ---

    def pull(self, remote: str, ref: str) -> SyncResult:
        return self._run_remote("pull", remote, ref, "--no-edit", "--no-rebase")

    def push(self, remote: str, ref: str) -> SyncResult:
        return self._run_remote("push", remote, ref)

    def _run_remote(self, command: str, remote: str, ref: str, *flags: str) -> SyncResult:
        logger.debug("git %s %s %s", command, remote, ref)
        status, out, err = getattr(self.repo.git, command)(
            *flags,
            remote,
            ref,
            with_extended_output=True,
            with_exceptions=False,
        )
        return SyncResult(status, out, err)

    def list_remotes(self) -> list[str]:
        return [remote.name for remote in self.repo.remotes]

    def remote_has_branch(self, remote: str, branch: str) -> bool:
        """Check if refs/remotes/{remote}/{branch} exists."""
        try:
            self.repo.git.rev_parse("--verify", f"refs/remotes/{remote}/{branch}")
            return True
        except GitCommandError:
            return False
