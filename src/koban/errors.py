"""Exceptions raised by koban's storage and sync layers."""


class KobanError(Exception):
    """Base class for errors shown to the user as a short message."""


class DuplicateId(KobanError):
    """A board or list with this id already exists."""


class NotFound(KobanError):
    """A board, list or card id does not resolve."""


class Ambiguous(KobanError):
    """A card query matched more than one card."""

    def __init__(self, message: str, candidates: list[str] | None = None) -> None:
        super().__init__(message)
        self.candidates = candidates or []


class NoBoardSelected(KobanError):
    """No current board is set, or it no longer exists."""


class BackendError(KobanError):
    """Git refused a storage primitive (branch, checkout, stash, write)."""


class RemoteMisconfigured(KobanError):
    """The named remote is not configured for the board's repository."""

    def __init__(self, remote: str, remotes: list[str] | None = None) -> None:
        super().__init__(f'"{remote}" does not appear to be a git repository')
        self.remote = remote
        self.remotes = remotes or []


class UnexpectedBackendError(KobanError):
    """Git exited non-zero for a reason koban does not interpret."""

    def __init__(self, diagnostic: str) -> None:
        super().__init__(diagnostic)
        self.diagnostic = diagnostic


class InvalidId(KobanError):
    """An id cannot be used as a branch or directory name."""


class ConfigError(KobanError):
    """config.yml exists but cannot be read as a koban config."""
