"""Map board ids to repositories and open each repository once."""

import logging
from pathlib import Path
from typing import Callable

from koban.config import Config
from koban.constants import DEFAULT_BRANCH, storage_path
from koban.git import GitBackend, VersionControlBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Path], VersionControlBackend]


class RepositoryRegistry:
    """Resolves where a board lives and hands out one backend per location.

    Backends are cached by resolved location for the life of the registry.
    The cache is not guarded for concurrent use.
    """

    def __init__(
        self,
        config: Config,
        default_location: str | Path | None = None,
        factory: BackendFactory = GitBackend,
    ) -> None:
        self.config = config
        self.default_location = Path(default_location or storage_path()).expanduser().resolve()
        self.factory = factory
        self._backends: dict[Path, VersionControlBackend] = {}

    def resolve(self, board_id: str) -> Path:
        """Location of the repository holding board_id's branch."""
        custom = self.config.custom_repos.get(board_id)
        if custom:
            return Path(custom).expanduser().resolve()
        return self.default_location

    def locations(self) -> list[Path]:
        """The default location followed by each distinct custom location."""
        result = [self.default_location]
        for custom in self.config.custom_repos.values():
            path = Path(custom).expanduser().resolve()
            if path not in result:
                result.append(path)
        return result

    def open(self, location: str | Path) -> VersionControlBackend:
        """Return the backend for location, initializing it on first use.

        A repository without DEFAULT_BRANCH gets one pointing at an empty
        root commit, so branches can always be started from it.
        """
        location = Path(location).expanduser().resolve()
        backend = self._backends.get(location)
        if backend is not None:
            return backend

        backend = self.factory(location)
        backend.init()
        if not backend.has_branch(DEFAULT_BRANCH):
            logger.info("creating %s branch in %s", DEFAULT_BRANCH, location)
            backend.create_root_commit(DEFAULT_BRANCH)
        self._backends[location] = backend
        return backend

    def backend_for(self, board_id: str) -> VersionControlBackend:
        """Resolve and open the repository for board_id."""
        return self.open(self.resolve(board_id))
