"""Shared fixtures: isolated koban home, git identity, stores on both backends."""

import pytest

from koban.config import Config
from koban.current import CurrentBoardPointer
from koban.memory import MemoryBackend
from koban.registry import RepositoryRegistry
from koban.store import BoardStore
from koban.sync import SyncCoordinator


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep config and storage under tmp_path and give git an identity."""
    monkeypatch.setenv("KOBAN_HOME", str(tmp_path / "home"))
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "Koban Test")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "koban@example.com")


@pytest.fixture
def config(tmp_path):
    return Config.load(tmp_path / "home" / "config.yml")


@pytest.fixture
def registry(config, tmp_path):
    """Registry handing out in-memory backends."""
    return RepositoryRegistry(config, default_location=tmp_path / "storage", factory=MemoryBackend)


@pytest.fixture
def store(registry):
    return BoardStore(registry)


@pytest.fixture
def pointer(config, store):
    return CurrentBoardPointer(config, store)


@pytest.fixture
def coordinator(store):
    return SyncCoordinator(store)


@pytest.fixture
def git_registry(config, tmp_path):
    """Registry backed by real repositories under tmp_path."""
    return RepositoryRegistry(config, default_location=tmp_path / "storage")


@pytest.fixture
def git_store(git_registry):
    return BoardStore(git_registry)
