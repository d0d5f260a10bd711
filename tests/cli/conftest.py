"""Shared fixtures for CLI tests."""

from argparse import Namespace

import pytest

from koban.config import Config
from koban.registry import RepositoryRegistry
from koban.store import BoardStore


def _make_args(**kwargs) -> Namespace:
    defaults = {"no_color": True, "debug": False, "board": None}
    return Namespace(**{**defaults, **kwargs})


@pytest.fixture
def make_args():
    """Build a Namespace as the parser would, colour off."""
    return _make_args


@pytest.fixture
def open_store():
    """Open a fresh store the way a new koban process would."""

    def _open():
        config = Config.load()
        return config, BoardStore(RepositoryRegistry(config))

    return _open


@pytest.fixture
def foo_board(make_args):
    """A current board "foo" with lists todo and done, created via the CLI."""
    from koban.cli.board import board_add
    from koban.cli.lists import list_add

    assert board_add(make_args(id="foo", repo=None)) == 0
    assert list_add(make_args(id="todo")) == 0
    assert list_add(make_args(id="done")) == 0
    return "foo"
