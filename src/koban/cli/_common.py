"""Shared helpers for CLI command handlers."""

import functools
import logging
from dataclasses import dataclass

from koban.cli.output import Printer
from koban.config import Config
from koban.current import CurrentBoardPointer
from koban.errors import KobanError
from koban.models import Board
from koban.registry import RepositoryRegistry
from koban.store import BoardStore
from koban.sync import SyncCoordinator

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Everything a command needs, built once per invocation."""

    config: Config
    registry: RepositoryRegistry
    store: BoardStore
    pointer: CurrentBoardPointer
    coordinator: SyncCoordinator
    printer: Printer

    def board(self, board_id: str | None) -> Board:
        """The named board, or the current one when board_id is None."""
        if board_id is None:
            return self.pointer.current_or_raise()
        return self.store.get_or_raise(board_id)


def open_session(args, printer: Printer | None = None) -> Session:
    config = Config.load()
    registry = RepositoryRegistry(config)
    store = BoardStore(registry)
    return Session(
        config=config,
        registry=registry,
        store=store,
        pointer=CurrentBoardPointer(config, store),
        coordinator=SyncCoordinator(store),
        printer=printer or Printer(color=not getattr(args, "no_color", False)),
    )


def command(func):
    """Give a handler a Session and turn KobanError into exit status 1."""

    @functools.wraps(func)
    def wrapper(args) -> int:
        printer = Printer(color=not getattr(args, "no_color", False))
        try:
            return func(args, open_session(args, printer))
        except KobanError as exc:
            logger.debug("%s failed", func.__name__, exc_info=True)
            printer.error(str(exc))
            return 1

    return wrapper
