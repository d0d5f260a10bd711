"""Paths and names shared across koban."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_BRANCH = "master"
DEFAULT_REMOTE = "origin"

BOARD_FILE = "board.md"
LISTS_DIR = "lists"
LIST_INDEX = "index.md"


class Settings(BaseSettings):
    """Environment settings, read from KOBAN_* variables."""

    home: Path = Field(
        default_factory=lambda: Path.home() / ".koban",
        description="Directory holding koban's config and default board storage",
    )
    editor: str = Field(
        default_factory=lambda: os.environ.get("EDITOR", ""),
        description="Command used to edit cards ($KOBAN_EDITOR, then $EDITOR)",
    )

    model_config = {
        "env_prefix": "KOBAN_",
        "extra": "ignore",
    }


def koban_home() -> Path:
    """Directory holding koban's config and default board storage ($KOBAN_HOME)."""
    return Settings().home.expanduser()


def config_path() -> Path:
    return koban_home() / "config.yml"


def storage_path() -> Path:
    """Default repository where boards live unless a custom repo is given."""
    return koban_home() / "storage"
