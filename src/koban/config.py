"""Persisted koban configuration: current board and custom repositories."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from koban.constants import config_path
from koban.errors import ConfigError

logger = logging.getLogger(__name__)


class ConfigRecord(BaseModel):
    """The on-disk shape of config.yml. Unknown keys are ignored."""

    current_board_id: str | None = Field(default=None, description="Board commands target by default")
    custom_repos: dict[str, str] = Field(
        default_factory=dict,
        description="Board id to the repository holding its branch",
    )

    @field_validator("current_board_id", mode="before")
    @classmethod
    def coerce_board_id(cls, v: Any) -> Any:
        """YAML reads ids such as 2024 as numbers."""
        return str(v) if isinstance(v, (int, float)) else v

    @field_validator("custom_repos", mode="before")
    @classmethod
    def coerce_custom_repos(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(k): str(loc) for k, loc in v.items()}
        return v


class Config:
    """The single configuration record for a koban process.

    Built once by the entry point with Config.load() and handed to the
    store, pointer and registry. save() writes only when the in-memory
    record differs from what was last loaded or saved.
    """

    def __init__(self, path: str | Path, record: ConfigRecord | None = None) -> None:
        self.path = Path(path)
        self.record = record or ConfigRecord()
        self._saved = self.record.model_dump()

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Config":
        """Read config from path (default: $KOBAN_HOME/config.yml).

        Raises ConfigError if the file is not YAML or not a config mapping.
        """
        path = Path(path) if path is not None else config_path()
        if not path.exists():
            return cls(path)

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            record = ConfigRecord.model_validate(data or {})
        except (yaml.YAMLError, ValidationError) as exc:
            raise ConfigError(f"Could not read the config file {path}: {exc}") from exc
        logger.debug("loaded config from %s", path)
        return cls(path, record)

    @property
    def current_board_id(self) -> str | None:
        return self.record.current_board_id

    @current_board_id.setter
    def current_board_id(self, board_id: str | None) -> None:
        self.record.current_board_id = board_id

    @property
    def custom_repos(self) -> dict[str, str]:
        return self.record.custom_repos

    def set_custom_repo(self, board_id: str, location: str | Path) -> None:
        self.record.custom_repos[board_id] = str(Path(location).expanduser().resolve())

    def drop_custom_repo(self, board_id: str) -> None:
        self.record.custom_repos.pop(board_id, None)

    @property
    def changed(self) -> bool:
        """True if the record differs from the last saved copy."""
        return self.record.model_dump() != self._saved

    def save(self) -> bool:
        """Write the record if it changed. Returns whether a write happened."""
        if not self.changed:
            return False
        self._write()
        self._saved = self.record.model_dump()
        return True

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(self.record.model_dump(), default_flow_style=False, sort_keys=True)
        self.path.write_text(text, encoding="utf-8")
        logger.debug("saved config to %s", self.path)
