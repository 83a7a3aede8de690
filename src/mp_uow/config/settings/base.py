"""Config settings – Settings base class and UnitOfWorkSettings."""
from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

from mp_uow.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings."""

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class UnitOfWorkSettings(Settings):
    """Engine and session options for a unit of work, read from ``UOW_*``.

    Only ``database_url`` is required; ``UOW_DATABASE_URL=sqlite:///app.db``
    is enough for local use.
    """

    _prefix: ClassVar[str] = "UOW"

    database_url: str
    echo: bool = False
    expire_on_commit: bool = False
    autoflush: bool = True
    pool_pre_ping: bool = True
    log_level: str = "INFO"

    def _validate(self) -> None:
        if not self.database_url or not self.database_url.strip():
            raise InvalidSettingValueError("database_url", self.database_url, "must not be empty")
        if "://" not in self.database_url:
            raise InvalidSettingValueError("database_url", self.database_url, "expected '<dialect>://...'")
        level = logging.getLevelName(self.log_level.upper())
        if not isinstance(level, int):
            raise InvalidSettingValueError("log_level", self.log_level, "unknown logging level")
        self.log_level = self.log_level.upper()

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


__all__ = ["Settings", "UnitOfWorkSettings"]
