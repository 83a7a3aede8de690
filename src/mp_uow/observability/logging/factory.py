"""Observability – JsonLoggerFactory."""
from __future__ import annotations

import logging
from typing import Any

import structlog

from mp_uow.config.settings import UnitOfWorkSettings
from mp_uow.observability.logging.filters import SensitiveFieldsFilter


class JsonLoggerFactory:
    """Configure structlog + stdlib logging for single-line JSON output.

    Records from ``logging.getLogger(...)`` loggers (the SQLAlchemy adapters)
    and from structlog loggers (the interceptor) go through the same
    formatter, so both end up as JSON with ``timestamp``/``level``/``logger``.
    """

    @staticmethod
    def configure(
        level: int | str = logging.INFO,
        sensitive_fields: frozenset[str] | None = None,
        *,
        sqlalchemy_level: int | str | None = None,
    ) -> None:
        shared_processors: list[Any] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
        ]
        if sensitive_fields:
            _filter = SensitiveFieldsFilter(sensitive_fields)

            def _redact(logger: Any, method: Any, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
                return _filter.redact_deep(event_dict)

            shared_processors.insert(0, _redact)

        structlog.configure(
            processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)
        if sqlalchemy_level is not None:
            logging.getLogger("sqlalchemy.engine").setLevel(sqlalchemy_level)

    @classmethod
    def from_settings(
        cls,
        settings: UnitOfWorkSettings,
        sensitive_fields: frozenset[str] | None = None,
    ) -> None:
        """Configure logging at the level named by ``UOW_LOG_LEVEL``."""
        cls.configure(settings.log_level_value, sensitive_fields)


__all__ = ["JsonLoggerFactory"]
