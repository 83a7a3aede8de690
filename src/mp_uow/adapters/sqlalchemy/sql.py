"""SQLAlchemy adapter – raw SQL parameter binding and row mapping."""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import TextClause, text

from mp_uow.observability.logging import SensitiveFieldsFilter

_SCALAR_TYPES: tuple[type[Any], ...] = (int, float, str, bool, bytes)
_redactor = SensitiveFieldsFilter()


def bind_params(params: Any) -> dict[str, Any]:
    """Turn a parameter object into ``:name`` bind values.

    Accepts a mapping, a dataclass instance, a named tuple or any object
    whose public attributes are the parameters.
    """
    if params is None:
        return {}
    if isinstance(params, Mapping):
        return dict(params)
    if dataclasses.is_dataclass(params) and not isinstance(params, type):
        return {f.name: getattr(params, f.name) for f in dataclasses.fields(params)}
    if hasattr(params, "_asdict"):
        return dict(params._asdict())
    if hasattr(params, "__dict__"):
        return {k: v for k, v in vars(params).items() if not k.startswith("_")}
    raise TypeError(f"Unsupported SQL parameter object: {type(params).__name__}")


def map_row(row: Mapping[str, Any], row_type: Any = None) -> Any:
    """Build the caller-facing value for one result row."""
    if row_type is None:
        return dict(row)
    if row_type in _SCALAR_TYPES:
        value = next(iter(row.values()), None)
        return None if value is None else row_type(value)
    return row_type(**row)


def statement(sql: str) -> TextClause:
    return text(sql)


def log_statement(logger: logging.Logger, uow_id: str, sql: str, params: Mapping[str, Any]) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("uow.sql uow_id=%s statement=%s params=%r", uow_id, sql, _redactor.redact(params))


__all__ = ["bind_params", "log_statement", "map_row", "statement"]
