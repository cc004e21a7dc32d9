from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from .exceptions import AccessorError

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


class _Missing:
    """Sentinel for 'no value': accessor raised, returned None or the field is absent."""

    _instance: Optional["_Missing"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


@dataclass(frozen=True)
class FieldAccessor:
    """Reads a named field straight off the row"""
    name: str

    @property
    def key(self) -> str:
        return self.name


@dataclass(frozen=True)
class DeriveAccessor:
    """Computes a value from the whole row with a pure function"""
    fn: Callable[[Row], Any]
    name: str = ""

    @property
    def key(self) -> str:
        return self.name or getattr(self.fn, "__name__", "derived")


Accessor = Union[FieldAccessor, DeriveAccessor]


def as_accessor(spec: Union[str, Callable[[Row], Any], Accessor, None], default_field: str = "") -> Accessor:
    """
    Normalise the loose forms accepted in config (field name, callable, accessor
    instance, or None) into an Accessor.

    :param spec: what the config author wrote
    :param default_field: field name used when spec is None (usually the column/filter id)
    """
    if isinstance(spec, (FieldAccessor, DeriveAccessor)):
        return spec
    if spec is None:
        return FieldAccessor(default_field)
    if isinstance(spec, str):
        return FieldAccessor(spec)
    if callable(spec):
        return DeriveAccessor(spec)
    raise TypeError(f"Unsupported accessor {spec!r}")


def resolve(accessor: Accessor, row: Row) -> Any:
    """
    The single evaluator for both accessor arms.

    Never raises: a failing derive function, a missing field, or a None value
    all come back as MISSING.
    """
    try:
        if isinstance(accessor, FieldAccessor):
            value = row.get(accessor.name, None)
        else:
            value = accessor.fn(row)
    except Exception as exc:
        err = AccessorError(f"Accessor '{accessor.key}' failed: {exc}")
        logger.debug("Accessor failed", extra={"accessor": accessor.key, "error": str(err)})
        return MISSING

    if value is None or value is MISSING:
        return MISSING
    return value


def row_identity(row: Row) -> Any:
    """Stable row identity: `_id` when present, else `id`."""
    rid = row.get("_id")
    if rid is None:
        rid = row.get("id")
    return rid
