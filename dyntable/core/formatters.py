from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict

import pandas as pd

from .accessor import MISSING
from .types import ColumnType

Formatter = Callable[[Any], str]

NO_IMAGE = "no_url"


def to_timestamp(value: Any) -> Any:
    """
    Parse datetimes, dates and date strings into a pandas Timestamp.
    Unparseable input comes back as MISSING.
    """
    if value is MISSING or isinstance(value, bool):
        return MISSING
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return MISSING
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return MISSING
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


def to_number(value: Any) -> Any:
    if value is MISSING or isinstance(value, bool):
        return MISSING
    if isinstance(value, (int, float)):
        return MISSING if value != value else value
    try:
        return float(str(value).strip())
    except ValueError:
        return MISSING


def format_plain(value: Any) -> str:
    if value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dt.date, pd.Timestamp)):
        return format_date(value)
    return str(value)


def format_date(value: Any) -> str:
    ts = to_timestamp(value)
    if ts is MISSING:
        return ""
    return ts.strftime("%Y-%m-%d")


def format_image(value: Any) -> str:
    if value is MISSING or value == NO_IMAGE:
        return ""
    return str(value)


def format_actions(value: Any) -> str:
    return ""


FORMATTERS: Dict[ColumnType, Formatter] = {
    ColumnType.TEXT: format_plain,
    ColumnType.NUMBER: format_plain,
    ColumnType.BADGE: format_plain,
    ColumnType.DATE: format_date,
    ColumnType.IMAGE: format_image,
    ColumnType.ACTIONS: format_actions,
}

_unhandled = set(ColumnType) - set(FORMATTERS)
if _unhandled:
    raise RuntimeError(f"No formatter registered for column types: {sorted(t.value for t in _unhandled)}")
