"""
View pipeline: pure functions from (raw rows, config, state, role) to a
render-ready page.

Stages run in a fixed order: search -> filters -> sort -> permission gate ->
paginate. Nothing here mutates its inputs or performs I/O, so the same inputs
always produce the same TableView.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .accessor import MISSING, Accessor, Row, as_accessor, resolve, row_identity
from .formatters import format_plain, to_number, to_timestamp
from .permissions import Role, permitted_actions
from .schema import ActionDef, ColumnDef, FilterDef, TableConfig
from .state import TableState
from .types import ColumnType, FilterType, SortDirection

Predicate = Callable[[Any], bool]


@dataclass(frozen=True)
class ViewRow:
    row: Row
    row_id: Any
    actions: Tuple[ActionDef, ...] = ()


@dataclass(frozen=True)
class TableView:
    page_rows: Tuple[ViewRow, ...]
    filtered_rows: Tuple[Row, ...]
    total_filtered: int
    total_pages: int
    current_page: int
    bulk_actions: Tuple[ActionDef, ...] = ()

    @property
    def filtered_ids(self) -> List[Any]:
        return [row_identity(r) for r in self.filtered_rows]

    @property
    def page_ids(self) -> List[Any]:
        return [vr.row_id for vr in self.page_rows]

    @classmethod
    def empty(cls) -> TableView:
        return cls(page_rows=(), filtered_rows=(), total_filtered=0, total_pages=1, current_page=1)


# -------------------------------------------------------------------------
# Stage 1: search
# -------------------------------------------------------------------------
def search_accessors(config: TableConfig) -> Tuple[Accessor, ...]:
    """
    Search fields may name a column (its accessor is used), a raw row field,
    or be a callable.
    """
    accessors = []
    for spec in config.search.search_fields:
        column = config.column(spec) if isinstance(spec, str) else None
        accessors.append(column.accessor if column is not None else as_accessor(spec))
    return tuple(accessors)


def apply_search(rows: Sequence[Row], accessors: Sequence[Accessor], term: str) -> List[Row]:
    if not term:
        return list(rows)
    needle = term.casefold()

    def matches(row: Row) -> bool:
        for accessor in accessors:
            value = resolve(accessor, row)
            if value is not MISSING and needle in format_plain(value).casefold():
                return True
        return False

    return [r for r in rows if matches(r)]


# -------------------------------------------------------------------------
# Stage 2: per-filter predicates
# -------------------------------------------------------------------------
def is_empty_value(value: Any) -> bool:
    if value is None or value is MISSING:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, Mapping):
        return all(is_empty_value(v) for v in value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return all(is_empty_value(v) for v in value)
    return False


def _date_bounds(value: Any) -> Tuple[Any, Any]:
    if isinstance(value, Mapping):
        lo = value.get("from", value.get("start"))
        hi = value.get("to", value.get("end"))
    elif isinstance(value, (list, tuple)):
        lo, hi = (list(value) + [None, None])[:2]
    else:
        lo, hi = value, None
    lo_ts = to_timestamp(lo) if not is_empty_value(lo) else MISSING
    hi_ts = to_timestamp(hi) if not is_empty_value(hi) else MISSING
    # A date-only upper bound covers the whole day
    if hi_ts is not MISSING and hi_ts == hi_ts.normalize():
        hi_ts = hi_ts + pd.Timedelta(days=1) - pd.Timedelta(1, unit="ns")
    return lo_ts, hi_ts


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y", "on"}
    return bool(value)


def build_predicate(filter_def: FilterDef, value: Any) -> Optional[Predicate]:
    """
    Predicate for one filter value, or None when the value cannot constrain
    anything (e.g. a non-numeric threshold for a number filter).
    """
    ftype = filter_def.type

    if ftype == FilterType.TEXT:
        needle = str(value).casefold()
        return lambda v: needle in format_plain(v).casefold()

    if ftype == FilterType.NUMBER:
        threshold = to_number(value)
        if threshold is MISSING:
            return None

        def at_least(v: Any) -> bool:
            n = to_number(v)
            return n is not MISSING and n >= threshold

        return at_least

    if ftype == FilterType.SELECT:
        if isinstance(value, (list, tuple, set, frozenset)):
            allowed = [x for x in value if not is_empty_value(x)]
            return lambda v: v in allowed
        return lambda v: v == value

    if ftype == FilterType.DATE_RANGE:
        lo, hi = _date_bounds(value)
        if lo is MISSING and hi is MISSING:
            return None

        def within(v: Any) -> bool:
            ts = to_timestamp(v)
            if ts is MISSING:
                return False
            if lo is not MISSING and ts < lo:
                return False
            if hi is not MISSING and ts > hi:
                return False
            return True

        return within

    if ftype == FilterType.BOOLEAN:
        wanted = _parse_bool(value)
        return lambda v: bool(v) == wanted

    return None


def _matches(predicate: Predicate, value: Any) -> bool:
    return value is not MISSING and predicate(value)


def apply_filters(rows: Sequence[Row], config: TableConfig, filter_values: Mapping[str, Any]) -> List[Row]:
    """Filters compose with AND; a row whose accessor yields no value never matches."""
    result = list(rows)
    for filter_id, value in filter_values.items():
        if is_empty_value(value):
            continue
        filter_def = config.filter(filter_id)
        if filter_def is None:
            continue
        predicate = build_predicate(filter_def, value)
        if predicate is None:
            continue
        result = [r for r in result if _matches(predicate, resolve(filter_def.accessor, r))]
    return result


# -------------------------------------------------------------------------
# Stage 3: sort
# -------------------------------------------------------------------------
def sort_key(value: Any, column_type: ColumnType) -> Any:
    """
    Comparable key for a resolved value, or MISSING when the value cannot be
    ordered. Keys are (rank, value) so mixed types never compare directly.
    """
    if value is MISSING:
        return MISSING
    if column_type == ColumnType.DATE:
        ts = to_timestamp(value)
        return MISSING if ts is MISSING else (2, ts.value)
    if column_type == ColumnType.NUMBER:
        n = to_number(value)
        return MISSING if n is MISSING else (0, n)
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return MISSING if value != value else (0, value)
    if isinstance(value, str):
        return (1, value.casefold())
    ts = to_timestamp(value) if hasattr(value, "year") else MISSING
    return MISSING if ts is MISSING else (2, ts.value)


def apply_sort(rows: Sequence[Row], column: ColumnDef, direction: SortDirection) -> List[Row]:
    """
    Stable sort on the column's accessor. Rows without a comparable value go
    last in both directions and keep their relative order.
    """
    keyed = []
    missing = []
    for r in rows:
        key = sort_key(resolve(column.accessor, r), column.type)
        if key is MISSING:
            missing.append(r)
        else:
            keyed.append((key, r))
    keyed.sort(key=lambda pair: pair[0], reverse=direction == SortDirection.DESC)
    return [r for _, r in keyed] + missing


# -------------------------------------------------------------------------
# Stage 5: paginate
# -------------------------------------------------------------------------
def page_count(total: int, items_per_page: int) -> int:
    return max(1, math.ceil(total / items_per_page)) if items_per_page > 0 else 1


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, int(page)), total_pages)


def paginate(rows: Sequence[Row], page: int, items_per_page: int) -> List[Row]:
    start = (page - 1) * items_per_page
    return list(rows[start:start + items_per_page])


# -------------------------------------------------------------------------
# Whole pipeline
# -------------------------------------------------------------------------
def compute_view(
    raw_rows: Sequence[Row],
    config: TableConfig,
    state: TableState,
    role: Role,
) -> TableView:
    rows: List[Row] = list(raw_rows)

    if config.search.enabled and state.search_term:
        rows = apply_search(rows, search_accessors(config), state.search_term)

    rows = apply_filters(rows, config, state.filter_values)

    if config.sorting.enabled and state.sort is not None:
        column = config.column(state.sort.column)
        if column is not None:
            rows = apply_sort(rows, column, state.sort.direction)

    row_actions = permitted_actions(config.actions, config.permissions, role)
    bulk_actions = permitted_actions(config.bulk_actions, config.permissions, role)

    total = len(rows)
    if config.pagination.enabled:
        total_pages = page_count(total, state.items_per_page)
        current_page = clamp_page(state.current_page, total_pages)
        page = paginate(rows, current_page, state.items_per_page)
    else:
        total_pages = 1
        current_page = 1
        page = rows

    page_rows = tuple(
        ViewRow(row=r, row_id=row_identity(r), actions=tuple(a for a in row_actions if a.is_visible(r, None)))
        for r in page
    )

    return TableView(
        page_rows=page_rows,
        filtered_rows=tuple(rows),
        total_filtered=total,
        total_pages=total_pages,
        current_page=current_page,
        bulk_actions=bulk_actions,
    )


def visible_values(view_row: ViewRow, columns: Sequence[ColumnDef]) -> Dict[str, str]:
    """Display strings for one row, keyed by column id."""
    return {c.id: c.format(resolve(c.accessor, view_row.row)) for c in columns}
