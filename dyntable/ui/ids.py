from __future__ import annotations

from typing import Any

__all__ = [
    "IDs",
    "filter_id",
    "filter_range_id",
    "sort_id",
    "row_select_id",
    "row_action_id",
    "bulk_action_id",
    "export_id",
]


class IDs:
    class Control:
        TABLE_SELECT = "table-select"
        TABLE_CARD = "table-card"
        TABLE_BODY = "table-body"

        SEARCH_INPUT = "search-input"
        CLEAR_FILTERS_BTN = "clear-filters-btn"

        PAGE_PREV_BTN = "page-prev-btn"
        PAGE_NEXT_BTN = "page-next-btn"
        PAGE_SIZE_SELECT = "page-size-select"
        SELECT_PAGE_CHECK = "select-page-check"

        STATUS_TOAST = "status-toast"
        DOWNLOAD = "table-download"

    class Pattern:
        # pattern-matching "type" strings
        FILTER = "table-filter"
        FILTER_RANGE = "table-filter-range"
        SORT = "table-sort"
        ROW_SELECT = "table-row-select"
        ROW_ACTION = "table-row-action"
        ROW_ACTION_CONFIRMED = "table-row-action-confirmed"
        BULK_ACTION = "table-bulk-action"
        BULK_ACTION_CONFIRMED = "table-bulk-action-confirmed"
        EXPORT = "table-export"


def filter_id(fid: str) -> dict:
    return {"type": IDs.Pattern.FILTER, "index": fid}


def filter_range_id(fid: str) -> dict:
    return {"type": IDs.Pattern.FILTER_RANGE, "index": fid}


def sort_id(column_id: str) -> dict:
    return {"type": IDs.Pattern.SORT, "index": column_id}


def row_select_id(row_id: Any) -> dict:
    return {"type": IDs.Pattern.ROW_SELECT, "index": row_id}


def row_action_id(action_id: str, row_id: Any, confirmed: bool = False) -> dict:
    kind = IDs.Pattern.ROW_ACTION_CONFIRMED if confirmed else IDs.Pattern.ROW_ACTION
    return {"type": kind, "action": action_id, "row": row_id}


def bulk_action_id(action_id: str, confirmed: bool = False) -> dict:
    kind = IDs.Pattern.BULK_ACTION_CONFIRMED if confirmed else IDs.Pattern.BULK_ACTION
    return {"type": kind, "index": action_id}


def export_id(fmt: str) -> dict:
    return {"type": IDs.Pattern.EXPORT, "index": fmt}
