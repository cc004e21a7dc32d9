from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Iterable, List

from .exceptions import ConfigError, ConfigIssue
from .types import Capability, ColumnType, FilterType, SortDirection, Variant

if TYPE_CHECKING:
    from .schema import TableConfig

KNOWN_EXPORT_FORMATS = {"csv", "excel"}


def _check_ids(kind: str, ids: Iterable[str], issues: List[ConfigIssue]) -> None:
    ids = list(ids)
    if any(not isinstance(i, str) or not i.strip() for i in ids):
        issues.append(ConfigIssue(f"{kind.upper()}_ID_MISSING", f"Every {kind} needs a non-empty id."))
    for dup, n in Counter(ids).items():
        if n > 1:
            issues.append(ConfigIssue(f"{kind.upper()}_ID_DUPLICATE", f"{kind} id '{dup}' used {n} times."))


def validate_table_config(config: TableConfig) -> None:
    issues: list[ConfigIssue] = []

    if not config.id or not str(config.id).strip():
        issues.append(ConfigIssue("TABLE_ID_MISSING", "Table config needs a non-empty id."))

    if not config.columns:
        issues.append(ConfigIssue("TABLE_NO_COLUMNS", "Table config declares no columns."))

    _check_ids("column", (c.id for c in config.columns), issues)
    _check_ids("filter", (f.id for f in config.filters), issues)
    _check_ids("action", (a.id for a in config.actions), issues)
    _check_ids("bulk_action", (a.id for a in config.bulk_actions), issues)

    for col in config.columns:
        if not isinstance(col.type, ColumnType):
            issues.append(ConfigIssue("COLUMN_TYPE", f"column '{col.id}' has unsupported type '{col.type}'."))

    for flt in config.filters:
        if not isinstance(flt.type, FilterType):
            issues.append(ConfigIssue("FILTER_TYPE", f"filter '{flt.id}' has unsupported type '{flt.type}'."))

    for action in (*config.actions, *config.bulk_actions):
        if not isinstance(action.variant, Variant):
            issues.append(ConfigIssue("ACTION_VARIANT", f"action '{action.id}' has unsupported variant '{action.variant}'."))
        if not isinstance(action.capability, Capability):
            issues.append(ConfigIssue("ACTION_CAPABILITY", f"action '{action.id}' has unknown capability '{action.capability}'."))
        if not callable(action.on_click):
            issues.append(ConfigIssue("ACTION_HANDLER", f"action '{action.id}' has no callable on_click."))

    pagination = config.pagination
    if pagination.items_per_page <= 0:
        issues.append(ConfigIssue("PAGINATION_SIZE", "pagination.items_per_page must be positive."))
    if any(o <= 0 for o in pagination.items_per_page_options):
        issues.append(ConfigIssue("PAGINATION_OPTIONS", "pagination.items_per_page_options must be positive."))

    default_sort = config.sorting.default_sort
    if default_sort is not None:
        if config.column(default_sort.column) is None:
            issues.append(ConfigIssue("SORT_COLUMN", f"default sort column '{default_sort.column}' is not a column."))
        if not isinstance(default_sort.direction, SortDirection):
            issues.append(ConfigIssue("SORT_DIRECTION", f"default sort direction '{default_sort.direction}' is invalid."))

    unknown_formats = set(config.export.formats) - KNOWN_EXPORT_FORMATS
    if unknown_formats:
        issues.append(ConfigIssue("EXPORT_FORMAT", f"unsupported export formats: {sorted(unknown_formats)}."))

    for cap, roles in config.permissions.items():
        if not isinstance(cap, Capability):
            issues.append(ConfigIssue("PERMISSION_CAPABILITY", f"unknown capability '{cap}' in permissions."))
        if not isinstance(roles, frozenset) or any(not isinstance(r, str) for r in roles):
            issues.append(
                ConfigIssue("PERMISSION_ROLES", f"permissions for '{cap}' must be a list of role names, got {roles!r}.")
            )

    if issues:
        raise ConfigError(issues)
