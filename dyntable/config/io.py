from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from dyntable.core.exceptions import ConfigError, ConfigIssue
from dyntable.core.schema import (
    ActionDef,
    AuditConfig,
    ColumnDef,
    ExportConfig,
    FilterDef,
    PaginationConfig,
    SearchConfig,
    SortingConfig,
    SortSpec,
    TableConfig,
)

logger = logging.getLogger(__name__)

Handlers = Mapping[str, Callable[..., Any]]


def _get(raw: Mapping[str, Any], snake: str, camel: Optional[str] = None, default: Any = None) -> Any:
    """Config files may use snake_case or camelCase keys."""
    if snake in raw:
        return raw[snake]
    if camel is not None and camel in raw:
        return raw[camel]
    return default


def _column(raw: Mapping[str, Any]) -> ColumnDef:
    return ColumnDef(
        id=raw.get("id", ""),
        label=raw.get("label", raw.get("id", "")),
        type=raw.get("type", "text"),
        sortable=bool(raw.get("sortable", False)),
        filterable=bool(raw.get("filterable", False)),
        accessor=raw.get("accessor"),
    )


def _filter(raw: Mapping[str, Any]) -> FilterDef:
    options = [(o["label"], o["value"]) if isinstance(o, Mapping) else (str(o), o) for o in raw.get("options", [])]
    return FilterDef(
        id=raw.get("id", ""),
        label=raw.get("label", raw.get("id", "")),
        type=raw.get("type", "text"),
        placeholder=raw.get("placeholder", ""),
        accessor=raw.get("accessor"),
        options=tuple(options),
    )


def _action(raw: Mapping[str, Any], handlers: Handlers) -> ActionDef:
    return ActionDef(
        id=raw.get("id", ""),
        label=raw.get("label", raw.get("id", "")),
        on_click=handlers.get(raw.get("id", "")),
        icon=raw.get("icon", ""),
        variant=raw.get("variant", "default"),
        capability=raw.get("capability"),
        per_row=bool(_get(raw, "per_row", "perRow", False)),
    )


def parse_table_config(raw: Mapping[str, Any], handlers: Optional[Handlers] = None) -> TableConfig:
    """
    Build a TableConfig from its JSON form.

    Accessors in JSON are always field names. Action handlers cannot live in
    JSON, so they are bound from `handlers` by action id.

    :raises ConfigError: if the result is not a valid config
    """
    handlers = handlers or {}

    pagination_raw = raw.get("pagination", {})
    sorting_raw = raw.get("sorting", {})
    search_raw = raw.get("search", {})
    export_raw = raw.get("export", {})
    audit_raw = raw.get("audit", {})

    default_sort_raw = _get(sorting_raw, "default_sort", "defaultSort")
    default_sort = (
        SortSpec(default_sort_raw["column"], default_sort_raw.get("direction", "asc"))
        if default_sort_raw
        else None
    )

    return TableConfig(
        id=raw.get("id", ""),
        title=raw.get("title", raw.get("id", "")),
        description=raw.get("description", ""),
        api_endpoint=_get(raw, "api_endpoint", "apiEndpoint", ""),
        columns=tuple(_column(c) for c in raw.get("columns", [])),
        filters=tuple(_filter(f) for f in raw.get("filters", [])),
        actions=tuple(_action(a, handlers) for a in raw.get("actions", [])),
        bulk_actions=tuple(_action(a, handlers) for a in _get(raw, "bulk_actions", "bulkActions", [])),
        pagination=PaginationConfig(
            enabled=bool(pagination_raw.get("enabled", True)),
            items_per_page=int(_get(pagination_raw, "items_per_page", "itemsPerPage", 10)),
            items_per_page_options=tuple(_get(pagination_raw, "items_per_page_options", "itemsPerPageOptions", ())),
        ),
        sorting=SortingConfig(enabled=bool(sorting_raw.get("enabled", True)), default_sort=default_sort),
        search=SearchConfig(
            enabled=bool(search_raw.get("enabled", False)),
            placeholder=search_raw.get("placeholder", ""),
            search_fields=tuple(_get(search_raw, "search_fields", "searchFields", ())),
        ),
        export=ExportConfig(
            enabled=bool(export_raw.get("enabled", False)),
            formats=tuple(export_raw.get("formats", ("csv",))),
        ),
        audit=AuditConfig(
            enabled=bool(audit_raw.get("enabled", False)),
            track_actions=bool(_get(audit_raw, "track_actions", "trackActions", False)),
        ),
        permissions=dict(raw.get("permissions", {})),
    )


def load_table_config(path: Path, handlers: Optional[Handlers] = None) -> TableConfig:
    """
    Load a single table config JSON file.

    :raises FileNotFoundError: if the file does not exist
    :raises ConfigError: if the file is not valid JSON or not a valid config
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found at {path}")

    try:
        with path.open() as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError([ConfigIssue("CONFIG_JSON", f"{path.name}: {exc}")]) from exc

    config = parse_table_config(raw, handlers)
    logger.info("Table config loaded", extra={"table_id": config.id, "config_path": str(path)})
    return config


def load_table_configs(
    root: Path,
    handlers_by_table: Optional[Mapping[str, Handlers]] = None,
) -> Dict[str, TableConfig]:
    """
    Load every table config under a config directory.

    Expected structure:

        root/
            tables/
                categories.json
                products.json
                ...

    Files are read in sorted order. Handlers are looked up by the file stem.

    :raises ConfigError: if two files declare the same table id
    """
    handlers_by_table = handlers_by_table or {}
    tables_dir = Path(root) / "tables"
    configs: Dict[str, TableConfig] = {}

    if tables_dir.is_dir():
        for config_file in sorted(tables_dir.glob("*.json")):
            config = load_table_config(config_file, handlers_by_table.get(config_file.stem))
            if config.id in configs:
                raise ConfigError([ConfigIssue("TABLE_ID_DUPLICATE", f"table id '{config.id}' declared twice")])
            configs[config.id] = config

    logger.info(
        "Table configs loaded from config root",
        extra={"config_root": str(root), "n_tables": len(configs), "table_ids": list(configs)},
    )
    return configs
