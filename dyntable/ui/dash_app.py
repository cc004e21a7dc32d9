from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Dict, List

import dash_bootstrap_components as dbc
from dash import Dash

from dyntable.config.io import load_table_configs
from dyntable.services.audit import LoggingAuditSink
from dyntable.services.data_source import InMemoryDataSource
from dyntable.services.table_controller import TableController
from dyntable.ui.callbacks.callbacks_table import register_table_callbacks
from dyntable.ui.context import AppContext
from dyntable.ui.handlers import record_handlers
from dyntable.ui.layout.build_layout import build_layout

logger = logging.getLogger(__name__)

CONFIG_ROOT_ENV = "DYNTABLE_CONFIG_ROOT"
ROLE_ENV = "DYNTABLE_ROLE"


def _table_stems(config_root: Path) -> List[str]:
    return sorted(p.stem for p in (config_root / "tables").glob("*.json"))


def _load_records(config_root: Path, stem: str) -> List[dict]:
    """Demo rows live in config/data/<table>.json as a JSON list of objects."""
    path = config_root / "data" / f"{stem}.json"
    if not path.is_file():
        logger.warning("No demo data for table", extra={"table": stem, "data_path": str(path)})
        return []
    with path.open() as f:
        return json.load(f)


def create_dash_app(config_root: Path | str | None = None) -> Dash:
    config_root = Path(config_root or os.getenv(CONFIG_ROOT_ENV, "config"))

    # 1) Data source, seeded per table. Demo endpoints are "/<file stem>".
    data_source = InMemoryDataSource()
    stems = _table_stems(config_root)
    for stem in stems:
        data_source.replace(f"/{stem}", _load_records(config_root, stem))

    # 2) Load Config, binding handlers by file stem
    handlers_by_table = {stem: record_handlers(data_source, f"/{stem}") for stem in stems}
    configs = load_table_configs(config_root, handlers_by_table)
    if not configs:
        raise RuntimeError(f"No table configs were loaded from {config_root}")

    # 3) One controller per table, shared by every browser session (callbacks take ctx.lock)
    role = os.getenv(ROLE_ENV, "admin")
    audit_sink = LoggingAuditSink()
    controllers: Dict[str, TableController] = {}
    for table_id, config in configs.items():
        controller = TableController(config, role=role, data_source=data_source, audit_sink=audit_sink)
        asyncio.run(controller.refresh())
        controllers[table_id] = controller
        logger.info(
            "Table ready",
            extra={"table_id": table_id, "n_rows": len(controller.rows), "role": role},
        )

    # 4) App Context
    ctx = AppContext(
        config_root=config_root,
        data_source=data_source,
        controllers=controllers,
        default_table_id=next(iter(controllers)),
        ui_title="Dynamic Tables",
    )
    ctx.validate()

    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
        suppress_callback_exceptions=True,
    )
    app.title = ctx.ui_title
    app.layout = build_layout(ctx)

    # Register callbacks
    register_table_callbacks(app, ctx)

    return app
