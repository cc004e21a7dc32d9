from __future__ import annotations

from pathlib import Path

import pytest

from dyntable.core.schema import ColumnDef, PaginationConfig, TableConfig
from dyntable.services.data_source import InMemoryDataSource
from dyntable.services.table_controller import TableController
from dyntable.ui.context import AppContext
from dyntable.ui.dash_app import create_dash_app
from dyntable.ui.ids import IDs, row_select_id
from dyntable.ui.layout.build_table_card import build_table_body

CONFIG_ROOT = Path(__file__).resolve().parents[3] / "config"


def _ids(component) -> list:
    """Every component id in a Dash tree, depth first."""
    found = []
    stack = [component]
    while stack:
        node = stack.pop()
        if isinstance(node, (list, tuple)):
            stack.extend(node)
            continue
        if node is None or isinstance(node, (str, int, float)):
            continue
        cid = getattr(node, "id", None)
        if cid is not None:
            found.append(cid)
        stack.append(getattr(node, "children", None))
    return found


def test_create_dash_app_from_shipped_config():
    app = create_dash_app(CONFIG_ROOT)

    ids = _ids(app.layout)
    for cid in (IDs.Control.TABLE_SELECT, IDs.Control.TABLE_CARD, IDs.Control.TABLE_BODY, IDs.Control.DOWNLOAD):
        assert cid in ids
    assert app.title == "Dynamic Tables"
    assert app.callback_map


def test_table_body_renders_a_checkbox_per_page_row():
    config = TableConfig(
        id="t",
        title="T",
        columns=[ColumnDef("name", "Name", sortable=True)],
        pagination=PaginationConfig(items_per_page=2),
    )
    controller = TableController(config, rows=[{"_id": i, "name": f"n{i}"} for i in range(3)])

    ids = _ids(build_table_body(controller))

    assert row_select_id(0) in ids
    assert row_select_id(1) in ids
    assert row_select_id(2) not in ids


def test_context_validate(tmp_path: Path):
    ctx = AppContext(config_root=tmp_path, data_source=InMemoryDataSource())
    with pytest.raises(RuntimeError):
        ctx.validate()
    assert ctx.controller(None) is None


def test_context_hands_out_one_lock_per_table(tmp_path: Path):
    ctx = AppContext(config_root=tmp_path, data_source=InMemoryDataSource())

    assert ctx.lock("categories") is ctx.lock("categories")
    assert ctx.lock("categories") is not ctx.lock("products")
    with ctx.lock("categories"):
        assert not ctx.lock("categories").acquire(blocking=False)


def test_empty_config_root_is_rejected(tmp_path: Path):
    with pytest.raises(RuntimeError):
        create_dash_app(tmp_path)
