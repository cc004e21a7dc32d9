from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Tuple

import dash
from dash import ALL, Input, Output, State, dcc, exceptions

from dyntable.ui.ids import IDs
from dyntable.ui.interactions import apply_interaction
from dyntable.ui.layout.build_table_card import build_table_body, build_table_card

if TYPE_CHECKING:
    from dyntable.ui.context import AppContext

logger = logging.getLogger(__name__)


def _range_for(filter_index: str) -> Tuple[Any, Any]:
    """Collect (start_date, end_date) for one date-range picker from the callback inputs."""
    start = end = None
    for group in dash.ctx.inputs_list:
        entries = group if isinstance(group, list) else [group]
        for entry in entries:
            cid = entry.get("id")
            if not isinstance(cid, dict):
                continue
            if cid.get("type") != IDs.Pattern.FILTER_RANGE or cid.get("index") != filter_index:
                continue
            if entry.get("property") == "start_date":
                start = entry.get("value")
            elif entry.get("property") == "end_date":
                end = entry.get("value")
    return start, end


def register_table_callbacks(app: dash.Dash, ctx: AppContext) -> None:
    # ---------------------------------------------------------
    # 1. Switch table
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.TABLE_CARD, "children"),
        Input(IDs.Control.TABLE_SELECT, "value"),
        prevent_initial_call=True,
    )
    def render_table_card(table_id):
        controller = ctx.controller(table_id)
        if controller is None:
            raise exceptions.PreventUpdate
        logger.info("Switching table", extra={"table_id": table_id})
        with ctx.lock(table_id):
            return build_table_card(controller)

    # ---------------------------------------------------------
    # 2. Every in-table interaction funnels through one callback
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.TABLE_BODY, "children"),
        Output(IDs.Control.SELECT_PAGE_CHECK, "value"),
        Output(IDs.Control.STATUS_TOAST, "children"),
        Output(IDs.Control.STATUS_TOAST, "icon"),
        Output(IDs.Control.STATUS_TOAST, "is_open"),
        Output(IDs.Control.DOWNLOAD, "data"),
        Input(IDs.Control.SEARCH_INPUT, "value"),
        Input(IDs.Control.CLEAR_FILTERS_BTN, "n_clicks"),
        Input(IDs.Control.PAGE_PREV_BTN, "n_clicks"),
        Input(IDs.Control.PAGE_NEXT_BTN, "n_clicks"),
        Input(IDs.Control.PAGE_SIZE_SELECT, "value"),
        Input(IDs.Control.SELECT_PAGE_CHECK, "value"),
        Input({"type": IDs.Pattern.FILTER, "index": ALL}, "value"),
        Input({"type": IDs.Pattern.FILTER_RANGE, "index": ALL}, "start_date"),
        Input({"type": IDs.Pattern.FILTER_RANGE, "index": ALL}, "end_date"),
        Input({"type": IDs.Pattern.SORT, "index": ALL}, "n_clicks"),
        Input({"type": IDs.Pattern.ROW_SELECT, "index": ALL}, "value"),
        Input({"type": IDs.Pattern.ROW_ACTION, "action": ALL, "row": ALL}, "n_clicks"),
        Input({"type": IDs.Pattern.ROW_ACTION_CONFIRMED, "action": ALL, "row": ALL}, "submit_n_clicks"),
        Input({"type": IDs.Pattern.BULK_ACTION, "index": ALL}, "n_clicks"),
        Input({"type": IDs.Pattern.BULK_ACTION_CONFIRMED, "index": ALL}, "submit_n_clicks"),
        Input({"type": IDs.Pattern.EXPORT, "index": ALL}, "n_clicks"),
        State(IDs.Control.TABLE_SELECT, "value"),
        prevent_initial_call=True,
    )
    def handle_table_interaction(*args):
        table_id = args[-1]
        controller = ctx.controller(table_id)
        if controller is None or not dash.ctx.triggered:
            raise exceptions.PreventUpdate

        triggered_id = dash.ctx.triggered_id
        value = dash.ctx.triggered[0].get("value")

        range_value: Tuple[Any, Any] = (None, None)
        if isinstance(triggered_id, dict) and triggered_id.get("type") == IDs.Pattern.FILTER_RANGE:
            range_value = _range_for(triggered_id.get("index"))

        with ctx.lock(table_id):
            result = apply_interaction(controller, triggered_id, value, range_value)
            body = build_table_body(controller)
            page_selected = controller.is_page_selected

        download = dash.no_update
        if result.download is not None:
            download = dcc.send_bytes(result.download.content, result.download.filename)

        if result.message is None:
            toast_children, toast_icon, toast_open = dash.no_update, dash.no_update, dash.no_update
        else:
            toast_children, toast_icon, toast_open = result.message, result.level, True

        return (
            body,
            page_selected,
            toast_children,
            toast_icon,
            toast_open,
            download,
        )
