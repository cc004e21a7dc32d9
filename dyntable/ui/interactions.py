"""
Maps a triggered Dash component onto TableController calls.

Kept free of Dash imports so the translation from UI events to controller
mutations can be tested without a running app.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from dyntable.core.exceptions import DynTableError
from dyntable.export.service import ExportFile
from dyntable.services.dispatcher import Outcome
from dyntable.services.table_controller import TableController
from dyntable.ui.ids import IDs

logger = logging.getLogger(__name__)

TriggeredId = Union[str, dict, None]


@dataclass(frozen=True)
class InteractionResult:
    message: Optional[str] = None
    level: str = "info"
    download: Optional[ExportFile] = None


def _user_confirmed(*_args: Any) -> bool:
    # The browser already showed a confirm dialog before the click reached us
    return True


def _outcome_result(label: str, outcome: Outcome) -> InteractionResult:
    if outcome.ok:
        return InteractionResult(f"{label}: done", "success")
    return InteractionResult(f"{label}: {outcome.message}", "danger")


def apply_interaction(
    controller: TableController,
    triggered_id: TriggeredId,
    value: Any,
    range_value: Tuple[Any, Any] = (None, None),
) -> InteractionResult:
    """
    Apply one UI event to the controller.

    :param triggered_id: the Dash id of the component that fired
    :param value: the fired property's new value
    :param range_value: (start, end) for date-range filter pickers
    """
    try:
        return _apply(controller, triggered_id, value, range_value)
    except (DynTableError, ValueError) as exc:
        logger.info("Interaction rejected", extra={"table_id": controller.config.id, "error": str(exc)})
        return InteractionResult(str(exc), "danger")


def _apply(
    controller: TableController,
    triggered_id: TriggeredId,
    value: Any,
    range_value: Tuple[Any, Any],
) -> InteractionResult:
    if triggered_id == IDs.Control.SEARCH_INPUT:
        controller.set_search_term(value)
    elif triggered_id == IDs.Control.CLEAR_FILTERS_BTN and value:
        controller.clear_filters()
    elif triggered_id == IDs.Control.PAGE_PREV_BTN and value:
        controller.set_page(controller.state.current_page - 1)
    elif triggered_id == IDs.Control.PAGE_NEXT_BTN and value:
        controller.set_page(controller.state.current_page + 1)
    elif triggered_id == IDs.Control.PAGE_SIZE_SELECT and value:
        controller.set_items_per_page(int(value))
    elif triggered_id == IDs.Control.SELECT_PAGE_CHECK:
        # Unchecking only clears when the box was actually checked
        if value:
            controller.select_page()
        elif controller.is_page_selected:
            controller.clear_selection()
    elif isinstance(triggered_id, dict):
        return _apply_pattern(controller, triggered_id, value, range_value)
    return InteractionResult()


def _apply_pattern(
    controller: TableController,
    triggered_id: dict,
    value: Any,
    range_value: Tuple[Any, Any],
) -> InteractionResult:
    kind = triggered_id.get("type")

    if kind == IDs.Pattern.FILTER:
        if value in (None, "", []):
            controller.clear_filter(triggered_id["index"])
        else:
            controller.set_filter(triggered_id["index"], value)
        return InteractionResult()

    if kind == IDs.Pattern.FILTER_RANGE:
        start, end = range_value
        controller.set_filter(triggered_id["index"], {"from": start, "to": end})
        return InteractionResult()

    if kind == IDs.Pattern.ROW_SELECT:
        controller.set_selected(triggered_id["index"], bool(value))
        return InteractionResult()

    # Everything below is a button: ignore the render-time fire with no clicks
    if not value:
        return InteractionResult()

    if kind == IDs.Pattern.SORT:
        controller.toggle_sort(triggered_id["index"])
        return InteractionResult()

    if kind in (IDs.Pattern.ROW_ACTION, IDs.Pattern.ROW_ACTION_CONFIRMED):
        confirm = _user_confirmed if kind == IDs.Pattern.ROW_ACTION_CONFIRMED else None
        action_id = triggered_id["action"]
        outcome = asyncio.run(controller.run_action(action_id, triggered_id["row"], confirm=confirm))
        return _outcome_result(_action_label(controller, action_id, bulk=False), outcome)

    if kind in (IDs.Pattern.BULK_ACTION, IDs.Pattern.BULK_ACTION_CONFIRMED):
        confirm = _user_confirmed if kind == IDs.Pattern.BULK_ACTION_CONFIRMED else None
        action_id = triggered_id["index"]
        outcome = asyncio.run(controller.run_bulk_action(action_id, confirm=confirm))
        return _outcome_result(_action_label(controller, action_id, bulk=True), outcome)

    if kind == IDs.Pattern.EXPORT:
        file = controller.export(triggered_id["index"])
        return InteractionResult(f"Exported {file.filename}", "success", download=file)

    return InteractionResult()


def _action_label(controller: TableController, action_id: str, bulk: bool) -> str:
    action = controller.config.bulk_action(action_id) if bulk else controller.config.action(action_id)
    return action.label if action is not None else action_id
