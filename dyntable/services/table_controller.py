from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from dyntable.core.accessor import Row, row_identity
from dyntable.core.permissions import Role
from dyntable.core.pipeline import TableView, compute_view
from dyntable.core.schema import SortSpec, TableConfig
from dyntable.core.selection import SelectionTracker
from dyntable.core.state import TableState
from dyntable.core.types import SortDirection
from dyntable.export.service import ExportFile, TableExporter
from dyntable.services.audit import AuditSink, LoggingAuditSink
from dyntable.services.data_source import DataSource
from dyntable.services.dispatcher import (
    UNKNOWN_ACTION,
    UNKNOWN_ROW,
    ActionDispatcher,
    ConfirmCallback,
    Outcome,
)

logger = logging.getLogger(__name__)


def nearest_option(value: int, options: Sequence[int]) -> int:
    """Closest allowed page size; ties go to the smaller option."""
    if not options or value in options:
        return value
    return min(options, key=lambda o: (abs(o - value), o))


class TableController:
    """
    Owns one table instance: the raw rows, the config and the UI state.

    Every mutation is applied in call order and followed by a full recompute
    of the view pipeline plus a selection reconcile, so `view` is always a
    function of (rows, config, state, role).

    Design Notes:
    - rows are replaced wholesale (set_rows / refresh), never edited in place
    - a failing recompute keeps the last good view and records `last_error`
    - actions go through the ActionDispatcher, export through the TableExporter
    """

    def __init__(
        self,
        config: TableConfig,
        rows: Sequence[Row] = (),
        role: Role = None,
        *,
        data_source: Optional[DataSource] = None,
        confirm: Optional[ConfirmCallback] = None,
        audit_sink: Optional[AuditSink] = None,
        clock: Optional[Callable[[], dt.date]] = None,
    ) -> None:
        self.config = config
        self.role = role
        self.data_source = data_source
        self.last_error: Optional[str] = None
        self.loading = False

        self._rows: tuple = tuple(rows)
        self.state = TableState.initial(config)
        self.state.items_per_page = nearest_option(
            self.state.items_per_page, config.pagination.items_per_page_options
        )
        self.selection = SelectionTracker()

        self.dispatcher = ActionDispatcher(
            config,
            role,
            confirm=confirm,
            refresh=self.refresh if data_source is not None else None,
            audit_sink=audit_sink if audit_sink is not None else LoggingAuditSink(),
        )
        self.exporter = TableExporter(config, clock=clock)

        self._view = TableView.empty()
        self.recompute()

    # ------------------------------------------------------------------
    # Derived view
    # ------------------------------------------------------------------
    @property
    def view(self) -> TableView:
        return self._view

    @property
    def rows(self) -> tuple:
        return self._rows

    def recompute(self) -> TableView:
        try:
            view = compute_view(self._rows, self.config, self.state, self.role)
        except Exception as exc:
            logger.exception("View recompute failed", extra={"table_id": self.config.id})
            self.last_error = str(exc)
            return self._view

        dropped = self.selection.reconcile(view.filtered_ids)
        if dropped:
            logger.debug("Selection reconciled", extra={"table_id": self.config.id, "n_dropped": len(dropped)})
        self.state.selected_ids = self.selection.ids
        self.state.current_page = view.current_page
        self._view = view
        return view

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------
    def set_rows(self, rows: Sequence[Row]) -> TableView:
        self._rows = tuple(rows)
        return self.recompute()

    async def refresh(self) -> bool:
        """
        Re-fetch rows from the data source. `loading` is True while the fetch is pending.

        :return: False if the fetch failed (the last good view is kept)
        """
        if self.data_source is None:
            return False
        self.loading = True
        try:
            rows = await self.data_source.fetch(self.config.api_endpoint)
        except Exception as exc:
            logger.exception("Refresh failed", extra={"table_id": self.config.id})
            self.last_error = str(exc)
            return False
        finally:
            self.loading = False
        self.set_rows(rows)
        return True

    # ------------------------------------------------------------------
    # State persistence
    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        return self.state.to_dict()

    def restore(self, data: Dict[str, Any]) -> TableView:
        """
        Restore a snapshot taken with `snapshot`. Page size snaps to the
        configured options and selections outside the filtered rows are dropped.

        Raises:
            ValueError: the snapshot names an unknown filter or an unsortable column
        """
        state = TableState.from_dict(data)
        unknown = [f for f in state.filter_values if self.config.filter(f) is None]
        if unknown:
            raise ValueError(f"Unknown filters in snapshot: {unknown}")
        if state.sort is not None:
            column = self.config.column(state.sort.column)
            if not self.config.sorting.enabled or column is None or not column.sortable:
                raise ValueError(f"Column '{state.sort.column}' is not sortable")
        if state.items_per_page <= 0:
            raise ValueError("items_per_page must be positive")
        state.items_per_page = nearest_option(state.items_per_page, self.config.pagination.items_per_page_options)

        self.state = state
        self.selection = SelectionTracker(state.selected_ids)
        return self.recompute()

    # ------------------------------------------------------------------
    # Search / filters
    # ------------------------------------------------------------------
    def set_search_term(self, term: Optional[str]) -> TableView:
        self.state.search_term = term or ""
        self.state.current_page = 1
        return self.recompute()

    def set_filter(self, filter_id: str, value: Any) -> TableView:
        if self.config.filter(filter_id) is None:
            raise ValueError(f"Unknown filter '{filter_id}'")
        self.state.filter_values = {**self.state.filter_values, filter_id: value}
        self.state.current_page = 1
        return self.recompute()

    def clear_filter(self, filter_id: str) -> TableView:
        self.state.filter_values = {k: v for k, v in self.state.filter_values.items() if k != filter_id}
        self.state.current_page = 1
        return self.recompute()

    def clear_filters(self) -> TableView:
        """Clears every filter value and the search term."""
        self.state.filter_values = {}
        self.state.search_term = ""
        self.state.current_page = 1
        return self.recompute()

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------
    def set_sort(self, column_id: str, direction: SortDirection | str = SortDirection.ASC) -> TableView:
        if not self.config.sorting.enabled:
            raise ValueError(f"Sorting is disabled for table '{self.config.id}'")
        column = self.config.column(column_id)
        if column is None or not column.sortable:
            raise ValueError(f"Column '{column_id}' is not sortable")
        self.state.sort = SortSpec(column_id, SortDirection(direction))
        self.state.current_page = 1
        return self.recompute()

    def toggle_sort(self, column_id: str) -> TableView:
        current = self.state.sort
        if current is not None and current.column == column_id and current.direction == SortDirection.ASC:
            return self.set_sort(column_id, SortDirection.DESC)
        return self.set_sort(column_id, SortDirection.ASC)

    def clear_sort(self) -> TableView:
        self.state.sort = None
        return self.recompute()

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------
    def set_page(self, page: int) -> TableView:
        self.state.current_page = int(page)
        return self.recompute()

    def set_items_per_page(self, items_per_page: int) -> TableView:
        if int(items_per_page) <= 0:
            raise ValueError("items_per_page must be positive")
        self.state.items_per_page = nearest_option(
            int(items_per_page), self.config.pagination.items_per_page_options
        )
        self.state.current_page = 1
        return self.recompute()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def toggle_selection(self, row_id: Any) -> TableView:
        self.selection.toggle(row_id)
        return self.recompute()

    def set_selected(self, row_id: Any, selected: bool) -> TableView:
        if selected:
            self.selection.select(row_id)
        else:
            self.selection.deselect(row_id)
        return self.recompute()

    def select_page(self) -> TableView:
        self.selection.select_all(self._view.page_ids)
        return self.recompute()

    def select_all_filtered(self) -> TableView:
        self.selection.select_all(self._view.filtered_ids)
        return self.recompute()

    def clear_selection(self) -> TableView:
        self.selection.clear()
        return self.recompute()

    @property
    def selected_rows(self) -> List[Row]:
        return [r for r in self._view.filtered_rows if row_identity(r) in self.selection]

    @property
    def has_selection(self) -> bool:
        return len(self.selection) > 0

    @property
    def is_page_selected(self) -> bool:
        return self.selection.is_all_selected(self._view.page_ids)

    # ------------------------------------------------------------------
    # Actions / export
    # ------------------------------------------------------------------
    async def run_action(self, action_id: str, row_id: Any, confirm: Optional[ConfirmCallback] = None) -> Outcome:
        action = self.config.action(action_id)
        if action is None:
            return self._report(Outcome.failure(UNKNOWN_ACTION))
        row = next((r for r in self._view.filtered_rows if row_identity(r) == row_id), None)
        if row is None:
            return self._report(Outcome.failure(UNKNOWN_ROW))
        return self._report(await self.dispatcher.dispatch(action, row=row, confirm=confirm))

    async def run_bulk_action(self, action_id: str, confirm: Optional[ConfirmCallback] = None) -> Outcome:
        """Runs a bulk action on the selected rows. The selection is never cleared here."""
        action = self.config.bulk_action(action_id)
        if action is None:
            return self._report(Outcome.failure(UNKNOWN_ACTION))
        return self._report(
            await self.dispatcher.dispatch(action, selected_rows=self.selected_rows, confirm=confirm)
        )

    def export(self, fmt: str = "csv") -> ExportFile:
        return self.exporter.export(self._view.filtered_rows, self.selection.ids, fmt)

    def _report(self, outcome: Outcome) -> Outcome:
        self.last_error = None if outcome.ok else outcome.message
        return outcome
