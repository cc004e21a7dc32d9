from __future__ import annotations

from typing import List

import dash_bootstrap_components as dbc
from dash import dcc, html

from dyntable.core.pipeline import visible_values
from dyntable.core.schema import FilterDef
from dyntable.core.types import ColumnType, FilterType, SortDirection
from dyntable.services.table_controller import TableController
from dyntable.ui.ids import (
    IDs,
    bulk_action_id,
    export_id,
    filter_id,
    filter_range_id,
    row_action_id,
    row_select_id,
    sort_id,
)

HIDDEN = {"display": "none"}


def _filter_control(flt: FilterDef, value) -> html.Div:
    if flt.type == FilterType.SELECT:
        control = dcc.Dropdown(
            id=filter_id(flt.id),
            options=[{"label": label, "value": v} for label, v in flt.options],
            value=value,
            placeholder=flt.placeholder or f"Select {flt.label}",
        )
    elif flt.type == FilterType.BOOLEAN:
        control = dcc.Dropdown(
            id=filter_id(flt.id),
            options=[{"label": "Yes", "value": "true"}, {"label": "No", "value": "false"}],
            value=value,
            placeholder=flt.placeholder or f"Filter {flt.label}",
        )
    elif flt.type == FilterType.DATE_RANGE:
        control = dcc.DatePickerRange(id=filter_range_id(flt.id), clearable=True)
    elif flt.type == FilterType.NUMBER:
        control = dbc.Input(
            id=filter_id(flt.id),
            type="number",
            value=value,
            placeholder=flt.placeholder or f"Min {flt.label}",
            debounce=True,
        )
    else:
        control = dbc.Input(
            id=filter_id(flt.id),
            type="text",
            value=value,
            placeholder=flt.placeholder or f"Filter by {flt.label}...",
            debounce=True,
        )

    return html.Div(
        [html.Label(flt.label, className="form-label"), control],
        className="mb-3",
    )


def build_filter_panel(controller: TableController) -> dbc.Card:
    values = controller.state.filter_values
    return dbc.Card(
        [
            dbc.CardHeader("Filters", className="fw-semibold"),
            dbc.CardBody(
                [_filter_control(f, values.get(f.id)) for f in controller.config.filters]
                + [dbc.Button("Clear filters", id=IDs.Control.CLEAR_FILTERS_BTN, color="secondary", size="sm")]
            ),
        ],
        className="dyn-sidebar",
    )


def _header_cell(controller: TableController, column) -> html.Th:
    if not (column.sortable and controller.config.sorting.enabled):
        return html.Th(column.label)

    sort = controller.state.sort
    marker = ""
    if sort is not None and sort.column == column.id:
        marker = " ▲" if sort.direction == SortDirection.ASC else " ▼"
    return html.Th(
        dbc.Button(column.label + marker, id=sort_id(column.id), color="link", size="sm", className="p-0")
    )


def _action_button(action, row_id, disabled: bool):
    button_kwargs = dict(
        size="sm",
        color="danger" if action.is_destructive else "secondary",
        outline=not action.is_destructive,
        disabled=disabled,
        className="me-1",
    )
    if action.is_destructive:
        # The browser confirm dialog is the confirmation step
        return dcc.ConfirmDialogProvider(
            dbc.Button(action.label, **button_kwargs),
            id=row_action_id(action.id, row_id, confirmed=True),
            message=f"Are you sure you want to {action.label.lower()} this row?",
        )
    return dbc.Button(action.label, id=row_action_id(action.id, row_id), **button_kwargs)


def build_table_body(controller: TableController) -> List:
    config = controller.config
    view = controller.view

    header = html.Thead(
        html.Tr(
            [html.Th("")]
            + [_header_cell(controller, c) for c in config.columns]
        )
    )

    body_rows = []
    for view_row in view.page_rows:
        texts = visible_values(view_row, config.columns)
        cells = [
            html.Td(
                dbc.Checkbox(
                    id=row_select_id(view_row.row_id),
                    value=view_row.row_id in controller.selection,
                )
            )
        ]
        for column in config.columns:
            if column.type == ColumnType.ACTIONS:
                cells.append(
                    html.Td(
                        [
                            _action_button(a, view_row.row_id, a.is_disabled(view_row.row, None))
                            for a in view_row.actions
                        ],
                        className="text-end",
                    )
                )
            elif column.type == ColumnType.IMAGE:
                src = texts[column.id]
                cells.append(
                    html.Td(html.Img(src=src, height=48) if src else html.Span("No Image", className="text-muted"))
                )
            elif column.type == ColumnType.BADGE:
                badge = texts[column.id]
                cells.append(html.Td(dbc.Badge(badge, color="secondary" if badge in ("", "0") else "primary")))
            else:
                cells.append(html.Td(texts[column.id]))
        body_rows.append(html.Tr(cells))

    if not body_rows:
        body_rows = [html.Tr(html.Td("No rows match the current filters.", colSpan=len(config.columns) + 1))]

    bulk_bar = []
    if controller.has_selection:
        selected = controller.selected_rows
        for action in view.bulk_actions:
            disabled = action.is_disabled(None, selected)
            if action.is_destructive:
                bulk_bar.append(
                    dcc.ConfirmDialogProvider(
                        dbc.Button(action.label, color="danger", size="sm", className="me-1", disabled=disabled),
                        id=bulk_action_id(action.id, confirmed=True),
                        message=f"Are you sure you want to {action.label.lower()} ({len(selected)} rows)?",
                    )
                )
            else:
                bulk_bar.append(
                    dbc.Button(
                        action.label,
                        id=bulk_action_id(action.id),
                        color="secondary",
                        outline=True,
                        size="sm",
                        className="me-1",
                        disabled=disabled,
                    )
                )
        bulk_bar.append(html.Span(f"{len(selected)} selected", className="text-muted ms-2"))

    page_info = (
        f"Page {view.current_page} of {view.total_pages} · {view.total_filtered} rows"
        if config.pagination.enabled
        else f"{view.total_filtered} rows"
    )

    return [
        html.Div(bulk_bar, className="mb-2"),
        dbc.Table([header, html.Tbody(body_rows)], hover=True, size="sm", responsive=True),
        html.Div(page_info, className="text-muted small"),
    ]


def build_table_card(controller: TableController) -> dbc.Card:
    config = controller.config
    pagination = config.pagination
    size_options = pagination.items_per_page_options or (controller.state.items_per_page,)

    toolbar = dbc.Row(
        [
            dbc.Col(
                dbc.Input(
                    id=IDs.Control.SEARCH_INPUT,
                    type="search",
                    value=controller.state.search_term,
                    placeholder=config.search.placeholder or "Search...",
                    debounce=True,
                ),
                md=6,
                style=None if config.search.enabled else HIDDEN,
            ),
            dbc.Col(
                [
                    dbc.Button(fmt.upper(), id=export_id(fmt), color="secondary", outline=True, size="sm", className="me-1")
                    for fmt in config.export.formats
                ],
                md=6,
                className="text-end",
                style=None if config.export.enabled else HIDDEN,
            ),
        ],
        className="mb-3",
    )

    pager = dbc.Row(
        [
            dbc.Col(dbc.Checkbox(id=IDs.Control.SELECT_PAGE_CHECK, label="Select page", value=controller.is_page_selected), width="auto"),
            dbc.Col(dbc.Button("Previous", id=IDs.Control.PAGE_PREV_BTN, size="sm", color="secondary"), width="auto"),
            dbc.Col(dbc.Button("Next", id=IDs.Control.PAGE_NEXT_BTN, size="sm", color="secondary"), width="auto"),
            dbc.Col(
                dcc.Dropdown(
                    id=IDs.Control.PAGE_SIZE_SELECT,
                    options=[{"label": f"{n} / page", "value": n} for n in size_options],
                    value=controller.state.items_per_page,
                    clearable=False,
                ),
                width=2,
            ),
        ],
        className="g-2 align-items-center",
        style=None if pagination.enabled else HIDDEN,
    )

    return dbc.Card(
        [
            dbc.CardHeader(
                [
                    html.H5(config.title, className="card-title mb-0"),
                    html.Small(config.description, className="text-muted"),
                ]
            ),
            dbc.CardBody(
                [
                    toolbar,
                    dbc.Row(
                        [
                            dbc.Col(build_filter_panel(controller), md=3, style=None if config.filters else HIDDEN),
                            dbc.Col(
                                [
                                    html.Div(build_table_body(controller), id=IDs.Control.TABLE_BODY),
                                    pager,
                                ],
                                md=9 if config.filters else 12,
                            ),
                        ]
                    ),
                ]
            ),
        ]
    )
