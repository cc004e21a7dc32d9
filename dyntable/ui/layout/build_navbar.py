from __future__ import annotations

from typing import List, Optional

import dash_bootstrap_components as dbc
from dash import dcc, html

from dyntable.core.schema import TableConfig
from dyntable.ui.ids import IDs


def build_navbar(
    configs: List[TableConfig],
    title: str,
    default_table_id: Optional[str],
) -> dbc.Navbar:
    table_options = [{"label": cfg.title, "value": cfg.id} for cfg in configs]

    return dbc.Navbar(
        dbc.Container(
            fluid=True,
            children=[
                html.Div(
                    [
                        html.H2(title, className="mb-0"),
                        html.Small("Configurable data tables", className="text-muted"),
                    ],
                    className="d-flex flex-column justify-content-center",
                ),
                html.Div(
                    [
                        html.Div("Active Table", className="navbar-table-title"),
                        dcc.Dropdown(
                            id=IDs.Control.TABLE_SELECT,
                            options=table_options,
                            value=default_table_id,
                            clearable=False,
                            placeholder="Select table",
                            className="mt-1",
                        ),
                    ],
                    className="ms-auto",
                    style={
                        "minWidth": "280px",
                        "maxWidth": "380px",
                        "marginRight": "24px",
                    },
                ),
            ],
        ),
        dark=False,
        className="shadow-sm dyn-navbar",
    )
