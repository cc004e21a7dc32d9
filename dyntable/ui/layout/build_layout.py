from __future__ import annotations

from typing import TYPE_CHECKING

import dash_bootstrap_components as dbc
from dash import dcc, html

from dyntable.ui.ids import IDs
from dyntable.ui.layout.build_navbar import build_navbar
from dyntable.ui.layout.build_table_card import build_table_card

if TYPE_CHECKING:
    from dyntable.ui.context import AppContext


def build_layout(ctx: "AppContext"):
    configs = [c.config for c in ctx.controllers.values()]
    navbar = build_navbar(configs, ctx.ui_title, ctx.default_table_id)

    controller = ctx.controller(ctx.default_table_id)
    if controller is None:
        card = dbc.Card(dbc.CardBody("No tables configured."))
    else:
        card = build_table_card(controller)

    return dbc.Container(
        fluid=True,
        className="dyn-root",
        children=[
            navbar,

            # App-level helpers
            dcc.Download(id=IDs.Control.DOWNLOAD),
            dbc.Toast(
                id=IDs.Control.STATUS_TOAST,
                header="Table",
                is_open=False,
                dismissable=True,
                duration=4000,
                style={"position": "fixed", "top": 90, "right": 20, "zIndex": 1050},
            ),

            dbc.Row(
                dbc.Col(html.Div(card, id=IDs.Control.TABLE_CARD), md=12, className="mt-3"),
            ),
        ],
    )
