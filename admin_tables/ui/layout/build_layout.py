from __future__ import annotations

from typing import TYPE_CHECKING

import dash_bootstrap_components as dbc
from dash import dcc, html

from admin_tables.ui.ids import IDs
from admin_tables.ui.layout.build_table_panel import build_table_panel

if TYPE_CHECKING:
    from admin_tables.ui.config import AppConfig


def build_navbar(ctx: AppConfig) -> dbc.Navbar:
    table_options = [
        {"label": ctx.registry[table_id].config.title or table_id, "value": table_id}
        for table_id in ctx.registry
    ]
    return dbc.Navbar(
        dbc.Container(
            [
                dbc.NavbarBrand(ctx.global_config.ui_title, className="fw-semibold"),
                dcc.Dropdown(
                    id=IDs.Control.TABLE_SELECT,
                    options=table_options,
                    value=ctx.default_table,
                    clearable=False,
                    style={"minWidth": "220px"},
                ),
            ],
            fluid=True,
        ),
        color="dark",
        dark=True,
        className="atb-navbar",
    )


def build_layout(ctx: AppConfig):
    controller = ctx.controller(ctx.default_table)
    if controller is None:
        panel = dbc.Card(
            dbc.CardBody("No tables configured. Add a table definition under config/tables/."),
            className="mt-3",
        )
    else:
        panel = build_table_panel(controller, can_archive=controller.table_id in ctx.archive_actions)

    return dbc.Container(
        fluid=True,
        className="atb-root",
        children=[
            build_navbar(ctx),
            # Bumped after every bulk action so the table re-renders from the reloaded snapshot
            dcc.Store(id=IDs.Store.TABLE_REVISION, data=0),
            html.Div(id=IDs.Control.TABLE_PANEL, children=panel),
        ],
    )
