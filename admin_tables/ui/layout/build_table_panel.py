from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dash_table, dcc, html

from admin_tables.core.date_presets import DATE_PRESETS
from admin_tables.services.table_service import TableController
from admin_tables.ui.helpers import (
    date_value,
    dropdown_options,
    sort_by_prop,
    table_columns,
)
from admin_tables.ui.ids import IDs, categorical_filter_id, date_preset_id

PRESET_LABELS = {
    "today": "Today",
    "week": "This week",
    "month": "This month",
    "last30": "Last 30 days",
}


def build_filter_card(controller: TableController) -> dbc.Card:
    config = controller.config
    state = controller.filter_state
    options = controller.filter_options()

    categorical_blocks = [
        html.Div(
            [
                html.Label(spec.label, className="form-label"),
                dcc.Dropdown(
                    id=categorical_filter_id(spec.name),
                    options=dropdown_options(options.get(spec.name, [])),
                    value=sorted(state.selected(spec.name)),
                    multi=True,
                    placeholder=f"All {spec.label.lower()}",
                    className="mb-3",
                ),
            ]
        )
        for spec in config.categorical_fields
    ]

    # Rendered for every table so the callbacks always find the picker
    date_block = html.Div(
        [
            html.Label(config.date_field.label if config.date_field else "Date", className="form-label"),
            dcc.DatePickerRange(
                id=IDs.Control.DATE_RANGE,
                start_date=date_value(state.date_from),
                end_date=date_value(state.date_to),
                clearable=True,
                display_format="YYYY-MM-DD",
                className="mb-2",
            ),
            dbc.ButtonGroup(
                [
                    dbc.Button(
                        PRESET_LABELS.get(preset, preset),
                        id=date_preset_id(preset),
                        size="sm",
                        color="secondary",
                        outline=True,
                    )
                    for preset in DATE_PRESETS
                ],
                className="mb-3 d-flex flex-wrap",
            ),
        ],
        style={} if config.date_field is not None else {"display": "none"},
    )

    if config.search_fields:
        search_placeholder = "Search " + ", ".join(f.label.lower() for f in config.search_fields)
    else:
        search_placeholder = "Search"

    return dbc.Card(
        [
            dbc.CardHeader(
                [
                    html.Span("Filters", className="fw-semibold me-2"),
                    dbc.Badge(id=IDs.Control.ACTIVE_FILTER_BADGE, color="primary", pill=True),
                ]
            ),
            dbc.CardBody(
                [
                    html.Label("Search", className="form-label"),
                    dcc.Input(
                        id=IDs.Control.SEARCH_INPUT,
                        type="search",
                        value=state.search_text,
                        debounce=True,
                        placeholder=search_placeholder,
                        className="form-control mb-3",
                    ),
                    *categorical_blocks,
                    date_block,
                    dbc.Button(
                        "Clear filters",
                        id=IDs.Control.CLEAR_FILTERS_BTN,
                        color="link",
                        size="sm",
                        className="px-0",
                    ),
                ]
            ),
        ],
        className="atb-sidebar",
    )


def build_table_card(controller: TableController, can_archive: bool = False) -> dbc.Card:
    config = controller.config

    toolbar = dbc.Row(
        [
            dbc.Col(
                dbc.ButtonGroup(
                    [
                        dbc.Button("Select page", id=IDs.Control.SELECT_PAGE_BTN, size="sm", outline=True, color="secondary"),
                        dbc.Button("Select all matching", id=IDs.Control.SELECT_ALL_BTN, size="sm", outline=True, color="secondary"),
                        dbc.Button("Clear selection", id=IDs.Control.CLEAR_SELECTION_BTN, size="sm", outline=True, color="secondary"),
                    ]
                ),
                width="auto",
            ),
            dbc.Col(html.Small(id=IDs.Control.SELECTION_LABEL, className="text-muted"), className="align-self-center"),
            dbc.Col(
                [
                    dbc.Button(
                        "Archive selected",
                        id=IDs.Control.ARCHIVE_BTN,
                        size="sm",
                        color="warning",
                        disabled=True,
                        className="me-2",
                        style={} if can_archive else {"display": "none"},
                    ),
                    dbc.Button("Export CSV", id=IDs.Control.EXPORT_CSV_BTN, size="sm", color="primary", className="me-2"),
                    dbc.Button("Reload", id=IDs.Control.RELOAD_BTN, size="sm", color="secondary"),
                ],
                width="auto",
            ),
        ],
        className="g-2 mb-2",
    )

    footer = dbc.Row(
        [
            dbc.Col(html.Small(id=IDs.Control.RANGE_LABEL, className="text-muted"), className="align-self-center"),
            dbc.Col(html.Div(id=IDs.Control.PAGER), width="auto"),
            dbc.Col(
                dcc.Dropdown(
                    id=IDs.Control.PAGE_SIZE_SELECT,
                    options=[{"label": f"{size} / page", "value": size} for size in config.page_size_options],
                    value=controller.pagination.page_size,
                    clearable=False,
                    style={"minWidth": "120px"},
                ),
                width="auto",
            ),
        ],
        className="g-2 mt-2",
    )

    return dbc.Card(
        [
            dbc.CardHeader(html.Span(config.title or config.table_id, id=IDs.Control.TABLE_TITLE, className="fw-semibold")),
            dbc.CardBody(
                [
                    toolbar,
                    dash_table.DataTable(
                        id=IDs.Control.DATA_TABLE,
                        columns=table_columns(config),
                        data=[],
                        row_selectable="multi",
                        selected_row_ids=[],
                        sort_action="custom",
                        sort_mode="single",
                        sort_by=sort_by_prop(controller.filter_state, config),
                        page_action="none",
                        style_table={"overflowX": "auto"},
                        style_cell={"textAlign": "left", "padding": "6px"},
                        style_header={"fontWeight": "600"},
                    ),
                    html.Div(id=IDs.Control.EMPTY_STATE, className="text-muted text-center py-4"),
                    footer,
                    html.Div(id=IDs.Control.STATUS, className="small mt-2"),
                    dcc.ConfirmDialog(id=IDs.Control.ARCHIVE_CONFIRM),
                    dcc.Download(id=IDs.Control.DOWNLOAD_CSV),
                ]
            ),
        ],
        className="atb-table-card",
    )


def build_table_panel(controller: TableController, can_archive: bool = False) -> dbc.Row:
    return dbc.Row(
        [
            dbc.Col(build_filter_card(controller), md=3, className="mt-3"),
            dbc.Col(build_table_card(controller, can_archive=can_archive), md=9, className="mt-3"),
        ],
        className="gx-3",
    )
