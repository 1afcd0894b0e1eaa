from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

import dash
import dash_bootstrap_components as dbc
from dash import ALL, Input, Output, State, exceptions

from admin_tables.core.exceptions import AdminTablesError
from admin_tables.core.predicate import count_active_filters
from admin_tables.core.pagination import range_label
from admin_tables.services.table_service import TableController
from admin_tables.ui.helpers import (
    apply_sort_by,
    date_value,
    pager_items,
    selection_label,
    sort_by_prop,
    table_records,
)
from admin_tables.ui.ids import IDs, page_button_id
from admin_tables.ui.layout.build_table_panel import build_table_panel

if TYPE_CHECKING:
    from admin_tables.ui.config import AppConfig

logger = logging.getLogger(__name__)

CLICK_ONLY = {
    IDs.Control.CLEAR_FILTERS_BTN,
    IDs.Control.RELOAD_BTN,
    IDs.Control.SELECT_PAGE_BTN,
    IDs.Control.SELECT_ALL_BTN,
    IDs.Control.CLEAR_SELECTION_BTN,
}


def apply_event(
    controller: TableController,
    trigger: Any,
    value: Any,
    date_range: Tuple[Optional[str], Optional[str]] = (None, None),
) -> None:
    """
    Route one UI event to the matching TableController operation.

    `trigger` is the Dash triggered id (a string, or a dict for
    pattern-matching components); `value` is the triggered property value.
    Invalid input is logged and leaves the table state unchanged.
    """
    if trigger is None:
        return

    try:
        if isinstance(trigger, Mapping):
            kind = trigger.get("type")
            if kind == IDs.Pattern.CATEGORICAL:
                controller.set_categorical(trigger["field"], value or [])
            elif kind == IDs.Pattern.DATE_PRESET and value:
                controller.apply_date_preset(trigger["preset"])
            elif kind == IDs.Pattern.PAGE_BUTTON and value:
                controller.go_to_page(int(trigger["page"]))
            return

        if trigger in CLICK_ONLY and not value:
            # Freshly rendered button, not a click
            return

        if trigger == IDs.Control.SEARCH_INPUT:
            controller.set_search(value)
        elif trigger == IDs.Control.DATE_RANGE:
            if controller.config.date_field is not None:
                controller.set_date_range(*date_range)
        elif trigger == IDs.Control.DATA_TABLE + ".sort_by":
            apply_sort_by(controller, value)
        elif trigger == IDs.Control.DATA_TABLE + ".selected_row_ids":
            controller.apply_page_selection(value or [])
        elif trigger == IDs.Control.PAGE_SIZE_SELECT:
            if value:
                controller.set_page_size(int(value))
        elif trigger == IDs.Control.CLEAR_FILTERS_BTN:
            controller.clear_filters()
        elif trigger == IDs.Control.RELOAD_BTN:
            controller.reload()
        elif trigger == IDs.Control.SELECT_PAGE_BTN:
            controller.select_visible()
        elif trigger == IDs.Control.SELECT_ALL_BTN:
            controller.select_all_filtered()
        elif trigger == IDs.Control.CLEAR_SELECTION_BTN:
            controller.clear_selection()
    except (AdminTablesError, ValueError, KeyError) as e:
        logger.warning(
            "Ignored invalid table event",
            extra={"table_id": controller.table_id, "trigger": str(trigger), "error": str(e)},
        )


def _trigger_key() -> Tuple[Any, Any]:
    """(trigger, value) for the current callback; DataTable props are qualified by property name."""
    triggered = dash.ctx.triggered
    if not triggered or triggered[0]["prop_id"] == ".":
        return None, None
    trigger = dash.ctx.triggered_id
    value = triggered[0]["value"]
    if trigger == IDs.Control.DATA_TABLE:
        prop = triggered[0]["prop_id"].rsplit(".", 1)[-1]
        trigger = f"{IDs.Control.DATA_TABLE}.{prop}"
    return trigger, value


def _pager(controller: TableController) -> dbc.ButtonGroup:
    buttons = []
    for item in pager_items(controller.view.pagination):
        if item["page"] is None:
            buttons.append(dbc.Button(item["label"], size="sm", color="secondary", outline=True, disabled=True))
            continue
        buttons.append(
            dbc.Button(
                item["label"],
                id=page_button_id(item["page"], item["role"]),
                size="sm",
                color="primary",
                outline=not item["active"],
            )
        )
    return dbc.ButtonGroup(buttons)


def register_table_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Table picker: swap the whole panel for the chosen table
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.TABLE_PANEL, "children"),
        Input(IDs.Control.TABLE_SELECT, "value"),
        prevent_initial_call=True,
    )
    def switch_table(table_id: str | None):
        controller = ctx.controller(table_id)
        if controller is None:
            raise exceptions.PreventUpdate
        logger.info("Switched table", extra={"table_id": table_id})
        return build_table_panel(controller, can_archive=table_id in ctx.archive_actions)

    # ---------------------------------------------------------
    # One event in, one recomposed view out
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.DATA_TABLE, "data"),
        Output(IDs.Control.DATA_TABLE, "sort_by"),
        Output(IDs.Control.DATA_TABLE, "selected_row_ids"),
        Output(IDs.Control.SEARCH_INPUT, "value"),
        Output({"type": IDs.Pattern.CATEGORICAL, "field": ALL}, "value"),
        Output(IDs.Control.DATE_RANGE, "start_date"),
        Output(IDs.Control.DATE_RANGE, "end_date"),
        Output(IDs.Control.PAGE_SIZE_SELECT, "value"),
        Output(IDs.Control.PAGER, "children"),
        Output(IDs.Control.RANGE_LABEL, "children"),
        Output(IDs.Control.EMPTY_STATE, "children"),
        Output(IDs.Control.ACTIVE_FILTER_BADGE, "children"),
        Output(IDs.Control.SELECTION_LABEL, "children"),
        Output(IDs.Control.ARCHIVE_BTN, "disabled"),
        Input(IDs.Control.SEARCH_INPUT, "value"),
        Input({"type": IDs.Pattern.CATEGORICAL, "field": ALL}, "value"),
        Input(IDs.Control.DATE_RANGE, "start_date"),
        Input(IDs.Control.DATE_RANGE, "end_date"),
        Input({"type": IDs.Pattern.DATE_PRESET, "preset": ALL}, "n_clicks"),
        Input(IDs.Control.DATA_TABLE, "sort_by"),
        Input(IDs.Control.DATA_TABLE, "selected_row_ids"),
        Input(IDs.Control.PAGE_SIZE_SELECT, "value"),
        Input({"type": IDs.Pattern.PAGE_BUTTON, "page": ALL, "role": ALL}, "n_clicks"),
        Input(IDs.Control.CLEAR_FILTERS_BTN, "n_clicks"),
        Input(IDs.Control.RELOAD_BTN, "n_clicks"),
        Input(IDs.Control.SELECT_PAGE_BTN, "n_clicks"),
        Input(IDs.Control.SELECT_ALL_BTN, "n_clicks"),
        Input(IDs.Control.CLEAR_SELECTION_BTN, "n_clicks"),
        Input(IDs.Store.TABLE_REVISION, "data"),
        State(IDs.Control.TABLE_SELECT, "value"),
    )
    def render_table(
        _search, _categorical, start_date, end_date, _presets, _sort_by, _selected,
        _page_size, _pages, _clear, _reload, _select_page, _select_all, _clear_sel,
        _revision, table_id,
    ):
        controller = ctx.controller(table_id)
        if controller is None:
            raise exceptions.PreventUpdate

        trigger, value = _trigger_key()
        # One lock for the event and the read-back, so a concurrent request
        # cannot change the table between the two
        with controller.lock:
            apply_event(controller, trigger, value, date_range=(start_date, end_date))

            view = controller.view
            state = controller.filter_state
            categorical_outputs = dash.ctx.outputs_list[4]
            n_active = count_active_filters(state)
            visible = set(controller.visible_ids())

            return (
                table_records(controller),
                sort_by_prop(state, controller.config),
                [i for i in controller.selected_ids() if i in visible],
                state.search_text,
                [sorted(state.selected(o["id"]["field"])) for o in categorical_outputs],
                date_value(state.date_from),
                date_value(state.date_to),
                view.pagination.page_size,
                _pager(controller),
                range_label(view.pagination),
                view.empty_message or "",
                str(n_active) if n_active else "",
                selection_label(controller),
                controller.selection.count == 0,
            )
