from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import dash
from dash import Input, Output, State, dcc, exceptions

from admin_tables.core.exceptions import BulkActionCancelled, EmptySelectionError
from admin_tables.services.bulk_actions import BulkActionDispatcher, BulkResult
from admin_tables.services.export_service import export_filename
from admin_tables.ui.ids import IDs

if TYPE_CHECKING:
    from admin_tables.ui.config import AppConfig

logger = logging.getLogger(__name__)


def _confirmed(_message: str) -> bool:
    # The ConfirmDialog has already been accepted when the dispatcher runs
    return True


def archive_status(result: BulkResult) -> str:
    """Status line for a finished bulk action, e.g. "3 of 5 archived; 2 failed"."""
    status = result.summary()
    if not result.all_succeeded:
        status = f"{status}; {len(result.failed)} failed"
    if result.reload_error:
        status = f"{status}; reload failed, press Reload to refresh"
    return status


def register_action_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Bulk archive: ask first, then dispatch
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.ARCHIVE_CONFIRM, "displayed"),
        Output(IDs.Control.ARCHIVE_CONFIRM, "message"),
        Input(IDs.Control.ARCHIVE_BTN, "n_clicks"),
        State(IDs.Control.TABLE_SELECT, "value"),
        prevent_initial_call=True,
    )
    def ask_archive_confirmation(n_clicks, table_id):
        controller = ctx.controller(table_id)
        action = ctx.archive_actions.get(table_id)
        if not n_clicks or controller is None or action is None:
            raise exceptions.PreventUpdate
        with controller.lock:
            count = controller.selection.count
        message = action.confirmation_text(count)
        return True, message

    @app.callback(
        Output(IDs.Control.STATUS, "children"),
        Output(IDs.Store.TABLE_REVISION, "data"),
        Input(IDs.Control.ARCHIVE_CONFIRM, "submit_n_clicks"),
        State(IDs.Control.TABLE_SELECT, "value"),
        State(IDs.Store.TABLE_REVISION, "data"),
        prevent_initial_call=True,
    )
    def run_archive(submit_n_clicks, table_id, revision):
        controller = ctx.controller(table_id)
        action = ctx.archive_actions.get(table_id)
        if not submit_n_clicks or controller is None or action is None:
            raise exceptions.PreventUpdate

        dispatcher = BulkActionDispatcher(confirm=_confirmed)
        try:
            result = asyncio.run(controller.run_bulk_action(action, dispatcher))
        except EmptySelectionError:
            return "Select at least one row first.", dash.no_update
        except BulkActionCancelled:
            return "Archive cancelled.", dash.no_update

        return archive_status(result), (revision or 0) + 1

    # ---------------------------------------------------------
    # CSV export of the full filtered + sorted result
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.DOWNLOAD_CSV, "data"),
        Output(IDs.Control.STATUS, "children", allow_duplicate=True),
        Input(IDs.Control.EXPORT_CSV_BTN, "n_clicks"),
        State(IDs.Control.TABLE_SELECT, "value"),
        prevent_initial_call=True,
    )
    def export_csv(n_clicks, table_id):
        controller = ctx.controller(table_id)
        if not n_clicks or controller is None:
            raise exceptions.PreventUpdate

        with controller.lock:
            csv_text = controller.export_csv()
            n_rows = len(controller.export_rows())
        if csv_text is None:
            return dash.no_update, "No data to export."

        filename = export_filename(controller.table_id, "csv")
        return dcc.send_string(csv_text, filename), f"Exported {n_rows} rows to {filename}."
