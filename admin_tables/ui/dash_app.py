from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import dash_bootstrap_components as dbc
from dash import Dash

from admin_tables.config.loader import load_table_registry
from admin_tables.config.model import TableDefinition
from admin_tables.services.bulk_actions import BulkAction, archive_action
from admin_tables.services.collection_source import JsonFileCollectionSource
from admin_tables.services.storage import LocalFileSystemStorage
from admin_tables.services.table_service import TableController, TableRegistry
from admin_tables.ui.callbacks.callbacks_actions import register_action_callbacks
from admin_tables.ui.callbacks.callbacks_table import register_table_callbacks
from admin_tables.ui.config import AppConfig
from admin_tables.ui.layout.build_layout import build_layout

logger = logging.getLogger(__name__)


def _archive_action(definition: TableDefinition, source: JsonFileCollectionSource) -> Optional[BulkAction]:
    changes = definition.archive_changes
    if not changes:
        return None

    async def archive_one(entity_id):
        await source.update_entity(entity_id, changes)

    return archive_action(archive_one)


def build_app_config(config_root: Path | str) -> AppConfig:
    """
    Load config, then build and mount one controller per configured table.
    """
    config_root = Path(config_root)

    # 1) Load Config
    global_config, tables = load_table_registry(config_root)
    if not tables:
        raise RuntimeError("No table configs were loaded from config")

    # 2) Storage: one backend for data files, one for persisted preferences
    data_storage = LocalFileSystemStorage(global_config.data_root)
    state_storage = LocalFileSystemStorage(global_config.state_root)

    # 3) Controllers
    registry = TableRegistry()
    archive_actions = {}
    for table_id, (definition, table_config) in tables.items():
        source = JsonFileCollectionSource(data_storage, definition.source, id_field=table_config.id_field.name)
        controller = registry.register(TableController(table_config, source, state_storage))
        controller.mount()

        action = _archive_action(definition, source)
        if action is not None:
            archive_actions[table_id] = action

    # 4) Default table
    default_table = global_config.default_table or next(iter(tables))

    ctx = AppConfig(
        config_root=config_root,
        global_config=global_config,
        registry=registry,
        archive_actions=archive_actions,
        default_table=default_table,
    )
    ctx.validate()
    return ctx


def create_dash_app(config_root: Path | str | None = None) -> Dash:
    if config_root is None:
        config_root = os.getenv("ADMIN_TABLES_CONFIG_ROOT", "config")

    ctx = build_app_config(config_root)

    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
        # Table panels are swapped at runtime
        suppress_callback_exceptions=True,
    )
    app.title = ctx.global_config.ui_title

    app.layout = build_layout(ctx)

    # Register callbacks
    register_table_callbacks(app, ctx)
    register_action_callbacks(app, ctx)

    logger.info(
        "Dash app created",
        extra={"config_root": str(config_root), "table_ids": sorted(ctx.registry)},
    )
    return app
