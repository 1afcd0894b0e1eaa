from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from admin_tables.config.model import GlobalConfig, TableDefinition
from admin_tables.core.exceptions import ConfigError
from admin_tables.core.fields import TableConfig

logger = logging.getLogger(__name__)


def _resolve_dir(root: Path, raw: Optional[str], default: str) -> Path:
    path = Path(raw) if raw else Path(default)
    if path.is_absolute():
        return path
    return (root / path).resolve()


def load_global_config(root: Path) -> GlobalConfig:
    """
    Load configuration from a directory using the multi-file layout:

        <root>/global.json
        <root>/tables/*.json
    """
    root = Path(root)
    logger.info("Loading global config", extra={"config_root": str(root)})

    global_path = root / "global.json"
    if global_path.is_file():
        with global_path.open() as f:
            raw_global: Dict[str, Any] = json.load(f)
    else:
        logger.warning(f"global.json not found at {global_path}; using defaults")
        raw_global = {}

    tables_dir = root / "tables"
    tables: List[TableDefinition] = []

    if tables_dir.is_dir():
        logger.info(f"Scanning for table configurations in: {tables_dir}")
        files = sorted(tables_dir.glob("*.json"))
        if not files:
            logger.warning(f"No .json files found in {tables_dir}")

        for idx, config_file in enumerate(files):
            # macOS 'Apple Double' files
            if config_file.name.startswith("._"):
                continue
            try:
                with config_file.open() as f:
                    raw = json.load(f)
                tables.append(TableDefinition.from_raw(raw, source_path=config_file, index=idx))
            except (OSError, ValueError, ConfigError) as e:
                logger.error(f"Failed to load {config_file.name}: {e}")
    else:
        logger.warning(f"Tables directory not found at: {tables_dir}")

    return GlobalConfig(
        ui_title=raw_global.get("ui_title", "Admin Tables"),
        default_table=raw_global.get("default_table"),
        tables=tables,
        data_root=_resolve_dir(root, raw_global.get("data_root"), "data"),
        state_root=_resolve_dir(root, raw_global.get("state_root"), "state"),
    )


def load_table_registry(root: Path) -> Tuple[GlobalConfig, Dict[str, Tuple[TableDefinition, TableConfig]]]:
    """
    Load global config + one validated TableConfig per table file.

    Files whose table config fails validation are skipped with an error log.
    Duplicate table ids are a configuration error.
    """
    global_config = load_global_config(root)

    by_id: Dict[str, Tuple[TableDefinition, TableConfig]] = {}
    duplicates: List[str] = []

    for definition in global_config.tables:
        try:
            table_config = definition.to_table_config()
        except (ConfigError, KeyError, TypeError) as e:
            name = definition.source_path.name if definition.source_path else definition.table_id
            logger.error(f"Invalid table config {name}: {e}")
            continue
        if table_config.table_id in by_id:
            duplicates.append(table_config.table_id)
            continue
        by_id[table_config.table_id] = (definition, table_config)

    if duplicates:
        raise ConfigError(f"Duplicate table ids in config: {sorted(set(duplicates))}")

    if global_config.default_table and global_config.default_table not in by_id:
        logger.warning(
            f"default_table '{global_config.default_table}' is not configured; falling back to the first table"
        )
        global_config.default_table = None

    logger.info(
        "Table registry loaded",
        extra={
            "config_root": str(root),
            "n_tables": len(by_id),
            "table_ids": sorted(by_id.keys()),
        },
    )
    return global_config, by_id
