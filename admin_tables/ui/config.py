from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from admin_tables.config.model import GlobalConfig
from admin_tables.services.bulk_actions import BulkAction
from admin_tables.services.table_service import TableController, TableRegistry


@dataclass
class AppConfig:
    config_root: Path
    global_config: GlobalConfig
    registry: TableRegistry = field(default_factory=TableRegistry)
    archive_actions: Dict[str, BulkAction] = field(default_factory=dict)
    default_table: Optional[str] = None

    def controller(self, table_id: Optional[str]) -> Optional[TableController]:
        if not table_id or table_id not in self.registry:
            return None
        return self.registry[table_id]

    def validate(self) -> None:
        """Ensure at least one table is registered before the app starts."""
        if not len(self.registry):
            raise RuntimeError("AppConfig.registry has no tables.")
        if self.default_table is not None and self.default_table not in self.registry:
            raise RuntimeError(f"AppConfig.default_table '{self.default_table}' is not registered.")
