"""
Config package for admin_tables.

Responsible for:
- config models (GlobalConfig, TableDefinition)
- loading the multi-file JSON layout (global.json + tables/*.json)
"""

from .model import GlobalConfig, TableDefinition
from .loader import load_global_config, load_table_registry
