"""
Stateful collaborators around the core engine: storage, preference stores,
collection sources, bulk actions, export and the per-table controller.
"""

from .bulk_actions import (
    BulkAction,
    BulkActionDispatcher,
    BulkResult,
    archive_action,
    delete_action,
    status_update_action,
)
from .collection_source import CollectionSource, JsonFileCollectionSource, StaticCollectionSource
from .export_service import ExportColumn, ExportService, export_filename
from .preferences import FilterStateStore, PageSizeStore
from .storage import InMemoryStorage, LocalFileSystemStorage, StorageBackend
from .table_service import TableController, TableRegistry
