from __future__ import annotations

import functools
import logging
import threading
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from admin_tables.core.comparator import toggle_sort
from admin_tables.core.date_presets import date_preset
from admin_tables.core.exceptions import ConfigError, UnknownTableError
from admin_tables.core.fields import Entity, FilterOption, TableConfig
from admin_tables.core.filter_state import FilterState, default_filter_state, require_sortable
from admin_tables.core.pagination import (
    PaginationState,
    reset_to_first_page,
    set_page,
    set_page_size,
)
from admin_tables.core.predicate import categorical_options, count_active_filters
from admin_tables.core.selection import SelectionListener, SelectionStore
from admin_tables.core.values import parse_bound
from admin_tables.core.view_composer import ComposedView, compose_view, filter_and_sort
from admin_tables.services.bulk_actions import BulkAction, BulkActionDispatcher, BulkResult
from admin_tables.services.collection_source import CollectionSource
from admin_tables.services.export_service import ExportColumn, ExportService, columns_for
from admin_tables.services.preferences import FilterStateStore, PageSizeStore
from admin_tables.services.storage import StorageBackend

logger = logging.getLogger(__name__)

ViewListener = Callable[[List[Entity], PaginationState], None]


def _locked(method):
    """Run a TableController method while holding the controller's lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.lock:
            return method(self, *args, **kwargs)

    return wrapper


class TableController:
    """
    Per-table context: owns the collection snapshot, filter/sort state,
    pagination and selection of ONE table instance. Every operation goes
    through an instance, so several tables (even of the same entity type)
    never share state.

    Every user action mutates one piece of state and then recomposes the view
    from the unfiltered collection.

    An instance is shared by every caller that holds it. In the bundled Dash
    app that means every browser session and every request thread sees the
    same filters and selection. All mutations and compositions run under
    `lock` (re-entrant); callers that read several properties for one render
    should hold it too.
    """

    def __init__(
        self,
        config: TableConfig,
        source: CollectionSource,
        storage: StorageBackend,
        *,
        on_view_changed: Optional[ViewListener] = None,
        on_selection_changed: Optional[SelectionListener] = None,
        export_service: Optional[ExportService] = None,
    ) -> None:
        self.config = config
        self.source = source
        self.lock = threading.RLock()
        self.selection = SelectionStore(on_selection_changed)
        self._filter_store = FilterStateStore(storage)
        self._page_size_store = PageSizeStore(storage)
        self._export_service = export_service or ExportService()
        self._on_view_changed = on_view_changed

        self._collection: Tuple[Entity, ...] = ()
        self._state: FilterState = default_filter_state(config)
        self._pagination = PaginationState(page_size=config.default_page_size)
        self._view: Optional[ComposedView] = None

    # ---------------------------------------------------------------------
    # Read-only accessors
    # ---------------------------------------------------------------------
    @property
    def table_id(self) -> str:
        return self.config.table_id

    @property
    def filter_state(self) -> FilterState:
        return self._state

    @property
    def pagination(self) -> PaginationState:
        return self._pagination

    @property
    def collection(self) -> Tuple[Entity, ...]:
        return self._collection

    @property
    @_locked
    def view(self) -> ComposedView:
        if self._view is None:
            return self._recompose()
        return self._view

    @_locked
    def visible_ids(self) -> List[Hashable]:
        return [self.config.entity_id(row) for row in self.view.visible_rows]

    @_locked
    def selected_ids(self) -> List[Hashable]:
        return self.selection.selected_ids()

    @_locked
    def filter_options(self) -> Dict[str, List[FilterOption]]:
        return categorical_options(self._collection, self.config)

    def active_filter_count(self) -> int:
        return count_active_filters(self._state)

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------
    @_locked
    def mount(self) -> ComposedView:
        """Seed preferences from storage (or defaults) and load the collection."""
        self._state = self._filter_store.load(self.config)
        self._pagination = PaginationState(
            current_page=1,
            page_size=self._page_size_store.load(self.config),
        )
        logger.info(
            "Mounted table",
            extra={"table_id": self.table_id, "filter_state": self._state.to_dict()},
        )
        return self.reload()

    @_locked
    def reload(self) -> ComposedView:
        """
        Fetch a fresh snapshot. Clears the selection, keeps filter/sort state.
        The selection is cleared before fetching, so a failed fetch still
        leaves no ids pointing at the old snapshot.
        """
        self.selection.clear()
        rows = self.source.fetch_collection()
        return self.replace_collection(rows)

    @_locked
    def replace_collection(self, rows: Iterable[Entity]) -> ComposedView:
        # The snapshot is replaced wholesale, never patched in place
        self._collection = tuple(rows)
        self.selection.clear()
        return self._recompose()

    # ---------------------------------------------------------------------
    # Filter / sort mutations
    # ---------------------------------------------------------------------
    def set_search(self, text: Optional[str]) -> ComposedView:
        return self._apply_state(lambda state: state.with_changes(search_text=text or ""))

    def set_categorical(self, field_name: str, values: Iterable[Any]) -> ComposedView:
        self._require_categorical(field_name)
        return self._apply_state(lambda state: state.with_category(field_name, values or ()))

    def toggle_category(self, field_name: str, value: Any) -> ComposedView:
        self._require_categorical(field_name)

        def toggled(state: FilterState) -> FilterState:
            selected = set(state.selected(field_name))
            selected.symmetric_difference_update({str(value)})
            return state.with_category(field_name, selected)

        return self._apply_state(toggled)

    def set_date_range(self, date_from: Any = None, date_to: Any = None) -> ComposedView:
        if self.config.date_field is None:
            raise ConfigError(f"Table '{self.table_id}' has no date field")
        return self._apply_state(
            lambda state: state.with_changes(date_from=parse_bound(date_from), date_to=parse_bound(date_to))
        )

    def apply_date_preset(self, preset: str, today: Optional[date] = None) -> ComposedView:
        start, end = date_preset(preset, today)
        return self.set_date_range(start, end)

    def sort_by(self, column: str) -> ComposedView:
        """Header click semantics (flip active column, new column ascending)."""
        return self._apply_state(lambda state: toggle_sort(state, column, self.config))

    def set_sort(self, column: str, direction: str) -> ComposedView:
        require_sortable(self.config, column)
        return self._apply_state(lambda state: state.with_changes(sort_column=column, sort_direction=direction))

    def clear_filters(self) -> ComposedView:
        return self._apply_state(lambda state: default_filter_state(self.config))

    @_locked
    def _apply_state(self, change: Callable[[FilterState], FilterState]) -> ComposedView:
        # The change is applied to the state current under the lock
        new_state = change(self._state)
        if new_state == self._state:
            return self.view

        filters_changed = not new_state.filters_equal(self._state)
        self._state = new_state
        self._filter_store.save(self.config, new_state)

        # A page index means nothing against a different result set
        self._pagination = reset_to_first_page(self._pagination)
        if filters_changed and self.config.clear_selection_on_filter_change:
            self.selection.clear()
        return self._recompose()

    def _require_categorical(self, field_name: str) -> None:
        if self.config.categorical(field_name) is None:
            raise ConfigError(f"'{field_name}' is not a categorical filter of table '{self.table_id}'")

    # ---------------------------------------------------------------------
    # Pagination
    # ---------------------------------------------------------------------
    @_locked
    def go_to_page(self, page: int) -> ComposedView:
        self._pagination = set_page(self.view.pagination, page)
        return self._recompose()

    @_locked
    def set_page_size(self, size: int) -> ComposedView:
        self._pagination = set_page_size(self.view.pagination, int(size), self.config.page_size_options)
        self._page_size_store.save(self.config, self._pagination.page_size)
        return self._recompose()

    # ---------------------------------------------------------------------
    # Selection
    # ---------------------------------------------------------------------
    def _known_ids(self) -> List[Hashable]:
        return [self.config.entity_id(row) for row in self._collection]

    @_locked
    def toggle_row(self, entity_id: Hashable) -> bool:
        if entity_id not in set(self._known_ids()):
            raise KeyError(f"Row {entity_id!r} is not in table '{self.table_id}'")
        return self.selection.toggle(entity_id)

    @_locked
    def select_visible(self) -> None:
        """Header checkbox: select the rows on the current page only."""
        self.selection.select_all(self.visible_ids())

    @_locked
    def select_all_filtered(self) -> None:
        """Select every row matching the filters, across all pages."""
        self.selection.select_all(self.config.entity_id(row) for row in self.export_rows())

    @_locked
    def clear_selection(self) -> None:
        self.selection.clear()

    @_locked
    def apply_page_selection(self, checked_ids: Iterable[Hashable]) -> None:
        """
        Sync the row checkboxes of the current page: visible rows in
        `checked_ids` become selected, the other visible rows deselected.
        Selections made on other pages are left alone.
        """
        checked = set(checked_ids or ())
        for entity_id in self.visible_ids():
            self.selection.set_selected(entity_id, entity_id in checked)

    # ---------------------------------------------------------------------
    # Export / bulk actions
    # ---------------------------------------------------------------------
    @_locked
    def export_rows(self) -> List[Entity]:
        """The full filtered and sorted result, never just the current page."""
        return filter_and_sort(self._collection, self._state, self.config)

    def export_csv(self, columns: Optional[Sequence[ExportColumn]] = None) -> Optional[str]:
        return self._export_service.to_csv(self.export_rows(), columns or columns_for(self.config))

    def export_json(self) -> Optional[str]:
        return self._export_service.to_json(self.export_rows())

    async def run_bulk_action(self, action: BulkAction, dispatcher: BulkActionDispatcher) -> BulkResult:
        """
        Dispatch `action` over a snapshot of the selected ids, then reload the
        table from the source regardless of partial failure. The selection is
        always cleared afterwards. A failed reload is logged and reported on
        the result as `reload_error`; the dispatch outcome is still returned.

        The lock is not held while the action runs.
        """
        result = await dispatcher.run(action, self.selected_ids())
        try:
            self.reload()
        except Exception as e:
            logger.exception(
                "Reload after bulk action failed",
                extra={"table_id": self.table_id, "action": action.action_id},
            )
            result = replace(result, reload_error=str(e) or type(e).__name__)
        return result

    # ---------------------------------------------------------------------
    # Composition
    # ---------------------------------------------------------------------
    @_locked
    def _recompose(self) -> ComposedView:
        view = compose_view(self._collection, self._state, self.config, self._pagination)
        self._pagination = view.pagination
        self._view = view
        if self._on_view_changed is not None:
            self._on_view_changed(view.visible_rows, view.pagination)
        return view


class TableRegistry(Mapping[str, TableController]):
    """Controllers by table id."""

    def __init__(self) -> None:
        self._controllers: Dict[str, TableController] = {}

    def register(self, controller: TableController) -> TableController:
        if controller.table_id in self._controllers:
            raise ValueError(f"Table '{controller.table_id}' already registered")
        self._controllers[controller.table_id] = controller
        return controller

    def __getitem__(self, table_id: str) -> TableController:
        try:
            return self._controllers[table_id]
        except KeyError:
            raise UnknownTableError(f"Table '{table_id}' not found") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._controllers)

    def __len__(self) -> int:
        return len(self._controllers)
