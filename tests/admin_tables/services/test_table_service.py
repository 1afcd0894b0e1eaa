from __future__ import annotations

import json
import threading
from datetime import date

import pytest

from admin_tables.core.exceptions import ConfigError, EmptySelectionError, UnknownTableError
from admin_tables.core.fields import CategoricalFilterSpec, FieldSpec, TableConfig
from admin_tables.services.bulk_actions import BulkAction, BulkActionDispatcher, archive_action
from admin_tables.services.collection_source import StaticCollectionSource
from admin_tables.services.storage import InMemoryStorage
from admin_tables.services.table_service import TableController, TableRegistry


def _make_config(**overrides) -> TableConfig:
    kwargs = dict(
        table_id="leads",
        storage_key="leads_filters",
        search_fields=(FieldSpec("name"),),
        categorical_fields=(CategoricalFilterSpec("status"),),
        date_field=FieldSpec("created_at", kind="date"),
        sortable_columns=(FieldSpec("name"), FieldSpec("value", kind="number")),
        default_sort_column="name",
        default_sort_direction="asc",
        page_size_options=(10, 25, 50),
        default_page_size=25,
    )
    kwargs.update(overrides)
    return TableConfig(**kwargs)


def _make_rows(n: int = 57):
    return [
        {
            "id": i,
            "name": f"Lead {i:02d}",
            "status": "new" if i % 2 else "contacted",
            "value": i * 100,
            "created_at": f"2026-09-{(i % 28) + 1:02d}T12:00:00Z",
        }
        for i in range(1, n + 1)
    ]


def _make_controller(rows=None, storage=None, **config_overrides):
    views = []
    selections = []
    controller = TableController(
        _make_config(**config_overrides),
        StaticCollectionSource(_make_rows() if rows is None else rows),
        storage or InMemoryStorage(),
        on_view_changed=lambda rows, pagination: views.append((len(rows), pagination)),
        on_selection_changed=selections.append,
    )
    controller.mount()
    return controller, views, selections


def test_mount_loads_collection_and_notifies_renderer():
    controller, views, _ = _make_controller()

    assert len(controller.collection) == 57
    assert controller.pagination.total_pages == 3
    assert controller.view.visible_rows[0]["name"] == "Lead 01"
    assert views[-1][0] == 25


def test_mount_restores_persisted_preferences():
    storage = InMemoryStorage(
        {
            "leads_filters.json": json.dumps({"searchText": "lead 1", "sortColumn": "value", "sortDirection": "desc"}).encode(),
            "leads_filters_pagination.json": b'{"pageSize": 10}',
        }
    )
    controller, _, _ = _make_controller(storage=storage)

    assert controller.filter_state.search_text == "lead 1"
    assert controller.pagination.page_size == 10
    assert controller.pagination.current_page == 1
    assert controller.view.visible_rows[0]["id"] == 19


def test_filter_change_saves_state_and_resets_to_page_one():
    storage = InMemoryStorage()
    controller, _, _ = _make_controller(storage=storage)
    controller.go_to_page(3)

    controller.set_categorical("status", ["new"])

    assert controller.pagination.current_page == 1
    assert controller.view.filtered_count == 29
    saved = json.loads(storage.read_bytes("leads_filters.json"))
    assert saved["categorical"] == {"status": ["new"]}


def test_unchanged_filter_is_a_no_op():
    controller, views, _ = _make_controller()
    controller.go_to_page(2)
    n_views = len(views)

    controller.set_search("")

    assert controller.pagination.current_page == 2
    assert len(views) == n_views


def test_reload_clamps_page_when_collection_shrinks():
    source_rows = _make_rows()
    controller, _, _ = _make_controller(rows=source_rows)
    controller.go_to_page(3)

    controller.source.replace(source_rows[:30])
    controller.reload()

    assert controller.pagination.current_page == 2
    assert controller.pagination.total_pages == 2
    assert len(controller.view.visible_rows) == 5


def test_reload_clears_selection_but_keeps_filters():
    controller, _, selections = _make_controller()
    controller.set_search("lead 0")
    controller.toggle_row(1)
    controller.toggle_row(2)

    controller.reload()

    assert controller.selection.selected_ids() == []
    assert selections[-1] == []
    assert controller.filter_state.search_text == "lead 0"


def test_filter_change_clears_selection_by_default():
    controller, _, _ = _make_controller()
    controller.select_visible()

    controller.set_search("lead")

    assert controller.selection.count == 0


def test_filter_change_keeps_selection_when_configured():
    controller, _, _ = _make_controller(clear_selection_on_filter_change=False)
    controller.toggle_row(3)

    controller.set_search("lead")

    assert controller.selection.selected_ids() == [3]


def test_sort_change_keeps_selection():
    controller, _, _ = _make_controller()
    controller.toggle_row(3)

    controller.sort_by("value")

    assert controller.filter_state.sort_column == "value"
    assert controller.filter_state.sort_direction == "asc"
    assert controller.selection.selected_ids() == [3]


def test_header_click_flips_direction():
    controller, _, _ = _make_controller()

    controller.sort_by("name")

    assert controller.filter_state.sort_direction == "desc"
    assert controller.view.visible_rows[0]["name"] == "Lead 57"


def test_select_visible_vs_select_all_filtered():
    controller, _, _ = _make_controller()
    controller.set_categorical("status", ["new"])

    controller.select_visible()
    assert controller.selection.count == 25

    controller.select_all_filtered()
    assert controller.selection.count == 29


def test_apply_page_selection_leaves_other_pages_alone():
    controller, _, _ = _make_controller()
    controller.toggle_row(40)

    controller.apply_page_selection([1, 2, 40])
    controller.apply_page_selection([2])

    assert controller.selection.selected_ids() == [40, 2]


def test_toggle_row_unknown_id_raises():
    controller, _, _ = _make_controller()
    with pytest.raises(KeyError):
        controller.toggle_row(999)


def test_unknown_categorical_field_raises():
    controller, _, _ = _make_controller()
    with pytest.raises(ConfigError):
        controller.set_categorical("region", ["eu"])


def test_date_range_and_presets():
    controller, _, _ = _make_controller()

    controller.set_date_range("2026-09-01", "2026-09-02")
    assert controller.view.filtered_count == 5

    controller.apply_date_preset("month", today=date(2026, 9, 10))
    assert controller.filter_state.date_from == date(2026, 9, 1)
    assert controller.filter_state.date_to == date(2026, 9, 30)
    assert controller.view.filtered_count == 57


def test_date_range_requires_date_field():
    controller, _, _ = _make_controller(date_field=None)
    with pytest.raises(ConfigError):
        controller.set_date_range("2026-09-01", None)


def test_clear_filters_restores_defaults():
    controller, _, _ = _make_controller()
    controller.set_search("lead 1")
    controller.sort_by("value")

    controller.clear_filters()

    assert controller.filter_state.search_text == ""
    assert controller.filter_state.sort_column == "name"
    assert controller.active_filter_count() == 0


def test_page_size_change_is_validated_and_persisted():
    storage = InMemoryStorage()
    controller, _, _ = _make_controller(storage=storage)
    controller.go_to_page(3)

    controller.set_page_size(50)

    assert controller.pagination.current_page == 2
    assert json.loads(storage.read_bytes("leads_filters_pagination.json")) == {"pageSize": 50}
    with pytest.raises(ValueError):
        controller.set_page_size(7)


def test_export_uses_all_filtered_rows_not_current_page():
    controller, _, _ = _make_controller()
    controller.set_categorical("status", ["contacted"])
    controller.go_to_page(2)

    rows = controller.export_rows()
    csv_text = controller.export_csv()

    assert len(controller.view.visible_rows) == 3
    assert len(rows) == 28
    assert len(csv_text.strip().split("\n")) == 29


def test_filter_options_from_collection():
    controller, _, _ = _make_controller()
    assert [o.value for o in controller.filter_options()["status"]] == ["contacted", "new"]


@pytest.mark.asyncio
async def test_bulk_archive_with_partial_failure_reloads_and_clears_selection():
    rows = _make_rows(10)
    controller, _, _ = _make_controller(rows=rows)
    for entity_id in (1, 2, 3, 4, 5):
        controller.toggle_row(entity_id)

    async def archive_one(entity_id):
        if entity_id in (2, 4):
            raise RuntimeError("locked")
        for row in rows:
            if row["id"] == entity_id:
                row["status"] = "archived"

    result = await controller.run_bulk_action(
        archive_action(archive_one),
        BulkActionDispatcher(confirm=lambda message: True),
    )

    assert result.succeeded == [1, 3, 5]
    assert result.failed == [2, 4]
    assert result.summary() == "3 of 5 archived"
    assert controller.selection.count == 0
    statuses = {row["id"]: row["status"] for row in controller.collection}
    assert statuses[1] == statuses[3] == statuses[5] == "archived"


@pytest.mark.asyncio
async def test_bulk_action_with_nothing_selected_keeps_table_untouched():
    controller, views, _ = _make_controller()
    n_views = len(views)
    action = BulkAction(action_id="touch", label="Touch", handler=lambda entity_id: True)

    with pytest.raises(EmptySelectionError):
        await controller.run_bulk_action(action, BulkActionDispatcher())
    assert len(views) == n_views


def test_registry_holds_independent_instances_of_one_table_type():
    registry = TableRegistry()
    rows = _make_rows(30)
    a = registry.register(
        TableController(_make_config(table_id="leads_a"), StaticCollectionSource(rows), InMemoryStorage())
    )
    b = registry.register(
        TableController(_make_config(table_id="leads_b"), StaticCollectionSource(rows), InMemoryStorage())
    )
    a.mount()
    b.mount()

    a.set_search("lead 1")
    a.toggle_row(10)

    assert b.filter_state.search_text == ""
    assert b.selection.count == 0
    assert sorted(registry) == ["leads_a", "leads_b"]
    with pytest.raises(UnknownTableError):
        registry["missing"]
    with pytest.raises(ValueError):
        registry.register(a)


def test_toggle_category_adds_and_removes_value():
    controller, _, _ = _make_controller()

    controller.toggle_category("status", "new")
    assert controller.filter_state.selected("status") == frozenset({"new"})

    controller.toggle_category("status", "new")
    assert controller.filter_state.selected("status") == frozenset()
    assert controller.view.filtered_count == 57


def test_replace_collection_and_json_export():
    controller, _, _ = _make_controller()
    controller.toggle_row(1)

    controller.replace_collection(_make_rows(3))

    assert controller.selection.count == 0
    assert controller.view.total_count == 3
    assert [row["id"] for row in json.loads(controller.export_json())["data"]] == [1, 2, 3]


def test_empty_collection_has_nothing_to_export():
    controller, _, _ = _make_controller(rows=[])

    assert controller.view.empty_message is not None
    assert controller.export_csv() is None


class _FlakySource(StaticCollectionSource):
    """Serves rows once, then every later fetch raises."""

    def __init__(self, rows):
        super().__init__(rows)
        self.n_fetches = 0

    def fetch_collection(self):
        self.n_fetches += 1
        if self.n_fetches > 1:
            raise OSError("collection backend unavailable")
        return super().fetch_collection()


@pytest.mark.asyncio
async def test_failed_reload_after_bulk_action_still_clears_selection():
    controller = TableController(_make_config(), _FlakySource(_make_rows(10)), InMemoryStorage())
    controller.mount()
    for entity_id in (1, 2, 3, 4, 5):
        controller.toggle_row(entity_id)

    async def archive_one(entity_id):
        return True

    result = await controller.run_bulk_action(
        archive_action(archive_one),
        BulkActionDispatcher(confirm=lambda message: True),
    )

    assert result.summary() == "5 of 5 archived"
    assert result.reload_error == "collection backend unavailable"
    assert controller.selection.count == 0
    # The previous snapshot stays on screen until a reload succeeds
    assert len(controller.collection) == 10


def test_failed_reload_clears_selection_and_raises():
    controller = TableController(_make_config(), _FlakySource(_make_rows(10)), InMemoryStorage())
    controller.mount()
    controller.toggle_row(1)

    with pytest.raises(OSError):
        controller.reload()
    assert controller.selection.count == 0


def test_operations_run_under_the_controller_lock():
    held_elsewhere = []

    def on_view_changed(rows, pagination):
        # Try the lock from another thread while a recompose is running
        result = []
        t = threading.Thread(target=lambda: result.append(controller.lock.acquire(blocking=False)))
        t.start()
        t.join()
        if result[0]:
            controller.lock.release()
        held_elsewhere.append(not result[0])

    controller = TableController(
        _make_config(), StaticCollectionSource(_make_rows()), InMemoryStorage(), on_view_changed=on_view_changed
    )
    controller.mount()
    controller.set_search("lead")
    controller.go_to_page(2)

    assert held_elsewhere and all(held_elsewhere)


def test_concurrent_selection_and_snapshot_do_not_race():
    controller, _, _ = _make_controller()
    errors = []

    def toggle_pages():
        try:
            for _ in range(200):
                controller.apply_page_selection(controller.visible_ids())
                controller.apply_page_selection([])
        except Exception as e:
            errors.append(e)

    def snapshot():
        try:
            for _ in range(200):
                ids = controller.selected_ids()
                assert len(ids) in (0, 25)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=toggle_pages), threading.Thread(target=snapshot)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
