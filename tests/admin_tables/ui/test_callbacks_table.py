import logging

from admin_tables.core.fields import CategoricalFilterSpec, FieldSpec, TableConfig
from admin_tables.services.collection_source import StaticCollectionSource
from admin_tables.services.storage import InMemoryStorage
from admin_tables.services.table_service import TableController
from admin_tables.ui.callbacks.callbacks_table import apply_event
from admin_tables.ui.ids import IDs, categorical_filter_id, date_preset_id, page_button_id


def _make_controller() -> TableController:
    config = TableConfig(
        table_id="leads",
        storage_key="leads_filters",
        search_fields=(FieldSpec("name"),),
        categorical_fields=(CategoricalFilterSpec("status"),),
        date_field=FieldSpec("created_at", kind="date"),
        sortable_columns=(FieldSpec("name"),),
        default_sort_direction="asc",
        page_size_options=(10, 25),
        default_page_size=10,
    )
    rows = [
        {
            "id": i,
            "name": f"Lead {i:02d}",
            "status": "won" if i <= 5 else "new",
            "created_at": "2026-01-15" if i <= 20 else "2026-02-15",
        }
        for i in range(1, 31)
    ]
    controller = TableController(config, StaticCollectionSource(rows), InMemoryStorage())
    controller.mount()
    return controller


def test_search_and_categorical_events():
    controller = _make_controller()

    apply_event(controller, IDs.Control.SEARCH_INPUT, "lead 2")
    assert controller.view.filtered_count == 10

    apply_event(controller, categorical_filter_id("status"), None)
    apply_event(controller, IDs.Control.SEARCH_INPUT, None)
    apply_event(controller, categorical_filter_id("status"), ["won"])
    assert controller.view.filtered_count == 5


def test_date_range_and_preset_events():
    controller = _make_controller()

    apply_event(controller, IDs.Control.DATE_RANGE, None, date_range=("2026-02-01", None))
    assert controller.view.filtered_count == 10

    # A preset button that has not been clicked does nothing
    apply_event(controller, date_preset_id("today"), None)
    assert controller.view.filtered_count == 10


def test_page_buttons_and_page_size():
    controller = _make_controller()

    apply_event(controller, page_button_id(3), 1)
    assert controller.pagination.current_page == 3

    apply_event(controller, page_button_id(2, "prev"), 1)
    assert controller.pagination.current_page == 2

    apply_event(controller, IDs.Control.PAGE_SIZE_SELECT, 25)
    assert controller.pagination.page_size == 25
    assert controller.pagination.current_page == 2


def test_table_sort_and_selection_events():
    controller = _make_controller()

    apply_event(controller, IDs.Control.DATA_TABLE + ".sort_by", [{"column_id": "name", "direction": "desc"}])
    assert controller.view.visible_rows[0]["id"] == 30

    apply_event(controller, IDs.Control.DATA_TABLE + ".selected_row_ids", [30, 29])
    assert controller.selection.selected_ids() == [30, 29]

    apply_event(controller, IDs.Control.SELECT_ALL_BTN, 1)
    assert controller.selection.count == 30

    apply_event(controller, IDs.Control.CLEAR_SELECTION_BTN, 1)
    assert controller.selection.count == 0


def test_unclicked_buttons_are_ignored():
    controller = _make_controller()
    apply_event(controller, IDs.Control.SEARCH_INPUT, "lead 1")

    apply_event(controller, IDs.Control.CLEAR_FILTERS_BTN, None)
    assert controller.filter_state.search_text == "lead 1"

    apply_event(controller, IDs.Control.CLEAR_FILTERS_BTN, 1)
    assert controller.filter_state.search_text == ""


def test_invalid_events_are_logged_not_raised(caplog):
    controller = _make_controller()

    with caplog.at_level(logging.WARNING):
        apply_event(controller, categorical_filter_id("region"), ["eu"])
        apply_event(controller, IDs.Control.PAGE_SIZE_SELECT, 7)

    assert controller.pagination.page_size == 10
    assert caplog.text.count("Ignored invalid table event") == 2
