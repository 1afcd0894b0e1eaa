from __future__ import annotations

__all__ = ["IDs", "categorical_filter_id", "date_preset_id", "page_button_id"]


class IDs:
    class Store:
        TABLE_REVISION = "table-revision"

    class Control:
        # Table picker + panel container
        TABLE_SELECT = "table-select"
        TABLE_PANEL = "table-panel"
        TABLE_TITLE = "table-title"

        # Filters
        SEARCH_INPUT = "search-input"
        DATE_RANGE = "date-range"
        CLEAR_FILTERS_BTN = "clear-filters-btn"
        ACTIVE_FILTER_BADGE = "active-filter-badge"

        # Table + pagination
        DATA_TABLE = "data-table"
        PAGE_SIZE_SELECT = "page-size-select"
        PAGER = "pager"
        RANGE_LABEL = "range-label"
        EMPTY_STATE = "empty-state"
        RELOAD_BTN = "reload-btn"

        # Selection
        SELECT_PAGE_BTN = "select-page-btn"
        SELECT_ALL_BTN = "select-all-btn"
        CLEAR_SELECTION_BTN = "clear-selection-btn"
        SELECTION_LABEL = "selection-label"

        # Bulk actions + export
        ARCHIVE_BTN = "archive-btn"
        ARCHIVE_CONFIRM = "archive-confirm"
        EXPORT_CSV_BTN = "export-csv-btn"
        DOWNLOAD_CSV = "download-csv"
        STATUS = "status-line"

    class Pattern:
        CATEGORICAL = "categorical-filter"
        DATE_PRESET = "date-preset"
        PAGE_BUTTON = "page-button"


def categorical_filter_id(field_name: str) -> dict:
    return {"type": IDs.Pattern.CATEGORICAL, "field": field_name}


def date_preset_id(preset: str) -> dict:
    return {"type": IDs.Pattern.DATE_PRESET, "preset": preset}


def page_button_id(page: int, role: str = "page") -> dict:
    # role keeps prev/next ids distinct from the numbered button of the same page
    return {"type": IDs.Pattern.PAGE_BUTTON, "page": page, "role": role}
