from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from admin_tables.core.filter_state import FilterState
from admin_tables.core.fields import FilterOption, TableConfig
from admin_tables.core.pagination import PaginationState, visible_pages
from admin_tables.core.selection import HEADER_ALL, HEADER_SOME
from admin_tables.services.export_service import format_date, format_value
from admin_tables.services.table_service import TableController

ROW_ID_KEY = "id"
# Column key for a display field literally named "id" when the row id comes from another field
SHADOWED_ID_KEY = "__field_id"


# ---- DataTable props ----

def column_key(config: TableConfig, field_name: str) -> str:
    """
    DataTable column id for a field. DataTable reserves "id" for the row id,
    so a display field named "id" that is not the id field is renamed.
    """
    if field_name == ROW_ID_KEY and config.id_field.name != ROW_ID_KEY:
        return SHADOWED_ID_KEY
    return field_name


def field_name(config: TableConfig, key: str) -> str:
    if key == SHADOWED_ID_KEY and config.id_field.name != ROW_ID_KEY:
        return ROW_ID_KEY
    return key


def table_columns(config: TableConfig) -> List[Dict[str, Any]]:
    return [{"name": spec.label, "id": column_key(config, spec.name)} for spec in config.columns()]


def table_records(controller: TableController) -> List[Dict[str, Any]]:
    """
    Display records for the current page. Every record carries the entity id
    under "id", which DataTable uses for `selected_row_ids`.
    """
    config = controller.config
    specs = config.columns()
    records = []
    for row in controller.view.visible_rows:
        record: Dict[str, Any] = {}
        for spec in specs:
            value = spec.value_of(row)
            key = column_key(config, spec.name)
            record[key] = format_date(value) if spec.kind == "date" else format_value(value)
        record[ROW_ID_KEY] = config.entity_id(row)
        records.append(record)
    return records


def sort_by_prop(state: FilterState, config: TableConfig) -> List[Dict[str, str]]:
    if state.sort_column is None:
        return []
    return [{"column_id": column_key(config, state.sort_column), "direction": state.sort_direction}]


def apply_sort_by(controller: TableController, sort_by: Optional[Sequence[Dict[str, str]]]) -> None:
    """
    DataTable cycles asc -> desc -> unsorted. "Unsorted" is not a table
    state here, it falls back to the configured default sort. Clicks on
    columns that are not sortable are ignored.
    """
    config = controller.config
    if sort_by:
        column = field_name(config, sort_by[0]["column_id"])
        if config.sortable(column) is not None:
            controller.set_sort(column, sort_by[0]["direction"])
        return
    if config.default_sort_column is not None:
        controller.set_sort(config.default_sort_column, config.default_sort_direction)


# ---- filter controls ----

def dropdown_options(options: Sequence[FilterOption]) -> List[Dict[str, str]]:
    return [{"label": o.label, "value": o.value} for o in options]


def date_value(bound: Optional[date]) -> Optional[str]:
    return bound.isoformat() if bound is not None else None


# ---- pagination + selection ----

def pager_items(pagination: PaginationState) -> List[Dict[str, Any]]:
    """
    Pager entries: previous, numbered pages with ellipsis gaps, next.
    `page` is None for entries that cannot be clicked.
    """
    current = pagination.current_page
    items: List[Dict[str, Any]] = [
        {
            "label": "‹",
            "role": "prev",
            "page": current - 1 if pagination.has_previous else None,
            "active": False,
        }
    ]
    for page in visible_pages(current, pagination.total_pages):
        if page is None:
            items.append({"label": "…", "role": "gap", "page": None, "active": False})
        else:
            items.append({"label": str(page), "role": "page", "page": page, "active": page == current})
    items.append(
        {
            "label": "›",
            "role": "next",
            "page": current + 1 if pagination.has_next else None,
            "active": False,
        }
    )
    return items


def selection_label(controller: TableController) -> str:
    count = controller.selection.count
    if not count:
        return "No rows selected"
    header = controller.selection.header_state(controller.visible_ids())
    suffix = ""
    if header == HEADER_ALL:
        suffix = " (whole page)"
    elif header == HEADER_SOME:
        suffix = " (part of page)"
    return f"{count} selected{suffix}"
