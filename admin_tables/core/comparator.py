from __future__ import annotations

from functools import cmp_to_key
from typing import Any, List, Optional, Sequence, Tuple

from .fields import Entity, FieldSpec, TableConfig
from .filter_state import FilterState, require_sortable
from .values import to_number, to_text, to_timestamp

SortKey = Tuple[Any, Tuple[int, float, str]]


def _sort_value(spec: Optional[FieldSpec], entity: Entity) -> Any:
    if spec is None:
        return None
    raw = spec.value_of(entity)
    if spec.kind == "number":
        return to_number(raw)
    if spec.kind == "date":
        ts = to_timestamp(raw)
        return None if ts is None else ts.value
    text = to_text(raw)
    return None if text is None else text.casefold()


def _id_key(value: Any) -> Tuple[int, float, str]:
    # Numbers before strings so mixed id types still give a total order
    if value is None:
        return (0, 0.0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, float(value), "")
    return (2, 0.0, str(value))


def _cmp(a: Any, b: Any) -> int:
    # Missing values sort before present ones
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    return (a > b) - (a < b)


def _resolve_column(config: TableConfig, sort_column: Optional[str]) -> Optional[FieldSpec]:
    return config.sortable(sort_column) or config.sortable(config.default_sort_column)


def _compare_keys(a: SortKey, b: SortKey, descending: bool) -> int:
    primary = _cmp(a[0], b[0])
    if descending:
        primary = -primary
    if primary != 0:
        return primary
    # Tie-break is always id ascending, independent of direction
    return _cmp(a[1], b[1])


def compare(
    a: Entity,
    b: Entity,
    sort_column: Optional[str],
    sort_direction: str,
    config: TableConfig,
) -> int:
    """
    Type-aware comparison of two entities on `sort_column`, returning -1, 0 or 1.

    Equal sort values fall back to the entity id (ascending), so the result is a
    total order and page boundaries are reproducible.
    """
    spec = _resolve_column(config, sort_column)
    key_a = (_sort_value(spec, a), _id_key(config.entity_id(a)))
    key_b = (_sort_value(spec, b), _id_key(config.entity_id(b)))
    return _compare_keys(key_a, key_b, sort_direction == "desc")


def sort_rows(rows: Sequence[Entity], state: FilterState, config: TableConfig) -> List[Entity]:
    """Return a new list ordered by the state's sort column/direction."""
    spec = _resolve_column(config, state.sort_column)
    descending = state.sort_direction == "desc"

    # Decorate once so accessors run n times instead of n log n
    decorated = [
        ((_sort_value(spec, row), _id_key(config.entity_id(row))), row)
        for row in rows
    ]
    decorated.sort(key=cmp_to_key(lambda x, y: _compare_keys(x[0], y[0], descending)))
    return [row for _, row in decorated]


def toggle_sort(state: FilterState, column: str, config: TableConfig) -> FilterState:
    """
    Header click: the active column flips direction, a new column starts ascending.
    """
    require_sortable(config, column)
    if state.sort_column == column:
        direction = "asc" if state.sort_direction == "desc" else "desc"
    else:
        direction = "asc"
    return state.with_changes(sort_column=column, sort_direction=direction)
