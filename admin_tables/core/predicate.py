from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .fields import CategoricalFilterSpec, Entity, FilterOption, TableConfig
from .filter_state import FilterState
from .values import bound_end, bound_start, to_text, to_timestamp


def matches(entity: Entity, state: FilterState, config: TableConfig) -> bool:
    """
    Decide whether one entity is included by the current filter state.

    Final predicate = search AND (AND of categorical clauses) AND date range.
    Never raises for missing / unusable field values.
    """
    return (
        _matches_search(entity, state, config)
        and _matches_categorical(entity, state, config)
        and _matches_date_range(entity, state, config)
    )


def _matches_search(entity: Entity, state: FilterState, config: TableConfig) -> bool:
    needle = state.search_text.strip().lower()
    if not needle:
        return True
    for spec in config.search_fields:
        text = to_text(spec.value_of(entity))
        if text is not None and needle in text.lower():
            return True
    return False


def _matches_categorical(entity: Entity, state: FilterState, config: TableConfig) -> bool:
    for spec in config.categorical_fields:
        selected = state.selected(spec.name)
        if not selected:
            continue
        text = to_text(spec.value_of(entity))
        if text is None or text not in selected:
            return False
    return True


def _matches_date_range(entity: Entity, state: FilterState, config: TableConfig) -> bool:
    if config.date_field is None or not state.has_date_bounds:
        return True

    ts = to_timestamp(config.date_field.value_of(entity))
    if ts is None:
        return False
    if state.date_from is not None and ts < bound_start(state.date_from):
        return False
    if state.date_to is not None and ts > bound_end(state.date_to):
        return False
    return True


def count_active_filters(state: FilterState) -> int:
    """Badge count: one per selected categorical value, plus one per date bound."""
    count = sum(len(values) for values in state.categorical.values())
    if state.date_from is not None:
        count += 1
    if state.date_to is not None:
        count += 1
    return count


def categorical_options(
    collection: Iterable[Entity], config: TableConfig
) -> Dict[str, List[FilterOption]]:
    """
    Selectable values per categorical field: the declared options if the
    config has any, otherwise the distinct values present in the collection.
    """
    rows = list(collection)
    options: Dict[str, List[FilterOption]] = {}
    for spec in config.categorical_fields:
        options[spec.name] = _options_for(spec, rows)
    return options


def _options_for(spec: CategoricalFilterSpec, rows: List[Any]) -> List[FilterOption]:
    if spec.options:
        return list(spec.options)
    present = {to_text(spec.value_of(row)) for row in rows}
    present.discard(None)
    return [FilterOption(value=v, label=v) for v in sorted(present, key=str.lower)]
