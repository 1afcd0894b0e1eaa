from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .comparator import sort_rows
from .fields import Entity, TableConfig
from .filter_state import FilterState
from .pagination import PaginationState, apply_pagination, recompute
from .predicate import matches

EMPTY_NO_DATA = "no_data"
EMPTY_NO_MATCHES = "no_matches"

_EMPTY_MESSAGES = {
    EMPTY_NO_DATA: "Nothing here yet. Create the first record to get started.",
    EMPTY_NO_MATCHES: "No records match the current filters. Clear or adjust the filters to see more.",
}


@dataclass(frozen=True)
class ComposedView:
    """
    Output of one composition pass.

    - visible_rows: the page slice handed to the renderer
    - pagination: pagination metadata, already clamped against the filtered count
    - empty_state: None, EMPTY_NO_DATA or EMPTY_NO_MATCHES
    - filtered_count / total_count: sizes before slicing / before filtering
    """

    visible_rows: List[Entity]
    pagination: PaginationState
    empty_state: Optional[str]
    filtered_count: int
    total_count: int

    @property
    def empty_message(self) -> Optional[str]:
        return empty_state_message(self.empty_state)


def empty_state_message(kind: Optional[str]) -> Optional[str]:
    if kind is None:
        return None
    return _EMPTY_MESSAGES[kind]


def filter_rows(raw: Sequence[Entity], state: FilterState, config: TableConfig) -> List[Entity]:
    if not raw:
        return []
    mask = np.fromiter((matches(row, state, config) for row in raw), dtype=bool, count=len(raw))
    return [raw[i] for i in np.flatnonzero(mask)]


def filter_and_sort(raw: Sequence[Entity], state: FilterState, config: TableConfig) -> List[Entity]:
    """
    Steps 1-2 of the pipeline: the full filtered and sorted result, not
    paginated. This is what exports must use.
    """
    return sort_rows(filter_rows(raw, state, config), state, config)


def compose_view(
    raw: Sequence[Entity],
    state: FilterState,
    config: TableConfig,
    pagination: PaginationState,
) -> ComposedView:
    """
    Raw collection -> filtered -> sorted -> pagination recomputed -> page slice.

    The order is fixed: the page is clamped against the filtered count before
    slicing, so a shrunk result never leaves the current page past the end.
    `raw` is treated as an immutable snapshot and never modified.
    """
    ordered = filter_and_sort(raw, state, config)
    paged = recompute(pagination, len(ordered))
    visible = apply_pagination(ordered, paged)

    if not raw:
        empty_state: Optional[str] = EMPTY_NO_DATA
    elif not ordered:
        empty_state = EMPTY_NO_MATCHES
    else:
        empty_state = None

    return ComposedView(
        visible_rows=visible,
        pagination=paged,
        empty_state=empty_state,
        filtered_count=len(ordered),
        total_count=len(raw),
    )
