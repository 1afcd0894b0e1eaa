from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

# Pages shown on each side of the current page in the page-number strip
PAGE_WINDOW = 2


@dataclass(frozen=True)
class PaginationState:
    """
    Pagination of one table.

    - current_page: 1-based page index
    - page_size: rows per page (one of the table's page_size_options)
    - total_items: size of the filtered result, always recomputed
    """

    current_page: int = 1
    page_size: int = 25
    total_items: int = 0

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.total_items < 0:
            raise ValueError(f"total_items must be >= 0, got {self.total_items}")
        if self.current_page < 1:
            object.__setattr__(self, "current_page", 1)

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_items, self.page_size)

    @property
    def start_index(self) -> int:
        return (self.current_page - 1) * self.page_size

    @property
    def end_index(self) -> int:
        return min(self.current_page * self.page_size, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


def total_pages(total_items: int, page_size: int) -> int:
    return max(1, math.ceil(total_items / page_size))


def _clamp(page: int, pages: int) -> int:
    return min(max(1, page), pages)


def recompute(state: PaginationState, new_total_items: int) -> PaginationState:
    """
    Set the total and clamp the current page into [1, total_pages].
    The only path by which data changes move the current page.
    """
    pages = total_pages(new_total_items, state.page_size)
    return replace(
        state,
        total_items=new_total_items,
        current_page=_clamp(state.current_page, pages),
    )


def set_page(state: PaginationState, page: int) -> PaginationState:
    """Explicit navigation; out-of-range pages are clamped."""
    return replace(state, current_page=_clamp(int(page), state.total_pages))


def set_page_size(
    state: PaginationState,
    size: int,
    allowed: Optional[Sequence[int]] = None,
) -> PaginationState:
    """
    Change the page size and clamp the current page against the new page
    count. The same item is not kept in view.
    """
    if allowed is not None and size not in allowed:
        raise ValueError(f"Page size {size} is not one of {list(allowed)}")
    resized = replace(state, page_size=size)
    return replace(resized, current_page=_clamp(resized.current_page, resized.total_pages))


def reset_to_first_page(state: PaginationState) -> PaginationState:
    return replace(state, current_page=1)


def page_slice(state: PaginationState) -> Tuple[int, int]:
    start = state.start_index
    return start, start + state.page_size


def apply_pagination(rows: Sequence[T], state: PaginationState) -> List[T]:
    start, end = page_slice(state)
    return list(rows[start:end])


def visible_pages(current_page: int, pages: int) -> List[Optional[int]]:
    """
    Page numbers for the pagination strip. Always includes the first and last
    page plus PAGE_WINDOW pages either side of the current one; None marks an
    ellipsis.

    >>> visible_pages(6, 12)
    [1, None, 4, 5, 6, 7, 8, None, 12]
    """
    window = list(
        range(max(2, current_page - PAGE_WINDOW), min(pages - 1, current_page + PAGE_WINDOW) + 1)
    )
    result: List[Optional[int]] = [1]
    if window and window[0] > 2:
        result.append(None)
    result.extend(window)
    if window and window[-1] < pages - 1:
        result.append(None)
    if pages > 1:
        result.append(pages)
    return result


def range_label(state: PaginationState) -> str:
    if state.total_items == 0:
        return "Showing 0-0 of 0"
    return f"Showing {state.start_index + 1}-{state.end_index} of {state.total_items}"
