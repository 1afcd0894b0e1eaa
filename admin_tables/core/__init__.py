"""
Core engine layer: field config, filter state, predicate, comparator,
pagination, selection and the view composer
"""

from .fields import CategoricalFilterSpec, FieldSpec, FilterOption, TableConfig
from .filter_state import FilterState, default_filter_state
from .pagination import PaginationState
from .selection import SelectionStore
from .view_composer import ComposedView, compose_view, filter_and_sort

__all__ = [
    "CategoricalFilterSpec",
    "ComposedView",
    "FieldSpec",
    "FilterOption",
    "FilterState",
    "PaginationState",
    "SelectionStore",
    "TableConfig",
    "compose_view",
    "default_filter_state",
    "filter_and_sort",
]
