from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from .exceptions import ConfigError
from .fields import SORT_DIRECTIONS, TableConfig
from .values import parse_bound


@dataclass(frozen=True)
class FilterState:
    """
    Represents the current search / filter / sort selection of one table.

    Fields:

    - search_text: free text, matched as a case-insensitive substring
    - categorical: field name -> selected values. Empty (or missing) = not filtered
    - date_from / date_to: inclusive date-range bounds on the table's date field
    - sort_column: name of a sortable column (None = id order)
    - sort_direction: "asc" or "desc"

    Instances are immutable; every change goes through `with_changes` and
    callers keep the returned value.
    """

    search_text: str = ""
    categorical: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort_column: Optional[str] = None
    sort_direction: str = "desc"

    def __post_init__(self) -> None:
        if self.sort_direction not in SORT_DIRECTIONS:
            raise ValueError(f"sort_direction must be 'asc' or 'desc', got {self.sort_direction!r}")
        object.__setattr__(self, "search_text", self.search_text or "")
        object.__setattr__(self, "categorical", _freeze_categorical(self.categorical))

    # ---------------------------------------------------------------------
    # Derived
    # ---------------------------------------------------------------------
    def selected(self, field_name: str) -> FrozenSet[str]:
        return self.categorical.get(field_name, frozenset())

    @property
    def has_date_bounds(self) -> bool:
        return self.date_from is not None or self.date_to is not None

    def filters_equal(self, other: "FilterState") -> bool:
        """True if both states select the same rows (sort may differ)."""
        return (
            self.search_text == other.search_text
            and self.categorical == other.categorical
            and self.date_from == other.date_from
            and self.date_to == other.date_to
        )

    # ---------------------------------------------------------------------
    # Immutable updates
    # ---------------------------------------------------------------------
    def with_changes(self, **changes: Any) -> "FilterState":
        """Merge a partial change and return the new state."""
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise TypeError(f"Unknown FilterState fields: {sorted(unknown)}")
        return replace(self, **changes)

    def with_category(self, field_name: str, values: Iterable[Any]) -> "FilterState":
        categorical = dict(self.categorical)
        categorical[field_name] = frozenset(str(v) for v in values)
        return self.with_changes(categorical=categorical)

    # ---------------------------------------------------------------------
    # (De)serialisation
    # ---------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "searchText": self.search_text,
            "categorical": {k: sorted(v) for k, v in sorted(self.categorical.items())},
            "dateFrom": self.date_from.isoformat() if self.date_from else None,
            "dateTo": self.date_to.isoformat() if self.date_to else None,
            "sortColumn": self.sort_column,
            "sortDirection": self.sort_direction,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], defaults: Optional["FilterState"] = None) -> "FilterState":
        """
        Rebuild a FilterState from `to_dict` output. Missing keys fall back to
        `defaults`; wrongly typed values raise ValueError / TypeError.
        """
        if not isinstance(data, dict):
            raise TypeError(f"FilterState payload must be an object, got {type(data).__name__}")
        base = defaults or cls()

        search_text = data.get("searchText", base.search_text)
        if not isinstance(search_text, str):
            raise TypeError("searchText must be a string")

        raw_categorical = data.get("categorical", None)
        if raw_categorical is None:
            categorical = base.categorical
        elif isinstance(raw_categorical, dict):
            categorical = {}
            for key, values in raw_categorical.items():
                if not isinstance(values, list):
                    raise TypeError(f"categorical[{key!r}] must be a list")
                categorical[str(key)] = frozenset(str(v) for v in values)
        else:
            raise TypeError("categorical must be an object")

        date_from = _bound_from(data, "dateFrom", base.date_from)
        date_to = _bound_from(data, "dateTo", base.date_to)

        sort_column = data.get("sortColumn", base.sort_column)
        if sort_column is not None and not isinstance(sort_column, str):
            raise TypeError("sortColumn must be a string or null")

        return cls(
            search_text=search_text,
            categorical=categorical,
            date_from=date_from,
            date_to=date_to,
            sort_column=sort_column,
            sort_direction=data.get("sortDirection", base.sort_direction),
        )


_FIELD_NAMES = frozenset(
    ("search_text", "categorical", "date_from", "date_to", "sort_column", "sort_direction")
)


def _freeze_categorical(categorical: Optional[Mapping[str, Iterable[Any]]]) -> Dict[str, FrozenSet[str]]:
    # Empty selections are dropped so equal filters compare equal
    frozen: Dict[str, FrozenSet[str]] = {}
    for key, values in (categorical or {}).items():
        selected = frozenset(str(v) for v in values)
        if selected:
            frozen[key] = selected
    return frozen


def _bound_from(data: Dict[str, Any], key: str, default: Optional[date]) -> Optional[date]:
    if key not in data:
        return default
    raw = data[key]
    if raw is None or raw == "":
        return None
    parsed = parse_bound(raw)
    if parsed is None:
        raise ValueError(f"{key} is not an ISO date: {raw!r}")
    return parsed


def default_filter_state(config: TableConfig) -> FilterState:
    """A freshly mounted table always starts from a fully defined state."""
    return FilterState(
        search_text="",
        categorical={},
        date_from=None,
        date_to=None,
        sort_column=config.default_sort_column,
        sort_direction=config.default_sort_direction,
    )


def sanitise_for_config(state: FilterState, config: TableConfig) -> FilterState:
    """
    Drop parts of a (restored) state that the table no longer supports:
    categorical keys for unknown fields, an unsortable sort column, date
    bounds on a table without a date field.
    """
    defaults = default_filter_state(config)
    known = set(config.categorical_names)
    categorical = {k: v for k, v in state.categorical.items() if k in known}

    sort_column = state.sort_column
    sort_direction = state.sort_direction
    if config.sortable(sort_column) is None:
        sort_column = defaults.sort_column
        sort_direction = defaults.sort_direction

    date_from, date_to = state.date_from, state.date_to
    if config.date_field is None:
        date_from = date_to = None

    return FilterState(
        search_text=state.search_text,
        categorical=categorical,
        date_from=date_from,
        date_to=date_to,
        sort_column=sort_column,
        sort_direction=sort_direction,
    )


def require_sortable(config: TableConfig, column: str) -> None:
    if config.sortable(column) is None:
        raise ConfigError(f"Column '{column}' is not sortable in table '{config.table_id}'")
