from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

Entity = Any
Accessor = Callable[[Entity], Any]

FIELD_KINDS = ("string", "number", "date")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_PAGE_SIZE_OPTIONS: Tuple[int, ...] = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 25


# -------------------------------------------------------------------------
# Accessors
# -------------------------------------------------------------------------

def resolve_path(entity: Entity, path: str) -> Any:
    """
    Resolve a dot-separated path ("client.name") against mappings and plain
    objects. Any missing segment yields None.
    """
    current = entity
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def path_accessor(path: str) -> Accessor:
    def accessor(entity: Entity) -> Any:
        return resolve_path(entity, path)

    accessor.__name__ = f"get_{path.replace('.', '_')}"
    return accessor


# -------------------------------------------------------------------------
# Field descriptors
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSpec:
    """
    Typed descriptor for one entity field used by search, filtering or sorting.

    Fields:

    - name: stable field name, used as the persisted key (sort column, categorical key)
    - label: human readable column label
    - kind: "string", "number" or "date"; drives the sort ordering
    - accessor: (entity) -> value. Defaults to a dot-path lookup of `name`
    """

    name: str
    label: Optional[str] = None
    kind: str = "string"
    accessor: Optional[Accessor] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("FieldSpec.name must be a non-empty string")
        if self.kind not in FIELD_KINDS:
            raise ConfigError(
                f"Field '{self.name}' has unknown kind '{self.kind}' (expected one of {FIELD_KINDS})"
            )
        if self.accessor is None:
            object.__setattr__(self, "accessor", path_accessor(self.name))
        if self.label is None:
            object.__setattr__(self, "label", self.name.replace("_", " ").replace(".", " ").title())

    def value_of(self, entity: Entity) -> Any:
        """Return the field value for an entity, or None if the accessor cannot produce one."""
        try:
            return self.accessor(entity)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError):
            logger.debug("Accessor for field %r failed on entity %r", self.name, entity)
            return None


@dataclass(frozen=True)
class FilterOption:
    value: str
    label: str


@dataclass(frozen=True)
class CategoricalFilterSpec(FieldSpec):
    """
    A categorical filter field. If `options` is empty, the selectable values
    are the distinct values present in the collection.
    """

    options: Tuple[FilterOption, ...] = ()


# -------------------------------------------------------------------------
# Per-table configuration
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class TableConfig:
    """
    Declares how one admin table searches, filters, sorts and paginates its
    entity collection, and under which key its preferences are persisted.
    """

    table_id: str
    storage_key: str
    title: Optional[str] = None
    search_fields: Tuple[FieldSpec, ...] = ()
    categorical_fields: Tuple[CategoricalFilterSpec, ...] = ()
    date_field: Optional[FieldSpec] = None
    sortable_columns: Tuple[FieldSpec, ...] = ()
    default_sort_column: Optional[str] = None
    default_sort_direction: str = "desc"
    page_size_options: Tuple[int, ...] = DEFAULT_PAGE_SIZE_OPTIONS
    default_page_size: int = DEFAULT_PAGE_SIZE
    clear_selection_on_filter_change: bool = True
    id_field: FieldSpec = field(default_factory=lambda: FieldSpec("id", label="ID"))

    def __post_init__(self) -> None:
        # Accept lists from callers, store tuples
        for attr in ("search_fields", "categorical_fields", "sortable_columns", "page_size_options"):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))

        if not self.table_id:
            raise ConfigError("TableConfig.table_id must be a non-empty string")
        if not self.storage_key:
            raise ConfigError(f"Table '{self.table_id}' has no storage_key")

        for role in ("search_fields", "categorical_fields", "sortable_columns"):
            names = [f.name for f in getattr(self, role)]
            dupes = sorted({n for n in names if names.count(n) > 1})
            if dupes:
                raise ConfigError(f"Table '{self.table_id}' has duplicate {role}: {dupes}")

        if not self.page_size_options or any(
            not isinstance(s, int) or isinstance(s, bool) or s < 1 for s in self.page_size_options
        ):
            raise ConfigError(
                f"Table '{self.table_id}' page_size_options must be positive integers, got {self.page_size_options}"
            )
        if self.default_page_size not in self.page_size_options:
            raise ConfigError(
                f"Table '{self.table_id}' default_page_size {self.default_page_size} "
                f"is not one of {self.page_size_options}"
            )

        if self.default_sort_direction not in SORT_DIRECTIONS:
            raise ConfigError(
                f"Table '{self.table_id}' default_sort_direction must be 'asc' or 'desc'"
            )
        if self.default_sort_column is None:
            if self.sortable_columns:
                object.__setattr__(self, "default_sort_column", self.sortable_columns[0].name)
        elif self.sortable(self.default_sort_column) is None:
            raise ConfigError(
                f"Table '{self.table_id}' default_sort_column '{self.default_sort_column}' is not sortable"
            )

    # ---------------------------------------------------------------------
    # Lookups
    # ---------------------------------------------------------------------
    @property
    def pagination_storage_key(self) -> str:
        return f"{self.storage_key}_pagination"

    def entity_id(self, entity: Entity) -> Any:
        return self.id_field.value_of(entity)

    def sortable(self, name: Optional[str]) -> Optional[FieldSpec]:
        if name is None:
            return None
        return next((c for c in self.sortable_columns if c.name == name), None)

    def categorical(self, name: str) -> Optional[CategoricalFilterSpec]:
        return next((c for c in self.categorical_fields if c.name == name), None)

    @property
    def categorical_names(self) -> List[str]:
        return [c.name for c in self.categorical_fields]

    def columns(self) -> List[FieldSpec]:
        """
        Ordered, de-duplicated list of every field the table knows about,
        id first. Used by the renderer to build table columns.
        """
        seen: Dict[str, FieldSpec] = {self.id_field.name: self.id_field}
        groups: Sequence[Sequence[FieldSpec]] = (
            self.sortable_columns,
            self.search_fields,
            self.categorical_fields,
            (self.date_field,) if self.date_field is not None else (),
        )
        for group in groups:
            for spec in group:
                seen.setdefault(spec.name, spec)
        return list(seen.values())
