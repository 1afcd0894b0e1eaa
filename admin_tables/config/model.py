from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from admin_tables.core.exceptions import ConfigError
from admin_tables.core.fields import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_PAGE_SIZE_OPTIONS,
    CategoricalFilterSpec,
    FieldSpec,
    FilterOption,
    TableConfig,
)

RawField = Union[str, Dict[str, Any]]


# ---- field parsing helpers ----

def _field_kwargs(raw: RawField, default_kind: str = "string") -> Dict[str, Any]:
    """
    A field may be declared as a bare name ("email") or as an object
    ({"name": "value", "label": "Deal value", "kind": "number"}).
    """
    if isinstance(raw, str):
        return {"name": raw, "kind": default_kind}
    if not isinstance(raw, dict) or "name" not in raw:
        raise ConfigError(f"Field declaration must be a name or an object with 'name', got {raw!r}")
    return {
        "name": raw["name"],
        "label": raw.get("label"),
        "kind": raw.get("kind", default_kind),
    }


def parse_field(raw: RawField, default_kind: str = "string") -> FieldSpec:
    return FieldSpec(**_field_kwargs(raw, default_kind))


def parse_categorical(raw: RawField) -> CategoricalFilterSpec:
    options = ()
    if isinstance(raw, dict):
        options = tuple(
            FilterOption(value=str(o["value"]), label=str(o.get("label", o["value"])))
            if isinstance(o, dict)
            else FilterOption(value=str(o), label=str(o))
            for o in raw.get("options", [])
        )
    return CategoricalFilterSpec(options=options, **_field_kwargs(raw))


@dataclass
class TableDefinition:
    """
    Parsed config entry for a single admin table (one file under tables/).
    """
    raw: Dict[str, Any]
    source_path: Optional[Path] = None
    index: int = 0

    @property
    def table_id(self) -> str:
        return self.raw.get("table_id") or f"table_{self.index}"

    @property
    def title(self) -> str:
        return self.raw.get("title") or self.table_id.replace("_", " ").title()

    @property
    def source(self) -> str:
        """Data file (relative to data_root) holding the entity collection."""
        return self.raw.get("source") or f"{self.table_id}.json"

    @property
    def storage_key(self) -> str:
        return self.raw.get("storage_key") or f"{self.table_id}_filters"

    @property
    def archive_changes(self) -> Optional[Dict[str, Any]]:
        """
        Field update applied to each record by the bulk archive action, e.g.
        {"archive": {"field": "status", "value": "archived"}}. None disables archiving.
        """
        archive = self.raw.get("archive")
        if not archive:
            return None
        if not isinstance(archive, dict) or "field" not in archive:
            raise ConfigError(f"Table '{self.table_id}' archive must be an object with 'field' and 'value'")
        return {archive["field"]: archive.get("value", "archived")}

    def to_table_config(self) -> TableConfig:
        raw = self.raw
        default_sort = raw.get("default_sort") or {}
        date_raw = raw.get("date_field")
        return TableConfig(
            table_id=self.table_id,
            storage_key=self.storage_key,
            title=self.title,
            id_field=parse_field(raw.get("id_field", "id")),
            search_fields=tuple(parse_field(f) for f in raw.get("search_fields", [])),
            categorical_fields=tuple(parse_categorical(f) for f in raw.get("categorical_fields", [])),
            date_field=parse_field(date_raw, default_kind="date") if date_raw else None,
            sortable_columns=tuple(parse_field(f) for f in raw.get("sortable_columns", [])),
            default_sort_column=default_sort.get("column"),
            default_sort_direction=default_sort.get("direction", "desc"),
            page_size_options=tuple(raw.get("page_size_options", DEFAULT_PAGE_SIZE_OPTIONS)),
            default_page_size=raw.get("default_page_size", DEFAULT_PAGE_SIZE),
            clear_selection_on_filter_change=bool(raw.get("clear_selection_on_filter_change", True)),
        )

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], source_path: Optional[Path] = None, index: int = 0) -> TableDefinition:
        if not isinstance(raw, dict):
            raise ConfigError(f"Table config must be a JSON object, got {type(raw).__name__}")
        return cls(raw=raw, source_path=source_path, index=index)


@dataclass
class GlobalConfig:
    ui_title: str
    default_table: Optional[str] = None
    tables: List[TableDefinition] = field(default_factory=list)
    data_root: Optional[Path] = None
    state_root: Optional[Path] = None
