from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence

import pandas as pd

from admin_tables.core.fields import Entity, FieldSpec, TableConfig, resolve_path
from admin_tables.core.values import to_timestamp

logger = logging.getLogger(__name__)

Formatter = Callable[[Any, Entity], str]


@dataclass(frozen=True)
class ExportColumn:
    key: str
    label: str
    formatter: Optional[Formatter] = None
    accessor: Optional[Callable[[Entity], Any]] = None

    def value_of(self, row: Entity) -> Any:
        if self.accessor is not None:
            return self.accessor(row)
        return resolve_path(row, self.key)


def format_value(value: Any) -> str:
    """
    Cell formatting for exports: None -> "", booleans -> Yes/No, lists joined
    with "; ", mappings JSON encoded.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple, set)):
        return "; ".join(format_value(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str)
    return str(value)


def format_date(value: Any, _row: Entity = None) -> str:
    ts = to_timestamp(value)
    return "" if ts is None else ts.strftime("%Y-%m-%d")


def columns_for(config: TableConfig) -> List[ExportColumn]:
    """Default export columns: every configured field, dates as YYYY-MM-DD."""

    def column(spec: FieldSpec) -> ExportColumn:
        return ExportColumn(
            key=spec.name,
            label=spec.label or spec.name,
            formatter=format_date if spec.kind == "date" else None,
            accessor=spec.value_of,
        )

    return [column(spec) for spec in config.columns()]


def export_filename(base: str, extension: str, today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"{base}_{today.isoformat()}.{extension}"


class ExportService:
    """
    Turns the full filtered + sorted row list of a table (never the current
    page) into CSV or JSON text.
    """

    def frame(self, rows: Sequence[Entity], columns: Sequence[ExportColumn]) -> pd.DataFrame:
        records = [
            [
                col.formatter(col.value_of(row), row) if col.formatter else format_value(col.value_of(row))
                for col in columns
            ]
            for row in rows
        ]
        return pd.DataFrame(records, columns=[col.label for col in columns], dtype=str)

    def to_csv(self, rows: Sequence[Entity], columns: Sequence[ExportColumn]) -> Optional[str]:
        if not rows:
            logger.warning("No data to export")
            return None
        csv_text = self.frame(rows, columns).to_csv(index=False, lineterminator="\n")
        logger.info("CSV export completed", extra={"n_rows": len(rows), "n_columns": len(columns)})
        return csv_text

    def to_json(self, rows: Sequence[Entity], exported_at: Optional[datetime] = None) -> Optional[str]:
        if not rows:
            logger.warning("No data to export")
            return None
        exported_at = exported_at or datetime.now(timezone.utc)
        payload = {
            "exportDate": exported_at.isoformat(),
            "count": len(rows),
            "data": list(rows),
        }
        logger.info("JSON export completed", extra={"n_rows": len(rows)})
        return json.dumps(payload, indent=2, default=str)
