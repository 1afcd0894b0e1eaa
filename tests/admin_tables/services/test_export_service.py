from __future__ import annotations

import io
import json
from datetime import date, datetime, timezone

import pandas as pd

from admin_tables.core.fields import FieldSpec, TableConfig
from admin_tables.services.export_service import (
    ExportColumn,
    ExportService,
    columns_for,
    export_filename,
    format_value,
)


def _make_rows():
    return [
        {"id": 1, "name": "Ada", "active": True, "tags": ["vip", "eu"], "meta": {"k": 1}, "created_at": "2026-09-15T22:30:00Z"},
        {"id": 2, "name": "Bram, Jr.", "active": False, "tags": [], "meta": None, "created_at": None},
    ]


def test_format_value():
    assert format_value(None) == ""
    assert format_value(True) == "Yes"
    assert format_value(False) == "No"
    assert format_value(["a", "b"]) == "a; b"
    assert format_value({"k": 1}) == '{"k": 1}'
    assert format_value(3.5) == "3.5"


def test_export_filename():
    assert export_filename("leads", "csv", today=date(2026, 10, 18)) == "leads_2026-10-18.csv"


def test_csv_export_formats_and_quotes_cells():
    columns = [
        ExportColumn("id", "ID"),
        ExportColumn("name", "Name"),
        ExportColumn("active", "Active"),
        ExportColumn("tags", "Tags"),
    ]

    csv_text = ExportService().to_csv(_make_rows(), columns)
    frame = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False)

    assert list(frame.columns) == ["ID", "Name", "Active", "Tags"]
    assert frame["Name"].tolist() == ["Ada", "Bram, Jr."]
    assert frame["Active"].tolist() == ["Yes", "No"]
    assert frame["Tags"].tolist() == ["vip; eu", ""]


def test_columns_for_config_formats_dates():
    config = TableConfig(
        table_id="leads",
        storage_key="leads_filters",
        search_fields=(FieldSpec("name"),),
        date_field=FieldSpec("created_at", label="Created", kind="date"),
    )

    csv_text = ExportService().to_csv(_make_rows(), columns_for(config))
    lines = csv_text.strip().split("\n")

    assert lines[0] == "ID,Name,Created"
    assert lines[1] == "1,Ada,2026-09-15"
    assert lines[2] == '2,"Bram, Jr.",'


def test_empty_export_returns_none(caplog):
    assert ExportService().to_csv([], [ExportColumn("id", "ID")]) is None
    assert ExportService().to_json([]) is None
    assert any("No data to export" in r.getMessage() for r in caplog.records)


def test_json_export_envelope():
    exported_at = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

    payload = json.loads(ExportService().to_json(_make_rows(), exported_at=exported_at))

    assert payload["exportDate"] == "2026-10-18T09:00:00+00:00"
    assert payload["count"] == 2
    assert payload["data"][0]["name"] == "Ada"
