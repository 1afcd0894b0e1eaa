import json
from pathlib import Path

import pytest

from admin_tables.services.bulk_actions import BulkActionDispatcher
from admin_tables.ui.dash_app import build_app_config, create_dash_app


def _write_app_config(tmp_path: Path) -> Path:
    config_root = tmp_path / "config"
    (config_root / "tables").mkdir(parents=True)
    (config_root / "data").mkdir()

    (config_root / "global.json").write_text(json.dumps({"ui_title": "Test Admin", "state_root": "state"}))
    (config_root / "tables" / "leads.json").write_text(
        json.dumps(
            {
                "table_id": "leads",
                "title": "Leads",
                "search_fields": ["name"],
                "categorical_fields": ["status"],
                "sortable_columns": ["name"],
                "default_sort": {"column": "name", "direction": "asc"},
                "archive": {"field": "status", "value": "archived"},
            }
        )
    )
    (config_root / "tables" / "notes.json").write_text(
        json.dumps({"table_id": "notes", "search_fields": ["body"]})
    )
    leads = [{"id": i, "name": f"Lead {i}", "status": "new"} for i in range(1, 4)]
    (config_root / "data" / "leads.json").write_text(json.dumps(leads))
    return config_root


def test_build_app_config_mounts_one_controller_per_table(tmp_path):
    ctx = build_app_config(_write_app_config(tmp_path))

    assert sorted(ctx.registry) == ["leads", "notes"]
    assert ctx.default_table == "leads"
    assert len(ctx.controller("leads").collection) == 3
    # Missing data file serves an empty collection
    assert ctx.controller("notes").view.empty_state is not None
    assert sorted(ctx.archive_actions) == ["leads"]
    assert ctx.controller("orders") is None


@pytest.mark.asyncio
async def test_archive_action_writes_through_to_data_file(tmp_path):
    config_root = _write_app_config(tmp_path)
    ctx = build_app_config(config_root)
    controller = ctx.controller("leads")
    controller.toggle_row(2)

    result = await controller.run_bulk_action(
        ctx.archive_actions["leads"], BulkActionDispatcher(confirm=lambda message: True)
    )

    assert result.summary() == "1 of 1 archived"
    saved = json.loads((config_root / "data" / "leads.json").read_text())
    assert [r["status"] for r in saved] == ["new", "archived", "new"]
    assert controller.selection.count == 0


def test_filter_changes_persist_across_app_restarts(tmp_path):
    config_root = _write_app_config(tmp_path)
    build_app_config(config_root).controller("leads").set_search("lead 3")

    ctx = build_app_config(config_root)

    assert ctx.controller("leads").filter_state.search_text == "lead 3"
    assert (config_root / "state" / "leads_filters.json").is_file()


def test_create_dash_app(tmp_path):
    app = create_dash_app(_write_app_config(tmp_path))

    assert app.title == "Test Admin"
    assert app.layout is not None


def test_no_tables_is_an_error(tmp_path):
    (tmp_path / "tables").mkdir()
    with pytest.raises(RuntimeError):
        build_app_config(tmp_path)
