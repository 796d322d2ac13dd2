from __future__ import annotations

from dataclasses import replace

import pytest

from solar_string_sizer.persistence import PersistenceService
from solar_string_sizer.presets import MODULE_PRESETS
from solar_string_sizer.sizing import calculate_string_sizing


def test_catalog_upsert_and_lookup(persistence: PersistenceService, module):
    """Modules and inverters are stored once per name and found case-insensitively."""
    created = persistence.upsert_module(replace(module, name="Panel Y"))
    assert created.id is not None
    assert created.specs["voc"] == 49.6
    assert "name" not in created.specs

    updated = persistence.upsert_module({"name": "Panel Y", "manufacturer": "Acme", **created.specs, "voc": 50.1})
    assert updated.id == created.id
    assert updated.manufacturer == "Acme"
    assert len(persistence.list_modules()) == 1

    found = persistence.get_module("  panel y ")
    assert found is not None
    assert found.specs["voc"] == 50.1
    assert persistence.get_module("Panel Z") is None

    inverter = persistence.upsert_inverter(
        {
            "name": "Inverter X",
            "max_input_voltage": 1000,
            "min_mppt_voltage": 200,
            "max_mppt_voltage": 850,
            "max_input_current": 15,
            "unrelated": "ignored",
        }
    )
    assert inverter.max_input_voltage == 1000
    assert set(inverter.specs) == {
        "max_input_voltage",
        "min_mppt_voltage",
        "max_mppt_voltage",
        "max_input_current",
    }
    assert persistence.get_inverter("INVERTER X").id == inverter.id


def test_upsert_requires_name(persistence: PersistenceService, module):
    assert persistence.upsert_module(None) is None
    with pytest.raises(ValueError):
        persistence.upsert_module(module)


def test_seed_module_presets_is_idempotent(persistence: PersistenceService):
    assert persistence.seed_module_presets() == len(MODULE_PRESETS)
    assert persistence.seed_module_presets() == len(MODULE_PRESETS)

    modules = persistence.list_modules()
    assert len(modules) == len(MODULE_PRESETS)
    assert all(m.manufacturer for m in modules)


def test_history_keeps_most_recent_entries(persistence: PersistenceService, module, inverter, site):
    result = calculate_string_sizing(module, inverter, site)
    for idx in range(5):
        persistence.record_history(f"run {idx}", module, inverter, site, result, limit=3)

    entries = persistence.list_history()
    assert [entry.label for entry in entries] == ["run 4", "run 3", "run 2"]
    assert entries[0].result["max_modules"] == 18
    assert entries[0].inputs["site"] == {"min_temp": -10, "max_temp": 40}
    assert entries[0].is_compatible is True
    assert entries[0].created_at is not None

    assert [entry.label for entry in persistence.list_history(limit=1)] == ["run 4"]


def test_history_limit_from_environment(monkeypatch, persistence: PersistenceService, module, inverter, site):
    monkeypatch.setenv("SOLAR_SIZER_HISTORY_LIMIT", "2")
    result = calculate_string_sizing(module, inverter, site)
    for idx in range(4):
        persistence.record_history(f"run {idx}", module, inverter, site, result)

    assert len(persistence.list_history()) == 2


def test_history_delete_and_clear(persistence: PersistenceService, module, inverter, site):
    result = calculate_string_sizing(module, inverter, site)
    first = persistence.record_history("first", module, inverter, site, result)
    persistence.record_history("second", module, inverter, site, result)

    assert persistence.get_history_entry(first.id).label == "first"
    assert persistence.delete_history_entry(first.id) is True
    assert persistence.delete_history_entry(first.id) is False
    assert persistence.get_history_entry(first.id) is None

    assert persistence.clear_history() == 1
    assert persistence.list_history() == []
