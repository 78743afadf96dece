import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "backend"))

import server
from stores import ProgramCatalog, StudentProgressStore


def _fresh_stores(monkeypatch, programs=None, progress=None):
    catalog = ProgramCatalog(programs or {"OLD": {"program_code": "OLD"}}, "100.0")
    store = StudentProgressStore(progress or {}, catalog)
    monkeypatch.setattr(server, "_program_catalog", catalog)
    monkeypatch.setattr(server, "_progress_store", store)
    return catalog, store


def test_reload_skips_when_mtime_unchanged(monkeypatch):
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 100.0)

    called = {"count": 0}

    def fake_load_data(_path):
        called["count"] += 1
        return {}

    monkeypatch.setattr(server, "load_data", fake_load_data)

    changed = server._reload_data_if_changed()
    assert changed is False
    assert called["count"] == 0


def test_reload_swaps_runtime_data_when_mtime_advances(monkeypatch):
    old_data = {"programs": {"OLD": {"program_code": "OLD"}}, "progress": {}}
    new_data = {
        "programs": {"NEW": {"program_code": "NEW"}},
        "progress": {"S9": {"student_id": "S9", "program_code": "NEW", "completed_courses": []}},
    }
    catalog, store = _fresh_stores(monkeypatch)

    monkeypatch.setattr(server, "_data", old_data, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 200.0)
    monkeypatch.setattr(server, "load_data", lambda _path: new_data)

    changed = server._reload_data_if_changed()
    assert changed is True
    assert server._data is new_data
    assert server._data_mtime == 200.0
    assert catalog.catalog_version == "200.0"
    assert catalog.find_program("NEW") is not None
    assert catalog.find_program("OLD") is None
    assert store.get_progress("S9")["program_code"] == "NEW"


def test_reload_failure_keeps_previous_data(monkeypatch):
    old_data = {"programs": {"OLD": {"program_code": "OLD"}}, "progress": {}}
    catalog, _store = _fresh_stores(monkeypatch)

    monkeypatch.setattr(server, "_data", old_data, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 200.0)

    def boom(_path):
        raise RuntimeError("reload failed")

    monkeypatch.setattr(server, "load_data", boom)

    changed = server._reload_data_if_changed()
    assert changed is False
    assert server._data is old_data
    assert server._data_mtime == 100.0
    assert catalog.catalog_version == "100.0"
    assert catalog.find_program("OLD") is not None


def test_forced_reload_ignores_mtime(monkeypatch):
    new_data = {"programs": {}, "progress": {}}
    _fresh_stores(monkeypatch)
    monkeypatch.setattr(server, "_data", {}, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "_data_file_mtime", lambda _path: 100.0)
    monkeypatch.setattr(server, "load_data", lambda _path: new_data)

    assert server._reload_data_if_changed(force=True) is True
    assert server._data is new_data
