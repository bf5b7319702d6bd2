from __future__ import annotations

import json

import pytest

from artcases.exceptions import HistoryStoreError
from artcases.history import (
    JsonHistoryStore,
    merge_history,
    recent_snapshots,
    split_by_history,
)
from artcases.models import HistoryRecord, ProfileSnapshot


def rec(success=True, ts=1000, data=None):
    return HistoryRecord(success, ts, "18/10/2026, 12:00:00", "Processed: x", data)


def test_missing_file_loads_empty(tmp_path):
    assert JsonHistoryStore(tmp_path / "nope.json").load() == {}


def test_corrupt_file_loads_empty(tmp_path, caplog):
    path = tmp_path / "history.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonHistoryStore(path).load() == {}
    assert "Failed to load history" in caplog.text


def test_non_mapping_file_loads_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert JsonHistoryStore(path).load() == {}


def test_save_then_load(tmp_path):
    store = JsonHistoryStore(tmp_path / "sub" / "history.json")
    history = {
        "1": rec(data=ProfileSnapshot("1", "Alice", 63.0, game_bans=1, cases_percent=12.5)),
        "2": rec(success=False),
    }
    store.save(history)
    assert store.load() == history
    assert list((tmp_path / "sub").iterdir()) == [tmp_path / "sub" / "history.json"]


def test_file_layout(tmp_path):
    path = tmp_path / "history.json"
    JsonHistoryStore(path).save({"1": rec(data=ProfileSnapshot("1", "Alice", 63.0))})
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert set(raw["1"]) == {"success", "date", "timestamp", "reason", "data"}
    assert raw["1"]["data"] == {
        "steamId": "1",
        "realName": "Alice",
        "totalValueBRL": 63.0,
        "vacBanned": False,
        "gameBans": 0,
        "casesPercentage": 0.0,
    }


def test_loads_existing_history_without_data(tmp_path):
    path = tmp_path / "history.json"
    path.write_text(
        json.dumps({"1": {"success": True, "date": "d", "timestamp": 5, "reason": "r"},
                    "2": "garbage"}),
        encoding="utf-8",
    )
    loaded = JsonHistoryStore(path).load()
    assert loaded == {"1": HistoryRecord(True, 5, "d", "r", None)}


def test_save_failure_raises(tmp_path):
    target = tmp_path / "history.json"
    target.mkdir()
    with pytest.raises(HistoryStoreError):
        JsonHistoryStore(target).save({"1": rec()})


def test_split_by_history_keeps_order():
    history = {"a": rec(), "b": rec(success=False)}
    skip, process = split_by_history(["c", "a", "b", "a"], history)
    assert skip == ["a", "a"]
    assert process == ["c", "b"]


def test_merge_prefers_new_entries():
    old = {"a": rec(ts=1), "b": rec(ts=1)}
    new = {"b": rec(ts=2), "c": rec(ts=2)}
    merged = merge_history(old, new)
    assert merged == {"a": rec(ts=1), "b": rec(ts=2), "c": rec(ts=2)}
    assert old == {"a": rec(ts=1), "b": rec(ts=1)}


def test_recent_snapshots_filters():
    priced = ProfileSnapshot("a", "A", 10.0)
    banned = ProfileSnapshot("b", "B", 0.0, vac_banned=True)
    empty = ProfileSnapshot("c", "C", 0.0, game_bans=1)
    history = {
        "a": rec(ts=2000, data=priced),
        "b": rec(ts=2000, data=banned),
        "c": rec(ts=2000, data=empty),
        "d": rec(ts=500, data=priced),
        "e": rec(success=False, ts=2000, data=priced),
        "f": rec(ts=2000),
    }
    found = [s.steamid for s, _ in recent_snapshots(history, since_ms=1000)]
    assert found == ["a", "b"]
