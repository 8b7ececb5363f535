import json

import pytest

from assetsync.errors import PersistError, StoreCorruptError
from assetsync.store import write_json
from assetsync.store.inventory import InventoryStore
from assetsync.store.progress import ProgressCursor, ProgressStore


def test_missing_store_loads_empty(tmp_path):
    store = InventoryStore.load(tmp_path / "images.json")
    assert len(store) == 0


def test_save_is_sorted_and_deterministic(tmp_path):
    first = InventoryStore(tmp_path / "a.json", {"b": "2", "a": None, "c": "3"})
    second = InventoryStore(tmp_path / "b.json", {"c": "3", "a": None, "b": "2"})
    first.save()
    second.save()

    assert first.path.read_bytes() == second.path.read_bytes()
    assert list(json.loads(first.path.read_text())) == ["a", "b", "c"]
    assert first.path.read_text().startswith('{\n    "a": null')


def test_null_keys(tmp_path):
    store = InventoryStore(tmp_path / "images.json", {"z": None, "a": None, "m": "url"})
    assert store.null_keys() == ["a", "z"]


@pytest.mark.parametrize("content", ["[1, 2]", '{"a": 5}', "not json"])
def test_corrupt_store(tmp_path, content):
    path = tmp_path / "images.json"
    path.write_text(content)
    with pytest.raises(StoreCorruptError):
        InventoryStore.load(path)


def test_persist_error_when_parent_is_a_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(PersistError):
        write_json(blocker / "images.json", {})


def test_failed_replace_leaves_no_temp_file(tmp_path, monkeypatch):
    path = tmp_path / "images.json"
    path.write_text("{}")

    def refuse(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("assetsync.store.os.replace", refuse)
    with pytest.raises(PersistError):
        write_json(path, {"econ/a": None})

    assert sorted(p.name for p in tmp_path.iterdir()) == ["images.json"]
    assert path.read_text() == "{}"


def test_progress_round_trip(tmp_path):
    progress = ProgressStore(tmp_path / "progress.json")
    progress.save(ProgressCursor(offset=40, query="sticker slab", category=""))

    saved = json.loads(progress.path.read_text())
    assert saved["lastStart"] == 40
    assert saved["query"] == "sticker slab"
    assert saved["lastUpdated"]

    cursor = progress.load("sticker slab", "")
    assert cursor.offset == 40
    assert cursor.last_updated is not None


def test_progress_for_other_target_starts_fresh(tmp_path):
    progress = ProgressStore(tmp_path / "progress.json")
    progress.save(ProgressCursor(offset=40, query="", category="tag_Type_Hands"))

    cursor = progress.load("", "tag_Type_Knife")
    assert cursor.offset == 0
    assert cursor.category == "tag_Type_Knife"


@pytest.mark.parametrize(
    "payload",
    [
        {"lastStart": -1, "query": "", "category": ""},
        {"lastStart": True, "query": "", "category": ""},
        {"lastStart": 0, "query": 3, "category": ""},
        {"lastStart": 0, "lastUpdated": "yesterday-ish", "query": "", "category": ""},
    ],
)
def test_corrupt_progress(tmp_path, payload):
    path = tmp_path / "progress.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(StoreCorruptError):
        ProgressStore(path).load("", "")
