from unittest.mock import patch

import pytest

from common.errors import PersistenceError
from connectors.firebase.client import FirebaseHttpError
from connectors.firebase.config import FirebaseConfig
from pipelines.record_store import FirebaseRecordStore, InMemoryRecordStore, get_record_store


def _config() -> FirebaseConfig:
    return FirebaseConfig(database_url="https://demo.firebaseio.com", auth_token="", project_id="", access_token="")


def test_set_and_get_nested():
    store = InMemoryRecordStore()
    store.set("a/b/c", {"x": 1})
    assert store.get("a/b") == {"c": {"x": 1}}
    assert store.get("/a/b/c/x/") == 1
    assert store.get("a/missing") is None


def test_get_returns_copies():
    store = InMemoryRecordStore({"a": {"b": 1}})
    node = store.get("a")
    node["b"] = 2
    assert store.get("a/b") == 1


def test_setting_none_removes_and_prunes_empty_parents():
    store = InMemoryRecordStore({"a": {"b": {"c": 1}}, "keep": True})
    store.set("a/b/c", None)
    assert store.snapshot() == {"keep": True}


def test_update_merges_and_accepts_relative_paths():
    store = InMemoryRecordStore({"rec": {"x": 1, "y": 2}})
    store.update("rec", {"y": None, "z": 3, "nested/deep": "v"})
    assert store.get("rec") == {"x": 1, "z": 3, "nested": {"deep": "v"}}


def test_push_keys_sort_in_insertion_order():
    store = InMemoryRecordStore()
    first = store.push("log", {"n": 1})
    second = store.push("log", {"n": 2})
    assert first < second
    assert list(store.get("log")) == [first, second]


def test_query_equal_filters_children():
    store = InMemoryRecordStore(
        {"rows": {"a": {"schoolYear": "25_26"}, "b": {"schoolYear": "24_25"}, "c": "scalar"}}
    )
    assert store.query_equal("rows", "schoolYear", "25_26") == {"a": {"schoolYear": "25_26"}}
    assert store.query_equal("nothing", "schoolYear", "25_26") == {}


def test_root_overwrite_refused():
    with pytest.raises(PersistenceError):
        InMemoryRecordStore().set("/", {"x": 1})


def test_firebase_store_routes_none_to_delete():
    store = FirebaseRecordStore(_config())
    with patch("pipelines.record_store.db_delete") as delete, patch("pipelines.record_store.db_put") as put:
        store.set("a/b", None)
        store.set("a/c", {"v": 1})
    delete.assert_called_once_with(store._config, "a/b")
    put.assert_called_once_with(store._config, "a/c", {"v": 1})


def test_firebase_store_wraps_http_errors():
    store = FirebaseRecordStore(_config())
    with patch("pipelines.record_store.db_patch", side_effect=FirebaseHttpError(503, "unavailable")):
        with pytest.raises(PersistenceError) as excinfo:
            store.update("a/b", {"x": 1})
    assert excinfo.value.path == "a/b"
    assert isinstance(excinfo.value.__cause__, FirebaseHttpError)


def test_firebase_store_push_returns_key():
    store = FirebaseRecordStore(_config())
    with patch("pipelines.record_store.db_post", return_value="-Nabc"):
        assert store.push("adminAuditLog", {"x": 1}) == "-Nabc"


def test_get_record_store_by_name():
    assert isinstance(get_record_store("memory"), InMemoryRecordStore)
    assert isinstance(get_record_store(""), InMemoryRecordStore)
    with pytest.raises(ValueError):
        get_record_store("sqlite")
