from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from agenda_nutri.db.connection import connect
from agenda_nutri.db.schema import migrate
from agenda_nutri.db.store import KeyValueStore, StorageKeys


@pytest.fixture
def conn(tmp_path: Path):
    db = tmp_path / "t.db"
    c = connect(db, wal_mode=False)
    migrate(c)
    yield c
    c.close()


def test_get_seeds_default_on_first_run(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    default = [{"id": "1", "name": "Consulta", "price": 0}]

    value = store.get(StorageKeys.SERVICE_TYPES, default)
    assert value == default
    assert StorageKeys.SERVICE_TYPES in store.keys()

    # o default gravado não é o mesmo objeto do chamador
    default[0]["price"] = 99
    assert store.get(StorageKeys.SERVICE_TYPES, [])[0]["price"] == 0


def test_get_without_default_does_not_seed(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    assert store.get("missing") is None
    assert store.keys() == []


def test_set_then_get(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    assert store.set("k", {"a": [1, 2, 3], "nome": "Ação"})
    assert store.get("k", {}) == {"a": [1, 2, 3], "nome": "Ação"}
    assert store.set("k", {"a": []})
    assert store.get("k") == {"a": []}


def test_set_unserializable_returns_false(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    assert store.set("k", {"x": object()}) is False
    assert store.get("k") is None


def test_set_reports_write_failure(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    conn.execute("DROP TABLE kv_store")
    conn.commit()
    assert store.set("k", [1]) is False
    assert store.remove("k") is False
    # leitura com falha cai no default
    assert store.get("k", ["fallback"]) == ["fallback"]


def test_malformed_json_falls_back_to_default(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    conn.execute("INSERT INTO kv_store (key, value) VALUES (?, ?)", ("k", "{not json"))
    conn.commit()
    assert store.get("k", []) == []


def test_remove(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    store.set("k", 1)
    assert store.remove("k")
    assert store.get("k") is None


def test_values_survive_reconnect(tmp_path: Path):
    db = tmp_path / "t.db"
    c = connect(db, wal_mode=False)
    migrate(c)
    KeyValueStore(c).set(StorageKeys.PROFILE, {"name": "Ana"})
    c.close()

    c2 = connect(db, wal_mode=False)
    assert KeyValueStore(c2).get(StorageKeys.PROFILE) == {"name": "Ana"}
    c2.close()
