from __future__ import annotations

import sqlite3


# Um único armazenamento chave/valor: cada coleção é um documento JSON inteiro.
_SCHEMA: list[str] = [
    """CREATE TABLE IF NOT EXISTS kv_store (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT (datetime('now'))
    );""",
]


def migrate(conn: sqlite3.Connection) -> None:
    for stmt in _SCHEMA:
        conn.execute(stmt)
    conn.commit()
