from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


def connect(db_path: Path | str, *, wal_mode: bool = True) -> sqlite3.Connection:
    """Abre o arquivo local do store; ":memory:" serve para uso descartável."""
    if str(db_path) != MEMORY:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    if wal_mode and str(db_path) != MEMORY:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
    logger.debug(f"store: connected to {db_path} (wal={wal_mode})")
    return conn
