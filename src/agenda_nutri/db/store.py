from __future__ import annotations

import copy
import json
import logging
import sqlite3
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


class StorageKeys:
    PROFILE = "nutritionist_profile"
    WORKING_HOURS = "nutritionist_working_hours"
    NOTIFICATIONS = "nutritionist_notifications"
    SERVICE_TYPES = "nutritionist_service_types"
    PATIENTS = "nutritionist_patients"
    APPOINTMENTS = "nutritionist_appointments"
    FINANCIAL_RECORDS = "nutritionist_financial_records"
    NOTIFICATION_INBOX = "nutritionist_notification_inbox"


def _now_iso() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class KeyValueStore:
    """
    Leitura/escrita de documentos JSON por chave.

    - get(key, default): se a chave não existe, grava o default e o devolve.
    - set/remove: devolvem False em caso de falha (nunca lançam).
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, key: str, default: Any = None) -> Any:
        try:
            row = self.conn.execute(
                "SELECT value FROM kv_store WHERE key=?",
                (key,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"store: read failed for {key}: {e}")
            return copy.deepcopy(default)

        if row is None:
            if default is not None:
                logger.info(f"store: seeding default for {key}")
                self.set(key, default)
            return copy.deepcopy(default)

        try:
            value = json.loads(row["value"])
        except ValueError as e:
            logger.warning(f"store: malformed JSON under {key}, using default: {e}")
            return copy.deepcopy(default)

        logger.debug(f"store: loaded {key}")
        return value

    def set(self, key: str, value: Any) -> bool:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"store: cannot serialize {key}: {e}")
            return False

        try:
            self.conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, payload, _now_iso()),
            )
            self.conn.commit()
            # verificar que realmente foi gravado
            check = self.conn.execute("SELECT 1 FROM kv_store WHERE key=?", (key,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"store: write failed for {key}: {e}")
            self._rollback()
            return False

        if check is None:
            logger.error(f"store: write verification failed for {key}")
            return False

        logger.debug(f"store: saved {key}")
        return True

    def remove(self, key: str) -> bool:
        try:
            self.conn.execute("DELETE FROM kv_store WHERE key=?", (key,))
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"store: remove failed for {key}: {e}")
            self._rollback()
            return False
        return True

    def keys(self) -> list[str]:
        rows = self.conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [str(r["key"]) for r in rows]

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error as e:
            logger.error(f"store: rollback failed: {e}")
