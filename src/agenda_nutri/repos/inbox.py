from __future__ import annotations

from agenda_nutri.db.store import KeyValueStore, StorageKeys
from agenda_nutri.domain.models import Notification
from agenda_nutri.domain.rules import DomainError, PersistenceError


class InboxRepo:
    """Central de notificações: nada expira sozinho, só ação explícita remove."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load(self) -> list[Notification]:
        raw = self.store.get(StorageKeys.NOTIFICATION_INBOX, []) or []
        return [Notification.from_dict(d) for d in raw if isinstance(d, dict)]

    def _save(self, items: list[Notification]) -> None:
        if not self.store.set(StorageKeys.NOTIFICATION_INBOX, [n.to_dict() for n in items]):
            raise PersistenceError(StorageKeys.NOTIFICATION_INBOX)

    def list_all(self) -> list[Notification]:
        return self._load()

    def unread_count(self) -> int:
        return sum(1 for n in self._load() if not n.read)

    def append(self, notification: Notification) -> None:
        items = self._load()
        items.append(notification)
        self._save(items)

    def mark_read(self, notification_id: str) -> None:
        items = self._load()
        for n in items:
            if n.id == notification_id:
                n.read = True
                self._save(items)
                return
        raise DomainError("Notificação não encontrada.")

    def mark_all_read(self) -> None:
        items = self._load()
        for n in items:
            n.read = True
        self._save(items)

    def remove(self, notification_id: str) -> None:
        items = self._load()
        remaining = [n for n in items if n.id != notification_id]
        if len(remaining) == len(items):
            raise DomainError("Notificação não encontrada.")
        self._save(remaining)
