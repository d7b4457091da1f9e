from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

# consultas alteradas; nova entrada na central de notificações
TOPICS = ("appointments", "notifications")


@dataclass
class EventBus:
    _subs: dict[str, list[Callable[[], None]]] = field(default_factory=dict)

    def subscribe(self, topic: str, fn: Callable[[], None]) -> None:
        if topic not in TOPICS:
            raise ValueError(f"unknown topic: {topic}")
        self._subs.setdefault(topic, []).append(fn)

    def unsubscribe(self, topic: str, fn: Callable[[], None]) -> None:
        subs = self._subs.get(topic, [])
        if fn in subs:
            subs.remove(fn)

    def publish(self, topic: str) -> None:
        # cópia: um handler pode se desinscrever durante a publicação
        for fn in list(self._subs.get(topic, [])):
            fn()
