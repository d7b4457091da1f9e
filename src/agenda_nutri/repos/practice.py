from __future__ import annotations

from agenda_nutri.config import Settings
from agenda_nutri.db.store import KeyValueStore, StorageKeys
from agenda_nutri.domain.models import (
    WEEKDAYS,
    DayHours,
    NotificationSettings,
    Profile,
    ServiceType,
    as_float,
)
from agenda_nutri.domain.rules import DomainError, PersistenceError, validate_required


class PracticeRepo:
    """Perfil, horários, preferências de notificação e catálogo de serviços."""

    def __init__(self, store: KeyValueStore, cfg: Settings):
        self.store = store
        self.cfg = cfg

    def _save(self, key: str, value: object) -> None:
        if not self.store.set(key, value):
            raise PersistenceError(key)

    # ---------------- Perfil ----------------

    def profile(self) -> Profile:
        raw = self.store.get(StorageKeys.PROFILE, self.cfg.practice.profile)
        if not isinstance(raw, dict):
            raw = self.cfg.practice.profile
        return Profile.from_dict(raw)

    def save_profile(self, profile: Profile) -> None:
        validate_required(profile.name, "Nome")
        self._save(StorageKeys.PROFILE, profile.to_dict())

    # ---------------- Horários ----------------

    def working_hours(self) -> dict[str, DayHours]:
        raw = self.store.get(StorageKeys.WORKING_HOURS, self.cfg.practice.working_hours)
        if not isinstance(raw, dict):
            raw = {}
        hours: dict[str, DayHours] = {}
        for day in WEEKDAYS:
            day_raw = raw.get(day) or self.cfg.practice.working_hours[day]
            hours[day] = DayHours.from_dict(day_raw)
        return hours

    def save_working_hours(self, hours: dict[str, DayHours]) -> None:
        for day, h in hours.items():
            if day not in WEEKDAYS:
                raise DomainError(f"Dia inválido: {day}")
            if h.enabled and h.end <= h.start:
                raise DomainError(f"Horário final deve ser após o inicial ({day}).")
        self._save(StorageKeys.WORKING_HOURS, {d: h.to_dict() for d, h in hours.items()})

    # ---------------- Notificações ----------------

    def notification_settings(self) -> NotificationSettings:
        raw = self.store.get(StorageKeys.NOTIFICATIONS, self.cfg.practice.notifications)
        if not isinstance(raw, dict):
            raw = self.cfg.practice.notifications
        return NotificationSettings.from_dict(raw)

    def save_notification_settings(self, settings: NotificationSettings) -> None:
        self._save(StorageKeys.NOTIFICATIONS, settings.to_dict())

    # ---------------- Catálogo de serviços ----------------

    def service_types(self) -> list[ServiceType]:
        raw = self.store.get(StorageKeys.SERVICE_TYPES, self.cfg.practice.service_types)
        if not isinstance(raw, list):
            raw = self.cfg.practice.service_types
        return [ServiceType.from_dict(d) for d in raw if isinstance(d, dict)]

    def service_type(self, service_type_id: str) -> ServiceType | None:
        for st in self.service_types():
            if st.id == service_type_id:
                return st
        return None

    def update_prices(self, prices: dict[str, float]) -> list[ServiceType]:
        """
        Apenas o preço é editável. O catálogo é reconstruído a partir dos
        serviços padrão: ids e membros não mudam.
        """
        current = {st.id: st.price for st in self.service_types()}
        updated: list[ServiceType] = []
        for d in self.cfg.practice.service_types:
            st = ServiceType.from_dict(d)
            price = prices.get(st.id, current.get(st.id, 0.0))
            st.price = as_float(price)
            if st.price < 0:
                raise DomainError("O preço não pode ser negativo.")
            updated.append(st)
        self._save(StorageKeys.SERVICE_TYPES, [st.to_dict() for st in updated])
        return updated
