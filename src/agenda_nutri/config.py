from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


_DEFAULT_SERVICE_TYPES: list[dict[str, Any]] = [
    {
        "id": "1",
        "name": "Emagrecimento e Reeducação Alimentar",
        "description": "Consulta focada em perda de peso e mudança de hábitos alimentares",
        "price": 0,
        "color": "#059669",
    },
    {
        "id": "2",
        "name": "Gestantes e Tentantes",
        "description": "Acompanhamento nutricional durante a gravidez ou preparação para ela",
        "price": 0,
        "color": "#7c3aed",
    },
    {
        "id": "3",
        "name": "Hipertrofia/Definição",
        "description": "Nutrição esportiva para ganho de massa muscular e definição",
        "price": 0,
        "color": "#dc2626",
    },
    {
        "id": "4",
        "name": "Controle de Taxas",
        "description": "Acompanhamento nutricional para controle de diabetes, colesterol, etc.",
        "price": 0,
        "color": "#ea580c",
    },
    {
        "id": "5",
        "name": "Saúde da Mulher",
        "description": "Consulta focada em questões nutricionais específicas da mulher",
        "price": 0,
        "color": "#db2777",
    },
]

_DEFAULT_PROFILE: dict[str, Any] = {
    "name": "Priscila Dalbem",
    "email": "priscila@nutricionista.com",
    "phone": "(11) 99999-9999",
    "crn": "CRN-3 12345/P",
    "specializations": [
        "Nutrição Clínica",
        "Nutrição Esportiva",
        "Nutrição Materno-Infantil",
    ],
}

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_DEFAULT_WORKING_HOURS: dict[str, dict[str, Any]] = {
    "monday": {"start": "08:00", "end": "18:00", "enabled": True},
    "tuesday": {"start": "08:00", "end": "18:00", "enabled": True},
    "wednesday": {"start": "08:00", "end": "18:00", "enabled": True},
    "thursday": {"start": "08:00", "end": "18:00", "enabled": True},
    "friday": {"start": "08:00", "end": "18:00", "enabled": True},
    "saturday": {"start": "08:00", "end": "14:00", "enabled": True},
    "sunday": {"start": "08:00", "end": "14:00", "enabled": False},
}

_DEFAULT_NOTIFICATIONS: dict[str, bool] = {
    "emailReminders": True,
    "smsReminders": True,
    "newAppointments": True,
    "cancelations": True,
    "paymentReminders": True,
}

_INCOME_CATEGORIES = ["Consultas", "Palestras", "Cursos", "Produtos", "Outros"]
_EXPENSE_CATEGORIES = [
    "Aluguel",
    "Equipamentos",
    "Marketing",
    "Educação",
    "Transporte",
    "Alimentação",
    "Material de Escritório",
    "Impostos",
    "Outros",
]


@dataclass(frozen=True)
class StorageConfig:
    db_path: Path
    wal_mode: bool = True


@dataclass(frozen=True)
class ReminderConfig:
    interval_seconds: int = 3600
    lead_hours: int = 24
    payment_grace_days: int = 3
    dedup: str = "none"  # "none" | "daily"


@dataclass(frozen=True)
class FinanceConfig:
    appointment_category: str = "Consultas"
    income_categories: list[str] = field(default_factory=lambda: list(_INCOME_CATEGORIES))
    expense_categories: list[str] = field(default_factory=lambda: list(_EXPENSE_CATEGORIES))


@dataclass(frozen=True)
class PracticeDefaults:
    """Valores iniciais gravados no primeiro uso (auto-seed do store)."""

    profile: dict[str, Any]
    working_hours: dict[str, dict[str, Any]]
    notifications: dict[str, bool]
    service_types: list[dict[str, Any]]


@dataclass(frozen=True)
class AppConfig:
    title: str = "Agenda Nutri"
    locale: str = "pt_BR"
    currency: str = "R$"


@dataclass(frozen=True)
class Settings:
    app: AppConfig
    storage: StorageConfig
    reminders: ReminderConfig
    finance: FinanceConfig
    practice: PracticeDefaults

    @classmethod
    def defaults(cls) -> Settings:
        return _build({})


def _as_path(p: str) -> Path:
    return Path(p).resolve()


def _merge_hours(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    hours: dict[str, dict[str, Any]] = {}
    for day in _WEEKDAYS:
        base = dict(_DEFAULT_WORKING_HOURS[day])
        day_raw = raw.get(day, {}) or {}
        base["start"] = str(day_raw.get("start", base["start"]))
        base["end"] = str(day_raw.get("end", base["end"]))
        base["enabled"] = bool(day_raw.get("enabled", base["enabled"]))
        hours[day] = base
    return hours


def _build(raw: dict[str, Any]) -> Settings:
    app_raw = raw.get("app", {}) or {}
    storage_raw = raw.get("storage", {}) or {}
    rem_raw = raw.get("reminders", {}) or {}
    fin_raw = raw.get("finance", {}) or {}
    practice_raw = raw.get("practice", {}) or {}

    dedup = str(rem_raw.get("dedup", "none")).lower()
    if dedup not in {"none", "daily"}:
        dedup = "none"
    reminders = ReminderConfig(
        interval_seconds=int(rem_raw.get("interval_seconds", 3600)),
        lead_hours=int(rem_raw.get("lead_hours", 24)),
        payment_grace_days=int(rem_raw.get("payment_grace_days", 3)),
        dedup=dedup,
    )

    finance = FinanceConfig(
        appointment_category=str(fin_raw.get("appointment_category", "Consultas")),
        income_categories=list(fin_raw.get("income_categories", _INCOME_CATEGORIES)),
        expense_categories=list(fin_raw.get("expense_categories", _EXPENSE_CATEGORIES)),
    )

    profile = dict(_DEFAULT_PROFILE)
    profile.update(practice_raw.get("profile", {}) or {})
    notifications = dict(_DEFAULT_NOTIFICATIONS)
    for k, v in (practice_raw.get("notifications", {}) or {}).items():
        if k in notifications:
            notifications[k] = bool(v)
    services = practice_raw.get("service_types") or _DEFAULT_SERVICE_TYPES
    practice = PracticeDefaults(
        profile=profile,
        working_hours=_merge_hours(practice_raw.get("working_hours", {}) or {}),
        notifications=notifications,
        service_types=[dict(s) for s in services],
    )

    storage = StorageConfig(
        db_path=_as_path(storage_raw.get("db_path", "./data/agenda.db")),
        wal_mode=bool(storage_raw.get("wal_mode", True)),
    )
    app = AppConfig(
        title=str(app_raw.get("title", "Agenda Nutri")),
        locale=str(app_raw.get("locale", "pt_BR")),
        currency=str(app_raw.get("currency", "R$")),
    )
    return Settings(
        app=app,
        storage=storage,
        reminders=reminders,
        finance=finance,
        practice=practice,
    )


def load_config(path: str | Path = "config/config.yaml") -> Settings:
    with open(path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}
    return _build(raw)
