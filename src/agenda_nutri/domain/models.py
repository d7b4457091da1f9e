from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

GENDERS = ("male", "female", "other")
APPOINTMENT_STATUSES = ("scheduled", "completed", "cancelled", "no-show")
RECORD_TYPES = ("income", "expense")
NOTIFICATION_TYPES = (
    "appointment_reminder",
    "new_appointment",
    "cancelation",
    "payment_reminder",
)
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def new_id() -> str:
    return uuid.uuid4().hex


# ---------------- Conversões tolerantes (dados gravados podem estar incompletos) ----------------


def as_float(v: Any) -> float:
    try:
        return float(v) if v is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def as_int(v: Any) -> int:
    try:
        return int(float(v)) if v is not None else 0
    except (TypeError, ValueError):
        return 0


def parse_date(v: Any) -> date | None:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    try:
        # aceita "YYYY-MM-DD" e também timestamps ISO completos
        return date.fromisoformat(str(v)[:10])
    except (TypeError, ValueError):
        return None


def parse_time(v: Any) -> time | None:
    if isinstance(v, time):
        return v
    try:
        return time.fromisoformat(str(v))
    except (TypeError, ValueError):
        return None


def parse_datetime(v: Any) -> datetime | None:
    if isinstance(v, datetime):
        return v
    if not v:
        return None
    s = str(v)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def _iso_date(d: date | None) -> str | None:
    return d.isoformat() if d else None


def _iso_dt(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


# ---------------- Entidades ----------------


@dataclass
class Patient:
    id: str
    name: str
    phone: str = ""
    gender: str = "female"
    weight: float = 0.0  # kg
    height: int = 0  # cm
    medical_history: str = ""
    goals: str = ""
    created_at: datetime | None = None
    last_appointment: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "gender": self.gender,
            "weight": self.weight,
            "height": self.height,
            "medicalHistory": self.medical_history,
            "goals": self.goals,
            "createdAt": _iso_dt(self.created_at),
        }
        if self.last_appointment is not None:
            d["lastAppointment"] = _iso_dt(self.last_appointment)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Patient:
        gender = str(d.get("gender") or "female")
        return cls(
            id=str(d.get("id") or new_id()),
            name=str(d.get("name") or ""),
            phone=str(d.get("phone") or ""),
            gender=gender if gender in GENDERS else "other",
            weight=as_float(d.get("weight")),
            height=as_int(d.get("height")),
            medical_history=str(d.get("medicalHistory") or ""),
            goals=str(d.get("goals") or ""),
            created_at=parse_datetime(d.get("createdAt")),
            last_appointment=parse_datetime(d.get("lastAppointment")),
        )


@dataclass(frozen=True)
class ServiceSnapshot:
    """
    Cópia do tipo de serviço gravada dentro da consulta.

    Não acompanha o catálogo: mudar preço/cor no catálogo não altera
    consultas já salvas.
    """

    id: str
    name: str
    description: str = ""
    price: float = 0.0
    color: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ServiceSnapshot:
        return cls(
            id=str(d.get("id") or ""),
            name=str(d.get("name") or ""),
            description=str(d.get("description") or ""),
            price=as_float(d.get("price")),
            color=str(d.get("color") or ""),
        )


@dataclass
class ServiceType:
    id: str
    name: str
    description: str = ""
    price: float = 0.0
    color: str = ""

    def snapshot(self) -> ServiceSnapshot:
        return ServiceSnapshot(self.id, self.name, self.description, self.price, self.color)

    def to_dict(self) -> dict[str, Any]:
        return self.snapshot().to_dict()

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ServiceType:
        s = ServiceSnapshot.from_dict(d)
        return cls(s.id, s.name, s.description, s.price, s.color)


@dataclass
class Appointment:
    id: str
    patient_id: str
    patient_name: str
    service: ServiceSnapshot
    date: date | None
    time: time | None
    status: str = "scheduled"
    notes: str = ""
    price: float = 0.0
    created_at: datetime | None = None
    paid: bool = False

    @property
    def starts_at(self) -> datetime | None:
        if self.date is None:
            return None
        return datetime.combine(self.date, self.time or time(0, 0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "patientId": self.patient_id,
            "patientName": self.patient_name,
            "serviceType": self.service.to_dict(),
            "date": _iso_date(self.date),
            "time": self.time.isoformat(timespec="minutes") if self.time else None,
            "status": self.status,
            "notes": self.notes,
            "price": self.price,
            "createdAt": _iso_dt(self.created_at),
            "paid": self.paid,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Appointment:
        status = str(d.get("status") or "scheduled")
        return cls(
            id=str(d.get("id") or new_id()),
            patient_id=str(d.get("patientId") or ""),
            patient_name=str(d.get("patientName") or ""),
            service=ServiceSnapshot.from_dict(d.get("serviceType") or {}),
            date=parse_date(d.get("date")),
            time=parse_time(d.get("time")),
            status=status if status in APPOINTMENT_STATUSES else "scheduled",
            notes=str(d.get("notes") or ""),
            price=as_float(d.get("price")),
            created_at=parse_datetime(d.get("createdAt")),
            paid=bool(d.get("paid", False)),
        )


@dataclass
class FinancialRecord:
    id: str
    type: str
    description: str
    amount: float
    date: date | None
    category: str
    appointment_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "amount": self.amount,
            "date": _iso_date(self.date),
            "category": self.category,
        }
        if self.appointment_id:
            d["appointmentId"] = self.appointment_id
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FinancialRecord:
        kind = str(d.get("type") or "income")
        return cls(
            id=str(d.get("id") or new_id()),
            type=kind if kind in RECORD_TYPES else "income",
            description=str(d.get("description") or ""),
            amount=as_float(d.get("amount")),
            date=parse_date(d.get("date")),
            category=str(d.get("category") or ""),
            appointment_id=d.get("appointmentId") or None,
        )


@dataclass
class NotificationSettings:
    email_reminders: bool = True
    sms_reminders: bool = True
    new_appointments: bool = True
    cancelations: bool = True
    payment_reminders: bool = True

    def to_dict(self) -> dict[str, bool]:
        return {
            "emailReminders": self.email_reminders,
            "smsReminders": self.sms_reminders,
            "newAppointments": self.new_appointments,
            "cancelations": self.cancelations,
            "paymentReminders": self.payment_reminders,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> NotificationSettings:
        return cls(
            email_reminders=bool(d.get("emailReminders", True)),
            sms_reminders=bool(d.get("smsReminders", True)),
            new_appointments=bool(d.get("newAppointments", True)),
            cancelations=bool(d.get("cancelations", True)),
            payment_reminders=bool(d.get("paymentReminders", True)),
        )


@dataclass
class Notification:
    id: str
    type: str
    title: str
    message: str
    timestamp: datetime
    read: bool = False
    appointment_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
        }
        if self.appointment_id:
            d["appointmentId"] = self.appointment_id
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Notification:
        return cls(
            id=str(d.get("id") or new_id()),
            type=str(d.get("type") or "appointment_reminder"),
            title=str(d.get("title") or ""),
            message=str(d.get("message") or ""),
            timestamp=parse_datetime(d.get("timestamp")) or datetime.now(),
            read=bool(d.get("read", False)),
            appointment_id=d.get("appointmentId") or None,
        )


@dataclass
class Profile:
    name: str
    email: str
    phone: str
    crn: str = ""
    specializations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "crn": self.crn,
            "specializations": list(self.specializations),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Profile:
        return cls(
            name=str(d.get("name") or ""),
            email=str(d.get("email") or ""),
            phone=str(d.get("phone") or ""),
            crn=str(d.get("crn") or ""),
            specializations=[str(s) for s in d.get("specializations") or []],
        )


@dataclass
class DayHours:
    start: time
    end: time
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(timespec="minutes"),
            "end": self.end.isoformat(timespec="minutes"),
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DayHours:
        return cls(
            start=parse_time(d.get("start")) or time(8, 0),
            end=parse_time(d.get("end")) or time(18, 0),
            enabled=bool(d.get("enabled", False)),
        )
