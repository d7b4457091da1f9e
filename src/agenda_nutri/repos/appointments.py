from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time

from agenda_nutri.db.store import KeyValueStore, StorageKeys
from agenda_nutri.domain.models import Appointment, new_id
from agenda_nutri.domain.rules import DomainError, PersistenceError, validate_status
from agenda_nutri.repos.patients import PatientRepo
from agenda_nutri.repos.practice import PracticeRepo


@dataclass
class AppointmentUpsert:
    id: str | None
    patient_id: str
    service_type_id: str
    date: date
    time: time
    status: str = "scheduled"
    notes: str = ""


class AppointmentRepo:
    def __init__(self, store: KeyValueStore, patients: PatientRepo, practice: PracticeRepo):
        self.store = store
        self.patients = patients
        self.practice = practice

    def _load(self) -> list[Appointment]:
        raw = self.store.get(StorageKeys.APPOINTMENTS, []) or []
        return [Appointment.from_dict(d) for d in raw if isinstance(d, dict)]

    def _save(self, appointments: list[Appointment]) -> None:
        if not self.store.set(StorageKeys.APPOINTMENTS, [a.to_dict() for a in appointments]):
            raise PersistenceError(StorageKeys.APPOINTMENTS)

    def list_all(self) -> list[Appointment]:
        return self._load()

    def list_by_status(self, status: str = "all") -> list[Appointment]:
        appointments = self._load()
        if status == "all":
            return appointments
        validate_status(status)
        return [a for a in appointments if a.status == status]

    def list_for_patient(self, patient_id: str) -> list[Appointment]:
        return [a for a in self._load() if a.patient_id == patient_id]

    def get(self, appointment_id: str) -> Appointment | None:
        for a in self._load():
            if a.id == appointment_id:
                return a
        return None

    def _build(self, u: AppointmentUpsert, *, current: Appointment | None) -> Appointment:
        validate_status(u.status)
        patient = self.patients.get(u.patient_id)
        if patient is None:
            raise DomainError("Paciente não encontrado.")
        service = self.practice.service_type(u.service_type_id)
        if service is None:
            raise DomainError("Tipo de atendimento não encontrado.")
        if u.date is None or u.time is None:
            raise DomainError("Data e horário são obrigatórios.")

        # serviço e preço são copiados do catálogo no momento do salvamento;
        # o horário é gravado em HH:MM
        return Appointment(
            id=current.id if current else new_id(),
            patient_id=patient.id,
            patient_name=patient.name,
            service=service.snapshot(),
            date=u.date,
            time=u.time.replace(second=0, microsecond=0),
            status=u.status,
            notes=(u.notes or "").strip(),
            price=service.price,
            created_at=current.created_at if current else datetime.now(),
            paid=current.paid if current else False,
        )

    def create(self, u: AppointmentUpsert) -> Appointment:
        appointment = self._build(u, current=None)
        appointments = self._load()
        appointments.append(appointment)
        self._save(appointments)
        return appointment

    def update(self, u: AppointmentUpsert) -> Appointment:
        if not u.id:
            raise DomainError("id da consulta é obrigatório para atualizar.")
        appointments = self._load()
        for i, current in enumerate(appointments):
            if current.id == u.id:
                appointments[i] = self._build(u, current=current)
                self._save(appointments)
                return appointments[i]
        raise DomainError("Consulta não encontrada.")

    def _replace(self, appointment_id: str, **changes: object) -> Appointment:
        appointments = self._load()
        for i, current in enumerate(appointments):
            if current.id == appointment_id:
                appointments[i] = replace(current, **changes)
                self._save(appointments)
                return appointments[i]
        raise DomainError("Consulta não encontrada.")

    def set_status(self, appointment_id: str, status: str) -> Appointment:
        validate_status(status)
        return self._replace(appointment_id, status=status)

    def mark_paid(self, appointment_id: str, paid: bool = True) -> Appointment:
        return self._replace(appointment_id, paid=paid)

    def delete(self, appointment_id: str) -> None:
        appointments = self._load()
        remaining = [a for a in appointments if a.id != appointment_id]
        if len(remaining) == len(appointments):
            raise DomainError("Consulta não encontrada.")
        self._save(remaining)
