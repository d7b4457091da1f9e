from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from agenda_nutri.db.store import KeyValueStore, StorageKeys
from agenda_nutri.domain.models import Patient, new_id
from agenda_nutri.domain.rules import (
    DomainError,
    PersistenceError,
    validate_gender,
    validate_required,
)


@dataclass
class PatientUpsert:
    id: str | None
    name: str
    phone: str = ""
    gender: str = "female"
    weight: float = 0.0
    height: int = 0
    medical_history: str = ""
    goals: str = ""


def _validate(p: PatientUpsert) -> None:
    validate_required(p.name, "Nome")
    validate_gender(p.gender)
    if p.weight < 0 or p.height < 0:
        raise DomainError("Peso e altura não podem ser negativos.")


class PatientRepo:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load(self) -> list[Patient]:
        raw = self.store.get(StorageKeys.PATIENTS, []) or []
        return [Patient.from_dict(d) for d in raw if isinstance(d, dict)]

    def _save(self, patients: list[Patient]) -> None:
        if not self.store.set(StorageKeys.PATIENTS, [p.to_dict() for p in patients]):
            raise PersistenceError(StorageKeys.PATIENTS)

    def list_all(self) -> list[Patient]:
        return self._load()

    def count(self) -> int:
        return len(self._load())

    def search(self, q: str) -> list[Patient]:
        q = (q or "").strip().lower()
        patients = self._load()
        if not q:
            return patients
        return [p for p in patients if q in p.name.lower()]

    def get(self, patient_id: str) -> Patient | None:
        for p in self._load():
            if p.id == patient_id:
                return p
        return None

    def create(self, p: PatientUpsert) -> Patient:
        _validate(p)
        patient = Patient(
            id=new_id(),
            name=p.name.strip(),
            phone=(p.phone or "").strip(),
            gender=p.gender,
            weight=float(p.weight),
            height=int(p.height),
            medical_history=(p.medical_history or "").strip(),
            goals=(p.goals or "").strip(),
            created_at=datetime.now(),
        )
        patients = self._load()
        patients.append(patient)
        self._save(patients)
        return patient

    def update(self, p: PatientUpsert) -> Patient:
        if not p.id:
            raise DomainError("id do paciente é obrigatório para atualizar.")
        _validate(p)

        patients = self._load()
        for i, current in enumerate(patients):
            if current.id == p.id:
                # createdAt e lastAppointment são preservados
                patients[i] = Patient(
                    id=current.id,
                    name=p.name.strip(),
                    phone=(p.phone or "").strip(),
                    gender=p.gender,
                    weight=float(p.weight),
                    height=int(p.height),
                    medical_history=(p.medical_history or "").strip(),
                    goals=(p.goals or "").strip(),
                    created_at=current.created_at,
                    last_appointment=current.last_appointment,
                )
                self._save(patients)
                return patients[i]
        raise DomainError("Paciente não encontrado.")

    def delete(self, patient_id: str) -> None:
        # Sem cascata: as consultas do paciente continuam gravadas.
        patients = self._load()
        remaining = [p for p in patients if p.id != patient_id]
        if len(remaining) == len(patients):
            raise DomainError("Paciente não encontrado.")
        self._save(remaining)
