from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from agenda_nutri.config import Settings
from agenda_nutri.db.store import KeyValueStore, StorageKeys
from agenda_nutri.domain.models import FinancialRecord, new_id
from agenda_nutri.domain.rules import (
    DomainError,
    PersistenceError,
    categories_for,
    validate_amount,
    validate_record_type,
    validate_required,
)


@dataclass
class FinancialRecordUpsert:
    id: str | None
    type: str
    description: str
    amount: float
    date: date
    category: str
    appointment_id: str | None = None


class FinancialRepo:
    def __init__(self, store: KeyValueStore, cfg: Settings):
        self.store = store
        self.cfg = cfg

    def _load(self) -> list[FinancialRecord]:
        raw = self.store.get(StorageKeys.FINANCIAL_RECORDS, []) or []
        return [FinancialRecord.from_dict(d) for d in raw if isinstance(d, dict)]

    def _save(self, records: list[FinancialRecord]) -> None:
        if not self.store.set(StorageKeys.FINANCIAL_RECORDS, [r.to_dict() for r in records]):
            raise PersistenceError(StorageKeys.FINANCIAL_RECORDS)

    def _build(self, u: FinancialRecordUpsert, record_id: str) -> FinancialRecord:
        validate_record_type(u.type)
        validate_required(u.description, "Descrição")
        validate_amount(u.amount)
        if u.date is None:
            raise DomainError("Data é obrigatória.")
        if u.category not in categories_for(self.cfg, u.type):
            raise DomainError(f"Categoria inválida para '{u.type}': {u.category}")
        return FinancialRecord(
            id=record_id,
            type=u.type,
            description=u.description.strip(),
            amount=float(u.amount),
            date=u.date,
            category=u.category,
            appointment_id=u.appointment_id or None,
        )

    def list_all(self) -> list[FinancialRecord]:
        return self._load()

    def get(self, record_id: str) -> FinancialRecord | None:
        for r in self._load():
            if r.id == record_id:
                return r
        return None

    def create(self, u: FinancialRecordUpsert) -> FinancialRecord:
        record = self._build(u, new_id())
        records = self._load()
        records.append(record)
        self._save(records)
        return record

    def update(self, u: FinancialRecordUpsert) -> FinancialRecord:
        if not u.id:
            raise DomainError("id do registro é obrigatório para atualizar.")
        records = self._load()
        for i, current in enumerate(records):
            if current.id == u.id:
                records[i] = self._build(u, current.id)
                self._save(records)
                return records[i]
        raise DomainError("Registro não encontrado.")

    def delete(self, record_id: str) -> None:
        records = self._load()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            raise DomainError("Registro não encontrado.")
        self._save(remaining)
