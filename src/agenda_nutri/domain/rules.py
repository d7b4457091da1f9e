from __future__ import annotations

from agenda_nutri.config import Settings
from agenda_nutri.domain.models import APPOINTMENT_STATUSES, GENDERS, RECORD_TYPES


class DomainError(ValueError):
    pass


class PersistenceError(DomainError):
    """O store devolveu False: nada foi gravado."""

    def __init__(self, key: str):
        super().__init__("Erro ao salvar. Tente novamente.")
        self.key = key


def validate_required(value: str, label: str) -> None:
    if not (value or "").strip():
        raise DomainError(f"{label} é obrigatório.")


def validate_gender(gender: str) -> None:
    if gender not in GENDERS:
        raise DomainError("Gênero inválido.")


def validate_status(status: str) -> None:
    if status not in APPOINTMENT_STATUSES:
        raise DomainError("Status de consulta inválido.")


def validate_record_type(kind: str) -> None:
    if kind not in RECORD_TYPES:
        raise DomainError("Tipo de registro inválido (use 'income' ou 'expense').")


def validate_amount(amount: float) -> None:
    if amount < 0:
        raise DomainError("O valor não pode ser negativo.")


def categories_for(cfg: Settings, kind: str) -> list[str]:
    validate_record_type(kind)
    if kind == "income":
        return list(cfg.finance.income_categories)
    return list(cfg.finance.expense_categories)


def bmi(weight_kg: float, height_cm: int) -> float:
    if height_cm <= 0:
        return 0.0
    meters = height_cm / 100
    return round(weight_kg / (meters * meters), 1)


def bmi_category(value: float) -> str:
    if value < 18.5:
        return "Baixo peso"
    if value < 25:
        return "Normal"
    if value < 30:
        return "Sobrepeso"
    return "Obesidade"
