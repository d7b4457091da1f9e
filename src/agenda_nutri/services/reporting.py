from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from agenda_nutri.domain.models import Appointment, FinancialRecord, Patient

WINDOWS = ("week", "month", "year")
RECORD_FILTERS = ("all", "income", "expense")


@dataclass(frozen=True)
class DashboardStats:
    total_patients: int
    today_appointments: int
    monthly_revenue: float
    pending_appointments: int


@dataclass(frozen=True)
class ServiceStats:
    patient_count: int
    appointment_count: int
    revenue: float


@dataclass(frozen=True)
class FinancialSummary:
    total_income: float
    total_expenses: float
    net_profit: float


@dataclass(frozen=True)
class CategoryBreakdown:
    income: dict[str, float] = field(default_factory=dict)
    expenses: dict[str, float] = field(default_factory=dict)


def _as_date(now: date | datetime) -> date:
    return now.date() if isinstance(now, datetime) else now


def in_window(d: date | None, window: str, now: date | datetime) -> bool:
    """
    week: últimos 7 dias, incluindo as duas pontas (hoje-7 .. hoje)
    month: mês corrente; year: ano corrente.
    """
    if d is None:
        return False
    today = _as_date(now)
    if window == "week":
        # limitado em hoje: consultas futuras não entram na semana,
        # ao contrário de mês e ano
        return today - timedelta(days=7) <= d <= today
    if window == "month":
        return d.year == today.year and d.month == today.month
    if window == "year":
        return d.year == today.year
    raise ValueError(f"unknown window: {window}")


def _appointment_revenue(appointments: Iterable[Appointment]) -> float:
    # qualquer status conta; preço ausente vale 0
    return sum((a.price or 0.0) for a in appointments)


def _records_total(records: Iterable[FinancialRecord], kind: str) -> float:
    return sum((r.amount or 0.0) for r in records if r.type == kind)


def monthly_revenue(
    appointments: Sequence[Appointment],
    records: Sequence[FinancialRecord],
    now: date | datetime,
) -> float:
    month_appts = [a for a in appointments if in_window(a.date, "month", now)]
    month_records = [r for r in records if in_window(r.date, "month", now)]
    return _appointment_revenue(month_appts) + _records_total(month_records, "income")


def dashboard_stats(
    patients: Sequence[Patient],
    appointments: Sequence[Appointment],
    records: Sequence[FinancialRecord],
    now: date | datetime,
) -> DashboardStats:
    today = _as_date(now)
    return DashboardStats(
        total_patients=len(patients),
        today_appointments=sum(1 for a in appointments if a.date == today),
        monthly_revenue=monthly_revenue(appointments, records, now),
        pending_appointments=sum(1 for a in appointments if a.status == "scheduled"),
    )


def service_type_stats(service_type_id: str, appointments: Sequence[Appointment]) -> ServiceStats:
    matching = [a for a in appointments if a.service.id == service_type_id]
    return ServiceStats(
        patient_count=len({a.patient_id for a in matching}),
        appointment_count=len(matching),
        revenue=_appointment_revenue(matching),
    )


def filter_records(
    records: Sequence[FinancialRecord],
    kind: str,
    window: str,
    now: date | datetime,
) -> list[FinancialRecord]:
    if kind not in RECORD_FILTERS:
        raise ValueError(f"unknown record filter: {kind}")
    return [
        r
        for r in records
        if (kind == "all" or r.type == kind) and in_window(r.date, window, now)
    ]


def financial_summary(
    appointments: Sequence[Appointment],
    records: Sequence[FinancialRecord],
    window: str,
    now: date | datetime,
) -> FinancialSummary:
    # receita de consultas + lançamentos manuais, sem deduplicar
    appts = [a for a in appointments if in_window(a.date, window, now)]
    window_records = filter_records(records, "all", window, now)
    income = _appointment_revenue(appts) + _records_total(window_records, "income")
    expenses = _records_total(window_records, "expense")
    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        net_profit=income - expenses,
    )


def category_breakdown(
    appointments: Sequence[Appointment],
    records: Sequence[FinancialRecord],
    window: str,
    now: date | datetime,
    *,
    appointment_category: str = "Consultas",
) -> CategoryBreakdown:
    income: dict[str, float] = {}
    expenses: dict[str, float] = {}
    for r in filter_records(records, "all", window, now):
        bucket = income if r.type == "income" else expenses
        bucket[r.category] = bucket.get(r.category, 0.0) + (r.amount or 0.0)

    revenue = _appointment_revenue(a for a in appointments if in_window(a.date, window, now))
    if revenue > 0:
        income[appointment_category] = income.get(appointment_category, 0.0) + revenue
    return CategoryBreakdown(income=income, expenses=expenses)


def upcoming_appointments(appointments: Sequence[Appointment], *, limit: int = 5) -> list[Appointment]:
    scheduled = [a for a in appointments if a.status == "scheduled" and a.starts_at is not None]
    scheduled.sort(key=lambda a: a.starts_at)
    return scheduled[:limit]


def format_currency(value: float, symbol: str = "R$") -> str:
    """1234.5 -> 'R$ 1.234,50' (formato pt-BR)."""
    s = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{symbol} {s}"
