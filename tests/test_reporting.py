from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time

import pytest

from agenda_nutri.domain.models import Appointment, FinancialRecord, Patient, ServiceSnapshot
from agenda_nutri.services import reporting

NOW = datetime(2024, 6, 20, 10, 0)

NUTRI = ServiceSnapshot("1", "Emagrecimento", price=150.0, color="#059669")
SPORT = ServiceSnapshot("3", "Hipertrofia", price=200.0, color="#dc2626")


def _appt(
    aid: str,
    d: date,
    *,
    price: float = 150.0,
    status: str = "scheduled",
    patient: str = "p1",
    service: ServiceSnapshot = NUTRI,
    at: time = time(10, 0),
) -> Appointment:
    return Appointment(aid, patient, patient.upper(), service, d, at, status=status, price=price)


def _record(rid: str, kind: str, amount: float, d: date, category: str = "Outros") -> FinancialRecord:
    return FinancialRecord(rid, kind, f"registro {rid}", amount, d, category)


def test_june_scenario():
    a = _appt("A", date(2024, 6, 10), price=150)
    b = _record("B", "income", 200, date(2024, 6, 15), "Outros")

    assert reporting.monthly_revenue([a], [b], NOW) == 350
    stats = reporting.service_type_stats(a.service.id, [a])
    assert stats == reporting.ServiceStats(patient_count=1, appointment_count=1, revenue=150)


def test_monthly_revenue_ignores_status():
    appts = [_appt("A", date(2024, 6, 10)), _appt("B", date(2024, 6, 25), price=80)]
    before = reporting.monthly_revenue(appts, [], NOW)
    changed = [replace(appts[0], status="cancelled"), replace(appts[1], status="no-show")]
    assert reporting.monthly_revenue(changed, [], NOW) == before == 230


def test_dashboard_stats():
    patients = [Patient("p1", "Ana"), Patient("p2", "Bia")]
    appts = [
        _appt("A", date(2024, 6, 20)),
        _appt("B", date(2024, 6, 20), status="completed", price=100),
        _appt("C", date(2024, 5, 31), price=999),
        _appt("D", date(2024, 7, 1)),
    ]
    records = [
        _record("R1", "income", 50, date(2024, 6, 1)),
        _record("R2", "expense", 500, date(2024, 6, 2), "Aluguel"),
        _record("R3", "income", 70, date(2023, 6, 2)),
    ]
    stats = reporting.dashboard_stats(patients, appts, records, NOW)
    assert stats.total_patients == 2
    assert stats.today_appointments == 2
    assert stats.monthly_revenue == 150 + 100 + 50
    assert stats.pending_appointments == 3


def test_no_data_is_zero():
    stats = reporting.dashboard_stats([], [], [], NOW)
    assert stats == reporting.DashboardStats(0, 0, 0, 0)
    assert reporting.financial_summary([], [], "year", NOW) == reporting.FinancialSummary(0, 0, 0)
    assert reporting.category_breakdown([], [], "month", NOW) == reporting.CategoryBreakdown()


def test_service_stats():
    appts = [
        _appt("A", date(2024, 6, 1), patient="p1"),
        _appt("B", date(2024, 6, 2), patient="p1", status="cancelled"),
        _appt("C", date(2024, 6, 3), patient="p2", price=0),
        _appt("D", date(2024, 6, 3), patient="p3", service=SPORT, price=200),
    ]
    s = reporting.service_type_stats("1", appts)
    assert s.patient_count == 2
    assert s.appointment_count == 3
    assert s.patient_count <= s.appointment_count
    assert s.revenue == 300

    empty = reporting.service_type_stats("5", appts)
    assert empty == reporting.ServiceStats(0, 0, 0)


@pytest.mark.parametrize(
    "window,d,expected",
    [
        ("week", date(2024, 6, 13), True),
        ("week", date(2024, 6, 12), False),
        ("week", date(2024, 6, 20), True),
        ("month", date(2024, 6, 1), True),
        ("month", date(2024, 6, 30), True),
        ("month", date(2024, 5, 31), False),
        ("year", date(2024, 1, 1), True),
        ("year", date(2023, 12, 31), False),
    ],
)
def test_window_boundaries(window: str, d: date, expected: bool):
    assert reporting.in_window(d, window, NOW) is expected


def test_unknown_window():
    with pytest.raises(ValueError):
        reporting.in_window(date(2024, 6, 1), "decade", NOW)


def test_financial_summary_counts_both_sources():
    appts = [_appt("A", date(2024, 6, 18), price=150), _appt("B", date(2024, 3, 1), price=90)]
    records = [
        _record("R1", "income", 150, date(2024, 6, 18), "Consultas"),
        _record("R2", "expense", 40, date(2024, 6, 19), "Transporte"),
        _record("R3", "expense", 10, date(2024, 1, 19), "Transporte"),
    ]
    week = reporting.financial_summary(appts, records, "week", NOW)
    assert week == reporting.FinancialSummary(total_income=300, total_expenses=40, net_profit=260)

    year = reporting.financial_summary(appts, records, "year", NOW)
    assert year.total_income == 390
    assert year.total_expenses == 50
    assert year.net_profit == 340


def test_category_breakdown_injects_appointment_revenue():
    appts = [_appt("A", date(2024, 6, 10), price=150)]
    records = [
        _record("R1", "income", 100, date(2024, 6, 11), "Consultas"),
        _record("R2", "income", 30, date(2024, 6, 11), "Produtos"),
        _record("R3", "expense", 500, date(2024, 6, 1), "Aluguel"),
        _record("R4", "expense", 20, date(2024, 6, 2), "Aluguel"),
    ]
    b = reporting.category_breakdown(appts, records, "month", NOW)
    assert b.income == {"Consultas": 250, "Produtos": 30}
    assert b.expenses == {"Aluguel": 520}

    custom = reporting.category_breakdown(appts, [], "month", NOW, appointment_category="Atendimentos")
    assert custom.income == {"Atendimentos": 150}


def test_zero_appointment_revenue_adds_no_bucket():
    appts = [_appt("A", date(2024, 6, 10), price=0)]
    assert reporting.category_breakdown(appts, [], "month", NOW).income == {}


def test_filter_records():
    records = [
        _record("R1", "income", 1, date(2024, 6, 11)),
        _record("R2", "expense", 1, date(2024, 6, 11), "Aluguel"),
        _record("R3", "income", 1, date(2024, 2, 11)),
    ]
    assert [r.id for r in reporting.filter_records(records, "all", "month", NOW)] == ["R1", "R2"]
    assert [r.id for r in reporting.filter_records(records, "income", "year", NOW)] == ["R1", "R3"]
    assert reporting.filter_records(records, "expense", "week", NOW)[0].id == "R2"


def test_upcoming_appointments_sorted():
    appts = [
        _appt("late", date(2024, 6, 22), at=time(16, 0)),
        _appt("done", date(2024, 6, 21), status="completed"),
        _appt("early", date(2024, 6, 22), at=time(8, 0)),
        _appt("first", date(2024, 6, 21), at=time(11, 0)),
    ]
    assert [a.id for a in reporting.upcoming_appointments(appts)] == ["first", "early", "late"]
    assert len(reporting.upcoming_appointments(appts, limit=1)) == 1


def test_format_currency():
    assert reporting.format_currency(1234.5) == "R$ 1.234,50"
    assert reporting.format_currency(0) == "R$ 0,00"
