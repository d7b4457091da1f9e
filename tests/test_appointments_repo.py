from __future__ import annotations

import sqlite3
from datetime import date, time
from pathlib import Path

import pytest

from agenda_nutri.config import Settings
from agenda_nutri.db.connection import connect
from agenda_nutri.db.schema import migrate
from agenda_nutri.db.store import KeyValueStore
from agenda_nutri.domain.rules import DomainError
from agenda_nutri.repos.appointments import AppointmentRepo, AppointmentUpsert
from agenda_nutri.repos.patients import PatientRepo, PatientUpsert
from agenda_nutri.repos.practice import PracticeRepo


@pytest.fixture
def conn(tmp_path: Path):
    db = tmp_path / "t.db"
    c = connect(db, wal_mode=False)
    migrate(c)
    yield c
    c.close()


@pytest.fixture
def repos(conn: sqlite3.Connection):
    store = KeyValueStore(conn)
    patients = PatientRepo(store)
    practice = PracticeRepo(store, Settings.defaults())
    practice.update_prices({"1": 150, "2": 180})
    return patients, practice, AppointmentRepo(store, patients, practice)


def test_create_copies_service_and_price(repos):
    patients, _practice, appts = repos
    p = patients.create(PatientUpsert(None, "Ana"))
    a = appts.create(AppointmentUpsert(None, p.id, "1", date(2024, 6, 10), time(14, 0)))
    assert a.price == 150
    assert a.service.id == "1"
    assert a.service.price == 150
    assert a.patient_name == "Ana"
    assert a.status == "scheduled"
    assert a.paid is False


def test_catalog_change_does_not_touch_saved_appointments(repos):
    patients, practice, appts = repos
    p = patients.create(PatientUpsert(None, "Ana"))
    a = appts.create(AppointmentUpsert(None, p.id, "1", date(2024, 6, 10), time(14, 0)))

    practice.update_prices({"1": 200})
    stored = appts.get(a.id)
    assert stored.price == 150
    assert stored.service.price == 150

    # editar a consulta copia o preço atual do catálogo
    edited = appts.update(AppointmentUpsert(a.id, p.id, "1", a.date, a.time, notes="retorno"))
    assert edited.price == 200
    assert edited.created_at == a.created_at


def test_unknown_references(repos):
    patients, _practice, appts = repos
    p = patients.create(PatientUpsert(None, "Ana"))
    with pytest.raises(DomainError):
        appts.create(AppointmentUpsert(None, "nope", "1", date(2024, 6, 10), time(9, 0)))
    with pytest.raises(DomainError):
        appts.create(AppointmentUpsert(None, p.id, "99", date(2024, 6, 10), time(9, 0)))


def test_status_and_paid(repos):
    patients, _practice, appts = repos
    p = patients.create(PatientUpsert(None, "Ana"))
    a = appts.create(AppointmentUpsert(None, p.id, "2", date(2024, 6, 10), time(9, 0)))

    with pytest.raises(DomainError):
        appts.set_status(a.id, "done")
    appts.set_status(a.id, "completed")
    appts.mark_paid(a.id)
    stored = appts.get(a.id)
    assert stored.status == "completed"
    assert stored.paid is True
    assert [x.id for x in appts.list_by_status("completed")] == [a.id]
    assert appts.list_by_status("scheduled") == []


def test_delete(repos):
    patients, _practice, appts = repos
    p = patients.create(PatientUpsert(None, "Ana"))
    a = appts.create(AppointmentUpsert(None, p.id, "2", date(2024, 6, 10), time(9, 0)))
    appts.delete(a.id)
    assert appts.list_all() == []
    with pytest.raises(DomainError):
        appts.delete(a.id)


def test_saved_time_matches_reloaded_time(repos):
    patients, _practice, appts = repos
    p = patients.create(PatientUpsert(None, "Ana"))
    saved = appts.create(AppointmentUpsert(None, p.id, "1", date(2024, 6, 10), time(9, 0, 30)))
    assert saved.time == time(9, 0)
    assert appts.get(saved.id) == saved

    edited = appts.update(AppointmentUpsert(saved.id, p.id, "1", saved.date, time(10, 15, 59)))
    assert edited.time == time(10, 15)
    assert appts.get(saved.id) == edited
