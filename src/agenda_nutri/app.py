from __future__ import annotations

import argparse
import logging
import sched
import sqlite3
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from agenda_nutri.config import Settings, load_config
from agenda_nutri.db.connection import connect
from agenda_nutri.db.schema import migrate
from agenda_nutri.db.store import KeyValueStore
from agenda_nutri.events import EventBus
from agenda_nutri.repos.appointments import AppointmentRepo
from agenda_nutri.repos.financial import FinancialRepo
from agenda_nutri.repos.inbox import InboxRepo
from agenda_nutri.repos.patients import PatientRepo
from agenda_nutri.repos.practice import PracticeRepo
from agenda_nutri.services import reporting
from agenda_nutri.services.agenda import AgendaService
from agenda_nutri.services.notifications import LocalAlertChannel, NotificationDispatcher
from agenda_nutri.services.reminders import ReminderEngine

logger = logging.getLogger(__name__)


@dataclass
class Practice:
    cfg: Settings
    store: KeyValueStore
    bus: EventBus
    patients: PatientRepo
    practice: PracticeRepo
    appointments: AppointmentRepo
    financial: FinancialRepo
    inbox: InboxRepo
    dispatcher: NotificationDispatcher
    agenda: AgendaService
    reminders: ReminderEngine


def open_practice(
    cfg: Settings,
    conn: sqlite3.Connection,
    *,
    clock: Callable[[], datetime] = datetime.now,
    scheduler: sched.scheduler | None = None,
    local_alert: LocalAlertChannel | None = None,
) -> Practice:
    migrate(conn)
    store = KeyValueStore(conn)
    bus = EventBus()
    patients = PatientRepo(store)
    practice = PracticeRepo(store, cfg)
    appointments = AppointmentRepo(store, patients, practice)
    financial = FinancialRepo(store, cfg)
    inbox = InboxRepo(store)
    dispatcher = NotificationDispatcher(
        inbox, local=local_alert, clock=clock, currency=cfg.app.currency, bus=bus
    )
    agenda = AgendaService(appointments, practice, dispatcher, bus=bus)
    reminders = ReminderEngine.from_config(
        cfg,
        appointments,
        practice,
        dispatcher,
        scheduler=scheduler or sched.scheduler(time.monotonic, time.sleep),
        clock=clock,
    )
    reminders.bind(bus)
    return Practice(
        cfg=cfg,
        store=store,
        bus=bus,
        patients=patients,
        practice=practice,
        appointments=appointments,
        financial=financial,
        inbox=inbox,
        dispatcher=dispatcher,
        agenda=agenda,
        reminders=reminders,
    )


def _console_alert(title: str, body: str) -> None:
    print(f"[alerta] {title}: {body}")


def _cmd_dashboard(p: Practice) -> None:
    now = datetime.now()
    appts = p.appointments.list_all()
    stats = reporting.dashboard_stats(p.patients.list_all(), appts, p.financial.list_all(), now)
    cur = p.cfg.app.currency
    print(f"Total de Pacientes:      {stats.total_patients}")
    print(f"Consultas Hoje:          {stats.today_appointments}")
    print(f"Receita Mensal:          {reporting.format_currency(stats.monthly_revenue, cur)}")
    print(f"Agendamentos Pendentes:  {stats.pending_appointments}")
    print()
    for st in p.practice.service_types():
        s = reporting.service_type_stats(st.id, appts)
        print(
            f"- {st.name}: {s.appointment_count} consulta(s), {s.patient_count} paciente(s), "
            f"{reporting.format_currency(s.revenue, cur)}"
        )
    print("\nPróximas Consultas:")
    upcoming = reporting.upcoming_appointments(appts)
    if not upcoming:
        print("  Nenhuma consulta agendada")
    for a in upcoming:
        print(f"  {a.date:%d/%m/%Y} {a.time:%H:%M} {a.patient_name} ({a.service.name})")


def _cmd_finance(p: Practice, window: str) -> None:
    now = datetime.now()
    appts = p.appointments.list_all()
    records = p.financial.list_all()
    cur = p.cfg.app.currency
    summary = reporting.financial_summary(appts, records, window, now)
    print(f"Receitas:  {reporting.format_currency(summary.total_income, cur)}")
    print(f"Despesas:  {reporting.format_currency(summary.total_expenses, cur)}")
    print(f"Lucro:     {reporting.format_currency(summary.net_profit, cur)}")
    breakdown = reporting.category_breakdown(
        appts, records, window, now, appointment_category=p.cfg.finance.appointment_category
    )
    for label, bucket in (("Receitas", breakdown.income), ("Despesas", breakdown.expenses)):
        print(f"\n{label} por categoria:")
        for category, amount in bucket.items():
            print(f"  {category}: {reporting.format_currency(amount, cur)}")


def _cmd_inbox(p: Practice) -> None:
    items = p.inbox.list_all()
    print(f"{p.inbox.unread_count()} não lida(s)")
    for n in items:
        mark = " " if n.read else "*"
        print(f"{mark} {n.timestamp:%d/%m/%Y %H:%M} {n.title}: {n.message}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="agenda-nutri")
    parser.add_argument("--config", default="config/config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("dashboard")
    fin = sub.add_parser("finance")
    fin.add_argument("--window", choices=reporting.WINDOWS, default="month")
    sub.add_parser("inbox")
    rem = sub.add_parser("remind")
    rem.add_argument("--once", action="store_true", help="uma verificação e sai")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_config(args.config)
    conn = connect(cfg.storage.db_path, wal_mode=cfg.storage.wal_mode)
    alert = LocalAlertChannel(_console_alert)
    alert.request_permission()
    try:
        p = open_practice(cfg, conn, local_alert=alert)
        if args.command == "dashboard":
            _cmd_dashboard(p)
        elif args.command == "finance":
            _cmd_finance(p, args.window)
        elif args.command == "inbox":
            _cmd_inbox(p)
        elif args.command == "remind":
            if args.once:
                p.reminders.scan()
            else:
                p.reminders.start()
                try:
                    p.reminders.scheduler.run()
                except KeyboardInterrupt:
                    logger.info("reminders: interrupted")
                finally:
                    p.reminders.stop()
    finally:
        conn.close()


if __name__ == "__main__":
    main()
