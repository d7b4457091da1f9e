from __future__ import annotations

import logging
import sched
from collections.abc import Callable, Sequence
from datetime import date, datetime, time, timedelta
from typing import Protocol

from agenda_nutri.config import Settings
from agenda_nutri.domain.models import Appointment, Notification
from agenda_nutri.events import EventBus
from agenda_nutri.repos.appointments import AppointmentRepo
from agenda_nutri.repos.practice import PracticeRepo
from agenda_nutri.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


# ---------------- Seleção (funções puras) ----------------


def due_appointment_reminders(
    appointments: Sequence[Appointment], now: datetime, *, lead_hours: int = 24
) -> list[Appointment]:
    """Consultas agendadas para amanhã cuja janela de lembrete já abriu."""
    tomorrow = now.date() + timedelta(days=1)
    lead = timedelta(hours=lead_hours)
    return [
        a
        for a in appointments
        if a.status == "scheduled"
        and a.date == tomorrow
        and a.starts_at is not None
        and now >= a.starts_at - lead
    ]


def due_payment_reminders(
    appointments: Sequence[Appointment], now: datetime, *, grace_days: int = 3
) -> list[Appointment]:
    """Concluídas e não pagas há pelo menos `grace_days` dias completos."""
    grace = timedelta(days=grace_days)
    return [
        a
        for a in appointments
        if a.status == "completed"
        and not a.paid
        and a.date is not None
        and now - datetime.combine(a.date, time(0, 0)) >= grace
    ]


# ---------------- Deduplicação ----------------


class DedupStrategy(Protocol):
    def should_emit(self, appointment_id: str, kind: str, day: date) -> bool: ...


class NoDedup:
    """Repete o lembrete a cada verificação enquanto ele for elegível."""

    def should_emit(self, appointment_id: str, kind: str, day: date) -> bool:
        return True


class DailyDedup:
    """No máximo um lembrete por (consulta, tipo, dia)."""

    def __init__(self) -> None:
        self._sent: set[tuple[str, str, date]] = set()
        self._day: date | None = None

    def should_emit(self, appointment_id: str, kind: str, day: date) -> bool:
        if self._day is None or day > self._day:
            # dias anteriores não voltam a ser consultados
            self._sent = {k for k in self._sent if k[2] >= day}
            self._day = day
        key = (appointment_id, kind, day)
        if key in self._sent:
            return False
        self._sent.add(key)
        return True


def dedup_from_name(name: str) -> DedupStrategy:
    if name == "daily":
        return DailyDedup()
    if name == "none":
        return NoDedup()
    raise ValueError(f"unknown dedup strategy: {name}")


# ---------------- Motor ----------------


class ReminderEngine:
    """
    Estados: idle (sem timer) e armed (timer registrado no scheduler).

    start() arma e faz uma verificação imediata; stop() cancela o timer.
    Cada verificação relê consultas, preferências e perfil do store.
    """

    def __init__(
        self,
        appointments: AppointmentRepo,
        practice: PracticeRepo,
        dispatcher: NotificationDispatcher,
        *,
        scheduler: sched.scheduler,
        clock: Callable[[], datetime] = datetime.now,
        interval_seconds: int = 3600,
        lead_hours: int = 24,
        payment_grace_days: int = 3,
        dedup: DedupStrategy | None = None,
    ):
        self.appointments = appointments
        self.practice = practice
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.lead_hours = lead_hours
        self.payment_grace_days = payment_grace_days
        self.dedup = dedup or NoDedup()
        self._event: sched.Event | None = None

    @classmethod
    def from_config(
        cls,
        cfg: Settings,
        appointments: AppointmentRepo,
        practice: PracticeRepo,
        dispatcher: NotificationDispatcher,
        *,
        scheduler: sched.scheduler,
        clock: Callable[[], datetime] = datetime.now,
    ) -> ReminderEngine:
        return cls(
            appointments,
            practice,
            dispatcher,
            scheduler=scheduler,
            clock=clock,
            interval_seconds=cfg.reminders.interval_seconds,
            lead_hours=cfg.reminders.lead_hours,
            payment_grace_days=cfg.reminders.payment_grace_days,
            dedup=dedup_from_name(cfg.reminders.dedup),
        )

    @property
    def state(self) -> str:
        return "armed" if self._event is not None else "idle"

    def start(self) -> list[Notification]:
        if self._event is not None:
            return []
        self._arm()
        logger.info(f"reminders: armed (every {self.interval_seconds}s)")
        return self._safe_scan()

    def stop(self) -> None:
        if self._event is None:
            return
        try:
            self.scheduler.cancel(self._event)
        except ValueError:
            # o evento já tinha sido executado
            logger.debug("reminders: timer already fired")
        self._event = None
        logger.info("reminders: idle")

    def restart(self) -> list[Notification]:
        self.stop()
        return self.start()

    def bind(self, bus: EventBus) -> None:
        """Rearma (com verificação imediata) sempre que as consultas mudam."""

        def on_change() -> None:
            if self._event is not None:
                self.restart()

        bus.subscribe("appointments", on_change)

    def _arm(self) -> None:
        self._event = self.scheduler.enter(self.interval_seconds, 1, self._tick)

    def _tick(self) -> None:
        self._event = None
        self._arm()
        self._safe_scan()

    def _safe_scan(self) -> list[Notification]:
        try:
            return self.scan()
        except Exception:
            logger.exception("reminders: scan failed")
            return []

    def scan(self, now: datetime | None = None) -> list[Notification]:
        now = now or self.clock()
        appointments = self.appointments.list_all()
        settings = self.practice.notification_settings()
        profile = self.practice.profile()
        emitted: list[Notification] = []

        # com a preferência desligada nada é emitido nem marcado como enviado
        if settings.email_reminders or settings.sms_reminders:
            for a in due_appointment_reminders(appointments, now, lead_hours=self.lead_hours):
                if not self.dedup.should_emit(a.id, "appointment_reminder", now.date()):
                    continue
                n = self.dispatcher.appointment_reminder(a, settings, profile)
                if n is not None:
                    emitted.append(n)

        if settings.payment_reminders:
            for a in due_payment_reminders(appointments, now, grace_days=self.payment_grace_days):
                if not self.dedup.should_emit(a.id, "payment_reminder", now.date()):
                    continue
                n = self.dispatcher.payment_reminder(a, settings, profile)
                if n is not None:
                    emitted.append(n)

        logger.info(f"reminders: scan at {now:%Y-%m-%d %H:%M} emitted {len(emitted)}")
        return emitted
