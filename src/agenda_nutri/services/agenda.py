from __future__ import annotations

import logging

from agenda_nutri.domain.models import Appointment
from agenda_nutri.events import EventBus
from agenda_nutri.repos.appointments import AppointmentRepo, AppointmentUpsert
from agenda_nutri.repos.practice import PracticeRepo
from agenda_nutri.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


class AgendaService:
    """
    Salvamento de consultas com os avisos disparados na hora:
    - consulta nova -> aviso de novo agendamento
    - consulta que estava agendada e passa a cancelada -> aviso de cancelamento
    """

    def __init__(
        self,
        appointments: AppointmentRepo,
        practice: PracticeRepo,
        dispatcher: NotificationDispatcher,
        *,
        bus: EventBus | None = None,
    ):
        self.appointments = appointments
        self.practice = practice
        self.dispatcher = dispatcher
        self.bus = bus

    def _publish(self) -> None:
        if self.bus is not None:
            self.bus.publish("appointments")

    def _after_change(self, previous: Appointment | None, saved: Appointment) -> None:
        settings = self.practice.notification_settings()
        profile = self.practice.profile()
        if previous is None:
            self.dispatcher.new_appointment(saved, settings, profile)
        elif previous.status == "scheduled" and saved.status == "cancelled":
            self.dispatcher.cancelation(saved, settings, profile)

    def save(self, u: AppointmentUpsert) -> Appointment:
        previous = self.appointments.get(u.id) if u.id else None
        if previous is None:
            saved = self.appointments.create(u)
            logger.info(f"agenda: created appointment {saved.id} for {saved.patient_name}")
        else:
            saved = self.appointments.update(u)
            logger.info(f"agenda: updated appointment {saved.id} ({previous.status} -> {saved.status})")
        self._after_change(previous, saved)
        self._publish()
        return saved

    def set_status(self, appointment_id: str, status: str) -> Appointment:
        previous = self.appointments.get(appointment_id)
        saved = self.appointments.set_status(appointment_id, status)
        if previous is not None:
            self._after_change(previous, saved)
        self._publish()
        return saved

    def mark_paid(self, appointment_id: str, paid: bool = True) -> Appointment:
        saved = self.appointments.mark_paid(appointment_id, paid)
        self._publish()
        return saved

    def delete(self, appointment_id: str) -> None:
        self.appointments.delete(appointment_id)
        self._publish()
