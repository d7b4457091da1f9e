from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from agenda_nutri.domain.models import (
    Appointment,
    Notification,
    NotificationSettings,
    Profile,
    new_id,
)
from agenda_nutri.domain.rules import PersistenceError
from agenda_nutri.events import EventBus
from agenda_nutri.repos.inbox import InboxRepo
from agenda_nutri.services.reporting import format_currency

logger = logging.getLogger(__name__)

PERMISSIONS = ("default", "granted", "denied")


@dataclass(frozen=True)
class DeliveryReceipt:
    success: bool
    message_id: str


def _fmt_date(a: Appointment) -> str:
    return a.date.strftime("%d/%m/%Y") if a.date else "-"


def _fmt_time(a: Appointment) -> str:
    return a.time.strftime("%H:%M") if a.time else "-"


class LocalAlertChannel:
    """
    Alerta local do sistema. Sem `show` (capacidade ausente) ou com a
    permissão negada, o envio vira no-op.
    """

    def __init__(
        self,
        show: Callable[[str, str], None] | None = None,
        *,
        permission: str = "default",
        ask: Callable[[], bool] | None = None,
    ):
        self.show = show
        self.permission = permission if permission in PERMISSIONS else "default"
        self.ask = ask

    @property
    def supported(self) -> bool:
        return self.show is not None

    def request_permission(self) -> bool:
        if not self.supported:
            logger.info("local alert: capability not available")
            return False
        if self.permission == "granted":
            return True
        if self.permission == "denied":
            return False
        granted = self.ask() if self.ask is not None else True
        self.permission = "granted" if granted else "denied"
        return granted

    def send(self, title: str, body: str, *, tag: str | None = None) -> bool:
        if self.show is None or self.permission != "granted":
            return False
        self.show(title, body)
        logger.info(f"local alert shown: {title} ({tag or '-'})")
        return True


class EmailChannel:
    def send(self, to: str, subject: str, message: str) -> DeliveryReceipt:
        # stub: a entrega real é um serviço externo
        logger.info(f"email sent to={to} subject={subject!r}: {message}")
        return DeliveryReceipt(success=True, message_id=new_id())


class SmsChannel:
    def send(self, to: str, message: str) -> DeliveryReceipt:
        logger.info(f"sms sent to={to}: {message}")
        return DeliveryReceipt(success=True, message_id=new_id())


class NotificationDispatcher:
    """
    Dispara alertas pelos canais configurados e registra cada um na
    central de notificações. Nenhuma falha de canal chega ao chamador.
    """

    def __init__(
        self,
        inbox: InboxRepo,
        *,
        local: LocalAlertChannel | None = None,
        email: EmailChannel | None = None,
        sms: SmsChannel | None = None,
        clock: Callable[[], datetime] = datetime.now,
        currency: str = "R$",
        bus: EventBus | None = None,
    ):
        self.inbox = inbox
        self.local = local or LocalAlertChannel()
        self.email = email or EmailChannel()
        self.sms = sms or SmsChannel()
        self.clock = clock
        self.currency = currency
        self.bus = bus

    # ---------------- Infra ----------------

    def _fire(self, label: str, fn: Callable[..., object], *args: object, **kwargs: object) -> None:
        try:
            fn(*args, **kwargs)
        except Exception:
            logger.exception(f"dispatch: {label} channel failed")

    def _record(
        self, kind: str, title: str, message: str, appointment_id: str | None
    ) -> Notification:
        n = Notification(
            id=new_id(),
            type=kind,
            title=title,
            message=message,
            timestamp=self.clock(),
            read=False,
            appointment_id=appointment_id,
        )
        try:
            self.inbox.append(n)
        except PersistenceError:
            logger.error(f"dispatch: could not store {kind} notification in inbox")
            return n
        if self.bus is not None:
            self.bus.publish("notifications")
        return n

    # ---------------- Eventos ----------------

    def appointment_reminder(
        self, a: Appointment, settings: NotificationSettings, profile: Profile
    ) -> Notification | None:
        if not (settings.email_reminders or settings.sms_reminders):
            return None
        when = _fmt_time(a)
        if settings.email_reminders:
            self._fire(
                "email",
                self.email.send,
                profile.email,
                "Lembrete: Consulta amanhã",
                f"Você tem uma consulta marcada com {a.patient_name} amanhã às {when}.",
            )
        if settings.sms_reminders:
            self._fire(
                "sms",
                self.sms.send,
                profile.phone,
                f"Lembrete: Consulta com {a.patient_name} amanhã às {when}.",
            )
        body = f"{a.patient_name} às {when}"
        self._fire("local", self.local.send, "Consulta Amanhã", body, tag=f"appointment-{a.id}")
        return self._record("appointment_reminder", "Consulta Amanhã", body, a.id)

    def payment_reminder(
        self, a: Appointment, settings: NotificationSettings, profile: Profile
    ) -> Notification | None:
        if not settings.payment_reminders:
            return None
        body = f"{a.patient_name} - {format_currency(a.price, self.currency)}"
        self._fire(
            "email",
            self.email.send,
            profile.email,
            "Lembrete de Pagamento",
            f"Pagamento pendente: {body}",
        )
        self._fire("local", self.local.send, "Pagamento Pendente", body, tag=f"payment-{a.id}")
        return self._record("payment_reminder", "Pagamento Pendente", body, a.id)

    def new_appointment(
        self, a: Appointment, settings: NotificationSettings, profile: Profile
    ) -> Notification | None:
        if not settings.new_appointments:
            return None
        body = f"{a.patient_name} - {_fmt_date(a)} às {_fmt_time(a)}"
        self._fire(
            "email",
            self.email.send,
            profile.email,
            "Novo Agendamento",
            f"Nova consulta agendada: {a.patient_name} em {_fmt_date(a)} às {_fmt_time(a)}",
        )
        self._fire("local", self.local.send, "Novo Agendamento", body, tag=f"new-appointment-{a.id}")
        return self._record("new_appointment", "Novo Agendamento", body, a.id)

    def cancelation(
        self, a: Appointment, settings: NotificationSettings, profile: Profile
    ) -> Notification | None:
        if not settings.cancelations:
            return None
        body = f"{a.patient_name} - {_fmt_date(a)} às {_fmt_time(a)}"
        self._fire(
            "email",
            self.email.send,
            profile.email,
            "Consulta Cancelada",
            f"Consulta cancelada: {a.patient_name} em {_fmt_date(a)} às {_fmt_time(a)}",
        )
        self._fire("local", self.local.send, "Consulta Cancelada", body, tag=f"cancelation-{a.id}")
        return self._record("cancelation", "Consulta Cancelada", body, a.id)

    def send_test(self, channel: str, profile: Profile) -> bool:
        """Botões 'testar' das configurações; não registra na central."""
        if channel == "local":
            return self.local.send(
                "Teste de Notificação", "Esta é uma notificação de teste do seu sistema."
            )
        if channel == "email":
            return self.email.send(
                profile.email,
                "Teste de Email - Agenda Nutricional",
                "Este é um email de teste do seu sistema de notificações.",
            ).success
        if channel == "sms":
            return self.sms.send(
                profile.phone, "Teste SMS: Seu sistema de notificações está funcionando!"
            ).success
        raise ValueError(f"unknown channel: {channel}")
