"""Booking workflow: validate, check for conflicts, store, notify."""

import asyncio
import logging
from dataclasses import dataclass, field

from agent_api.core.enums import NotificationStatus
from agent_api.models.booking import Appointment, BookingConfirmation, BookingRequest
from agent_api.services.notifications import NotificationError, NoOpNotifier, Notifier
from agent_api.services.scheduling import (
    ScheduleRules,
    appointments_from_rows,
    available_slots,
    find_conflict,
    make_appointment,
    parse_date,
    suggest_slots,
)
from agent_api.services.sheets import BookingStore, BookingStoreError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["nombre", "fecha", "hora", "servicio"]
# Fields BookingConfirmation carries by name; anything else goes in extra
_CONFIRMATION_FIELDS = {"nombre", "fecha", "hora", "servicio", "telefono", "notas"}


class BookingValidationError(ValueError):
    """The request is missing fields or carries an unreadable date/time."""


class BookingSaveError(BookingStoreError):
    """No conflict was found but the new row could not be stored."""


@dataclass
class BookingOutcome:
    booked: bool
    appointment: Appointment
    suggestions: list[str] = field(default_factory=list)
    notification: NotificationStatus = NotificationStatus.SKIPPED


class BookingService:
    def __init__(
        self,
        store: BookingStore,
        rules: ScheduleRules,
        columns: list[str],
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.rules = rules
        self.columns = columns
        self.notifier = notifier or NoOpNotifier()

    def validate(self, request: BookingRequest) -> Appointment:
        missing = request.missing_fields(REQUIRED_FIELDS)
        if missing:
            raise BookingValidationError(
                "Faltan campos requeridos: nombre, fecha, hora y servicio son obligatorios."
            )
        try:
            return make_appointment(request.fecha, request.hora, request.servicio, self.rules)
        except ValueError as e:
            raise BookingValidationError(
                "Formato invalido: fecha debe ser YYYY-MM-DD y hora HH:MM (24h)."
            ) from e

    async def existing_appointments(self) -> list[Appointment]:
        rows = await asyncio.to_thread(self.store.read_rows)
        return appointments_from_rows(rows, self.rules)

    async def book(self, request: BookingRequest) -> BookingOutcome:
        """Store the booking unless it overlaps an existing one.

        Raises BookingValidationError, BookingStoreError (read failed) or
        BookingSaveError (append failed).
        """
        requested = self.validate(request)
        existing = await self.existing_appointments()

        conflict = find_conflict(requested, existing)
        if conflict is not None:
            logger.info(
                f"Booking conflict at {requested.start:%Y-%m-%d %H:%M} "
                f"with existing {conflict.start:%H:%M}-{conflict.end:%H:%M}"
            )
            return BookingOutcome(
                booked=False,
                appointment=requested,
                suggestions=suggest_slots(requested, existing, self.rules),
            )

        try:
            await asyncio.to_thread(self.store.append_row, request.to_row(self.columns))
        except BookingStoreError as e:
            raise BookingSaveError(str(e)) from e

        notification = await self.notify(request)
        return BookingOutcome(booked=True, appointment=requested, notification=notification)

    async def notify(self, request: BookingRequest) -> NotificationStatus:
        if isinstance(self.notifier, NoOpNotifier):
            return NotificationStatus.SKIPPED
        try:
            await self.notifier.send_booking_confirmation(to_confirmation(request, self.columns))
        except NotificationError as e:
            logger.warning(f"Booking stored but confirmation not delivered: {e}")
            return NotificationStatus.FAILED
        return NotificationStatus.SENT

    async def availability(self, day: str, service: str) -> list[str]:
        """Every free slot of a day for a service."""
        try:
            parsed_day = parse_date(day)
        except ValueError as e:
            raise BookingValidationError("Formato invalido: fecha debe ser YYYY-MM-DD.") from e
        existing = await self.existing_appointments()
        return available_slots(parsed_day, service, existing, self.rules)


def to_confirmation(request: BookingRequest, columns: list[str]) -> BookingConfirmation:
    values = dict(zip(columns, request.to_row(columns)))
    extra = {k: v for k, v in values.items() if k not in _CONFIRMATION_FIELDS and v}
    return BookingConfirmation(
        name=str(request.nombre).strip(),
        date=str(request.fecha).strip(),
        time=str(request.hora).strip(),
        service=str(request.servicio).strip(),
        phone=values.get("telefono", ""),
        notes=values.get("notas", ""),
        extra=extra or None,
    )
