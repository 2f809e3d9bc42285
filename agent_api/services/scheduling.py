"""Appointment conflict detection and slot suggestion.

Every booking is a half-open interval [start, start + duration). Two
bookings conflict when

    a.start < b.end and a.end > b.start

so 09:00-09:30 and 09:30-10:00 sit back to back without conflicting.
Durations come from the service name: long services (a "cita", by default)
take 60 minutes, everything else 30.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from agent_api.core.config import Settings
from agent_api.models.booking import Appointment

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")
TIME_FORMATS = ("%H:%M", "%H:%M:%S")

# Day zero of spreadsheet serial dates (Google Sheets and Excel agree from 1900-03-01 on)
SERIAL_EPOCH = datetime(1899, 12, 30)


@dataclass(frozen=True)
class ScheduleRules:
    long_services: frozenset[str] = frozenset({"cita"})
    long_minutes: int = 60
    default_minutes: int = 30
    day_start: time = time(9, 0)
    day_end: time = time(18, 0)
    step_minutes: int = 30
    max_suggestions: int = 5
    # Sheet column positions of the fields a booking interval is built from
    date_index: int = 5
    time_index: int = 6
    service_index: int = 7

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScheduleRules":
        columns = settings.booking_columns
        return cls(
            long_services=frozenset(s.strip().lower() for s in settings.long_services),
            long_minutes=settings.long_service_minutes,
            default_minutes=settings.default_service_minutes,
            day_start=parse_time(settings.business_day_start),
            day_end=parse_time(settings.business_day_end),
            step_minutes=max(1, settings.slot_step_minutes),
            max_suggestions=settings.max_suggestions,
            date_index=columns.index("fecha"),
            time_index=columns.index("hora"),
            service_index=columns.index("servicio"),
        )

    def duration_for(self, service: str) -> timedelta:
        minutes = (
            self.long_minutes
            if service.strip().lower() in self.long_services
            else self.default_minutes
        )
        return timedelta(minutes=minutes)


def _is_serial(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_date(value: str | float) -> date:
    """Parse a booking date; raises ValueError when no known format fits.

    Numbers are spreadsheet serial dates; any time-of-day fraction is dropped.
    """
    if _is_serial(value):
        return (SERIAL_EPOCH + timedelta(days=int(value))).date()
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value!r}")


def parse_time(value: str | float) -> time:
    """Parse a 24h booking time; raises ValueError when no known format fits.

    Numbers are spreadsheet serial times: the fraction of a day.
    """
    if _is_serial(value):
        seconds = round((value % 1) * 86400) % 86400
        return (datetime.min + timedelta(seconds=seconds)).time()
    text = str(value).strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized time: {value!r}")


def make_appointment(
    day: str | float, hour: str | float, service: str, rules: ScheduleRules
) -> Appointment:
    start = datetime.combine(parse_date(day), parse_time(hour))
    return Appointment(start=start, end=start + rules.duration_for(service), service=service)


def overlaps(a: Appointment, b: Appointment) -> bool:
    """Half-open interval overlap test. Symmetric in a and b."""
    return a.start < b.end and a.end > b.start


def _cell(value: Any) -> Any:
    """Serial numbers pass through; anything else becomes stripped text."""
    if _is_serial(value):
        return value
    return "" if value is None else str(value).strip()


def appointments_from_rows(rows: Iterable[Sequence[Any]], rules: ScheduleRules) -> list[Appointment]:
    """Rebuild existing bookings from sheet rows.

    Date and time cells may be text or serial numbers. Rows missing the
    date, time or service cell are skipped, as are rows whose date or time
    cannot be parsed.
    """
    appointments = []
    last_index = max(rules.date_index, rules.time_index, rules.service_index)
    for row in rows:
        if len(row) <= last_index:
            continue
        day, hour = _cell(row[rules.date_index]), _cell(row[rules.time_index])
        service = str(row[rules.service_index]).strip()
        if day == "" or hour == "" or not service:
            continue
        try:
            appointments.append(make_appointment(day, hour, service, rules))
        except (ValueError, OverflowError):
            logger.warning(f"Skipping booking row with unreadable date/time: {day} {hour}")
    return appointments


def find_conflict(requested: Appointment, existing: Iterable[Appointment]) -> Appointment | None:
    """Return the first existing booking that overlaps the request, if any."""
    for appointment in existing:
        if overlaps(requested, appointment):
            return appointment
    return None


def available_slots(
    day: date,
    service: str,
    existing: Iterable[Appointment],
    rules: ScheduleRules,
    limit: int | None = None,
) -> list[str]:
    """Free start times ("HH:MM") on a day for a service, in order.

    Candidates start at the beginning of the business day and advance by
    the step size. A candidate whose interval would end after the business
    day ends is never offered.
    """
    same_day = [a for a in existing if a.day == day]
    duration = rules.duration_for(service)
    window_end = datetime.combine(day, rules.day_end)
    step = timedelta(minutes=rules.step_minutes)

    slots: list[str] = []
    candidate_start = datetime.combine(day, rules.day_start)
    while candidate_start < window_end:
        candidate = Appointment(
            start=candidate_start, end=candidate_start + duration, service=service
        )
        if candidate.end > window_end:
            break
        if find_conflict(candidate, same_day) is None:
            slots.append(candidate_start.strftime("%H:%M"))
            if limit is not None and len(slots) >= limit:
                break
        candidate_start += step
    return slots


def suggest_slots(
    requested: Appointment, existing: Iterable[Appointment], rules: ScheduleRules
) -> list[str]:
    """Up to rules.max_suggestions free slots on the requested day."""
    return available_slots(
        requested.day, requested.service, existing, rules, limit=rules.max_suggestions
    )
