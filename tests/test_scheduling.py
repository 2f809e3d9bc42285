"""Appointment conflict detection and slot suggestion tests.

Usage:
    pytest tests/test_scheduling.py -v
"""

from datetime import date, datetime, time, timedelta

import pytest

from agent_api.core.config import Settings
from agent_api.models.booking import Appointment
from agent_api.services.scheduling import (
    ScheduleRules,
    appointments_from_rows,
    available_slots,
    find_conflict,
    make_appointment,
    overlaps,
    parse_date,
    parse_time,
    suggest_slots,
)

RULES = ScheduleRules()
DAY = "2025-03-10"


def _row(fecha: str, hora: str, servicio: str, nombre: str = "Cliente") -> list[str]:
    return [nombre, "5550000000", "retail", "", "", fecha, hora, servicio, ""]


def _appt(hora: str, servicio: str = "llamada", fecha: str = DAY) -> Appointment:
    return make_appointment(fecha, hora, servicio, RULES)


# =============================================================================
# Parsing and durations
# =============================================================================

class TestParsing:
    def test_iso_date(self):
        assert parse_date("2025-03-10") == date(2025, 3, 10)

    def test_day_first_date(self):
        assert parse_date("10/03/2025") == date(2025, 3, 10)

    def test_bad_date(self):
        with pytest.raises(ValueError):
            parse_date("mañana")

    def test_times(self):
        assert parse_time("09:30") == time(9, 30)
        assert parse_time("14:00:00") == time(14, 0)

    def test_bad_time(self):
        with pytest.raises(ValueError):
            parse_time("25:00")

    def test_serial_date(self):
        assert parse_date(45726) == date(2025, 3, 10)
        # date-time serials keep only the day
        assert parse_date(45726.75) == date(2025, 3, 10)

    def test_serial_time(self):
        assert parse_time(10 / 24) == time(10, 0)
        assert parse_time(0.5625) == time(13, 30)
        assert parse_time(45726.75) == time(18, 0)


class TestDurations:
    def test_cita_is_an_hour(self):
        appt = _appt("10:00", "cita")
        assert appt.end - appt.start == timedelta(minutes=60)

    def test_cita_is_case_insensitive(self):
        assert RULES.duration_for(" Cita ") == timedelta(minutes=60)

    def test_other_services_are_half_an_hour(self):
        for service in ("llamada", "demo", "visita"):
            assert RULES.duration_for(service) == timedelta(minutes=30)

    def test_rules_from_settings(self):
        settings = Settings(
            LONG_SERVICES=["cita", "instalacion"],
            LONG_SERVICE_MINUTES=90,
            BUSINESS_DAY_START="08:00",
            BUSINESS_DAY_END="14:00",
            _env_file=None,
        )
        rules = ScheduleRules.from_settings(settings)
        assert rules.duration_for("instalacion") == timedelta(minutes=90)
        assert rules.day_start == time(8, 0)
        assert rules.day_end == time(14, 0)
        assert (rules.date_index, rules.time_index, rules.service_index) == (5, 6, 7)


# =============================================================================
# Overlap
# =============================================================================

class TestOverlaps:
    def test_back_to_back_do_not_conflict(self):
        assert overlaps(_appt("09:00"), _appt("09:30")) is False
        assert overlaps(_appt("09:30"), _appt("09:00")) is False

    def test_partial_overlap(self):
        assert overlaps(_appt("10:00", "cita"), _appt("10:30")) is True

    def test_symmetric(self):
        pairs = [
            (_appt("10:00", "cita"), _appt("10:30")),
            (_appt("10:00"), _appt("11:00")),
            (_appt("10:00"), _appt("10:00")),
            (_appt("09:30", "cita"), _appt("10:00", "cita")),
        ]
        for a, b in pairs:
            assert overlaps(a, b) == overlaps(b, a)

    def test_same_time_other_day(self):
        assert overlaps(_appt("10:00"), _appt("10:00", fecha="2025-03-11")) is False

    def test_find_conflict_returns_first_overlap(self):
        existing = [_appt("09:00"), _appt("10:00", "cita"), _appt("10:30")]
        conflict = find_conflict(_appt("10:15"), existing)
        assert conflict is existing[1]

    def test_find_conflict_none(self):
        assert find_conflict(_appt("12:00"), [_appt("09:00"), _appt("11:30")]) is None


# =============================================================================
# Rows from the sheet
# =============================================================================

class TestAppointmentsFromRows:
    def test_builds_intervals(self):
        rows = [_row(DAY, "09:00", "cita"), _row(DAY, "11:00", "llamada")]
        appts = appointments_from_rows(rows, RULES)
        assert [a.start for a in appts] == [
            datetime(2025, 3, 10, 9, 0),
            datetime(2025, 3, 10, 11, 0),
        ]
        assert appts[0].end == datetime(2025, 3, 10, 10, 0)

    def test_skips_short_and_incomplete_rows(self):
        rows = [
            ["Solo nombre"],
            _row("", "09:00", "cita"),
            _row(DAY, "", "cita"),
            _row(DAY, "09:00", ""),
            _row(DAY, "12:00", "llamada"),
        ]
        appts = appointments_from_rows(rows, RULES)
        assert len(appts) == 1
        assert appts[0].start.hour == 12

    def test_serial_number_cells(self):
        rows = [["Ana", 5551234567, "", "", "", 45726, 0.375, "cita", ""]]
        appts = appointments_from_rows(rows, RULES)
        assert appts[0].start == datetime(2025, 3, 10, 9, 0)
        assert appts[0].end == datetime(2025, 3, 10, 10, 0)

    def test_missing_cells_from_unformatted_reads(self):
        rows = [["Ana", "", "", "", "", None, 0.375, "cita"]]
        assert appointments_from_rows(rows, RULES) == []

    def test_skips_unreadable_rows(self, caplog):
        rows = [_row("pronto", "09:00", "cita"), _row(DAY, "nueve", "cita"), _row(DAY, "15:00", "demo")]
        appts = appointments_from_rows(rows, RULES)
        assert len(appts) == 1
        assert "Skipping booking row" in caplog.text


# =============================================================================
# Slots
# =============================================================================

class TestAvailableSlots:
    def test_empty_day(self):
        slots = available_slots(date(2025, 3, 10), "llamada", [], RULES)
        assert slots[0] == "09:00"
        assert slots[-1] == "17:30"
        assert len(slots) == 18

    def test_long_service_never_runs_past_closing(self):
        slots = available_slots(date(2025, 3, 10), "cita", [], RULES)
        assert slots[-1] == "17:00"
        assert "17:30" not in slots

    def test_busy_slots_removed(self):
        existing = [_appt("09:00", "cita"), _appt("10:30")]
        slots = available_slots(date(2025, 3, 10), "llamada", existing, RULES)
        assert slots[:3] == ["10:00", "11:00", "11:30"]

    def test_long_service_needs_whole_hour(self):
        existing = [_appt("10:00")]
        slots = available_slots(date(2025, 3, 10), "cita", existing, RULES)
        # 09:30-10:30 would overlap 10:00-10:30
        assert slots[:2] == ["09:00", "10:30"]

    def test_other_days_ignored(self):
        existing = [_appt("09:00", fecha="2025-03-11")]
        slots = available_slots(date(2025, 3, 10), "llamada", existing, RULES)
        assert slots[0] == "09:00"

    def test_fully_booked_day(self):
        existing = [_appt(f"{h:02d}:00", "cita") for h in range(9, 18)]
        assert available_slots(date(2025, 3, 10), "llamada", existing, RULES) == []


class TestSuggestSlots:
    def test_at_most_five(self):
        suggestions = suggest_slots(_appt("09:00"), [], RULES)
        assert suggestions == ["09:00", "09:30", "10:00", "10:30", "11:00"]

    def test_suggestions_are_free_and_inside_the_day(self):
        existing = [_appt(f"{h:02d}:00", "cita") for h in range(9, 16)]
        requested = _appt("10:00", "cita")
        suggestions = suggest_slots(requested, existing, RULES)
        assert suggestions == ["16:00", "16:30", "17:00"]
        for slot in suggestions:
            candidate = make_appointment(DAY, slot, "cita", RULES)
            assert find_conflict(candidate, existing) is None
            assert candidate.end <= datetime(2025, 3, 10, 18, 0)

    def test_no_room(self):
        existing = [_appt(f"{h:02d}:00", "cita") for h in range(9, 18)]
        assert suggest_slots(_appt("12:00"), existing, RULES) == []
