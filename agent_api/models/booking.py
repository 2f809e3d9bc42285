from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict


class BookingRequest(BaseModel):
    """Appointment request as sent by agent callers.

    Field names are the sheet column names. Extra fields are kept so that
    deployments with a custom BOOKING_COLUMNS list can store them.
    """

    model_config = ConfigDict(extra="allow")

    nombre: Optional[str] = None
    telefono: Optional[Union[str, int]] = None
    industria: Optional[str] = None
    solicitudes: Optional[str] = None
    empleados: Optional[Union[str, int]] = None
    fecha: Optional[str] = None  # YYYY-MM-DD
    hora: Optional[str] = None  # HH:MM, 24h
    servicio: Optional[str] = None
    notas: Optional[str] = None

    def missing_fields(self, required: list[str]) -> list[str]:
        values = self.model_dump()
        return [name for name in required if not _present(values.get(name))]

    def to_row(self, columns: list[str]) -> list[str]:
        """Values in sheet column order; absent fields become ''."""
        values = self.model_dump()
        return ["" if not _present(values.get(c)) else str(values[c]).strip() for c in columns]


def _present(value: Any) -> bool:
    if value is None:
        return False
    return bool(str(value).strip())


@dataclass(frozen=True)
class Appointment:
    """A booking reconstructed as a half-open interval [start, end)."""

    start: datetime
    end: datetime
    service: str

    @property
    def day(self) -> date:
        return self.start.date()


@dataclass(frozen=True)
class BookingConfirmation:
    """What notifiers receive once a booking has been stored."""

    name: str
    date: str
    time: str
    service: str
    phone: str = ""
    notes: str = ""
    extra: Optional[dict[str, str]] = None
