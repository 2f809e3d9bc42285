"""Appointment booking routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from agent_api.api.deps import get_booking_service
from agent_api.core.logging import log_error
from agent_api.models.booking import BookingRequest
from agent_api.services.booking import (
    BookingSaveError,
    BookingService,
    BookingValidationError,
)

router = APIRouter()

Bookings = Annotated[BookingService, Depends(get_booking_service)]


def _error(status_code: int, estado: str, mensaje: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"estado": estado, "mensaje": mensaje})


@router.post("/agendar")
async def book_appointment(req: BookingRequest, service: Bookings):
    """Create a booking, or suggest free slots when the time is taken.

    Read failures on the booking sheet propagate as BookingStoreError and
    are turned into a 503 by the app-level handler.
    """
    try:
        outcome = await service.book(req)
    except BookingValidationError as e:
        return _error(400, "error", str(e))
    except BookingSaveError as e:
        log_error("Booking append failed", e, fecha=req.fecha, hora=req.hora)
        return _error(
            500,
            "error_guardado",
            "No se pudo guardar la cita en la hoja de calculo. Intente de nuevo.",
        )

    if not outcome.booked:
        return JSONResponse(
            status_code=409,
            content={
                "estado": "conflicto",
                "mensaje": f"El horario de {req.hora} no esta disponible.",
                "horariosSugeridos": outcome.suggestions,
            },
        )

    return JSONResponse(
        status_code=201,
        content={
            "estado": "agendada",
            "mensaje": "Cita confirmada exitosamente.",
            "detalles": {
                "nombre": req.nombre,
                "fecha": req.fecha,
                "hora": req.hora,
                "servicio": req.servicio,
            },
            "notificacion": outcome.notification.value,
        },
    )


@router.get("/disponibilidad")
async def availability(
    service: Bookings,
    fecha: Annotated[str, Query(min_length=1)],
    servicio: Annotated[str, Query(min_length=1)] = "llamada",
):
    """List every free start time of a day for a service."""
    try:
        slots = await service.availability(fecha, servicio)
    except BookingValidationError as e:
        return _error(400, "error", str(e))
    return {"fecha": fecha, "servicio": servicio, "horariosDisponibles": slots}
