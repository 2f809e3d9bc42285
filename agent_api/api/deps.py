"""FastAPI dependency injection."""

import threading
from typing import Annotated

from fastapi import Depends

from agent_api.core.config import Settings, get_settings
from agent_api.services.booking import BookingService
from agent_api.services.notifications import Notifier, build_notifier
from agent_api.services.price_list import PriceListStore
from agent_api.services.scheduling import ScheduleRules
from agent_api.services.sheets import BookingStore, SheetsBookingStore

# Cached instances, created on first use
_price_list: PriceListStore | None = None
_booking_store: SheetsBookingStore | None = None
_notifier: Notifier | None = None
_lock = threading.Lock()


def get_price_list(
    settings: Annotated[Settings, Depends(get_settings)],
) -> PriceListStore:
    """Dependency for the in-memory price list (loaded at startup)."""
    global _price_list
    if _price_list is None:
        with _lock:
            if _price_list is None:
                _price_list = PriceListStore.from_settings(settings)
    return _price_list


def get_booking_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> BookingStore:
    """Dependency for the Google Sheets booking store.

    Raises BookingStoreError when the sheet is not configured.
    """
    global _booking_store
    if _booking_store is None:
        with _lock:
            if _booking_store is None:
                _booking_store = SheetsBookingStore.from_settings(settings)
    return _booking_store


def get_notifier(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Notifier:
    global _notifier
    if _notifier is None:
        with _lock:
            if _notifier is None:
                _notifier = build_notifier(settings)
    return _notifier


def get_booking_service(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[BookingStore, Depends(get_booking_store)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> BookingService:
    return BookingService(
        store=store,
        rules=ScheduleRules.from_settings(settings),
        columns=settings.booking_columns,
        notifier=notifier,
    )


async def close_clients() -> None:
    """Release network clients held by cached dependencies."""
    if _notifier is not None:
        await _notifier.close()
