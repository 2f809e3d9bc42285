"""Shared fixtures: booking stores, fake Sheets client, notifiers, API client."""

import pytest
from fastapi.testclient import TestClient

from agent_api import main
from agent_api.api.deps import get_booking_store, get_notifier, get_price_list
from agent_api.models.booking import BookingConfirmation
from agent_api.models.product import Product
from agent_api.services.notifications import NotificationError, NoOpNotifier, Notifier
from agent_api.services.price_list import PriceListStore
from agent_api.services.sheets import BookingStoreError, SheetsBookingStore


class InMemoryBookingStore:
    """Booking rows kept in a list; can be told to fail reads or appends."""

    def __init__(self, rows=None):
        self.rows = [list(r) for r in rows or []]
        self.fail_read = False
        self.fail_append = False

    def read_rows(self):
        if self.fail_read:
            raise BookingStoreError("sheet unavailable")
        return [list(r) for r in self.rows]

    def append_row(self, values):
        if self.fail_append:
            raise BookingStoreError("quota exceeded")
        self.rows.append(list(values))


class FakeRequest:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error:
            raise self.error
        return self.result


class FakeSheetValues:
    """Mimics service.spreadsheets().values() of googleapiclient."""

    def __init__(self, rows=None, read_error=None, append_error=None):
        self.rows = rows or []
        self.read_error = read_error
        self.append_error = append_error
        self.calls = []

    def get(self, **kwargs):
        self.calls.append(("get", kwargs))
        return FakeRequest({"values": self.rows}, self.read_error)

    def append(self, **kwargs):
        self.calls.append(("append", kwargs))
        return FakeRequest({}, self.append_error)


class FakeSheetsService:
    def __init__(self, values):
        self._values = values

    def spreadsheets(self):
        return self

    def values(self):
        return self._values


class RecordingNotifier(Notifier):
    def __init__(self, fail: bool = False):
        self.sent: list[BookingConfirmation] = []
        self.fail = fail

    async def send_booking_confirmation(self, booking):
        if self.fail:
            raise NotificationError("channel down")
        self.sent.append(booking)


@pytest.fixture
def products():
    return [
        Product(code="L001", name="205 55 16 PIRELLI P7", unit="PZA", stock=4, price=2100.0),
        Product(code="L002", name="205 60 R16 BRIDGESTONE", unit="PZA", stock=2, price=1900.0),
        Product(code="L003", name="LLANTA 205/55R17 CONTINENTAL", unit="PZA", price=2300.0),
        Product(code="L004", name="1100 R22 TRACCION", unit="PZA", price=6800.0),
        Product(code="A010", name="ACEITE 20W50", unit="LT", price=150.0),
    ]


@pytest.fixture
def price_list(products):
    return PriceListStore.from_products(products)


@pytest.fixture
def booking_store():
    return InMemoryBookingStore()


@pytest.fixture
def sheet_store():
    """Build a SheetsBookingStore over a fake Sheets client: (store, values)."""

    def make(**kwargs):
        values = FakeSheetValues(**kwargs)
        store = SheetsBookingStore("sheet-123", "Citas", 9, credentials_info={})
        store._service = FakeSheetsService(values)
        return store, values

    return make


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(monkeypatch, price_list, booking_store, notifier):
    monkeypatch.setattr(main.limiter, "enabled", False)
    main.app.dependency_overrides[get_price_list] = lambda: price_list
    main.app.dependency_overrides[get_booking_store] = lambda: booking_store
    main.app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def silent_notifier():
    return NoOpNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)
