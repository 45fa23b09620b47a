import pytest

from carwash.api.bookings import get_store
from carwash.main import app
from carwash.services.store import InMemoryBookingStore


@pytest.fixture(autouse=True)
def memory_store():
    # Every test gets an empty store behind the API
    store = InMemoryBookingStore()
    app.dependency_overrides[get_store] = lambda: store
    yield store
    app.dependency_overrides.clear()
