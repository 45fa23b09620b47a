import pytest

from carwash.core.errors import InvalidIdentifier
from carwash.services.store import InMemoryBookingStore, Predicate, Sort, ensure_id, matches


def row(**overrides):
    data = {
        "customer_name": "Emily Davis",
        "car_details": {"make": "Tesla", "model": "Model 3", "year": 2023, "type": "sedan"},
        "service_type": "Basic Wash",
        "date": "2025-09-25",
        "time_slot": "14:00",
        "status": "Pending",
        "price": 25,
        "duration": 45,
        "rating": None,
        "add_ons": [],
    }
    data.update(overrides)
    return data


def test_ensure_id():
    uid = "0b9f6f3e-7c1a-4a43-9b0e-5a3c7d1e2f10"
    assert ensure_id(uid) == uid
    for bad in ("", "123", "not-a-uuid", None):
        with pytest.raises(InvalidIdentifier):
            ensure_id(bad)


def test_matches_nested_equality_and_dates():
    r = row()
    assert matches(r, Predicate(equals={"car_details.type": "sedan"}))
    assert not matches(r, Predicate(equals={"car_details.type": "suv"}))
    assert matches(r, Predicate(date_from="2025-09-25", date_to="2025-09-25"))
    assert not matches(r, Predicate(date_from="2025-09-26"))
    assert matches(r, Predicate(contains_any=(("customer_name", "car_details.model"), "MODEL")))
    # literal text, not a pattern
    assert not matches(r, Predicate(contains_any=(("customer_name",), "E.*s")))


@pytest.mark.asyncio
async def test_memory_store_crud():
    store = InMemoryBookingStore()

    created = await store.create(row())
    assert created["id"] and created["created_at"] == created["updated_at"]

    # returned rows are copies
    created["car_details"]["make"] = "changed"
    fetched = await store.get(created["id"])
    assert fetched["car_details"]["make"] == "Tesla"

    updated = await store.update(created["id"], {"status": "Confirmed"})
    assert updated["status"] == "Confirmed"
    assert updated["customer_name"] == "Emily Davis"

    assert (await store.delete(created["id"]))["id"] == created["id"]
    assert await store.get(created["id"]) is None
    assert await store.update(created["id"], {"status": "Cancelled"}) is None
    assert await store.delete(created["id"]) is None


@pytest.mark.asyncio
async def test_memory_store_find_sort_and_slice():
    store = InMemoryBookingStore()
    for price, rating in ((50, 4), (25, None), (100, 5), (60, 2)):
        await store.create(row(price=price, rating=rating))

    everything = Predicate()
    assert await store.count(everything) == 4

    by_price = await store.find(everything, Sort("price", descending=False), skip=1, limit=2)
    assert [r["price"] for r in by_price] == [50, 60]

    by_rating = await store.find(everything, Sort("rating", descending=True), skip=0, limit=10)
    assert [r["rating"] for r in by_rating] == [5, 4, 2, None]

    assert await store.find(everything, Sort(), skip=10, limit=5) == []
    assert await store.clear() == 4
    assert await store.count(everything) == 0


def test_blank_search_text_matches_nothing():
    assert not matches(row(), Predicate(contains_any=(("customer_name",), "")))
