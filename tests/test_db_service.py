from unittest.mock import AsyncMock, MagicMock

import pytest
from postgrest.exceptions import APIError

from carwash.core.errors import DuplicateConflict, InvalidIdentifier, TokenError
from carwash.services.db_service import apply_predicate, column, contains_pattern, db_service
from carwash.services.query_builder import NEWEST_FIRST, build_search
from carwash.services.store import Predicate, Sort

BOOKING_ID = "0b9f6f3e-7c1a-4a43-9b0e-5a3c7d1e2f10"


def fake_query(data=None, count=None):
    """A PostgREST builder stand-in: every filter call returns the same mock."""
    query = MagicMock()
    for name in ("select", "insert", "update", "delete", "eq", "neq", "gte", "lte", "or_", "in_", "order", "range", "limit"):
        getattr(query, name).return_value = query
    query.execute = AsyncMock(return_value=MagicMock(data=data, count=count))
    return query


@pytest.fixture
def query(monkeypatch):
    query = fake_query()
    client = MagicMock()
    client.table.return_value = query
    monkeypatch.setattr(db_service, "_client", client)
    return query


def test_column_paths():
    assert column("status") == "status"
    assert column("car_details.type") == "car_details->>type"
    assert column("a.b.c") == "a->b->>c"


def test_apply_predicate():
    query = fake_query()
    predicate = Predicate(
        equals={"status": "Pending", "car_details.type": "suv"},
        date_from="2025-09-01",
        date_to="2025-09-30",
        contains_any=(("customer_name", "car_details.make"), 'smith, (jr)"'),
    )

    apply_predicate(query, predicate)

    query.eq.assert_any_call("status", "Pending")
    query.eq.assert_any_call("car_details->>type", "suv")
    query.gte.assert_called_once_with("date", "2025-09-01")
    query.lte.assert_called_once_with("date", "2025-09-30")
    query.or_.assert_called_once_with('customer_name.ilike."*smith, (jr)\\"*",car_details->>make.ilike."*smith, (jr)\\"*"')


@pytest.mark.asyncio
async def test_find_orders_and_ranges(query):
    query.execute.return_value = MagicMock(data=[{"id": BOOKING_ID}])

    rows = await db_service.find(Predicate(equals={"service_type": "Basic Wash"}), Sort("price", False), skip=20, limit=10)

    assert rows == [{"id": BOOKING_ID}]
    query.order.assert_called_once_with("price", desc=False)
    query.range.assert_called_once_with(20, 29)


@pytest.mark.asyncio
async def test_count(query):
    query.execute.return_value = MagicMock(data=[], count=7)

    assert await db_service.count(Predicate()) == 7
    query.select.assert_called_once_with("id", count="exact", head=True)


@pytest.mark.asyncio
async def test_get_and_missing_rows(query):
    query.execute.return_value = MagicMock(data=[])

    assert await db_service.get(BOOKING_ID) is None
    assert await db_service.update(BOOKING_ID, {"status": "Confirmed"}) is None
    assert await db_service.delete(BOOKING_ID) is None
    query.eq.assert_called_with("id", BOOKING_ID)


@pytest.mark.asyncio
async def test_malformed_id_never_reaches_supabase(query):
    with pytest.raises(InvalidIdentifier):
        await db_service.get("42")
    query.execute.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("code, message, expected", [
    ("22P02", "invalid input syntax for type uuid", InvalidIdentifier),
    ("23505", "duplicate key value violates unique constraint", DuplicateConflict),
    ("PGRST301", "JWT expired", TokenError),
])
async def test_postgrest_errors_are_translated(query, code, message, expected):
    query.execute.side_effect = APIError({"code": code, "message": message})

    with pytest.raises(expected):
        await db_service.find(Predicate(), Sort(), skip=0, limit=10)


@pytest.mark.asyncio
async def test_create_stamps_timestamps(query):
    query.execute.return_value = MagicMock(data=[{"id": BOOKING_ID, "customer_name": "Lisa"}])

    created = await db_service.create({"customer_name": "Lisa"})

    assert created["id"] == BOOKING_ID
    inserted = query.insert.call_args.args[0]
    assert inserted["created_at"] == inserted["updated_at"]


@pytest.mark.parametrize("text, pattern", [
    ("civic", '"*civic*"'),
    ("(", '"*(*"'),
    (",", '"*,*"'),
    ('"', '"*\\"*"'),
    ("%", '"*\\\\%*"'),
    ("a_b", '"*a\\\\_b*"'),
    ("*", '"*\\\\**"'),
    ("\\", '"*\\\\\\\\*"'),
])
def test_contains_pattern_escapes_wildcards_and_quotes(text, pattern):
    assert contains_pattern(text) == pattern


@pytest.mark.asyncio
@pytest.mark.parametrize("q", ["(", ",", '"', ")", "\\", "%", "_", "*"])
async def test_search_always_sends_text_constraint(query, q):
    await db_service.find(build_search(q), NEWEST_FIRST, skip=0, limit=20)

    query.or_.assert_called_once()
    clauses = query.or_.call_args.args[0].split(".ilike.")
    # every column gets the same quoted, escaped value
    assert f"{contains_pattern(q)},car_details->>make" in query.or_.call_args.args[0]
    assert len(clauses) == 4


@pytest.mark.asyncio
async def test_blank_search_text_matches_nothing(query):
    await db_service.find(Predicate(contains_any=(("customer_name",), "")), NEWEST_FIRST, skip=0, limit=20)

    query.or_.assert_not_called()
    query.in_.assert_called_once_with("id", [])
