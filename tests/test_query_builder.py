import pytest

from carwash.core.errors import ValidationFailure
from carwash.services.query_builder import (
    ListParams, build_filter, build_search, build_sort, parse_list_params, positive_int,
)


@pytest.mark.parametrize("value, expected", [
    ("3", 3), (" 7 ", 7), ("0", 10), ("-2", 10), ("abc", 10), ("2.5", 10), (None, 10), ("", 10),
])
def test_positive_int(value, expected):
    assert positive_int(value, 10) == expected


def test_parse_defaults():
    params = parse_list_params({}, default_limit=10)

    assert params == ListParams()
    assert params.skip == 0


def test_parse_full_query():
    params = parse_list_params({
        "page": "3",
        "limit": "5",
        "serviceType": "Deluxe Wash",
        "carType": " suv ",
        "status": "",
        "dateFrom": "2025-09-01",
        "dateTo": "2025-09-30T23:59:59Z",
        "sortBy": "price",
        "sortOrder": "asc",
    })

    assert params.skip == 10
    assert params.car_type == "suv"
    assert params.status is None
    assert params.date_to == "2025-09-30"

    predicate = build_filter(params)
    assert predicate.equals == {"service_type": "Deluxe Wash", "car_details.type": "suv"}
    assert (predicate.date_from, predicate.date_to) == ("2025-09-01", "2025-09-30")


def test_invalid_date_is_a_validation_failure():
    with pytest.raises(ValidationFailure) as exc:
        parse_list_params({"dateTo": "31/12/2025"})

    assert exc.value.errors == [{"field": "dateTo", "message": "dateTo must be an ISO 8601 date"}]


def test_sort_falls_back_to_created_at():
    sort = build_sort(ListParams(sort_by="favouriteColour", sort_order="asc"))
    assert (sort.field, sort.descending) == ("created_at", False)

    sort = build_sort(ListParams(sort_by="carDetails.year", sort_order="DESC"))
    assert (sort.field, sort.descending) == ("car_details.year", True)


def test_search_predicate():
    assert build_search(None) is None
    assert build_search("   ") is None

    predicate = build_search("  civic ")
    assert predicate.equals == {}
    assert predicate.contains_any == (("customer_name", "car_details.make", "car_details.model"), "civic")
