"""
Translate list/search query parameters into store predicates.

Filtered browsing and free-text search are separate modes: the search
predicate never carries filters and the list predicate never carries text.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from carwash.core.errors import ValidationFailure
from carwash.services.store import Predicate, Sort

# API sort field -> store column
SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "date": "date",
    "timeSlot": "time_slot",
    "price": "price",
    "duration": "duration",
    "status": "status",
    "rating": "rating",
    "customerName": "customer_name",
    "serviceType": "service_type",
    "carDetails.make": "car_details.make",
    "carDetails.model": "car_details.model",
    "carDetails.year": "car_details.year",
    "carDetails.type": "car_details.type",
}
DEFAULT_SORT_FIELD = "createdAt"

# Query parameter -> store column, exact match
EQUALITY_FILTERS = {
    "serviceType": "service_type",
    "carType": "car_details.type",
    "status": "status",
}

SEARCH_FIELDS = ("customer_name", "car_details.make", "car_details.model")


@dataclass(frozen=True)
class ListParams:
    page: int = 1
    limit: int = 10
    service_type: Optional[str] = None
    car_type: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = "desc"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _present(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def positive_int(value, default: int) -> int:
    """parseInt-style coercion: anything that is not an integer >= 1 falls back to the default."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def parse_date_param(name: str, value) -> Optional[str]:
    value = _present(value)
    if value is None:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value).isoformat()
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        raise ValidationFailure(errors=[{"field": name, "message": f"{name} must be an ISO 8601 date"}])


def parse_list_params(query: Mapping[str, str], default_limit: int = 10) -> ListParams:
    return ListParams(
        page=positive_int(query.get("page"), 1),
        limit=positive_int(query.get("limit"), default_limit),
        service_type=_present(query.get("serviceType")),
        car_type=_present(query.get("carType")),
        status=_present(query.get("status")),
        date_from=parse_date_param("dateFrom", query.get("dateFrom")),
        date_to=parse_date_param("dateTo", query.get("dateTo")),
        sort_by=_present(query.get("sortBy")) or DEFAULT_SORT_FIELD,
        sort_order=_present(query.get("sortOrder")) or "desc",
    )


def build_filter(params: ListParams) -> Predicate:
    """Match predicate for the filtered list. Empty parameters are left out."""
    values = {
        "serviceType": params.service_type,
        "carType": params.car_type,
        "status": params.status,
    }
    equals = {EQUALITY_FILTERS[name]: value for name, value in values.items() if value}
    return Predicate(equals=equals, date_from=params.date_from, date_to=params.date_to)


def build_sort(params: ListParams) -> Sort:
    field = SORTABLE_FIELDS.get(params.sort_by, SORTABLE_FIELDS[DEFAULT_SORT_FIELD])
    return Sort(field=field, descending=params.sort_order != "asc")


def build_search(q: Optional[str]) -> Optional[Predicate]:
    """Free-text predicate, or None when there is nothing to search for."""
    text = _present(q)
    if text is None:
        return None
    return Predicate(contains_any=(SEARCH_FIELDS, text))


NEWEST_FIRST = Sort(field="created_at", descending=True)
