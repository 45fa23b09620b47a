"""
List view state and its transitions.

The state is immutable; `transition(state, event)` returns the next state and
at most one effect for the controller to run. Deciding between "fetch the
full matching set" and "re-slice what is already cached" lives here, so it
can be tested without any I/O.

Responses are applied against the state current when they arrive, not the
state at dispatch time: a fetch result is kept only if its filter key still
matches, a search result only if the query is still the active one.
"""
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple, Union

# Everything that changes *which* records match. page/limit only change the slice.
FILTER_FIELDS = ("service_type", "car_type", "status", "date_from", "date_to", "sort_by", "sort_order")

PARAM_NAMES = {
    "service_type": "serviceType",
    "car_type": "carType",
    "status": "status",
    "date_from": "dateFrom",
    "date_to": "dateTo",
    "sort_by": "sortBy",
    "sort_order": "sortOrder",
}

Record = Dict[str, Any]


@dataclass(frozen=True)
class Filters:
    service_type: str = ""
    car_type: str = ""
    status: str = ""
    date_from: str = ""
    date_to: str = ""
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 9

    @property
    def key(self) -> Tuple[str, ...]:
        return tuple(getattr(self, name) for name in FILTER_FIELDS)

    def query_params(self) -> Dict[str, str]:
        """Non-empty filter values under their query-string names."""
        return {PARAM_NAMES[name]: getattr(self, name) for name in FILTER_FIELDS if getattr(self, name)}


@dataclass(frozen=True)
class Pagination:
    current: int = 1
    pages: int = 1
    total: int = 0
    has_next: bool = False
    has_prev: bool = False

    @classmethod
    def for_slice(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = math.ceil(total / limit) if limit else 0
        return cls(current=page, pages=pages, total=total, has_next=page < pages, has_prev=page > 1)

    @classmethod
    def single_page(cls, total: int) -> "Pagination":
        return cls(current=1, pages=1, total=total)


@dataclass(frozen=True)
class Stats:
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0
    revenue: float = 0

    @classmethod
    def from_records(cls, records) -> "Stats":
        counts = {"Pending": 0, "Confirmed": 0, "Completed": 0, "Cancelled": 0}
        revenue = 0
        for record in records:
            status = record.get("status")
            if status in counts:
                counts[status] += 1
            revenue += record.get("price") or 0
        return cls(
            total=len(records),
            pending=counts["Pending"],
            confirmed=counts["Confirmed"],
            completed=counts["Completed"],
            cancelled=counts["Cancelled"],
            revenue=revenue,
        )


@dataclass(frozen=True)
class ListState:
    filters: Filters = field(default_factory=Filters)
    search_query: str = ""
    # Full result set for cache_key; None when nothing usable is cached
    cache: Optional[Tuple[Record, ...]] = None
    cache_key: Optional[Tuple[str, ...]] = None
    # Filter key of the fetch in flight, so the same fetch isn't issued twice
    pending_key: Optional[Tuple[str, ...]] = None
    bookings: Tuple[Record, ...] = ()
    pagination: Pagination = field(default_factory=Pagination)
    stats: Stats = field(default_factory=Stats)
    loading: bool = False
    error: str = ""

    @property
    def search_mode(self) -> bool:
        return bool(self.search_query.strip())


# --- Events ---

@dataclass(frozen=True)
class FiltersChanged:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class PageChanged:
    page: int


@dataclass(frozen=True)
class SearchChanged:
    query: str


@dataclass(frozen=True)
class FetchResolved:
    key: Tuple[str, ...]
    records: Tuple[Record, ...]


@dataclass(frozen=True)
class FetchFailed:
    key: Tuple[str, ...]
    message: str


@dataclass(frozen=True)
class SearchResolved:
    query: str
    records: Tuple[Record, ...]


@dataclass(frozen=True)
class SearchFailed:
    query: str
    message: str


@dataclass(frozen=True)
class BookingRemoved:
    booking_id: str


@dataclass(frozen=True)
class Refresh:
    pass


Event = Union[FiltersChanged, PageChanged, SearchChanged, FetchResolved, FetchFailed,
              SearchResolved, SearchFailed, BookingRemoved, Refresh]


# --- Effects ---

@dataclass(frozen=True)
class FetchAll:
    filters: Filters

    @property
    def key(self) -> Tuple[str, ...]:
        return self.filters.key


@dataclass(frozen=True)
class RunSearch:
    query: str


Effect = Union[FetchAll, RunSearch]


class Transition(NamedTuple):
    state: ListState
    effect: Optional[Effect] = None


def show_cached(state: ListState) -> ListState:
    """Slice the cached set to the current page; a page past the end steps back to the last one."""
    records = state.cache or ()
    limit = state.filters.limit
    pages = math.ceil(len(records) / limit) if limit else 0

    page = state.filters.page
    if pages and page > pages:
        page = pages
    start = (page - 1) * limit

    return replace(
        state,
        filters=replace(state.filters, page=page),
        bookings=tuple(records[start:start + limit]),
        pagination=Pagination.for_slice(page, limit, len(records)),
        stats=Stats.from_records(records),
        loading=False,
        error="",
    )


def sync(state: ListState) -> Transition:
    """Bring the displayed data in line with the filters: re-slice, wait, or fetch."""
    if state.search_mode:
        return Transition(replace(state, loading=True, error=""), RunSearch(state.search_query.strip()))

    key = state.filters.key
    if state.cache is not None and state.cache_key == key:
        return Transition(show_cached(state))
    if state.pending_key == key:
        return Transition(replace(state, loading=True))

    # Displayed bookings stay until new data arrives
    state = replace(state, cache=None, cache_key=None, pending_key=key, loading=True, error="")
    return Transition(state, FetchAll(state.filters))


def transition(state: ListState, event: Event) -> Transition:
    if isinstance(event, FiltersChanged):
        changes = {k: v for k, v in event.changes.items() if k != "page"}
        state = replace(state, filters=replace(state.filters, **changes, page=1))
        if state.search_mode:
            # Kept for when the search is cleared
            return Transition(state)
        return sync(state)

    if isinstance(event, PageChanged):
        if state.search_mode:
            return Transition(state)
        return sync(replace(state, filters=replace(state.filters, page=max(1, event.page))))

    if isinstance(event, SearchChanged):
        return sync(replace(state, search_query=event.query))

    if isinstance(event, FetchResolved):
        if state.pending_key == event.key:
            state = replace(state, pending_key=None)
        if event.key != state.filters.key:
            return Transition(state)
        state = replace(state, cache=tuple(event.records), cache_key=event.key)
        if state.search_mode:
            return Transition(state)
        return Transition(show_cached(state))

    if isinstance(event, FetchFailed):
        if state.pending_key == event.key:
            state = replace(state, pending_key=None)
        if event.key != state.filters.key or state.search_mode:
            return Transition(state)
        return Transition(replace(state, loading=False, error=event.message))

    if isinstance(event, SearchResolved):
        if event.query != state.search_query.strip():
            return Transition(state)
        records = tuple(event.records)
        return Transition(replace(
            state,
            bookings=records,
            pagination=Pagination.single_page(len(records)),
            stats=Stats.from_records(records),
            loading=False,
            error="",
        ))

    if isinstance(event, SearchFailed):
        if event.query != state.search_query.strip():
            return Transition(state)
        return Transition(replace(state, loading=False, error=event.message))

    if isinstance(event, BookingRemoved):
        if state.cache is not None:
            state = replace(state, cache=tuple(r for r in state.cache if r.get("id") != event.booking_id))
        if state.search_mode:
            return Transition(replace(state, loading=True), RunSearch(state.search_query.strip()))
        if state.cache is not None and state.cache_key == state.filters.key:
            return Transition(show_cached(state))
        # A fetch may be in flight from before the delete; ask again
        return sync(replace(state, pending_key=None))

    if isinstance(event, Refresh):
        return sync(replace(state, cache=None, cache_key=None, pending_key=None))

    raise TypeError(f"Unknown list event: {event!r}")
