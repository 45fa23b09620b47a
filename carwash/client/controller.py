import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from carwash.client.api import APIError, BookingAPI
from carwash.client.reconcile import (
    BookingRemoved, Event, FetchAll, FetchFailed, FetchResolved, Filters, FiltersChanged,
    ListState, PageChanged, Refresh, RunSearch, SearchChanged, SearchFailed, SearchResolved,
    transition,
)
from carwash.core.config import client_settings
from carwash.core.logger import logger

Notifier = Callable[[str, str], None]


def log_notification(level: str, message: str):
    if level == "error":
        logger.error(f"❌ {message}")
    else:
        logger.info(f"✅ {message}")


class BookingListController:
    """
    Drives the list view on an asyncio loop.

    Events go through `transition`; the effects it returns run as tasks.
    Fetches pull the whole matching set in batches, searches are debounced,
    and every response is reconciled against the state at arrival time.
    """

    def __init__(
        self,
        api: BookingAPI,
        page_size: int = None,
        batch_size: int = None,
        max_batches: int = None,
        debounce_seconds: float = None,
        notify: Notifier = log_notification,
    ):
        self.api = api
        self.batch_size = batch_size or client_settings.FETCH_BATCH_SIZE
        self.max_batches = max_batches or client_settings.FETCH_MAX_BATCHES
        self.debounce_seconds = client_settings.SEARCH_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self.notify = notify

        self.state = ListState(filters=Filters(limit=page_size or client_settings.PAGE_SIZE))
        self._tasks: Set[asyncio.Task] = set()
        self._search_task: Optional[asyncio.Task] = None

    # --- user actions ---

    def load(self) -> ListState:
        return self.dispatch(Refresh())

    def set_filters(self, **changes) -> ListState:
        return self.dispatch(FiltersChanged(changes))

    def go_to_page(self, page: int) -> ListState:
        return self.dispatch(PageChanged(page))

    def search(self, query: str) -> ListState:
        return self.dispatch(SearchChanged(query))

    def refresh(self) -> ListState:
        return self.dispatch(Refresh())

    async def delete_booking(self, booking_id: str) -> bool:
        try:
            await self.api.delete_booking(booking_id)
        except APIError as e:
            self.notify("error", e.message or "Failed to delete booking")
            return False
        self.notify("success", "Booking deleted successfully")
        self.dispatch(BookingRemoved(booking_id))
        return True

    async def create_booking(self, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            body = await self.api.create_booking(payload)
        except APIError as e:
            self.notify("error", e.describe())
            return None
        self.notify("success", body.get("message", "Booking created successfully"))
        self.dispatch(Refresh())
        return body.get("data")

    async def update_booking(self, booking_id: str, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            body = await self.api.update_booking(booking_id, payload)
        except APIError as e:
            self.notify("error", e.describe())
            return None
        self.notify("success", body.get("message", "Booking updated successfully"))
        self.dispatch(Refresh())
        return body.get("data")

    # --- plumbing ---

    def dispatch(self, event: Event) -> ListState:
        self.state, effect = transition(self.state, event)
        if isinstance(effect, FetchAll):
            self._spawn(self._fetch(effect.filters))
        elif isinstance(effect, RunSearch):
            # A newer keystroke supersedes the pending one
            if self._search_task and not self._search_task.done():
                self._search_task.cancel()
            self._search_task = self._spawn(self._search(effect.query))
        return self.state

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self):
        """Wait until no fetch or search is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def fetch_all(self, filters: Filters) -> List[Dict[str, Any]]:
        """Page through the list endpoint until the server reports no further pages."""
        params = {**filters.query_params(), "limit": self.batch_size}
        records: List[Dict[str, Any]] = []
        for batch in range(1, self.max_batches + 1):
            body = await self.api.get_bookings({**params, "page": batch})
            records.extend(body.get("data") or [])
            if not (body.get("pagination") or {}).get("hasNext"):
                break
        else:
            logger.warning(f"⚠️ Stopped after {self.max_batches} batches, the list may be incomplete")
        return records

    async def _fetch(self, filters: Filters):
        try:
            records = await self.fetch_all(filters)
        except APIError as e:
            self.notify("error", e.message or "Failed to fetch bookings")
            self.dispatch(FetchFailed(filters.key, e.message or "Failed to fetch bookings"))
            return
        except Exception:
            # Any other failure must still release the pending fetch
            logger.exception("❌ Fetching bookings failed")
            self.notify("error", "Failed to fetch bookings")
            self.dispatch(FetchFailed(filters.key, "Failed to fetch bookings"))
            return
        self.dispatch(FetchResolved(filters.key, tuple(records)))

    async def _search(self, query: str):
        await asyncio.sleep(self.debounce_seconds)
        try:
            body = await self.api.search_bookings(query)
        except APIError as e:
            self.notify("error", "Search failed")
            self.dispatch(SearchFailed(query, e.message or "Search failed"))
            return
        except Exception:
            logger.exception(f"❌ Search for '{query}' failed")
            self.notify("error", "Search failed")
            self.dispatch(SearchFailed(query, "Search failed"))
            return
        self.dispatch(SearchResolved(query, tuple(body.get("data") or [])))
