import math
from typing import Any, Dict, List, Mapping, Optional

from carwash.core.config import settings
from carwash.core.errors import NotFound
from carwash.core.logger import logger
from carwash.core.pricing import PRICING_INPUTS, derived_fields
from carwash.models.booking import Booking, BookingCreate, BookingUpdate
from carwash.services.query_builder import (
    NEWEST_FIRST, ListParams, build_filter, build_search, build_sort,
)
from carwash.services.store import BookingStore, utc_now


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    pages = math.ceil(total / limit) if limit else 0
    return {
        "current": page,
        "pages": pages,
        "total": total,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }


class BookingService:
    def __init__(self, store: BookingStore):
        self.store = store

    async def list_bookings(self, params: ListParams) -> Dict[str, Any]:
        """
        Filtered, sorted, offset-paged listing.
        A page past the end returns no data but still-correct pagination metadata.
        """
        predicate = build_filter(params)
        sort = build_sort(params)

        total = await self.store.count(predicate)
        rows = await self.store.find(predicate, sort, skip=params.skip, limit=params.limit)
        logger.debug(f"📋 List page={params.page} limit={params.limit} filter={predicate.equals} -> {len(rows)}/{total}")

        return {
            "data": [Booking.from_row(row) for row in rows],
            "pagination": pagination_meta(params.page, params.limit, total),
        }

    async def search_bookings(self, q: Optional[str]) -> List[Booking]:
        """
        Case-insensitive substring search over customer name, car make and model.
        Newest first, capped, no filters and no paging.
        """
        predicate = build_search(q)
        if predicate is None:
            return []
        rows = await self.store.find(predicate, NEWEST_FIRST, skip=0, limit=settings.SEARCH_RESULT_LIMIT)
        logger.info(f"🔍 Search '{q.strip()}' -> {len(rows)} results")
        return [Booking.from_row(row) for row in rows]

    async def get_booking(self, booking_id: str) -> Booking:
        row = await self.store.get(booking_id)
        if row is None:
            raise NotFound()
        return Booking.from_row(row)

    async def create_booking(self, req: BookingCreate) -> Booking:
        data = req.model_dump(mode="json")
        # Price and duration always come from the pricing table
        data.update(derived_fields(None, data))

        row = await self.store.create(data)
        logger.info(f"✅ Booking created for {req.customer_name}: {req.service_type} on {req.date} {req.time_slot} (${data['price']})")
        return Booking.from_row(row)

    async def update_booking(self, booking_id: str, req: BookingUpdate) -> Booking:
        changes = req.changes()

        needs_existing = "car_details" in changes or any(f in changes for f in PRICING_INPUTS)
        existing: Optional[Mapping[str, Any]] = None
        if needs_existing:
            existing = await self.store.get(booking_id)
            if existing is None:
                raise NotFound()

        if "car_details" in changes:
            changes["car_details"] = {**(existing.get("car_details") or {}), **changes["car_details"]}

        changes.update(derived_fields(existing, changes))
        changes["updated_at"] = utc_now()

        row = await self.store.update(booking_id, changes)
        if row is None:
            raise NotFound()
        logger.info(f"✏️ Booking {booking_id} updated: {sorted(k for k in changes if k != 'updated_at')}")
        return Booking.from_row(row)

    async def delete_booking(self, booking_id: str) -> None:
        removed = await self.store.delete(booking_id)
        if removed is None:
            raise NotFound()
        logger.info(f"🗑️ Booking {booking_id} deleted")

    async def seed(self, bookings: List[BookingCreate], clear: bool = True) -> List[Booking]:
        """Replace the store contents with the given bookings."""
        if clear:
            removed = await self.store.clear()
            logger.info(f"🧹 Cleared {removed} existing bookings")
        created = [await self.create_booking(b) for b in bookings]
        logger.info(f"🌱 Seeded {len(created)} bookings")
        return created
