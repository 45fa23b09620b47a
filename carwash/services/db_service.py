from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import AsyncClient, create_async_client

from carwash.core.config import settings
from carwash.core.errors import translate_store_error
from carwash.core.logger import logger
from carwash.services.store import BookingStore, Predicate, Sort, ensure_id, utc_now

# Wildcards of ILIKE, plus PostgREST's "*" alias for "%"
_LIKE_WILDCARDS = ("%", "_", "*")


def column(path: str) -> str:
    """'car_details.type' -> 'car_details->>type' (JSON text accessor)."""
    if "." not in path:
        return path
    head, *rest = path.split(".")
    if len(rest) == 1:
        return f"{head}->>{rest[0]}"
    return f"{head}->" + "->".join(rest[:-1]) + f"->>{rest[-1]}"


def contains_pattern(text: str) -> str:
    """
    Quoted ILIKE value matching `text` literally anywhere in a column.

    LIKE wildcards are backslash-escaped, then the value is double-quoted for
    the or=(...) grammar, where backslash and quote need escaping again. A
    literal "*" cannot be expressed (PostgREST rewrites it to "%"); escaped,
    it only matches a literal "%" and never acts as a wildcard.
    """
    like = text.replace("\\", "\\\\")
    for wildcard in _LIKE_WILDCARDS:
        like = like.replace(wildcard, "\\" + wildcard)
    quoted = like.replace("\\", "\\\\").replace('"', '\\"')
    return f'"*{quoted}*"'


def apply_predicate(query, predicate: Predicate):
    for path, value in predicate.equals.items():
        query = query.eq(column(path), value)
    if predicate.date_from:
        query = query.gte("date", predicate.date_from)
    if predicate.date_to:
        query = query.lte("date", predicate.date_to)
    if predicate.contains_any:
        fields, text = predicate.contains_any
        if not text:
            # A blank search matches no rows
            return query.in_("id", [])
        pattern = contains_pattern(text)
        query = query.or_(",".join(f"{column(f)}.ilike.{pattern}" for f in fields))
    return query


class DBService(BookingStore):
    """
    Supabase-backed booking store. One shared async client per process.
    PostgREST errors are translated into booking errors at this boundary.
    """
    _instance = None
    _client: AsyncClient = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(DBService, cls).__new__(cls)
            # Async client init can't happen in __new__, it's done on first use
        return cls._instance

    @property
    def table_name(self) -> str:
        return settings.BOOKINGS_TABLE

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                logger.error("❌ Supabase credentials missing (SUPABASE_URL / SUPABASE_KEY)")
                raise RuntimeError("Supabase is not configured")
            self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
            logger.info("✅ Supabase Async client initialized")
        return self._client

    async def _table(self):
        client = await self.get_client()
        return client.table(self.table_name)

    async def _execute(self, query, action: str):
        try:
            return await query.execute()
        except APIError as e:
            logger.error(f"❌ DB Error ({action}): {e}")
            raise translate_store_error(e) from e

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = utc_now()
        row = {**data, "created_at": now, "updated_at": now}
        response = await self._execute((await self._table()).insert(row), "create")
        created = response.data[0]
        logger.info(f"🆕 Booking {created['id']} created")
        return created

    async def get(self, booking_id: str) -> Optional[Dict[str, Any]]:
        booking_id = ensure_id(booking_id)
        query = (await self._table()).select("*").eq("id", booking_id).limit(1)
        response = await self._execute(query, "get")
        return response.data[0] if response.data else None

    async def update(self, booking_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        booking_id = ensure_id(booking_id)
        query = (await self._table()).update(changes).eq("id", booking_id)
        response = await self._execute(query, "update")
        return response.data[0] if response.data else None

    async def delete(self, booking_id: str) -> Optional[Dict[str, Any]]:
        booking_id = ensure_id(booking_id)
        query = (await self._table()).delete().eq("id", booking_id)
        response = await self._execute(query, "delete")
        if response.data:
            logger.info(f"🗑️ Booking {booking_id} deleted from DB.")
            return response.data[0]
        return None

    async def count(self, predicate: Predicate) -> int:
        query = (await self._table()).select("id", count="exact", head=True)
        response = await self._execute(apply_predicate(query, predicate), "count")
        return response.count or 0

    async def find(self, predicate: Predicate, sort: Sort, skip: int, limit: int) -> List[Dict[str, Any]]:
        query = apply_predicate((await self._table()).select("*"), predicate)
        query = query.order(column(sort.field), desc=sort.descending)
        query = query.range(skip, skip + limit - 1)
        response = await self._execute(query, "find")
        return response.data or []

    async def clear(self) -> int:
        # PostgREST refuses an unfiltered delete
        query = (await self._table()).delete().neq("id", "00000000-0000-0000-0000-000000000000")
        response = await self._execute(query, "clear")
        removed = len(response.data or [])
        logger.info(f"🧹 Removed {removed} bookings")
        return removed


db_service = DBService()
