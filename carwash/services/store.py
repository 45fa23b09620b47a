import copy
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from carwash.core.errors import InvalidIdentifier
from carwash.core.logger import logger


@dataclass(frozen=True)
class Predicate:
    """
    Store-neutral match predicate.

    Field paths are store columns; nested JSON fields use a dot
    (e.g. 'car_details.type').
    """
    equals: Dict[str, Any] = field(default_factory=dict)
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    # (fields, text): case-insensitive substring match on any of the fields
    contains_any: Optional[Tuple[Tuple[str, ...], str]] = None


@dataclass(frozen=True)
class Sort:
    field: str = "created_at"
    descending: bool = True


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def ensure_id(booking_id: str) -> str:
    """Identifiers are UUIDs; anything else is rejected before hitting the store."""
    try:
        return str(uuid.UUID(str(booking_id)))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdentifier()


def get_path(row: Dict[str, Any], path: str) -> Any:
    value: Any = row
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


class BookingStore(ABC):
    """Persistence operations over booking rows (snake_case dicts)."""

    @abstractmethod
    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def get(self, booking_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def update(self, booking_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def delete(self, booking_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def count(self, predicate: Predicate) -> int:
        ...

    @abstractmethod
    async def find(self, predicate: Predicate, sort: Sort, skip: int, limit: int) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def clear(self) -> int:
        ...


def matches(row: Dict[str, Any], predicate: Predicate) -> bool:
    for path, expected in predicate.equals.items():
        if get_path(row, path) != expected:
            return False

    # ISO dates compare correctly as strings
    row_date = str(row.get("date") or "")[:10]
    if predicate.date_from and (not row_date or row_date < predicate.date_from):
        return False
    if predicate.date_to and (not row_date or row_date > predicate.date_to):
        return False

    if predicate.contains_any:
        fields, text = predicate.contains_any
        if not text:
            return False
        needle = text.lower()
        if not any(needle in str(get_path(row, f) or "").lower() for f in fields):
            return False

    return True


class InMemoryBookingStore(BookingStore):
    """
    Dict-backed store for local development and tests (STORE_BACKEND=memory).
    Rows are copied in and out so callers never share state with the store.
    """

    def __init__(self):
        self._rows: Dict[str, Dict[str, Any]] = {}

    async def create(self, data):
        now = utc_now()
        row = {**copy.deepcopy(data), "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        self._rows[row["id"]] = row
        logger.debug(f"🆕 Booking {row['id']} stored in memory")
        return copy.deepcopy(row)

    async def get(self, booking_id):
        row = self._rows.get(ensure_id(booking_id))
        return copy.deepcopy(row) if row else None

    async def update(self, booking_id, changes):
        booking_id = ensure_id(booking_id)
        row = self._rows.get(booking_id)
        if row is None:
            return None
        row.update(copy.deepcopy(changes))
        return copy.deepcopy(row)

    async def delete(self, booking_id):
        return self._rows.pop(ensure_id(booking_id), None)

    async def count(self, predicate):
        return sum(1 for row in self._rows.values() if matches(row, predicate))

    async def find(self, predicate, sort, skip, limit):
        rows = [row for row in self._rows.values() if matches(row, predicate)]

        # Missing values sort below everything else
        present = [r for r in rows if get_path(r, sort.field) is not None]
        missing = [r for r in rows if get_path(r, sort.field) is None]
        present.sort(key=lambda r: get_path(r, sort.field), reverse=sort.descending)
        rows = present + missing if sort.descending else missing + present

        return [copy.deepcopy(r) for r in rows[skip:skip + limit]]

    async def clear(self):
        removed = len(self._rows)
        self._rows.clear()
        return removed
