from dataclasses import dataclass, field, replace
from datetime import date as Date
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from carwash.core.errors import format_validation_errors
from carwash.core.pricing import ADD_ON_PRICES, BASE_PRICES, duration_for, price_for
from carwash.core.schema import DEFAULT_STATUS
from carwash.models.booking import BookingCreate


@dataclass(frozen=True)
class BookingForm:
    """
    Create/edit form state. Price and duration are derived live from the
    service type and add-ons with the same table the server uses.
    """
    customer_name: str = ""
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    car_type: str = ""
    service_type: str = ""
    date: str = ""
    time_slot: str = ""
    status: str = DEFAULT_STATUS
    rating: Optional[int] = None
    add_ons: List[str] = field(default_factory=list)

    @classmethod
    def from_booking(cls, booking: Mapping[str, Any]) -> "BookingForm":
        """Prefill from an API booking (camelCase) for editing."""
        car = booking.get("carDetails") or {}
        return cls(
            customer_name=booking.get("customerName", ""),
            make=car.get("make", ""),
            model=car.get("model", ""),
            year=car.get("year"),
            car_type=car.get("type", ""),
            service_type=booking.get("serviceType", ""),
            date=str(booking.get("date") or "")[:10],
            time_slot=booking.get("timeSlot", ""),
            status=booking.get("status") or DEFAULT_STATUS,
            rating=booking.get("rating"),
            add_ons=list(booking.get("addOns") or []),
        )

    @property
    def base_price(self):
        return BASE_PRICES.get(self.service_type, 0)

    @property
    def add_on_lines(self) -> List[tuple]:
        return [(name, ADD_ON_PRICES.get(name, 0)) for name in self.add_ons]

    @property
    def price(self):
        return price_for(self.service_type, self.add_ons)

    @property
    def duration(self) -> int:
        return duration_for(self.service_type, self.add_ons)

    @property
    def duration_label(self) -> str:
        return f"{self.duration // 60}h {self.duration % 60}m"

    def toggle_add_on(self, name: str) -> "BookingForm":
        if name in self.add_ons:
            return replace(self, add_ons=[a for a in self.add_ons if a != name])
        return replace(self, add_ons=[*self.add_ons, name])

    def update(self, **values) -> "BookingForm":
        return replace(self, **values)

    def to_payload(self) -> Dict[str, Any]:
        """Normalized request body. Price and duration are sent for display parity; the server recomputes them."""
        add_ons = list(dict.fromkeys(self.add_ons))
        payload = {
            "customerName": self.customer_name.strip(),
            "carDetails": {
                "make": self.make.strip(),
                "model": self.model.strip(),
                "year": int(self.year) if self.year not in (None, "") else None,
                "type": self.car_type,
            },
            "serviceType": self.service_type,
            "date": _iso_date(self.date),
            "timeSlot": self.time_slot,
            "status": self.status or DEFAULT_STATUS,
            "addOns": add_ons,
            "price": price_for(self.service_type, add_ons),
            "duration": duration_for(self.service_type, add_ons),
        }
        if self.rating:
            payload["rating"] = int(self.rating)
        return payload

    def validate(self) -> List[Dict[str, str]]:
        """Field errors from the same model the API validates against; empty when valid."""
        try:
            BookingCreate.model_validate(self.to_payload())
        except ValidationError as e:
            return format_validation_errors(e.errors())
        except ValueError as e:
            return [{"field": "body", "message": str(e)}]
        return []


def _iso_date(value: str) -> str:
    value = (value or "").strip()
    if not value:
        return ""
    try:
        return Date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        return value
