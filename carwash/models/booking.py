from datetime import date as Date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from carwash.core.schema import (
    AddOn, CarType, ServiceType, Status, TimeSlot,
    CUSTOMER_NAME_MAX_LENGTH, DEFAULT_STATUS, MIN_CAR_YEAR, MIN_DURATION,
)


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case in Python and in the store
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def check_car_year(year: Optional[int]) -> Optional[int]:
    # The upper bound moves with the calendar, so it is read on every call.
    if year is None:
        return year
    max_year = Date.today().year + 1
    if not MIN_CAR_YEAR <= year <= max_year:
        raise ValueError(f"Car year must be between {MIN_CAR_YEAR} and {max_year}")
    return year


class CarDetails(CamelModel):
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int
    type: CarType

    @field_validator("year")
    @classmethod
    def year_in_range(cls, v):
        return check_car_year(v)


class StoredCarDetails(CamelModel):
    make: str
    model: str
    year: int
    type: CarType


class CarDetailsPatch(CamelModel):
    make: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    year: Optional[int] = None
    type: Optional[CarType] = None

    @field_validator("year")
    @classmethod
    def year_in_range(cls, v):
        return check_car_year(v)


class BookingCreate(CamelModel):
    """Body of POST /bookings. Price and duration are always derived."""
    customer_name: str = Field(min_length=1, max_length=CUSTOMER_NAME_MAX_LENGTH)
    car_details: CarDetails
    service_type: ServiceType
    date: Date
    time_slot: TimeSlot
    status: Status = DEFAULT_STATUS
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    add_ons: List[AddOn] = Field(default_factory=list)


class BookingUpdate(CamelModel):
    """Body of PUT /bookings/{id}. Only the fields present are validated and written."""
    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=CUSTOMER_NAME_MAX_LENGTH)
    car_details: Optional[CarDetailsPatch] = None
    service_type: Optional[ServiceType] = None
    date: Optional[Date] = None
    time_slot: Optional[TimeSlot] = None
    status: Optional[Status] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    add_ons: Optional[List[AddOn]] = None

    @field_validator("rating", mode="before")
    @classmethod
    def empty_rating_is_none(cls, v):
        # forms send 0 or "" for "no rating"
        if v in (0, ""):
            return None
        return v

    def changes(self) -> dict:
        """Fields the caller actually sent, snake_case, JSON-ready. Nulls are kept only for rating."""
        data = self.model_dump(mode="json", exclude_unset=True)
        changes = {k: v for k, v in data.items() if v is not None or k == "rating"}
        if "car_details" in changes:
            changes["car_details"] = {k: v for k, v in changes["car_details"].items() if v is not None}
        return changes


class Booking(CamelModel):
    """A stored booking as returned by the API."""
    id: str
    customer_name: str
    car_details: StoredCarDetails
    service_type: ServiceType
    date: Date
    time_slot: TimeSlot
    duration: int = Field(ge=MIN_DURATION)
    price: float = Field(ge=0)
    status: Status = DEFAULT_STATUS
    rating: Optional[int] = None
    add_ons: List[AddOn] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Booking":
        return cls.model_validate(row)

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
