"""
Enumerated value sets for the Booking entity.

Server validation, the pricing table, the query builder and the client form
all read from here so the lists exist in exactly one place.
"""
from typing import Literal, get_args

CarType = Literal["sedan", "suv", "hatchback", "luxury", "pickup", "convertible"]
ServiceType = Literal["Basic Wash", "Deluxe Wash", "Full Detailing"]
TimeSlot = Literal[
    "08:00", "09:00", "10:00", "11:00", "12:00",
    "13:00", "14:00", "15:00", "16:00", "17:00",
]
Status = Literal["Pending", "Confirmed", "Completed", "Cancelled"]
AddOn = Literal["Interior Cleaning", "Polishing", "Wax Protection", "Tire Shine", "Air Freshener"]

CAR_TYPES = get_args(CarType)
SERVICE_TYPES = get_args(ServiceType)
TIME_SLOTS = get_args(TimeSlot)
STATUSES = get_args(Status)
ADD_ONS = get_args(AddOn)

DEFAULT_STATUS = "Pending"

MIN_CAR_YEAR = 1900
CUSTOMER_NAME_MAX_LENGTH = 100
MIN_DURATION = 30
