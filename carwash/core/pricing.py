from typing import Any, Dict, Iterable, Mapping, Optional

BASE_PRICES = {
    "Basic Wash": 25,
    "Deluxe Wash": 50,
    "Full Detailing": 100,
}

BASE_DURATIONS = {
    "Basic Wash": 45,
    "Deluxe Wash": 90,
    "Full Detailing": 180,
}

ADD_ON_PRICES = {
    "Interior Cleaning": 20,
    "Polishing": 30,
    "Wax Protection": 25,
    "Tire Shine": 10,
    "Air Freshener": 5,
}

# Every add-on takes the same extra time, whichever one it is.
ADD_ON_MINUTES = 15

# Inputs of the derived price/duration fields
PRICING_INPUTS = ("service_type", "add_ons")


def price_for(service_type: Optional[str], add_ons: Optional[Iterable[str]] = None):
    """Base price of the service plus each add-on. Unknown names contribute 0."""
    total = BASE_PRICES.get(service_type, 0)
    for add_on in add_ons or ():
        total += ADD_ON_PRICES.get(add_on, 0)
    return total


def duration_for(service_type: Optional[str], add_ons: Optional[Iterable[str]] = None) -> int:
    """Base duration in minutes plus 15 minutes per add-on."""
    return BASE_DURATIONS.get(service_type, 0) + len(list(add_ons or ())) * ADD_ON_MINUTES


def derived_fields(existing: Optional[Mapping[str, Any]], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Decide which derived fields an update must rewrite.

    Returns {'price', 'duration'} computed from the merged service type and
    add-ons when the patch touches either of them, otherwise an empty dict.
    `existing` is None on create, where the patch is the whole record.
    """
    if not any(field in patch for field in PRICING_INPUTS):
        return {}

    existing = existing or {}
    service_type = patch.get("service_type", existing.get("service_type"))
    add_ons = patch.get("add_ons", existing.get("add_ons")) or []

    return {
        "price": price_for(service_type, add_ons),
        "duration": duration_for(service_type, add_ons),
    }
