import json
import os
from typing import List

from pydantic import ValidationError

from carwash.core.logger import logger
from carwash.models.booking import BookingCreate


def load_seed_bookings(path: str) -> List[BookingCreate]:
    """
    Loads sample bookings from a JSON array file.
    Raises FileNotFoundError if the file is missing, ValueError if it is not
    valid JSON or an entry fails booking validation.
    """
    if not os.path.exists(path):
        logger.critical(f"❌ Seed file '{path}' not found")
        raise FileNotFoundError(f"Seed file not found at {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in seed file: {e}")
        raise ValueError(f"Invalid JSON in seed file: {e}")

    if not isinstance(raw, list):
        raise ValueError("Seed file must contain a JSON array of bookings")

    bookings = []
    for index, entry in enumerate(raw):
        try:
            bookings.append(BookingCreate.model_validate(entry))
        except ValidationError as e:
            logger.critical(f"❌ Seed entry #{index} is not a valid booking: {e}")
            raise ValueError(f"Seed entry #{index} is invalid: {e}")

    logger.info(f"✅ Loaded {len(bookings)} seed bookings from {path}")
    return bookings
