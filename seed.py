import argparse
import asyncio

from carwash.api.bookings import get_store
from carwash.core.config import settings
from carwash.core.logger import logger, setup_logging
from carwash.core.seed_loader import load_seed_bookings
from carwash.services.booking_service import BookingService


async def run_seed(path: str, keep_existing: bool = False):
    bookings = load_seed_bookings(path)
    service = BookingService(get_store())
    created = await service.seed(bookings, clear=not keep_existing)
    for booking in created:
        logger.info(f"   • {booking.customer_name}: {booking.service_type} {booking.date} {booking.time_slot} ${booking.price:g}")
    return created


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load sample bookings into the configured store.")
    parser.add_argument("--file", default=settings.SEED_FILE, help="JSON array of bookings")
    parser.add_argument("--keep-existing", action="store_true", help="Do not clear the store first")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(run_seed(args.file, args.keep_existing))
