from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Request

from carwash.core.config import settings
from carwash.core.logger import logger
from carwash.models.booking import BookingCreate, BookingUpdate
from carwash.services.booking_service import BookingService
from carwash.services.db_service import db_service
from carwash.services.query_builder import parse_list_params
from carwash.services.store import BookingStore, InMemoryBookingStore

router = APIRouter()


@lru_cache
def get_store() -> BookingStore:
    if settings.STORE_BACKEND == "memory":
        logger.warning("⚠️ Using in-memory booking store, data is lost on restart")
        return InMemoryBookingStore()
    return db_service


def get_booking_service(store: BookingStore = Depends(get_store)) -> BookingService:
    return BookingService(store)


@router.get("/bookings")
async def list_bookings(request: Request, service: BookingService = Depends(get_booking_service)):
    # Query params are parsed by hand so malformed page/limit fall back to defaults
    params = parse_list_params(request.query_params, default_limit=settings.DEFAULT_PAGE_LIMIT)
    result = await service.list_bookings(params)
    return {
        "success": True,
        "data": [b.to_api() for b in result["data"]],
        "pagination": result["pagination"],
    }


@router.get("/bookings/search")
async def search_bookings(q: Optional[str] = None, service: BookingService = Depends(get_booking_service)):
    results = await service.search_bookings(q)
    return {"success": True, "data": [b.to_api() for b in results]}


@router.get("/bookings/{booking_id}")
async def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    booking = await service.get_booking(booking_id)
    return {"success": True, "data": booking.to_api()}


@router.post("/bookings", status_code=201)
async def create_booking(req: BookingCreate, service: BookingService = Depends(get_booking_service)):
    booking = await service.create_booking(req)
    return {"success": True, "message": "Booking created successfully", "data": booking.to_api()}


@router.put("/bookings/{booking_id}")
async def update_booking(booking_id: str, req: BookingUpdate, service: BookingService = Depends(get_booking_service)):
    booking = await service.update_booking(booking_id, req)
    return {"success": True, "message": "Booking updated successfully", "data": booking.to_api()}


@router.delete("/bookings/{booking_id}")
async def delete_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    await service.delete_booking(booking_id)
    return {"success": True, "message": "Booking deleted successfully"}
