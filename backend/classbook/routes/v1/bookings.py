# backend/classbook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - The caller's bookings (optionally filtered)
    POST / - Book a class schedule with credits
    GET /{booking_id} - Booking details
    POST /{booking_id}/cancel - Cancel a booking and refund its credits
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from ...api.dependencies import get_booking_service, get_current_profile
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...models.profile import Profile
from ...schemas.booking import BookingCreate, BookingDetailResponse, BookingResponse
from ...services.booking_service import BookingService
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.get("", response_model=List[BookingDetailResponse])
async def list_my_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    upcoming_only: bool = Query(False),
    current_profile: Profile = Depends(get_current_profile),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingDetailResponse]:
    """The caller's bookings with schedule, class type and instructor."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.get_bookings_for_profile,
            current_profile.id,
            status=booking_status,
            upcoming_only=upcoming_only,
        )
        return [BookingDetailResponse.model_validate(booking) for booking in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        402: {"description": "Insufficient credits"},
        404: {"description": "Schedule not found"},
        409: {"description": "Schedule full"},
        422: {"description": "Schedule inactive or already started"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_profile: Profile = Depends(get_current_profile),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Book one seat, paying the class type's credit cost."""
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, current_profile.id, booking_data.class_schedule_id
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    current_profile: Profile = Depends(get_current_profile),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingDetailResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking,
            booking_id,
            current_profile.id,
            admin_override=current_profile.is_admin,
        )
        return BookingDetailResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    current_profile: Profile = Depends(get_current_profile),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Cancel a booking. Admins may cancel bookings they do not own."""
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking,
            booking_id,
            current_profile.id,
            admin_override=current_profile.is_admin,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)
