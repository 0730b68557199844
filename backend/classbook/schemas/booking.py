"""Booking request and response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..core.enums import BookingStatus
from ._strict_base import OrmResponseModel, StrictRequestModel
from .catalog import ClassScheduleResponse


class BookingCreate(StrictRequestModel):
    class_schedule_id: str = Field(..., min_length=1, description="Schedule to book")


class BookingCancel(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)


class BookingResponse(OrmResponseModel):
    id: str
    profile_id: str
    class_schedule_id: str
    booking_status: BookingStatus
    credits_used: int
    booking_time: datetime
    cancellation_time: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None


class BookingDetailResponse(BookingResponse):
    """Booking with the schedule, class type and instructor it refers to."""

    class_schedule: Optional[ClassScheduleResponse] = None
