# backend/classbook/models/booking.py
"""
Booking model.

Links a profile to a class schedule. ``credits_used`` is snapshotted at
booking time from the class type's cost and is never recomputed, so later
price edits do not change what a refund returns.
"""

from datetime import datetime
import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..core.enums import BookingStatus
from ..database import Base

if TYPE_CHECKING:
    from .class_schedule import ClassSchedule
    from .profile import Profile

logger = logging.getLogger(__name__)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    profile_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("profiles.id"), nullable=False, index=True
    )
    class_schedule_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("class_schedules.id"), nullable=False, index=True
    )
    booking_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.CONFIRMED.value
    )
    credits_used: Mapped[int] = mapped_column(Integer, nullable=False)
    booking_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    cancellation_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_by_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("profiles.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    profile: Mapped["Profile"] = relationship(
        "Profile", back_populates="bookings", foreign_keys=[profile_id]
    )
    class_schedule: Mapped["ClassSchedule"] = relationship(
        "ClassSchedule", back_populates="bookings"
    )

    __table_args__ = (
        CheckConstraint(
            "booking_status IN ('confirmed', 'cancelled', 'attended', 'no_show')",
            name="ck_bookings_status",
        ),
        CheckConstraint("credits_used >= 0", name="ck_bookings_credits_non_negative"),
        Index("ix_bookings_schedule_status", "class_schedule_id", "booking_status"),
    )

    @property
    def is_confirmed(self) -> bool:
        return self.booking_status == BookingStatus.CONFIRMED.value

    def cancel(self, cancelled_by_id: str, at: datetime) -> None:
        """Move a confirmed booking to cancelled."""
        self.booking_status = BookingStatus.CANCELLED.value
        self.cancellation_time = at
        self.cancelled_by_id = cancelled_by_id
        logger.info(f"Booking {self.id} cancelled by profile {cancelled_by_id}")

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: profile={self.profile_id}, "
            f"schedule={self.class_schedule_id}, status={self.booking_status}, "
            f"credits={self.credits_used}>"
        )
