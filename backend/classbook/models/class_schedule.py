# backend/classbook/models/class_schedule.py
"""
Class schedule model.

One bookable occurrence of a class type. ``enrolled_count`` always equals
the number of confirmed bookings on the schedule; it is moved only by the
capacity service, never by admin edits.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .booking import Booking
    from .class_type import ClassType
    from .instructor import Instructor
    from .material import Material


class ClassSchedule(Base):
    __tablename__ = "class_schedules"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    class_type_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("class_types.id"), nullable=False, index=True
    )
    instructor_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("instructors.id"), nullable=False, index=True
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    enrolled_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    class_type: Mapped["ClassType"] = relationship("ClassType", back_populates="schedules")
    instructor: Mapped["Instructor"] = relationship("Instructor", back_populates="schedules")
    bookings: Mapped[List["Booking"]] = relationship("Booking", back_populates="class_schedule")
    materials: Mapped[List["Material"]] = relationship(
        "Material", back_populates="class_schedule", order_by="Material.created_at"
    )

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_class_schedules_capacity_positive"),
        CheckConstraint("enrolled_count >= 0", name="ck_class_schedules_enrolled_non_negative"),
        CheckConstraint("enrolled_count <= capacity", name="ck_class_schedules_enrolled_lte_capacity"),
        CheckConstraint("end_time > start_time", name="ck_class_schedules_time_order"),
        Index("ix_class_schedules_active_start", "is_active", "start_time"),
    )

    @property
    def spots_left(self) -> int:
        return max(self.capacity - self.enrolled_count, 0)

    @property
    def is_full(self) -> bool:
        return self.enrolled_count >= self.capacity

    def __repr__(self) -> str:
        return (
            f"<ClassSchedule {self.id}: type={self.class_type_id}, start={self.start_time}, "
            f"enrolled={self.enrolled_count}/{self.capacity}, active={self.is_active}>"
        )
