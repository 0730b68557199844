"""Class type model: the template a schedule is an occurrence of."""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .class_schedule import ClassSchedule


class ClassType(Base):
    __tablename__ = "class_types"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    credit_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    schedules: Mapped[List["ClassSchedule"]] = relationship(
        "ClassSchedule", back_populates="class_type"
    )

    __table_args__ = (
        CheckConstraint("credit_cost >= 1", name="ck_class_types_credit_cost_positive"),
        CheckConstraint("duration_minutes > 0", name="ck_class_types_duration_positive"),
        CheckConstraint("max_capacity >= 1", name="ck_class_types_max_capacity_positive"),
    )

    def __repr__(self) -> str:
        return f"<ClassType {self.id}: {self.name} cost={self.credit_cost}>"
