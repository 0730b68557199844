"""Class material model: a titled link attached to one schedule."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .class_schedule import ClassSchedule


class Material(Base):
    __tablename__ = "materials"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    class_schedule_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("class_schedules.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    class_schedule: Mapped["ClassSchedule"] = relationship(
        "ClassSchedule", back_populates="materials"
    )

    def __repr__(self) -> str:
        return f"<Material {self.id}: schedule={self.class_schedule_id}, title={self.title!r}>"
