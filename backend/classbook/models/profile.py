# backend/classbook/models/profile.py
"""
Profile model.

A profile is the identity-linked account record. ``user_id`` is the
principal id issued by the identity provider; ``id`` is ours. The credit
balance is a materialized view of the credit ledger and is only written by
the credit ledger service.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..core.enums import RoleName
from ..database import Base

if TYPE_CHECKING:
    from .booking import Booking
    from .credit_transaction import CreditTransaction


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=RoleName.STUDENT.value)
    credit_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    bookings: Mapped[List["Booking"]] = relationship(
        "Booking", back_populates="profile", foreign_keys="Booking.profile_id"
    )
    credit_transactions: Mapped[List["CreditTransaction"]] = relationship(
        "CreditTransaction",
        back_populates="profile",
        foreign_keys="CreditTransaction.profile_id",
        order_by="CreditTransaction.created_at.desc()",
    )

    __table_args__ = (
        CheckConstraint("credit_balance >= 0", name="ck_profiles_balance_non_negative"),
        CheckConstraint("role IN ('student', 'admin')", name="ck_profiles_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def __repr__(self) -> str:
        return f"<Profile {self.id}: user={self.user_id}, role={self.role}, balance={self.credit_balance}>"
