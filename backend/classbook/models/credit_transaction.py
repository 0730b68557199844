"""
Credit ledger models.

``CreditTransaction`` rows are append-only: nothing updates or deletes them.
``booking_id`` is a weak back-reference kept for audit lookups, so it carries
no foreign key and survives removal of the booking row.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .profile import Profile


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    profile_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("profiles.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Signed credit delta (negative for deductions)"
    )
    transaction_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    booking_id: Mapped[Optional[str]] = mapped_column(
        String(26), nullable=True, index=True
    )
    admin_user_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("profiles.id"), nullable=True
    )
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    profile: Mapped["Profile"] = relationship(
        "Profile", back_populates="credit_transactions", foreign_keys=[profile_id]
    )

    __table_args__ = (
        CheckConstraint("amount <> 0", name="ck_credit_transactions_amount_non_zero"),
        CheckConstraint(
            "transaction_type IN ('credit_purchase', 'credit_added', 'credit_deducted', "
            "'booking_payment', 'booking_refund')",
            name="ck_credit_transactions_type",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<CreditTransaction {self.id}: profile={self.profile_id}, "
            f"amount={self.amount}, type={self.transaction_type}>"
        )


class CreditPurchase(Base):
    """Record of a (mock) paid credit package purchase."""

    __tablename__ = "credit_purchases"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    profile_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("profiles.id"), nullable=False, index=True
    )
    credit_transaction_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("credit_transactions.id"), nullable=False, unique=True
    )
    package_id: Mapped[str] = mapped_column(String(50), nullable=False)
    credits_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(100), nullable=False)
    payment_reference: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<CreditPurchase(profile_id={self.profile_id}, package={self.package_id}, paid={self.amount_paid})>"
