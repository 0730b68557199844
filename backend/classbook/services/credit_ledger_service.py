# backend/classbook/services/credit_ledger_service.py
"""
Credit ledger service.

Every change to a profile's balance goes through ``apply_credit_delta``,
which writes the ledger row and moves the stored balance in the same
transaction. The stored balance is therefore always the sum of the
profile's ledger amounts.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import TransactionType
from ..core.exceptions import (
    ForbiddenException,
    InsufficientCreditsException,
    ProfileNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import Clock, utc_now
from ..models.credit_transaction import CreditTransaction
from ..models.profile import Profile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

ADMIN_TRANSACTION_TYPES = frozenset({TransactionType.CREDIT_ADDED, TransactionType.CREDIT_DEDUCTED})


class CreditLedgerService(BaseService):
    """Applies signed credit deltas and answers ledger queries."""

    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, clock)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.transaction_repository = RepositoryFactory.create_credit_transaction_repository(db)

    @staticmethod
    def _validate_delta(amount: Any, transaction_type: TransactionType) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationException(
                "Credit amount must be an integer", details={"amount": str(amount)}
            )
        if amount == 0:
            raise ValidationException("Credit amount must be non-zero", details={"amount": 0})
        if transaction_type.is_deduction and amount > 0:
            raise ValidationException(
                f"{transaction_type.value} entries must be negative",
                details={"amount": amount, "transaction_type": transaction_type.value},
            )
        if not transaction_type.is_deduction and amount < 0:
            raise ValidationException(
                f"{transaction_type.value} entries must be positive",
                details={"amount": amount, "transaction_type": transaction_type.value},
            )

    @BaseService.measure_operation("apply_credit_delta")
    def apply_credit_delta(
        self,
        *,
        profile_id: str,
        amount: int,
        transaction_type: TransactionType,
        description: Optional[str] = None,
        booking_id: Optional[str] = None,
        admin_user_id: Optional[str] = None,
        use_transaction: bool = True,
    ) -> int:
        """
        Apply a signed credit change to one profile and append the ledger entry.

        Args:
            profile_id: Profile whose balance changes
            amount: Signed, non-zero delta (negative for deduction types)
            transaction_type: Ledger entry type
            description: Free-form description stored on the entry
            booking_id: Related booking for payments and refunds
            admin_user_id: Admin profile id for admin-initiated entries
            use_transaction: False when the caller owns the unit of work

        Returns:
            The new balance

        Raises:
            ValidationException: Zero amount or sign not matching the type
            ProfileNotFoundException: Unknown profile
            InsufficientCreditsException: Balance would go negative
        """
        entry = self.record_credit_delta(
            profile_id=profile_id,
            amount=amount,
            transaction_type=transaction_type,
            description=description,
            booking_id=booking_id,
            admin_user_id=admin_user_id,
            use_transaction=use_transaction,
        )
        return entry.balance_after

    def record_credit_delta(
        self,
        *,
        profile_id: str,
        amount: int,
        transaction_type: TransactionType,
        description: Optional[str] = None,
        booking_id: Optional[str] = None,
        admin_user_id: Optional[str] = None,
        use_transaction: bool = True,
    ) -> CreditTransaction:
        """Same as ``apply_credit_delta`` but returns the ledger entry."""
        transaction_type = TransactionType(transaction_type)
        self._validate_delta(amount, transaction_type)

        def _apply() -> CreditTransaction:
            new_balance = self.profile_repository.apply_balance_delta(profile_id, amount)
            if new_balance is None:
                profile = self.profile_repository.get_by_id(profile_id, load_relationships=False)
                if profile is None:
                    raise ProfileNotFoundException(profile_id)
                self.db.refresh(profile)
                raise InsufficientCreditsException(
                    required=-amount, available=profile.credit_balance
                )

            entry = self.transaction_repository.create(
                profile_id=profile_id,
                amount=amount,
                transaction_type=transaction_type.value,
                description=description,
                booking_id=booking_id,
                admin_user_id=admin_user_id,
                balance_after=new_balance,
                created_at=self.clock(),
            )
            self.log_operation(
                "apply_credit_delta",
                profile_id=profile_id,
                amount=amount,
                transaction_type=transaction_type.value,
                credit_transaction_id=entry.id,
                balance_after=new_balance,
            )
            prometheus_metrics.inc_credit_delta(transaction_type.value)
            return entry

        if use_transaction:
            with self.transaction():
                return _apply()
        return _apply()

    @BaseService.measure_operation("list_credit_transactions")
    def list_transactions(self, profile_id: str, limit: int = 50) -> List[CreditTransaction]:
        """Ledger entries for a profile, newest first."""
        return self.transaction_repository.list_for_profile(profile_id, limit=limit)

    @BaseService.measure_operation("verify_balance")
    def verify_balance(self, profile_id: str) -> Dict[str, Any]:
        """Compare the stored balance with the ledger sum."""
        profile = self.profile_repository.get_by_id(profile_id, load_relationships=False)
        if profile is None:
            raise ProfileNotFoundException(profile_id)
        self.db.refresh(profile)
        ledger_sum = self.transaction_repository.sum_for_profile(profile_id)
        consistent = ledger_sum == profile.credit_balance
        if not consistent:
            self.logger.error(
                f"Balance drift for profile {profile_id}: stored={profile.credit_balance} "
                f"ledger={ledger_sum}"
            )
        return {
            "profile_id": profile_id,
            "credit_balance": profile.credit_balance,
            "ledger_sum": ledger_sum,
            "consistent": consistent,
        }

    @BaseService.measure_operation("manage_credits")
    def manage_credits(
        self,
        *,
        admin_profile: Profile,
        target_user_id: str,
        amount: int,
        transaction_type: TransactionType,
        description: Optional[str] = None,
    ) -> CreditTransaction:
        """
        Admin grant or deduction. ``amount`` is a positive magnitude.

        ``target_user_id`` may be the identity id or the profile id.

        Raises:
            ForbiddenException: ADMIN_REQUIRED
            ValidationException: Bad magnitude or a non-admin transaction type
            ProfileNotFoundException: Unknown target
            InsufficientCreditsException: Deduction larger than the balance
        """
        if not admin_profile.is_admin:
            raise ForbiddenException("Admin access required", code="ADMIN_REQUIRED")
        transaction_type = TransactionType(transaction_type)
        if transaction_type not in ADMIN_TRANSACTION_TYPES:
            raise ValidationException(
                "Admins can only add or deduct credits",
                details={"transaction_type": transaction_type.value},
            )
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationException(
                "Amount must be a positive whole number of credits",
                details={"amount": str(amount)},
            )

        target = self.profile_repository.get_by_user_id(
            target_user_id
        ) or self.profile_repository.get_by_id(target_user_id, load_relationships=False)
        if target is None:
            raise ProfileNotFoundException(target_user_id)

        signed = -amount if transaction_type.is_deduction else amount
        entry = self.record_credit_delta(
            profile_id=target.id,
            amount=signed,
            transaction_type=transaction_type,
            description=description or f"Admin {transaction_type.value.replace('_', ' ')}",
            admin_user_id=admin_profile.id,
        )
        self.log_operation(
            "manage_credits",
            admin_id=admin_profile.id,
            target_profile_id=target.id,
            amount=signed,
        )
        return entry
