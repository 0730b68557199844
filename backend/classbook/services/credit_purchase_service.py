# backend/classbook/services/credit_purchase_service.py
"""
Credit package purchases.

The charge happens before anything is written; a declined charge leaves no
trace in the database. An approved charge records the purchase and its
``credit_purchase`` ledger entry in one transaction, and the charge is voided
if that transaction fails.
"""

from decimal import Decimal, InvalidOperation
import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import CREDIT_PACKAGES, CreditPackage
from ..core.enums import TransactionType
from ..core.exceptions import (
    PaymentRequiredException,
    ProfileNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import Clock, utc_now
from ..models.credit_transaction import CreditPurchase
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .credit_ledger_service import CreditLedgerService
from .payment_gateway import MockPaymentGateway, PaymentGateway

logger = logging.getLogger(__name__)


def find_package(package_type: str) -> Optional[CreditPackage]:
    """Look a package up by id or display name, case-insensitively."""
    key = (package_type or "").strip().lower()
    for package in CREDIT_PACKAGES.values():
        if key in (package.id, package.name.lower()):
            return package
    return None


class CreditPurchaseService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Clock = utc_now,
        payment_gateway: Optional[PaymentGateway] = None,
    ):
        super().__init__(db, clock)
        self.purchase_repository = RepositoryFactory.create_credit_purchase_repository(db)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.ledger_service = CreditLedgerService(db, clock)
        self.payment_gateway = payment_gateway or MockPaymentGateway()

    def list_packages(self) -> List[CreditPackage]:
        return list(CREDIT_PACKAGES.values())

    @BaseService.measure_operation("purchase_credits")
    def purchase_credits(
        self,
        *,
        profile_id: str,
        credits_amount: int,
        package_type: str,
        amount_paid: Any,
        payment_method: str,
    ) -> CreditPurchase:
        """
        Buy a credit package.

        Raises:
            ValidationException: UNKNOWN_PACKAGE, or credits/price not matching the package
            ProfileNotFoundException: Unknown profile, checked before charging
            PaymentRequiredException: PAYMENT_DECLINED
        """
        package = find_package(package_type)
        if package is None:
            raise ValidationException(
                f"Unknown credit package: {package_type}",
                code="UNKNOWN_PACKAGE",
                details={"package_type": package_type},
            )
        try:
            paid = Decimal(str(amount_paid)).quantize(Decimal("0.01"))
        except (InvalidOperation, ValueError) as e:
            raise ValidationException(
                "amount_paid must be a decimal amount", details={"amount_paid": str(amount_paid)}
            ) from e
        if credits_amount != package.credits or paid != package.price:
            raise ValidationException(
                "Purchase does not match the selected package",
                details={
                    "package": package.id,
                    "expected_credits": package.credits,
                    "expected_price": str(package.price),
                    "credits_amount": credits_amount,
                    "amount_paid": str(paid),
                },
            )

        if self.profile_repository.get_by_id(profile_id, load_relationships=False) is None:
            raise ProfileNotFoundException(profile_id)

        charge = self.payment_gateway.charge(
            profile_id=profile_id, amount=paid, payment_method=payment_method
        )
        if not charge.approved:
            self.logger.info(f"Payment declined for profile {profile_id}: {charge.decline_reason}")
            raise PaymentRequiredException(
                "Payment was declined",
                code="PAYMENT_DECLINED",
                details={"reason": charge.decline_reason, "reference": charge.reference},
            )

        try:
            with self.transaction():
                entry = self.ledger_service.record_credit_delta(
                    profile_id=profile_id,
                    amount=package.credits,
                    transaction_type=TransactionType.CREDIT_PURCHASE,
                    description=f"Purchased {package.name}",
                    use_transaction=False,
                )
                purchase = self.purchase_repository.create(
                    profile_id=profile_id,
                    credit_transaction_id=entry.id,
                    package_id=package.id,
                    credits_amount=package.credits,
                    amount_paid=paid,
                    payment_method=_masked(payment_method),
                    payment_reference=charge.reference,
                    created_at=self.clock(),
                )
        except Exception:
            self._void_charge(charge.reference, profile_id)
            raise

        self.log_operation(
            "purchase_credits",
            profile_id=profile_id,
            package=package.id,
            credits=package.credits,
            purchase_id=purchase.id,
        )
        return purchase

    def _void_charge(self, reference: str, profile_id: str) -> None:
        """Reverse an approved charge whose purchase was rolled back."""
        self.logger.error(
            f"Recording purchase failed for profile {profile_id}; voiding charge {reference}"
        )
        try:
            self.payment_gateway.void(reference=reference)
        except Exception as e:
            self.logger.critical(
                f"Could not void charge {reference} for profile {profile_id}: {str(e)}"
            )


def _masked(payment_method: str) -> str:
    digits = "".join(ch for ch in payment_method if ch.isdigit())
    if len(digits) >= 4:
        return f"card ending {digits[-4:]}"
    return payment_method[:100]
