"""
Payment gateway seam for credit purchases.

Only a mock gateway ships; real settlement is out of scope. A different
gateway can be injected into ``CreditPurchaseService``. ``void`` reverses an
approved charge whose purchase could not be recorded.
"""

from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import Optional, Protocol

import ulid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChargeResult:
    approved: bool
    reference: str
    decline_reason: Optional[str] = None


class PaymentGateway(Protocol):
    def charge(self, *, profile_id: str, amount: Decimal, payment_method: str) -> ChargeResult:
        ...

    def void(self, *, reference: str) -> None:
        ...


class MockPaymentGateway:
    """Approves every charge except card references ending in ``0000``."""

    DECLINE_SUFFIX = "0000"

    def charge(self, *, profile_id: str, amount: Decimal, payment_method: str) -> ChargeResult:
        reference = f"mock_{ulid.ULID()}"
        digits = "".join(ch for ch in payment_method if ch.isdigit())
        if digits.endswith(self.DECLINE_SUFFIX):
            logger.info(f"Mock gateway declined charge of {amount} for profile {profile_id}")
            return ChargeResult(approved=False, reference=reference, decline_reason="card_declined")
        logger.info(f"Mock gateway approved charge of {amount} for profile {profile_id}")
        return ChargeResult(approved=True, reference=reference)

    def void(self, *, reference: str) -> None:
        logger.info(f"Mock gateway voided charge {reference}")
