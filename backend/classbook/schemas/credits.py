"""Credit ledger, purchase and admin credit schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from ..core.enums import TransactionType
from ._strict_base import OrmResponseModel, StrictModel, StrictRequestModel
from .base import Money


class CreditPackageResponse(StrictModel):
    id: str
    name: str
    credits: int
    price: Money
    description: str


class PurchaseCreditsRequest(StrictRequestModel):
    credits_amount: int = Field(..., gt=0)
    package_type: str = Field(..., min_length=1, max_length=100)
    amount_paid: Money
    payment_method: str = Field(..., min_length=1, max_length=100)


class ManageCreditsRequest(StrictRequestModel):
    """Admin credit adjustment. ``amount`` is a positive magnitude."""

    target_user_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    transaction_type: Literal["credit_added", "credit_deducted"]
    description: Optional[str] = Field(None, max_length=500)


class CreditTransactionResponse(OrmResponseModel):
    id: str
    profile_id: str
    amount: int
    transaction_type: TransactionType
    description: Optional[str] = None
    booking_id: Optional[str] = None
    admin_user_id: Optional[str] = None
    balance_after: int
    created_at: datetime


class CreditPurchaseResponse(OrmResponseModel):
    id: str
    profile_id: str
    credit_transaction_id: str
    package_id: str
    credits_amount: int
    amount_paid: Money
    payment_method: str
    payment_reference: str
    created_at: datetime


class BalanceCheckResponse(StrictModel):
    profile_id: str
    credit_balance: int
    ledger_sum: int
    consistent: bool
