# backend/classbook/routes/v1/credits.py
"""
Credit routes - API v1

Endpoints:
    GET /packages - Purchasable credit packages
    GET /transactions - The caller's ledger, newest first
    GET /balance - Stored balance checked against the ledger
    POST /purchase - Buy a credit package (mock gateway)
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import (
    get_credit_ledger_service,
    get_credit_purchase_service,
    get_current_profile,
)
from ...core.exceptions import DomainException
from ...models.profile import Profile
from ...schemas.credits import (
    BalanceCheckResponse,
    CreditPackageResponse,
    CreditPurchaseResponse,
    CreditTransactionResponse,
    PurchaseCreditsRequest,
)
from ...services.credit_ledger_service import CreditLedgerService
from ...services.credit_purchase_service import CreditPurchaseService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["credits-v1"])


@router.get("/packages", response_model=List[CreditPackageResponse])
async def list_packages(
    purchase_service: CreditPurchaseService = Depends(get_credit_purchase_service),
) -> List[CreditPackageResponse]:
    return [
        CreditPackageResponse(**package._asdict()) for package in purchase_service.list_packages()
    ]


@router.get("/transactions", response_model=List[CreditTransactionResponse])
async def list_my_transactions(
    limit: int = Query(50, ge=1, le=500),
    current_profile: Profile = Depends(get_current_profile),
    ledger_service: CreditLedgerService = Depends(get_credit_ledger_service),
) -> List[CreditTransactionResponse]:
    try:
        entries = await asyncio.to_thread(
            ledger_service.list_transactions, current_profile.id, limit
        )
        return [CreditTransactionResponse.model_validate(entry) for entry in entries]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/balance", response_model=BalanceCheckResponse)
async def get_my_balance(
    current_profile: Profile = Depends(get_current_profile),
    ledger_service: CreditLedgerService = Depends(get_credit_ledger_service),
) -> BalanceCheckResponse:
    try:
        result = await asyncio.to_thread(ledger_service.verify_balance, current_profile.id)
        return BalanceCheckResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/purchase",
    response_model=CreditPurchaseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Unknown or mismatched package"}, 402: {"description": "Declined"}},
)
async def purchase_credits(
    payload: PurchaseCreditsRequest = Body(...),
    current_profile: Profile = Depends(get_current_profile),
    purchase_service: CreditPurchaseService = Depends(get_credit_purchase_service),
) -> CreditPurchaseResponse:
    try:
        purchase = await asyncio.to_thread(
            purchase_service.purchase_credits,
            profile_id=current_profile.id,
            credits_amount=payload.credits_amount,
            package_type=payload.package_type,
            amount_paid=payload.amount_paid,
            payment_method=payload.payment_method,
        )
        return CreditPurchaseResponse.model_validate(purchase)
    except DomainException as e:
        handle_domain_exception(e)
