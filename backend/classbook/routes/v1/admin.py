# backend/classbook/routes/v1/admin.py
"""
Admin routes - API v1

All endpoints require the admin role.

Endpoints:
    POST /mutations - Create, update or delete a class type, instructor, schedule or material
    POST /credits - Grant or deduct credits for a profile
    GET /stats - Dashboard statistics
    GET /profiles - Profiles, optionally filtered by name or email
    GET /profiles/{profile_id}/balance-check - Stored balance against the ledger
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from ...api.dependencies import (
    get_admin_mutation_service,
    get_admin_stats_service,
    get_credit_ledger_service,
    get_profile_service,
    require_admin,
)
from ...core.exceptions import DomainException
from ...models.profile import Profile
from ...schemas.admin import AdminMutation, AdminMutationResult
from ...schemas.credits import (
    BalanceCheckResponse,
    CreditTransactionResponse,
    ManageCreditsRequest,
)
from ...schemas.profile import ProfileResponse
from ...schemas.stats import DashboardStats
from ...services.admin_mutation_service import AdminMutationService
from ...services.admin_stats_service import AdminStatsService
from ...services.credit_ledger_service import CreditLedgerService
from ...services.profile_service import ProfileService
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-v1"])


@router.post("/mutations", response_model=AdminMutationResult)
async def apply_mutation(
    mutation: AdminMutation = Body(...),
    admin: Profile = Depends(require_admin),
    mutation_service: AdminMutationService = Depends(get_admin_mutation_service),
) -> AdminMutationResult:
    try:
        return await asyncio.to_thread(mutation_service.apply, mutation, admin)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/credits", response_model=CreditTransactionResponse)
async def manage_credits(
    payload: ManageCreditsRequest = Body(...),
    admin: Profile = Depends(require_admin),
    ledger_service: CreditLedgerService = Depends(get_credit_ledger_service),
) -> CreditTransactionResponse:
    try:
        entry = await asyncio.to_thread(
            ledger_service.manage_credits,
            admin_profile=admin,
            target_user_id=payload.target_user_id,
            amount=payload.amount,
            transaction_type=payload.transaction_type,
            description=payload.description,
        )
        return CreditTransactionResponse.model_validate(entry)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    admin: Profile = Depends(require_admin),
    stats_service: AdminStatsService = Depends(get_admin_stats_service),
) -> DashboardStats:
    return await asyncio.to_thread(stats_service.get_dashboard_stats)


@router.get("/profiles", response_model=List[ProfileResponse])
async def list_profiles(
    search: Optional[str] = Query(None, max_length=200),
    limit: int = Query(100, ge=1, le=1000),
    admin: Profile = Depends(require_admin),
    profile_service: ProfileService = Depends(get_profile_service),
) -> List[ProfileResponse]:
    profiles = await asyncio.to_thread(profile_service.list_profiles, search, limit)
    return [ProfileResponse.model_validate(profile) for profile in profiles]


@router.get("/profiles/{profile_id}/balance-check", response_model=BalanceCheckResponse)
async def check_balance(
    profile_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    admin: Profile = Depends(require_admin),
    ledger_service: CreditLedgerService = Depends(get_credit_ledger_service),
) -> BalanceCheckResponse:
    try:
        result = await asyncio.to_thread(ledger_service.verify_balance, profile_id)
        return BalanceCheckResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)
