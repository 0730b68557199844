# backend/classbook/routes/v1/functions.py
"""
Remote-procedure endpoints - API v1

Named functions invoked by the web client, each returning ``{"data": ...}``.
They accept the same bodies the client has always sent and delegate to the
same services as the REST routes.

Endpoints (under /api/v1/functions):
    POST /book-class
    POST /cancel-booking
    POST /manage-credits
    POST /purchase-credits
    POST /manage-class-types
    POST /manage-instructors
    POST /manage-class-schedules
    POST /manage-materials
    POST /handle-user-signup
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import (
    get_admin_mutation_service,
    get_booking_service,
    get_credit_ledger_service,
    get_credit_purchase_service,
    get_current_profile,
    get_profile_service,
    require_admin,
)
from ...auth import Principal, get_current_principal
from ...core.exceptions import DomainException
from ...models.profile import Profile
from ...schemas.admin import (
    AdminMutationResult,
    ClassScheduleMutation,
    ClassTypeMutation,
    InstructorMutation,
    MaterialMutation,
)
from ...schemas.base_responses import DataResponse
from ...schemas.booking import BookingCancel, BookingCreate, BookingResponse
from ...schemas.credits import (
    CreditPurchaseResponse,
    CreditTransactionResponse,
    ManageCreditsRequest,
    PurchaseCreditsRequest,
)
from ...schemas.profile import ProfileResponse, SignupRequest
from ...services.admin_mutation_service import AdminMutationService
from ...services.booking_service import BookingService
from ...services.credit_ledger_service import CreditLedgerService
from ...services.credit_purchase_service import CreditPurchaseService
from ...services.profile_service import ProfileService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["functions-v1"])


@router.post("/book-class", response_model=DataResponse[BookingResponse])
async def book_class(
    payload: BookingCreate = Body(...),
    current_profile: Profile = Depends(get_current_profile),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, current_profile.id, payload.class_schedule_id
        )
        return DataResponse[BookingResponse](data=BookingResponse.model_validate(booking))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/cancel-booking", response_model=DataResponse[BookingResponse])
async def cancel_booking(
    payload: BookingCancel = Body(...),
    current_profile: Profile = Depends(get_current_profile),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking,
            payload.booking_id,
            current_profile.id,
            admin_override=current_profile.is_admin,
        )
        return DataResponse[BookingResponse](data=BookingResponse.model_validate(booking))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/manage-credits", response_model=DataResponse[CreditTransactionResponse])
async def manage_credits(
    payload: ManageCreditsRequest = Body(...),
    admin: Profile = Depends(require_admin),
    ledger_service: CreditLedgerService = Depends(get_credit_ledger_service),
) -> DataResponse[CreditTransactionResponse]:
    try:
        entry = await asyncio.to_thread(
            ledger_service.manage_credits,
            admin_profile=admin,
            target_user_id=payload.target_user_id,
            amount=payload.amount,
            transaction_type=payload.transaction_type,
            description=payload.description,
        )
        return DataResponse[CreditTransactionResponse](
            data=CreditTransactionResponse.model_validate(entry)
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/purchase-credits", response_model=DataResponse[CreditPurchaseResponse])
async def purchase_credits(
    payload: PurchaseCreditsRequest = Body(...),
    current_profile: Profile = Depends(get_current_profile),
    purchase_service: CreditPurchaseService = Depends(get_credit_purchase_service),
) -> DataResponse[CreditPurchaseResponse]:
    try:
        purchase = await asyncio.to_thread(
            purchase_service.purchase_credits,
            profile_id=current_profile.id,
            credits_amount=payload.credits_amount,
            package_type=payload.package_type,
            amount_paid=payload.amount_paid,
            payment_method=payload.payment_method,
        )
        return DataResponse[CreditPurchaseResponse](
            data=CreditPurchaseResponse.model_validate(purchase)
        )
    except DomainException as e:
        handle_domain_exception(e)


async def _apply_mutation(
    mutation: object, admin: Profile, mutation_service: AdminMutationService
) -> DataResponse[AdminMutationResult]:
    try:
        result = await asyncio.to_thread(mutation_service.apply, mutation, admin)
        return DataResponse[AdminMutationResult](data=result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/manage-class-types", response_model=DataResponse[AdminMutationResult])
async def manage_class_types(
    mutation: ClassTypeMutation = Body(...),
    admin: Profile = Depends(require_admin),
    mutation_service: AdminMutationService = Depends(get_admin_mutation_service),
) -> DataResponse[AdminMutationResult]:
    return await _apply_mutation(mutation, admin, mutation_service)


@router.post("/manage-instructors", response_model=DataResponse[AdminMutationResult])
async def manage_instructors(
    mutation: InstructorMutation = Body(...),
    admin: Profile = Depends(require_admin),
    mutation_service: AdminMutationService = Depends(get_admin_mutation_service),
) -> DataResponse[AdminMutationResult]:
    return await _apply_mutation(mutation, admin, mutation_service)


@router.post("/manage-class-schedules", response_model=DataResponse[AdminMutationResult])
async def manage_class_schedules(
    mutation: ClassScheduleMutation = Body(...),
    admin: Profile = Depends(require_admin),
    mutation_service: AdminMutationService = Depends(get_admin_mutation_service),
) -> DataResponse[AdminMutationResult]:
    return await _apply_mutation(mutation, admin, mutation_service)


@router.post("/handle-user-signup", response_model=DataResponse[ProfileResponse])
async def handle_user_signup(
    payload: SignupRequest = Body(...),
    principal: Principal = Depends(get_current_principal),
    profile_service: ProfileService = Depends(get_profile_service),
) -> DataResponse[ProfileResponse]:
    """Provision the caller's profile with the signup credit grant."""
    try:
        profile = await asyncio.to_thread(
            profile_service.provision_profile,
            user_id=principal.user_id,
            email=payload.email,
            full_name=payload.full_name,
        )
        return DataResponse[ProfileResponse](data=ProfileResponse.model_validate(profile))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/manage-materials", response_model=DataResponse[AdminMutationResult])
async def manage_materials(
    mutation: MaterialMutation = Body(...),
    admin: Profile = Depends(require_admin),
    mutation_service: AdminMutationService = Depends(get_admin_mutation_service),
) -> DataResponse[AdminMutationResult]:
    return await _apply_mutation(mutation, admin, mutation_service)
