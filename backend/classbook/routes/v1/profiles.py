# backend/classbook/routes/v1/profiles.py
"""
Profile routes - API v1

Endpoints:
    GET /me - The caller's profile
    PATCH /me - Edit the caller's contact fields
    PATCH /{profile_id} - Edit contact fields (owner or admin)
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, Path

from ...api.dependencies import get_current_profile, get_profile_service
from ...core.exceptions import DomainException
from ...models.profile import Profile
from ...schemas.profile import ProfileContactUpdate, ProfileResponse
from ...services.profile_service import ProfileService
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profiles-v1"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(current_profile: Profile = Depends(get_current_profile)) -> ProfileResponse:
    return ProfileResponse.model_validate(current_profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileContactUpdate = Body(...),
    current_profile: Profile = Depends(get_current_profile),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return await _update_contact(current_profile.id, payload, current_profile, profile_service)


@router.patch("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    payload: ProfileContactUpdate = Body(...),
    current_profile: Profile = Depends(get_current_profile),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return await _update_contact(profile_id, payload, current_profile, profile_service)


async def _update_contact(
    profile_id: str,
    payload: ProfileContactUpdate,
    actor: Profile,
    profile_service: ProfileService,
) -> ProfileResponse:
    try:
        profile = await asyncio.to_thread(
            profile_service.update_contact,
            profile_id,
            payload.model_dump(exclude_unset=True),
            actor,
        )
        return ProfileResponse.model_validate(profile)
    except DomainException as e:
        handle_domain_exception(e)
