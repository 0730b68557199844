# backend/classbook/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The bearer token names an identity; these dependencies resolve it to the
caller's ``Profile``. Lookups run in a worker thread so the sync session
never blocks the event loop.
"""

import asyncio
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...auth import Principal, get_current_principal
from ...core.exceptions import ForbiddenException, ProfileNotFoundException
from ...models.profile import Profile
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


async def get_current_profile(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Profile:
    """
    Get the caller's profile.

    Raises:
        HTTPException: 404 PROFILE_NOT_FOUND when the identity was never provisioned
    """
    repository = RepositoryFactory.create_profile_repository(db)
    profile = await asyncio.to_thread(repository.get_by_user_id, principal.user_id)
    if profile is None:
        logger.info(f"No profile provisioned for identity {principal.user_id}")
        raise ProfileNotFoundException(principal.user_id).to_http_exception()
    return profile


async def require_admin(current_profile: Profile = Depends(get_current_profile)) -> Profile:
    """
    Get the caller's profile, requiring the admin role.

    Raises:
        HTTPException: 403 ADMIN_REQUIRED for non-admins
    """
    if not current_profile.is_admin:
        raise ForbiddenException(
            "Admin access required", code="ADMIN_REQUIRED"
        ).to_http_exception()
    return current_profile


