"""
Profile provisioning and profile reads.

Provisioning runs once per new identity: the profile row is created with a
zero balance and the signup grant is then applied through the credit ledger,
so the balance matches the ledger from the first moment.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import RoleName, TransactionType
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    ProfileNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import Clock, utc_now
from ..models.profile import Profile
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .credit_ledger_service import CreditLedgerService

logger = logging.getLogger(__name__)

CONTACT_FIELDS = frozenset({"full_name", "phone", "company_name", "bio", "avatar_url"})


class ProfileService(BaseService):
    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, clock)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.ledger_service = CreditLedgerService(db, clock)

    @BaseService.measure_operation("provision_profile")
    def provision_profile(
        self,
        *,
        user_id: str,
        email: str,
        full_name: str = "",
        role: RoleName = RoleName.STUDENT,
        signup_credits: Optional[int] = None,
    ) -> Profile:
        """
        Create the profile for a new identity and grant the signup credits.

        Raises:
            ConflictException: PROFILE_EXISTS when the identity already has a profile
        """
        grant = settings.signup_credit_grant if signup_credits is None else signup_credits
        if grant < 0:
            raise ValidationException("Signup credit grant cannot be negative")

        with self.transaction():
            if self.profile_repository.get_by_user_id(user_id) is not None:
                raise ConflictException(
                    "A profile already exists for this user",
                    code="PROFILE_EXISTS",
                    details={"user_id": user_id},
                )
            profile = self.profile_repository.create(
                user_id=user_id,
                email=email,
                full_name=full_name or email.split("@")[0],
                role=RoleName(role).value,
                credit_balance=0,
                created_at=self.clock(),
            )
            if grant > 0:
                self.ledger_service.apply_credit_delta(
                    profile_id=profile.id,
                    amount=grant,
                    transaction_type=TransactionType.CREDIT_ADDED,
                    description="Welcome credits",
                    use_transaction=False,
                )

        self.db.refresh(profile)
        self.log_operation(
            "provision_profile", profile_id=profile.id, user_id=user_id, granted=grant
        )
        return profile

    def get_profile(self, profile_id: str) -> Profile:
        profile = self.profile_repository.get_by_id(profile_id, load_relationships=False)
        if profile is None:
            raise ProfileNotFoundException(profile_id)
        return profile

    def get_profile_by_user_id(self, user_id: str) -> Profile:
        profile = self.profile_repository.get_by_user_id(user_id)
        if profile is None:
            raise ProfileNotFoundException(user_id)
        return profile

    @BaseService.measure_operation("update_contact")
    def update_contact(
        self, profile_id: str, fields: Dict[str, Any], actor: Profile
    ) -> Profile:
        """
        Self or admin edit of contact fields. Balance and role are never touched.

        Raises:
            ForbiddenException: Actor is neither the owner nor an admin
            ValidationException: Unknown field names
        """
        if actor.id != profile_id and not actor.is_admin:
            raise ForbiddenException(
                "You can only edit your own profile", code="NOT_OWNER"
            )
        unknown = set(fields) - CONTACT_FIELDS
        if unknown:
            raise ValidationException(
                "Only contact fields can be edited",
                details={"fields": sorted(unknown)},
            )
        if "full_name" in fields and not (fields["full_name"] or "").strip():
            raise ValidationException("full_name cannot be empty", details={"field": "full_name"})

        with self.transaction():
            profile = self.profile_repository.update(profile_id, **fields)
            if profile is None:
                raise ProfileNotFoundException(profile_id)

        self.log_operation(
            "update_contact", profile_id=profile_id, actor_id=actor.id, fields=sorted(fields)
        )
        return profile

    @BaseService.measure_operation("list_profiles")
    def list_profiles(self, search: Optional[str] = None, limit: int = 100) -> List[Profile]:
        return self.profile_repository.search(search, limit=limit)
