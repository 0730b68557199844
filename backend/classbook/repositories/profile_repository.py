# backend/classbook/repositories/profile_repository.py
"""
Profile repository.

Balance writes are conditional single-statement UPDATEs so two concurrent
deltas against the same profile can never both read a stale balance.
"""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.profile import Profile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProfileRepository(BaseRepository[Profile]):
    def __init__(self, db: Session):
        super().__init__(db, Profile)

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        return self.find_one_by(user_id=user_id)

    def get_for_update(self, profile_id: str) -> Optional[Profile]:
        """Load a profile, taking a row lock where the dialect supports it."""
        try:
            query = self.db.query(Profile).filter(Profile.id == profile_id)
            if self.supports_row_locks:
                query = query.with_for_update()
            return query.populate_existing().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking profile {profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock profile: {str(e)}") from e

    def apply_balance_delta(self, profile_id: str, amount: int) -> Optional[int]:
        """
        Add ``amount`` to the stored balance unless it would go negative.

        Returns the new balance, or None when the guard rejected the update
        (or the profile does not exist).
        """
        try:
            updated = (
                self.db.query(Profile)
                .filter(Profile.id == profile_id, Profile.credit_balance + amount >= 0)
                .update(
                    {Profile.credit_balance: Profile.credit_balance + amount},
                    synchronize_session="fetch",
                )
            )
            if updated != 1:
                return None
            return (
                self.db.query(Profile.credit_balance).filter(Profile.id == profile_id).scalar()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error applying balance delta to {profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to update balance: {str(e)}") from e

    def search(self, search: Optional[str] = None, limit: int = 100) -> List[Profile]:
        query = self._build_query()
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(Profile.full_name.ilike(pattern), Profile.email.ilike(pattern))
            )
        return self._execute_query(query.order_by(Profile.created_at.desc()).limit(limit))
