# backend/classbook/repositories/credit_repository.py
"""
Credit ledger repositories.

The ledger table is append-only, so this module exposes inserts and reads
but no update or delete helpers for ``CreditTransaction``.
"""

from decimal import Decimal
import logging
from typing import Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.credit_transaction import CreditPurchase, CreditTransaction
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CreditTransactionRepository(BaseRepository[CreditTransaction]):
    """Repository for ledger entries."""

    def __init__(self, db: Session):
        super().__init__(db, CreditTransaction)
        self.logger = logging.getLogger(__name__)

    def list_for_profile(self, profile_id: str, limit: int = 50) -> List[CreditTransaction]:
        query = (
            self._build_query()
            .filter(CreditTransaction.profile_id == profile_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def sum_for_profile(self, profile_id: str) -> int:
        query = self.db.query(func.coalesce(func.sum(CreditTransaction.amount), 0)).filter(
            CreditTransaction.profile_id == profile_id
        )
        return int(self._execute_scalar(query) or 0)

    def sum_by_types(self, transaction_types: Iterable[str]) -> int:
        query = self.db.query(func.coalesce(func.sum(CreditTransaction.amount), 0)).filter(
            CreditTransaction.transaction_type.in_(list(transaction_types))
        )
        return int(self._execute_scalar(query) or 0)

    def find_for_booking(self, booking_id: str) -> List[CreditTransaction]:
        query = (
            self._build_query()
            .filter(CreditTransaction.booking_id == booking_id)
            .order_by(CreditTransaction.created_at.asc(), CreditTransaction.id.asc())
        )
        return self._execute_query(query)


class CreditPurchaseRepository(BaseRepository[CreditPurchase]):
    def __init__(self, db: Session):
        super().__init__(db, CreditPurchase)

    def total_revenue(self) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(CreditPurchase.amount_paid), 0))
        return Decimal(str(self._execute_scalar(query) or 0))

    def list_for_profile(self, profile_id: str, limit: int = 50) -> List[CreditPurchase]:
        query = (
            self._build_query()
            .filter(CreditPurchase.profile_id == profile_id)
            .order_by(CreditPurchase.created_at.desc())
            .limit(limit)
        )
        return self._execute_query(query)
