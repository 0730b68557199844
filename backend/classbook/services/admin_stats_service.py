"""Admin dashboard statistics."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import TransactionType
from ..core.timezone_utils import Clock, start_of_utc_day, utc_now
from ..repositories.factory import RepositoryFactory
from ..schemas.stats import DashboardStats
from .base import BaseService

logger = logging.getLogger(__name__)

ISSUED_CREDIT_TYPES = (TransactionType.CREDIT_ADDED.value, TransactionType.CREDIT_PURCHASE.value)


class AdminStatsService(BaseService):
    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, clock)
        self.profile_repository = RepositoryFactory.create_profile_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)
        self.transaction_repository = RepositoryFactory.create_credit_transaction_repository(db)
        self.purchase_repository = RepositoryFactory.create_credit_purchase_repository(db)

    @BaseService.measure_operation("get_dashboard_stats")
    def get_dashboard_stats(self, near_capacity_ratio: Optional[float] = None) -> DashboardStats:
        now = self.clock()
        ratio = settings.near_capacity_ratio if near_capacity_ratio is None else near_capacity_ratio
        return DashboardStats(
            total_users=self.profile_repository.count(),
            total_bookings=self.booking_repository.count(),
            today_bookings=self.booking_repository.count_since(start_of_utc_day(now)),
            total_credits_issued=self.transaction_repository.sum_by_types(ISSUED_CREDIT_TYPES),
            upcoming_classes=self.schedule_repository.count_upcoming(now),
            near_capacity_classes=self.schedule_repository.count_near_capacity(now, ratio),
            total_revenue=self.purchase_repository.total_revenue(),
        )
