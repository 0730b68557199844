"""Business logic layer. Services own transactions; repositories only flush."""

from .admin_mutation_service import AdminMutationService
from .admin_stats_service import AdminStatsService
from .base import BaseService
from .booking_service import BookingService
from .capacity_service import CapacityService
from .catalog_service import CatalogService
from .credit_ledger_service import CreditLedgerService
from .credit_purchase_service import CreditPurchaseService
from .profile_service import ProfileService

__all__ = [
    "AdminMutationService",
    "AdminStatsService",
    "BaseService",
    "BookingService",
    "CapacityService",
    "CatalogService",
    "CreditLedgerService",
    "CreditPurchaseService",
    "ProfileService",
]
