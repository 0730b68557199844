# backend/classbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets fresh service instances bound to its own session.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.admin_mutation_service import AdminMutationService
from ...services.admin_stats_service import AdminStatsService
from ...services.booking_service import BookingService
from ...services.catalog_service import CatalogService
from ...services.credit_ledger_service import CreditLedgerService
from ...services.credit_purchase_service import CreditPurchaseService
from ...services.profile_service import ProfileService
from .database import get_db

logger = logging.getLogger(__name__)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_credit_ledger_service(db: Session = Depends(get_db)) -> CreditLedgerService:
    return CreditLedgerService(db)


def get_credit_purchase_service(db: Session = Depends(get_db)) -> CreditPurchaseService:
    return CreditPurchaseService(db)


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_admin_mutation_service(db: Session = Depends(get_db)) -> AdminMutationService:
    return AdminMutationService(db)


def get_admin_stats_service(db: Session = Depends(get_db)) -> AdminStatsService:
    return AdminStatsService(db)
