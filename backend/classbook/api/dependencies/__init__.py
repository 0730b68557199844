# backend/classbook/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_profile, require_admin
from .database import get_db
from .services import (
    get_admin_mutation_service,
    get_admin_stats_service,
    get_booking_service,
    get_catalog_service,
    get_credit_ledger_service,
    get_credit_purchase_service,
    get_profile_service,
)

__all__ = [
    # Auth
    "get_current_profile",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_admin_mutation_service",
    "get_admin_stats_service",
    "get_booking_service",
    "get_catalog_service",
    "get_credit_ledger_service",
    "get_credit_purchase_service",
    "get_profile_service",
]
