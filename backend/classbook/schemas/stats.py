"""Admin dashboard statistics."""

from pydantic import Field

from ._strict_base import StrictModel
from .base import Money


class DashboardStats(StrictModel):
    total_users: int = Field(..., ge=0)
    total_bookings: int = Field(..., ge=0)
    today_bookings: int = Field(..., ge=0)
    total_credits_issued: int = Field(..., ge=0)
    upcoming_classes: int = Field(..., ge=0)
    near_capacity_classes: int = Field(..., ge=0)
    total_revenue: Money
