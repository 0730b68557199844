"""Application-wide constants for the class booking platform."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, NamedTuple

BRAND_NAME = "Classbook"
API_TITLE = f"{BRAND_NAME} API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Class scheduling, credit-based booking and studio administration."

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000

# Text constraints
MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
MAX_NOTES_LENGTH = 1000


class CreditPackage(NamedTuple):
    id: str
    name: str
    credits: int
    price: Decimal
    description: str


CREDIT_PACKAGES: Dict[str, CreditPackage] = {
    "starter": CreditPackage(
        id="starter",
        name="Starter Pack",
        credits=5,
        price=Decimal("50.00"),
        description="Perfect for trying out new classes",
    ),
    "regular": CreditPackage(
        id="regular",
        name="Regular Pack",
        credits=10,
        price=Decimal("90.00"),
        description="Best value for regular attendees",
    ),
    "premium": CreditPackage(
        id="premium",
        name="Premium Pack",
        credits=20,
        price=Decimal("150.00"),
        description="For the dedicated wellness enthusiast",
    ),
}
