"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from .booking import Booking
from .class_schedule import ClassSchedule
from .class_type import ClassType
from .credit_transaction import CreditPurchase, CreditTransaction
from .instructor import Instructor
from .material import Material
from .profile import Profile

__all__ = [
    "Booking",
    "ClassSchedule",
    "ClassType",
    "CreditPurchase",
    "CreditTransaction",
    "Instructor",
    "Material",
    "Profile",
]
