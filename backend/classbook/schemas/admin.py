# backend/classbook/schemas/admin.py
"""
Administrative mutation schemas.

One ``AdminMutation`` tagged union covers every admin write: the ``entity``
field selects the variant and ``action`` selects create, update or delete.
Payload classes only check types; value rules (cost, duration bounds,
capacity, time order) are enforced by ``AdminMutationService`` so they
surface with the stable ``VALIDATION_ERROR`` code.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, model_validator

from ..core.enums import AdminAction
from ._strict_base import StrictModel, StrictRequestModel


class ClassTypeData(StrictRequestModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    credit_cost: Optional[int] = None
    duration_minutes: Optional[int] = None
    max_capacity: Optional[int] = None
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class InstructorData(StrictRequestModel):
    name: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = Field(None, max_length=2000)
    specialties: Optional[List[str]] = None
    image_url: Optional[str] = Field(None, max_length=500)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class ClassScheduleData(StrictRequestModel):
    """Schedule fields an admin may write. ``enrolled_count`` is not one of them."""

    class_type_id: Optional[str] = None
    instructor_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    capacity: Optional[int] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=1000)


class MaterialData(StrictRequestModel):
    class_schedule_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=200)
    url: Optional[str] = Field(None, max_length=1000)


class _MutationBase(StrictRequestModel):
    action: AdminAction
    id: Optional[str] = None
    force: bool = Field(
        False, description="Delete even with bookings, refunding confirmed ones first"
    )

    @model_validator(mode="after")
    def _check_shape(self) -> "_MutationBase":
        data = getattr(self, "data", None)
        if self.action == AdminAction.CREATE and data is None:
            raise ValueError("create requires data")
        if self.action in (AdminAction.UPDATE, AdminAction.DELETE) and not self.id:
            raise ValueError(f"{self.action.value} requires id")
        if self.action == AdminAction.UPDATE and data is None:
            raise ValueError("update requires data")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly sent in ``data``."""
        data = getattr(self, "data", None)
        return data.model_dump(exclude_unset=True) if data is not None else {}


class ClassTypeMutation(_MutationBase):
    entity: Literal["class_type"] = "class_type"
    data: Optional[ClassTypeData] = None


class InstructorMutation(_MutationBase):
    entity: Literal["instructor"] = "instructor"
    data: Optional[InstructorData] = None


class ClassScheduleMutation(_MutationBase):
    entity: Literal["class_schedule"] = "class_schedule"
    data: Optional[ClassScheduleData] = None


class MaterialMutation(_MutationBase):
    """Materials are added and removed, never edited."""

    entity: Literal["material"] = "material"
    data: Optional[MaterialData] = None


AdminMutation = Annotated[
    Union[ClassTypeMutation, InstructorMutation, ClassScheduleMutation, MaterialMutation],
    Field(discriminator="entity"),
]


class AdminMutationResult(StrictModel):
    entity: str
    action: AdminAction
    id: str
    record: Optional[Dict[str, Any]] = None
    refunded_bookings: int = 0
    deleted_bookings: int = 0
    deleted_schedules: int = 0
    deleted_materials: int = 0
