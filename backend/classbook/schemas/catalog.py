"""Catalog read models: class types, instructors and schedules."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ._strict_base import OrmResponseModel


class ClassTypeResponse(OrmResponseModel):
    id: str
    name: str
    description: Optional[str] = None
    credit_cost: int
    duration_minutes: int
    max_capacity: int
    image_url: Optional[str] = None
    is_active: bool


class InstructorResponse(OrmResponseModel):
    id: str
    name: str
    bio: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool


class ClassScheduleResponse(OrmResponseModel):
    """A schedule with its class type and instructor already joined."""

    id: str
    class_type_id: str
    instructor_id: str
    start_time: datetime
    end_time: datetime
    capacity: int
    enrolled_count: int
    spots_left: int
    is_active: bool
    notes: Optional[str] = None
    class_type: Optional[ClassTypeResponse] = None
    instructor: Optional[InstructorResponse] = None


class MaterialResponse(OrmResponseModel):
    id: str
    class_schedule_id: str
    title: str
    url: str
    created_at: datetime
