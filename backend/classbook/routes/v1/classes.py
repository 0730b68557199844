# backend/classbook/routes/v1/classes.py
"""
Catalog routes - API v1

Endpoints:
    GET /classes - Upcoming active schedules, soonest first
    GET /classes/{schedule_id} - One schedule with class type and instructor
    GET /classes/{schedule_id}/materials - Class materials (booked attendees and admins)
    GET /class-types - Class types
    GET /instructors - Instructors
"""

import asyncio
from datetime import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from ...api.dependencies import get_catalog_service, get_current_profile
from ...core.exceptions import DomainException
from ...models.profile import Profile
from ...schemas.catalog import (
    ClassScheduleResponse,
    ClassTypeResponse,
    InstructorResponse,
    MaterialResponse,
)
from ...services.catalog_service import CatalogService
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog-v1"])


@router.get("/classes", response_model=List[ClassScheduleResponse])
async def list_upcoming_classes(
    from_time: Optional[datetime] = Query(None),
    class_type_id: Optional[str] = Query(None),
    instructor_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[ClassScheduleResponse]:
    try:
        schedules = await asyncio.to_thread(
            catalog_service.list_upcoming_classes,
            from_time=from_time,
            class_type_id=class_type_id,
            instructor_id=instructor_id,
            limit=limit,
        )
        return [ClassScheduleResponse.model_validate(schedule) for schedule in schedules]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/classes/{schedule_id}", response_model=ClassScheduleResponse)
async def get_class(
    schedule_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ClassScheduleResponse:
    try:
        schedule = await asyncio.to_thread(catalog_service.get_schedule_details, schedule_id)
        return ClassScheduleResponse.model_validate(schedule)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/classes/{schedule_id}/materials", response_model=List[MaterialResponse])
async def list_class_materials(
    schedule_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_profile: Profile = Depends(get_current_profile),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[MaterialResponse]:
    try:
        materials = await asyncio.to_thread(
            catalog_service.list_materials, schedule_id, current_profile
        )
        return [MaterialResponse.model_validate(material) for material in materials]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/class-types", response_model=List[ClassTypeResponse])
async def list_class_types(
    active_only: bool = Query(True),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[ClassTypeResponse]:
    class_types = await asyncio.to_thread(catalog_service.list_class_types, active_only)
    return [ClassTypeResponse.model_validate(class_type) for class_type in class_types]


@router.get("/instructors", response_model=List[InstructorResponse])
async def list_instructors(
    active_only: bool = Query(True),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[InstructorResponse]:
    instructors = await asyncio.to_thread(catalog_service.list_instructors, active_only)
    return [InstructorResponse.model_validate(instructor) for instructor in instructors]
