"""Instructor repository."""

from typing import List

from sqlalchemy.orm import Session

from ..models.instructor import Instructor
from .base_repository import BaseRepository


class InstructorRepository(BaseRepository[Instructor]):
    def __init__(self, db: Session):
        super().__init__(db, Instructor)

    def list_instructors(self, active_only: bool = True) -> List[Instructor]:
        query = self._build_query()
        if active_only:
            query = query.filter(Instructor.is_active.is_(True))
        return self._execute_query(query.order_by(Instructor.name.asc()))
