"""Class type repository."""

from typing import List

from sqlalchemy.orm import Session

from ..models.class_type import ClassType
from .base_repository import BaseRepository


class ClassTypeRepository(BaseRepository[ClassType]):
    def __init__(self, db: Session):
        super().__init__(db, ClassType)

    def list_class_types(self, active_only: bool = True) -> List[ClassType]:
        query = self._build_query()
        if active_only:
            query = query.filter(ClassType.is_active.is_(True))
        return self._execute_query(query.order_by(ClassType.name.asc()))
