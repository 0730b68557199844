"""Material repository."""

from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.material import Material
from .base_repository import BaseRepository


class MaterialRepository(BaseRepository[Material]):
    def __init__(self, db: Session):
        super().__init__(db, Material)

    def list_for_schedule(self, schedule_id: str) -> List[Material]:
        query = self._build_query().filter(Material.class_schedule_id == schedule_id)
        return self._execute_query(query.order_by(Material.created_at.asc(), Material.id.asc()))

    def delete_for_schedules(self, schedule_ids: List[str]) -> int:
        if not schedule_ids:
            return 0
        try:
            return (
                self.db.query(Material)
                .filter(Material.class_schedule_id.in_(schedule_ids))
                .delete(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting materials: {str(e)}")
            raise RepositoryException(f"Failed to delete materials: {str(e)}") from e
