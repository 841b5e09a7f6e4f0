"""Base repository with common database operations."""
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import desc

from src.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common database operations."""

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def create(self, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Create new record.

        Args:
            obj_in: Dictionary with object data
            commit: Commit now, or only flush and leave it to the caller

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        self._finish(db_obj, commit)
        return db_obj

    def get_by_fields(self, **filters: Any) -> Optional[ModelType]:
        """Most recent record whose columns equal the given values."""
        query = self._filtered(filters)
        if hasattr(self.model, "created_at"):
            query = query.order_by(desc(self.model.created_at))
        return query.first()

    def get_multi_by_fields(self, limit: int = 100, **filters: Any) -> List[ModelType]:
        """
        Records matching column equality filters, newest first.

        Args:
            limit: Maximum number of records to return
            **filters: column=value pairs

        Returns:
            List of records
        """
        query = self._filtered(filters)
        if hasattr(self.model, "created_at"):
            query = query.order_by(desc(self.model.created_at))
        return query.limit(limit).all()

    def update(self, db_obj: ModelType, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Update record.

        Args:
            db_obj: Loaded model instance
            obj_in: Dictionary with fields to update
            commit: Commit now, or only flush and leave it to the caller

        Returns:
            Updated model instance
        """
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self._finish(db_obj, commit)
        return db_obj

    def commit(self) -> None:
        """Commit current transaction."""
        self.db.commit()

    def rollback(self) -> None:
        """Rollback current transaction."""
        self.db.rollback()

    def _finish(self, db_obj: ModelType, commit: bool) -> None:
        if commit:
            self.db.commit()
            self.db.refresh(db_obj)
        else:
            self.db.flush()

    def _filtered(self, filters: Dict[str, Any]):
        query = self.db.query(self.model)
        for column, value in filters.items():
            if hasattr(self.model, column):
                query = query.filter(getattr(self.model, column) == value)
        return query
