"""
Base repository pattern implementation.

Repositories are the only place that touches SQLAlchemy sessions directly.
Relation mutations go through `insert_guarded` and `update_where` so that
concurrent requests are arbitrated by the database (unique indexes and
predicate-guarded UPDATEs) rather than by read-modify-write in Python.
"""

import logging
from abc import ABC
from typing import TypeVar, Generic, List, Optional, Dict, Any, Type
from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)

# Type variable for generic entity type
T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository operations."""
    pass


class NotFoundError(RepositoryError):
    """Exception raised when entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateError(RepositoryError):
    """Exception raised when a write collides with a unique index."""

    def __init__(self, entity_type: str, criteria: Dict[str, Any]):
        super().__init__(f"{entity_type} already exists with criteria: {criteria}")
        self.entity_type = entity_type
        self.criteria = criteria


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize repository with database session and model class.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: Any) -> T:
        """
        Get entity by ID.

        Raises:
            NotFoundError: If entity not found
        """
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise NotFoundError(self.model.__name__, entity_id)
        return entity

    def get_by_id_optional(self, entity_id: Any) -> Optional[T]:
        if entity_id is None:
            return None
        return self.db.get(self.model, entity_id)

    def find_by(self, **criteria) -> List[T]:
        """
        Find entities by equality criteria. `None` values are ignored so
        optional filters can be passed straight through.
        """
        return self._filtered(**criteria).all()

    def find_one_by(self, **criteria) -> Optional[T]:
        return self._filtered(**criteria).first()

    def count(self, **criteria) -> int:
        return self._filtered(**criteria).count()

    def create(self, entity: T, commit: bool = True) -> T:
        """
        Create a new entity.

        Raises:
            DuplicateError: If entity violates unique constraints
            RepositoryError: If database operation fails
        """
        self.insert_guarded(entity)
        if commit:
            self.commit()
            self.db.refresh(entity)
        return entity

    def insert_guarded(self, entity: T) -> T:
        """
        Add and flush an entity; a unique-index collision rolls the
        transaction back and surfaces as DuplicateError.
        """
        try:
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError:
            criteria = self._extract_entity_dict(entity)
            self.db.rollback()
            raise DuplicateError(self.model.__name__, criteria)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to create {self.model.__name__}: {str(e)}")

    def update_where(self, values: Dict[str, Any], *predicates) -> int:
        """
        Run a single UPDATE guarded by `predicates` and return the number of
        rows it changed. Zero means another writer got there first or the
        row is not in the expected state.
        """
        stmt = (
            update(self.model)
            .where(*predicates)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except IntegrityError:
            self.db.rollback()
            raise DuplicateError(self.model.__name__, values)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to update {self.model.__name__}: {str(e)}")
        return result.rowcount

    def delete(self, entity_id: Any, commit: bool = True) -> bool:
        entity = self.get_by_id(entity_id)

        try:
            self.db.delete(entity)
            if commit:
                self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to delete {self.model.__name__}: {str(e)}")

    def exists(self, entity_id: Any) -> bool:
        return self.get_by_id_optional(entity_id) is not None

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def commit(self) -> None:
        """Commit the current transaction, converting index collisions."""
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateError(self.model.__name__, {})

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.db.rollback()

    def _filtered(self, **criteria):
        query = self.db.query(self.model)

        for key, value in criteria.items():
            if value is None:
                continue
            if hasattr(self.model, key):
                query = query.filter(getattr(self.model, key) == value)

        return query

    def _extract_entity_dict(self, entity: T) -> Dict[str, Any]:
        return {
            column.key: getattr(entity, column.key, None)
            for column in self.model.__table__.columns
        }
