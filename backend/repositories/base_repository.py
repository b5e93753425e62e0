"""
Base repository providing common CRUD operations.
"""

from typing import Generic, TypeVar, List, Optional, Type, Any
from sqlalchemy.orm import Session, Query

from .specifications import Specification

T = TypeVar('T')


class BaseRepository(Generic[T]):
    """
    Generic base repository providing common CRUD operations.
    All specific repositories should inherit from this class.

    Writes are flushed, never committed: the calling service owns the
    transaction and commits once per operation.
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize the repository.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def query(self) -> Query:
        return self.db.query(self.model)

    def create(self, obj: T) -> T:
        """
        Add a new record and flush it so generated ids are available.

        Args:
            obj: Model instance to create

        Returns:
            Created model instance
        """
        self.db.add(obj)
        self.db.flush()
        return obj

    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve a record by its ID, or None if not found"""
        return self.db.get(self.model, id)

    def update(self, obj: T, **changes: Any) -> T:
        """
        Apply attribute changes to a record and flush.

        None values are skipped so partial updates leave fields untouched.
        """
        for key, value in changes.items():
            if value is not None and hasattr(self.model, key):
                setattr(obj, key, value)
        self.db.flush()
        return obj

    def delete(self, obj: T) -> None:
        self.db.delete(obj)
        self.db.flush()

    def count(self, spec: Optional[Specification[T]] = None) -> int:
        """Count records, optionally only those matching a specification"""
        query = self.query()
        if spec is not None:
            query = query.filter(spec.to_sql_filter())
        return query.count()

    def exists(self, id: str) -> bool:
        return self.query().filter(self.model.id == id).count() > 0

    def find(self, spec: Specification[T], order_by=None,
             limit: Optional[int] = None, offset: int = 0) -> List[T]:
        """
        Retrieve records matching a specification.

        Args:
            spec: Filter to apply
            order_by: Column expression (or list of them) to sort by
            limit: Maximum number of records to return
            offset: Number of records to skip

        Returns:
            List of matching model instances
        """
        query = self.query().filter(spec.to_sql_filter())
        if order_by is not None:
            if isinstance(order_by, (list, tuple)):
                query = query.order_by(*order_by)
            else:
                query = query.order_by(order_by)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()
