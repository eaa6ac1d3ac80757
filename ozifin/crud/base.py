"""
Base CRUD operations with SQLAlchemy 2.x patterns.
Use select()/update()/delete() statements; integrity errors propagate to the router.
"""
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session
import logging
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any, Callable

from ozifin.database import Base

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)
ResultType = TypeVar("ResultType")


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        """Get record by primary key"""
        try:
            stmt = select(self.model).where(self.model.id == id)
            return db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__} {id}: {e}")
            return None

    def get_multi(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[ModelType]:
        try:
            stmt = select(self.model).order_by(self.model.id).offset(skip).limit(limit)
            return list(db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting multiple {self.model.__name__}: {e}")
            return []

    def create(self, db: Session, *, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        try:
            db_obj = self.model(**obj_in)
            db.add(db_obj)
            db.commit()
            db.refresh(db_obj)
            return db_obj
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Integrity error creating {self.model.__name__}: {e}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating {self.model.__name__}: {e}")
            return None

    def remove(self, db: Session, *, id: Any) -> Optional[ModelType]:
        """Delete record, returning the deleted row for the audit trail"""
        try:
            obj = db.execute(select(self.model).where(self.model.id == id)).scalar_one_or_none()
            if not obj:
                return None
            db.delete(obj)
            db.commit()
            return obj
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting {self.model.__name__} {id}: {e}")
            return None

    def retry_on_integrity_error(
        self, db: Session, operation: Callable[[], ResultType], max_retries: int = 2
    ) -> ResultType:
        """
        Run ``operation`` again after a unique-key collision.
        The last IntegrityError is re-raised once retries are exhausted.
        """
        for attempt in range(max_retries + 1):
            try:
                return operation()
            except IntegrityError as e:
                db.rollback()
                if attempt == max_retries:
                    logger.error(f"Operation failed after {max_retries + 1} attempts: {e}")
                    raise
                logger.warning(f"IntegrityError on attempt {attempt + 1}, retrying...")
