from sqlalchemy import select, or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging
from typing import List, Optional

from ozifin.crud.base import CRUDBase
from ozifin.models import User
from ozifin.schemas.users import UserCreate
from ozifin.security import get_password_hash

logger = logging.getLogger(__name__)

ROOT_USERNAME = "admin"


class CRUDUser(CRUDBase[User]):
    def __init__(self):
        super().__init__(User)

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        try:
            stmt = select(User).where(User.username == username)
            return db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting user {username}: {e}")
            return None

    def search(self, db: Session, term: Optional[str] = None) -> List[User]:
        """Newest first, optionally matching display name or username"""
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        if term:
            pattern = f"%{term.lower()}%"
            stmt = stmt.where(or_(
                func.lower(User.display_name).like(pattern),
                func.lower(User.username).like(pattern),
            ))
        return list(db.execute(stmt).scalars().all())

    def create_user(self, db: Session, *, obj_in: UserCreate) -> Optional[User]:
        return self.create(db, obj_in={
            "username": obj_in.username,
            "password_hash": get_password_hash(obj_in.password),
            "display_name": obj_in.display_name,
            "role": obj_in.role,
            "is_active": True,
        })


crud_user = CRUDUser()
