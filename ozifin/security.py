"""
Authentication and security module:
- JWT auth via python-jose[cryptography]
- Password hashing via passlib[bcrypt]
- The logged-in session is the bearer token; handlers receive the user explicitly
- Audit trail for critical actions
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging

from ozifin.config import settings
from ozifin.database import get_db
from ozifin import models

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)

security = HTTPBearer()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised hash format (e.g. a legacy plaintext row)
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": datetime.utcnow()})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> models.User:
    """
    Resolve the signed-in user from the bearer token.
    Handlers receive the user explicitly; nothing is kept in server-side session state.
    """
    payload = decode_access_token(credentials.credentials)
    username = payload.get("sub") if payload else None
    if not username:
        logger.warning("Rejected bearer token without a valid subject")
        raise _unauthorized("Invalid authentication credentials")

    user = db.execute(select(models.User).where(models.User.username == username)).scalar_one_or_none()
    if user is None or not user.is_active:
        logger.warning(f"Token for missing or inactive user: {username}")
        raise _unauthorized("User not found or inactive")

    return user


def audit_log_action(
    db: Session,
    user_id: Optional[int],
    action: str,
    table_name: Optional[str] = None,
    record_id: Optional[Any] = None,
    old_values: Optional[Dict] = None,
    new_values: Optional[Dict] = None,
    notes: Optional[str] = None
):
    """
    Create audit log entry.
    Audit failure never breaks the main operation.
    """
    if not settings.AUDIT_LOG_ALL:
        return
    try:
        audit_entry = models.AuditLog(
            user_id=user_id,
            action=action,
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            old_values=old_values,
            new_values=new_values,
            notes=notes
        )
        db.add(audit_entry)
        db.commit()
        logger.info(f"Audit log created: {action} by user {user_id}")
    except Exception as e:
        logger.error(f"Failed to create audit log: {e}")
        db.rollback()
