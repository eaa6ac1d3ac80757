from fastapi import Depends, HTTPException, status
import logging

from ozifin import models
from ozifin.security import get_current_user

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_SALE = "sale"
PRIVILEGED_ROLES = (ROLE_ADMIN, ROLE_MANAGER)


def is_privileged(user: models.User) -> bool:
    """Admins and managers see and edit every record."""
    return user.role in PRIVILEGED_ROLES


def require_privileged(current_user: models.User = Depends(get_current_user)) -> models.User:
    if not is_privileged(current_user):
        logger.warning(f"Non-privileged user attempted manager action: {current_user.username}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or manager privileges required"
        )
    return current_user


def require_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    if current_user.role != ROLE_ADMIN:
        logger.warning(f"Non-admin user attempted admin action: {current_user.username}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return current_user
