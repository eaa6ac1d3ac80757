"""
Authentication router.
Login issues a JWT bearer token; every other endpoint resolves the user from it.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import Any, Dict
import logging

from ozifin.database import get_db
from ozifin import models
from ozifin.crud.users import crud_user
from ozifin.schemas.users import PasswordChange, TokenResponse, UserResponse
from ozifin.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    get_current_user,
    audit_log_action
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    OAuth2 compatible token login.
    """
    user = crud_user.get_by_username(db, form_data.username)

    if not user or not verify_password(form_data.password, user.password_hash):
        audit_log_action(
            db=db,
            user_id=user.id if user else None,
            action="LOGIN_FAILED",
            notes=f"Failed login attempt for username: {form_data.username}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        audit_log_action(
            db=db,
            user_id=user.id,
            action="LOGIN_DENIED_INACTIVE",
            notes=f"Inactive user attempted login: {user.username}"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )

    access_token = create_access_token(data={"sub": user.username, "role": user.role})

    audit_log_action(
        db=db,
        user_id=user.id,
        action="LOGIN_SUCCESS",
        notes=f"User {user.username} logged in successfully"
    )

    return TokenResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: models.User = Depends(get_current_user)):
    return current_user


@router.post("/change-password")
async def change_password(
    payload: PasswordChange,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    if not verify_password(payload.current_password, current_user.password_hash):
        audit_log_action(
            db=db,
            user_id=current_user.id,
            action="PASSWORD_CHANGE_FAILED",
            notes="Current password incorrect"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    current_user.password_hash = get_password_hash(payload.new_password)
    db.commit()

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="PASSWORD_CHANGE_SUCCESS",
        table_name="users",
        record_id=current_user.id,
        notes="User changed password"
    )

    return {"message": "Password updated successfully"}


@router.post("/logout")
async def logout(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Logout user (audit only, JWT tokens are stateless).
    The client discards its token.
    """
    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="LOGOUT",
        notes=f"User {current_user.username} logged out"
    )

    return {"message": "Successfully logged out"}
