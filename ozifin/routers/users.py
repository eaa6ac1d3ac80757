"""
User administration and the current user's profile.
"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import Any, Dict, Optional
import logging

from ozifin.database import get_db
from ozifin import models
from ozifin.crud.transactions import crud_transaction
from ozifin.crud.users import crud_user, ROOT_USERNAME
from ozifin.dependencies import ROLE_ADMIN, require_privileged
from ozifin.schemas.users import ProfileUpdate, UserCreate, UserListResponse, UserResponse
from ozifin.security import get_current_user, audit_log_action
from ozifin.utils.imgbb import ImgBBClient, ImageUploadError, get_image_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


# -----------------------------
# Administration
# -----------------------------
@router.get("", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = Query(None),
    current_user: models.User = Depends(require_privileged),
    db: Session = Depends(get_db)
):
    users = crud_user.search(db, search)
    return {"users": users, "count": len(users)}


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    current_user: models.User = Depends(require_privileged),
    db: Session = Depends(get_db)
):
    """
    Create an account. Only an admin may create another admin.
    """
    if user_in.role == ROLE_ADMIN and current_user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )

    if crud_user.get_by_username(db, user_in.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already registered"
        )

    try:
        db_user = crud_user.create_user(db, obj_in=user_in)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already registered"
        )
    if db_user is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="USER_CREATE",
        table_name="users",
        record_id=db_user.id,
        new_values={
            "username": db_user.username,
            "role": db_user.role,
            "display_name": db_user.display_name
        },
        notes=f"{current_user.username} created user {db_user.username}"
    )

    return db_user


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: models.User = Depends(require_privileged),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Delete an account. Transactions and tasks keep the username they were created with.
    """
    user = crud_user.get(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.username == ROOT_USERNAME:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The root admin account cannot be deleted"
        )
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete yourself"
        )
    if user.role == ROLE_ADMIN and current_user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )

    old_values = {"username": user.username, "role": user.role, "display_name": user.display_name}
    if not crud_user.remove(db, id=user_id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete user"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="USER_DELETE",
        table_name="users",
        record_id=user_id,
        old_values=old_values,
        notes=f"{current_user.username} deleted user {old_values['username']}"
    )

    return {"id": user_id, "deleted": True}


# -----------------------------
# Profile
# -----------------------------
@router.put("/me", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update display name and avatar.
    A new display name is written to the sale column of every transaction the user created.
    """
    old_values = {"display_name": current_user.display_name, "avatar_url": current_user.avatar_url}
    renamed = profile.display_name is not None and profile.display_name != current_user.display_name

    try:
        if profile.display_name is not None:
            current_user.display_name = profile.display_name
        if profile.avatar_url is not None:
            current_user.avatar_url = profile.avatar_url
        count = 0
        if renamed:
            count = crud_transaction.rename_sale(
                db, username=current_user.username, display_name=profile.display_name
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Profile update failed for {current_user.username}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )
    db.refresh(current_user)
    if renamed:
        logger.info(f"Renamed sale on {count} transaction(s) for {current_user.username}")

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="PROFILE_UPDATE",
        table_name="users",
        record_id=current_user.id,
        old_values=old_values,
        new_values={"display_name": current_user.display_name, "avatar_url": current_user.avatar_url}
    )

    return current_user


@router.post("/me/avatar", response_model=UserResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    image_client: ImgBBClient = Depends(get_image_client)
):
    content = await file.read()
    try:
        url = await run_in_threadpool(image_client.upload_bytes, content)
    except ImageUploadError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )

    current_user.avatar_url = url
    db.commit()
    db.refresh(current_user)
    return current_user
