from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ozifin.database import get_db
from ozifin import models
from ozifin.crud.notifications import crud_notification
from ozifin.schemas.notifications import NotificationReadResponse, NotificationResponse, ReadAllResponse
from ozifin.security import get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    since_id: Optional[int] = Query(None, description="Only notifications newer than this id"),
    unread_only: bool = Query(True),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    The bell polls this endpoint; passing the newest id it has seen returns only what arrived since.
    """
    return crud_notification.list_for_user(
        db, current_user.username, since_id=since_id, unread_only=unread_only
    )


@router.post("/read-all", response_model=ReadAllResponse)
async def mark_all_read(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"updated": crud_notification.mark_all_read(db, current_user.username)}


@router.post("/{notification_id}/read", response_model=NotificationReadResponse)
async def mark_read(
    notification_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = crud_notification.mark_read(db, notification_id, current_user.username)
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    return notification
