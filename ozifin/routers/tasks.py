"""
Kanban task board router.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from ozifin.database import get_db
from ozifin import models
from ozifin.crud.tasks import crud_task
from ozifin.dependencies import is_privileged
from ozifin.schemas.tasks import (
    CommentCreate,
    CommentResponse,
    HistoryResponse,
    TaskCreate,
    TaskMove,
    TaskResponse,
    TaskUpdate,
)
from ozifin.security import get_current_user, audit_log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_or_404(db: Session, task_id: int) -> models.Task:
    task = crud_task.get(db, task_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    return task


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    assignee: Optional[str] = Query(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crud_task.list_tasks(db, assignee=assignee)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_task_or_404(db, task_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not task_in.title.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Task title is required"
        )

    try:
        task = crud_task.create_task(db, obj_in=task_in, actor=current_user)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create task"
        )
    return task


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_in: TaskUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    task = get_task_or_404(db, task_id)
    if task_in.title is not None and not task_in.title.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Task title is required"
        )

    try:
        return crud_task.update_task(db, task=task, obj_in=task_in, actor=current_user)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update task"
        )


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """The creator, an admin or a manager may delete a task; comments and history go with it."""
    task = get_task_or_404(db, task_id)
    if task.created_by != current_user.username and not is_privileged(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator, an admin or a manager can delete this task"
        )

    old_values = {"title": task.title, "status": task.status, "created_by": task.created_by}
    if crud_task.remove(db, id=task_id) is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete task"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="TASK_DELETE",
        table_name="tasks",
        record_id=task_id,
        old_values=old_values
    )
    return {"id": task_id, "deleted": True}


@router.post("/{task_id}/move", response_model=TaskResponse)
async def move_task(
    task_id: int,
    move: TaskMove,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Drop a task into a column at a position.
    On failure nothing is written and the client reverts its optimistic card.
    """
    task = get_task_or_404(db, task_id)
    try:
        task, changed = crud_task.move_task(
            db, task=task, status=move.status, index=move.index, actor=current_user
        )
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to move task"
        )
    if not changed:
        logger.debug(f"Task {task_id} dropped at its current position")
    return task


# -----------------------------
# Comments and history
# -----------------------------
@router.get("/{task_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    task_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_task_or_404(db, task_id)
    return crud_task.get_comments(db, task_id)


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    comment_in: CommentCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    task = get_task_or_404(db, task_id)
    if not comment_in.content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Comment cannot be empty"
        )

    try:
        return crud_task.add_comment(db, task=task, content=comment_in.content, actor=current_user)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to post comment"
        )


@router.get("/{task_id}/history", response_model=List[HistoryResponse])
async def list_history(
    task_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_task_or_404(db, task_id)
    return crud_task.get_history(db, task_id)
