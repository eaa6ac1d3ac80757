"""
Task board CRUD operations.
Each board event (create, update, comment, move) writes the task change, its history row
and its notifications in one database transaction.
"""
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging
from datetime import datetime, time
from typing import List, Optional, Tuple

from ozifin.crud.base import CRUDBase
from ozifin.crud import notifications
from ozifin.models import Task, TaskComment, TaskHistory, User
from ozifin.schemas.tasks import TaskCreate, TaskUpdate, TaskStatus

logger = logging.getLogger(__name__)


def _due(value) -> Optional[datetime]:
    return datetime.combine(value, time.min) if value else None


class CRUDTask(CRUDBase[Task]):
    def __init__(self):
        super().__init__(Task)

    def list_tasks(self, db: Session, *, assignee: Optional[str] = None) -> List[Task]:
        stmt = select(Task).order_by(Task.index, Task.id)
        tasks = list(db.execute(stmt).scalars().all())
        if assignee:
            tasks = [t for t in tasks if assignee in (t.assignees or [])]
        return tasks

    def column(self, db: Session, status: str) -> List[Task]:
        stmt = select(Task).where(Task.status == status).order_by(Task.index, Task.id)
        return list(db.execute(stmt).scalars().all())

    def next_index(self, db: Session, status: str) -> int:
        stmt = select(func.max(Task.index)).where(Task.status == status)
        current = db.execute(stmt).scalar_one_or_none()
        return 0 if current is None else current + 1

    def _log(self, db: Session, task: Task, actor: User, action: str, details: str):
        db.add(TaskHistory(task_id=task.id, user_id=actor.username, action=action, details=details))

    def create_task(self, db: Session, *, obj_in: TaskCreate, actor: User) -> Task:
        try:
            task = Task(
                title=obj_in.title.strip(),
                description=obj_in.description,
                status=obj_in.status.value,
                priority=obj_in.priority.value,
                assignees=list(obj_in.assignees),
                tags=list(obj_in.tags),
                due_date=_due(obj_in.due_date),
                created_by=actor.username,
                index=self.next_index(db, obj_in.status.value),
            )
            db.add(task)
            db.flush()
            self._log(db, task, actor, "created", "Created task")
            notifications.notify_assigned(db, task, task.assignees, actor.username, actor.display_name)
            db.commit()
            db.refresh(task)
            return task
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating task: {e}")
            raise

    def update_task(self, db: Session, *, task: Task, obj_in: TaskUpdate, actor: User) -> Task:
        changes = obj_in.model_dump(exclude_unset=True)
        previous_assignees = list(task.assignees or [])
        try:
            if changes.get("title") is not None:
                task.title = changes["title"].strip()
            if changes.get("description") is not None:
                task.description = changes["description"]
            if changes.get("priority") is not None:
                task.priority = changes["priority"].value
            if changes.get("tags") is not None:
                task.tags = list(changes["tags"])
            if "due_date" in changes:
                task.due_date = _due(changes["due_date"])
            if changes.get("status") is not None and changes["status"].value != task.status:
                task.index = self.next_index(db, changes["status"].value)
                task.status = changes["status"].value
            if changes.get("assignees") is not None:
                task.assignees = list(changes["assignees"])

            self._log(db, task, actor, "updated", "Updated task content")
            added = [u for u in (task.assignees or []) if u not in previous_assignees]
            notifications.notify_assigned(db, task, added, actor.username, actor.display_name)
            db.commit()
            db.refresh(task)
            return task
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating task {task.id}: {e}")
            raise

    def add_comment(self, db: Session, *, task: Task, content: str, actor: User) -> TaskComment:
        try:
            comment = TaskComment(task_id=task.id, user_id=actor.username, content=content)
            db.add(comment)
            notifications.notify_commented(db, task, actor.username, actor.display_name)
            db.commit()
            db.refresh(comment)
            return comment
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error adding comment to task {task.id}: {e}")
            raise

    def get_comments(self, db: Session, task_id: int) -> List[TaskComment]:
        stmt = select(TaskComment).where(TaskComment.task_id == task_id).order_by(TaskComment.id)
        return list(db.execute(stmt).scalars().all())

    def get_history(self, db: Session, task_id: int) -> List[TaskHistory]:
        stmt = select(TaskHistory).where(TaskHistory.task_id == task_id).order_by(TaskHistory.id.desc())
        return list(db.execute(stmt).scalars().all())

    def move_task(
        self, db: Session, *, task: Task, status: TaskStatus, index: Optional[int], actor: User
    ) -> Tuple[Task, bool]:
        """
        Move a task to ``status`` at position ``index`` of that column (end when None).
        Status, column order, history and the completion notification commit together or not at all.
        Returns the task and whether anything changed.
        """
        source = TaskStatus(task.status)
        destination_column = [t for t in self.column(db, status.value) if t.id != task.id]
        position = len(destination_column) if index is None else min(index, len(destination_column))

        if source == status:
            current = [t.id for t in self.column(db, status.value)].index(task.id)
            if current == position:
                return task, False

        try:
            if source != status:
                remaining = [t for t in self.column(db, source.value) if t.id != task.id]
                for i, t in enumerate(remaining):
                    t.index = i
            destination_column.insert(position, task)
            for i, t in enumerate(destination_column):
                t.index = i
            if source != status:
                task.status = status.value
                self._log(db, task, actor, "moved", f"Moved from {source.label} to {status.label}")
                if status == TaskStatus.DONE and task.created_by != actor.username:
                    notifications.notify_completed(db, task, actor.username, actor.display_name)
            db.commit()
            db.refresh(task)
            return task, True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error moving task {task.id} to {status.value}: {e}")
            raise


crud_task = CRUDTask()
