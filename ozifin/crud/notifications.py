"""
Notification relay.
Rows are added to the caller's session and committed with the event that caused them.
"""
from sqlalchemy import select, update
from sqlalchemy.orm import Session
import logging
from typing import Iterable, List, Optional

from ozifin.models import Notification, Task

logger = logging.getLogger(__name__)


def task_link(task_id: int) -> str:
    return f"/dashboard/tasks?taskId={task_id}"


def notify(
    db: Session,
    recipients: Iterable[str],
    *,
    actor: str,
    title: str,
    message: str,
    link: Optional[str] = None
) -> List[Notification]:
    """Queue one notification per recipient, never to the actor, never twice to the same user."""
    created = []
    seen = {actor}
    for username in recipients:
        if not username or username in seen:
            continue
        seen.add(username)
        notification = Notification(user_id=username, title=title, message=message, link=link, is_read=False)
        db.add(notification)
        created.append(notification)
    if created:
        logger.info(f"Queued {len(created)} notification(s) '{title}' from {actor}")
    return created


def notify_assigned(db: Session, task: Task, recipients: Iterable[str], actor_username: str, actor_name: str):
    return notify(
        db, recipients,
        actor=actor_username,
        title="New task assigned",
        message=f'{actor_name} assigned "{task.title}" to you',
        link=task_link(task.id),
    )


def notify_commented(db: Session, task: Task, actor_username: str, actor_name: str):
    return notify(
        db, task.assignees or [],
        actor=actor_username,
        title="New comment",
        message=f'{actor_name} commented on "{task.title}"',
        link=task_link(task.id),
    )


def notify_completed(db: Session, task: Task, actor_username: str, actor_name: str):
    return notify(
        db, [task.created_by],
        actor=actor_username,
        title="Task completed",
        message=f'{actor_name} completed "{task.title}"',
        link=task_link(task.id),
    )


class CRUDNotification:
    def list_for_user(
        self, db: Session, username: str, *, since_id: Optional[int] = None, unread_only: bool = True,
        limit: int = 50
    ) -> List[Notification]:
        """Newest first; ``since_id`` returns only rows created after the last one the client saw."""
        stmt = select(Notification).where(Notification.user_id == username)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        if since_id is not None:
            stmt = stmt.where(Notification.id > since_id)
        stmt = stmt.order_by(Notification.id.desc()).limit(limit)
        return list(db.execute(stmt).scalars().all())

    def mark_read(self, db: Session, id: int, username: str) -> Optional[Notification]:
        stmt = select(Notification).where(Notification.id == id, Notification.user_id == username)
        notification = db.execute(stmt).scalar_one_or_none()
        if notification is None:
            return None
        notification.is_read = True
        db.commit()
        return notification

    def mark_all_read(self, db: Session, username: str) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == username, Notification.is_read == False)  # noqa: E712
            .values(is_read=True)
        )
        result = db.execute(stmt)
        db.commit()
        return result.rowcount or 0


crud_notification = CRUDNotification()
