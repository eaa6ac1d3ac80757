"""
Kanban board tests: moves, history, notifications and rollback.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ozifin.models import Notification, TaskHistory


@pytest.fixture
def create_task(client):
    def _create(headers, **overrides):
        payload = {"title": "Reconcile March", "assignees": [], "tags": ["finance"]}
        payload.update(overrides)
        response = client.post("/api/tasks", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


def notifications_for(db_session, username):
    db_session.expire_all()
    stmt = select(Notification).where(Notification.user_id == username)
    return list(db_session.execute(stmt).scalars().all())


def column_ids(client, headers, status):
    return [t["id"] for t in client.get("/api/tasks", headers=headers).json() if t["status"] == status]


class TestTaskCrud:

    def test_create_logs_history_and_notifies_assignees(
        self, client, db_session, create_task, sale1_headers, sale2
    ):
        task = create_task(sale1_headers, assignees=["sale1", "sale2", "sale2"])

        history = client.get(f"/api/tasks/{task['id']}/history", headers=sale1_headers).json()
        assert [h["action"] for h in history] == ["created"]

        received = notifications_for(db_session, "sale2")
        assert len(received) == 1
        assert received[0].title == "New task assigned"
        assert received[0].link == f"/dashboard/tasks?taskId={task['id']}"
        # Never to the actor
        assert notifications_for(db_session, "sale1") == []

    def test_blank_title_rejected(self, client, sale1_headers):
        response = client.post("/api/tasks", json={"title": "   "}, headers=sale1_headers)
        assert response.status_code == 400

    def test_update_notifies_only_new_assignees(
        self, client, db_session, create_task, sale1_headers, sale2, manager
    ):
        task = create_task(sale1_headers, assignees=["sale2"])
        response = client.put(
            f"/api/tasks/{task['id']}", json={"assignees": ["sale2", "manager"]}, headers=sale1_headers
        )
        assert response.status_code == 200

        assert len(notifications_for(db_session, "sale2")) == 1
        assert len(notifications_for(db_session, "manager")) == 1

    def test_comment_notifies_assignees_except_author(
        self, client, db_session, create_task, sale1_headers, sale2_headers
    ):
        task = create_task(sale1_headers, assignees=["sale1", "sale2"])
        response = client.post(
            f"/api/tasks/{task['id']}/comments", json={"content": "Done with bank A"}, headers=sale2_headers
        )
        assert response.status_code == 201
        assert response.json()["user_id"] == "sale2"

        titles = [n.title for n in notifications_for(db_session, "sale1")]
        assert titles == ["New comment"]
        comments = client.get(f"/api/tasks/{task['id']}/comments", headers=sale1_headers).json()
        assert [c["content"] for c in comments] == ["Done with bank A"]

    def test_delete_by_creator_or_privileged_only(
        self, client, create_task, sale1_headers, sale2_headers, manager_headers
    ):
        task = create_task(sale1_headers)
        assert client.delete(f"/api/tasks/{task['id']}", headers=sale2_headers).status_code == 403
        assert client.delete(f"/api/tasks/{task['id']}", headers=manager_headers).status_code == 200
        assert client.get(f"/api/tasks/{task['id']}", headers=sale1_headers).status_code == 404

    def test_filter_by_assignee(self, client, create_task, sale1_headers):
        create_task(sale1_headers, assignees=["sale2"])
        create_task(sale1_headers, assignees=["manager"])
        tasks = client.get("/api/tasks", params={"assignee": "sale2"}, headers=sale1_headers).json()
        assert len(tasks) == 1


class TestMove:

    def test_done_by_non_creator_notifies_creator_once(
        self, client, db_session, create_task, sale1_headers, sale2_headers
    ):
        task = create_task(sale1_headers, assignees=["sale2"])

        response = client.post(f"/api/tasks/{task['id']}/move", json={"status": "done"}, headers=sale2_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "done"

        received = notifications_for(db_session, "sale1")
        assert [n.title for n in received] == ["Task completed"]

        history = client.get(f"/api/tasks/{task['id']}/history", headers=sale1_headers).json()
        assert history[0]["action"] == "moved"
        assert history[0]["details"] == "Moved from To do to Done"

    def test_done_by_creator_notifies_nobody(self, client, db_session, create_task, sale1_headers):
        task = create_task(sale1_headers)
        client.post(f"/api/tasks/{task['id']}/move", json={"status": "done"}, headers=sale1_headers)
        assert notifications_for(db_session, "sale1") == []

    def test_moving_within_done_does_not_notify_again(
        self, client, db_session, create_task, sale1_headers, sale2_headers
    ):
        first = create_task(sale1_headers)
        second = create_task(sale1_headers)
        client.post(f"/api/tasks/{first['id']}/move", json={"status": "done"}, headers=sale2_headers)
        client.post(f"/api/tasks/{second['id']}/move", json={"status": "done"}, headers=sale2_headers)
        client.post(
            f"/api/tasks/{second['id']}/move", json={"status": "done", "index": 0}, headers=sale2_headers
        )

        assert len(notifications_for(db_session, "sale1")) == 2
        assert column_ids(client, sale1_headers, "done") == [second["id"], first["id"]]

    def test_reorder_and_gap_closing(self, client, create_task, sale1_headers):
        a, b, c = (create_task(sale1_headers, title=t) for t in ("A", "B", "C"))

        client.post(f"/api/tasks/{c['id']}/move", json={"status": "todo", "index": 0}, headers=sale1_headers)
        assert column_ids(client, sale1_headers, "todo") == [c["id"], a["id"], b["id"]]

        client.post(f"/api/tasks/{a['id']}/move", json={"status": "review"}, headers=sale1_headers)
        tasks = {t["id"]: t for t in client.get("/api/tasks", headers=sale1_headers).json()}
        assert (tasks[c["id"]]["index"], tasks[b["id"]]["index"]) == (0, 1)
        assert (tasks[a["id"]]["status"], tasks[a["id"]]["index"]) == ("review", 0)

    def test_same_position_is_a_no_op(self, client, db_session, create_task, sale1_headers):
        task = create_task(sale1_headers)
        response = client.post(
            f"/api/tasks/{task['id']}/move", json={"status": "todo", "index": 0}, headers=sale1_headers
        )
        assert response.status_code == 200
        db_session.expire_all()
        rows = db_session.execute(select(TaskHistory).where(TaskHistory.task_id == task["id"])).scalars().all()
        assert [h.action for h in rows] == ["created"]

    def test_failed_move_rolls_back(
        self, client, db_session, create_task, sale1_headers, sale2_headers, monkeypatch
    ):
        task = create_task(sale1_headers)

        def fail(*args, **kwargs):
            raise SQLAlchemyError("notification insert failed")

        monkeypatch.setattr("ozifin.crud.notifications.notify_completed", fail)
        response = client.post(f"/api/tasks/{task['id']}/move", json={"status": "done"}, headers=sale2_headers)
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to move task"

        after = client.get(f"/api/tasks/{task['id']}", headers=sale1_headers).json()
        assert after["status"] == "todo"
        history = client.get(f"/api/tasks/{task['id']}/history", headers=sale1_headers).json()
        assert [h["action"] for h in history] == ["created"]
