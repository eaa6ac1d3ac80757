"""
Notification bell: polling, marking read, per-user isolation.
"""
from ozifin.models import Notification


def seed(db_session, username, count):
    rows = [
        Notification(user_id=username, title="New comment", message=f"message {i}", link=f"/dashboard/tasks?taskId={i}")
        for i in range(count)
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


class TestNotifications:

    def test_lists_own_unread_newest_first(self, client, db_session, sale1_headers, sale2):
        seed(db_session, "sale1", 3)
        seed(db_session, "sale2", 2)

        body = client.get("/api/notifications", headers=sale1_headers).json()
        assert len(body) == 3
        assert [n["message"] for n in body] == ["message 2", "message 1", "message 0"]
        assert all(n["user_id"] == "sale1" for n in body)

    def test_since_id_returns_only_newer(self, client, db_session, sale1_headers):
        first, second, third = seed(db_session, "sale1", 3)

        body = client.get("/api/notifications", params={"since_id": second.id}, headers=sale1_headers).json()
        assert [n["id"] for n in body] == [third.id]

    def test_mark_read_returns_link(self, client, db_session, sale1_headers):
        notification, = seed(db_session, "sale1", 1)

        response = client.post(f"/api/notifications/{notification.id}/read", headers=sale1_headers)
        assert response.status_code == 200
        assert response.json() == {"id": notification.id, "is_read": True, "link": "/dashboard/tasks?taskId=0"}
        assert client.get("/api/notifications", headers=sale1_headers).json() == []

    def test_cannot_mark_someone_elses(self, client, db_session, sale1_headers, sale2):
        notification, = seed(db_session, "sale2", 1)
        response = client.post(f"/api/notifications/{notification.id}/read", headers=sale1_headers)
        assert response.status_code == 404

    def test_read_all(self, client, db_session, sale1_headers, sale2_headers):
        seed(db_session, "sale1", 4)
        seed(db_session, "sale2", 1)

        response = client.post("/api/notifications/read-all", headers=sale1_headers)
        assert response.json() == {"updated": 4}
        assert len(client.get("/api/notifications", headers=sale2_headers).json()) == 1
        assert len(client.get(
            "/api/notifications", params={"unread_only": False}, headers=sale1_headers
        ).json()) == 4
