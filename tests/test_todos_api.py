"""
Tests for todo endpoints
"""
from datetime import datetime, timedelta, timezone

import pytest

from conftest import register, upload
from learnsphere.models import Todo, User


def today():
    return datetime.now(timezone.utc).date()


def create(client, headers, **fields):
    payload = {"title": "Review chapter 1", "dueDate": today().isoformat(), **fields}
    return client.post("/api/todos", json=payload, headers=headers)


@pytest.fixture
def overdue(db, client, auth):
    user = db.query(User).filter(User.email == "student@example.com").first()
    todo = Todo(
        user_id=user.id,
        title="Old task",
        description="",
        status="pending",
        priority="low",
        due_date=today() - timedelta(days=3),
    )
    db.add(todo)
    db.commit()
    return str(todo.id)


class TestCreate:

    def test_create(self, client, auth):
        response = create(client, auth, title="  Review chapter 1  ", priority="high")

        assert response.status_code == 201
        todo = response.json()
        assert todo["title"] == "Review chapter 1"
        assert todo["status"] == "pending"
        assert todo["priority"] == "high"
        assert todo["dueDate"] == today().isoformat()
        assert todo["completedAt"] is None

    def test_default_priority_and_datetime_due_date(self, client, auth):
        due = (today() + timedelta(days=2)).isoformat() + "T18:30:00Z"
        todo = create(client, auth, dueDate=due).json()

        assert todo["priority"] == "medium"
        assert todo["dueDate"] == (today() + timedelta(days=2)).isoformat()

    def test_past_due_date_rejected(self, client, auth):
        response = create(client, auth, dueDate=(today() - timedelta(days=1)).isoformat())
        assert response.status_code == 400
        assert response.json()["message"] == "Due date cannot be in the past"

    @pytest.mark.parametrize("title", ["", "   ", "x" * 101])
    def test_invalid_titles(self, client, auth, title):
        assert create(client, auth, title=title).status_code == 400

    def test_description_limit(self, client, auth):
        assert create(client, auth, description="x" * 501).status_code == 400

    def test_linked_document(self, client, auth):
        document_id = upload(client, auth)
        todo = create(client, auth, linkedEntity={"type": "document", "entityId": document_id}).json()

        assert todo["linkedEntity"]["entityId"] == document_id
        assert todo["linkedEntity"]["entityTitle"] == "photosynthesis.pdf"
        assert todo["linkedEntity"]["entityName"] == "photosynthesis.pdf"

    def test_cannot_link_other_users_document(self, client, auth):
        document_id = upload(client, auth)
        other, _ = register(client, "other@example.com")

        response = create(client, other, linkedEntity={"type": "document", "entityId": document_id})
        assert response.status_code == 404


class TestList:

    def test_overdue_todos_become_missed(self, client, auth, overdue):
        body = client.get("/api/todos", headers=auth).json()

        assert body["count"] == 1
        assert body["todos"][0]["_id"] == overdue
        assert body["todos"][0]["status"] == "missed"

    def test_filters(self, client, auth, overdue):
        create(client, auth, title="Pending one")
        todo_id = create(client, auth, title="Done one").json()["_id"]
        client.patch(f"/api/todos/{todo_id}/done", headers=auth)

        assert client.get("/api/todos?status=missed", headers=auth).json()["count"] == 1
        assert client.get("/api/todos?status=pending", headers=auth).json()["count"] == 1
        completed = client.get("/api/todos?status=completed", headers=auth).json()["todos"]
        assert [t["title"] for t in completed] == ["Done one"]
        assert client.get("/api/todos?priority=low", headers=auth).json()["count"] == 1

    def test_sort_by_priority(self, client, auth):
        create(client, auth, title="Low", priority="low")
        create(client, auth, title="High", priority="high")
        create(client, auth, title="Medium", priority="medium")

        todos = client.get("/api/todos?sortBy=priority&sortOrder=desc", headers=auth).json()["todos"]
        assert [t["title"] for t in todos] == ["High", "Medium", "Low"]

    def test_only_own_todos(self, client, auth):
        create(client, auth)
        other, _ = register(client, "other@example.com")
        assert client.get("/api/todos", headers=other).json()["count"] == 0


class TestUpdate:

    def test_update_fields(self, client, auth):
        todo_id = create(client, auth).json()["_id"]
        response = client.put(
            f"/api/todos/{todo_id}",
            json={"title": "Review chapter 2", "priority": "low", "description": "Pages 10-20"},
            headers=auth,
        )

        assert response.status_code == 200
        todo = response.json()
        assert todo["title"] == "Review chapter 2"
        assert todo["priority"] == "low"
        assert todo["description"] == "Pages 10-20"

    def test_blank_title_rejected_on_update(self, client, auth):
        todo_id = create(client, auth).json()["_id"]

        response = client.put(f"/api/todos/{todo_id}", json={"title": "   "}, headers=auth)
        assert response.status_code == 400

        trimmed = client.put(f"/api/todos/{todo_id}", json={"title": "  Review chapter 3 "}, headers=auth).json()
        assert trimmed["title"] == "Review chapter 3"

    def test_complete_and_reopen(self, client, auth):
        todo_id = create(client, auth).json()["_id"]

        done = client.put(f"/api/todos/{todo_id}", json={"status": "completed"}, headers=auth).json()
        assert done["status"] == "completed"
        assert done["completedAt"] is not None

        reopened = client.put(f"/api/todos/{todo_id}", json={"status": "pending"}, headers=auth).json()
        assert reopened["status"] == "pending"
        assert reopened["completedAt"] is None

    def test_rescheduling_missed_todo(self, client, auth, overdue):
        client.get("/api/todos", headers=auth)
        tomorrow = (today() + timedelta(days=1)).isoformat()

        todo = client.put(f"/api/todos/{overdue}", json={"dueDate": tomorrow}, headers=auth).json()
        assert todo["status"] == "pending"
        assert todo["dueDate"] == tomorrow

    def test_reopening_overdue_todo_stays_missed(self, client, auth, overdue):
        client.patch(f"/api/todos/{overdue}/done", headers=auth)
        todo = client.put(f"/api/todos/{overdue}", json={"status": "pending"}, headers=auth).json()
        assert todo["status"] == "missed"

    def test_cannot_move_due_date_into_past(self, client, auth):
        todo_id = create(client, auth).json()["_id"]
        yesterday = (today() - timedelta(days=1)).isoformat()
        response = client.put(f"/api/todos/{todo_id}", json={"dueDate": yesterday}, headers=auth)
        assert response.status_code == 400

    def test_mark_done(self, client, auth):
        todo_id = create(client, auth).json()["_id"]
        response = client.patch(f"/api/todos/{todo_id}/done", headers=auth)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"


class TestDeleteAndAccess:

    def test_delete(self, client, auth):
        todo_id = create(client, auth).json()["_id"]
        assert client.delete(f"/api/todos/{todo_id}", headers=auth).status_code == 200
        assert client.delete(f"/api/todos/{todo_id}", headers=auth).status_code == 404

    def test_other_users_todo(self, client, auth):
        todo_id = create(client, auth).json()["_id"]
        other, _ = register(client, "other@example.com")

        assert client.put(f"/api/todos/{todo_id}", json={"title": "Mine"}, headers=other).status_code == 403
        assert client.patch(f"/api/todos/{todo_id}/done", headers=other).status_code == 403
        assert client.delete(f"/api/todos/{todo_id}", headers=other).status_code == 403


def test_stats(client, auth, overdue):
    create(client, auth, title="Due today")
    create(client, auth, title="Later", dueDate=(today() + timedelta(days=5)).isoformat())
    done_id = create(client, auth, title="Finished").json()["_id"]
    client.patch(f"/api/todos/{done_id}/done", headers=auth)

    stats = client.get("/api/todos/stats", headers=auth).json()
    assert stats == {
        "total": 4,
        "completed": 1,
        "pending": 2,
        "missed": 1,
        "dueToday": 1,
        "completionRate": 25,
    }
