"""
Todo management: overdue detection, linked entities and stats
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import case
from sqlalchemy.orm import Session

from learnsphere.exceptions import AuthorizationError, NotFoundError, ValidationError
from learnsphere.models import Document, Note, Quiz, Todo
from learnsphere.schemas.todo import LinkedEntity, TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "dueDate": Todo.due_date,
    "createdAt": Todo.created_at,
    "title": Todo.title,
}


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _priority_rank():
    return case((Todo.priority == "high", 3), (Todo.priority == "medium", 2), else_=1)


class TodoService:
    """CRUD and bookkeeping for user todos"""

    def mark_missed(self, db: Session, user_id) -> int:
        """Pending todos past their due date become missed"""
        updated = (
            db.query(Todo)
            .filter(Todo.user_id == user_id, Todo.status == "pending", Todo.due_date < _today())
            .update({Todo.status: "missed"}, synchronize_session=False)
        )
        if updated:
            db.commit()
            logger.info(f"Marked {updated} todos as missed for user {user_id}")
        return updated

    def create(self, db: Session, user, data: TodoCreate) -> Todo:
        if data.due_date < _today():
            raise ValidationError("Due date cannot be in the past")

        todo = Todo(
            user_id=user.id,
            title=data.title,
            description=data.description or "",
            priority=data.priority,
            due_date=data.due_date,
            status="pending",
            linked_entity=self._link(db, user, data.linked_entity),
        )
        db.add(todo)
        db.commit()
        db.refresh(todo)
        logger.info(f"Todo created: {todo.id}")
        return todo

    def list_todos(
        self,
        db: Session,
        user,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        sort_by: str = "dueDate",
        sort_order: str = "asc",
    ) -> List[Todo]:
        self.mark_missed(db, user.id)

        query = db.query(Todo).filter(Todo.user_id == user.id)
        if status:
            query = query.filter(Todo.status == status)
        if priority:
            query = query.filter(Todo.priority == priority)

        column = _priority_rank() if sort_by == "priority" else SORT_COLUMNS.get(sort_by, Todo.due_date)
        ordering = column.desc() if sort_order == "desc" else column.asc()
        return query.order_by(ordering, Todo.created_at.asc()).all()

    def get_owned(self, db: Session, user, todo_id) -> Todo:
        todo = db.query(Todo).filter(Todo.id == todo_id).first()
        if not todo:
            raise NotFoundError("Todo not found")
        if todo.user_id != user.id:
            raise AuthorizationError("Not authorized to access this todo")
        return todo

    def update(self, db: Session, user, todo: Todo, data: TodoUpdate) -> Todo:
        changes = data.model_dump(exclude_unset=True)

        if "due_date" in changes and changes["due_date"] is not None:
            if changes["due_date"] < _today() and changes["due_date"] != todo.due_date:
                raise ValidationError("Due date cannot be in the past")
            todo.due_date = changes["due_date"]
            # A rescheduled missed todo is pending again
            if todo.status == "missed" and todo.due_date >= _today():
                todo.status = "pending"

        for field in ("title", "description", "priority"):
            if changes.get(field) is not None:
                setattr(todo, field, changes[field].strip() if field == "title" else changes[field])

        if "linked_entity" in changes:
            todo.linked_entity = self._link(db, user, data.linked_entity)

        if changes.get("status"):
            self._set_status(todo, changes["status"])

        db.commit()
        db.refresh(todo)
        return todo

    def mark_done(self, db: Session, todo: Todo) -> Todo:
        self._set_status(todo, "completed")
        db.commit()
        db.refresh(todo)
        return todo

    def delete(self, db: Session, todo: Todo) -> None:
        db.delete(todo)
        db.commit()

    def stats(self, db: Session, user) -> Dict[str, Any]:
        self.mark_missed(db, user.id)
        todos = db.query(Todo).filter(Todo.user_id == user.id).all()
        today = _today()

        total = len(todos)
        completed = sum(1 for t in todos if t.status == "completed")
        return {
            "total": total,
            "completed": completed,
            "pending": sum(1 for t in todos if t.status == "pending"),
            "missed": sum(1 for t in todos if t.status == "missed"),
            "dueToday": sum(1 for t in todos if t.status == "pending" and t.due_date == today),
            "completionRate": round(completed / total * 100) if total else 0,
        }

    def serialize(self, db: Session, todo: Todo) -> Dict[str, Any]:
        linked = dict(todo.linked_entity) if todo.linked_entity else None
        if linked:
            linked["entityName"] = self._entity_name(db, linked) or linked.get("entityTitle")
        return {
            "_id": str(todo.id),
            "title": todo.title,
            "description": todo.description,
            "status": todo.status,
            "priority": todo.priority,
            "dueDate": todo.due_date.isoformat(),
            "linkedEntity": linked,
            "completedAt": todo.completed_at.isoformat() if todo.completed_at else None,
            "createdAt": todo.created_at.isoformat() if todo.created_at else None,
        }

    def _set_status(self, todo: Todo, status: str) -> None:
        todo.status = status
        todo.completed_at = datetime.now(timezone.utc) if status == "completed" else None
        if status == "pending" and todo.due_date < _today():
            todo.status = "missed"

    def _link(self, db: Session, user, entity: Optional[LinkedEntity]) -> Optional[Dict[str, Any]]:
        if entity is None:
            return None
        record = self._lookup(db, entity.type, entity.entity_id)
        if record is None or record.user_id != user.id:
            raise NotFoundError(f"Linked {entity.type} not found")
        return {
            "type": entity.type,
            "entityId": str(entity.entity_id),
            "entityTitle": entity.entity_title or self._title_of(entity.type, record),
        }

    def _lookup(self, db: Session, entity_type: str, entity_id):
        model = {"document": Document, "quiz": Quiz, "note": Note}[entity_type]
        return db.query(model).filter(model.id == entity_id).first()

    def _title_of(self, entity_type: str, record) -> str:
        if entity_type == "document":
            return record.file_name
        if entity_type == "quiz":
            return record.quiz_title
        return record.title

    def _entity_name(self, db: Session, linked: Dict[str, Any]) -> Optional[str]:
        try:
            record = self._lookup(db, linked["type"], UUID(str(linked["entityId"])))
        except (KeyError, ValueError):
            return None
        return self._title_of(linked["type"], record) if record else None


# Global instance
todo_service = TodoService()
