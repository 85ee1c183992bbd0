"""
Todo endpoints
"""
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.database import get_db
from learnsphere.models import User
from learnsphere.schemas.todo import TodoCreate, TodoUpdate
from learnsphere.services.todo_service import todo_service
from learnsphere.utils.security import get_current_user

router = APIRouter(prefix=f"{settings.API_PREFIX}/todos", tags=["todos"])


@router.post("", status_code=201)
def create_todo(data: TodoCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    todo = todo_service.create(db, user, data)
    return todo_service.serialize(db, todo)


@router.get("")
def list_todos(
    status: Optional[Literal["pending", "completed", "missed"]] = None,
    priority: Optional[Literal["low", "medium", "high"]] = None,
    sortBy: Literal["dueDate", "createdAt", "priority", "title"] = "dueDate",
    sortOrder: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List todos; pending todos past their due date are marked missed first"""
    todos = todo_service.list_todos(db, user, status, priority, sortBy, sortOrder)
    return {"count": len(todos), "todos": [todo_service.serialize(db, todo) for todo in todos]}


@router.get("/stats")
def todo_stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return todo_service.stats(db, user)


@router.put("/{todo_id}")
def update_todo(
    todo_id: UUID,
    data: TodoUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    todo = todo_service.get_owned(db, user, todo_id)
    todo = todo_service.update(db, user, todo, data)
    return todo_service.serialize(db, todo)


@router.patch("/{todo_id}/done")
def mark_todo_done(todo_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    todo = todo_service.get_owned(db, user, todo_id)
    todo = todo_service.mark_done(db, todo)
    return todo_service.serialize(db, todo)


@router.delete("/{todo_id}")
def delete_todo(todo_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    todo = todo_service.get_owned(db, user, todo_id)
    todo_service.delete(db, todo)
    return {"message": "Todo deleted successfully"}
