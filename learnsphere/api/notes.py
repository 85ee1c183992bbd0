"""
Note endpoints
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.database import get_db
from learnsphere.exceptions import AuthorizationError, NotFoundError
from learnsphere.models import Note, User
from learnsphere.schemas.note import NoteCreate, NoteUpdate
from learnsphere.services.document_service import get_owned_document
from learnsphere.utils.security import get_current_user

router = APIRouter(prefix=settings.API_PREFIX, tags=["notes"])


def serialize_note(note: Note) -> dict:
    return {
        "_id": str(note.id),
        "documentId": str(note.document_id),
        "title": note.title,
        "content": note.content,
        "createdAt": note.created_at.isoformat() if note.created_at else None,
        "updatedAt": note.updated_at.isoformat() if note.updated_at else None,
    }


def get_owned_note(db: Session, user: User, note_id: UUID) -> Note:
    note = db.query(Note).filter(Note.id == note_id).first()
    if not note:
        raise NotFoundError("Note not found")
    if note.user_id != user.id:
        raise AuthorizationError("Not authorized to access this note")
    return note


@router.get("/documents/{document_id}/notes")
def list_notes(
    document_id: UUID,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    get_owned_document(db, user.id, document_id)
    query = db.query(Note).filter(Note.document_id == document_id, Note.user_id == user.id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Note.title.ilike(pattern), Note.content.ilike(pattern)))
    notes = query.order_by(Note.updated_at.desc()).all()
    return {"notes": [serialize_note(note) for note in notes]}


@router.post("/documents/{document_id}/notes", status_code=201)
def create_note(
    document_id: UUID,
    data: NoteCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    get_owned_document(db, user.id, document_id)
    note = Note(user_id=user.id, document_id=document_id, title=data.title.strip(), content=data.content)
    db.add(note)
    db.commit()
    db.refresh(note)
    return serialize_note(note)


@router.put("/notes/{note_id}")
def update_note(
    note_id: UUID,
    data: NoteUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    note = get_owned_note(db, user, note_id)
    if data.title is not None:
        note.title = data.title.strip()
    if data.content is not None:
        note.content = data.content
    db.commit()
    db.refresh(note)
    return serialize_note(note)


@router.delete("/notes/{note_id}")
def delete_note(note_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    note = get_owned_note(db, user, note_id)
    db.delete(note)
    db.commit()
    return {"message": "Note deleted successfully"}
