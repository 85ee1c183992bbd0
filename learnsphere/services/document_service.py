"""
Document storage: upload, ownership, text extraction and serialization
"""
import logging
import os
import uuid
from typing import Any, Dict, List

import aiofiles
from fastapi import UploadFile
from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.exceptions import NotFoundError, ValidationError
from learnsphere.models import Document
from learnsphere.services import pdf_service

logger = logging.getLogger(__name__)

ARTIFACT_COLUMNS = {
    "summary": "summary",
    "quiz": "quiz",
    "mindmap": "mind_map",
    "roadmap": "roadmap",
}


def get_owned_document(db: Session, user_id, document_id) -> Document:
    """Fetch a document the user owns; anything else is reported as missing"""
    document = (
        db.query(Document)
        .filter(Document.id == document_id, Document.user_id == user_id)
        .first()
    )
    if not document:
        raise NotFoundError("Document not found")
    return document


async def save_upload(db: Session, user_id, upload: UploadFile) -> Document:
    """
    Validate and store an uploaded PDF

    - PDF only, at most MAX_UPLOAD_MB and MAX_PDF_PAGES
    - Text is not extracted here; that happens on first processing
    """
    file_name = os.path.basename(upload.filename or "")
    if not file_name.lower().endswith(".pdf") or (
        upload.content_type and upload.content_type not in ("application/pdf", "application/octet-stream")
    ):
        raise ValidationError("Only PDF files are allowed", error_code="INVALID_FILE_TYPE")

    # Never buffer more than one byte past the limit
    content = await upload.read(settings.max_upload_bytes + 1)
    if not content:
        raise ValidationError("The uploaded file is empty", error_code="EMPTY_FILE")
    if len(content) > settings.max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {settings.MAX_UPLOAD_MB}MB", error_code="FILE_TOO_LARGE"
        )

    page_count = pdf_service.count_pages(content)
    if page_count > settings.MAX_PDF_PAGES:
        raise ValidationError(
            f"PDF has {page_count} pages. Maximum allowed is {settings.MAX_PDF_PAGES} pages",
            error_code="TOO_MANY_PAGES",
        )

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    file_path = os.path.join(settings.UPLOAD_DIR, f"{uuid.uuid4().hex}.pdf")
    async with aiofiles.open(file_path, "wb") as f:
        await f.write(content)

    document = Document(
        user_id=user_id,
        file_name=file_name,
        file_path=file_path,
        file_size=len(content),
        page_count=page_count,
        processing_status="pending",
    )
    db.add(document)
    db.commit()
    db.refresh(document)

    logger.info(f"Document uploaded: {document.id} ({file_name}, {page_count} pages)")
    return document


def ensure_extracted_text(db: Session, document: Document) -> str:
    """Extract and persist the document text once; later calls reuse it"""
    if document.extracted_text is not None:
        return document.extracted_text

    document.extracted_text = pdf_service.extract_text(document.file_path)
    db.commit()
    return document.extracted_text


def list_documents(db: Session, user_id) -> List[Document]:
    return (
        db.query(Document)
        .filter(Document.user_id == user_id)
        .order_by(Document.created_at.desc())
        .all()
    )


def delete_document(db: Session, document: Document) -> None:
    """Delete the record (cascading to notes and quizzes) and its file"""
    file_path = document.file_path
    document_id = document.id
    db.delete(document)
    db.commit()

    try:
        os.remove(file_path)
    except FileNotFoundError:
        logger.warning(f"Uploaded file already missing: {file_path}")
    logger.info(f"Document deleted: {document_id}")


def get_artifact(document: Document, artifact_type: str) -> Any:
    if artifact_type not in ARTIFACT_COLUMNS:
        raise ValidationError(f"Unknown artifact type: {artifact_type}")
    artifact = getattr(document, ARTIFACT_COLUMNS[artifact_type])
    if artifact is None:
        raise NotFoundError(f"No {artifact_type} has been generated for this document yet")
    return artifact


def serialize_document(document: Document, include_text: bool = False) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "_id": str(document.id),
        "fileName": document.file_name,
        "fileSize": document.file_size,
        "pageCount": document.page_count,
        "processingStatus": document.processing_status,
        "processingType": document.processing_type,
        "processingDetails": document.processing_details,
        "learnerLevel": document.learner_level,
        "summary": document.summary,
        "quiz": document.quiz,
        "mindMap": document.mind_map,
        "roadmap": document.roadmap,
        "quizResults": document.quiz_results or [],
        "hasText": bool(document.extracted_text),
        "createdAt": document.created_at.isoformat() if document.created_at else None,
        "updatedAt": document.updated_at.isoformat() if document.updated_at else None,
    }
    if include_text:
        payload["extractedText"] = document.extracted_text
    return payload


def serialize_document_brief(document: Document) -> Dict[str, Any]:
    return {
        "_id": str(document.id),
        "fileName": document.file_name,
        "pageCount": document.page_count,
        "processingStatus": document.processing_status,
        "processingType": document.processing_type,
        "has": {
            artifact_type: getattr(document, column) is not None
            for artifact_type, column in ARTIFACT_COLUMNS.items()
        },
        "createdAt": document.created_at.isoformat() if document.created_at else None,
    }
