"""
Document upload, processing, mind map, roadmap and export endpoints
"""
from datetime import datetime, timezone
from typing import Literal
from urllib.parse import quote
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.database import get_db
from learnsphere.exceptions import NotFoundError, ValidationError
from learnsphere.models import User
from learnsphere.schemas.document import (
    DocumentQuizSubmission,
    MindMapSave,
    ProcessRequest,
    ProgressUpdate,
    ReportRequest,
)
from learnsphere.services import document_service, export_service, progress_service
from learnsphere.services.grading_service import grading_service
from learnsphere.services.mindmap_service import mindmap_service
from learnsphere.services.processing_service import processing_service
from learnsphere.utils.security import get_current_user

router = APIRouter(prefix=f"{settings.API_PREFIX}/documents", tags=["documents"])
logger = logging.getLogger(__name__)


def _attachment(file_name: str) -> dict:
    """Content-Disposition with an ASCII fallback and an RFC 6266 UTF-8 name"""
    fallback = file_name.encode("ascii", "ignore").decode().replace('"', "").replace("\\", "")
    fallback = " ".join(fallback.split()).lstrip(" -") or "download"
    return {
        "Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name, safe='')}"
    }


def _base_name(document) -> str:
    return document.file_name.rsplit(".", 1)[0] or "document"


@router.post("/upload", status_code=201)
async def upload_document(
    pdf: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Upload a PDF

    - PDF only, size and page limits enforced
    - Text is extracted later, on the first processing request
    """
    document = await document_service.save_upload(db, user.id, pdf)
    return {
        "_id": str(document.id),
        "fileName": document.file_name,
        "fileSize": document.file_size,
        "pageCount": document.page_count,
        "processingStatus": document.processing_status,
        "message": "PDF uploaded successfully",
    }


@router.get("")
def list_documents(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    documents = document_service.list_documents(db, user.id)
    return [document_service.serialize_document_brief(document) for document in documents]


@router.post("/process")
def process_document(
    request: ProcessRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Generate study artifacts for a document

    Costs: summary 1, quiz 1, roadmap 1, mindmap free, comprehensive 2 credits.
    Every call regenerates; use GET /{id}/artifacts/{type} to re-fetch.
    """
    options = {
        "summaryType": request.summary_type,
        "learnerLevel": request.learner_level,
        "numQuestions": request.num_questions,
    }
    return processing_service.process(db, user, request.document_id, request.processing_type, options)


@router.post("/quiz/submit")
def submit_document_quiz(
    submission: DocumentQuizSubmission,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Score answers against the document's stored quiz"""
    document = document_service.get_owned_document(db, user.id, submission.document_id)
    if not document.quiz:
        raise NotFoundError("No quiz has been generated for this document yet")

    answers = {answer.question_id: answer.selected_answer for answer in submission.answers}
    result = grading_service.score(document.quiz, answers)

    analysis = {
        "score": result["correctCount"],
        "totalQuestions": result["totalQuestions"],
        "percentage": result["percentageScore"],
        "performanceLevel": result["performanceLevel"],
        "feedback": result["feedback"],
        "passed": result["passed"],
        "answeredQuestions": sum(1 for value in answers.values() if value is not None),
        "wrongAnswers": result["totalQuestions"] - result["correctCount"],
        "topicsToFocus": [area["topic"] for area in result["areasToImprove"]],
    }
    document.quiz_results = (document.quiz_results or []) + [
        {**analysis, "submittedAt": datetime.now(timezone.utc).isoformat()}
    ]
    db.commit()

    return {"analysis": analysis, "review": result["review"], "areasToImprove": result["areasToImprove"]}


@router.post("/report/generate")
def generate_report(
    request: ReportRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """PDF study report with summary, key insights and quiz performance"""
    document = document_service.get_owned_document(db, user.id, request.document_id)
    if not document.summary:
        raise ValidationError("Generate a summary before creating a report")

    content = export_service.document_report_pdf(document, request.report_type)
    return Response(
        content=content,
        media_type="application/pdf",
        headers=_attachment(f"{_base_name(document)}-report.pdf"),
    )


@router.post("/mindmap/{document_id}")
def generate_mind_map(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Build the mind map locally (no credit cost) and store it"""
    result = processing_service.process(db, user, document_id, "mindmap")
    return {"success": True, "mindMap": result["results"]["mindMap"]}


@router.get("/mindmap/{document_id}")
def get_mind_map(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    document = document_service.get_owned_document(db, user.id, document_id)
    return {"success": True, "mindMap": document_service.get_artifact(document, "mindmap")}


@router.put("/mindmap/{document_id}")
def save_mind_map(
    document_id: UUID,
    payload: MindMapSave,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Persist client-side edits (moved, added or deleted nodes)"""
    document = document_service.get_owned_document(db, user.id, document_id)
    edited = mindmap_service.validate_edit(
        [node.model_dump() for node in payload.nodes],
        [edge.model_dump() for edge in payload.edges],
    )

    metadata = dict((document.mind_map or {}).get("metadata") or {"method": "manual"})
    metadata.update({
        "nodeCount": len(edited["nodes"]),
        "edgeCount": len(edited["edges"]),
        "editedAt": datetime.now(timezone.utc).isoformat(),
    })
    document.mind_map = {**edited, "metadata": metadata}
    db.commit()

    logger.info(f"Mind map saved for document {document_id}: {metadata['nodeCount']} nodes")
    return {"success": True, "mindMap": document.mind_map}


@router.get("/{document_id}")
def get_document(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    document = document_service.get_owned_document(db, user.id, document_id)
    return document_service.serialize_document(document)


@router.delete("/{document_id}")
def delete_document(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    document = document_service.get_owned_document(db, user.id, document_id)
    document_service.delete_document(db, document)
    return {"message": "Document deleted successfully"}


@router.get("/{document_id}/artifacts/{artifact_type}")
def get_artifact(
    document_id: UUID,
    artifact_type: Literal["summary", "quiz", "mindmap", "roadmap"],
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Re-fetch a stored artifact without regenerating it"""
    document = document_service.get_owned_document(db, user.id, document_id)
    artifact = document_service.get_artifact(document, artifact_type)
    if artifact_type == "roadmap":
        artifact = progress_service.with_derived_state(artifact)
    return {"type": artifact_type, "artifact": artifact}


@router.get("/{document_id}/roadmap")
def get_roadmap(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    document = document_service.get_owned_document(db, user.id, document_id)
    roadmap = document_service.get_artifact(document, "roadmap")
    return {"roadmap": progress_service.with_derived_state(roadmap)}


@router.get("/{document_id}/roadmap/topics")
def get_roadmap_topics(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    document = document_service.get_owned_document(db, user.id, document_id)
    roadmap = document_service.get_artifact(document, "roadmap")
    return {
        "mainTopic": roadmap.get("mainTopic"),
        "subTopics": roadmap.get("subTopics", []),
        "learningOutcomes": roadmap.get("learningOutcomes", []),
        "phases": [
            {"phaseId": phase["phaseId"], "phaseName": phase["phaseName"], "phaseTopics": phase.get("phaseTopics", [])}
            for phase in roadmap.get("phases") or []
        ],
        "progress": progress_service.progress_of(roadmap),
    }


@router.put("/{document_id}/roadmap/progress")
def update_roadmap_progress(
    document_id: UUID,
    update: ProgressUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Toggle a lesson's completion

    Module completion is recomputed immediately; phase completion and quiz
    unlocks in the response are derived, never stored.
    """
    document = document_service.get_owned_document(db, user.id, document_id)
    roadmap = document_service.get_artifact(document, "roadmap")

    updated = progress_service.toggle_lesson(roadmap, update.module_id, update.lesson_id, update.phase_id)
    document.roadmap = updated
    db.commit()

    key = progress_service.lesson_key(update.module_id, update.lesson_id)
    return {
        "progress": updated["progressTracking"],
        "lessonCompleted": key in updated["progressTracking"]["completedLessons"],
        "phaseStates": progress_service.phase_states(updated),
        "finalQuizUnlocked": progress_service.final_quiz_unlocked(updated),
    }


@router.get("/{document_id}/roadmap/export")
def export_roadmap(
    document_id: UUID,
    format: Literal["markdown", "pdf"] = "markdown",
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    document = document_service.get_owned_document(db, user.id, document_id)
    roadmap = document_service.get_artifact(document, "roadmap")
    base_name = _base_name(document)

    if format == "pdf":
        return Response(
            content=export_service.roadmap_to_pdf(roadmap, document.file_name),
            media_type="application/pdf",
            headers=_attachment(f"{base_name}-roadmap.pdf"),
        )

    return Response(
        content=export_service.roadmap_to_markdown(roadmap, document.file_name),
        media_type="text/markdown; charset=utf-8",
        headers=_attachment(f"{base_name}-roadmap.md"),
    )
