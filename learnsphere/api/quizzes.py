"""
Roadmap quiz generation, submission and score tracking endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from learnsphere.config import settings
from learnsphere.database import get_db
from learnsphere.models import User
from learnsphere.schemas.quiz import (
    FinalQuizCreate,
    ModuleQuizCreate,
    PhaseQuizCreate,
    QuizSubmission,
)
from learnsphere.services.document_service import get_owned_document
from learnsphere.services.quiz_service import quiz_service, serialize_quiz, serialize_tracker
from learnsphere.utils.security import get_current_user


router = APIRouter(prefix=f"{settings.API_PREFIX}/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


@router.post("/module", status_code=201)
def create_module_quiz(
    request: ModuleQuizCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)
):
    """
    Generate a quiz for a completed roadmap module

    - Locked until every lesson of the module is complete
    - No credit cost
    """
    document = get_owned_document(db, user.id, request.document_id)
    quiz = quiz_service.create_module_quiz(
        db, user, document, request.phase_id, request.module_id, request.num_questions
    )
    return {"quiz": serialize_quiz(quiz)}


@router.post("/phase", status_code=201)
def create_phase_quiz(
    request: PhaseQuizCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)
):
    """
    Generate a phase assessment

    - Locked until every module of the phase is complete
    - No credit cost
    """
    document = get_owned_document(db, user.id, request.document_id)
    quiz = quiz_service.create_phase_quiz(db, user, document, request.phase_id, request.num_questions)
    return {"quiz": serialize_quiz(quiz)}


@router.post("/final", status_code=201)
def create_final_quiz(
    request: FinalQuizCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)
):
    """Generate the final assessment once every phase is complete"""
    document = get_owned_document(db, user.id, request.document_id)
    quiz = quiz_service.create_final_quiz(db, user, document, request.num_questions)
    return {"quiz": serialize_quiz(quiz)}


@router.get("/tracker/{document_id}")
def get_score_tracker(
    document_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)
):
    get_owned_document(db, user.id, document_id)
    tracker = quiz_service.get_tracker(db, user, document_id)
    return {"tracker": serialize_tracker(tracker)}


@router.get("/roadmap/{document_id}")
def list_roadmap_quizzes(
    document_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)
):
    get_owned_document(db, user.id, document_id)
    quizzes = quiz_service.list_for_document(db, user, document_id)
    return {"quizzes": [serialize_quiz(quiz) for quiz in quizzes]}


@router.get("/{quiz_id}")
def get_quiz(quiz_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Quiz without answers; answers are revealed in the submission review"""
    quiz = quiz_service.get_owned_quiz(db, user, quiz_id)
    return {"quiz": serialize_quiz(quiz)}


@router.post("/{quiz_id}/submit")
def submit_quiz(
    quiz_id: UUID,
    submission: QuizSubmission,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Submit and score a roadmap quiz

    Returns:
    - Score, percentage and per-question review
    - Areas to improve by topic
    - Best attempt and updated score tracker
    """
    quiz = quiz_service.get_owned_quiz(db, user, quiz_id)
    answers = {answer.question_id: answer.selected_answer for answer in submission.answers}

    logger.info(f"Scoring quiz {quiz_id} for user {user.id}")
    result = quiz_service.submit(db, user, quiz, answers, submission.time_taken)
    tracker = quiz_service.get_tracker(db, user, quiz.document_id)

    return {"result": result, "tracker": serialize_tracker(tracker)}
