"""
Roadmap-linked quizzes (module, phase, final) and score tracking
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.exceptions import AuthorizationError, NotFoundError, ValidationError
from learnsphere.models import Document, Quiz, QuizAttempt, ScoreTracker
from learnsphere.services import progress_service
from learnsphere.services.artifact_generator import ArtifactGenerator
from learnsphere.services.document_service import ensure_extracted_text
from learnsphere.services.gemini_service import GeminiService
from learnsphere.services.grading_service import grading_service, round_percentage
from learnsphere.services.prompts import roadmap_quiz_focus

logger = logging.getLogger(__name__)

MIN_QUIZ_TEXT_CHARS = 500

PHASE_DIFFICULTY_MIX = "about one third easy, 40% medium, the rest hard"
FINAL_DIFFICULTY_MIX = "about 30% easy, 40% medium, 30% hard, covering every phase"


class QuizService:
    """Creates gated roadmap quizzes and records attempts"""

    def __init__(self, gemini: Optional[GeminiService] = None):
        self.gemini = gemini

    def create_module_quiz(self, db: Session, user, document: Document, phase_id: str, module_id: str,
                           num_questions: Optional[int] = None) -> Quiz:
        roadmap = self._roadmap(document)
        phase = progress_service.find_phase(roadmap, phase_id)
        module = progress_service.find_module(roadmap, module_id)
        if progress_service.phase_of_module(roadmap, module_id)["phaseId"] != phase_id:
            raise ValidationError(f"Module {module_id} does not belong to phase {phase_id}")
        if not progress_service.module_quiz_unlocked(roadmap, module_id):
            raise AuthorizationError("Complete every lesson in this module to unlock its quiz")

        topics = [module["title"]] + [lesson["title"] for lesson in module["lessons"]] + module.get("keyTerms", [])
        questions = self._generate(
            db, document, num_questions or settings.MODULE_QUIZ_QUESTIONS, topics, ""
        )
        return self._save(db, user, document, Quiz(
            quiz_title=f"{module['title']} - Module Quiz",
            quiz_type="module-quiz",
            phase_id=phase["phaseId"],
            phase_number=phase["phaseNumber"],
            phase_name=phase["phaseName"],
            module_id=module["moduleId"],
            module_name=module["title"],
            topics_covered=topics,
            questions=questions,
        ))

    def create_phase_quiz(self, db: Session, user, document: Document, phase_id: str,
                          num_questions: Optional[int] = None) -> Quiz:
        roadmap = self._roadmap(document)
        phase = progress_service.find_phase(roadmap, phase_id)
        if not progress_service.phase_quiz_unlocked(roadmap, phase_id):
            raise AuthorizationError("Complete every module in this phase to unlock the phase quiz")

        topics = phase.get("phaseTopics") or [module["title"] for module in phase["modules"]]
        questions = self._generate(
            db, document, num_questions or settings.PHASE_QUIZ_QUESTIONS, topics, PHASE_DIFFICULTY_MIX
        )
        return self._save(db, user, document, Quiz(
            quiz_title=f"Phase {phase['phaseNumber']}: {phase['phaseName']} - Assessment",
            quiz_type="phase-quiz",
            phase_id=phase["phaseId"],
            phase_number=phase["phaseNumber"],
            phase_name=phase["phaseName"],
            topics_covered=topics,
            questions=questions,
        ))

    def create_final_quiz(self, db: Session, user, document: Document,
                          num_questions: Optional[int] = None) -> Quiz:
        roadmap = self._roadmap(document)
        if not progress_service.final_quiz_unlocked(roadmap):
            raise AuthorizationError("Complete every phase of the roadmap to unlock the final assessment")

        topics = [phase["phaseName"] for phase in roadmap["phases"]]
        questions = self._generate(
            db, document, num_questions or settings.FINAL_QUIZ_QUESTIONS, topics, FINAL_DIFFICULTY_MIX
        )
        return self._save(db, user, document, Quiz(
            quiz_title=f"{roadmap.get('title') or document.file_name} - Final Assessment",
            quiz_type="final-quiz",
            topics_covered=topics,
            questions=questions,
        ))

    def submit(self, db: Session, user, quiz: Quiz, answers: Mapping[str, Any],
               time_taken: Optional[int] = None) -> Dict[str, Any]:
        """
        Score an attempt, keep the best one and update the score tracker

        Returns:
            Scoring result plus attemptNumber and bestAttempt
        """
        result = grading_service.score(quiz.questions, answers)
        attempt_number = len(quiz.attempts) + 1

        attempt = QuizAttempt(
            quiz_id=quiz.id,
            user_id=user.id,
            attempt_number=attempt_number,
            correct_count=result["correctCount"],
            percentage_score=result["percentageScore"],
            time_taken=time_taken,
            answers=result["review"],
        )
        db.add(attempt)

        best = quiz.best_attempt or {}
        if not best or result["percentageScore"] > best.get("percentageScore", -1):
            quiz.best_attempt = {
                "attemptNumber": attempt_number,
                "percentageScore": result["percentageScore"],
                "correctCount": result["correctCount"],
            }
        quiz.status = "completed"

        tracker = self.get_tracker(db, user, quiz.document_id, commit=False)
        self._update_tracker(tracker, quiz, result)

        db.commit()
        db.refresh(quiz)
        logger.info(f"Quiz {quiz.id} attempt {attempt_number}: {result['percentageScore']}%")

        return {
            **result,
            "quizId": str(quiz.id),
            "quizType": quiz.quiz_type,
            "attemptNumber": attempt_number,
            "bestAttempt": quiz.best_attempt,
        }

    def get_owned_quiz(self, db: Session, user, quiz_id) -> Quiz:
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")
        if quiz.user_id != user.id:
            raise AuthorizationError("Not authorized to access this quiz")
        return quiz

    def list_for_document(self, db: Session, user, document_id) -> List[Quiz]:
        return (
            db.query(Quiz)
            .filter(Quiz.user_id == user.id, Quiz.document_id == document_id)
            .order_by(Quiz.created_at)
            .all()
        )

    def get_tracker(self, db: Session, user, document_id, commit: bool = True) -> ScoreTracker:
        tracker = (
            db.query(ScoreTracker)
            .filter(ScoreTracker.user_id == user.id, ScoreTracker.document_id == document_id)
            .first()
        )
        if tracker is None:
            tracker = ScoreTracker(
                user_id=user.id,
                document_id=document_id,
                phase_scores=[],
                overall_score=0,
                total_questions_attempted=0,
                total_questions_correct=0,
                average_accuracy=0,
                learning_progress={"completedPhases": 0, "totalPhases": 0},
            )
            db.add(tracker)
            if commit:
                db.commit()
                db.refresh(tracker)
        return tracker

    # Internals

    def _roadmap(self, document: Document) -> Dict[str, Any]:
        if not document.roadmap:
            raise NotFoundError("Generate a roadmap for this document first")
        return document.roadmap

    def _generate(self, db: Session, document: Document, num_questions: int, topics: List[str],
                  difficulty_mix: str) -> List[Dict[str, Any]]:
        text = ensure_extracted_text(db, document)
        if len(text.strip()) < MIN_QUIZ_TEXT_CHARS:
            raise ValidationError("Document content is insufficient to generate a quiz")
        return ArtifactGenerator(self.gemini).generate_quiz(
            text, num_questions, focus=roadmap_quiz_focus(topics), difficulty_mix=difficulty_mix
        )

    def _save(self, db: Session, user, document: Document, quiz: Quiz) -> Quiz:
        quiz.user_id = user.id
        quiz.document_id = document.id
        quiz.total_questions = len(quiz.questions)
        quiz.status = "not-started"
        db.add(quiz)
        db.commit()
        db.refresh(quiz)
        logger.info(f"Created {quiz.quiz_type} {quiz.id} with {quiz.total_questions} questions")
        return quiz

    def _update_tracker(self, tracker: ScoreTracker, quiz: Quiz, result: Dict[str, Any]) -> None:
        """
        Module quiz: latest score per module
        Phase quiz: phase completed only when passed
        Final quiz: fills finalAssessment
        Phase score is the rounded mean of its module quiz scores and phase quiz score.
        """
        score = result["percentageScore"]
        phase_scores = [dict(entry) for entry in (tracker.phase_scores or [])]

        if quiz.quiz_type in ("module-quiz", "phase-quiz"):
            entry = next((p for p in phase_scores if p["phaseId"] == quiz.phase_id), None)
            if entry is None:
                entry = {
                    "phaseId": quiz.phase_id,
                    "phaseNumber": quiz.phase_number,
                    "phaseName": quiz.phase_name,
                    "moduleQuizzes": [],
                    "phaseQuizScore": None,
                    "phaseScore": 0,
                    "status": "in-progress",
                }
                phase_scores.append(entry)

            if quiz.quiz_type == "module-quiz":
                modules = [m for m in entry["moduleQuizzes"] if m["moduleId"] != quiz.module_id]
                modules.append({"moduleId": quiz.module_id, "moduleName": quiz.module_name, "score": score})
                entry["moduleQuizzes"] = modules
            else:
                entry["phaseQuizScore"] = score
                if result["passed"]:
                    entry["status"] = "completed"

            scores = [m["score"] for m in entry["moduleQuizzes"]]
            if entry["phaseQuizScore"] is not None:
                scores.append(entry["phaseQuizScore"])
            entry["phaseScore"] = round_percentage(sum(scores), len(scores) * 100) if scores else 0
            phase_scores.sort(key=lambda p: p.get("phaseNumber") or 0)
            tracker.phase_scores = phase_scores
        else:
            tracker.final_assessment = {
                "quizId": str(quiz.id),
                "score": score,
                "passed": result["passed"],
                "correctCount": result["correctCount"],
                "totalQuestions": result["totalQuestions"],
            }

        tracker.total_questions_attempted = (tracker.total_questions_attempted or 0) + result["totalQuestions"]
        tracker.total_questions_correct = (tracker.total_questions_correct or 0) + result["correctCount"]
        tracker.average_accuracy = round_percentage(
            tracker.total_questions_correct, tracker.total_questions_attempted
        )

        graded = [p["phaseScore"] for p in phase_scores]
        if tracker.final_assessment:
            graded.append(tracker.final_assessment["score"])
        tracker.overall_score = round_percentage(sum(graded), len(graded) * 100) if graded else 0

        total_phases = len((quiz.document.roadmap or {}).get("phases") or [])
        tracker.learning_progress = {
            "completedPhases": sum(1 for p in phase_scores if p["status"] == "completed"),
            "totalPhases": total_phases,
        }


def serialize_quiz(quiz: Quiz, include_answers: bool = False) -> Dict[str, Any]:
    questions = quiz.questions or []
    if not include_answers:
        questions = [
            {key: value for key, value in question.items() if key not in ("correctAnswer", "explanation")}
            for question in questions
        ]
    return {
        "_id": str(quiz.id),
        "documentId": str(quiz.document_id),
        "quizTitle": quiz.quiz_title,
        "quizType": quiz.quiz_type,
        "phaseId": quiz.phase_id,
        "phaseNumber": quiz.phase_number,
        "phaseName": quiz.phase_name,
        "moduleId": quiz.module_id,
        "moduleName": quiz.module_name,
        "topicsCovered": quiz.topics_covered or [],
        "questions": questions,
        "totalQuestions": quiz.total_questions,
        "status": quiz.status,
        "bestAttempt": quiz.best_attempt,
        "attempts": len(quiz.attempts),
    }


def serialize_tracker(tracker: ScoreTracker) -> Dict[str, Any]:
    return {
        "documentId": str(tracker.document_id),
        "phaseScores": tracker.phase_scores or [],
        "finalAssessment": tracker.final_assessment,
        "overallScore": tracker.overall_score,
        "totalQuestionsAttempted": tracker.total_questions_attempted,
        "totalQuestionsCorrect": tracker.total_questions_correct,
        "averageAccuracy": tracker.average_accuracy,
        "learningProgress": tracker.learning_progress or {},
    }


# Global instance
quiz_service = QuizService()
