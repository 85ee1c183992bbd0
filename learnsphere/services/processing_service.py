"""
Processing orchestrator

process() runs one document through the requested generators:

1. ownership check
2. credit guard (before any extraction or model call)
3. text extraction, once per document
4. generation lease per (document, artifact type)
5. generate every artifact
6. persist artifacts and charge credits in one transaction

Credits are only charged after every requested artifact was generated; a
failure leaves credits and stored artifacts untouched.
"""
import copy
import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.exceptions import LearnSphereError, ValidationError
from learnsphere.models import Document, User
from learnsphere.schemas.artifacts import SummaryArtifact
from learnsphere.services import credit_service, document_service
from learnsphere.services.artifact_generator import ArtifactGenerator
from learnsphere.services.gemini_service import GeminiService
from learnsphere.utils.lease import generation_lease

logger = logging.getLogger(__name__)

ARTIFACTS_FOR = {
    "summary": ["summary"],
    "quiz": ["quiz"],
    "mindmap": ["mindmap"],
    "roadmap": ["roadmap"],
    "comprehensive": ["summary", "quiz", "mindmap"],
}

RESULT_KEYS = {"summary": "summary", "quiz": "quiz", "mindmap": "mindMap", "roadmap": "roadmap"}


class ProcessingService:
    """Coordinates extraction, generation, persistence and credits"""

    def __init__(self, gemini: Optional[GeminiService] = None):
        self.gemini = gemini

    def process(
        self,
        db: Session,
        user: User,
        document_id,
        processing_type: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Generate the artifacts for one processing type

        Args:
            db: Database session
            user: Requesting user
            document_id: Document to process (must be owned by user)
            processing_type: summary / quiz / mindmap / roadmap / comprehensive
            options: summaryType, learnerLevel, numQuestions

        Raises:
            NotFoundError, InsufficientCreditsError, ExtractionFailedError,
            GenerationInProgressError, ExternalServiceError, GenerationFailedError
        """
        started = time.time()
        options = options or {}
        if processing_type not in ARTIFACTS_FOR:
            raise ValidationError(f"Unknown processing type: {processing_type}")

        document = document_service.get_owned_document(db, user.id, document_id)
        cost = credit_service.cost_of(processing_type)
        credit_service.ensure_can_afford(user, cost)

        artifact_types = ARTIFACTS_FOR[processing_type]
        config = self._build_config(document, processing_type, options)

        with generation_lease.hold(document.id, artifact_types):
            self._set_status(db, document, "processing", processing_type)
            try:
                text = document_service.ensure_extracted_text(db, document)
                generator = ArtifactGenerator(self.gemini)
                results = {
                    artifact_type: generator.generate(artifact_type, text, config)
                    for artifact_type in artifact_types
                }
            except Exception as e:
                self._mark_failed(db, document, processing_type, e)
                raise

            try:
                self._store(document, results, config)
                credit_service.charge(db, user, cost)
                document.processing_status = "completed"
                document.processing_type = processing_type
                document.processing_details = {
                    "artifacts": artifact_types,
                    "creditsUsed": 0 if user.is_subscribed else cost,
                    "processingTime": round(time.time() - started, 2),
                }
                db.commit()
            except Exception as e:
                db.rollback()
                self._mark_failed(db, document, processing_type, e)
                raise

        db.refresh(user)
        db.refresh(document)
        elapsed = round(time.time() - started, 2)
        logger.info(
            f"Processed document {document.id} ({processing_type}) in {elapsed}s, "
            f"credits left: {user.credits}"
        )

        return {
            "_id": str(document.id),
            "message": f"{processing_type.capitalize()} processing completed",
            "processingType": processing_type,
            "processingTime": elapsed,
            "results": {RESULT_KEYS[t]: self._stored(document, t) for t in artifact_types},
            "credits": user.credits,
            "isSubscribed": user.is_subscribed,
        }

    def _build_config(self, document: Document, processing_type: str, options: Dict[str, Any]) -> Dict[str, Any]:
        if processing_type == "comprehensive":
            summary_types = ["short", "medium", "detailed"]
        else:
            summary_types = [options.get("summaryType") or "short"]
        return {
            "summaryTypes": summary_types,
            "learnerLevel": options.get("learnerLevel") or document.learner_level or "beginner",
            "numQuestions": options.get("numQuestions") or settings.DEFAULT_QUIZ_QUESTIONS,
        }

    def _store(self, document: Document, results: Dict[str, Any], config: Dict[str, Any]) -> None:
        """Overwrite generated artifacts; summary lengths not regenerated are kept"""
        if "summary" in results:
            merged = SummaryArtifact().model_dump()
            merged.update(copy.deepcopy(document.summary or {}))
            merged.update(results["summary"])
            document.summary = merged
        if "quiz" in results:
            document.quiz = results["quiz"]
        if "mindmap" in results:
            document.mind_map = results["mindmap"]
        if "roadmap" in results:
            document.roadmap = results["roadmap"]
            document.learner_level = config["learnerLevel"]

    def _stored(self, document: Document, artifact_type: str) -> Any:
        return getattr(document, document_service.ARTIFACT_COLUMNS[artifact_type])

    def _set_status(self, db: Session, document: Document, status: str, processing_type: str) -> None:
        document.processing_status = status
        document.processing_type = processing_type
        db.commit()

    def _mark_failed(self, db: Session, document: Document, processing_type: str, error: Exception) -> None:
        if isinstance(error, LearnSphereError):
            reason = {"error": error.error_code, "message": error.message}
        else:
            reason = {"error": "INTERNAL_ERROR", "message": str(error)}
        logger.error(f"Processing {processing_type} failed for document {document.id}: {reason['message']}")

        document.processing_status = "failed"
        document.processing_type = processing_type
        document.processing_details = reason
        db.commit()


# Global instance
processing_service = ProcessingService()
