"""
Artifact generation: prompt, call the model, parse, validate, fill defaults
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as SchemaError

from learnsphere.config import settings
from learnsphere.exceptions import GenerationFailedError, ValidationError
from learnsphere.schemas.artifacts import RawQuestion, RoadmapDraft, SummaryArtifact
from learnsphere.services import prompts
from learnsphere.services.chunking import fit_to_budget
from learnsphere.services.gemini_service import GeminiService, gemini_service
from learnsphere.services.mindmap_service import mindmap_service

logger = logging.getLogger(__name__)

ARTIFACT_TYPES = ("summary", "quiz", "mindmap", "roadmap")
SUMMARY_TYPES = ("short", "medium", "detailed")
LETTER_ANSWER = re.compile(r"^\(?([A-Da-d])\)?(?:[.):]\s*(.*))?$")


def resolve_answer(options: List[str], answer: Any) -> Optional[str]:
    """
    Map a model-provided answer (option text, index or letter) to the option text

    Returns None when the answer does not identify exactly one option.
    """
    if isinstance(answer, bool) or answer is None:
        return None

    if isinstance(answer, int):
        return options[answer] if 0 <= answer < len(options) else None

    answer = " ".join(str(answer).split())
    if not answer:
        return None
    if answer in options:
        return answer

    lowered = [option.lower() for option in options]
    if answer.lower() in lowered:
        return options[lowered.index(answer.lower())]

    if answer.isdigit():
        return resolve_answer(options, int(answer))

    match = LETTER_ANSWER.match(answer)
    if match:
        letter, rest = match.group(1).upper(), (match.group(2) or "").strip()
        if rest and rest.lower() in lowered:
            return options[lowered.index(rest.lower())]
        index = ord(letter) - ord("A")
        return options[index] if index < len(options) else None

    return None


def normalize_questions(items: Iterable[Any], id_prefix: str = "q") -> List[Dict[str, Any]]:
    """
    Convert raw model questions into the stored shape

    Every stored question has exactly 4 options and a correctAnswer equal to
    one of them; anything else is dropped.
    """
    questions = []
    for position, item in enumerate(items, start=1):
        try:
            raw = RawQuestion.model_validate(item)
        except SchemaError as e:
            logger.warning(f"Dropping malformed question {position}: {e.error_count()} errors")
            continue

        if len(raw.options) != 4 or len(set(raw.options)) != 4:
            logger.warning(f"Dropping question {position}: expected 4 distinct options, got {len(raw.options)}")
            continue

        correct = resolve_answer(raw.options, raw.correctAnswer)
        if correct is None:
            logger.warning(f"Dropping question {position}: answer {raw.correctAnswer!r} matches no option")
            continue

        questions.append({
            "id": f"{id_prefix}{len(questions) + 1}",
            "text": raw.text,
            "options": raw.options,
            "correctAnswer": correct,
            "explanation": raw.explanation,
            "difficulty": raw.difficulty,
            "topic": raw.topic,
        })
    return questions


def empty_progress(first_phase_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "completedLessons": [],
        "completedModules": [],
        "currentPhase": first_phase_id,
        "overallProgress": 0,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }


def build_roadmap(draft: RoadmapDraft, learner_level: str) -> Dict[str, Any]:
    """Assign stable ids (phase_N, mod_pN_mM, lesson_K) and attach fresh progress"""
    phases = []
    for phase in draft.phases:
        modules = []
        for module in phase.modules:
            if not module.lessons:
                continue
            phase_number = len(phases) + 1
            module_number = len(modules) + 1
            modules.append({
                "moduleId": f"mod_p{phase_number}_m{module_number}",
                "moduleNumber": module_number,
                "title": module.title,
                "description": module.description,
                "keyTerms": module.keyTerms,
                "lessons": [
                    {
                        "lessonId": f"lesson_{lesson_number}",
                        "title": lesson.title,
                        "description": lesson.description,
                        "duration": lesson.duration,
                        "keyPoints": lesson.keyPoints,
                        "examples": lesson.examples,
                    }
                    for lesson_number, lesson in enumerate(module.lessons, start=1)
                ],
            })
        if not modules:
            continue
        phase_number = len(phases) + 1
        phases.append({
            "phaseId": f"phase_{phase_number}",
            "phaseNumber": phase_number,
            "phaseName": phase.title,
            "description": phase.description,
            "duration": phase.duration,
            "learningObjectives": phase.learningObjectives,
            "phaseTopics": phase.phaseTopics,
            "modules": modules,
        })

    if not phases:
        raise GenerationFailedError("The AI returned a roadmap without any lessons. Please try again.")

    main_topic = draft.mainTopic or draft.title or phases[0]["phaseName"]
    return {
        "title": draft.title or main_topic,
        "overview": draft.overview,
        "mainTopic": main_topic,
        "subTopics": draft.subTopics,
        "learningOutcomes": draft.learningOutcomes,
        "estimatedDuration": draft.estimatedDuration,
        "learnerLevel": learner_level,
        "phases": phases,
        "progressTracking": empty_progress(phases[0]["phaseId"]),
    }


class ArtifactGenerator:
    """
    Builds artifacts for one request

    The budget-fitted prompt content is computed once per generator, so a
    comprehensive request condenses a long document only once.
    """

    def __init__(self, gemini: Optional[GeminiService] = None):
        self.gemini = gemini or gemini_service
        self._content: Dict[int, str] = {}

    def generate(self, artifact_type: str, extracted_text: str, config: Optional[Dict[str, Any]] = None) -> Any:
        """
        Generate one artifact

        Args:
            artifact_type: summary / quiz / mindmap / roadmap
            extracted_text: Document text
            config: summaryTypes, learnerLevel, numQuestions, focus

        Raises:
            ValidationError: unknown type, or no text for a model-backed artifact
            ExternalServiceError / GenerationFailedError: model call or parsing failed
        """
        config = config or {}
        if artifact_type not in ARTIFACT_TYPES:
            raise ValidationError(f"Unknown artifact type: {artifact_type}")

        if artifact_type == "mindmap":
            return mindmap_service.generate(extracted_text)

        if not extracted_text or not extracted_text.strip():
            raise ValidationError(
                "This document has no readable text to process", error_code="EMPTY_DOCUMENT"
            )

        if artifact_type == "summary":
            return self.generate_summary(extracted_text, config.get("summaryTypes") or ["short"])
        if artifact_type == "quiz":
            return self.generate_quiz(
                extracted_text,
                config.get("numQuestions") or settings.DEFAULT_QUIZ_QUESTIONS,
                focus=config.get("focus", ""),
            )
        return self.generate_roadmap(extracted_text, config.get("learnerLevel") or "beginner")

    def prompt_content(self, extracted_text: str) -> str:
        key = hash(extracted_text)
        if key not in self._content:
            self._content[key] = fit_to_budget(extracted_text, self._condense)
        return self._content[key]

    def _condense(self, chunk: str, index: int, total: int) -> str:
        return self.gemini.generate_text(prompts.condense_prompt(chunk, index, total))

    def generate_summary(self, extracted_text: str, summary_types: List[str]) -> Dict[str, Any]:
        """Generate the requested summary lengths plus key insights"""
        content = self.prompt_content(extracted_text)
        summary: Dict[str, Any] = {}

        for summary_type in summary_types:
            if summary_type not in SUMMARY_TYPES:
                raise ValidationError(f"Unknown summary type: {summary_type}")
            summary[summary_type] = self.gemini.generate_text(prompts.summary_prompt(content, summary_type))

        insights = self.gemini.generate_json(prompts.key_insights_prompt(content), expected=list)
        summary["keyInsights"] = [" ".join(str(item).split()) for item in insights if str(item).strip()][:8]

        try:
            validated = SummaryArtifact.model_validate(summary)
        except SchemaError as e:
            raise GenerationFailedError("The AI returned an invalid summary. Please try again.") from e

        logger.info(f"Summary generated: {', '.join(summary_types)} with {len(validated.keyInsights)} insights")
        return validated.model_dump(include=set(summary.keys()))

    def generate_quiz(
        self,
        extracted_text: str,
        num_questions: int,
        focus: str = "",
        difficulty_mix: str = "",
    ) -> List[Dict[str, Any]]:
        """Generate a multiple-choice quiz in canonical form"""
        content = self.prompt_content(extracted_text)
        payload = self.gemini.generate_json(
            prompts.quiz_prompt(content, num_questions, focus=focus, difficulty_mix=difficulty_mix)
        )

        if isinstance(payload, dict):
            payload = payload.get("questions")
        if not isinstance(payload, list):
            raise GenerationFailedError("The AI returned a quiz in an unexpected format. Please try again.")

        questions = normalize_questions(payload[:num_questions])
        if not questions:
            raise GenerationFailedError("The AI did not return any usable quiz questions. Please try again.")

        if len(questions) < num_questions:
            logger.warning(f"Requested {num_questions} questions, kept {len(questions)}")
        logger.info(f"Quiz generated: {len(questions)} questions")
        return questions

    def generate_roadmap(self, extracted_text: str, learner_level: str) -> Dict[str, Any]:
        """Generate a phase/module/lesson roadmap with stable ids"""
        if learner_level not in prompts.LEVEL_GUIDANCE:
            raise ValidationError(f"Unknown learner level: {learner_level}")

        content = self.prompt_content(extracted_text)
        payload = self.gemini.generate_json(prompts.roadmap_prompt(content, learner_level), expected=dict)
        if "roadmap" in payload and isinstance(payload["roadmap"], dict):
            payload = payload["roadmap"]

        try:
            draft = RoadmapDraft.model_validate(payload)
        except SchemaError as e:
            logger.error(f"Roadmap failed validation: {e.error_count()} errors")
            raise GenerationFailedError("The AI returned an invalid roadmap. Please try again.") from e

        roadmap = build_roadmap(draft, learner_level)
        lesson_total = sum(len(m["lessons"]) for p in roadmap["phases"] for m in p["modules"])
        logger.info(f"Roadmap generated: {len(roadmap['phases'])} phases, {lesson_total} lessons")
        return roadmap
