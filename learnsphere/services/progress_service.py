"""
Roadmap progress tracking

Only lesson and module completion is stored. Phase completion and quiz
unlocks are derived from completedModules every time they are read.
"""
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from learnsphere.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def lesson_key(module_id: str, lesson_id: str) -> str:
    """Lesson ids repeat across modules, so completion is keyed by both"""
    return f"{module_id}:{lesson_id}"


def is_module_complete(module: Dict[str, Any], completed_lessons: Iterable[str]) -> bool:
    completed = set(completed_lessons)
    lessons = module.get("lessons") or []
    return bool(lessons) and all(
        lesson_key(module["moduleId"], lesson["lessonId"]) in completed for lesson in lessons
    )


def is_phase_complete(phase: Dict[str, Any], completed_modules: Iterable[str]) -> bool:
    completed = set(completed_modules)
    modules = phase.get("modules") or []
    return bool(modules) and all(module["moduleId"] in completed for module in modules)


def progress_of(roadmap: Dict[str, Any]) -> Dict[str, Any]:
    progress = roadmap.get("progressTracking") or {}
    return {
        "completedLessons": list(progress.get("completedLessons") or []),
        "completedModules": list(progress.get("completedModules") or []),
        "currentPhase": progress.get("currentPhase"),
        "overallProgress": progress.get("overallProgress", 0),
        "lastUpdated": progress.get("lastUpdated"),
    }


def find_phase(roadmap: Dict[str, Any], phase_id: str) -> Dict[str, Any]:
    for phase in roadmap.get("phases") or []:
        if phase["phaseId"] == phase_id:
            return phase
    raise NotFoundError(f"Phase {phase_id} not found in roadmap")


def find_module(roadmap: Dict[str, Any], module_id: str) -> Dict[str, Any]:
    for phase in roadmap.get("phases") or []:
        for module in phase.get("modules") or []:
            if module["moduleId"] == module_id:
                return module
    raise NotFoundError(f"Module {module_id} not found in roadmap")


def phase_of_module(roadmap: Dict[str, Any], module_id: str) -> Dict[str, Any]:
    for phase in roadmap.get("phases") or []:
        if any(module["moduleId"] == module_id for module in phase.get("modules") or []):
            return phase
    raise NotFoundError(f"Module {module_id} not found in roadmap")


def all_lesson_keys(roadmap: Dict[str, Any]) -> List[str]:
    return [
        lesson_key(module["moduleId"], lesson["lessonId"])
        for phase in roadmap.get("phases") or []
        for module in phase.get("modules") or []
        for lesson in module.get("lessons") or []
    ]


def recompute(roadmap: Dict[str, Any], completed_lessons: List[str]) -> Dict[str, Any]:
    """Rebuild completedModules and overallProgress from completedLessons"""
    valid = all_lesson_keys(roadmap)
    # Roadmap order, unknown keys dropped
    completed_set = set(completed_lessons)
    completed_lessons = [key for key in valid if key in completed_set]

    completed_modules = [
        module["moduleId"]
        for phase in roadmap.get("phases") or []
        for module in phase.get("modules") or []
        if is_module_complete(module, completed_lessons)
    ]
    overall = round(len(completed_lessons) / len(valid) * 100) if valid else 0

    progress = progress_of(roadmap)
    progress.update({
        "completedLessons": completed_lessons,
        "completedModules": completed_modules,
        "overallProgress": overall,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    })
    return progress


def toggle_lesson(
    roadmap: Dict[str, Any],
    module_id: str,
    lesson_id: str,
    phase_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Toggle a lesson in or out of completedLessons

    Returns a new roadmap dict; the input is not mutated. Module completion
    is recomputed for every module right after the toggle.
    """
    module = find_module(roadmap, module_id)
    if not any(lesson["lessonId"] == lesson_id for lesson in module.get("lessons") or []):
        raise NotFoundError(f"Lesson {lesson_id} not found in module {module_id}")
    if phase_id is not None:
        owner = phase_of_module(roadmap, module_id)
        if owner["phaseId"] != phase_id:
            raise ValidationError(f"Module {module_id} does not belong to phase {phase_id}")

    key = lesson_key(module_id, lesson_id)
    completed = progress_of(roadmap)["completedLessons"]
    if key in completed:
        completed.remove(key)
    else:
        completed.append(key)

    updated = copy.deepcopy(roadmap)
    updated["progressTracking"] = recompute(roadmap, completed)
    if phase_id is not None:
        updated["progressTracking"]["currentPhase"] = phase_id

    logger.debug(f"Toggled {key}: {key in completed}")
    return updated


def phase_states(roadmap: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Derived per-phase completion and quiz unlock flags"""
    progress = progress_of(roadmap)
    states = []
    for phase in roadmap.get("phases") or []:
        complete = is_phase_complete(phase, progress["completedModules"])
        module_ids = [module["moduleId"] for module in phase.get("modules") or []]
        states.append({
            "phaseId": phase["phaseId"],
            "isComplete": complete,
            "quizUnlocked": complete,
            "completedModules": sum(1 for m in module_ids if m in progress["completedModules"]),
            "totalModules": len(module_ids),
        })
    return states


def module_quiz_unlocked(roadmap: Dict[str, Any], module_id: str) -> bool:
    return is_module_complete(find_module(roadmap, module_id), progress_of(roadmap)["completedLessons"])


def phase_quiz_unlocked(roadmap: Dict[str, Any], phase_id: str) -> bool:
    return is_phase_complete(find_phase(roadmap, phase_id), progress_of(roadmap)["completedModules"])


def final_quiz_unlocked(roadmap: Dict[str, Any]) -> bool:
    phases = roadmap.get("phases") or []
    completed_modules = progress_of(roadmap)["completedModules"]
    return bool(phases) and all(is_phase_complete(phase, completed_modules) for phase in phases)


def with_derived_state(roadmap: Dict[str, Any]) -> Dict[str, Any]:
    """Roadmap payload for the client, including read-time derived flags"""
    return {
        **roadmap,
        "phaseStates": phase_states(roadmap),
        "finalQuizUnlocked": final_quiz_unlocked(roadmap),
    }
