"""
Tests for response parsing, question normalization and artifact generation
"""
import copy

import pytest

from conftest import FAKE_ROADMAP, STUDY_TEXT
from learnsphere.config import settings
from learnsphere.exceptions import GenerationFailedError, ValidationError
from learnsphere.schemas.artifacts import RoadmapDraft
from learnsphere.services.artifact_generator import (
    ArtifactGenerator,
    build_roadmap,
    normalize_questions,
    resolve_answer,
)
from learnsphere.services.gemini_service import parse_json_response

OPTIONS = ["A cell wall", "Nucleus", "Mitochondria", "Chloroplast"]
TEXT = "\n".join(STUDY_TEXT)


class TestParseJsonResponse:

    def test_plain_json(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_markdown_fences(self):
        assert parse_json_response('```json\n[1, 2]\n```', expected=list) == [1, 2]

    def test_surrounding_prose(self):
        text = 'Here is the quiz:\n[{"question": "Q?"}]\nGood luck!'
        assert parse_json_response(text, expected=list) == [{"question": "Q?"}]

    def test_object_inside_prose(self):
        text = 'Sure. {"phases": [1]} Hope this helps.'
        assert parse_json_response(text, expected=dict) == {"phases": [1]}

    def test_unexpected_kind(self):
        with pytest.raises(GenerationFailedError):
            parse_json_response('{"a": 1}', expected=list)

    def test_garbage(self):
        with pytest.raises(GenerationFailedError):
            parse_json_response("I cannot help with that.")


class TestResolveAnswer:

    @pytest.mark.parametrize(
        "answer,expected",
        [
            ("Nucleus", "Nucleus"),
            ("nucleus", "Nucleus"),
            ("A cell wall", "A cell wall"),
            ("B", "Nucleus"),
            ("(c)", "Mitochondria"),
            ("D) Chloroplast", "Chloroplast"),
            ("B. nucleus", "Nucleus"),
            (2, "Mitochondria"),
            ("3", "Chloroplast"),
        ],
    )
    def test_resolves(self, answer, expected):
        assert resolve_answer(OPTIONS, answer) == expected

    @pytest.mark.parametrize("answer", [None, "", "Ribosome", 7, True, "E"])
    def test_unresolvable(self, answer):
        assert resolve_answer(OPTIONS, answer) is None


def test_normalize_questions_keeps_only_valid():
    raw = [
        {"question": "Q1?", "options": OPTIONS, "correctAnswer": "B", "topic": "Cells"},
        {"question": "Q2?", "options": OPTIONS[:3], "correctAnswer": "Nucleus"},
        {"question": "Q3?", "options": OPTIONS, "correctAnswer": "Ribosome"},
        {"question": "Q4?", "options": ["x", "x", "y", "z"], "correctAnswer": "x"},
        {"options": OPTIONS, "correctAnswer": "Nucleus"},
        {"text": "Q6?", "options": OPTIONS, "answer": 3, "difficulty": "HARD"},
    ]
    questions = normalize_questions(raw)

    assert [q["id"] for q in questions] == ["q1", "q2"]
    assert questions[0]["correctAnswer"] == "Nucleus"
    assert questions[0]["topic"] == "Cells"
    assert questions[1]["text"] == "Q6?"
    assert questions[1]["correctAnswer"] == "Chloroplast"
    assert questions[1]["difficulty"] == "hard"
    assert questions[1]["topic"] == "General"
    for question in questions:
        assert question["correctAnswer"] in question["options"]


def test_build_roadmap_assigns_ids():
    payload = copy.deepcopy(FAKE_ROADMAP)
    payload["phases"][0]["modules"].append({"title": "Empty Module", "lessons": []})
    roadmap = build_roadmap(RoadmapDraft.model_validate(payload), "intermediate")

    assert [p["phaseId"] for p in roadmap["phases"]] == ["phase_1", "phase_2"]
    assert [m["moduleId"] for m in roadmap["phases"][0]["modules"]] == ["mod_p1_m1", "mod_p1_m2"]
    assert [l["lessonId"] for l in roadmap["phases"][1]["modules"][0]["lessons"]] == ["lesson_1", "lesson_2"]
    assert roadmap["learnerLevel"] == "intermediate"
    assert roadmap["phases"][1]["phaseTopics"] == []
    assert roadmap["phases"][0]["modules"][0]["lessons"][0]["examples"] == []
    assert roadmap["progressTracking"]["currentPhase"] == "phase_1"
    assert roadmap["progressTracking"]["completedLessons"] == []


def test_build_roadmap_without_lessons_fails():
    draft = RoadmapDraft.model_validate({"phases": [{"phaseName": "Only", "modules": [{"title": "Empty"}]}]})
    with pytest.raises(GenerationFailedError):
        build_roadmap(draft, "beginner")


class TestArtifactGenerator:

    def test_summary_contains_only_requested_lengths(self, fake_model):
        summary = ArtifactGenerator().generate("summary", TEXT, {"summaryTypes": ["short"]})

        assert set(summary) == {"short", "keyInsights"}
        assert summary["short"] == "- Short summary point"
        assert len(summary["keyInsights"]) == 8

    def test_quiz_is_canonical(self, fake_model):
        questions = ArtifactGenerator().generate("quiz", TEXT, {"numQuestions": 6})

        assert len(questions) == 6
        for number, question in enumerate(questions, start=1):
            assert question["id"] == f"q{number}"
            assert question["correctAnswer"] == f"Beta {number}"
            assert len(question["options"]) == 4

    def test_quiz_accepts_wrapped_payload(self, fake_model):
        fake_model.overrides["multiple-choice quiz"] = (
            '{"questions": [{"question": "Q?", "options": ["a", "b", "c", "d"], "correctAnswer": "d"}]}'
        )
        questions = ArtifactGenerator().generate_quiz(TEXT, 3)
        assert [q["correctAnswer"] for q in questions] == ["d"]

    def test_quiz_without_usable_questions(self, fake_model):
        fake_model.overrides["multiple-choice quiz"] = '[{"question": "Q?", "options": ["a", "b"]}]'
        with pytest.raises(GenerationFailedError):
            ArtifactGenerator().generate_quiz(TEXT, 3)

    def test_roadmap(self, fake_model):
        roadmap = ArtifactGenerator().generate("roadmap", TEXT, {"learnerLevel": "advanced"})
        assert roadmap["title"] == "Photosynthesis Roadmap"
        assert roadmap["learnerLevel"] == "advanced"
        assert "advanced learner" in fake_model.calls[-1]

    def test_roadmap_unknown_level(self, fake_model):
        with pytest.raises(ValidationError):
            ArtifactGenerator().generate_roadmap(TEXT, "expert")
        assert fake_model.calls == []

    def test_mindmap_is_local(self, fake_model):
        mind_map = ArtifactGenerator().generate("mindmap", TEXT)
        assert mind_map["metadata"]["method"] == "rule-based"
        assert fake_model.calls == []

    def test_empty_text_is_rejected_before_model_calls(self, fake_model):
        with pytest.raises(ValidationError) as exc_info:
            ArtifactGenerator().generate("summary", "   ")
        assert exc_info.value.error_code == "EMPTY_DOCUMENT"
        assert fake_model.calls == []

    def test_unknown_type(self, fake_model):
        with pytest.raises(ValidationError):
            ArtifactGenerator().generate("flashcards", TEXT)

    def test_long_document_is_condensed_once(self, fake_model, monkeypatch):
        monkeypatch.setattr(settings, "PROMPT_CHAR_BUDGET", 300)
        monkeypatch.setattr(settings, "CHUNK_CHARS", 250)
        long_text = "\n\n".join(f"Paragraph {i}. " + "Chlorophyll absorbs light. " * 6 for i in range(6))

        generator = ArtifactGenerator()
        generator.generate("summary", long_text, {"summaryTypes": ["short"]})
        generator.generate("quiz", long_text, {"numQuestions": 2})

        condense_calls = [p for p in fake_model.calls if "preparing study notes" in p]
        assert len(condense_calls) == 6
        summary_prompt = next(p for p in fake_model.calls if "5-7 bullet points" in p)
        assert "Condensed notes for part 1." in summary_prompt
        assert "Paragraph 0." not in summary_prompt
