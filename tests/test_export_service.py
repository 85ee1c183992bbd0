"""
Tests for roadmap and report export
"""
import copy
from types import SimpleNamespace

import pytest

from conftest import FAKE_ROADMAP
from learnsphere.schemas.artifacts import RoadmapDraft
from learnsphere.services import export_service, progress_service
from learnsphere.services.artifact_generator import build_roadmap


@pytest.fixture
def roadmap():
    roadmap = build_roadmap(RoadmapDraft.model_validate(copy.deepcopy(FAKE_ROADMAP)), "beginner")
    roadmap = progress_service.toggle_lesson(roadmap, "mod_p1_m1", "lesson_2")
    return progress_service.toggle_lesson(roadmap, "mod_p1_m2", "lesson_1")


def test_markdown_layout(roadmap):
    markdown = export_service.roadmap_to_markdown(roadmap, "photosynthesis.pdf")

    assert markdown.startswith("# Learning Roadmap: Photosynthesis Roadmap\n")
    assert "## Phase 1: Photosynthesis - Foundation & Core Concepts" in markdown
    assert "### Light Basics" in markdown
    assert "- [ ] What Is Light" in markdown
    assert "- [x] Chlorophyll Pigments" in markdown
    assert "**Overall progress:** 40%" in markdown


def test_markdown_round_trip(roadmap):
    parsed = export_service.parse_roadmap_markdown(export_service.roadmap_to_markdown(roadmap))

    assert [phase["phaseName"] for phase in parsed] == [phase["phaseName"] for phase in roadmap["phases"]]
    completed = set(roadmap["progressTracking"]["completedLessons"])
    for parsed_phase, phase in zip(parsed, roadmap["phases"]):
        assert parsed_phase["phaseNumber"] == phase["phaseNumber"]
        assert [m["title"] for m in parsed_phase["modules"]] == [m["title"] for m in phase["modules"]]
        for parsed_module, module in zip(parsed_phase["modules"], phase["modules"]):
            assert parsed_module["lessons"] == [
                {
                    "title": lesson["title"],
                    "completed": progress_service.lesson_key(module["moduleId"], lesson["lessonId"]) in completed,
                }
                for lesson in module["lessons"]
            ]


def test_round_trip_ignores_markdown_in_descriptions(roadmap):
    roadmap["overview"] = "## Phase 9: Not a phase\n- [x] not a lesson"
    roadmap["phases"][0]["description"] = "Core ideas\n### Why it matters\n- [ ] read chapter 1"
    roadmap["phases"][1]["description"] = "### Looks like a module"

    markdown = export_service.roadmap_to_markdown(roadmap)
    parsed = export_service.parse_roadmap_markdown(markdown)

    assert [phase["phaseNumber"] for phase in parsed] == [1, 2]
    assert [m["title"] for m in parsed[0]["modules"]] == ["Light Basics", "Leaf Structure"]
    assert [m["title"] for m in parsed[1]["modules"]] == ["Calvin Cycle"]
    assert "Core ideas ### Why it matters - [ ] read chapter 1" in markdown
    assert "\\### Looks like a module" in markdown


def test_roadmap_pdf(roadmap):
    content = export_service.roadmap_to_pdf(roadmap, "photosynthesis.pdf")
    assert content.startswith(b"%PDF")


def test_document_report_pdf():
    document = SimpleNamespace(
        id="doc-1",
        file_name="photosynthesis.pdf",
        summary={"short": "- Plants make sugar", "keyInsights": ["Light drives the process."]},
        quiz_results=[{
            "score": 4,
            "totalQuestions": 5,
            "percentage": 80,
            "performanceLevel": "Good",
            "topicsToFocus": ["Calvin Cycle"],
        }],
        roadmap=None,
    )
    assert export_service.document_report_pdf(document, "full").startswith(b"%PDF")
    assert export_service.document_report_pdf(document, "summary").startswith(b"%PDF")
