"""
Tests for the local mind map builder
"""
import pytest

from conftest import STUDY_TEXT
from learnsphere.exceptions import ValidationError
from learnsphere.services.mindmap_service import mindmap_service


def assert_well_formed(mind_map):
    ids = [node["id"] for node in mind_map["nodes"]]
    assert len(ids) == len(set(ids))
    for edge in mind_map["edges"]:
        assert edge["source"] in ids
        assert edge["target"] in ids
    assert mind_map["metadata"]["nodeCount"] == len(mind_map["nodes"])
    assert mind_map["metadata"]["edgeCount"] == len(mind_map["edges"])


@pytest.mark.parametrize("text", ["", "   \n  ", None])
def test_empty_text(text):
    mind_map = mindmap_service.generate(text)

    assert mind_map["nodes"] == []
    assert mind_map["edges"] == []
    assert mind_map["metadata"]["method"] == "empty"
    assert mind_map["metadata"]["confidence"] == 0.0


def test_structured_text_uses_rules():
    mind_map = mindmap_service.generate("\n".join(STUDY_TEXT))
    assert_well_formed(mind_map)

    assert mind_map["metadata"]["method"] == "rule-based"
    root = mind_map["nodes"][0]
    assert root["id"] == "root"
    assert root["type"] == "input"
    assert root["data"]["label"] == "Introduction To Photosynthesis"
    assert root["position"] == {"x": 0.0, "y": 0.0}

    headings = [n["data"]["label"] for n in mind_map["nodes"] if n["data"]["level"] == 1]
    assert "Light Reactions" in headings
    assert "Calvin Cycle" in headings

    light = next(n["id"] for n in mind_map["nodes"] if n["data"]["label"] == "Light Reactions")
    children = [e["target"] for e in mind_map["edges"] if e["source"] == light]
    assert len(children) == 3


def test_unstructured_text_falls_back_to_keywords():
    text = (
        "Photosynthesis converts light energy into chemical energy in plants and the energy is stored in glucose "
        "while chlorophyll captures light and glucose feeds the plant and chlorophyll gives leaves their colour "
        "so that light energy becomes glucose energy for growth."
    )
    mind_map = mindmap_service.generate(text)
    assert_well_formed(mind_map)

    assert mind_map["metadata"]["method"] == "statistical"
    assert mind_map["nodes"][0]["data"]["label"] == "Central Topic"
    labels = [n["data"]["label"] for n in mind_map["nodes"] if n["data"]["level"] == 1]
    assert "Energy" in labels
    assert len(labels) <= mindmap_service.KEYWORD_COUNT


def test_node_limit():
    lines = ["Big Topic"]
    for section in range(1, 30):
        lines.append(f"{section}. Section {section}")
        lines += [f"- point {section} {item}" for item in range(10)]
    mind_map = mindmap_service.generate("\n".join(lines))
    assert_well_formed(mind_map)
    assert len(mind_map["nodes"]) <= mindmap_service.MAX_NODES


def test_validate_edit_accepts_consistent_graph():
    nodes = [{"id": "root"}, {"id": "a"}]
    edges = [{"source": "root", "target": "a"}]
    edited = mindmap_service.validate_edit(nodes, edges)
    assert edited["edges"][0]["id"] == "e-root-a"


def test_validate_edit_rejects_duplicates_and_dangling_edges():
    with pytest.raises(ValidationError):
        mindmap_service.validate_edit([{"id": "a"}, {"id": "a"}], [])
    with pytest.raises(ValidationError):
        mindmap_service.validate_edit([{"id": "a"}], [{"source": "a", "target": "b"}])
