"""
Roadmap and report export (markdown, PDF)
"""
import io
import logging
import re
import textwrap
from typing import Any, Dict, List, Optional

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from learnsphere.services import progress_service

logger = logging.getLogger(__name__)

PHASE_HEADING = re.compile(r"^## Phase (\d+): (.+)$")
MODULE_HEADING = re.compile(r"^### (.+)$")
LESSON_ITEM = re.compile(r"^- \[( |x)\] (.+)$")


def _free_text(text: str) -> str:
    """Flatten model-written prose to one line that never reads as a heading or lesson"""
    line = " ".join(str(text).split())
    if PHASE_HEADING.match(line) or MODULE_HEADING.match(line) or LESSON_ITEM.match(line):
        line = "\\" + line
    return line


def roadmap_to_markdown(roadmap: Dict[str, Any], file_name: str = "") -> str:
    """
    Render a roadmap as markdown

    Layout:
        # Learning Roadmap: <title>
        ## Phase <n>: <phaseName>
        ### <module title>
        - [x] <lesson title>   (completed)
        - [ ] <lesson title>
    """
    progress = progress_service.progress_of(roadmap)
    completed = set(progress["completedLessons"])
    states = {state["phaseId"]: state for state in progress_service.phase_states(roadmap)}

    lines = [f"# Learning Roadmap: {roadmap.get('title') or file_name}", ""]
    if file_name:
        lines += [f"_Source document: {file_name}_", ""]
    if roadmap.get("overview"):
        lines += [_free_text(roadmap["overview"]), ""]
    lines += [f"**Overall progress:** {progress['overallProgress']}%", ""]

    if roadmap.get("learningOutcomes"):
        lines.append("**Learning outcomes:**")
        lines += [f"* {_free_text(outcome)}" for outcome in roadmap["learningOutcomes"]]
        lines.append("")

    for phase in roadmap.get("phases") or []:
        lines += [f"## Phase {phase['phaseNumber']}: {phase['phaseName']}", ""]
        if phase.get("description"):
            lines += [_free_text(phase["description"]), ""]
        if states[phase["phaseId"]]["isComplete"]:
            lines += ["_Phase complete_", ""]

        for module in phase.get("modules") or []:
            lines += [f"### {module['title']}", ""]
            for lesson in module.get("lessons") or []:
                mark = "x" if progress_service.lesson_key(module["moduleId"], lesson["lessonId"]) in completed else " "
                lines.append(f"- [{mark}] {lesson['title']}")
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def parse_roadmap_markdown(markdown: str) -> List[Dict[str, Any]]:
    """
    Read phase, module and lesson titles back from exported markdown

    Returns:
        [{phaseName, modules: [{title, lessons: [{title, completed}]}]}]
    """
    phases: List[Dict[str, Any]] = []
    module: Optional[Dict[str, Any]] = None

    for line in markdown.splitlines():
        phase_match = PHASE_HEADING.match(line)
        if phase_match:
            phases.append({"phaseNumber": int(phase_match.group(1)), "phaseName": phase_match.group(2), "modules": []})
            module = None
            continue

        module_match = MODULE_HEADING.match(line)
        if module_match and phases:
            module = {"title": module_match.group(1), "lessons": []}
            phases[-1]["modules"].append(module)
            continue

        lesson_match = LESSON_ITEM.match(line)
        if lesson_match and module is not None:
            module["lessons"].append({"title": lesson_match.group(2), "completed": lesson_match.group(1) == "x"})

    return phases


def _render_pdf(title: str, lines: List[str]) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    width, height = letter
    c.setTitle(title)

    textobject = c.beginText(40, height - 50)
    textobject.setFont("Helvetica", 11)

    for raw in lines:
        for line in textwrap.wrap(raw, 95) or [""]:
            textobject.textLine(line)
            if textobject.getY() < 50:
                c.drawText(textobject)
                c.showPage()
                textobject = c.beginText(40, height - 50)
                textobject.setFont("Helvetica", 11)

    c.drawText(textobject)
    c.showPage()
    c.save()
    return buf.getvalue()


def roadmap_to_pdf(roadmap: Dict[str, Any], file_name: str = "") -> bytes:
    markdown = roadmap_to_markdown(roadmap, file_name)
    lines = [line.lstrip("#").strip() if line.startswith("#") else line for line in markdown.splitlines()]
    return _render_pdf(f"Learning Roadmap - {file_name}", lines)


def document_report_pdf(document, report_type: str = "full") -> bytes:
    """Study report: summary, key insights, latest quiz result, roadmap progress"""
    summary = document.summary or {}
    lines = [f"Study Report: {document.file_name}", ""]

    text = summary.get("medium") or summary.get("short") or summary.get("detailed")
    lines += ["SUMMARY", ""]
    lines += (text or "No summary generated yet.").splitlines()
    lines.append("")

    if summary.get("keyInsights"):
        lines += ["KEY INSIGHTS", ""]
        lines += [f"- {insight}" for insight in summary["keyInsights"]]
        lines.append("")

    if report_type == "full":
        results = document.quiz_results or []
        lines += ["QUIZ PERFORMANCE", ""]
        if results:
            latest = results[-1]
            lines.append(
                f"Latest score: {latest['score']}/{latest['totalQuestions']} "
                f"({latest['percentage']}%) - {latest['performanceLevel']}"
            )
            if latest.get("topicsToFocus"):
                lines.append(f"Topics to focus on: {', '.join(latest['topicsToFocus'])}")
            lines.append(f"Attempts: {len(results)}")
        else:
            lines.append("No quiz attempts yet.")
        lines.append("")

        if document.roadmap:
            progress = progress_service.progress_of(document.roadmap)
            lines += ["ROADMAP PROGRESS", "", f"Overall progress: {progress['overallProgress']}%"]

    logger.info(f"Rendering {report_type} report for document {document.id}")
    return _render_pdf(f"Study Report - {document.file_name}", lines)
