"""
Shared fixtures: in-memory database, fake Gemini model, PDFs, authenticated clients
"""
import io
import json
import os
import re
import tempfile
from types import SimpleNamespace

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = "test-key"
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "development"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="learnsphere-uploads-")
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "100000"
os.environ["AI_RATE_LIMIT_PER_MINUTE"] = "100000"

import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from learnsphere.database import Base, get_db
from learnsphere.main import app
from learnsphere.models import User
from learnsphere.services.gemini_service import gemini_service

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


STUDY_TEXT = [
    "Introduction to Photosynthesis",
    "1. Light Reactions",
    "- Occur in the thylakoid membranes of the chloroplast",
    "- Chlorophyll absorbs red and blue light",
    "- Water is split and oxygen is released",
    "2. Calvin Cycle",
    "- Takes place in the stroma",
    "- Carbon dioxide is fixed by the enzyme rubisco",
    "- ATP and NADPH from the light reactions are consumed",
    "3. Factors Affecting the Rate",
    "- Light intensity and wavelength",
    "- Carbon dioxide concentration",
    "- Temperature and enzyme activity",
    "Photosynthesis converts light energy into chemical energy stored in glucose.",
    "Plants, algae and some bacteria rely on this process to produce their food.",
    "The overall reaction combines carbon dioxide and water to form glucose and oxygen.",
    "Understanding photosynthesis explains how energy enters almost every food chain.",
]

FAKE_ROADMAP = {
    "title": "Photosynthesis Roadmap",
    "overview": "From light absorption to sugar production.",
    "mainTopic": "Photosynthesis",
    "subTopics": ["Light reactions", "Calvin cycle"],
    "learningOutcomes": ["Explain both stages of photosynthesis"],
    "estimatedDuration": "2 weeks",
    "phases": [
        {
            "phaseName": "Photosynthesis - Foundation & Core Concepts",
            "description": "Core ideas",
            "phaseTopics": ["Light", "Leaves"],
            "modules": [
                {"title": "Light Basics", "lessons": [{"title": "What Is Light"}, {"title": "Chlorophyll Pigments"}]},
                {"title": "Leaf Structure", "lessons": [{"title": "Stomata and Gas Exchange"}]},
            ],
        },
        {
            "phaseName": "Photosynthesis - Application",
            "modules": [
                {"title": "Calvin Cycle", "lessons": [{"title": "Carbon Fixation"}, {"title": "Sugar Production"}]},
            ],
        },
    ],
}


def fake_questions(count):
    questions = []
    for i in range(1, count + 1):
        # Answers arrive as a letter, an index or the option text
        answer = ["B", 1, f"Beta {i}"][i % 3]
        questions.append({
            "question": f"Question {i}?",
            "options": [f"Alpha {i}", f"Beta {i}", f"Gamma {i}", f"Delta {i}"],
            "correctAnswer": answer,
            "explanation": f"Beta {i} is right.",
            "difficulty": "medium",
            "topic": "Light Reactions" if i % 2 else "Calvin Cycle",
        })
    return questions


class FakeGeminiModel:
    """Stands in for genai.GenerativeModel; routes prompts to canned responses"""

    def __init__(self):
        self.calls = []
        self.fail_with = None
        self.overrides = {}

    def generate_content(self, prompt):
        self.calls.append(prompt)
        if self.fail_with is not None:
            raise self.fail_with
        return SimpleNamespace(text=self._respond(prompt))

    def _respond(self, prompt):
        for marker, text in self.overrides.items():
            if marker in prompt:
                return text
        if "preparing study notes" in prompt:
            part = re.search(r"This is part (\d+) of", prompt).group(1)
            return f"Condensed notes for part {part}."
        if "key points" in prompt:
            return json.dumps([f"Key point {i}." for i in range(1, 9)])
        if "multiple-choice quiz" in prompt:
            count = int(re.search(r"Generate EXACTLY (\d+) questions", prompt).group(1))
            return "```json\n" + json.dumps(fake_questions(count)) + "\n```"
        if "curriculum designer" in prompt:
            return json.dumps(FAKE_ROADMAP)
        if "5-7 bullet points" in prompt:
            return "- Short summary point"
        if "structured summary" in prompt:
            return "## Overview\nMedium summary"
        if "comprehensive study summary" in prompt:
            return "## Overview\nDetailed summary"
        return "Unrecognized prompt"


def make_pdf(lines=None, pages=1):
    """Build a small text PDF with reportlab"""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for _ in range(pages):
        textobject = c.beginText(40, 740)
        for line in lines or []:
            textobject.textLine(line)
        c.drawText(textobject)
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_model():
    model = FakeGeminiModel()
    original = gemini_service.model
    gemini_service.model = model
    yield model
    gemini_service.model = original


@pytest.fixture
def client(db, fake_model):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, email="student@example.com", name="Student"):
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": "password123"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]["_id"]


@pytest.fixture
def auth(client):
    headers, _ = register(client)
    return headers


def set_credits(db, email, credits, subscribed=False):
    user = db.query(User).filter(User.email == email).first()
    user.credits = credits
    user.is_subscribed = subscribed
    db.commit()
    return user


def upload(client, headers, lines=None, pages=1, name="photosynthesis.pdf"):
    pdf = make_pdf(STUDY_TEXT if lines is None else lines, pages=pages)
    response = client.post(
        "/api/documents/upload",
        files={"pdf": (name, pdf, "application/pdf")},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["_id"]


def process(client, headers, document_id, processing_type, **options):
    return client.post(
        "/api/documents/process",
        json={"documentId": document_id, "processingType": processing_type, **options},
        headers=headers,
    )


def toggle(client, headers, document_id, module_id, lesson_id, phase_id=None):
    payload = {"moduleId": module_id, "lessonId": lesson_id}
    if phase_id:
        payload["phaseId"] = phase_id
    return client.put(f"/api/documents/{document_id}/roadmap/progress", json=payload, headers=headers)


def credits_of(db, email="student@example.com"):
    db.expire_all()
    return db.query(User).filter(User.email == email).first().credits
