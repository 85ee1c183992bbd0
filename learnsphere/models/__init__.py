"""
Database models package
"""
from learnsphere.models.user import User
from learnsphere.models.document import Document
from learnsphere.models.quiz import Quiz
from learnsphere.models.quiz_attempt import QuizAttempt
from learnsphere.models.score_tracker import ScoreTracker
from learnsphere.models.todo import Todo
from learnsphere.models.note import Note

__all__ = ["User", "Document", "Quiz", "QuizAttempt", "ScoreTracker", "Todo", "Note"]
