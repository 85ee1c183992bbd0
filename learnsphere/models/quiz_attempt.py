"""
QuizAttempt model - stores quiz submissions and their scoring
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from learnsphere.database import Base, JSONType
import uuid


class QuizAttempt(Base):
    """
    Quiz attempts table - one row per submission
    """
    __tablename__ = "quiz_attempts"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False)
    correct_count = Column(Integer, nullable=False)
    percentage_score = Column(Integer, nullable=False)
    time_taken = Column(Integer)  # seconds
    answers = Column(JSONType)  # Review list
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    quiz = relationship("Quiz", back_populates="attempts")
    
    def __repr__(self):
        return f"<QuizAttempt(quiz_id={self.quiz_id}, attempt={self.attempt_number}, score={self.percentage_score})>"
