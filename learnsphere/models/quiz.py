"""
Quiz model - roadmap-linked module, phase and final quizzes
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from learnsphere.database import Base, JSONType
import uuid


class Quiz(Base):
    """
    Quizzes table - questions are stored in canonical form (answer = option text)
    """
    __tablename__ = "quizzes"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Uuid, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_title = Column(String(255), nullable=False)
    quiz_type = Column(String(20), nullable=False)  # module-quiz / phase-quiz / final-quiz
    phase_id = Column(String(50))
    phase_number = Column(Integer)
    phase_name = Column(String(255))
    module_id = Column(String(50))
    module_name = Column(String(255))
    topics_covered = Column(JSONType)
    questions = Column(JSONType, nullable=False)
    total_questions = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="not-started")
    best_attempt = Column(JSONType)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    document = relationship("Document", back_populates="roadmap_quizzes")
    attempts = relationship(
        "QuizAttempt",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizAttempt.attempt_number",
    )
    
    def __repr__(self):
        return f"<Quiz(id={self.id}, type={self.quiz_type}, phase={self.phase_id})>"
