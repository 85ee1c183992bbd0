"""
ScoreTracker model - roadmap quiz performance per user and document
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Uuid, UniqueConstraint, func
from sqlalchemy.orm import relationship
from learnsphere.database import Base, JSONType
import uuid


class ScoreTracker(Base):
    __tablename__ = "score_trackers"
    __table_args__ = (UniqueConstraint("user_id", "document_id", name="uq_score_tracker_user_document"),)
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Uuid, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    phase_scores = Column(JSONType, nullable=False, default=list)
    final_assessment = Column(JSONType)
    overall_score = Column(Integer, nullable=False, default=0)
    total_questions_attempted = Column(Integer, nullable=False, default=0)
    total_questions_correct = Column(Integer, nullable=False, default=0)
    average_accuracy = Column(Integer, nullable=False, default=0)
    learning_progress = Column(JSONType)  # {completedPhases, totalPhases}
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    document = relationship("Document", back_populates="score_trackers")
    
    def __repr__(self):
        return f"<ScoreTracker(user_id={self.user_id}, document_id={self.document_id}, overall={self.overall_score})>"
