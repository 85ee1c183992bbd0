"""
Document model - uploaded PDF plus its generated artifacts
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from learnsphere.database import Base, JSONType
import uuid


class Document(Base):
    """
    Documents table - each artifact column stays NULL until generated
    """
    __tablename__ = "documents"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(512), nullable=False)
    file_size = Column(Integer)
    page_count = Column(Integer)
    extracted_text = Column(Text)  # Populated on first processing request
    
    # Artifacts
    summary = Column(JSONType)  # {short, medium, detailed, keyInsights}
    quiz = Column(JSONType)  # Canonical question list
    mind_map = Column(JSONType)  # {nodes, edges, metadata}
    roadmap = Column(JSONType)  # Phases + progressTracking
    quiz_results = Column(JSONType)  # History of document quiz submissions
    
    learner_level = Column(String(20))
    processing_status = Column(String(20), nullable=False, default="pending")
    processing_type = Column(String(20))
    processing_details = Column(JSONType)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    owner = relationship("User", back_populates="documents")
    notes = relationship("Note", back_populates="document", cascade="all, delete-orphan")
    roadmap_quizzes = relationship("Quiz", back_populates="document", cascade="all, delete-orphan")
    score_trackers = relationship("ScoreTracker", back_populates="document", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<Document(id={self.id}, file_name={self.file_name}, status={self.processing_status})>"
