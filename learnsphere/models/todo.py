"""
Todo model - user study tasks, optionally linked to a document, quiz or note
"""
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from learnsphere.database import Base, JSONType
import uuid


class Todo(Base):
    __tablename__ = "todos"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    status = Column(String(20), nullable=False, default="pending")  # pending / completed / missed
    priority = Column(String(10), nullable=False, default="medium")
    due_date = Column(Date, nullable=False)
    linked_entity = Column(JSONType)  # {type, entityId, entityTitle}
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    owner = relationship("User", back_populates="todos")
    
    def __repr__(self):
        return f"<Todo(id={self.id}, title={self.title}, status={self.status})>"
