"""
User model - account, credits and subscription flag
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from learnsphere.database import Base
from learnsphere.config import settings
import uuid


class User(Base):
    """
    Users table - credits are consumed by LLM-backed processing unless subscribed
    """
    __tablename__ = "users"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    credits = Column(Integer, nullable=False, default=settings.DEFAULT_CREDITS)
    is_subscribed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    documents = relationship("Document", back_populates="owner", cascade="all, delete-orphan")
    todos = relationship("Todo", back_populates="owner", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, credits={self.credits})>"
