"""
User profile and subscription endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.database import get_db
from learnsphere.models import Document, User
from learnsphere.schemas.auth import UserResponse
from learnsphere.services import credit_service
from learnsphere.utils.security import get_current_user

router = APIRouter(prefix=f"{settings.API_PREFIX}/users", tags=["users"])


@router.get("/profile")
def get_profile(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    documents = db.query(Document).filter(Document.user_id == user.id).count()
    profile = UserResponse.model_validate(user).model_dump(by_alias=True, mode="json")
    return {**profile, "documentCount": documents, "createdAt": user.created_at.isoformat() if user.created_at else None}


@router.post("/upgrade", response_model=UserResponse)
def upgrade_subscription(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Mock subscription upgrade; no payment provider is involved"""
    return UserResponse.model_validate(credit_service.upgrade(db, user))
