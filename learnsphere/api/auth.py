"""
Registration, login and current-user endpoints
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.database import get_db
from learnsphere.exceptions import AuthenticationError, ValidationError
from learnsphere.models import User
from learnsphere.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from learnsphere.utils.security import create_access_token, get_current_user, hash_password, verify_password

router = APIRouter(prefix=f"{settings.API_PREFIX}/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    email = request.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ValidationError("User already exists", error_code="USER_EXISTS")

    user = User(
        name=request.name,
        email=email,
        password_hash=hash_password(request.password),
        credits=settings.DEFAULT_CREDITS,
        is_subscribed=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User registered: {user.id}")
    return AuthResponse(token=create_access_token(user.id), user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == request.email.lower()).first()
    if not user or not verify_password(request.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    return AuthResponse(token=create_access_token(user.id), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
