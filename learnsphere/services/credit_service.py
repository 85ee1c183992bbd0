"""
Credit accounting for model-backed processing
"""
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from learnsphere.config import settings
from learnsphere.exceptions import InsufficientCreditsError
from learnsphere.models import User

logger = logging.getLogger(__name__)

# One credit per model-backed artifact; the mind map is computed locally
PROCESSING_COSTS = {
    "summary": 1,
    "quiz": 1,
    "roadmap": 1,
    "mindmap": 0,
    "comprehensive": 2,
}


def cost_of(processing_type: str) -> int:
    return PROCESSING_COSTS[processing_type]


def ensure_can_afford(user: User, cost: int) -> None:
    """Reject before any model call when the user cannot pay"""
    if cost and not user.is_subscribed and user.credits < cost:
        logger.info(f"Credit check failed for user {user.id}: needs {cost}, has {user.credits}")
        raise InsufficientCreditsError(required=cost, available=user.credits)


def charge(db: Session, user: User, cost: int) -> None:
    """
    Decrement credits with a single conditional UPDATE

    Runs inside the caller's transaction so the charge commits together with
    the generated artifacts. Raises InsufficientCreditsError if a concurrent
    request already spent the credits.
    """
    if cost == 0 or user.is_subscribed:
        return

    result = db.execute(
        update(User)
        .where(User.id == user.id, User.credits >= cost)
        .values(credits=User.credits - cost)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.refresh(user)
        raise InsufficientCreditsError(required=cost, available=user.credits)

    logger.info(f"Charged {cost} credits to user {user.id}")


def upgrade(db: Session, user: User) -> User:
    """Mock subscription: unlimited processing plus a credit top-up"""
    user.is_subscribed = True
    user.credits = settings.SUBSCRIPTION_CREDITS
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} upgraded to subscription")
    return user
