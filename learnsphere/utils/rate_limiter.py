"""
Rate limiting middleware support for API endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict, Tuple
import logging

from learnsphere.config import settings
from learnsphere.exceptions import AuthenticationError
from learnsphere.utils.security import decode_token

logger = logging.getLogger(__name__)

# Paths that call the language model
AI_PATH_SUFFIXES = (
    "/documents/process",
    "/quizzes/module",
    "/quizzes/phase",
    "/quizzes/final",
)

# Seconds between sweeps of idle clients
CLEANUP_INTERVAL = 60


class RateLimiter:
    """
    In-memory sliding-window rate limiter
    Clients are identified by token subject when authenticated, else by IP
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        ai_requests_per_minute: int = 10,
    ):
        self.limits: Dict[str, Tuple[int, int]] = {
            "minute": (requests_per_minute, 60),
            "hour": (requests_per_hour, 3600),
            "ai": (ai_requests_per_minute, 60),
        }
        # Storage: {(bucket, client_id): deque[timestamp]}
        self.windows: Dict[Tuple[str, str], Deque[float]] = defaultdict(deque)
        self.last_cleanup = time.time()

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        authorization = request.headers.get("authorization", "")
        if authorization.lower().startswith("bearer "):
            try:
                return f"user:{decode_token(authorization[7:].strip())}"
            except AuthenticationError:
                pass

        # Fallback to IP address
        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _is_ai_request(self, request: Request) -> bool:
        return request.method == "POST" and request.url.path.rstrip("/").endswith(AI_PATH_SUFFIXES)

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop windows whose timestamps have all expired"""
        for key in list(self.windows.keys()):
            window_seconds = self.limits[key[0]][1]
            window = self.windows[key]
            while window and window[0] <= now - window_seconds:
                window.popleft()
            if not window:
                del self.windows[key]
        self.last_cleanup = now

    def _hit(self, bucket: str, client_id: str, now: float) -> None:
        limit, window_seconds = self.limits[bucket]
        key = (bucket, client_id)
        window = self.windows.get(key)
        if window is None:
            return
        while window and window[0] <= now - window_seconds:
            window.popleft()

        # Remove empty entries
        if not window:
            del self.windows[key]
            return

        if len(window) >= limit:
            logger.warning(f"Rate limit exceeded ({bucket}): {client_id}")
            retry_after = max(1, int(window[0] + window_seconds - now) + 1)
            raise HTTPException(
                status_code=429,
                detail={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Limit: {limit} per {window_seconds // 60} minute(s)",
                    "retry_after": retry_after,
                },
            )

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        now = time.time()
        if now - self.last_cleanup >= CLEANUP_INTERVAL:
            self._cleanup_old_entries(now)

        buckets = ["minute", "hour"]
        if self._is_ai_request(request):
            buckets.append("ai")

        for bucket in buckets:
            self._hit(bucket, client_id, now)

        # Record only once every bucket has room
        for bucket in buckets:
            self.windows[(bucket, client_id)].append(now)

        logger.debug(f"Rate limit check passed: {client_id}")


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
    ai_requests_per_minute=settings.AI_RATE_LIMIT_PER_MINUTE,
)
