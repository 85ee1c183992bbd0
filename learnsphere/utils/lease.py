"""
Generation leases: at most one concurrent build per (document, artifact type)

Backed by Redis SET NX with a TTL. When Redis is unreachable the leases
live in process memory, which still serializes requests within one worker.
"""
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Tuple

import redis

from learnsphere.config import settings
from learnsphere.exceptions import GenerationInProgressError

logger = logging.getLogger(__name__)

# Delete only if the stored token is ours
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class GenerationLease:
    """Redis-based lease table with an in-memory fallback"""

    def __init__(self, redis_url: Optional[str] = None, ttl: Optional[int] = None):
        self.ttl = ttl or settings.GENERATION_LEASE_TTL
        self._local: Dict[str, Tuple[str, float]] = {}
        self._local_lock = threading.Lock()
        try:
            self.redis_client = redis.from_url(
                redis_url or settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            self._release_script = self.redis_client.register_script(RELEASE_SCRIPT)
            logger.info("Redis connection established for generation leases")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Using in-process leases.")
            self.redis_client = None

    @staticmethod
    def key(document_id, artifact_type: str) -> str:
        return f"lease:generation:{document_id}:{artifact_type}"

    def acquire(self, key: str) -> Optional[str]:
        """Return a release token, or None if someone else holds the lease"""
        token = uuid.uuid4().hex

        if self.redis_client:
            try:
                acquired = self.redis_client.set(key, token, nx=True, ex=self.ttl)
                return token if acquired else None
            except redis.RedisError as e:
                logger.warning(f"Lease acquire via Redis failed: {str(e)}. Falling back to memory.")

        now = time.monotonic()
        with self._local_lock:
            held = self._local.get(key)
            if held and held[1] > now:
                return None
            self._local[key] = (token, now + self.ttl)
        return token

    def release(self, key: str, token: str) -> None:
        if self.redis_client:
            try:
                self._release_script(keys=[key], args=[token])
            except redis.RedisError as e:
                logger.warning(f"Lease release via Redis failed: {str(e)}")

        with self._local_lock:
            held = self._local.get(key)
            if held and held[0] == token:
                del self._local[key]

    def is_held(self, key: str) -> bool:
        if self.redis_client:
            try:
                return bool(self.redis_client.exists(key))
            except redis.RedisError:
                pass
        with self._local_lock:
            held = self._local.get(key)
            return bool(held and held[1] > time.monotonic())

    @contextmanager
    def hold(self, document_id, artifact_types: Iterable[str]):
        """
        Hold leases for every artifact type of a document

        Raises:
            GenerationInProgressError: one of the leases is already held
        """
        acquired: List[Tuple[str, str]] = []
        try:
            for artifact_type in sorted(set(artifact_types)):
                key = self.key(document_id, artifact_type)
                token = self.acquire(key)
                if token is None:
                    logger.info(f"Generation already in progress: {key}")
                    raise GenerationInProgressError(str(document_id), artifact_type)
                acquired.append((key, token))
            yield
        finally:
            for key, token in reversed(acquired):
                self.release(key, token)


# Global instance
generation_lease = GenerationLease()
