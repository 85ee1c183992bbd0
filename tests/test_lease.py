"""
Tests for generation leases (in-process fallback)
"""
import time

import pytest

from learnsphere.exceptions import GenerationInProgressError
from learnsphere.utils.lease import GenerationLease


@pytest.fixture
def lease():
    lease = GenerationLease(redis_url="redis://127.0.0.1:1/0", ttl=30)
    assert lease.redis_client is None
    return lease


def test_acquire_is_exclusive(lease):
    key = GenerationLease.key("doc-1", "summary")
    token = lease.acquire(key)

    assert token is not None
    assert lease.acquire(key) is None
    assert lease.is_held(key)

    lease.release(key, token)
    assert not lease.is_held(key)
    assert lease.acquire(key) is not None


def test_release_requires_matching_token(lease):
    key = GenerationLease.key("doc-1", "quiz")
    lease.acquire(key)
    lease.release(key, "not-the-token")
    assert lease.is_held(key)


def test_expired_lease_can_be_taken(lease):
    key = GenerationLease.key("doc-1", "roadmap")
    lease.acquire(key)
    token, _ = lease._local[key]
    lease._local[key] = (token, time.monotonic() - 1)

    assert lease.acquire(key) is not None


def test_hold_releases_on_exit(lease):
    with lease.hold("doc-1", ["summary", "quiz"]):
        assert lease.is_held(GenerationLease.key("doc-1", "summary"))
        assert lease.is_held(GenerationLease.key("doc-1", "quiz"))

    assert not lease.is_held(GenerationLease.key("doc-1", "summary"))
    assert not lease.is_held(GenerationLease.key("doc-1", "quiz"))


def test_hold_conflict_releases_partial_leases(lease):
    token = lease.acquire(GenerationLease.key("doc-1", "summary"))

    with pytest.raises(GenerationInProgressError) as exc_info:
        with lease.hold("doc-1", ["summary", "quiz", "mindmap"]):
            pass

    assert exc_info.value.status_code == 409
    assert exc_info.value.context["artifact_type"] == "summary"
    # mindmap sorts first and was acquired before the conflict
    assert not lease.is_held(GenerationLease.key("doc-1", "mindmap"))
    assert lease.is_held(GenerationLease.key("doc-1", "summary"))
    lease.release(GenerationLease.key("doc-1", "summary"), token)


def test_different_documents_do_not_conflict(lease):
    with lease.hold("doc-1", ["summary"]):
        with lease.hold("doc-2", ["summary"]):
            pass
