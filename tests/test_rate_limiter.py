"""
Tests for the sliding-window rate limiter
"""
import asyncio

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from learnsphere.utils.rate_limiter import RateLimiter
from learnsphere.utils.security import create_access_token


def make_request(path="/api/documents", method="GET", ip="10.0.0.1", token=None):
    headers = []
    if token:
        headers.append((b"authorization", f"Bearer {token}".encode()))
    return Request({
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": headers,
        "client": (ip, 5000),
    })


def check(limiter, request):
    asyncio.run(limiter.check_rate_limit(request))


def test_per_minute_limit():
    limiter = RateLimiter(requests_per_minute=2)
    check(limiter, make_request())
    check(limiter, make_request())

    with pytest.raises(HTTPException) as exc_info:
        check(limiter, make_request())

    assert exc_info.value.status_code == 429
    assert exc_info.value.detail["retry_after"] >= 1


def test_clients_are_counted_separately():
    limiter = RateLimiter(requests_per_minute=1)
    check(limiter, make_request(ip="10.0.0.1"))
    check(limiter, make_request(ip="10.0.0.2"))
    check(limiter, make_request(ip="10.0.0.1", token=create_access_token("user-1")))


def test_ai_requests_have_their_own_budget():
    limiter = RateLimiter(requests_per_minute=10, ai_requests_per_minute=1)
    check(limiter, make_request("/api/documents/process", "POST"))

    with pytest.raises(HTTPException):
        check(limiter, make_request("/api/documents/process", "POST"))
    with pytest.raises(HTTPException):
        check(limiter, make_request("/api/quizzes/phase", "POST"))

    check(limiter, make_request("/api/documents", "GET"))
    check(limiter, make_request("/api/quizzes/tracker/abc", "GET"))


def test_rejected_requests_are_not_recorded():
    limiter = RateLimiter(requests_per_minute=5, ai_requests_per_minute=1)
    check(limiter, make_request("/api/documents/process", "POST"))
    for _ in range(3):
        with pytest.raises(HTTPException):
            check(limiter, make_request("/api/documents/process", "POST"))

    assert len(limiter.windows[("minute", "ip:10.0.0.1")]) == 1


def test_expired_windows_are_removed(monkeypatch):
    limiter = RateLimiter(requests_per_minute=5)
    now = 1_000_000.0
    monkeypatch.setattr("learnsphere.utils.rate_limiter.time.time", lambda: now)
    limiter.last_cleanup = now
    check(limiter, make_request(ip="10.0.0.1"))
    check(limiter, make_request(ip="10.0.0.2"))

    # Minute windows expire; hour windows are still live
    now += 61
    check(limiter, make_request(ip="10.0.0.1"))
    assert ("minute", "ip:10.0.0.2") not in limiter.windows
    assert ("hour", "ip:10.0.0.2") in limiter.windows
    assert len(limiter.windows[("minute", "ip:10.0.0.1")]) == 1

    now += 3600
    check(limiter, make_request(ip="10.0.0.3"))
    assert set(limiter.windows) == {("minute", "ip:10.0.0.3"), ("hour", "ip:10.0.0.3")}
