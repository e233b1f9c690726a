import asyncio
import uuid

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from quizportal.utils.rate_limiter import RateLimiter


def make_request(path, method="GET", user_id="user-1", host="10.0.0.1"):
    headers = [(b"x-user-id", user_id.encode())] if user_id else []
    return Request({
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": headers,
        "client": (host, 5000),
        "server": ("testserver", 80),
        "scheme": "http",
    })


class FakeClock:
    def __init__(self):
        self.now = 1_000_000.0

    def __call__(self):
        return self.now


def test_per_minute_limit_resets_after_window():
    clock = FakeClock()
    limiter = RateLimiter(requests_per_minute=2, requests_per_hour=100, llm_requests_per_minute=10, clock=clock)

    asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/")))
    asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/")))
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/")))
    assert exc_info.value.status_code == 429
    assert exc_info.value.detail["error"] == "rate_limit_exceeded"

    clock.now += 61
    asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/")))


def test_known_users_and_addresses_are_tracked_separately():
    limiter = RateLimiter(
        requests_per_minute=1, requests_per_hour=100, llm_requests_per_minute=10,
        clock=FakeClock(), user_resolver=lambda user_id: user_id in {"a", "b"},
    )

    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id="a")))
    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id="b")))
    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id=None)))
    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id=None, host="10.0.0.2")))


def test_rotating_unknown_user_ids_share_the_address_budget():
    limiter = RateLimiter(requests_per_minute=3, requests_per_hour=100, llm_requests_per_minute=10, clock=FakeClock())

    for _ in range(3):
        asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id=str(uuid.uuid4()))))
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id="forged")))

    assert exc_info.value.status_code == 429
    assert list(limiter.minute_tracker) == ["10.0.0.1"]


def test_registered_user_header_gets_its_own_budget(user):
    limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100, llm_requests_per_minute=10, clock=FakeClock())

    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id=None)))
    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id=str(user.id))))

    assert set(limiter.minute_tracker) == {"10.0.0.1", f"user:{user.id}"}


def test_idle_clients_are_forgotten():
    clock = FakeClock()
    limiter = RateLimiter(requests_per_minute=10, requests_per_hour=100, llm_requests_per_minute=10, clock=clock)

    for i in range(20):
        asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/", method="POST", user_id=None, host=f"10.1.0.{i}")))
    assert len(limiter.minute_tracker) == len(limiter.llm_tracker) == 20

    clock.now += 61
    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id=None, host="10.9.9.9")))

    assert list(limiter.minute_tracker) == ["10.9.9.9"]
    assert not limiter.llm_tracker
    assert len(limiter.hour_tracker) == 21

    clock.now += 3600
    asyncio.run(limiter.check_rate_limit(make_request("/api/analytics", user_id=None, host="10.9.9.9")))

    assert list(limiter.hour_tracker) == ["10.9.9.9"]


def test_llm_routes_have_their_own_budget():
    limiter = RateLimiter(requests_per_minute=100, requests_per_hour=100, llm_requests_per_minute=1, clock=FakeClock())

    asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/abc/chat", method="POST")))
    asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/abc", method="GET")))
    with pytest.raises(HTTPException):
        asyncio.run(limiter.check_rate_limit(make_request("/api/quizzes/generate", method="POST")))


def test_llm_route_matching():
    assert RateLimiter.is_llm_route("POST", "/api/quizzes/")
    assert RateLimiter.is_llm_route("POST", "/api/quizzes/123/chat")
    assert not RateLimiter.is_llm_route("GET", "/api/quizzes/")
    assert not RateLimiter.is_llm_route("POST", "/api/quizzes/123/attempts")
