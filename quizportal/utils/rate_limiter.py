"""
Rate limiting middleware for API endpoints
"""
import re
import time
from collections import defaultdict
from fastapi import Request, HTTPException
from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from quizportal.config import settings
from quizportal.database import SessionLocal
from quizportal.models import User

logger = logging.getLogger(__name__)

# Routes that call the language model get their own, smaller budget
LLM_ROUTES: List[Tuple[str, re.Pattern]] = [
    ("POST", re.compile(r"^/api/quizzes/?$")),
    ("POST", re.compile(r"^/api/quizzes/generate/?$")),
    ("POST", re.compile(r"^/api/quizzes/[^/]+/chat/?$")),
]


def is_known_user(user_id: str) -> bool:
    """True when the X-User-Id value names a registered user"""
    try:
        parsed = UUID(user_id)
    except ValueError:
        return False

    db = SessionLocal()
    try:
        return db.query(User.id).filter(User.id == parsed).first() is not None
    finally:
        db.close()


class RateLimiter:
    """
    In-memory sliding-window rate limiter
    Production: Use Redis for distributed rate limiting
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        llm_requests_per_minute: int = 10,
        clock: Callable[[], float] = time.time,
        user_resolver: Optional[Callable[[str], bool]] = None,
    ):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.llm_requests_per_minute = llm_requests_per_minute
        self.clock = clock
        self.user_resolver = user_resolver or is_known_user

        # Storage: {client_id: [timestamp, ...]}
        self.minute_tracker: Dict[str, list] = defaultdict(list)
        self.hour_tracker: Dict[str, list] = defaultdict(list)
        self.llm_tracker: Dict[str, list] = defaultdict(list)

    def _get_client_id(self, request: Request) -> str:
        """
        Budget key for the caller. The X-User-Id header is client-controlled,
        so it only earns its own budget when it names a registered user;
        anything else is charged to the connecting address.
        """
        address = request.client.host if request.client else "unknown"

        user_id = request.headers.get("x-user-id")
        if user_id and self.user_resolver(user_id):
            return f"user:{user_id}"

        return address

    @staticmethod
    def is_llm_route(method: str, path: str) -> bool:
        return any(method == m and pattern.match(path) for m, pattern in LLM_ROUTES)

    def _cleanup_old_entries(self, tracker: Dict[str, list], window_seconds: int, now: float):
        """Drop expired timestamps for every client and forget idle clients"""
        cutoff = now - window_seconds
        for client_id in list(tracker.keys()):
            recent = [ts for ts in tracker[client_id] if ts > cutoff]
            if recent:
                tracker[client_id] = recent
            else:
                del tracker[client_id]

    def _reject(self, client_id: str, scope: str, limit: int, per: str, retry_after: int):
        logger.warning(f"Rate limit exceeded ({scope}): {client_id}")
        raise HTTPException(
            status_code=429,
            detail={
                "error": "rate_limit_exceeded",
                "message": f"Too many requests. Limit: {limit} requests per {per}",
                "retry_after": retry_after
            }
        )

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        now = self.clock()

        self._cleanup_old_entries(self.minute_tracker, 60, now)
        self._cleanup_old_entries(self.hour_tracker, 3600, now)
        self._cleanup_old_entries(self.llm_tracker, 60, now)

        if len(self.minute_tracker.get(client_id, ())) >= self.requests_per_minute:
            self._reject(client_id, "minute", self.requests_per_minute, "minute", 60)

        if len(self.hour_tracker.get(client_id, ())) >= self.requests_per_hour:
            self._reject(client_id, "hour", self.requests_per_hour, "hour", 3600)

        llm_route = self.is_llm_route(request.method, request.url.path)
        if llm_route and len(self.llm_tracker.get(client_id, ())) >= self.llm_requests_per_minute:
            self._reject(client_id, "llm", self.llm_requests_per_minute, "minute on AI endpoints", 60)

        # Record this request
        self.minute_tracker[client_id].append(now)
        self.hour_tracker[client_id].append(now)
        if llm_route:
            self.llm_tracker[client_id].append(now)


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
    llm_requests_per_minute=settings.RATE_LIMIT_LLM_PER_MINUTE
)
