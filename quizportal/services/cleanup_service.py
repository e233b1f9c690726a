"""
Periodic removal of registrations whose verification token expired
"""
import asyncio
import contextlib
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from quizportal.config import settings
from quizportal.database import SessionLocal
from quizportal.models import User
from quizportal.utils.clock import utcnow

logger = logging.getLogger(__name__)


class UnverifiedUserCleanup:
    """
    Scheduled task owned by the application lifecycle: start() on startup,
    stop() on shutdown. A failing run is logged and the loop carries on.
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory or SessionLocal
        self.interval_seconds = interval_seconds or settings.CLEANUP_INTERVAL_SECONDS
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    def run_once(self) -> int:
        """Delete expired unverified users and return how many were removed"""
        db = self.session_factory()
        try:
            deleted = (
                db.query(User)
                .filter(
                    User.email_verified.is_(False),
                    User.verify_token_expiry < self.clock(),
                )
                .delete(synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        if deleted:
            logger.info(f"Cleaned up {deleted} unverified expired users")
        return deleted

    def tick(self) -> int:
        try:
            return self.run_once()
        except Exception as e:
            logger.error(f"Cleanup error: {str(e)}", exc_info=True)
            return 0

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await asyncio.to_thread(self.tick)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info(f"Unverified user cleanup scheduled every {self.interval_seconds}s")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Unverified user cleanup stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()


# Global instance
unverified_user_cleanup = UnverifiedUserCleanup()
