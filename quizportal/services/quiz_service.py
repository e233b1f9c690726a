"""
Quiz lifecycle operations outside the generation pass:
creation, listing, ownership lookup, sharing and deletion
"""
import logging
import uuid
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.orm import Session, selectinload

from quizportal.config import settings
from quizportal.exceptions import QuizNotFoundError
from quizportal.models import Flashcard, MCQ, OpenQuestion, Quiz, QuizStatus
from quizportal.schemas.quiz import SharedQuizResponse
from quizportal.utils.cache import LEADERBOARD_KEY, cache_service

logger = logging.getLogger(__name__)


def clamp_count(value: Optional[int], default: int) -> int:
    """Requested item count limited to [MIN_ITEM_COUNT, MAX_ITEM_COUNT]"""
    if value is None:
        value = default
    return max(settings.MIN_ITEM_COUNT, min(settings.MAX_ITEM_COUNT, value))


class QuizService:
    """Service for quiz records owned by a single user"""

    def create_quiz(
        self,
        db: Session,
        user_id: UUID,
        title: str,
        file_name: str,
        file_url: str,
        file_size: int = 0,
        flashcard_count: Optional[int] = None,
        mcq_count: Optional[int] = None,
        open_question_count: Optional[int] = None,
    ) -> Quiz:
        """Create a quiz in GENERATING state with clamped item counts"""
        quiz = Quiz(
            user_id=user_id,
            title=title,
            file_name=file_name,
            file_url=file_url,
            file_size=file_size or 0,
            status=QuizStatus.GENERATING.value,
            flashcard_count=clamp_count(flashcard_count, settings.DEFAULT_FLASHCARD_COUNT),
            mcq_count=clamp_count(mcq_count, settings.DEFAULT_MCQ_COUNT),
            open_question_count=clamp_count(open_question_count, settings.DEFAULT_OPEN_QUESTION_COUNT),
        )
        db.add(quiz)
        db.commit()
        db.refresh(quiz)

        logger.info(f"Quiz created: {quiz.id} ({quiz.file_name})")
        return quiz

    def list_quizzes(self, db: Session, user_id: UUID) -> List[Dict[str, Any]]:
        """
        A user's quizzes, newest first, each with per-kind item totals

        Returns:
            List of {"quiz": Quiz, "flashcards_total", "mcqs_total", "open_questions_total"}
        """
        flashcards_total = (
            db.query(func.count(Flashcard.id))
            .filter(Flashcard.quiz_id == Quiz.id)
            .correlate(Quiz)
            .scalar_subquery()
        )
        mcqs_total = (
            db.query(func.count(MCQ.id))
            .filter(MCQ.quiz_id == Quiz.id)
            .correlate(Quiz)
            .scalar_subquery()
        )
        open_questions_total = (
            db.query(func.count(OpenQuestion.id))
            .filter(OpenQuestion.quiz_id == Quiz.id)
            .correlate(Quiz)
            .scalar_subquery()
        )

        rows = (
            db.query(Quiz, flashcards_total, mcqs_total, open_questions_total)
            .filter(Quiz.user_id == user_id)
            .order_by(Quiz.created_at.desc())
            .all()
        )

        return [
            {
                "quiz": quiz,
                "flashcards_total": fc or 0,
                "mcqs_total": mc or 0,
                "open_questions_total": oq or 0,
            }
            for quiz, fc, mc, oq in rows
        ]

    def get_owned_quiz(self, db: Session, quiz_id: UUID, user_id: UUID, with_items: bool = False) -> Quiz:
        """
        Load a quiz only if it belongs to the user

        Raises:
            QuizNotFoundError: quiz missing or owned by someone else
        """
        query = db.query(Quiz).filter(Quiz.id == quiz_id, Quiz.user_id == user_id)
        if with_items:
            query = query.options(
                selectinload(Quiz.flashcards),
                selectinload(Quiz.mcqs),
                selectinload(Quiz.open_questions),
            )

        quiz = query.first()
        if not quiz:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        return quiz

    def request_share_token(self, db: Session, quiz: Quiz) -> str:
        """Return the quiz's share token, minting it on first request"""
        if quiz.share_token:
            return quiz.share_token

        # Conditional mint: a concurrent request that got there first keeps its token
        db.execute(
            update(Quiz)
            .where(Quiz.id == quiz.id, Quiz.share_token.is_(None))
            .values(share_token=uuid.uuid4().hex)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(quiz)

        logger.info(f"Share token issued for quiz {quiz.id}")
        return quiz.share_token

    def get_shared_quiz(self, db: Session, share_token: str) -> Dict[str, Any]:
        """
        Public read-only view of a shared quiz

        Raises:
            QuizNotFoundError: unknown token
        """
        cache_key = cache_service.shared_quiz_key(share_token)
        cached = cache_service.get(cache_key)
        if cached:
            return cached

        quiz = (
            db.query(Quiz)
            .options(
                selectinload(Quiz.flashcards),
                selectinload(Quiz.mcqs),
                selectinload(Quiz.open_questions),
            )
            .filter(Quiz.share_token == share_token)
            .first()
        )
        if not quiz:
            raise QuizNotFoundError("Shared quiz not found")

        payload = SharedQuizResponse.model_validate(quiz).model_dump(mode="json")

        # Items only change while GENERATING, so cache terminal quizzes only
        if quiz.status in (QuizStatus.READY.value, QuizStatus.FAILED.value):
            cache_service.set(cache_key, payload, ttl=settings.SHARE_CACHE_TTL)

        return payload

    def delete_quiz(self, db: Session, quiz: Quiz) -> None:
        """Delete a quiz with its items, attempts and attempt answers"""
        share_token = quiz.share_token
        quiz_id = quiz.id

        db.delete(quiz)
        db.commit()

        keys = [LEADERBOARD_KEY]
        if share_token:
            keys.append(cache_service.shared_quiz_key(share_token))
        cache_service.delete(*keys)

        logger.info(f"Quiz deleted: {quiz_id}")


# Global instance
quiz_service = QuizService()
