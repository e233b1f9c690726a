"""
Analytics service for per-user performance and the cross-user leaderboard
"""
import logging
import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from quizportal.config import settings
from quizportal.models import MCQ, Quiz, QuizAttempt, User
from quizportal.services.scoring_service import percentage, round_half_up
from quizportal.utils.cache import LEADERBOARD_KEY, cache_service
from quizportal.utils.clock import utcnow

logger = logging.getLogger(__name__)

SCORE_HISTORY_LENGTH = 20
MOST_MISSED_LIMIT = 10
TITLE_DISPLAY_LENGTH = 20
LEADERBOARD_LIMIT = 50


class AnalyticsService:
    """Service for generating performance analytics"""

    def get_user_analytics(self, db: Session, user_id: UUID, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Get performance analytics for a user

        Args:
            db: Database session
            user_id: User UUID
            now: Reference time for the trailing 7-day window

        Returns:
            Dictionary matching UserAnalytics
        """
        now = now or utcnow()

        total_quizzes = db.query(func.count(Quiz.id)).filter(Quiz.user_id == user_id).scalar() or 0

        # Newest first
        attempts = (
            db.query(QuizAttempt)
            .options(joinedload(QuizAttempt.quiz), selectinload(QuizAttempt.answers))
            .filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.desc(), QuizAttempt.id.desc())
            .all()
        )

        if not attempts:
            return {
                "total_quizzes": total_quizzes,
                "total_attempts": 0,
                "average_score": 0,
                "best_score": 0,
                "quizzes_this_week": 0,
                "score_over_time": [],
                "per_quiz": [],
                "most_missed": [],
            }

        exact_scores = [
            a.score / a.total_questions * 100 if a.total_questions > 0 else 0.0
            for a in attempts
        ]

        week_ago = now - timedelta(days=7)

        return {
            "total_quizzes": total_quizzes,
            "total_attempts": len(attempts),
            "average_score": round_half_up(sum(exact_scores) / len(exact_scores)),
            "best_score": round_half_up(max(exact_scores)),
            "quizzes_this_week": sum(1 for a in attempts if a.created_at >= week_ago),
            "score_over_time": self._score_over_time(attempts),
            "per_quiz": self._per_quiz_averages(attempts),
            "most_missed": self._most_missed(db, attempts),
        }

    def _score_over_time(self, attempts: List[QuizAttempt]) -> List[Dict[str, Any]]:
        """Latest attempts, oldest to newest"""
        recent = attempts[:SCORE_HISTORY_LENGTH]
        return [
            {
                "date": a.created_at.date().isoformat(),
                "score": percentage(a.score, a.total_questions),
                "quiz": a.quiz.title,
            }
            for a in reversed(recent)
        ]

    def _per_quiz_averages(self, attempts: List[QuizAttempt]) -> List[Dict[str, Any]]:
        """Mean of rounded attempt percentages per quiz"""
        per_quiz = {}
        for a in attempts:
            entry = per_quiz.setdefault(a.quiz_id, {"title": a.quiz.title, "scores": []})
            entry["scores"].append(percentage(a.score, a.total_questions))

        return [
            {
                "title": self._display_title(entry["title"]),
                "avg_score": round_half_up(sum(entry["scores"]) / len(entry["scores"])),
            }
            for entry in per_quiz.values()
        ]

    @staticmethod
    def _display_title(title: str) -> str:
        if len(title) > TITLE_DISPLAY_LENGTH:
            return title[:TITLE_DISPLAY_LENGTH] + "..."
        return title

    def _most_missed(self, db: Session, attempts: List[QuizAttempt]) -> List[Dict[str, Any]]:
        """
        Question ids ranked by miss count (ties keep first-seen order),
        resolved to question text where the MCQ still exists
        """
        miss_counts = defaultdict(int)
        for a in attempts:
            for answer in a.answers:
                if not answer.correct:
                    miss_counts[answer.question_id] += 1

        ranked = sorted(miss_counts.items(), key=lambda item: item[1], reverse=True)[:MOST_MISSED_LIMIT]

        lookup_ids = []
        for question_id, _ in ranked:
            try:
                lookup_ids.append(uuid.UUID(question_id))
            except ValueError:
                continue

        texts = {}
        if lookup_ids:
            texts = {
                str(mcq_id): question
                for mcq_id, question in db.query(MCQ.id, MCQ.question).filter(MCQ.id.in_(lookup_ids)).all()
            }

        return [
            {"question": texts.get(question_id, question_id), "count": count}
            for question_id, count in ranked
        ]

    def get_leaderboard(self, db: Session, viewer_id: Optional[UUID], limit: int = LEADERBOARD_LIMIT) -> List[Dict[str, Any]]:
        """
        Rank users by mean attempt percentage

        Only attempts with at least one question count. Ties are broken by
        user id ascending so repeated calls return the same order.
        """
        rows = cache_service.get(LEADERBOARD_KEY) if limit == LEADERBOARD_LIMIT else None

        if rows is None:
            rows = self._leaderboard_rows(db, limit)
            if limit == LEADERBOARD_LIMIT:
                cache_service.set(LEADERBOARD_KEY, rows, ttl=settings.LEADERBOARD_CACHE_TTL)

        viewer = str(viewer_id) if viewer_id else None
        return [
            {**row, "rank": rank, "is_current_user": row["user_id"] == viewer}
            for rank, row in enumerate(rows, start=1)
        ]

    def _leaderboard_rows(self, db: Session, limit: int) -> List[Dict[str, Any]]:
        attempt_pct = QuizAttempt.score * 100.0 / QuizAttempt.total_questions
        avg_pct = func.avg(attempt_pct)

        results = (
            db.query(
                QuizAttempt.user_id,
                User.name,
                func.count(QuizAttempt.id),
                avg_pct,
                func.max(attempt_pct),
            )
            .join(User, User.id == QuizAttempt.user_id)
            .filter(QuizAttempt.total_questions > 0)
            .group_by(QuizAttempt.user_id, User.name)
            .order_by(avg_pct.desc(), QuizAttempt.user_id.asc())
            .limit(limit)
            .all()
        )

        return [
            {
                "user_id": str(user_id),
                "name": name,
                "quiz_count": int(count),
                "avg_score": round_half_up(float(avg_score), 1),
                "best_score": round_half_up(float(best_score), 1),
            }
            for user_id, name, count, avg_score, best_score in results
        ]


# Global instance
analytics_service = AnalyticsService()
