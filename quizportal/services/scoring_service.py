"""
Attempt scoring service

MCQ answers are graded against the stored answer key. The client submits
selections only; its own notion of correctness is never trusted.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Union
from uuid import UUID

from sqlalchemy.orm import Session

from quizportal.exceptions import InvalidStateError, InvalidSubmissionError
from quizportal.models import AttemptAnswer, Quiz, QuizAttempt, QuizStatus
from quizportal.schemas.attempt import AnswerSelection
from quizportal.utils.cache import LEADERBOARD_KEY, cache_service

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """Round like a person would (2.5 -> 3), unlike Python's banker's rounding"""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def percentage(score: int, total_questions: int) -> int:
    """Whole-number percentage; 0 when the attempt had no questions"""
    if total_questions <= 0:
        return 0
    return round_half_up(score / total_questions * 100)


class ScoringService:
    """Service for recording graded quiz attempts"""

    def record_attempt(
        self,
        db: Session,
        quiz: Quiz,
        user_id: UUID,
        selections: List[AnswerSelection],
    ) -> QuizAttempt:
        """
        Grade selections against the quiz's MCQs and store the attempt

        Every MCQ of the quiz gets an outcome row; unanswered questions count
        as missed.

        Raises:
            InvalidStateError: quiz is not READY
            InvalidSubmissionError: selection for a question outside the quiz,
                or the same question answered twice
        """
        if quiz.status != QuizStatus.READY.value:
            raise InvalidStateError(f"Quiz is {quiz.status}; attempts need a READY quiz")

        mcqs = {str(mcq.id): mcq for mcq in quiz.mcqs}

        selected = {}
        for selection in selections:
            if selection.question_id not in mcqs:
                raise InvalidSubmissionError(f"Question {selection.question_id} is not part of this quiz")
            if selection.question_id in selected:
                raise InvalidSubmissionError(f"Question {selection.question_id} answered more than once")
            selected[selection.question_id] = selection.selected_option

        answers = []
        score = 0
        for position, (question_id, mcq) in enumerate(mcqs.items()):
            option = selected.get(question_id)
            correct = option is not None and option == mcq.correct_option
            score += int(correct)
            answers.append(AttemptAnswer(
                position=position,
                question_id=question_id,
                selected_option=option,
                correct=correct,
            ))

        attempt = QuizAttempt(
            quiz_id=quiz.id,
            user_id=user_id,
            score=score,
            total_questions=len(mcqs),
            answers=answers,
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)

        cache_service.delete(LEADERBOARD_KEY)

        logger.info(
            f"Quiz attempt saved: {attempt.id}, score: {score}/{len(mcqs)} "
            f"({percentage(score, len(mcqs))}%)"
        )
        return attempt


# Global instance
scoring_service = ScoringService()
