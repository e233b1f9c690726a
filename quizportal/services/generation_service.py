"""
Generation pass: stored document -> extracted text -> model output -> persisted items

Status transitions handled here:
    GENERATING -> READY   items and status committed together
    GENERATING -> FAILED  nothing from the pass is kept
"""
import logging
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session, sessionmaker

from quizportal.config import settings
from quizportal.database import SessionLocal
from quizportal.models import Flashcard, MCQ, OpenQuestion, Quiz, QuizStatus
from quizportal.services.quiz_content_service import (
    QuizContent,
    QuizContentService,
    QuizCounts,
    quiz_content_service,
)
from quizportal.services.storage_service import StorageService, storage_service
from quizportal.services.text_extractor import extract_text
from quizportal.utils.clock import utcnow

logger = logging.getLogger(__name__)


class GenerationService:
    """
    Runs one generation pass per quiz

    A pass must first win the claim (conditional UPDATE on the quiz row), so
    two triggers for the same quiz cannot both call the model or both write
    items. The final status flip is conditional too.
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        content_service: Optional[QuizContentService] = None,
        storage: Optional[StorageService] = None,
        extractor: Callable[[bytes, str], str] = extract_text,
        min_chars: Optional[int] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.content_service = content_service or quiz_content_service
        self.storage = storage or storage_service
        self.extractor = extractor
        self.min_chars = min_chars if min_chars is not None else settings.MIN_EXTRACTED_CHARS

    def is_claimable(self, quiz: Quiz) -> bool:
        return quiz.status == QuizStatus.GENERATING.value and quiz.generation_started_at is None

    def claim(self, db: Session, quiz_id: UUID) -> bool:
        """Mark the pass as started. Only one caller per quiz gets True."""
        result = db.execute(
            update(Quiz)
            .where(
                Quiz.id == quiz_id,
                Quiz.status == QuizStatus.GENERATING.value,
                Quiz.generation_started_at.is_(None),
            )
            .values(generation_started_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

    def start_generation(self, quiz_id: UUID) -> None:
        """
        Background entry point. Never raises: every failure ends in FAILED
        and is only observable through status polling.
        """
        db = self.session_factory()
        try:
            try:
                claimed = self.claim(db, quiz_id)
            except Exception as e:
                db.rollback()
                logger.error(f"Could not claim quiz {quiz_id} for generation: {str(e)}", exc_info=True)
                return

            if not claimed:
                logger.warning(f"Generation for quiz {quiz_id} already claimed or finished; skipping")
                return

            quiz = db.get(Quiz, quiz_id)
            try:
                self._run_pass(db, quiz)
            except Exception as e:
                db.rollback()
                logger.error(f"Quiz generation error for {quiz_id}: {str(e)}", exc_info=True)
                self._mark_failed(db, quiz_id)
        finally:
            db.close()

    def _run_pass(self, db: Session, quiz: Quiz) -> None:
        logger.info(f"Generating quiz {quiz.id} from {quiz.file_name}")

        content = self.storage.read_bytes(quiz.file_url)
        text = self.extractor(content, quiz.file_name)

        if not text or len(text.strip()) < self.min_chars:
            logger.warning(f"Could not extract enough text from {quiz.file_name} (quiz {quiz.id})")
            self._mark_failed(db, quiz.id)
            return

        counts = QuizCounts(
            flashcard_count=quiz.flashcard_count,
            mcq_count=quiz.mcq_count,
            open_question_count=quiz.open_question_count,
        )
        generated = self.content_service.generate_quiz_content(text, counts)

        self._persist(db, quiz.id, generated)

    def _persist(self, db: Session, quiz_id: UUID, generated: QuizContent) -> None:
        """Write all items and flip to READY in one transaction"""
        for i, fc in enumerate(generated.flashcards):
            db.add(Flashcard(
                quiz_id=quiz_id,
                term=fc["term"],
                definition=fc["definition"],
                sort_order=i,
            ))

        for i, mcq in enumerate(generated.mcqs):
            db.add(MCQ(
                quiz_id=quiz_id,
                question=mcq["question"],
                option_a=mcq["optionA"],
                option_b=mcq["optionB"],
                option_c=mcq["optionC"],
                option_d=mcq["optionD"],
                correct_option=mcq["correctOption"],
                sort_order=i,
            ))

        for i, oq in enumerate(generated.open_questions):
            db.add(OpenQuestion(
                quiz_id=quiz_id,
                question=oq["question"],
                model_answer=oq["modelAnswer"],
                sort_order=i,
            ))

        result = db.execute(
            update(Quiz)
            .where(Quiz.id == quiz_id, Quiz.status == QuizStatus.GENERATING.value)
            .values(status=QuizStatus.READY.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning(f"Quiz {quiz_id} left GENERATING before results were saved; discarding them")
            return

        db.commit()
        logger.info(
            f"Quiz {quiz_id} READY: {len(generated.flashcards)} flashcards, "
            f"{len(generated.mcqs)} MCQs, {len(generated.open_questions)} open questions"
        )

    def _mark_failed(self, db: Session, quiz_id: UUID) -> None:
        try:
            db.execute(
                update(Quiz)
                .where(Quiz.id == quiz_id, Quiz.status == QuizStatus.GENERATING.value)
                .values(status=QuizStatus.FAILED.value)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            logger.info(f"Quiz {quiz_id} marked FAILED")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to mark quiz {quiz_id} as FAILED: {str(e)}")


# Global instance
generation_service = GenerationService()
