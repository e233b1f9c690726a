"""
QuizAttempt model - stores scored quiz submissions
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from quizportal.database import Base
from quizportal.utils.clock import utcnow
import uuid


class QuizAttempt(Base):
    """
    Quiz attempts table - one immutable row per completed pass through a quiz's MCQs
    """
    __tablename__ = "quiz_attempts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Integer, nullable=False)  # count correct
    total_questions = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    user = relationship("User", back_populates="attempts")
    quiz = relationship("Quiz", back_populates="attempts")
    answers = relationship(
        "AttemptAnswer", back_populates="attempt", cascade="all, delete-orphan",
        order_by="AttemptAnswer.position"
    )

    def __repr__(self):
        return f"<QuizAttempt(user_id={self.user_id}, quiz_id={self.quiz_id}, score={self.score}/{self.total_questions})>"


class AttemptAnswer(Base):
    """
    Per-question outcome of an attempt. question_id has no foreign key so
    outcomes survive the question row.
    """
    __tablename__ = "attempt_answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    attempt_id = Column(Uuid, ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    question_id = Column(String(64), nullable=False, index=True)
    selected_option = Column(String(1), nullable=True)
    correct = Column(Boolean, nullable=False)

    attempt = relationship("QuizAttempt", back_populates="answers")

    def __repr__(self):
        return f"<AttemptAnswer(question_id={self.question_id}, correct={self.correct})>"
