"""
Quiz model - one generated quiz per uploaded document
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from quizportal.database import Base
from quizportal.utils.clock import utcnow
import enum
import uuid


class QuizStatus(str, enum.Enum):
    """Generation lifecycle. READY and FAILED are terminal."""
    PENDING = "PENDING"
    GENERATING = "GENERATING"
    READY = "READY"
    FAILED = "FAILED"


class Quiz(Base):
    """
    Quizzes table - source file metadata, requested counts and lifecycle status
    """
    __tablename__ = "quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(512), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=QuizStatus.GENERATING.value, index=True)
    flashcard_count = Column(Integer, nullable=False, default=10)
    mcq_count = Column(Integer, nullable=False, default=10)
    open_question_count = Column(Integer, nullable=False, default=5)
    share_token = Column(String(64), unique=True, nullable=True, index=True)
    generation_started_at = Column(DateTime, nullable=True)  # set by the winning claim
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="quizzes")
    flashcards = relationship(
        "Flashcard", back_populates="quiz", cascade="all, delete-orphan",
        order_by="Flashcard.sort_order"
    )
    mcqs = relationship(
        "MCQ", back_populates="quiz", cascade="all, delete-orphan",
        order_by="MCQ.sort_order"
    )
    open_questions = relationship(
        "OpenQuestion", back_populates="quiz", cascade="all, delete-orphan",
        order_by="OpenQuestion.sort_order"
    )
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Quiz(id={self.id}, title={self.title}, status={self.status})>"
