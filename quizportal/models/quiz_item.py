"""
Quiz item models - flashcards, multiple choice and open questions.
Rows are written once by the generation pass and never updated.
"""
from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from quizportal.database import Base
import uuid


class Flashcard(Base):
    __tablename__ = "flashcards"
    __table_args__ = (UniqueConstraint("quiz_id", "sort_order"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    term = Column(Text, nullable=False)
    definition = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False)

    quiz = relationship("Quiz", back_populates="flashcards")

    def __repr__(self):
        return f"<Flashcard(quiz_id={self.quiz_id}, term={self.term})>"


class MCQ(Base):
    """
    Multiple choice question. correct_option is stored exactly as the model
    returned it; only an exact A-D match can ever score.
    """
    __tablename__ = "mcqs"
    __table_args__ = (UniqueConstraint("quiz_id", "sort_order"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    option_a = Column(Text, nullable=False)
    option_b = Column(Text, nullable=False)
    option_c = Column(Text, nullable=False)
    option_d = Column(Text, nullable=False)
    correct_option = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False)

    quiz = relationship("Quiz", back_populates="mcqs")

    def __repr__(self):
        return f"<MCQ(quiz_id={self.quiz_id}, correct={self.correct_option})>"


class OpenQuestion(Base):
    __tablename__ = "open_questions"
    __table_args__ = (UniqueConstraint("quiz_id", "sort_order"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    model_answer = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False)

    quiz = relationship("Quiz", back_populates="open_questions")

    def __repr__(self):
        return f"<OpenQuestion(quiz_id={self.quiz_id}, sort_order={self.sort_order})>"
