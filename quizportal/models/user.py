"""
User model - registered portal users
"""
from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from sqlalchemy.orm import relationship
from quizportal.database import Base
from quizportal.utils.clock import utcnow
import enum
import uuid


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class User(Base):
    """
    Users table - registration, email verification state and role
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    email_verified = Column(Boolean, nullable=False, default=False)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
    verify_token = Column(String(64), unique=True, index=True)
    verify_token_expiry = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    quizzes = relationship("Quiz", back_populates="user", cascade="all, delete-orphan")
    attempts = relationship("QuizAttempt", back_populates="user", cascade="all, delete-orphan")
    enrollments = relationship("CourseEnrollment", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, verified={self.email_verified})>"
