"""
Database models package
"""
from quizportal.models.user import User, UserRole
from quizportal.models.quiz import Quiz, QuizStatus
from quizportal.models.quiz_item import Flashcard, MCQ, OpenQuestion
from quizportal.models.quiz_attempt import QuizAttempt, AttemptAnswer
from quizportal.models.course import Course, CourseMaterial, CourseEnrollment, MaterialType

__all__ = [
    "User", "UserRole", "Quiz", "QuizStatus", "Flashcard", "MCQ", "OpenQuestion",
    "QuizAttempt", "AttemptAnswer", "Course", "CourseMaterial", "CourseEnrollment", "MaterialType",
]
