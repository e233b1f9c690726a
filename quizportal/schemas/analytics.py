"""
Pydantic schemas for analytics endpoints
"""
from pydantic import BaseModel
from typing import List
from uuid import UUID


class ScorePoint(BaseModel):
    """One attempt in the score-over-time series"""
    date: str
    score: int
    quiz: str


class QuizAverage(BaseModel):
    """Mean percentage for a single quiz"""
    title: str
    avg_score: int


class MissedQuestion(BaseModel):
    """Question text (or bare id when the question no longer exists) and miss count"""
    question: str
    count: int


class UserAnalytics(BaseModel):
    """Complete user performance analytics"""
    total_quizzes: int
    total_attempts: int
    average_score: int
    best_score: int
    quizzes_this_week: int
    score_over_time: List[ScorePoint]
    per_quiz: List[QuizAverage]
    most_missed: List[MissedQuestion]


class LeaderboardEntry(BaseModel):
    """Ranked user with mean and best percentages (one decimal place)"""
    rank: int
    user_id: UUID
    name: str
    quiz_count: int
    avg_score: float
    best_score: float
    is_current_user: bool
