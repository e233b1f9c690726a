"""
Pydantic schemas for quiz attempts
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime


class AnswerSelection(BaseModel):
    """A selection only; correctness is decided server-side"""
    question_id: str = Field(..., min_length=1, max_length=64)
    selected_option: Optional[Literal["A", "B", "C", "D"]] = None


class AttemptSubmission(BaseModel):
    """Schema for attempt submission"""
    answers: List[AnswerSelection] = Field(default_factory=list)


class AttemptAnswerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: str
    selected_option: Optional[str] = None
    correct: bool


class AttemptResponse(BaseModel):
    """Response after an attempt is recorded"""
    id: UUID
    quiz_id: UUID
    score: int
    total_questions: int
    percentage: int
    answers: List[AttemptAnswerOut]
    created_at: datetime
