"""
Pydantic schemas for quiz-related requests and responses
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime


class UploadResponse(BaseModel):
    """Stored document reference returned by the upload endpoint"""
    file_url: str
    file_name: str
    file_size: int


class QuizCreate(BaseModel):
    """Request schema for creating a quiz from an uploaded document. Counts are clamped to 1-30."""
    title: str = Field(..., min_length=1, max_length=255)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=512)
    file_size: int = Field(0, ge=0)
    flashcard_count: Optional[int] = None
    mcq_count: Optional[int] = None
    open_question_count: Optional[int] = None


class QuizGenerateRequest(BaseModel):
    """Request schema for (re)scheduling a generation pass"""
    quiz_id: UUID


class FlashcardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    term: str
    definition: str
    sort_order: int


class MCQOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_option: str
    sort_order: int


class OpenQuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    question: str
    model_answer: str
    sort_order: int


class QuizSummary(BaseModel):
    """Quiz row plus item counts, used in listings and creation responses"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    file_name: str
    file_url: str
    file_size: int
    status: str
    flashcard_count: int
    mcq_count: int
    open_question_count: int
    share_token: Optional[str] = None
    created_at: datetime
    flashcards_total: int = 0
    mcqs_total: int = 0
    open_questions_total: int = 0


class QuizDetail(BaseModel):
    """Owner view of a quiz with all items in sort order"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    file_name: str
    file_size: int
    status: str
    share_token: Optional[str] = None
    created_at: datetime
    flashcards: List[FlashcardOut]
    mcqs: List[MCQOut]
    open_questions: List[OpenQuestionOut]


class QuizStatusResponse(BaseModel):
    """Polled by clients while a quiz is GENERATING"""
    id: UUID
    status: str


class ShareTokenResponse(BaseModel):
    share_token: str


class SharedQuizResponse(BaseModel):
    """Read-only share view. No status, owner or file metadata."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    flashcards: List[FlashcardOut]
    mcqs: List[MCQOut]
    open_questions: List[OpenQuestionOut]


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Full conversation is resent on every turn"""
    message: str = Field(..., min_length=1, max_length=4000)
    history: List[ChatTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str
