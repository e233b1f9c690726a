"""
Quiz upload, generation, retrieval, sharing, attempts, chat and export endpoints
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import asyncio
import logging

from quizportal.api.deps import get_current_user
from quizportal.database import get_db
from quizportal.exceptions import (
    ChatFailedError,
    InvalidStateError,
    InvalidSubmissionError,
    InvalidUploadError,
    QuizNotFoundError,
)
from quizportal.models import Quiz, User
from quizportal.schemas.attempt import AttemptAnswerOut, AttemptResponse, AttemptSubmission
from quizportal.schemas.quiz import (
    ChatRequest,
    ChatResponse,
    QuizCreate,
    QuizDetail,
    QuizGenerateRequest,
    QuizStatusResponse,
    QuizSummary,
    ShareTokenResponse,
    UploadResponse,
)
from quizportal.services.chat_service import FALLBACK_REPLY, chat_service
from quizportal.services.export_service import export_file_name, render_quiz_html
from quizportal.services.generation_service import generation_service
from quizportal.services.quiz_service import quiz_service
from quizportal.services.scoring_service import percentage, scoring_service
from quizportal.services.storage_service import storage_service
from quizportal.services.text_extractor import extract_text


router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


def _owned_quiz(db: Session, quiz_id: UUID, user: User, with_items: bool = False) -> Quiz:
    try:
        return quiz_service.get_owned_quiz(db, quiz_id, user.id, with_items=with_items)
    except QuizNotFoundError:
        raise HTTPException(status_code=404, detail="Quiz not found")


def _summary(quiz: Quiz, flashcards_total: int = 0, mcqs_total: int = 0, open_questions_total: int = 0) -> QuizSummary:
    summary = QuizSummary.model_validate(quiz)
    summary.flashcards_total = flashcards_total
    summary.mcqs_total = mcqs_total
    summary.open_questions_total = open_questions_total
    return summary


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user)
):
    """
    Store a lecture document (PDF, DOCX or PPTX, max 20MB) for quiz generation
    """
    content = await file.read()

    try:
        stored = await storage_service.save_upload(content, file.filename or "")
    except InvalidUploadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UploadResponse(**stored)


@router.post("/", response_model=QuizSummary, status_code=201)
async def create_quiz(
    request: QuizCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a quiz for an uploaded document and start generating it

    The quiz is returned in GENERATING state; poll /{quiz_id}/status
    until it becomes READY or FAILED.
    """
    try:
        quiz = quiz_service.create_quiz(
            db,
            user_id=user.id,
            title=request.title,
            file_name=request.file_name,
            file_url=request.file_url,
            file_size=request.file_size,
            flashcard_count=request.flashcard_count,
            mcq_count=request.mcq_count,
            open_question_count=request.open_question_count,
        )
    except Exception as e:
        logger.error(f"Failed to create quiz: {str(e)}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to create quiz")

    background_tasks.add_task(generation_service.start_generation, quiz.id)

    return _summary(quiz)


@router.get("/", response_model=List[QuizSummary])
async def list_quizzes(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the caller's quizzes, newest first"""
    rows = quiz_service.list_quizzes(db, user.id)
    return [
        _summary(row["quiz"], row["flashcards_total"], row["mcqs_total"], row["open_questions_total"])
        for row in rows
    ]


@router.post("/generate", status_code=202)
async def trigger_generation(
    request: QuizGenerateRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Schedule the generation pass for a quiz that has not started one yet
    """
    quiz = _owned_quiz(db, request.quiz_id, user)

    if not generation_service.is_claimable(quiz):
        raise HTTPException(
            status_code=409,
            detail=f"Quiz generation already started or finished (status: {quiz.status})"
        )

    background_tasks.add_task(generation_service.start_generation, quiz.id)

    return {"quiz_id": str(quiz.id), "status": quiz.status}


@router.get("/{quiz_id}", response_model=QuizDetail)
async def get_quiz(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Full quiz with items in display order"""
    quiz = _owned_quiz(db, quiz_id, user, with_items=True)
    return QuizDetail.model_validate(quiz)


@router.get("/{quiz_id}/status", response_model=QuizStatusResponse)
async def get_quiz_status(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lightweight status check for polling clients"""
    quiz = _owned_quiz(db, quiz_id, user)
    return QuizStatusResponse(id=quiz.id, status=quiz.status)


@router.post("/{quiz_id}/share", response_model=ShareTokenResponse)
async def share_quiz(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the quiz's share token, creating it on first request
    """
    quiz = _owned_quiz(db, quiz_id, user)
    return ShareTokenResponse(share_token=quiz_service.request_share_token(db, quiz))


@router.delete("/{quiz_id}")
async def delete_quiz(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a quiz together with its items and attempts"""
    quiz = _owned_quiz(db, quiz_id, user)
    quiz_service.delete_quiz(db, quiz)
    return {"success": True}


@router.post("/{quiz_id}/attempts", response_model=AttemptResponse, status_code=201)
async def submit_attempt(
    quiz_id: UUID,
    submission: AttemptSubmission,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Record a completed attempt

    Correctness is computed from the stored answer key; the request only
    carries the selected options.
    """
    quiz = _owned_quiz(db, quiz_id, user)

    try:
        attempt = scoring_service.record_attempt(db, quiz, user.id, submission.answers)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidSubmissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to record attempt: {str(e)}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to record attempt")

    return AttemptResponse(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        score=attempt.score,
        total_questions=attempt.total_questions,
        percentage=percentage(attempt.score, attempt.total_questions),
        answers=[AttemptAnswerOut.model_validate(a) for a in attempt.answers],
        created_at=attempt.created_at,
    )


def _material_text(quiz: Quiz) -> str:
    """Document text, or a digest of the quiz items when the file is unusable"""
    try:
        return extract_text(storage_service.read_bytes(quiz.file_url), quiz.file_name)
    except Exception as e:
        logger.warning(f"Falling back to quiz items as chat material for {quiz.id}: {str(e)}")

    parts = [f"{fc.term}: {fc.definition}" for fc in quiz.flashcards]
    parts.extend(f"Q: {m.question} A: {m.correct_option}" for m in quiz.mcqs)
    parts.extend(f"Q: {oq.question} A: {oq.model_answer}" for oq in quiz.open_questions)
    return "\n".join(parts)


@router.post("/{quiz_id}/chat", response_model=ChatResponse)
async def chat_with_material(
    quiz_id: UUID,
    request: ChatRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Ask the assistant about the quiz's source material

    Model failures produce an apologetic reply instead of an error status.
    """
    quiz = _owned_quiz(db, quiz_id, user, with_items=True)

    material = await asyncio.to_thread(_material_text, quiz)
    history = [turn.model_dump() for turn in request.history]

    try:
        reply = await asyncio.to_thread(chat_service.chat, material, request.message, history)
    except ChatFailedError:
        reply = FALLBACK_REPLY

    return ChatResponse(reply=reply)


@router.get("/{quiz_id}/export", response_class=HTMLResponse)
async def export_quiz(
    quiz_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Download the quiz as a printable HTML document"""
    quiz = _owned_quiz(db, quiz_id, user, with_items=True)

    return HTMLResponse(
        content=render_quiz_html(quiz),
        headers={"Content-Disposition": f'attachment; filename="{export_file_name(quiz.title)}"'}
    )
