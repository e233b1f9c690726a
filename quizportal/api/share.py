"""
Public read-only access to shared quizzes
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from quizportal.database import get_db
from quizportal.exceptions import QuizNotFoundError
from quizportal.schemas.quiz import SharedQuizResponse
from quizportal.services.quiz_service import quiz_service

router = APIRouter(prefix="/api/share", tags=["share"])
logger = logging.getLogger(__name__)


@router.get("/{share_token}", response_model=SharedQuizResponse)
async def get_shared_quiz(
    share_token: str,
    db: Session = Depends(get_db)
):
    """
    Quiz content for anyone holding the share token (no authentication)
    """
    try:
        return quiz_service.get_shared_quiz(db, share_token)
    except QuizNotFoundError:
        raise HTTPException(status_code=404, detail="Quiz not found")
