"""
Registration and email verification endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from quizportal.database import get_db
from quizportal.exceptions import RegistrationError, VerificationError
from quizportal.schemas.auth import MessageResponse, RegisterRequest
from quizportal.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(
    request: RegisterRequest,
    db: Session = Depends(get_db)
):
    """Create an unverified account and issue a verification token"""
    try:
        auth_service.register_user(db, request.name, request.email, request.password)
    except RegistrationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MessageResponse(message="Registration successful! Please verify your email.")


@router.get("/verify", response_model=MessageResponse)
async def verify(
    token: str = Query(""),
    db: Session = Depends(get_db)
):
    """Confirm an email address"""
    try:
        auth_service.verify_email(db, token)
    except VerificationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MessageResponse(message="Email verified successfully!")
