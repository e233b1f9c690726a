"""
Shared request dependencies
"""
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from quizportal.database import get_db
from quizportal.models import User, UserRole


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the caller from the X-User-Id header set by the auth gateway
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not user.email_verified:
        raise HTTPException(status_code=403, detail="Email not verified")

    return user


def get_admin_user(user: User = Depends(get_current_user)) -> User:
    """Course catalogue changes are reserved for administrators"""
    if user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Access denied")
    return user
