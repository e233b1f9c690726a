"""
Performance analytics and leaderboard endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from quizportal.api.deps import get_current_user
from quizportal.database import get_db
from quizportal.models import User
from quizportal.schemas.analytics import LeaderboardEntry, UserAnalytics
from quizportal.services.analytics_service import analytics_service

router = APIRouter(prefix="/api", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("/analytics", response_model=UserAnalytics)
async def get_user_analytics(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get performance analytics for the caller

    Returns:
    - Quiz and attempt totals
    - Average and best percentage, attempts in the last 7 days
    - Score history (last 20 attempts)
    - Per-quiz averages
    - Most missed questions
    """

    try:
        logger.info(f"Fetching analytics for user {user.id}")

        analytics = analytics_service.get_user_analytics(db, user.id)

        return UserAnalytics(**analytics)

    except Exception as e:
        logger.error(f"Failed to fetch user analytics: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail="Failed to fetch analytics"
        )


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Top 50 users by mean attempt percentage
    """

    try:
        entries = analytics_service.get_leaderboard(db, viewer_id=user.id)

        return [LeaderboardEntry(**entry) for entry in entries]

    except Exception as e:
        logger.error(f"Failed to fetch leaderboard: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail="Failed to fetch leaderboard"
        )
