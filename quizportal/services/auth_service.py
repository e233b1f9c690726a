"""
User registration and email verification
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from quizportal.config import settings
from quizportal.exceptions import RegistrationError, VerificationError
from quizportal.models import User
from quizportal.utils.clock import utcnow

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


class AuthService:
    """
    Registration creates an unverified user with a 24h verification token.
    Sending the link is left to the mail collaborator; here it is only logged.
    """

    def register_user(
        self,
        db: Session,
        name: str,
        email: str,
        password: str,
        now: Optional[datetime] = None,
    ) -> Tuple[User, str]:
        """
        Raises:
            RegistrationError: missing field, wrong email domain, short password
                or email already registered
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()

        if not name or not email or not password:
            raise RegistrationError("All fields are required")

        domain = settings.ALLOWED_EMAIL_DOMAIN
        if domain and not email.endswith(f"@{domain}"):
            raise RegistrationError(f"Only @{domain} email addresses are accepted")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise RegistrationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if db.query(User).filter(User.email == email).first():
            raise RegistrationError("This email is already registered")

        now = now or utcnow()
        token = uuid.uuid4().hex
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            email_verified=False,
            verify_token=token,
            verify_token_expiry=now + timedelta(hours=settings.VERIFY_TOKEN_TTL_HOURS),
            created_at=now,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"User registered: {user.id}; verification link /verify?token={token}")
        return user, token

    def verify_email(self, db: Session, token: str, now: Optional[datetime] = None) -> User:
        """
        Mark the token's user as verified. Verifying twice is not an error.

        Raises:
            VerificationError: missing, unknown or expired token
        """
        if not token:
            raise VerificationError("Token not found")

        user = db.query(User).filter(User.verify_token == token).first()
        if not user:
            raise VerificationError("Invalid token")

        if user.email_verified:
            return user

        now = now or utcnow()
        if user.verify_token_expiry and user.verify_token_expiry < now:
            raise VerificationError("Token has expired")

        user.email_verified = True
        db.commit()

        logger.info(f"User verified: {user.id}")
        return user


# Global instance
auth_service = AuthService()
