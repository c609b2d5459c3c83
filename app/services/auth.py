import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlmodel import Session, select, func
from fastapi import HTTPException, status

from app.models.user import User
from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.security import (
    create_access_token,
    generate_reset_token,
    get_password_hash,
    hash_reset_token,
    verify_password,
)
from app.services.email import send_reset_password_email

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_email(self, email: str) -> Optional[User]:
        # Case-insensitive lookup
        return self.session.exec(select(User).where(func.lower(User.email) == email.strip().lower())).first()

    def _check_password(self, password: str) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    def register_user(self, name: str, email: str, password: str) -> User:
        if not name or not name.strip():
            raise ValidationError("Name is required")
        self._check_password(password)

        if self.get_user_by_email(email):
            raise ValidationError("An account with this email already exists")

        user = User(
            name=name.strip(),
            email=email.strip().lower(),
            password_hash=get_password_hash(password),
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email)
        # Same message for unknown email and bad password
        if not user or not verify_password(password, user.password_hash):
            logger.info("Login failed for %s", email)
            raise ValidationError("Invalid credentials")
        return user

    def issue_token(self, user: User) -> str:
        return create_access_token(user.id)

    def create_password_reset_token(self, email: str) -> str:
        user = self.get_user_by_email(email)
        if not user:
            raise NotFoundError("User not found")

        raw_token, hashed = generate_reset_token()
        user.reset_password_token = hashed
        user.reset_password_expire = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
        self.session.add(user)
        self.session.commit()

        if not send_reset_password_email(user.email, raw_token):
            user.reset_password_token = None
            user.reset_password_expire = None
            self.session.add(user)
            self.session.commit()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Email could not be sent")
        return raw_token

    def reset_password(self, token: str, new_password: str) -> User:
        self._check_password(new_password)
        user = self.session.exec(
            select(User).where(
                User.reset_password_token == hash_reset_token(token),
                User.reset_password_expire > datetime.now(timezone.utc),
            )
        ).first()
        if not user:
            raise ValidationError("Invalid or expired token")

        user.password_hash = get_password_hash(new_password)
        user.reset_password_token = None
        user.reset_password_expire = None
        user.updated_at = datetime.now(timezone.utc)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"Password reset for user {user.id}")
        return user
