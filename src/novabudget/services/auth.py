"""Authentication and user management services."""

from __future__ import annotations

import re
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..config import BaseConfig
from ..errors import AuthError
from ..logging_config import get_logger
from ..models.user import User

SessionFactory = Callable[[], Session]
AuthListener = Callable[[Optional[User]], None]

_hasher = PasswordHasher()
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _check_email(email: str) -> str:
    email = normalize_email(email)
    if not _EMAIL_RE.match(email):
        raise AuthError("The email address is badly formatted.")
    return email


def get_user_by_email(email: str, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by email."""
    with session_factory() as session:
        user = session.exec(select(User).where(User.email == normalize_email(email))).first()
        if user:
            session.expunge(user)
        return user


def create_user(*, email: str, password: str, session_factory: SessionFactory) -> User:
    """Create a new user with hashed password."""

    email = _check_email(email)
    if len(password or "") < BaseConfig.MIN_PASSWORD_LENGTH:
        raise AuthError(
            f"Password should be at least {BaseConfig.MIN_PASSWORD_LENGTH} characters."
        )
    password_hash = _hasher.hash(password)
    try:
        with session_factory() as session:
            existing = session.exec(select(User).where(User.email == email)).first()
            if existing:
                raise AuthError("The email address is already in use by another account.")
            user = User(email=email, password_hash=password_hash)
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user
    except IntegrityError as exc:
        raise AuthError("The email address is already in use by another account.") from exc


def authenticate(*, email: str, password: str, session_factory: SessionFactory) -> Optional[User]:
    """Validate credentials and return the user when correct."""

    email = normalize_email(email)
    if not email or not password:
        return None
    with session_factory() as session:
        user = session.exec(select(User).where(User.email == email)).first()
        if user is None:
            return None
        try:
            _hasher.verify(user.password_hash, password)
        except (VerifyMismatchError, InvalidHash, VerificationError):
            return None

        if _hasher.check_needs_rehash(user.password_hash):
            user.password_hash = _hasher.hash(password)
        user.last_login = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


class AuthService:
    """Tracks the signed-in user and tells listeners whenever it changes."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory
        self._lock = threading.RLock()
        self._current: Optional[User] = None
        self._listeners: list[AuthListener] = []

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    def sign_up(self, email: str, password: str) -> User:
        """Register and sign in."""

        user = create_user(email=email, password=password, session_factory=self._session_factory)
        logger.info("User registered", extra={"user_id": user.id})
        self._set_current(user)
        return user

    def sign_in(self, email: str, password: str) -> User:
        user = authenticate(email=email, password=password, session_factory=self._session_factory)
        if user is None:
            logger.info("Sign-in rejected")
            raise AuthError("Invalid email or password.")
        logger.info("User signed in", extra={"user_id": user.id})
        self._set_current(user)
        return user

    def sign_out(self) -> None:
        if self._current is None:
            return
        logger.info("User signed out", extra={"user_id": self._current.id})
        self._set_current(None)

    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener``; it is called now and on every change."""

        with self._lock:
            self._listeners.append(listener)
            current = self._current
        listener(current)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _set_current(self, user: Optional[User]) -> None:
        with self._lock:
            previous = self._current
            self._current = user
            listeners = list(self._listeners)
        if previous is user:
            return
        for listener in listeners:
            listener(user)
