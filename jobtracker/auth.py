"""
Authentication: password hashing plus bearer-token lookup.

Routes receive the caller as an explicit `User` through the
`get_current_user` dependency and pass it down into every service call.
"""

import logging
import secrets

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from jobtracker.database import get_db
from jobtracker.errors import AuthenticationRequired, Conflict, ValidationError
from jobtracker.models import User

logger = logging.getLogger(__name__)

# auto_error=False so a missing header gets our uniform 401 body
security = HTTPBearer(auto_error=False)

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def _check_password(password: str) -> None:
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long (max 72 bytes).")


def new_token() -> str:
    return secrets.token_urlsafe(32)


def create_user(db: Session, email: str, password: str, name: str | None = None) -> User:
    email = email.strip().lower()
    if not email:
        raise ValidationError("Email is required.")
    _check_password(password)
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already registered.")

    user = User(email=email, name=name, password_hash=bcrypt.hash(password), api_token=new_token())
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Return the user for valid credentials and rotate their token."""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not bcrypt.verify(password, user.password_hash):
        raise AuthenticationRequired("Invalid email or password.")

    user.api_token = new_token()
    db.commit()
    db.refresh(user)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(security),
    db: Session = Depends(get_db),
) -> User:
    """FastAPI dependency resolving the bearer token to its user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired()

    user = db.query(User).filter(User.api_token == credentials.credentials).first()
    if not user:
        raise AuthenticationRequired()
    return user
