"""
Auth router — accounts and bearer tokens.

Endpoints:
- POST /api/auth/register  — create an account, returns a token
- POST /api/auth/login     — exchange credentials for a fresh token
- GET  /api/auth/me        — the user behind the current token
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobtracker.auth import authenticate, create_user, get_current_user
from jobtracker.database import get_db
from jobtracker.models import User
from jobtracker.schemas import LoginRequest, RegisterRequest, TokenOut, UserOut

router = APIRouter()


@router.post("/auth/register", response_model=TokenOut, status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    user = create_user(db, data.email, data.password, data.name)
    return TokenOut(token=user.api_token, user=UserOut.model_validate(user))


@router.post("/auth/login", response_model=TokenOut)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, data.email, data.password)
    return TokenOut(token=user.api_token, user=UserOut.model_validate(user))


@router.get("/auth/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
