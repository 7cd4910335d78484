"""
Settings router — per-user SMTP server and the active LLM.

Endpoints:
- GET  /api/settings/smtp       — current SMTP config (password masked), or null
- PUT  /api/settings/smtp       — create or replace; sending the mask keeps the stored password
- POST /api/settings/smtp/test  — try to connect and log in with the given settings
- GET  /api/settings/llm        — current LLM provider and model (no secrets exposed)
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobtracker.auth import get_current_user
from jobtracker.config import settings
from jobtracker.database import get_db
from jobtracker.errors import ValidationError
from jobtracker.models import SmtpConfig, User
from jobtracker.schemas import LlmSettingsOut, SmtpConfigIn, SmtpConfigOut, SmtpTestResult
from jobtracker.services import mailer
from jobtracker.services.llm import model_name

router = APIRouter()

PASSWORD_MASK = "••••••••"


def _masked(config: SmtpConfig) -> SmtpConfigOut:
    return SmtpConfigOut(
        host=config.host,
        port=config.port,
        secure=config.secure,
        username=config.username,
        password=PASSWORD_MASK,
        from_name=config.from_name,
        updated_at=config.updated_at,
    )


@router.get("/settings/smtp", response_model=Optional[SmtpConfigOut])
def get_smtp(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    config = db.query(SmtpConfig).filter(SmtpConfig.user_id == user.id).first()
    return _masked(config) if config else None


@router.put("/settings/smtp", response_model=SmtpConfigOut)
def put_smtp(data: SmtpConfigIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    config = db.query(SmtpConfig).filter(SmtpConfig.user_id == user.id).first()

    if config is None:
        if not data.password or data.password == PASSWORD_MASK:
            raise ValidationError("password is required")
        config = SmtpConfig(user_id=user.id, password=data.password)
        db.add(config)
    elif data.password and data.password != PASSWORD_MASK:
        config.password = data.password

    config.host = data.host
    config.port = data.port or 587
    config.secure = data.secure
    config.username = data.username
    config.from_name = data.from_name or None

    db.commit()
    db.refresh(config)
    return _masked(config)


@router.post("/settings/smtp/test", response_model=SmtpTestResult)
def test_smtp(data: SmtpConfigIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Connection check; the masked password means 'use the one already saved'."""
    password = data.password
    if password == PASSWORD_MASK:
        stored = db.query(SmtpConfig).filter(SmtpConfig.user_id == user.id).first()
        password = stored.password if stored else ""

    result = mailer.verify_connection(mailer.SmtpSettings(
        host=data.host,
        port=data.port or 587,
        secure=data.secure,
        username=data.username,
        password=password,
    ))
    return SmtpTestResult(success=result.success, error=result.error)


@router.get("/settings/llm", response_model=LlmSettingsOut)
def get_llm_settings(user: User = Depends(get_current_user)):
    """Return current LLM configuration (no secrets exposed)."""
    return LlmSettingsOut(llm_provider=settings.LLM_PROVIDER, model=model_name() or None)
