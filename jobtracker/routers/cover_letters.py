"""
Cover letters router.

Endpoints:
- GET    /api/cover-letters            — list (?job_id=...), newest first
- POST   /api/cover-letters            — save; each save for a job is the next version
- POST   /api/cover-letters/generate   — AI draft, returned unsaved so the user can edit it
- GET    /api/cover-letters/{id}
- PUT    /api/cover-letters/{id}       — edit a saved version in place
- DELETE /api/cover-letters/{id}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.errors import Conflict, NotFound, ValidationError
from jobtracker.models import CoverLetter, Resume, User
from jobtracker.routers.jobs import get_job
from jobtracker.routers.resumes import get_resume
from jobtracker.schemas import (
    CoverLetterCreate, CoverLetterDraft, CoverLetterGenerateRequest, CoverLetterOut,
    CoverLetterUpdate, UsageOut,
)
from jobtracker.services import llm, prompts

logger = logging.getLogger(__name__)

router = APIRouter()


def get_cover_letter(db: Session, user: User, letter_id: int) -> CoverLetter:
    letter = (
        db.query(CoverLetter)
        .filter(CoverLetter.id == letter_id, CoverLetter.user_id == user.id)
        .first()
    )
    if not letter:
        raise NotFound("Cover letter not found")
    return letter


def next_version(db: Session, user: User, job_id: int) -> int:
    """1 for a job's first letter, then one past the highest existing version."""
    current = (
        db.query(func.max(CoverLetter.version))
        .filter(CoverLetter.user_id == user.id, CoverLetter.job_id == job_id)
        .scalar()
    )
    return (current or 0) + 1


@router.get("/cover-letters", response_model=list[CoverLetterOut])
def list_cover_letters(
    job_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(CoverLetter).options(joinedload(CoverLetter.job)).filter(CoverLetter.user_id == user.id)
    if job_id is not None:
        query = query.filter(CoverLetter.job_id == job_id)
    return query.order_by(CoverLetter.created_at.desc(), CoverLetter.id.desc()).all()


@router.post("/cover-letters", response_model=CoverLetterOut, status_code=201)
def save_cover_letter(
    data: CoverLetterCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not data.content.strip():
        raise ValidationError("content is required")
    job = get_job(db, user, data.job_id)

    letter = CoverLetter(
        user_id=user.id,
        job_id=job.id,
        content=data.content,
        tone=data.tone.value,
        version=next_version(db, user, job.id),
    )
    db.add(letter)
    try:
        db.commit()
    except IntegrityError:
        # Another save for the same job claimed this version number first
        db.rollback()
        raise Conflict("A newer version was saved at the same time. Please retry.")
    db.refresh(letter)
    return letter


@router.post("/cover-letters/generate", response_model=CoverLetterDraft)
def generate_cover_letter(
    data: CoverLetterGenerateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    job = get_job(db, user, data.job_id)

    if data.resume_id is not None:
        resume = get_resume(db, user, data.resume_id)
    else:
        resume = (
            db.query(Resume)
            .filter(Resume.user_id == user.id)
            .order_by(Resume.created_at.desc(), Resume.id.desc())
            .first()
        )
    if not resume:
        raise ValidationError("No resume found. Please add your resume first.")

    prompt = prompts.cover_letter_prompt(
        resume.raw_text, job.description, job.title, job.company, data.tone.value
    )
    completion = llm.complete(prompt.system, prompt.user, max_tokens=1024, temperature=0.7)
    logger.info("Generated cover letter draft for job %s", job.id)

    return CoverLetterDraft(
        content=completion.text.strip(),
        tone=data.tone,
        job_id=job.id,
        usage=UsageOut(**completion.usage),
    )


@router.get("/cover-letters/{letter_id}", response_model=CoverLetterOut)
def get_one(letter_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_cover_letter(db, user, letter_id)


@router.put("/cover-letters/{letter_id}", response_model=CoverLetterOut)
def update_cover_letter(
    letter_id: int,
    data: CoverLetterUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    letter = get_cover_letter(db, user, letter_id)
    if data.content is not None:
        letter.content = data.content
    if data.tone is not None:
        letter.tone = data.tone.value
    db.commit()
    db.refresh(letter)
    return letter


@router.delete("/cover-letters/{letter_id}", status_code=204)
def delete_cover_letter(letter_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    letter = get_cover_letter(db, user, letter_id)
    db.delete(letter)
    db.commit()
