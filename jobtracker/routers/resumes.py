"""
Resumes router — uploads, AI analysis and per-job tailoring.

Endpoints:
- GET    /api/resumes                  — list (newest first)
- POST   /api/resumes                  — create from pasted text
- POST   /api/resumes/upload           — upload a .txt/.md/.pdf file
- POST   /api/resumes/analyze          — AI review, cached on the resume
- POST   /api/resumes/tailor           — AI rewrite for one job (one row per resume+job)
- GET    /api/resumes/{id}
- GET    /api/resumes/{id}/tailored    — stored tailored versions
- DELETE /api/resumes/{id}
"""

import json
import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.errors import MalformedExternalResponse, NotFound, ValidationError
from jobtracker.models import Resume, TailoredResume, User
from jobtracker.routers.jobs import get_job
from jobtracker.schemas import (
    ResumeAnalyzeRequest, ResumeCreate, ResumeOut, TailoredResumeOut, TailorRequest, TailorResult,
)
from jobtracker.services import llm, prompts
from jobtracker.services.extractor import extract_text

logger = logging.getLogger(__name__)

router = APIRouter()


def get_resume(db: Session, user: User, resume_id: int) -> Resume:
    resume = db.query(Resume).filter(Resume.id == resume_id, Resume.user_id == user.id).first()
    if not resume:
        raise NotFound("Resume not found")
    return resume


def find_tailored(db: Session, resume_id: int, job_id: int) -> TailoredResume | None:
    return (
        db.query(TailoredResume)
        .filter(TailoredResume.resume_id == resume_id, TailoredResume.job_id == job_id)
        .first()
    )


def _score(value):
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


@router.get("/resumes", response_model=list[ResumeOut])
def list_resumes(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return (
        db.query(Resume)
        .filter(Resume.user_id == user.id)
        .order_by(Resume.created_at.desc(), Resume.id.desc())
        .all()
    )


@router.post("/resumes", response_model=ResumeOut, status_code=201)
def create_resume(data: ResumeCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if not data.name.strip() or not data.raw_text.strip():
        raise ValidationError("Name and resume text are required")

    resume = Resume(user_id=user.id, name=data.name.strip(), raw_text=data.raw_text)
    db.add(resume)
    db.commit()
    db.refresh(resume)
    return resume


@router.post("/resumes/upload", response_model=ResumeOut, status_code=201)
async def upload_resume(
    file: UploadFile = File(...),
    name: str = Form("My Resume"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Extract text from the uploaded file and store it as a new resume."""
    content_bytes = await file.read()
    text = extract_text(file.filename, content_bytes)

    resume = Resume(user_id=user.id, name=name or "My Resume", file_name=file.filename, raw_text=text)
    db.add(resume)
    db.commit()
    db.refresh(resume)
    return resume


@router.post("/resumes/analyze")
def analyze_resume(
    data: ResumeAnalyzeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    resume = get_resume(db, user, data.resume_id)

    prompt = prompts.resume_analysis_prompt(resume.raw_text)
    completion = llm.complete(prompt.system, prompt.user)
    analysis = llm.parse_json(completion.text)

    resume.parsed = json.dumps(analysis)
    db.commit()
    logger.info("Analyzed resume %s", resume.id)
    return analysis


@router.post("/resumes/tailor", response_model=TailorResult)
def tailor_resume(
    data: TailorRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Rewrite a resume for one job. Re-running for the same pair replaces the
    stored version rather than adding another.
    """
    resume = get_resume(db, user, data.resume_id)
    job = get_job(db, user, data.job_id)

    prompt = prompts.resume_tailoring_prompt(resume.raw_text, job.description, job.title, job.company)
    completion = llm.complete(prompt.system, prompt.user, max_tokens=4096)
    result = llm.parse_json(completion.text)

    tailored_text = result.get("tailoredResume")
    if not isinstance(tailored_text, str) or not tailored_text.strip():
        raise MalformedExternalResponse("The AI response did not include a tailored resume.")

    suggestions = _string_list(result.get("suggestions"))
    fields = {
        "tailored_text": tailored_text,
        "tailored_parsed": completion.text,
        "match_score": _score(result.get("matchScore")),
        "suggestions": json.dumps(suggestions),
    }

    tailored = find_tailored(db, resume.id, job.id)
    if tailored:
        for name, value in fields.items():
            setattr(tailored, name, value)
    else:
        tailored = TailoredResume(resume_id=resume.id, job_id=job.id, **fields)
        db.add(tailored)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the row for this pair first; overwrite it
        db.rollback()
        tailored = find_tailored(db, resume.id, job.id)
        for name, value in fields.items():
            setattr(tailored, name, value)
        db.commit()
    db.refresh(tailored)
    logger.info("Tailored resume %s for job %s (row %s)", resume.id, job.id, tailored.id)

    return TailorResult(
        id=tailored.id,
        tailored_resume=tailored_text,
        match_score=tailored.match_score,
        changes=_string_list(result.get("changes")),
        missing_skills=_string_list(result.get("missingSkills")),
        suggestions=suggestions,
    )


@router.get("/resumes/{resume_id}", response_model=ResumeOut)
def get_one(resume_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_resume(db, user, resume_id)


@router.get("/resumes/{resume_id}/tailored", response_model=list[TailoredResumeOut])
def list_tailored(resume_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    resume = get_resume(db, user, resume_id)
    return (
        db.query(TailoredResume)
        .filter(TailoredResume.resume_id == resume.id)
        .order_by(TailoredResume.updated_at.desc())
        .all()
    )


@router.delete("/resumes/{resume_id}", status_code=204)
def delete_resume(resume_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    resume = get_resume(db, user, resume_id)
    db.delete(resume)
    db.commit()
