"""
Jobs router — saved postings.

Endpoints:
- GET    /api/jobs          — list saved jobs (newest first, with application)
- POST   /api/jobs          — save a job (manual or aggregator-shaped payload)
- GET    /api/jobs/search   — proxy a search to the job aggregator
- POST   /api/jobs/parse    — let the LLM pull structured fields out of pasted text
- GET    /api/jobs/{id}     — one saved job
- PUT    /api/jobs/{id}     — manual edits
- DELETE /api/jobs/{id}     — remove a job (and its application, interviews, letters)
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session, joinedload

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.errors import Conflict, NotFound
from jobtracker.models import SavedJob, User
from jobtracker.schemas import JobOut, JobParseRequest, JobUpdate, JobWithApplication
from jobtracker.services import llm, prompts
from jobtracker.services.job_search import SearchParams, normalize_posting, search_jobs

logger = logging.getLogger(__name__)

router = APIRouter()


def get_job(db: Session, user: User, job_id: int) -> SavedJob:
    """Owner-filtered lookup shared by every router that takes a job_id."""
    job = db.query(SavedJob).filter(SavedJob.id == job_id, SavedJob.user_id == user.id).first()
    if not job:
        raise NotFound("Job not found")
    return job


@router.get("/jobs", response_model=list[JobWithApplication])
def list_jobs(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return (
        db.query(SavedJob)
        .options(joinedload(SavedJob.application))
        .filter(SavedJob.user_id == user.id)
        .order_by(SavedJob.created_at.desc(), SavedJob.id.desc())
        .all()
    )


@router.post("/jobs", response_model=JobOut, status_code=201)
def save_job(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Save a posting. Aggregator results can be posted back exactly as search returned them."""
    fields = normalize_posting(payload)

    if fields["external_id"]:
        existing = (
            db.query(SavedJob)
            .filter(SavedJob.user_id == user.id, SavedJob.external_id == fields["external_id"])
            .first()
        )
        if existing:
            raise Conflict("This job is already saved.")

    job = SavedJob(user_id=user.id, **fields)
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("User %s saved job %s from %s", user.id, job.id, job.source)
    return job


@router.get("/jobs/search")
def search(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    date_posted: Optional[str] = Query(None, alias="datePosted"),
    remote: bool = False,
    type: Optional[str] = None,
    experience: Optional[str] = None,
    radius: Optional[int] = None,
    user: User = Depends(get_current_user),
):
    """Raw aggregator results; normalization happens when a result is saved."""
    params = SearchParams(
        query=q,
        page=page,
        date_posted=None if date_posted == "all" else date_posted,
        remote_only=remote,
        employment_type=None if type == "all" else type,
        job_requirements=None if experience == "all" else experience,
        radius=radius,
    )
    return search_jobs(params)


@router.post("/jobs/parse")
def parse_job_text(data: JobParseRequest, user: User = Depends(get_current_user)):
    """Structured fields for the 'paste a job description' form; nothing is saved."""
    prompt = prompts.job_parsing_prompt(data.text)
    completion = llm.complete(prompt.system, prompt.user)
    return llm.parse_json(completion.text)


@router.get("/jobs/{job_id}", response_model=JobWithApplication)
def get_saved_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_job(db, user, job_id)


@router.put("/jobs/{job_id}", response_model=JobOut)
def update_job(
    job_id: int,
    data: JobUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    job = get_job(db, user, job_id)
    for name, value in data.model_dump(exclude_unset=True).items():
        if name in ("title", "company", "description") and value is None:
            continue    # required columns
        setattr(job, name, value)
    db.commit()
    db.refresh(job)
    return job


@router.delete("/jobs/{job_id}", status_code=204)
def delete_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    job = get_job(db, user, job_id)
    db.delete(job)
    db.commit()
