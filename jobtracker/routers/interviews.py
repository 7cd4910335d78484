"""
Interviews router.

Endpoints:
- GET    /api/interviews       — list (?status=..., or ?upcoming=true for future scheduled ones), soonest first
- POST   /api/interviews       — schedule; pulls a saved/applied application to interviewing
- GET    /api/interviews/{id}
- PUT    /api/interviews/{id}  — partial update
- DELETE /api/interviews/{id}

Ownership is checked in the query itself (join on the parent application),
so another user's interview looks exactly like a missing one.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.errors import NotFound
from jobtracker.models import Application, Interview, User, utcnow
from jobtracker.schemas import InterviewCreate, InterviewOut, InterviewStatus, InterviewUpdate
from jobtracker.services import pipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def _owned_interviews(db: Session, user: User):
    return (
        db.query(Interview)
        .join(Interview.application)
        .options(joinedload(Interview.application).joinedload(Application.job))
        .filter(Application.user_id == user.id)
    )


def get_interview(db: Session, user: User, interview_id: int) -> Interview:
    interview = _owned_interviews(db, user).filter(Interview.id == interview_id).first()
    if not interview:
        raise NotFound("Interview not found")
    return interview


def _encode_interviewers(names: Optional[list[str]]) -> Optional[str]:
    return json.dumps(names) if names else None


@router.get("/interviews", response_model=list[InterviewOut])
def list_interviews(
    status: Optional[str] = None,
    upcoming: bool = False,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = _owned_interviews(db, user)
    if upcoming:
        # upcoming implies scheduled and takes precedence over ?status
        query = query.filter(
            Interview.scheduled_at >= utcnow(),
            Interview.status == InterviewStatus.SCHEDULED.value,
        )
    elif status and status != "all":
        query = query.filter(Interview.status == status)
    return query.order_by(Interview.scheduled_at.asc()).all()


@router.post("/interviews", response_model=InterviewOut, status_code=201)
def create_interview(
    data: InterviewCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = pipeline.get_application(db, user, data.application_id)

    interview = Interview(
        application_id=application.id,
        scheduled_at=data.scheduled_at,
        duration=data.duration,
        type=data.type.value,
        location=data.location,
        interviewers=_encode_interviewers(data.interviewers),
        prep_notes=data.prep_notes,
    )
    db.add(interview)
    pipeline.on_interview_scheduled(application)
    db.commit()
    db.refresh(interview)
    logger.info("Interview %s scheduled for application %s", interview.id, application.id)
    return interview


@router.get("/interviews/{interview_id}", response_model=InterviewOut)
def get_one(interview_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_interview(db, user, interview_id)


@router.put("/interviews/{interview_id}", response_model=InterviewOut)
def update_interview(
    interview_id: int,
    data: InterviewUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    interview = get_interview(db, user, interview_id)
    changes = data.model_dump(exclude_unset=True)

    if "interviewers" in changes:
        interview.interviewers = _encode_interviewers(changes.pop("interviewers"))
    for name in ("type", "status"):
        if name in changes:
            value = changes.pop(name)
            if value is not None:
                setattr(interview, name, value.value if hasattr(value, "value") else value)
    if changes.get("scheduled_at", "") is None:
        changes.pop("scheduled_at")     # required column
    for name, value in changes.items():
        setattr(interview, name, value)

    db.commit()
    db.refresh(interview)
    return interview


@router.delete("/interviews/{interview_id}", status_code=204)
def delete_interview(interview_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    interview = get_interview(db, user, interview_id)
    db.delete(interview)
    db.commit()
