"""
Application status pipeline.

Six states, `saved` first. The user may move an application to any state at
any time (terminal states are not locked). The only automatic move is
saved/applied -> interviewing when an interview gets scheduled.

`applied_at` is stamped the first time an application reaches `applied` or
a later funnel stage, and is never cleared afterwards.
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from jobtracker.errors import Conflict, NotFound
from jobtracker.models import Application, SavedJob, User, utcnow

logger = logging.getLogger(__name__)


class ApplicationStatus(str, Enum):
    SAVED = "saved"
    APPLIED = "applied"
    INTERVIEWING = "interviewing"
    OFFER = "offer"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Statuses that mean the candidate has applied (stamp applied_at)
APPLIED_OR_LATER = frozenset({
    ApplicationStatus.APPLIED,
    ApplicationStatus.INTERVIEWING,
    ApplicationStatus.OFFER,
    ApplicationStatus.ACCEPTED,
})

# Scheduling an interview pulls these forward to interviewing
PRE_INTERVIEW = frozenset({ApplicationStatus.SAVED, ApplicationStatus.APPLIED})


def get_application(db: Session, user: User, application_id: int) -> Application:
    """Owner-filtered lookup; someone else's application is simply not found."""
    application = (
        db.query(Application)
        .filter(Application.id == application_id, Application.user_id == user.id)
        .first()
    )
    if not application:
        raise NotFound("Application not found")
    return application


def _apply_status(application: Application, new_status: ApplicationStatus) -> None:
    old_status = application.status
    application.status = new_status.value
    if new_status in APPLIED_OR_LATER and application.applied_at is None:
        application.applied_at = utcnow()
    if application.id is not None and old_status != new_status.value:
        logger.info("Application %s: %s -> %s", application.id, old_status, new_status.value)


def create_application(
    db: Session,
    user: User,
    job_id: int,
    status: ApplicationStatus = ApplicationStatus.SAVED,
    notes: Optional[str] = None,
) -> Application:
    """Start tracking a saved job. Each job has at most one application."""
    job = db.query(SavedJob).filter(SavedJob.id == job_id, SavedJob.user_id == user.id).first()
    if not job:
        raise NotFound("Job not found")
    if job.application is not None:
        raise Conflict("This job is already being tracked.")

    application = Application(user_id=user.id, job_id=job.id, status=ApplicationStatus.SAVED.value, notes=notes)
    _apply_status(application, ApplicationStatus(status))
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


def set_status(db: Session, user: User, application_id: int, new_status: ApplicationStatus) -> Application:
    """Write a user-chosen status. Every transition is allowed."""
    application = get_application(db, user, application_id)
    _apply_status(application, ApplicationStatus(new_status))
    db.commit()
    db.refresh(application)
    return application


def update_application(
    db: Session,
    user: User,
    application_id: int,
    status: Optional[ApplicationStatus] = None,
    fields: Optional[dict] = None,
) -> Application:
    """Change status and/or free-text fields (notes, next_step)."""
    application = get_application(db, user, application_id)
    if status is not None:
        _apply_status(application, ApplicationStatus(status))
    for name, value in (fields or {}).items():
        if name in ("notes", "next_step"):
            setattr(application, name, value)
    db.commit()
    db.refresh(application)
    return application


def on_interview_scheduled(application: Application) -> bool:
    """
    Advance a saved/applied application to interviewing.

    Returns True when the status changed. Leaves committing to the caller,
    which is creating the interview in the same transaction.
    """
    if ApplicationStatus(application.status) not in PRE_INTERVIEW:
        return False
    _apply_status(application, ApplicationStatus.INTERVIEWING)
    return True
