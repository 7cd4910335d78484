"""
Analytics router.

Endpoint: GET /api/analytics?days=30
- Loads the caller's applications (with jobs) and saved jobs
- Hands them to services.analytics for the funnel, rates and trends
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.models import Application, SavedJob, User, utcnow
from jobtracker.services.analytics import build_report

router = APIRouter()


@router.get("/analytics")
def get_analytics(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    applications = (
        db.query(Application)
        .options(joinedload(Application.job))
        .filter(Application.user_id == user.id)
        .order_by(Application.created_at.asc())
        .all()
    )
    saved_jobs = db.query(SavedJob).filter(SavedJob.user_id == user.id).all()

    return build_report(applications, saved_jobs, days=days, now=utcnow())
