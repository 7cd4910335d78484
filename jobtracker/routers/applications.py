"""
Applications router — the status pipeline.

Endpoints:
- GET    /api/applications              — list (most recently updated first, with job)
- POST   /api/applications              — start tracking a saved job
- GET    /api/applications/{id}         — one application
- PUT    /api/applications/{id}         — change status, notes, next step
- PUT    /api/applications/{id}/status  — change status only
- DELETE /api/applications/{id}         — stop tracking (the saved job stays)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session, joinedload

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.models import Application, User
from jobtracker.schemas import ApplicationCreate, ApplicationOut, ApplicationUpdate
from jobtracker.services import pipeline

router = APIRouter()


class StatusChange(BaseModel):
    status: pipeline.ApplicationStatus


@router.get("/applications", response_model=list[ApplicationOut])
def list_applications(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return (
        db.query(Application)
        .options(joinedload(Application.job))
        .filter(Application.user_id == user.id)
        .order_by(Application.updated_at.desc(), Application.id.desc())
        .all()
    )


@router.post("/applications", response_model=ApplicationOut, status_code=201)
def create_application(
    data: ApplicationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return pipeline.create_application(db, user, data.job_id, data.status, data.notes)


@router.get("/applications/{application_id}", response_model=ApplicationOut)
def get_application(application_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return pipeline.get_application(db, user, application_id)


@router.put("/applications/{application_id}", response_model=ApplicationOut)
def update_application(
    application_id: int,
    data: ApplicationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    changes = data.model_dump(exclude_unset=True)
    status = changes.pop("status", None)
    return pipeline.update_application(db, user, application_id, status=status, fields=changes)


@router.put("/applications/{application_id}/status", response_model=ApplicationOut)
def set_application_status(
    application_id: int,
    data: StatusChange,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return pipeline.set_status(db, user, application_id, data.status)


@router.delete("/applications/{application_id}", status_code=204)
def delete_application(application_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    application = pipeline.get_application(db, user, application_id)
    db.delete(application)
    db.commit()
