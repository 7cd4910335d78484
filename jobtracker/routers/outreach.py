"""
Outreach router — recruiter emails.

Endpoints:
- GET    /api/outreach            — list (newest first)
- POST   /api/outreach            — hand-written draft
- POST   /api/outreach/generate   — AI-written draft
- POST   /api/outreach/send       — deliver a draft through the user's SMTP server
- PUT    /api/outreach/{id}       — edit a draft
- DELETE /api/outreach/{id}

Delivery moves an email from draft (or a previous failure) to sent or
failed. A sent email stays sent.
"""

import json
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.errors import Conflict, ExternalServiceError, MalformedExternalResponse, NotFound, ValidationError
from jobtracker.models import Email, SmtpConfig, User, utcnow
from jobtracker.routers.jobs import get_job
from jobtracker.routers.resumes import get_resume
from jobtracker.schemas import (
    EmailCreate, EmailOut, EmailStatus, EmailUpdate, OutreachDraft, OutreachGenerateRequest,
    SendRequest, SendResponse,
)
from jobtracker.services import llm, mailer, prompts

logger = logging.getLogger(__name__)

router = APIRouter()

SMTP_NOT_CONFIGURED = "SMTP not configured. Go to Settings to set up email."


def get_email(db: Session, user: User, email_id: int) -> Email:
    email = db.query(Email).filter(Email.id == email_id, Email.user_id == user.id).first()
    if not email:
        raise NotFound("Email not found")
    return email


def smtp_settings(config: SmtpConfig) -> mailer.SmtpSettings:
    return mailer.SmtpSettings(
        host=config.host,
        port=config.port,
        secure=config.secure,
        username=config.username,
        password=config.password,
        from_name=config.from_name,
    )


def _resume_summary(resume) -> str:
    if resume.parsed:
        try:
            summary = json.loads(resume.parsed).get("summary")
        except (ValueError, AttributeError):
            summary = None
        if summary:
            return summary
    return resume.raw_text[:500]


@router.get("/outreach", response_model=list[EmailOut])
def list_emails(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return (
        db.query(Email)
        .options(joinedload(Email.job))
        .filter(Email.user_id == user.id)
        .order_by(Email.created_at.desc(), Email.id.desc())
        .all()
    )


@router.post("/outreach", response_model=EmailOut, status_code=201)
def create_email(data: EmailCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if not data.recipient_email.strip():
        raise ValidationError("recipientEmail is required")
    job_id = get_job(db, user, data.job_id).id if data.job_id is not None else None

    email = Email(
        user_id=user.id,
        job_id=job_id,
        recipient_email=data.recipient_email.strip(),
        recipient_name=data.recipient_name,
        subject=data.subject,
        body=data.body,
        status=EmailStatus.DRAFT.value,
    )
    db.add(email)
    db.commit()
    db.refresh(email)
    return email


@router.post("/outreach/generate", response_model=OutreachDraft, status_code=201)
def generate_email(
    data: OutreachGenerateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not data.recipient_email.strip():
        raise ValidationError("recipientEmail is required")
    job = get_job(db, user, data.job_id)

    resume_summary = f"Candidate interested in {job.title} at {job.company}"
    if data.resume_id is not None:
        resume_summary = _resume_summary(get_resume(db, user, data.resume_id))

    prompt = prompts.outreach_email_prompt(
        resume_summary, job.title, job.company, data.recipient_name, data.tone.value
    )
    completion = llm.complete(prompt.system, prompt.user)
    result = llm.parse_json(completion.text)

    subject, body = result.get("subject"), result.get("body")
    if not isinstance(subject, str) or not isinstance(body, str):
        raise MalformedExternalResponse("The AI response did not include a subject and body.")

    email = Email(
        user_id=user.id,
        job_id=job.id,
        recipient_email=data.recipient_email.strip(),
        recipient_name=data.recipient_name,
        subject=subject,
        body=body,
        status=EmailStatus.DRAFT.value,
    )
    db.add(email)
    db.commit()
    db.refresh(email)
    logger.info("Generated outreach draft %s for job %s", email.id, job.id)

    plain_text = result.get("plainText")
    return OutreachDraft(
        id=email.id,
        subject=subject,
        body=body,
        plain_text=plain_text if isinstance(plain_text, str) else None,
    )


@router.post("/outreach/send", response_model=SendResponse)
def send(data: SendRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    email = get_email(db, user, data.email_id)
    if email.status == EmailStatus.SENT.value:
        raise Conflict("This email has already been sent.")

    config = db.query(SmtpConfig).filter(SmtpConfig.user_id == user.id).first()
    if config is None:
        result = mailer.SendResult(success=False, error=SMTP_NOT_CONFIGURED)
    else:
        result = mailer.send_email(smtp_settings(config), email.recipient_email, email.subject, email.body)

    if result.success:
        email.status = EmailStatus.SENT.value
        email.sent_at = utcnow()
        email.error_message = None
        db.commit()
        return SendResponse(success=True, message_id=result.message_id)

    email.status = EmailStatus.FAILED.value
    email.error_message = result.error
    db.commit()
    logger.warning("Email %s failed to send: %s", email.id, result.error)
    raise ExternalServiceError(result.error or "Failed to send email")


@router.put("/outreach/{email_id}", response_model=EmailOut)
def update_email(
    email_id: int,
    data: EmailUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    email = get_email(db, user, email_id)
    if email.status == EmailStatus.SENT.value:
        raise Conflict("Sent emails can't be edited.")
    changes = data.model_dump(exclude_unset=True)
    if "recipient_email" in changes and changes["recipient_email"] is not None:
        if not changes["recipient_email"].strip():
            raise ValidationError("recipientEmail is required")
        changes["recipient_email"] = changes["recipient_email"].strip()
    for name, value in changes.items():
        if value is not None:
            setattr(email, name, value)
    db.commit()
    db.refresh(email)
    return email


@router.delete("/outreach/{email_id}", status_code=204)
def delete_email(email_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    email = get_email(db, user, email_id)
    db.delete(email)
    db.commit()
