"""
Pydantic schemas for request/response validation.

These define the shape of data going in and out of our API endpoints.
FastAPI uses these to auto-validate requests and generate API docs.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator

from jobtracker.services.pipeline import ApplicationStatus


def _json_list(value):
    """Text columns hold JSON lists; decode them on the way out."""
    if value is None or isinstance(value, list):
        return value
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        return None
    return decoded if isinstance(decoded, list) else None


def _naive_utc(value):
    """Columns store naive UTC; convert offset-aware input before it gets there."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class InterviewType(str, Enum):
    PHONE = "phone"
    VIDEO = "video"
    ONSITE = "onsite"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    PANEL = "panel"


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class RelationshipType(str, Enum):
    RECRUITER = "recruiter"
    HIRING_MANAGER = "hiring_manager"
    REFERRAL = "referral"
    PEER = "peer"
    OTHER = "other"


class InteractionType(str, Enum):
    EMAIL = "email"
    CALL = "call"
    MEETING = "meeting"
    LINKEDIN_MESSAGE = "linkedin_message"
    COFFEE_CHAT = "coffee_chat"
    OTHER = "other"


class EmailStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    FAILED = "failed"


class CoverLetterTone(str, Enum):
    PROFESSIONAL = "professional"
    ENTHUSIASTIC = "enthusiastic"
    CREATIVE = "creative"


class OutreachTone(str, Enum):
    PROFESSIONAL = "professional"
    CASUAL = "casual"
    ENTHUSIASTIC = "enthusiastic"


# ─── Auth ────────────────────────────────────────────────────────────

class RegisterRequest(BaseModel):
    email: str
    password: str
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TokenOut(BaseModel):
    """Returned by register/login; send as `Authorization: Bearer <token>`."""
    token: str
    user: UserOut


# ─── Jobs ────────────────────────────────────────────────────────────

class JobUpdate(BaseModel):
    """Manual edits to a saved job; only the fields sent are changed."""
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    salary: Optional[str] = None
    job_type: Optional[str] = None
    apply_url: Optional[str] = None
    company_logo: Optional[str] = None
    posted_at: Optional[datetime] = None

    @field_validator("posted_at")
    @classmethod
    def to_utc(cls, value):
        return _naive_utc(value)


class JobBrief(BaseModel):
    id: int
    title: str
    company: str

    class Config:
        from_attributes = True


class JobOut(BaseModel):
    id: int
    external_id: Optional[str] = None
    source: str
    title: str
    company: str
    location: Optional[str] = None
    description: str
    requirements: Optional[str] = None
    salary: Optional[str] = None
    job_type: Optional[str] = None
    apply_url: Optional[str] = None
    company_logo: Optional[str] = None
    posted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicationBrief(BaseModel):
    id: int
    status: ApplicationStatus
    applied_at: Optional[datetime] = None
    next_step: Optional[str] = None

    class Config:
        from_attributes = True


class JobWithApplication(JobOut):
    application: Optional[ApplicationBrief] = None


class JobParseRequest(BaseModel):
    text: str


# ─── Applications ────────────────────────────────────────────────────

class ApplicationCreate(BaseModel):
    job_id: int
    status: ApplicationStatus = ApplicationStatus.SAVED
    notes: Optional[str] = None


class ApplicationUpdate(BaseModel):
    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None
    next_step: Optional[str] = None


class ApplicationOut(BaseModel):
    id: int
    job_id: int
    status: ApplicationStatus
    applied_at: Optional[datetime] = None
    next_step: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    job: Optional[JobOut] = None

    class Config:
        from_attributes = True


# ─── Interviews ──────────────────────────────────────────────────────

class InterviewCreate(BaseModel):
    application_id: int
    scheduled_at: datetime
    duration: Optional[int] = None              # minutes
    type: InterviewType = InterviewType.VIDEO
    location: Optional[str] = None
    interviewers: Optional[list[str]] = None
    prep_notes: Optional[str] = None

    @field_validator("scheduled_at")
    @classmethod
    def to_utc(cls, value):
        return _naive_utc(value)


class InterviewUpdate(BaseModel):
    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = None
    type: Optional[InterviewType] = None
    location: Optional[str] = None
    interviewers: Optional[list[str]] = None
    status: Optional[InterviewStatus] = None
    prep_notes: Optional[str] = None
    post_notes: Optional[str] = None

    @field_validator("scheduled_at")
    @classmethod
    def to_utc(cls, value):
        return _naive_utc(value)


class InterviewApplication(BaseModel):
    id: int
    status: ApplicationStatus
    job: JobBrief

    class Config:
        from_attributes = True


class InterviewOut(BaseModel):
    id: int
    application_id: int
    scheduled_at: datetime
    duration: Optional[int] = None
    type: str
    location: Optional[str] = None
    interviewers: Optional[list[str]] = None
    status: InterviewStatus
    prep_notes: Optional[str] = None
    post_notes: Optional[str] = None
    created_at: datetime
    application: Optional[InterviewApplication] = None

    @field_validator("interviewers", mode="before")
    @classmethod
    def decode_interviewers(cls, value):
        return _json_list(value)

    class Config:
        from_attributes = True


# ─── Contacts ────────────────────────────────────────────────────────

class ContactCreate(BaseModel):
    name: str
    company: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    relationship_type: RelationshipType = RelationshipType.OTHER
    notes: Optional[str] = None
    tags: Optional[list[str]] = None


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    relationship_type: Optional[RelationshipType] = None
    notes: Optional[str] = None
    tags: Optional[list[str]] = None


class InteractionCreate(BaseModel):
    type: InteractionType
    date: datetime
    notes: Optional[str] = None
    next_action: Optional[str] = None

    @field_validator("date")
    @classmethod
    def to_utc(cls, value):
        return _naive_utc(value)


class InteractionOut(BaseModel):
    id: int
    contact_id: int
    type: str
    date: datetime
    notes: Optional[str] = None
    next_action: Optional[str] = None

    class Config:
        from_attributes = True


class ContactOut(BaseModel):
    id: int
    name: str
    company: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    relationship_type: RelationshipType
    notes: Optional[str] = None
    tags: Optional[list[str]] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, value):
        return _json_list(value)

    class Config:
        from_attributes = True


class ContactListItem(ContactOut):
    """List rows carry only the most recent interaction."""
    last_interaction: Optional[InteractionOut] = None


class ContactDetail(ContactOut):
    interactions: list[InteractionOut] = []


# ─── Resumes ─────────────────────────────────────────────────────────

class ResumeCreate(BaseModel):
    name: str
    raw_text: str


class ResumeOut(BaseModel):
    id: int
    name: str
    file_name: Optional[str] = None
    raw_text: str
    parsed: Optional[dict] = None
    created_at: datetime

    @field_validator("parsed", mode="before")
    @classmethod
    def decode_parsed(cls, value):
        if value is None or isinstance(value, dict):
            return value
        try:
            decoded = json.loads(value)
        except (TypeError, ValueError):
            return None
        return decoded if isinstance(decoded, dict) else None

    class Config:
        from_attributes = True


class ResumeAnalyzeRequest(BaseModel):
    resume_id: int


class TailorRequest(BaseModel):
    resume_id: int
    job_id: int


class TailoredResumeOut(BaseModel):
    id: int
    resume_id: int
    job_id: int
    tailored_text: str
    match_score: Optional[float] = None
    suggestions: Optional[list[str]] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("suggestions", mode="before")
    @classmethod
    def decode_suggestions(cls, value):
        return _json_list(value)

    class Config:
        from_attributes = True


class TailorResult(BaseModel):
    """The full tailoring response plus the id of the stored row."""
    id: int
    tailored_resume: str
    match_score: Optional[float] = None
    changes: list[str] = []
    missing_skills: list[str] = []
    suggestions: list[str] = []


# ─── Cover letters ───────────────────────────────────────────────────

class CoverLetterCreate(BaseModel):
    job_id: int
    content: str
    tone: CoverLetterTone = CoverLetterTone.PROFESSIONAL


class CoverLetterUpdate(BaseModel):
    content: Optional[str] = None
    tone: Optional[CoverLetterTone] = None


class CoverLetterOut(BaseModel):
    id: int
    job_id: int
    content: str
    tone: str
    version: int
    created_at: datetime
    updated_at: datetime
    job: Optional[JobBrief] = None

    class Config:
        from_attributes = True


class CoverLetterGenerateRequest(BaseModel):
    job_id: int
    resume_id: Optional[int] = None             # defaults to the most recent resume
    tone: CoverLetterTone = CoverLetterTone.PROFESSIONAL


class UsageOut(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class CoverLetterDraft(BaseModel):
    """Generated text, not saved until the user posts it back."""
    content: str
    tone: CoverLetterTone
    job_id: int
    usage: UsageOut


# ─── Outreach ────────────────────────────────────────────────────────

class EmailCreate(BaseModel):
    recipient_email: str
    recipient_name: Optional[str] = None
    subject: str
    body: str
    job_id: Optional[int] = None


class EmailUpdate(BaseModel):
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None


class EmailOut(BaseModel):
    id: int
    job_id: Optional[int] = None
    recipient_email: str
    recipient_name: Optional[str] = None
    subject: str
    body: str
    status: EmailStatus
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: datetime
    job: Optional[JobBrief] = None

    class Config:
        from_attributes = True


class OutreachGenerateRequest(BaseModel):
    job_id: int
    recipient_email: str
    recipient_name: Optional[str] = None
    resume_id: Optional[int] = None
    tone: OutreachTone = OutreachTone.PROFESSIONAL


class OutreachDraft(BaseModel):
    id: int
    subject: str
    body: str
    plain_text: Optional[str] = None


class SendRequest(BaseModel):
    email_id: int


class SendResponse(BaseModel):
    success: bool
    message_id: Optional[str] = None


# ─── Settings ────────────────────────────────────────────────────────

class SmtpConfigIn(BaseModel):
    host: str
    port: int = 587
    secure: bool = False
    username: str
    password: str
    from_name: Optional[str] = None


class SmtpConfigOut(BaseModel):
    host: str
    port: int
    secure: bool
    username: str
    password: str                   # always the mask, never the stored secret
    from_name: Optional[str] = None
    updated_at: Optional[datetime] = None


class SmtpTestResult(BaseModel):
    success: bool
    error: Optional[str] = None


class LlmSettingsOut(BaseModel):
    llm_provider: str
    model: Optional[str] = None
