"""
SQLAlchemy ORM models — these map directly to database tables.

Every row is owned by a user, either directly (user_id) or through its parent:
- users: account plus the bearer token the API authenticates with
- saved_jobs: postings the user saved (from the aggregator or entered by hand)
- applications: pipeline record for one saved job
- interviews: scheduled interviews for an application
- contacts / contact_interactions: networking log
- resumes / tailored_resumes: uploaded resume text and per-job rewrites
- cover_letters: versioned letters per job
- emails: outreach drafts and their delivery state
- smtp_configs: one outgoing mail server per user
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship

from jobtracker.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)      # stored lower-cased
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    api_token = Column(String(128), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=utcnow)


class SavedJob(Base):
    __tablename__ = "saved_jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    external_id = Column(String(255), nullable=True)              # aggregator job id
    source = Column(String(50), nullable=False, default="manual")  # "manual", "jsearch", ...
    title = Column(String(500), nullable=False)
    company = Column(String(500), nullable=False)
    location = Column(String(500), nullable=True)
    description = Column(Text, nullable=False, default="")
    requirements = Column(Text, nullable=True)
    salary = Column(String(255), nullable=True)
    job_type = Column(String(50), nullable=True)                  # full-time, contract, ...
    apply_url = Column(Text, nullable=True)
    company_logo = Column(Text, nullable=True)
    posted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # One saved job has at most one application
    application = relationship(
        "Application", back_populates="job", uselist=False, cascade="all, delete-orphan"
    )
    tailored_resumes = relationship("TailoredResume", back_populates="job", cascade="all, delete-orphan")
    cover_letters = relationship("CoverLetter", back_populates="job", cascade="all, delete-orphan")
    # Emails outlive the job; their job_id is cleared on delete
    emails = relationship("Email", back_populates="job")


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("saved_jobs.id", ondelete="CASCADE"), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="saved")
    applied_at = Column(DateTime, nullable=True)                  # stamped once, never cleared
    next_step = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    job = relationship("SavedJob", back_populates="application")
    interviews = relationship("Interview", back_populates="application", cascade="all, delete-orphan")


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scheduled_at = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=True)                     # minutes
    type = Column(String(30), nullable=False, default="video")
    location = Column(Text, nullable=True)                        # address or meeting link
    interviewers = Column(Text, nullable=True)                    # JSON list of names
    status = Column(String(20), nullable=False, default="scheduled")
    prep_notes = Column(Text, nullable=True)
    post_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    application = relationship("Application", back_populates="interviews")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    company = Column(String(255), nullable=True)
    role = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    linkedin_url = Column(Text, nullable=True)
    relationship_type = Column(String(30), nullable=False, default="other")
    notes = Column(Text, nullable=True)
    tags = Column(Text, nullable=True)                            # JSON list of strings
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    interactions = relationship(
        "ContactInteraction",
        back_populates="contact",
        cascade="all, delete-orphan",
        order_by="desc(ContactInteraction.date)",
    )


class ContactInteraction(Base):
    __tablename__ = "contact_interactions"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    date = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    next_action = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    contact = relationship("Contact", back_populates="interactions")


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=True)
    raw_text = Column(Text, nullable=False)                       # plain text extracted from the upload
    parsed = Column(Text, nullable=True)                          # cached analysis JSON
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    tailored_resumes = relationship("TailoredResume", back_populates="resume", cascade="all, delete-orphan")


class TailoredResume(Base):
    __tablename__ = "tailored_resumes"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Integer, ForeignKey("saved_jobs.id", ondelete="CASCADE"), nullable=False)
    tailored_text = Column(Text, nullable=False)
    tailored_parsed = Column(Text, nullable=True)                 # full LLM JSON response
    match_score = Column(Float, nullable=True)
    suggestions = Column(Text, nullable=True)                     # JSON list of strings
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    resume = relationship("Resume", back_populates="tailored_resumes")
    job = relationship("SavedJob", back_populates="tailored_resumes")

    # Regenerating overwrites the existing row for the pair
    __table_args__ = (
        UniqueConstraint("resume_id", "job_id", name="uq_tailored_resume_job"),
    )


class CoverLetter(Base):
    __tablename__ = "cover_letters"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("saved_jobs.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    tone = Column(String(30), nullable=False, default="professional")
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    job = relationship("SavedJob", back_populates="cover_letters")

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", "version", name="uq_cover_letter_version"),
    )


class Email(Base):
    __tablename__ = "emails"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("saved_jobs.id", ondelete="SET NULL"), nullable=True)
    recipient_email = Column(String(255), nullable=False)
    recipient_name = Column(String(255), nullable=True)
    subject = Column(Text, nullable=False)
    body = Column(Text, nullable=False)                           # HTML
    status = Column(String(20), nullable=False, default="draft")  # draft -> sent | failed
    sent_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    job = relationship("SavedJob", back_populates="emails")


class SmtpConfig(Base):
    __tablename__ = "smtp_configs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    host = Column(String(255), nullable=False)
    port = Column(Integer, nullable=False, default=587)
    secure = Column(Boolean, nullable=False, default=False)      # implicit TLS (port 465)
    username = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    from_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
