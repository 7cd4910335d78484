"""
Job-search aggregator client (JSearch on RapidAPI) and posting normalization.

Postings reach us in two shapes:
- aggregator results: job_id, job_title, employer_name, job_city, ...
- manual entry / parsed paste: title, company, location, ...

normalize_posting() maps either one onto the SavedJob columns, once, at the
boundary, so nothing downstream has to know where a job came from.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx

from jobtracker.config import settings
from jobtracker.errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

# Keys that only appear in aggregator-shaped postings
AGGREGATOR_KEYS = ("job_id", "job_title", "employer_name", "job_description", "job_apply_link")


@dataclass
class SearchParams:
    query: str
    page: int = 1
    date_posted: Optional[str] = None        # all, today, 3days, week, month
    remote_only: bool = False
    employment_type: Optional[str] = None    # FULLTIME, CONTRACTOR, ...
    job_requirements: Optional[str] = None   # under_3_years_experience, ...
    radius: Optional[int] = None

    def to_query(self) -> dict:
        query = {"query": self.query, "page": str(self.page or 1), "num_pages": "1"}
        if self.date_posted:
            query["date_posted"] = self.date_posted
        if self.remote_only:
            query["remote_jobs_only"] = "true"
        if self.employment_type:
            query["employment_types"] = self.employment_type
        if self.job_requirements:
            query["job_requirements"] = self.job_requirements
        if self.radius:
            query["radius"] = str(self.radius)
        return query


def search_jobs(params: SearchParams, client: httpx.Client | None = None) -> dict:
    """
    Run one search against the aggregator and return its JSON payload
    ({"status": ..., "data": [raw postings]}).
    """
    if not settings.RAPIDAPI_KEY:
        raise ExternalServiceError("RAPIDAPI_KEY not configured. Add it to your .env file.")

    url = f"https://{settings.RAPIDAPI_HOST}/search"
    headers = {
        "x-rapidapi-key": settings.RAPIDAPI_KEY,
        "x-rapidapi-host": settings.RAPIDAPI_HOST,
    }

    try:
        if client is None:
            response = httpx.get(url, params=params.to_query(), headers=headers,
                                 timeout=settings.JOB_SEARCH_TIMEOUT)
        else:
            response = client.get(url, params=params.to_query(), headers=headers)
    except httpx.HTTPError as exc:
        logger.error("Job search request failed: %s", exc)
        raise ExternalServiceError("Job search is unavailable right now.") from exc

    if response.status_code != 200:
        logger.error("JSearch API error: %s %s", response.status_code, response.text[:500])
        raise ExternalServiceError(f"JSearch API error: {response.status_code}")

    try:
        return response.json()
    except ValueError as exc:
        raise ExternalServiceError("Job search returned an unreadable response.") from exc


def _parse_date(value) -> datetime | None:
    """Try to parse a date string into a datetime. Returns None on failure."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    for fmt in ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%SZ", "%Y-%m-%dT%H:%M:%S.%fZ"):
        try:
            return datetime.strptime(value, fmt)
        except (TypeError, ValueError):
            continue
    return None


def _format_salary(raw: dict) -> str | None:
    low, high = raw.get("job_min_salary"), raw.get("job_max_salary")
    if not (low and high):
        return None
    currency = raw.get("job_salary_currency") or "$"
    salary = f"{currency}{int(low):,} - {currency}{int(high):,}"
    period = raw.get("job_salary_period")
    return f"{salary} / {period.lower()}" if period else salary


def _join_requirements(value) -> str | None:
    if not value:
        return None
    if isinstance(value, list):
        return "\n".join(str(item) for item in value if item)
    return str(value)


def is_aggregator_posting(raw: dict) -> bool:
    return any(key in raw for key in AGGREGATOR_KEYS)


def _from_aggregator(raw: dict) -> dict:
    location = ", ".join(
        part for part in (raw.get("job_city"), raw.get("job_state")) if part
    ) or raw.get("job_country")
    return {
        "external_id": raw.get("job_id"),
        "source": raw.get("source") or "jsearch",
        "title": raw.get("job_title") or "Untitled",
        "company": raw.get("employer_name") or "Unknown",
        "location": location or None,
        "description": raw.get("job_description") or "",
        "requirements": _join_requirements(raw.get("job_required_skills")),
        "salary": _format_salary(raw),
        "job_type": raw.get("job_employment_type"),
        "apply_url": raw.get("job_apply_link"),
        "company_logo": raw.get("employer_logo"),
        "posted_at": _parse_date(raw.get("job_posted_at_datetime_utc")),
    }


def _from_manual(raw: dict) -> dict:
    title = (raw.get("title") or "").strip()
    company = (raw.get("company") or "").strip()
    if not title or not company:
        raise ValidationError("title and company are required")
    return {
        "external_id": raw.get("external_id") or raw.get("externalId"),
        "source": raw.get("source") or "manual",
        "title": title,
        "company": company,
        "location": raw.get("location"),
        "description": raw.get("description") or "",
        "requirements": _join_requirements(raw.get("requirements")),
        "salary": raw.get("salary"),
        "job_type": raw.get("job_type") or raw.get("jobType"),
        "apply_url": raw.get("apply_url") or raw.get("applyUrl"),
        "company_logo": raw.get("company_logo") or raw.get("companyLogo"),
        "posted_at": _parse_date(raw.get("posted_at") or raw.get("postedAt")),
    }


def normalize_posting(raw: dict) -> dict:
    """Canonical SavedJob fields for either posting shape."""
    if not isinstance(raw, dict):
        raise ValidationError("Job payload must be an object")
    if is_aggregator_posting(raw):
        return _from_aggregator(raw)
    return _from_manual(raw)
