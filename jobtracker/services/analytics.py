"""
Job-search analytics computed from rows that are already loaded.

Nothing here touches the database: the route fetches the user's
applications (with their jobs) and saved jobs, then hands them to
build_report() together with the lookback window and the current time.

Two kinds of counts show up in the report:
- funnel: each application counted once, under its current status
- summary totals: cumulative, so an accepted offer also counts as
  applied, interviewing and offer
"""

from collections import Counter
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from jobtracker.services.pipeline import ApplicationStatus

REACHED_INTERVIEW = frozenset({
    ApplicationStatus.INTERVIEWING.value,
    ApplicationStatus.OFFER.value,
    ApplicationStatus.ACCEPTED.value,
})
REACHED_OFFER = frozenset({ApplicationStatus.OFFER.value, ApplicationStatus.ACCEPTED.value})

TOP_COMPANIES_LIMIT = 10


def _round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def rate(numerator: int, denominator: int) -> float:
    """Percentage rounded to one decimal; 0 when there is nothing to divide by."""
    if denominator <= 0:
        return 0.0
    return float(_round_half_up(100 * numerator / denominator, 1))


def weekly_change(this_week: int, last_week: int) -> int:
    """
    Week-over-week change in percent.

    Going from zero to anything positive reports +100, the same as doubling.
    """
    if last_week > 0:
        return int(_round_half_up(100 * (this_week - last_week) / last_week))
    return 100 if this_week > 0 else 0


def _status(application) -> str:
    status = application.status
    return status.value if isinstance(status, ApplicationStatus) else status


def funnel_counts(applications: Iterable) -> dict:
    """Partition by current status: each application lands in one bucket."""
    counts = {status.value: 0 for status in ApplicationStatus}
    for application in applications:
        counts[_status(application)] = counts.get(_status(application), 0) + 1
    return counts


def summary(applications: Sequence) -> dict:
    statuses = [_status(a) for a in applications]

    applied = sum(1 for s in statuses if s != ApplicationStatus.SAVED.value)
    interviewing = sum(1 for s in statuses if s in REACHED_INTERVIEW)
    offers = sum(1 for s in statuses if s in REACHED_OFFER)
    accepted = statuses.count(ApplicationStatus.ACCEPTED.value)
    rejected = statuses.count(ApplicationStatus.REJECTED.value)

    return {
        "totalApplications": len(statuses),
        "applied": applied,
        "interviewing": interviewing,
        "offers": offers,
        "accepted": accepted,
        "rejected": rejected,
        # responseRate and interviewRate share one formula until product
        # defines what a "response" is
        "responseRate": rate(interviewing, applied),
        "interviewRate": rate(interviewing, applied),
        "offerRate": rate(offers, interviewing),
        "acceptRate": rate(accepted, offers),
    }


def activity_trend(applications: Iterable, saved_jobs: Iterable, days: int, now: datetime) -> list[dict]:
    """
    One entry per calendar day (UTC) for the last `days` days including today,
    oldest first. Days without activity are kept with zero counts.
    """
    buckets = {}
    for offset in range(days):
        day = (now - timedelta(days=offset)).date().isoformat()
        buckets[day] = {"applications": 0, "jobs": 0}

    for application in applications:
        day = application.created_at.date().isoformat()
        if day in buckets:
            buckets[day]["applications"] += 1

    for job in saved_jobs:
        day = job.created_at.date().isoformat()
        if day in buckets:
            buckets[day]["jobs"] += 1

    return [{"date": day, **counts} for day, counts in sorted(buckets.items())]


def source_breakdown(applications: Iterable) -> list[dict]:
    breakdown = {}
    for application in applications:
        source = application.job.source or "unknown"
        entry = breakdown.setdefault(source, {"total": 0, "applied": 0, "interviewing": 0})
        entry["total"] += 1
        status = _status(application)
        if status != ApplicationStatus.SAVED.value:
            entry["applied"] += 1
        if status in REACHED_INTERVIEW:
            entry["interviewing"] += 1
    return [{"source": source, **counts} for source, counts in breakdown.items()]


def job_type_breakdown(applications: Iterable) -> list[dict]:
    counts = Counter(application.job.job_type or "unspecified" for application in applications)
    return [{"type": job_type, "count": count} for job_type, count in counts.items()]


def top_companies(applications: Iterable, limit: int = TOP_COMPANIES_LIMIT) -> list[dict]:
    """Most-applied companies, ties kept in first-seen order."""
    counts = Counter(application.job.company for application in applications)
    # sorted() is stable and Counter preserves insertion order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [{"company": company, "count": count} for company, count in ranked[:limit]]


def weekly_comparison(applications: Iterable, now: datetime) -> dict:
    this_week_start = now - timedelta(days=7)
    last_week_start = now - timedelta(days=14)

    this_week = 0
    last_week = 0
    for application in applications:
        if application.created_at >= this_week_start:
            this_week += 1
        elif application.created_at >= last_week_start:
            last_week += 1

    return {
        "thisWeek": this_week,
        "lastWeek": last_week,
        "changePercent": weekly_change(this_week, last_week),
    }


def build_report(applications: Sequence, saved_jobs: Sequence, days: int, now: datetime) -> dict:
    """Assemble the full analytics payload returned by GET /api/analytics."""
    return {
        "summary": summary(applications),
        "funnel": funnel_counts(applications),
        "activityTrend": activity_trend(applications, saved_jobs, days, now),
        "sourceBreakdown": source_breakdown(applications),
        "jobTypeBreakdown": job_type_breakdown(applications),
        "topCompanies": top_companies(applications),
        "weeklyComparison": weekly_comparison(applications, now),
    }
