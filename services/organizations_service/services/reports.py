"""Organization dashboard and report aggregates."""

import uuid
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import InvalidStateError
from services.compliance_service.services import organization_compliance_status
from services.events_service.models import (
    Application,
    ApplicationStatus,
    Opportunity,
    OpportunityStatus,
)
from services.organizations_service.models import MembershipStatus, OrganizationVolunteer
from services.users_service.models import User
from services.volunteer_service.models import HoursStatus, VolunteerHour
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

DATE_PRESETS = (
    "today",
    "week",
    "month",
    "quarter",
    "year",
    "last30days",
    "last90days",
    "last12months",
)
GROUPINGS = ("day", "week", "month")

# (label, lower bound inclusive, upper bound exclusive)
HOUR_BUCKETS = (
    ("0-10", 0, 10),
    ("10-25", 10, 25),
    ("25-50", 25, 50),
    ("50-100", 50, 100),
    ("100+", 100, None),
)


def resolve_date_range(
    preset: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """
    Turn a preset or explicit bounds into an inclusive ``(start, end)`` pair.

    Explicit dates win over the preset. Without either the range covers the
    last twelve months.
    """
    today = today or utc_now().date()
    if start_date or end_date:
        start = start_date or today - timedelta(days=365)
        end = end_date or today
    else:
        preset = preset or "last12months"
        if preset == "today":
            start = today
        elif preset == "week":
            start = today - timedelta(days=today.weekday())
        elif preset == "month":
            start = today.replace(day=1)
        elif preset == "quarter":
            start = today.replace(month=(today.month - 1) // 3 * 3 + 1, day=1)
        elif preset == "year":
            start = today.replace(month=1, day=1)
        elif preset == "last30days":
            start = today - timedelta(days=30)
        elif preset == "last90days":
            start = today - timedelta(days=90)
        elif preset == "last12months":
            start = today - timedelta(days=365)
        else:
            raise InvalidStateError(f"Unknown date range '{preset}'")
        end = today
    if start > end:
        raise InvalidStateError("start_date must be on or before end_date")
    return start, end


def _bounds(start: date, end: date) -> tuple[datetime, datetime]:
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc),
    )


def _approved_in_range(organization_id: uuid.UUID, start: date, end: date):
    return (
        VolunteerHour.organization_id == organization_id,
        VolunteerHour.status == HoursStatus.APPROVED,
        VolunteerHour.date >= start,
        VolunteerHour.date <= end,
    )


async def _scalar(db: AsyncSession, query) -> Any:
    return (await db.execute(query)).scalar() or 0


async def overview_stats(
    db: AsyncSession, organization_id: uuid.UUID, start: date, end: date
) -> dict[str, Any]:
    approved = _approved_in_range(organization_id, start, end)
    window_start, window_end = _bounds(start, end)
    opportunities_in_range = (
        Opportunity.organization_id == organization_id,
        Opportunity.start_at >= window_start,
        Opportunity.start_at < window_end,
    )

    total_hours = float(await _scalar(db, select(func.sum(VolunteerHour.hours)).where(*approved)))
    active_volunteers = await _scalar(
        db, select(func.count(distinct(VolunteerHour.user_id))).where(*approved)
    )
    total_volunteers = await _scalar(
        db,
        select(func.count(OrganizationVolunteer.id)).where(
            OrganizationVolunteer.organization_id == organization_id,
            OrganizationVolunteer.status == MembershipStatus.ACTIVE,
        ),
    )
    total_opportunities = await _scalar(
        db, select(func.count(Opportunity.id)).where(*opportunities_in_range)
    )
    now = utc_now()
    completed_opportunities = await _scalar(
        db,
        select(func.count(Opportunity.id)).where(
            *opportunities_in_range,
            Opportunity.status != OpportunityStatus.CANCELLED,
            Opportunity.status != OpportunityStatus.DRAFT,
            func.coalesce(Opportunity.end_at, Opportunity.start_at) < now,
        ),
    )
    pending_hours = await _scalar(
        db,
        select(func.count(VolunteerHour.id)).where(
            VolunteerHour.organization_id == organization_id,
            VolunteerHour.status == HoursStatus.PENDING,
        ),
    )
    pending_applications = await _scalar(
        db,
        select(func.count(Application.id))
        .join(Opportunity, Opportunity.id == Application.opportunity_id)
        .where(
            Opportunity.organization_id == organization_id,
            Application.status == ApplicationStatus.APPLIED,
        ),
    )
    compliance = await organization_compliance_status(db, organization_id)

    return {
        "total_hours": round(total_hours, 2),
        "total_volunteers": total_volunteers,
        "active_volunteers": active_volunteers,
        "total_opportunities": total_opportunities,
        "completed_opportunities": completed_opportunities,
        "compliance_rate": compliance["overall_rate"],
        "average_hours_per_volunteer": (
            round(total_hours / active_volunteers, 2) if active_volunteers else 0.0
        ),
        "pending_hours": pending_hours,
        "pending_applications": pending_applications,
    }


def _period_key(day: date, group_by: str) -> date:
    if group_by == "week":
        return day - timedelta(days=day.weekday())
    if group_by == "month":
        return day.replace(day=1)
    return day


def _next_period(day: date, group_by: str) -> date:
    if group_by == "week":
        return day + timedelta(days=7)
    if group_by == "month":
        return (day.replace(day=28) + timedelta(days=4)).replace(day=1)
    return day + timedelta(days=1)


async def hours_trend(
    db: AsyncSession,
    organization_id: uuid.UUID,
    start: date,
    end: date,
    group_by: str = "month",
) -> list[dict[str, Any]]:
    """Approved hours per day, week or month, with empty periods filled in."""
    if group_by not in GROUPINGS:
        raise InvalidStateError(f"group_by must be one of {', '.join(GROUPINGS)}")

    rows = await db.execute(
        select(VolunteerHour.date, VolunteerHour.hours, VolunteerHour.user_id).where(
            *_approved_in_range(organization_id, start, end)
        )
    )
    hours: dict[date, float] = defaultdict(float)
    entries: dict[date, int] = defaultdict(int)
    volunteers: dict[date, set] = defaultdict(set)
    for day, amount, user_id in rows:
        key = _period_key(day, group_by)
        hours[key] += amount
        entries[key] += 1
        volunteers[key].add(user_id)

    trend = []
    period = _period_key(start, group_by)
    while period <= end:
        trend.append(
            {
                "period": period.strftime("%Y-%m") if group_by == "month" else period.isoformat(),
                "hours": round(hours[period], 2),
                "entries": entries[period],
                "volunteers": len(volunteers[period]),
            }
        )
        period = _next_period(period, group_by)
    return trend


async def volunteer_participation(
    db: AsyncSession, organization_id: uuid.UUID, start: date, end: date
) -> dict[str, Any]:
    members = (
        await db.execute(
            select(OrganizationVolunteer.user_id, OrganizationVolunteer.joined_at).where(
                OrganizationVolunteer.organization_id == organization_id,
                OrganizationVolunteer.status == MembershipStatus.ACTIVE,
            )
        )
    ).all()
    totals = dict(
        (
            await db.execute(
                select(VolunteerHour.user_id, func.sum(VolunteerHour.hours))
                .where(*_approved_in_range(organization_id, start, end))
                .group_by(VolunteerHour.user_id)
            )
        ).all()
    )

    distribution = {label: 0 for label, _, _ in HOUR_BUCKETS}
    active = new = 0
    for user_id, joined_at in members:
        logged = totals.get(user_id) or 0
        if logged > 0:
            active += 1
        joined = ensure_utc(joined_at)
        if joined is not None and start <= joined.date() <= end:
            new += 1
        for label, low, high in HOUR_BUCKETS:
            if logged >= low and (high is None or logged < high):
                distribution[label] += 1
                break

    total = len(members)
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "new": new,
        "participation_rate": round(active / total * 100, 1) if total else 0.0,
        "hours_distribution": distribution,
    }


async def top_volunteers(
    db: AsyncSession, organization_id: uuid.UUID, start: date, end: date, limit: int = 10
) -> list[dict[str, Any]]:
    total = func.sum(VolunteerHour.hours).label("total")
    rows = await db.execute(
        select(User, total, func.count(VolunteerHour.id))
        .join(VolunteerHour, VolunteerHour.user_id == User.id)
        .where(*_approved_in_range(organization_id, start, end))
        .group_by(User.id)
        .order_by(total.desc())
        .limit(limit)
    )
    return [
        {
            "user_id": str(user.id),
            "name": user.full_name or user.email,
            "email": user.email,
            "hours": round(hours, 2),
            "entries": entries,
        }
        for user, hours, entries in rows
    ]


async def opportunity_performance(
    db: AsyncSession, organization_id: uuid.UUID, start: date, end: date, limit: int = 20
) -> list[dict[str, Any]]:
    window_start, window_end = _bounds(start, end)
    opportunities = (
        await db.execute(
            select(Opportunity)
            .where(
                Opportunity.organization_id == organization_id,
                Opportunity.start_at >= window_start,
                Opportunity.start_at < window_end,
            )
            .order_by(Opportunity.start_at.desc())
            .limit(limit)
        )
    ).scalars().all()
    if not opportunities:
        return []

    counts: dict[uuid.UUID, dict[ApplicationStatus, int]] = defaultdict(dict)
    rows = await db.execute(
        select(Application.opportunity_id, Application.status, func.count(Application.id))
        .where(Application.opportunity_id.in_([o.id for o in opportunities]))
        .group_by(Application.opportunity_id, Application.status)
    )
    for opportunity_id, status, count in rows:
        counts[opportunity_id][status] = count

    performance = []
    for opportunity in opportunities:
        by_status = counts[opportunity.id]
        accepted = by_status.get(ApplicationStatus.ACCEPTED, 0)
        performance.append(
            {
                "opportunity_id": str(opportunity.id),
                "title": opportunity.title,
                "status": opportunity.status.value,
                "start_at": ensure_utc(opportunity.start_at).isoformat(),
                "capacity": opportunity.capacity,
                "applications": sum(by_status.values()),
                "accepted": accepted,
                "fill_rate": (
                    round(accepted / opportunity.capacity * 100, 1)
                    if opportunity.capacity
                    else None
                ),
            }
        )
    return performance


async def dashboard(
    db: AsyncSession, organization_id: uuid.UUID, start: date, end: date
) -> dict[str, Any]:
    """Everything the organization dashboard renders, in one payload."""
    return {
        "range": {"start_date": start.isoformat(), "end_date": end.isoformat()},
        "overview": await overview_stats(db, organization_id, start, end),
        "hours_trend": await hours_trend(db, organization_id, start, end, "month"),
        "participation": await volunteer_participation(db, organization_id, start, end),
        "top_volunteers": await top_volunteers(db, organization_id, start, end, limit=5),
        "compliance": await organization_compliance_status(db, organization_id),
    }
