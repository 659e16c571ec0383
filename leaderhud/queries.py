"""
Read-only aggregation queries.
Every function takes an open Session and returns freshly built pydantic
models (leaderhud.schemas); nothing is cached between calls.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from sqlalchemy import case, desc, func, or_, select
from sqlalchemy.orm import Session

from . import schemas
from .models import Activity, ActivityDefinition, Contributor
from .utils import date_key
from .utils.dates import end_of_day, iter_days, start_of_day, utcnow

log = logging.getLogger(__name__)

# an activity's own points win over the definition's default
effective_points = func.coalesce(Activity.points, ActivityDefinition.points)


def _exclude_roles(stmt, exclude_roles: Iterable[str] | None):
    roles = list(exclude_roles or [])
    if roles:
        stmt = stmt.where(or_(Contributor.role.is_(None), Contributor.role.notin_(roles)))
    return stmt


def _as_range(start_date: date | datetime, end_date: date | datetime) -> tuple[datetime, datetime]:
    # plain dates cover the whole day on both ends
    if not isinstance(start_date, datetime):
        start_date = start_of_day(datetime(start_date.year, start_date.month, start_date.day))
    if not isinstance(end_date, datetime):
        end_date = end_of_day(datetime(end_date.year, end_date.month, end_date.day))
    return start_date, end_date


def _positive(points: int | None) -> int:
    return points if points is not None and points > 0 else 0


# -------------------- Contributors --------------------
def get_contributor(session: Session, username: str) -> schemas.Contributor | None:
    row = session.get(Contributor, username)
    return schemas.Contributor.model_validate(row) if row is not None else None


def get_all_contributor_usernames(session: Session) -> list[str]:
    return list(session.execute(select(Contributor.username).order_by(Contributor.username)).scalars())


def get_all_contributors_with_avatars(
    session: Session, exclude_roles: Iterable[str] | None = None
) -> list[schemas.ContributorWithAvatar]:
    """Roster view: every visible contributor with all-time points.

    Contributors without a role are always listed; only activities with
    positive effective points count towards `total_points`.
    """
    total = func.coalesce(
        func.sum(case((effective_points > 0, effective_points), else_=0)), 0
    ).label("total_points")
    stmt = (
        select(Contributor.username, Contributor.name, Contributor.avatar_url, Contributor.role, total)
        .select_from(Contributor)
        .outerjoin(Activity, Activity.contributor == Contributor.username)
        .outerjoin(ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug)
        .group_by(Contributor.username, Contributor.name, Contributor.avatar_url, Contributor.role)
        .order_by(desc("total_points"), Contributor.username)
    )
    stmt = _exclude_roles(stmt, exclude_roles)
    return [
        schemas.ContributorWithAvatar(
            username=r.username,
            name=r.name,
            avatar_url=r.avatar_url,
            role=r.role,
            total_points=int(r.total_points or 0),
        )
        for r in session.execute(stmt)
    ]


# -------------------- Activity definitions --------------------
def list_activity_definitions(session: Session) -> list[schemas.ActivityDefinition]:
    rows = session.execute(select(ActivityDefinition).order_by(ActivityDefinition.slug)).scalars()
    return [schemas.ActivityDefinition.model_validate(r) for r in rows]


# -------------------- Leaderboard --------------------
def get_leaderboard(
    session: Session,
    start_date: date | datetime,
    end_date: date | datetime,
    exclude_roles: Iterable[str] | None = None,
) -> list[schemas.LeaderboardEntry]:
    """Per-contributor totals for an inclusive date range.

    Contributors whose effective points in range do not add up to more than
    zero are left out. Each entry carries a breakdown keyed by activity
    display name and a zero-filled daily series covering every day of the
    range. Entries come back ordered by points (desc), then username.
    """
    start_date, end_date = _as_range(start_date, end_date)
    stmt = (
        select(
            Contributor.username,
            Contributor.name,
            Contributor.avatar_url,
            Contributor.role,
            ActivityDefinition.name.label("activity_name"),
            effective_points.label("points"),
            Activity.occured_at,
        )
        .select_from(Activity)
        .join(Contributor, Activity.contributor == Contributor.username)
        .join(ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug)
        .where(Activity.occured_at >= start_date, Activity.occured_at <= end_date)
        .order_by(Contributor.username, Activity.occured_at, Activity.slug)
    )
    stmt = _exclude_roles(stmt, exclude_roles)

    entries: dict[str, schemas.LeaderboardEntry] = {}
    daily: dict[str, dict[str, list[int]]] = defaultdict(dict)
    for row in session.execute(stmt):
        entry = entries.get(row.username)
        if entry is None:
            entry = entries[row.username] = schemas.LeaderboardEntry(
                username=row.username, name=row.name, avatar_url=row.avatar_url, role=row.role
            )
        points = row.points or 0
        entry.total_points += points

        bucket = entry.activity_breakdown.setdefault(row.activity_name, schemas.ActivityBreakdown())
        bucket.count += 1
        bucket.points += points

        day = daily[row.username].setdefault(date_key(row.occured_at), [0, 0])
        day[0] += 1
        day[1] += points

    days = [d.isoformat() for d in iter_days(start_date, end_date)]
    result = []
    for username, entry in entries.items():
        if entry.total_points <= 0:
            continue
        per_day = daily[username]
        entry.daily_activity = [
            schemas.DailyActivity(date=d, count=per_day.get(d, (0, 0))[0], points=per_day.get(d, (0, 0))[1])
            for d in days
        ]
        result.append(entry)
    result.sort(key=lambda e: (-e.total_points, e.username))
    return result


def rank_entries(entries: Sequence[schemas.LeaderboardEntry]) -> list[tuple[int, schemas.LeaderboardEntry]]:
    """Sort by points (desc) / username and assign 1-based competition ranks."""
    ordered = sorted(entries, key=lambda e: (-e.total_points, e.username))
    ranked = []
    for i, entry in enumerate(ordered):
        if i and entry.total_points == ordered[i - 1].total_points:
            rank = ranked[-1][0]
        else:
            rank = i + 1
        ranked.append((rank, entry))
    return ranked


def get_top_contributors_by_activity(
    session: Session,
    start_date: date | datetime,
    end_date: date | datetime,
    activity_slugs: Sequence[str] | None = None,
    exclude_roles: Iterable[str] | None = None,
    limit: int | None = 3,
) -> schemas.TopContributorsByActivity:
    """Top contributors per activity type within a date range.

    Keys are activity display names. With `activity_slugs` only those types
    are reported, in the given order; otherwise every type, ordered by name.
    Within a type: points desc, event count desc, username asc. Types without
    a contributor earning positive points are omitted.
    """
    start_date, end_date = _as_range(start_date, end_date)
    points = func.sum(effective_points).label("points")
    count = func.count(Activity.slug).label("count")
    stmt = (
        select(
            Contributor.username,
            Contributor.name,
            Contributor.avatar_url,
            ActivityDefinition.name.label("activity_name"),
            ActivityDefinition.slug.label("activity_slug"),
            points,
            count,
        )
        .select_from(Activity)
        .join(Contributor, Activity.contributor == Contributor.username)
        .join(ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug)
        .where(Activity.occured_at >= start_date, Activity.occured_at <= end_date)
        .group_by(
            Contributor.username,
            Contributor.name,
            Contributor.avatar_url,
            ActivityDefinition.name,
            ActivityDefinition.slug,
        )
        .having(func.sum(effective_points) > 0)
        .order_by(ActivityDefinition.name, ActivityDefinition.slug, desc("points"), desc("count"), Contributor.username)
    )
    slugs = list(dict.fromkeys(activity_slugs or []))
    if slugs:
        stmt = stmt.where(ActivityDefinition.slug.in_(slugs))
    stmt = _exclude_roles(stmt, exclude_roles)

    by_slug: dict[str, list[schemas.TopContributorEntry]] = {}
    names: dict[str, str] = {}
    for row in session.execute(stmt):
        names[row.activity_slug] = row.activity_name
        by_slug.setdefault(row.activity_slug, []).append(
            schemas.TopContributorEntry(
                username=row.username,
                name=row.name,
                avatar_url=row.avatar_url,
                points=int(row.points),
                count=int(row.count),
            )
        )

    order = [s for s in slugs if s in by_slug] if slugs else list(by_slug)
    result: schemas.TopContributorsByActivity = {}
    for slug in order:
        name = names[slug]
        ranked = result.get(name, []) + by_slug[slug]
        # two definitions may share a display name
        ranked.sort(key=lambda e: (-e.points, -e.count, e.username))
        result[name] = ranked[:limit] if limit is not None else ranked
    return result


# -------------------- Profile --------------------
def get_contributor_profile(session: Session, username: str) -> schemas.ContributorProfile:
    """Contributor with all activities (newest first), total points and a per-day count map.

    An unknown username yields an empty profile with `contributor=None`.
    """
    contributor = get_contributor(session, username)
    if contributor is None:
        return schemas.ContributorProfile()

    stmt = (
        select(
            Activity,
            effective_points.label("points"),
            ActivityDefinition.name.label("activity_name"),
            ActivityDefinition.description.label("activity_description"),
            ActivityDefinition.points.label("activity_points"),
            ActivityDefinition.icon.label("activity_icon"),
        )
        .join(ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug)
        .where(Activity.contributor == username)
        .order_by(Activity.occured_at.desc(), Activity.slug)
    )
    activities = []
    by_date: dict[str, int] = defaultdict(int)
    for a, pts, name, description, def_points, icon in session.execute(stmt):
        activities.append(
            schemas.ContributorActivity(
                slug=a.slug,
                contributor=a.contributor,
                activity_definition=a.activity_definition,
                title=a.title,
                occured_at=a.occured_at,
                link=a.link,
                text=a.text,
                points=pts,
                meta=a.meta,
                activity_name=name,
                activity_description=description,
                activity_points=def_points,
                activity_icon=icon,
            )
        )
        by_date[date_key(a.occured_at)] += 1

    return schemas.ContributorProfile(
        contributor=contributor,
        activities=activities,
        total_points=sum(_positive(x.points) for x in activities),
        activity_by_date=dict(sorted(by_date.items())),
    )


# -------------------- Recent activity feed --------------------
def get_recent_activities_grouped_by_type(
    session: Session,
    days: int,
    now: datetime | None = None,
    exclude_roles: Iterable[str] | None = None,
) -> list[schemas.ActivityGroup]:
    now = now or utcnow()
    since = now - timedelta(days=days)
    stmt = (
        select(
            Activity,
            effective_points.label("points"),
            Contributor.name.label("contributor_name"),
            Contributor.avatar_url.label("contributor_avatar_url"),
            Contributor.role.label("contributor_role"),
            ActivityDefinition,
        )
        .join(Contributor, Activity.contributor == Contributor.username)
        .join(ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug)
        .where(Activity.occured_at >= since, Activity.occured_at <= now)
        .order_by(ActivityDefinition.slug, Activity.occured_at.desc(), Activity.slug)
    )
    stmt = _exclude_roles(stmt, exclude_roles)

    groups: dict[str, schemas.ActivityGroup] = {}
    for a, pts, c_name, c_avatar, c_role, definition in session.execute(stmt):
        group = groups.get(definition.slug)
        if group is None:
            group = groups[definition.slug] = schemas.ActivityGroup(
                activity_definition=definition.slug,
                activity_name=definition.name,
                activity_description=definition.description,
                activity_points=definition.points,
            )
        group.activities.append(
            schemas.ActivityWithContributor(
                slug=a.slug,
                contributor=a.contributor,
                activity_definition=a.activity_definition,
                title=a.title,
                occured_at=a.occured_at,
                link=a.link,
                text=a.text,
                points=pts,
                meta=a.meta,
                contributor_name=c_name,
                contributor_avatar_url=c_avatar,
                contributor_role=c_role,
            )
        )
    log.debug("recent activities: %d groups in the last %d days", len(groups), days)
    return list(groups.values())
