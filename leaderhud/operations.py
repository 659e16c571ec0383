"""
Write-side helpers used by ingestion: contributors, activities and the
activity definition catalog. All upserts are keyed by the natural key
(username / slug), so re-ingesting the same records never duplicates them.
Callers own the transaction and commit.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Activity, ActivityDefinition, Contributor
from .utils import parse_timestamp, to_utc_naive

log = logging.getLogger(__name__)

ACTIVITY_FIELDS = ("contributor", "activity_definition", "title", "occured_at", "link", "text", "points", "meta")
ACTIVITY_REQUIRED = ("slug", "contributor", "activity_definition", "occured_at")
CONTRIBUTOR_FIELDS = ("name", "role", "title", "avatar_url", "bio", "social_profiles", "joining_date", "meta")
DEFINITION_FIELDS = ("name", "description", "points", "icon")


def _as_dict(obj: Mapping[str, Any] | BaseModel) -> dict:
    return obj.model_dump() if isinstance(obj, BaseModel) else dict(obj)


def github_avatar_url(username: str) -> str:
    return f"https://avatars.githubusercontent.com/{username}"


# -------------------- Contributors --------------------
def add_contributors(session: Session, usernames: Iterable[str]) -> int:
    """Insert contributors that do not exist yet; existing rows stay untouched."""
    inserted = 0
    for username in dict.fromkeys(u for u in usernames if u):
        if session.get(Contributor, username) is not None:
            continue
        session.add(
            Contributor(
                username=username,
                avatar_url=github_avatar_url(username),
                social_profiles={"github": f"https://github.com/{username}"},
            )
        )
        session.flush()
        inserted += 1
    log.info("Added %d new contributors", inserted)
    return inserted


def upsert_contributor(session: Session, username: str, **fields) -> str:
    """Create or update one contributor. Empty values never overwrite stored ones."""
    record = {k: v for k, v in fields.items() if k in CONTRIBUTOR_FIELDS}
    if record.get("joining_date"):
        record["joining_date"] = to_utc_naive(record["joining_date"]).date()

    existing = session.get(Contributor, username)
    if existing is None:
        record.setdefault("avatar_url", github_avatar_url(username))
        session.add(Contributor(username=username, **record))
        session.flush()
        return "inserted"

    for k, v in record.items():
        if v in (None, "", [], {}):
            continue
        setattr(existing, k, v)
    session.add(existing)
    return "updated"


def get_contributors_by_slack_user_ids(session: Session, slack_user_ids: Iterable[str]) -> dict[str, str]:
    """Map Slack user ids to contributor usernames (ids without a contributor are left out)."""
    wanted = set(slack_user_ids)
    found = {}
    for c in session.execute(select(Contributor)).scalars():
        slack_id = (c.meta or {}).get("slack_user_id")
        if slack_id in wanted:
            found[slack_id] = c.username
    return found


def update_bot_roles(session: Session, usernames: Iterable[str]) -> int:
    updated = 0
    for username in usernames:
        c = session.get(Contributor, username)
        if c is not None and c.role != "bot":
            c.role = "bot"
            updated += 1
    log.info("Updated %d bot contributors", updated)
    return updated


# -------------------- Activity definitions --------------------
def upsert_activity_definitions(session: Session, definitions: Iterable[Mapping[str, Any] | BaseModel]) -> int:
    count = 0
    for raw in definitions:
        d = _as_dict(raw)
        values = {k: d.get(k) for k in DEFINITION_FIELDS}
        existing = session.get(ActivityDefinition, d["slug"])
        if existing is None:
            session.add(ActivityDefinition(slug=d["slug"], **values))
        else:
            for k, v in values.items():
                setattr(existing, k, v)
        count += 1
    session.flush()
    return count


# -------------------- Activities --------------------
def _activity_values(raw: Mapping[str, Any] | BaseModel) -> dict:
    rec = _as_dict(raw)
    missing = [k for k in ACTIVITY_REQUIRED if not rec.get(k)]
    if missing:
        raise ValueError(f"activity {rec.get('slug')!r} is missing {', '.join(missing)}")
    values = {k: rec.get(k) for k in ACTIVITY_FIELDS}
    values["occured_at"] = parse_timestamp(values["occured_at"])
    return values


def _merge_text(old: str | None, new: str | None) -> str | None:
    if not old:
        return new
    if not new or new in old:
        return old
    # a re-import of the same day carries the earlier messages again
    if new.startswith(old):
        return new
    return f"{old}\n\n{new}"


def add_activities(
    session: Session,
    activities: Iterable[Mapping[str, Any] | BaseModel],
    merge_text: bool = False,
) -> dict:
    """Upsert activities by slug.

    Default: an existing activity takes over the new values.
    merge_text=True (chat end-of-day updates): texts are joined with a blank
    line unless one already contains the other, and the earliest occurrence
    time is kept.
    """
    inserted = updated = 0
    for raw in activities:
        slug = _as_dict(raw).get("slug")
        values = _activity_values(raw)
        existing = session.get(Activity, slug)
        if existing is None:
            session.add(Activity(slug=slug, **values))
            # flush so a repeated slug later in the same batch finds this row
            session.flush()
            inserted += 1
            continue

        if merge_text:
            values["text"] = _merge_text(existing.text, values["text"])
            values["occured_at"] = min(existing.occured_at, values["occured_at"])
        for k, v in values.items():
            setattr(existing, k, v)
        updated += 1
    session.flush()
    log.info("Activities: inserted=%d updated=%d", inserted, updated)
    return {"inserted": inserted, "updated": updated}
