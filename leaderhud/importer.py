"""
Flat-file import into the database.

Layout below the data directory:
    contributors/<username>.md      YAML frontmatter + markdown bio (files starting with '_' are skipped)
    <source>/activities/*.json      JSON arrays of activities (e.g. github/, slack/)
    slack/eod_messages/*.json        raw Slack end-of-day messages {id, user_id, timestamp, text}

Contributors are imported first because activities reference them.
"""
from __future__ import annotations

import logging
import re
from collections import defaultdict
from pathlib import Path

import yaml
from sqlalchemy.orm import Session

from .operations import (
    add_activities,
    add_contributors,
    get_contributors_by_slack_user_ids,
    update_bot_roles,
    upsert_contributor,
)
from .utils import date_key, parse_timestamp, read_json

log = logging.getLogger(__name__)

FRONTMATTER = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)(.*)\Z", re.DOTALL)
BOT_SUFFIX = "[bot]"
EOD_DEFINITION = "eod_update"


def parse_contributor_markdown(content: str) -> tuple[dict, str | None]:
    """Split a contributor file into (frontmatter dict, bio)."""
    m = FRONTMATTER.match(content)
    if not m:
        body = content.strip()
        return {}, body or None
    meta = yaml.safe_load(m.group(1)) or {}
    if not isinstance(meta, dict):
        raise ValueError("frontmatter must be a mapping")
    body = m.group(2).strip()
    return meta, body or None


def _contributor_fields(front: dict, bio: str | None) -> dict:
    fields = {
        "name": front.get("name"),
        "role": front.get("role"),
        "title": front.get("title"),
        "avatar_url": front.get("avatar_url"),
        "joining_date": front.get("joining_date"),
        "social_profiles": front.get("social_profiles") or front.get("socials"),
        "bio": bio,
    }
    meta = dict(front.get("meta") or {})
    if front.get("slack"):
        meta["slack_user_id"] = str(front["slack"])
    if meta:
        fields["meta"] = meta
    return fields


def is_bot_login(username: str | None) -> bool:
    # GitHub App accounts, e.g. dependabot[bot]
    return bool(username) and username.endswith(BOT_SUFFIX)


def import_contributors(session: Session, data_path: Path) -> list[str]:
    contributors_dir = data_path / "contributors"
    if not contributors_dir.is_dir():
        log.warning("No contributors directory found at %s, skipping", contributors_dir)
        return []

    usernames = []
    for f in sorted(contributors_dir.glob("*.md")):
        if f.name.startswith("_"):
            continue
        try:
            front, bio = parse_contributor_markdown(f.read_text(encoding="utf-8"))
        except (yaml.YAMLError, ValueError) as e:
            raise ValueError(f"Invalid contributor file {f}: {e}") from e
        username = f.stem
        upsert_contributor(session, username, **_contributor_fields(front, bio))
        usernames.append(username)
        log.info("Found contributor: %s (%s)", username, front.get("name") or "N/A")
    return usernames


def import_activities(session: Session, data_path: Path) -> int:
    total = 0
    for activities_dir in sorted(p for p in data_path.glob("*/activities") if p.is_dir()):
        label = activities_dir.parent.name
        activities = []
        for f in sorted(activities_dir.glob("*.json")):
            data = read_json(f)
            if isinstance(data, list):
                activities.extend(data)
            else:
                log.warning("Skipping %s: expected a JSON array", f)
        if not activities:
            continue
        add_contributors(session, (a.get("contributor") for a in activities))
        add_activities(session, activities)
        bots = sorted({a["contributor"] for a in activities if is_bot_login(a.get("contributor"))})
        if bots:
            update_bot_roles(session, bots)
        log.info("Imported %d %s activities", len(activities), label)
        total += len(activities)
    return total


def _eod_activities(username: str, messages: list[dict]) -> list[dict]:
    # one activity per contributor and day, texts in posting order
    by_day: dict[str, list[dict]] = {}
    for m in sorted(messages, key=lambda m: (m["timestamp"], m["id"])):
        by_day.setdefault(date_key(m["timestamp"]), []).append(m)
    return [
        {
            "slug": f"{EOD_DEFINITION}_{day}_{username}",
            "contributor": username,
            "activity_definition": EOD_DEFINITION,
            "title": "EOD Update",
            "occured_at": msgs[0]["timestamp"],
            "text": "\n\n".join(m["text"] for m in msgs),
        }
        for day, msgs in by_day.items()
    ]


def import_eod_messages(session: Session, data_path: Path) -> int:
    """Turn raw Slack EOD messages into `eod_update` activities.

    Messages are matched to contributors through `meta.slack_user_id`;
    messages of unknown Slack users are skipped with a warning. Returns the
    number of messages imported.
    """
    eod_dir = data_path / "slack" / "eod_messages"
    if not eod_dir.is_dir():
        log.info("No Slack EOD messages directory found at %s, skipping", eod_dir)
        return 0

    by_user: dict[str, dict] = defaultdict(dict)
    for f in sorted(eod_dir.glob("*.json")):
        data = read_json(f)
        if not isinstance(data, list):
            log.warning("Skipping %s: expected a JSON array", f)
            continue
        for m in data:
            by_user[str(m["user_id"])][m["id"]] = {
                "id": m["id"],
                "timestamp": parse_timestamp(m["timestamp"]),
                "text": m["text"],
            }
    if not by_user:
        return 0

    usernames = get_contributors_by_slack_user_ids(session, by_user)
    activities = []
    imported = skipped = 0
    for user_id, messages in sorted(by_user.items()):
        username = usernames.get(user_id)
        if username is None:
            log.warning("No contributor found with slack_user_id %s (%d messages skipped)", user_id, len(messages))
            skipped += len(messages)
            continue
        activities.extend(_eod_activities(username, list(messages.values())))
        imported += len(messages)

    if activities:
        add_activities(session, activities, merge_text=True)
    log.info("Imported %d Slack EOD messages (%d skipped)", imported, skipped)
    return imported


def import_data(session: Session, data_path: str | Path) -> dict:
    data_path = Path(data_path)
    log.info("Importing data from: %s", data_path)
    contributors = import_contributors(session, data_path)
    activities = import_activities(session, data_path)
    eod_messages = import_eod_messages(session, data_path)
    session.commit()
    return {"contributors": len(contributors), "activities": activities, "eod_messages": eod_messages}
