"""
Static export of all aggregates to a fixed JSON tree.

    <output>/static/usernames.json
    <output>/static/activity-definitions.json
    <output>/static/people.json
    <output>/static/recent-activities.json
    <output>/static/leaderboard-{week,month,year}.json
    <output>/static/profiles/<username>.json

Steps run in that order; the first failing step aborts the run with an
ExportError naming the step and file. Files are replaced atomically, so a
failed step never leaves a truncated file behind. Given the same data and the
same `now`, the output is byte-for-byte identical.
"""
from __future__ import annotations

import logging
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import queries
from .config import Settings, load_leaderboard_config
from .db import open_database
from .schemas import LeaderboardSnapshot
from .utils import PERIODS, get_date_range, to_utc_str, write_json_atomic
from .utils.dates import utcnow

log = logging.getLogger(__name__)

# window of the recent-activity feed on the home page
RECENT_DAYS = 7


class ExportError(RuntimeError):
    def __init__(self, step: str, path: Path, cause: BaseException):
        self.step = step
        self.path = path
        self.cause = cause
        super().__init__(f"export step '{step}' failed writing {path}: {cause}")


class ExportSummary(BaseModel):
    output_dir: str
    files: List[str] = Field(default_factory=list)
    bytes_written: int = 0
    leaderboard_entries: Dict[str, int] = Field(default_factory=dict)
    profiles: int = 0


def _export(summary: ExportSummary, step: str, path: Path, build: Callable[[], Any]) -> Any:
    try:
        data = build()
        summary.bytes_written += write_json_atomic(path, data)
    except Exception as e:
        raise ExportError(step, path, e) from e
    summary.files.append(str(path))
    log.debug("wrote %s", path)
    return data


def _profile_path(profiles_dir: Path, username: str) -> Path:
    if not username or Path(username).name != username or username in (".", ".."):
        raise ValueError(f"username {username!r} cannot be used as a file name")
    return profiles_dir / f"{username}.json"


def export_static_data(
    session: Session,
    output_dir: str | Path,
    *,
    hidden_roles: Sequence[str] = (),
    top_contributors: Sequence[str] | None = None,
    recent_days: int = RECENT_DAYS,
    top_limit: int | None = 3,
    now: datetime | None = None,
) -> ExportSummary:
    output_dir = Path(output_dir)
    static_dir = output_dir / "static"
    profiles_dir = static_dir / "profiles"
    now = now or utcnow()
    summary = ExportSummary(output_dir=str(output_dir))

    log.info("Exporting static data to: %s (as of %s)", output_dir, to_utc_str(now))
    try:
        profiles_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportError("directories", profiles_dir, e) from e

    log.info("Exporting usernames...")
    usernames = _export(summary, "usernames", static_dir / "usernames.json",
                        lambda: queries.get_all_contributor_usernames(session))
    log.info("Found %d contributors", len(usernames))

    log.info("Exporting activity definitions...")
    _export(summary, "activity-definitions", static_dir / "activity-definitions.json",
            lambda: queries.list_activity_definitions(session))

    log.info("Exporting people data...")
    _export(summary, "people", static_dir / "people.json",
            lambda: queries.get_all_contributors_with_avatars(session, exclude_roles=hidden_roles))

    log.info("Exporting recent activities (last %d days)...", recent_days)
    _export(summary, "recent-activities", static_dir / "recent-activities.json",
            lambda: queries.get_recent_activities_grouped_by_type(session, recent_days, now=now))

    log.info("Exporting leaderboard data...")
    for period in PERIODS:
        def build(period=period):
            start, end = get_date_range(period, now)
            return LeaderboardSnapshot(
                entries=queries.get_leaderboard(session, start, end),
                top_by_activity=queries.get_top_contributors_by_activity(
                    session, start, end, activity_slugs=top_contributors, limit=top_limit
                ),
                start_date=start,
                end_date=end,
            )

        snapshot = _export(summary, f"leaderboard-{period}", static_dir / f"leaderboard-{period}.json", build)
        summary.leaderboard_entries[period] = len(snapshot.entries)
        log.info("%s: %d entries", period, len(snapshot.entries))

    log.info("Exporting contributor profiles...")
    for username in usernames:
        step = f"profile:{username}"
        try:
            path = _profile_path(profiles_dir, username)
        except ValueError as e:
            raise ExportError(step, profiles_dir, e) from e
        _export(summary, step, path, lambda username=username: queries.get_contributor_profile(session, username))
        summary.profiles += 1
    log.info("Exported %d profiles", summary.profiles)

    log.info("Static data export completed (%d files, %d bytes)", len(summary.files), summary.bytes_written)
    return summary


def run_export(settings: Settings, output_dir: str | Path | None = None, now: datetime | None = None) -> ExportSummary:
    """Open the database from settings, export, and release the handle on every path.

    A database that cannot be opened fails the run at step 'connect'. The
    recent-activity feed always covers the last 7 days; `lookback_days` only
    sets the default of the `recent` command.
    """
    config = load_leaderboard_config(settings.config_path)
    db_path = settings.resolved_db_path()
    with ExitStack() as stack:
        try:
            db = stack.enter_context(open_database(db_path))
        except (SQLAlchemyError, OSError) as e:
            raise ExportError("connect", Path(db_path), e) from e
        with db.session() as s:
            return export_static_data(
                s,
                output_dir or settings.data_path,
                hidden_roles=config.hidden_roles,
                top_contributors=config.top_contributors or None,
                recent_days=RECENT_DAYS,
                now=now,
            )
