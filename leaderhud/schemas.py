"""
Pydantic shapes of the derived aggregates.
These are both the return types of leaderhud.queries and the schema of the
static JSON files; field order is the key order on disk.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# read back from "...Z" strings as the same naive UTC value that was stored
UtcDatetime = Annotated[datetime, AfterValidator(_naive_utc)]


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class Contributor(_Schema):
    username: str
    name: Optional[str] = None
    role: Optional[str] = None
    title: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    social_profiles: Optional[Dict[str, str]] = None
    joining_date: Optional[date] = None
    meta: Optional[Dict[str, Any]] = None


class ActivityDefinition(_Schema):
    slug: str
    name: str
    description: Optional[str] = None
    points: Optional[int] = None
    icon: Optional[str] = None


# -------------------- Leaderboard --------------------
class ActivityBreakdown(_Schema):
    count: int = 0
    points: int = 0


class DailyActivity(_Schema):
    date: str
    count: int = 0
    points: int = 0


class LeaderboardEntry(_Schema):
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None
    total_points: int = 0
    activity_breakdown: Dict[str, ActivityBreakdown] = Field(default_factory=dict)
    daily_activity: List[DailyActivity] = Field(default_factory=list)


class TopContributorEntry(_Schema):
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    points: int
    count: int


TopContributorsByActivity = Dict[str, List[TopContributorEntry]]


class LeaderboardSnapshot(_Schema):
    entries: List[LeaderboardEntry]
    top_by_activity: TopContributorsByActivity = Field(alias="topByActivity")
    start_date: UtcDatetime = Field(alias="startDate")
    end_date: UtcDatetime = Field(alias="endDate")


# -------------------- Activities --------------------
class ActivityRecord(_Schema):
    slug: str
    contributor: str
    activity_definition: str
    title: Optional[str] = None
    occured_at: UtcDatetime
    link: Optional[str] = None
    text: Optional[str] = None
    points: Optional[int] = None
    meta: Optional[Dict[str, Any]] = None


class ActivityWithContributor(ActivityRecord):
    contributor_name: Optional[str] = None
    contributor_avatar_url: Optional[str] = None
    contributor_role: Optional[str] = None


class ActivityGroup(_Schema):
    activity_definition: str
    activity_name: str
    activity_description: Optional[str] = None
    activity_points: Optional[int] = None
    activities: List[ActivityWithContributor] = Field(default_factory=list)


# -------------------- Profile --------------------
class ContributorActivity(ActivityRecord):
    activity_name: str
    activity_description: Optional[str] = None
    activity_points: Optional[int] = None
    activity_icon: Optional[str] = None


class ContributorProfile(_Schema):
    contributor: Optional[Contributor] = None
    activities: List[ContributorActivity] = Field(default_factory=list)
    total_points: int = Field(default=0, alias="totalPoints")
    activity_by_date: Dict[str, int] = Field(default_factory=dict, alias="activityByDate")


class ContributorWithAvatar(_Schema):
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None
    total_points: int = 0
