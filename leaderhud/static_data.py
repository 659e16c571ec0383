"""
Readers for the exported JSON tree (the side the page layer uses).
Timestamps come back as naive UTC datetimes equal to the exported ones.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import TypeAdapter

from . import schemas
from .utils import PERIODS, read_json


class StaticDataNotFound(FileNotFoundError):
    pass


class StaticData:
    def __init__(self, data_path: str | Path):
        self.root = Path(data_path) / "static"

    def _read(self, filename: str):
        path = self.root / filename
        if not path.exists():
            raise StaticDataNotFound(f"Static data file not found: {path}. Run 'leaderhud export-static' first.")
        return read_json(path)

    def usernames(self) -> list[str]:
        return TypeAdapter(List[str]).validate_python(self._read("usernames.json"))

    def activity_definitions(self) -> list[schemas.ActivityDefinition]:
        return TypeAdapter(List[schemas.ActivityDefinition]).validate_python(self._read("activity-definitions.json"))

    def people(self) -> list[schemas.ContributorWithAvatar]:
        return TypeAdapter(List[schemas.ContributorWithAvatar]).validate_python(self._read("people.json"))

    def recent_activities(self) -> list[schemas.ActivityGroup]:
        return TypeAdapter(List[schemas.ActivityGroup]).validate_python(self._read("recent-activities.json"))

    def leaderboard(self, period: str) -> schemas.LeaderboardSnapshot:
        if period not in PERIODS:
            raise ValueError(f"Unknown period {period!r}")
        return schemas.LeaderboardSnapshot.model_validate(self._read(f"leaderboard-{period}.json"))

    def profile(self, username: str) -> schemas.ContributorProfile | None:
        """None when no profile was exported for this username (the "not found" state)."""
        path = self.root / "profiles" / f"{username}.json"
        if Path(username).name != username or not path.exists():
            return None
        return schemas.ContributorProfile.model_validate(read_json(path))
