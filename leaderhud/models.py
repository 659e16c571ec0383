# leaderhud/models.py
from __future__ import annotations

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    JSON,
    SmallInteger,
    String,
    Text,
)

from .db import Base


# ---------------------------------
# Contributor
# ---------------------------------
class Contributor(Base):
    __tablename__ = "contributor"

    username = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=True)
    title = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    bio = Column(Text, nullable=True)

    # {"github": "https://github.com/<username>", ...}
    social_profiles = Column(JSON, nullable=True)
    joining_date = Column(Date, nullable=True)
    meta = Column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"Contributor(username={self.username!r}, role={self.role!r})"


# ---------------------------------
# Activity Definition (catalog)
# ---------------------------------
class ActivityDefinition(Base):
    __tablename__ = "activity_definition"

    slug = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    # default points, used when an activity carries none of its own
    points = Column(SmallInteger, nullable=True)
    icon = Column(String, nullable=True)

    def __repr__(self) -> str:
        return f"ActivityDefinition(slug={self.slug!r}, points={self.points!r})"


# ---------------------------------
# Activity
# ---------------------------------
class Activity(Base):
    __tablename__ = "activity"

    slug = Column(String, primary_key=True)
    contributor = Column(String, ForeignKey("contributor.username"), nullable=False)
    activity_definition = Column(String, ForeignKey("activity_definition.slug"), nullable=False)
    title = Column(String, nullable=True)

    # naive UTC
    occured_at = Column(DateTime, nullable=False)
    link = Column(String, nullable=True)
    text = Column(Text, nullable=True)
    points = Column(SmallInteger, nullable=True)
    meta = Column(JSON, nullable=True)

    __table_args__ = (
        Index("idx_activity_occured_at", "occured_at"),
        Index("idx_activity_contributor", "contributor"),
        Index("idx_activity_definition", "activity_definition"),
    )
