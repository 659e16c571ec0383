from datetime import datetime

import pytest

from leaderhud.db import create_schema, open_database
from leaderhud.definitions import ALL_ACTIVITY_DEFINITIONS
from leaderhud.operations import add_activities, upsert_activity_definitions, upsert_contributor

# fixed "now" for every time-window test
NOW = datetime(2025, 3, 15, 12, 0, 0)

EXTRA_DEFINITIONS = [
    # no default points: activities score only what they carry themselves
    {"slug": "chat_message", "name": "Chat Message", "description": "Posted in chat", "points": None, "icon": None},
]


def activity(slug, contributor, definition, occured_at, points=None, **extra):
    return dict(
        slug=slug,
        contributor=contributor,
        activity_definition=definition,
        occured_at=occured_at,
        points=points,
        **extra,
    )


@pytest.fixture
def db():
    with open_database(":memory:") as d:
        create_schema(d)
        yield d


@pytest.fixture
def session(db):
    with db.session() as s:
        upsert_activity_definitions(s, ALL_ACTIVITY_DEFINITIONS + EXTRA_DEFINITIONS)
        s.commit()
        yield s


@pytest.fixture
def seed(session):
    def _seed(contributors=(), activities=()):
        for c in contributors:
            c = dict(c)
            upsert_contributor(session, c.pop("username"), **c)
        add_activities(session, list(activities))
        session.commit()
        return session

    return _seed
