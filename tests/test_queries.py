from datetime import date, datetime, timedelta

import pytest

from conftest import NOW, activity
from leaderhud import queries
from leaderhud.schemas import LeaderboardEntry
from leaderhud.utils import get_date_range

WEEK = get_date_range("week", NOW)

CONTRIBUTORS = [
    {"username": "alice", "name": "Alice", "role": "core", "avatar_url": "https://example.org/alice.png"},
    {"username": "bob", "name": "Bob", "role": "contributor"},
    {"username": "carol"},
    {"username": "dave", "role": "bot"},
    {"username": "erin", "name": "Erin"},
]


@pytest.fixture
def three_contributors(seed):
    return seed(
        CONTRIBUTORS,
        [
            activity("a1", "alice", "pr_merged", datetime(2025, 3, 14, 10), 15),
            activity("b1", "bob", "pr_merged", datetime(2025, 3, 13, 9), 5),
            activity("c1", "carol", "pr_merged", datetime(2025, 3, 10, 8), 3),
        ],
    )


@pytest.fixture
def busy_alice(seed):
    return seed(
        CONTRIBUTORS,
        [
            activity("a1", "alice", "pr_merged", datetime(2025, 3, 14, 10), 15, title="Add exporter"),
            activity("a2", "alice", "pr_reviewed", datetime(2025, 3, 14, 11)),
            activity("a3", "alice", "comment_created", datetime(2025, 3, 12, 9)),
            activity("a4", "alice", "chat_message", datetime(2025, 3, 9, 18)),
            activity("a5", "alice", "pr_merged", datetime(2025, 2, 1, 12), 15),
            activity("d1", "dave", "comment_created", datetime(2025, 3, 14, 8)),
        ],
    )


# -------------------- leaderboard --------------------
def test_leaderboard_three_contributors(three_contributors):
    entries = queries.get_leaderboard(three_contributors, *WEEK)
    assert [(e.username, e.total_points) for e in entries] == [("alice", 15), ("bob", 5), ("carol", 3)]
    assert entries[0].name == "Alice"
    assert entries[0].avatar_url == "https://example.org/alice.png"


def test_leaderboard_breakdown_and_totals(busy_alice):
    entries = queries.get_leaderboard(busy_alice, *WEEK)
    assert [e.username for e in entries] == ["alice"]
    alice = entries[0]
    assert alice.total_points == 25
    breakdown = {k: (v.count, v.points) for k, v in alice.activity_breakdown.items()}
    assert breakdown == {
        "PR Merged": (1, 15),
        "PR Reviewed": (1, 10),
        "Commented": (1, 0),
        "Chat Message": (1, 0),
    }
    assert alice.total_points == sum(v.points for v in alice.activity_breakdown.values())


def test_leaderboard_daily_activity_covers_whole_range(busy_alice):
    start, end = WEEK
    alice = queries.get_leaderboard(busy_alice, start, end)[0]
    days = [d.date for d in alice.daily_activity]

    assert len(days) == (end.date() - start.date()).days + 1 == 8
    assert days[0] == "2025-03-08"
    assert days[-1] == "2025-03-15"
    parsed = [date.fromisoformat(d) for d in days]
    assert all(b - a == timedelta(days=1) for a, b in zip(parsed, parsed[1:]))

    by_day = {d.date: (d.count, d.points) for d in alice.daily_activity}
    assert by_day["2025-03-14"] == (2, 25)
    assert by_day["2025-03-12"] == (1, 0)
    assert by_day["2025-03-09"] == (1, 0)
    assert by_day["2025-03-11"] == (0, 0)
    assert sum(d.points for d in alice.daily_activity) == alice.total_points


def test_leaderboard_excludes_zero_point_contributors(busy_alice):
    # dave only commented (0 points), erin did nothing
    usernames = [e.username for e in queries.get_leaderboard(busy_alice, *WEEK)]
    assert "dave" not in usernames
    assert "erin" not in usernames


def test_leaderboard_respects_range(busy_alice):
    month = queries.get_leaderboard(busy_alice, *get_date_range("month", NOW))
    year = queries.get_leaderboard(busy_alice, *get_date_range("year", NOW))
    assert month[0].total_points == 25
    assert year[0].total_points == 40
    # 2024-03-15 .. 2025-03-15
    assert len(year[0].daily_activity) == 366


def test_leaderboard_accepts_plain_dates(three_contributors):
    entries = queries.get_leaderboard(three_contributors, date(2025, 3, 14), date(2025, 3, 14))
    assert [e.username for e in entries] == ["alice"]
    assert [d.date for d in entries[0].daily_activity] == ["2025-03-14"]


def test_leaderboard_ties_ordered_by_username(seed):
    s = seed(
        CONTRIBUTORS,
        [
            activity("x1", "carol", "pr_merged", datetime(2025, 3, 14), 5),
            activity("x2", "bob", "pr_merged", datetime(2025, 3, 13), 5),
        ],
    )
    assert [e.username for e in queries.get_leaderboard(s, *WEEK)] == ["bob", "carol"]


def test_leaderboard_exclude_roles(busy_alice):
    assert queries.get_leaderboard(busy_alice, *WEEK, exclude_roles=["core"]) == []


def test_rank_entries_competition_ranking():
    entries = [
        LeaderboardEntry(username="carol", total_points=10),
        LeaderboardEntry(username="alice", total_points=3),
        LeaderboardEntry(username="bob", total_points=10),
    ]
    ranked = [(rank, e.username) for rank, e in queries.rank_entries(entries)]
    assert ranked == [(1, "bob"), (1, "carol"), (3, "alice")]


# -------------------- top contributors --------------------
def test_top_contributors_single_type(three_contributors):
    top = queries.get_top_contributors_by_activity(three_contributors, *WEEK, ["pr_merged"])
    assert list(top) == ["PR Merged"]
    assert [(e.username, e.points, e.count) for e in top["PR Merged"]] == [
        ("alice", 15, 1),
        ("bob", 5, 1),
        ("carol", 3, 1),
    ]


def test_top_contributors_omits_types_without_points(busy_alice):
    top = queries.get_top_contributors_by_activity(busy_alice, *WEEK)
    # comments and chat messages scored nothing this week
    assert set(top) == {"PR Merged", "PR Reviewed"}
    assert all(top[k] for k in top)


def test_top_contributors_filter_order_and_unknown_slugs(busy_alice):
    top = queries.get_top_contributors_by_activity(
        busy_alice, *WEEK, ["pr_reviewed", "does_not_exist", "comment_created", "pr_merged"]
    )
    assert list(top) == ["PR Reviewed", "PR Merged"]


def test_top_contributors_tie_breaks(seed):
    s = seed(
        CONTRIBUTORS,
        [
            activity("t1", "carol", "pr_opened", datetime(2025, 3, 14), 10),
            activity("t2", "bob", "pr_opened", datetime(2025, 3, 14), 5),
            activity("t3", "bob", "pr_opened", datetime(2025, 3, 13), 5),
            activity("t4", "alice", "pr_opened", datetime(2025, 3, 12), 10),
            activity("t5", "erin", "pr_opened", datetime(2025, 3, 12), 1),
        ],
    )
    top = queries.get_top_contributors_by_activity(s, *WEEK, ["pr_opened"], limit=None)
    # bob: 10 points over two events beats alice and carol with one each
    assert [e.username for e in top["PR Opened"]] == ["bob", "alice", "carol", "erin"]

    limited = queries.get_top_contributors_by_activity(s, *WEEK, ["pr_opened"])
    assert [e.username for e in limited["PR Opened"]] == ["bob", "alice", "carol"]


def test_top_contributors_empty_range(three_contributors):
    assert queries.get_top_contributors_by_activity(three_contributors, date(2020, 1, 1), date(2020, 1, 31)) == {}


# -------------------- profile --------------------
def test_profile_unknown_contributor(session):
    profile = queries.get_contributor_profile(session, "nonexistent")
    assert profile.contributor is None
    assert profile.activities == []
    assert profile.total_points == 0
    assert profile.activity_by_date == {}
    assert profile.model_dump(by_alias=True) == {
        "contributor": None,
        "activities": [],
        "totalPoints": 0,
        "activityByDate": {},
    }


def test_profile_without_activities(three_contributors):
    profile = queries.get_contributor_profile(three_contributors, "erin")
    assert profile.contributor.username == "erin"
    assert profile.contributor.name == "Erin"
    assert profile.total_points == 0
    assert profile.activities == []


def test_profile_activities_newest_first(busy_alice):
    profile = queries.get_contributor_profile(busy_alice, "alice")
    times = [a.occured_at for a in profile.activities]
    assert len(times) == 5
    assert all(a > b for a, b in zip(times, times[1:]))
    assert profile.activities[0].slug == "a2"
    assert profile.activities[0].activity_name == "PR Reviewed"
    assert profile.activities[0].activity_icon == "eye"
    assert profile.activities[0].points == 10
    assert profile.activities[1].title == "Add exporter"


def test_profile_totals_and_dates(busy_alice):
    profile = queries.get_contributor_profile(busy_alice, "alice")
    assert profile.total_points == 40
    assert profile.activity_by_date == {
        "2025-02-01": 1,
        "2025-03-09": 1,
        "2025-03-12": 1,
        "2025-03-14": 2,
    }
    chat = next(a for a in profile.activities if a.slug == "a4")
    assert chat.points is None
    assert chat.activity_points is None


# -------------------- recent activities --------------------
def test_recent_activities_grouped(busy_alice):
    groups = queries.get_recent_activities_grouped_by_type(busy_alice, 7, now=NOW)
    assert [g.activity_definition for g in groups] == ["chat_message", "comment_created", "pr_merged", "pr_reviewed"]

    comments = groups[1]
    assert comments.activity_name == "Commented"
    assert [a.slug for a in comments.activities] == ["d1", "a3"]
    assert comments.activities[0].contributor_role == "bot"
    assert comments.activities[1].contributor_name == "Alice"
    assert comments.activities[1].contributor_avatar_url == "https://example.org/alice.png"

    merged = groups[2]
    # a5 (February) is outside the window
    assert [a.slug for a in merged.activities] == ["a1"]


def test_recent_activities_exclude_roles(busy_alice):
    groups = queries.get_recent_activities_grouped_by_type(busy_alice, 7, now=NOW, exclude_roles=["bot"])
    comments = next(g for g in groups if g.activity_definition == "comment_created")
    assert [a.slug for a in comments.activities] == ["a3"]


def test_recent_activities_empty_window(busy_alice):
    assert queries.get_recent_activities_grouped_by_type(busy_alice, 7, now=datetime(2030, 1, 1)) == []


# -------------------- roster --------------------
def test_people_hidden_roles_and_totals(busy_alice):
    people = queries.get_all_contributors_with_avatars(busy_alice, exclude_roles=["bot"])
    assert [(p.username, p.total_points) for p in people] == [
        ("alice", 40),
        ("bob", 0),
        ("carol", 0),
        ("erin", 0),
    ]
    # no role is never hidden
    assert any(p.role is None for p in people)


def test_people_without_filter_lists_everyone(busy_alice):
    assert len(queries.get_all_contributors_with_avatars(busy_alice)) == len(CONTRIBUTORS)


def test_usernames_and_definitions(busy_alice):
    assert queries.get_all_contributor_usernames(busy_alice) == ["alice", "bob", "carol", "dave", "erin"]
    slugs = [d.slug for d in queries.list_activity_definitions(busy_alice)]
    assert slugs == sorted(slugs)
    assert "pr_merged" in slugs
