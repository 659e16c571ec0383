"""Built-in activity definition catalog, seeded by `leaderhud init-db`."""

GITHUB_ACTIVITY_DEFINITIONS = [
    {"slug": "comment_created", "name": "Commented", "description": "Commented on an Issue/PR", "points": 0, "icon": "message-circle"},
    {"slug": "issue_assigned", "name": "Issue Assigned", "description": "Got an issue assigned", "points": 1, "icon": "user-round-check"},
    {"slug": "pr_reviewed", "name": "PR Reviewed", "description": "Reviewed a Pull Request", "points": 10, "icon": "eye"},
    {"slug": "issue_opened", "name": "Issue Opened", "description": "Raised an Issue", "points": 2, "icon": "circle-dot"},
    {"slug": "pr_opened", "name": "PR Opened", "description": "Opened a Pull Request", "points": 5, "icon": "git-pull-request-create-arrow"},
    {"slug": "pr_merged", "name": "PR Merged", "description": "Merged a Pull Request", "points": 7, "icon": "git-merge"},
    {"slug": "pr_collaborated", "name": "PR Collaborated", "description": "Collaborated on a Pull Request", "points": 2, "icon": None},
    {"slug": "issue_closed", "name": "Issue Closed", "description": "Closed an Issue", "points": 0, "icon": None},
    {"slug": "issue_labeled", "name": "Issue Labeled", "description": "Labeled/triaged an Issue", "points": 2, "icon": "tag"},
    {"slug": "commit_created", "name": "Commit Created", "description": "Pushed a commit", "points": 0, "icon": "git-commit-horizontal"},
]

SLACK_ACTIVITY_DEFINITIONS = [
    {"slug": "eod_update", "name": "EOD Update", "description": "Dropped an EOD Update", "points": 2, "icon": "message-square"},
]

ALL_ACTIVITY_DEFINITIONS = GITHUB_ACTIVITY_DEFINITIONS + SLACK_ACTIVITY_DEFINITIONS
