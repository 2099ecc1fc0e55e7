"""Record reads shared by the engine: users, teams, pull requests, reviewers.

Each function takes the Executor of the current transaction and turns rows
into models. Missing records raise the matching domain error.
"""

from datetime import datetime, timezone
from typing import Any

from assigner.errors import PullRequestNotFound, TeamNotFound, UserNotFound
from assigner.models import PRStatus, PullRequest, PullRequestShort, Team, TeamMember, User
from assigner.store.base import Executor, Row


def _parse_ts(value: Any) -> datetime | None:
    """Coerce a stored ISO-8601 string to an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _user_from_row(row: Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        team_name=row["team_name"] or "",
        is_active=bool(row["is_active"]),
    )


def get_user(executor: Executor, user_id: str) -> User:
    row = executor.query_one(
        "SELECT id, username, team_name, is_active FROM users WHERE id = ?",
        (user_id,),
    )
    if row is None:
        raise UserNotFound(f"user {user_id} not found")
    return _user_from_row(row)


def team_exists(executor: Executor, team_name: str) -> bool:
    return executor.query_one("SELECT 1 AS found FROM teams WHERE name = ?", (team_name,)) is not None


def get_team(executor: Executor, team_name: str) -> Team:
    """Load a team with its members ordered by username."""
    if not team_exists(executor, team_name):
        raise TeamNotFound(f"team {team_name} not found")
    rows = executor.query_many(
        "SELECT id, username, is_active FROM users WHERE team_name = ? ORDER BY username, id",
        (team_name,),
    )
    members = [TeamMember(user_id=r["id"], username=r["username"], is_active=bool(r["is_active"])) for r in rows]
    return Team(name=team_name, members=members)


def list_reviewers(executor: Executor, pr_id: str) -> list[str]:
    rows = executor.query_many(
        "SELECT reviewer_id FROM pull_request_reviewers WHERE pull_request_id = ? ORDER BY reviewer_id",
        (pr_id,),
    )
    return [r["reviewer_id"] for r in rows]


def get_pull_request(executor: Executor, pr_id: str) -> PullRequest:
    """Load a pull request together with its assigned reviewers."""
    row = executor.query_one(
        "SELECT id, name, author_id, status, created_at, merged_at FROM pull_requests WHERE id = ?",
        (pr_id,),
    )
    if row is None:
        raise PullRequestNotFound(f"pull request {pr_id} not found")
    return PullRequest(
        id=row["id"],
        name=row["name"],
        author_id=row["author_id"],
        status=PRStatus(row["status"]),
        assigned_reviewers=list_reviewers(executor, pr_id),
        created_at=_parse_ts(row["created_at"]),
        merged_at=_parse_ts(row["merged_at"]),
    )


def list_open_reviews(executor: Executor, reviewer_id: str) -> list[str]:
    """Ids of OPEN pull requests where the user is an assigned reviewer."""
    rows = executor.query_many(
        """
        SELECT pr.id
        FROM pull_requests pr
        JOIN pull_request_reviewers r ON r.pull_request_id = pr.id
        WHERE r.reviewer_id = ? AND pr.status = ?
        ORDER BY pr.id
        """,
        (reviewer_id, PRStatus.OPEN.value),
    )
    return [r["id"] for r in rows]


def list_user_reviews(executor: Executor, reviewer_id: str) -> list[PullRequestShort]:
    """All pull requests (open and merged) reviewed by the user, newest first."""
    rows = executor.query_many(
        """
        SELECT pr.id, pr.name, pr.author_id, pr.status, pr.created_at
        FROM pull_requests pr
        JOIN pull_request_reviewers r ON r.pull_request_id = pr.id
        WHERE r.reviewer_id = ?
        ORDER BY pr.created_at DESC, pr.id
        """,
        (reviewer_id,),
    )
    return [
        PullRequestShort(
            id=r["id"],
            name=r["name"],
            author_id=r["author_id"],
            status=PRStatus(r["status"]),
            created_at=_parse_ts(r["created_at"]),
        )
        for r in rows
    ]
