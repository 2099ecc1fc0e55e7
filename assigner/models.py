"""Data models for teams, users, pull requests and reassignment results."""

import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PRStatus(str, enum.Enum):
    """Pull request lifecycle state. OPEN -> MERGED happens exactly once."""

    OPEN = "OPEN"
    MERGED = "MERGED"


class TeamMember(BaseModel):
    """User as listed in a team roster."""

    user_id: str = Field(..., description="User ID")
    username: str = Field(..., description="Display name")
    is_active: bool = Field(default=True, description="Only active users review")


class Team(BaseModel):
    """Team with members ordered by username."""

    name: str = Field(..., description="Unique team name")
    members: List[TeamMember] = Field(default_factory=list)


class User(BaseModel):
    """User record. team_name is empty when the user has no team."""

    id: str
    username: str
    team_name: str = ""
    is_active: bool = True


class PullRequest(BaseModel):
    """Pull request with its assigned reviewer ids (sorted)."""

    id: str
    name: str
    author_id: str
    status: PRStatus = PRStatus.OPEN
    assigned_reviewers: List[str] = Field(default_factory=list)
    created_at: datetime
    merged_at: Optional[datetime] = None

    @property
    def is_merged(self) -> bool:
        return self.status == PRStatus.MERGED


class PullRequestShort(BaseModel):
    """Pull request without reviewers, used in a user's review list."""

    id: str
    name: str
    author_id: str
    status: PRStatus
    created_at: datetime


class ReassignResult(BaseModel):
    """Updated pull request and the reviewer that took over."""

    pull_request: PullRequest
    replaced_by: str


class ReassignmentChange(BaseModel):
    """One reviewer slot changed by a bulk deactivation.

    new_reviewer_id is None when nobody could take the slot and the
    assignment was dropped.
    """

    pull_request_id: str
    old_reviewer_id: str
    new_reviewer_id: Optional[str] = None


class BulkDeactivateResult(BaseModel):
    """Outcome of deactivating team members: roster, ids and every change made."""

    team: Team
    deactivated_user_ids: List[str] = Field(default_factory=list)
    reassignments: List[ReassignmentChange] = Field(default_factory=list)
