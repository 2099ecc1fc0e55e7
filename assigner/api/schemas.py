"""Request and response bodies of the HTTP API.

Field names follow the public API (pull_request_id, createdAt, ...); the
from_domain constructors map engine models onto them.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from assigner.models import (
    BulkDeactivateResult,
    PRStatus,
    PullRequest,
    PullRequestShort,
    ReassignmentChange,
    Team,
    TeamMember,
    User,
)


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine readable error code, e.g. PR_MERGED")
    message: str = Field(default="", description="Human readable message")


class ErrorResponse(BaseModel):
    error: ErrorDetail


class TeamMemberSchema(BaseModel):
    user_id: str = Field(..., min_length=1)
    username: str = Field(default="")
    is_active: bool = Field(default=True)


class TeamSchema(BaseModel):
    team_name: str = Field(..., min_length=1)
    members: List[TeamMemberSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, team: Team) -> "TeamSchema":
        return cls(
            team_name=team.name,
            members=[
                TeamMemberSchema(user_id=m.user_id, username=m.username, is_active=m.is_active) for m in team.members
            ],
        )

    def to_domain(self) -> Team:
        return Team(
            name=self.team_name,
            members=[TeamMember(user_id=m.user_id, username=m.username, is_active=m.is_active) for m in self.members],
        )


class TeamResponse(BaseModel):
    team: TeamSchema


class UserSchema(BaseModel):
    user_id: str
    username: str
    team_name: str
    is_active: bool

    @classmethod
    def from_domain(cls, user: User) -> "UserSchema":
        return cls(user_id=user.id, username=user.username, team_name=user.team_name, is_active=user.is_active)


class UserResponse(BaseModel):
    user: UserSchema


class SetIsActiveRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    is_active: bool


class PullRequestSchema(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus
    assigned_reviewers: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    merged_at: Optional[datetime] = Field(default=None, alias="mergedAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_domain(cls, pr: PullRequest) -> "PullRequestSchema":
        return cls(
            pull_request_id=pr.id,
            pull_request_name=pr.name,
            author_id=pr.author_id,
            status=pr.status,
            assigned_reviewers=list(pr.assigned_reviewers),
            created_at=pr.created_at,
            merged_at=pr.merged_at,
        )


class PullRequestShortSchema(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus

    @classmethod
    def from_domain(cls, pr: PullRequestShort) -> "PullRequestShortSchema":
        return cls(pull_request_id=pr.id, pull_request_name=pr.name, author_id=pr.author_id, status=pr.status)


class CreatePullRequestRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)
    pull_request_name: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)


class MergePullRequestRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)


class ReassignRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)
    old_user_id: str = Field(..., min_length=1)


class PullRequestResponse(BaseModel):
    pr: PullRequestSchema


class ReassignResponse(BaseModel):
    pr: PullRequestSchema
    replaced_by: str


class UserReviewsResponse(BaseModel):
    user_id: str
    pull_requests: List[PullRequestShortSchema] = Field(default_factory=list)


class DeactivateUsersRequest(BaseModel):
    team_name: str = Field(default="")
    user_ids: List[str] = Field(default_factory=list)


class ReassignmentSchema(BaseModel):
    pull_request_id: str
    old_reviewer_id: str
    new_reviewer_id: Optional[str] = None

    @classmethod
    def from_domain(cls, change: ReassignmentChange) -> "ReassignmentSchema":
        return cls(
            pull_request_id=change.pull_request_id,
            old_reviewer_id=change.old_reviewer_id,
            new_reviewer_id=change.new_reviewer_id,
        )


class DeactivateUsersResponse(BaseModel):
    team: TeamSchema
    deactivated_user_ids: List[str] = Field(default_factory=list)
    reassignments: List[ReassignmentSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: BulkDeactivateResult) -> "DeactivateUsersResponse":
        return cls(
            team=TeamSchema.from_domain(result.team),
            deactivated_user_ids=list(result.deactivated_user_ids),
            reassignments=[ReassignmentSchema.from_domain(c) for c in result.reassignments],
        )
