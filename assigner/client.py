"""HTTP client for the reviewer assignment API."""

from typing import Any, Dict, List

import requests

from assigner.api.schemas import (
    DeactivateUsersResponse,
    PullRequestResponse,
    PullRequestSchema,
    ReassignResponse,
    TeamMemberSchema,
    TeamResponse,
    TeamSchema,
    UserResponse,
    UserReviewsResponse,
    UserSchema,
)


class AssignerAPIError(Exception):
    """Raised when the API answers with an error status."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class AssignerClient:
    """Client for the assignment API (team, users and pullRequest routes)."""

    def __init__(self, base_url: str = "http://localhost:8080", timeout: float = 30) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/json"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        resp = self._session.request(method, url, params=params, json=json, timeout=self._timeout)
        if resp.status_code >= 400:
            code = "HTTP_ERROR"
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                error = resp.json().get("error") or {}
                code = error.get("code", code)
                msg = error.get("message", msg)
            except (ValueError, AttributeError):
                pass
            raise AssignerAPIError(resp.status_code, code, msg)
        return resp.json()

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def create_team(self, team_name: str, members: List[TeamMemberSchema]) -> TeamSchema:
        body = TeamSchema(team_name=team_name, members=members).model_dump(mode="json")
        data = self._request("POST", "/team/add", json=body)
        return TeamResponse.model_validate(data).team

    def get_team(self, team_name: str) -> TeamSchema:
        data = self._request("GET", "/team/get", params={"team_name": team_name})
        return TeamSchema.model_validate(data)

    def deactivate_team_members(self, team_name: str, user_ids: List[str]) -> DeactivateUsersResponse:
        data = self._request("POST", "/team/deactivateUsers", json={"team_name": team_name, "user_ids": user_ids})
        return DeactivateUsersResponse.model_validate(data)

    def set_user_active(self, user_id: str, is_active: bool) -> UserSchema:
        data = self._request("POST", "/users/setIsActive", json={"user_id": user_id, "is_active": is_active})
        return UserResponse.model_validate(data).user

    def get_user_reviews(self, user_id: str) -> UserReviewsResponse:
        data = self._request("GET", "/users/getReview", params={"user_id": user_id})
        return UserReviewsResponse.model_validate(data)

    def create_pull_request(self, pr_id: str, name: str, author_id: str) -> PullRequestSchema:
        body = {"pull_request_id": pr_id, "pull_request_name": name, "author_id": author_id}
        data = self._request("POST", "/pullRequest/create", json=body)
        return PullRequestResponse.model_validate(data).pr

    def merge_pull_request(self, pr_id: str) -> PullRequestSchema:
        data = self._request("POST", "/pullRequest/merge", json={"pull_request_id": pr_id})
        return PullRequestResponse.model_validate(data).pr

    def reassign_reviewer(self, pr_id: str, old_user_id: str) -> ReassignResponse:
        data = self._request("POST", "/pullRequest/reassign", json={"pull_request_id": pr_id, "old_user_id": old_user_id})
        return ReassignResponse.model_validate(data)
