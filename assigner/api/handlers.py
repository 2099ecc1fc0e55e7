"""Route HTTP API calls to the assignment engine and map errors to responses.

Transport independent: handle_request() takes method, path, query and raw
body and returns (status, payload). The server module only does socket I/O.
"""

import json
import logging
from typing import Any, Callable, Dict, Tuple
from urllib.parse import parse_qs

from pydantic import BaseModel, ValidationError

from assigner.api.schemas import (
    CreatePullRequestRequest,
    DeactivateUsersRequest,
    DeactivateUsersResponse,
    ErrorDetail,
    ErrorResponse,
    MergePullRequestRequest,
    PullRequestResponse,
    PullRequestSchema,
    PullRequestShortSchema,
    ReassignRequest,
    ReassignResponse,
    SetIsActiveRequest,
    TeamResponse,
    TeamSchema,
    UserResponse,
    UserReviewsResponse,
    UserSchema,
)
from assigner.errors import (
    AssignerError,
    InvalidInput,
    NoCandidate,
    OperationCancelled,
    PullRequestExists,
    PullRequestMerged,
    PullRequestNotFound,
    ReviewerNotAssigned,
    TeamExists,
    TeamNotFound,
    UserNotFound,
)
from assigner.services.deadline import Deadline
from assigner.services.engine import AssignmentEngine

LOG = logging.getLogger("assigner.api.handlers")

Response = Tuple[int, Dict[str, Any]]

# Domain error kind -> HTTP status. Codes come from the error class.
ERROR_STATUS: dict[type[AssignerError], int] = {
    # stays 400, not 409: the public API defines TEAM_EXISTS as a bad request
    TeamExists: 400,
    TeamNotFound: 404,
    UserNotFound: 404,
    PullRequestNotFound: 404,
    PullRequestExists: 409,
    PullRequestMerged: 409,
    ReviewerNotAssigned: 409,
    NoCandidate: 409,
    InvalidInput: 400,
    OperationCancelled: 503,
}


def error_body(code: str, message: str) -> Dict[str, Any]:
    return ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(mode="json")


def error_response(exc: Exception) -> Response:
    """Map an exception to (status, error body). Unknown errors become 500."""
    if isinstance(exc, AssignerError):
        status = ERROR_STATUS.get(type(exc), 400)
        return status, error_body(exc.code, exc.message)
    return 500, error_body("INTERNAL_ERROR", "internal error")


def _dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _parse_body(body: bytes, model: type[BaseModel]) -> Any:
    if not body:
        raise InvalidInput("request body is required")
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidInput(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidInput("request body must be a JSON object")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInput(f"invalid request: {e.errors(include_url=False)}") from e


def _query_param(query: str, name: str) -> str:
    value = (parse_qs(query, keep_blank_values=True).get(name) or [""])[0].strip()
    if not value:
        raise InvalidInput(f"query parameter {name} is required")
    return value


class ApiHandlers:
    """HTTP API routes bound to one AssignmentEngine."""

    def __init__(self, engine: AssignmentEngine, request_timeout: float | None = None) -> None:
        self._engine = engine
        self._request_timeout = request_timeout
        self._routes: dict[tuple[str, str], Callable[[str, bytes], Response]] = {
            ("GET", "/health"): self.health,
            ("POST", "/team/add"): self.team_add,
            ("GET", "/team/get"): self.team_get,
            ("POST", "/team/deactivateUsers"): self.team_deactivate_users,
            ("POST", "/users/setIsActive"): self.users_set_is_active,
            ("GET", "/users/getReview"): self.users_get_review,
            ("POST", "/pullRequest/create"): self.pull_request_create,
            ("POST", "/pullRequest/merge"): self.pull_request_merge,
            ("POST", "/pullRequest/reassign"): self.pull_request_reassign,
        }

    def _deadline(self) -> Deadline | None:
        if self._request_timeout is None:
            return None
        return Deadline.after(self._request_timeout)

    def handle_request(self, method: str, path: str, query: str = "", body: bytes = b"") -> Response:
        """Dispatch one request; never raises."""
        route = self._routes.get((method.upper(), path.rstrip("/") or "/"))
        if route is None:
            return 404, error_body("NOT_FOUND", f"no route for {method} {path}")
        try:
            return route(query, body)
        except AssignerError as e:
            LOG.warning("%s %s rejected: %s (%s)", method, path, e.code, e.message)
            return error_response(e)
        except Exception as e:
            LOG.exception("Unexpected error on %s %s: %s", method, path, e)
            return error_response(e)

    def health(self, query: str, body: bytes) -> Response:
        return 200, {"status": "ok", "service": "pr-assigner"}

    def team_add(self, query: str, body: bytes) -> Response:
        req = _parse_body(body, TeamSchema)
        team = self._engine.create_team(req.to_domain(), deadline=self._deadline())
        return 201, _dump(TeamResponse(team=TeamSchema.from_domain(team)))

    def team_get(self, query: str, body: bytes) -> Response:
        team = self._engine.get_team(_query_param(query, "team_name"), deadline=self._deadline())
        return 200, _dump(TeamSchema.from_domain(team))

    def team_deactivate_users(self, query: str, body: bytes) -> Response:
        req = _parse_body(body, DeactivateUsersRequest)
        result = self._engine.deactivate_team_members(req.team_name, req.user_ids, deadline=self._deadline())
        return 200, _dump(DeactivateUsersResponse.from_domain(result))

    def users_set_is_active(self, query: str, body: bytes) -> Response:
        req = _parse_body(body, SetIsActiveRequest)
        user = self._engine.set_user_active(req.user_id, req.is_active, deadline=self._deadline())
        return 200, _dump(UserResponse(user=UserSchema.from_domain(user)))

    def users_get_review(self, query: str, body: bytes) -> Response:
        user_id = _query_param(query, "user_id")
        reviews = self._engine.get_user_reviews(user_id, deadline=self._deadline())
        resp = UserReviewsResponse(
            user_id=user_id,
            pull_requests=[PullRequestShortSchema.from_domain(pr) for pr in reviews],
        )
        return 200, _dump(resp)

    def pull_request_create(self, query: str, body: bytes) -> Response:
        req = _parse_body(body, CreatePullRequestRequest)
        pr = self._engine.create_pull_request(
            req.pull_request_id,
            req.pull_request_name,
            req.author_id,
            deadline=self._deadline(),
        )
        return 201, _dump(PullRequestResponse(pr=PullRequestSchema.from_domain(pr)))

    def pull_request_merge(self, query: str, body: bytes) -> Response:
        req = _parse_body(body, MergePullRequestRequest)
        pr = self._engine.merge_pull_request(req.pull_request_id, deadline=self._deadline())
        return 200, _dump(PullRequestResponse(pr=PullRequestSchema.from_domain(pr)))

    def pull_request_reassign(self, query: str, body: bytes) -> Response:
        req = _parse_body(body, ReassignRequest)
        result = self._engine.reassign_reviewer(req.pull_request_id, req.old_user_id, deadline=self._deadline())
        resp = ReassignResponse(pr=PullRequestSchema.from_domain(result.pull_request), replaced_by=result.replaced_by)
        return 200, _dump(resp)
