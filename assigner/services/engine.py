"""Assignment engine - pull request creation, merge, reassignment and bulk deactivation.

Every public operation runs in exactly one store transaction. Domain errors
are raised inside the transaction, so the store rolls back before the error
reaches the caller and no partial state is ever committed.

Invariants kept on every pull request:
- No reviewer is assigned twice.
- The author never reviews their own pull request.
- Reviewers come from the author's team (or the replaced reviewer's team).
- The reviewer set is frozen once the pull request is merged.
"""

import logging
from datetime import UTC, datetime

from assigner.errors import (
    InvalidInput,
    NoCandidate,
    PullRequestExists,
    PullRequestMerged,
    PullRequestNotFound,
    ReviewerNotAssigned,
    TeamExists,
    TeamNotFound,
    UniqueViolation,
    UserNotFound,
)
from assigner.models import (
    BulkDeactivateResult,
    PRStatus,
    PullRequest,
    PullRequestShort,
    ReassignmentChange,
    ReassignResult,
    Team,
    User,
)
from assigner.services import queries
from assigner.services.deadline import Deadline, check_deadline
from assigner.services.selector import DEFAULT_REVIEWERS, EligibilitySelector
from assigner.store.base import Executor, Store

LOG = logging.getLogger("assigner.services.engine")


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _unique_ids(user_ids: list[str]) -> list[str]:
    """Strip, drop blanks and duplicates; keep first-seen order."""
    unique: list[str] = []
    seen: set[str] = set()
    for raw in user_ids:
        uid = (raw or "").strip()
        if not uid or uid in seen:
            continue
        seen.add(uid)
        unique.append(uid)
    return unique


class AssignmentEngine:
    """Reviewer assignment operations over a transactional Store."""

    def __init__(
        self,
        store: Store,
        selector: EligibilitySelector | None = None,
        reviewers_per_pull_request: int = DEFAULT_REVIEWERS,
    ) -> None:
        self._store = store
        self._selector = selector or EligibilitySelector()
        self._reviewers_per_pr = reviewers_per_pull_request

    # Teams and users

    def create_team(self, team: Team, deadline: Deadline | None = None) -> Team:
        """Create a team and upsert its members (users may move between teams)."""
        name = team.name.strip()
        if not name:
            raise InvalidInput("team name is required")
        with self._store.transaction(deadline) as tx:
            try:
                tx.execute("INSERT INTO teams (name) VALUES (?)", (name,))
            except UniqueViolation as e:
                raise TeamExists(f"team {name} already exists") from e
            for member in team.members:
                user_id = member.user_id.strip()
                if not user_id:
                    continue
                check_deadline(deadline)
                tx.execute(
                    """
                    INSERT INTO users (id, username, team_name, is_active)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (id) DO UPDATE
                    SET username = excluded.username,
                        team_name = excluded.team_name,
                        is_active = excluded.is_active
                    """,
                    (user_id, member.username, name, int(member.is_active)),
                )
            created = queries.get_team(tx, name)
        LOG.info("Team %s created with %s members", name, len(created.members))
        return created

    def get_team(self, team_name: str, deadline: Deadline | None = None) -> Team:
        with self._store.transaction(deadline) as tx:
            return queries.get_team(tx, team_name)

    def set_user_active(self, user_id: str, is_active: bool, deadline: Deadline | None = None) -> User:
        """Flip one user's activity flag. Existing assignments are left alone."""
        with self._store.transaction(deadline) as tx:
            updated = tx.execute("UPDATE users SET is_active = ? WHERE id = ?", (int(is_active), user_id))
            if updated == 0:
                raise UserNotFound(f"user {user_id} not found")
            user = queries.get_user(tx, user_id)
        LOG.info("User %s is_active -> %s", user_id, is_active)
        return user

    def get_user_reviews(self, user_id: str, deadline: Deadline | None = None) -> list[PullRequestShort]:
        with self._store.transaction(deadline) as tx:
            queries.get_user(tx, user_id)
            return queries.list_user_reviews(tx, user_id)

    def deactivate_team_members(
        self,
        team_name: str,
        user_ids: list[str],
        deadline: Deadline | None = None,
    ) -> BulkDeactivateResult:
        """Deactivate users of a team and move their open review load.

        All-or-nothing: if the team is missing or any id is not a member of
        it, nothing is changed. Each open pull request reviewed by a
        deactivated user gets a replacement from the team when one is left,
        otherwise the assignment is dropped. Replacements are picked against
        the reviewer set as already changed earlier in the same batch.
        """
        team_name = (team_name or "").strip()
        unique = _unique_ids(user_ids or [])
        if not team_name or not unique:
            raise InvalidInput("team_name and at least one user id are required")

        changes: list[ReassignmentChange] = []
        with self._store.transaction(deadline) as tx:
            if not queries.team_exists(tx, team_name):
                raise TeamNotFound(f"team {team_name} not found")

            for uid in unique:
                user = queries.get_user(tx, uid)
                if user.team_name != team_name:
                    raise UserNotFound(f"user {uid} is not a member of team {team_name}")

            for uid in unique:
                tx.execute("UPDATE users SET is_active = 0 WHERE id = ?", (uid,))

            for uid in unique:
                for pr_id in queries.list_open_reviews(tx, uid):
                    check_deadline(deadline)
                    changes.append(self._release_reviewer(tx, team_name, pr_id, uid))

            team = queries.get_team(tx, team_name)

        LOG.info(
            "Team %s: deactivated %s user(s), %s reviewer change(s)",
            team_name,
            len(unique),
            len(changes),
        )
        return BulkDeactivateResult(team=team, deactivated_user_ids=unique, reassignments=changes)

    def _release_reviewer(self, tx: Executor, team_name: str, pr_id: str, old_id: str) -> ReassignmentChange:
        """Replace old_id on pr_id with a teammate, or just drop the assignment."""
        pr = queries.get_pull_request(tx, pr_id)
        candidate = self._selector.pick_replacement_candidate(
            tx,
            team_name,
            set(pr.assigned_reviewers) | {pr.author_id},
            old_id,
        )
        self._remove_reviewer(tx, pr_id, old_id)
        if candidate is not None:
            self._add_reviewer(tx, pr_id, candidate)
            LOG.info("PR %s: reviewer %s replaced by %s", pr_id, old_id, candidate)
        else:
            LOG.info("PR %s: reviewer %s removed, no replacement in team %s", pr_id, old_id, team_name)
        return ReassignmentChange(pull_request_id=pr_id, old_reviewer_id=old_id, new_reviewer_id=candidate)

    # Pull requests

    def create_pull_request(
        self,
        pr_id: str,
        name: str,
        author_id: str,
        deadline: Deadline | None = None,
    ) -> PullRequest:
        """Create an OPEN pull request and assign up to N reviewers from the author's team."""
        with self._store.transaction(deadline) as tx:
            author = queries.get_user(tx, author_id)
            try:
                tx.execute(
                    "INSERT INTO pull_requests (id, name, author_id, status, created_at) VALUES (?, ?, ?, ?, ?)",
                    (pr_id, name, author_id, PRStatus.OPEN.value, _now()),
                )
            except UniqueViolation as e:
                raise PullRequestExists(f"pull request {pr_id} already exists") from e
            check_deadline(deadline)
            reviewers = self._selector.pick_initial_reviewers(
                tx,
                author.team_name,
                author_id,
                self._reviewers_per_pr,
            )
            for reviewer_id in reviewers:
                self._add_reviewer(tx, pr_id, reviewer_id)
            created = queries.get_pull_request(tx, pr_id)
        LOG.info("PR %s created by %s, reviewers: %s", pr_id, author_id, created.assigned_reviewers)
        return created

    def get_pull_request(self, pr_id: str, deadline: Deadline | None = None) -> PullRequest:
        with self._store.transaction(deadline) as tx:
            return queries.get_pull_request(tx, pr_id)

    def merge_pull_request(self, pr_id: str, deadline: Deadline | None = None) -> PullRequest:
        """Mark the pull request MERGED. Repeated merges keep the first merged_at."""
        with self._store.transaction(deadline) as tx:
            updated = tx.execute(
                """
                UPDATE pull_requests
                SET status = ?, merged_at = COALESCE(merged_at, ?)
                WHERE id = ?
                """,
                (PRStatus.MERGED.value, _now(), pr_id),
            )
            if updated == 0:
                raise PullRequestNotFound(f"pull request {pr_id} not found")
            merged = queries.get_pull_request(tx, pr_id)
        LOG.info("PR %s merged at %s", pr_id, merged.merged_at)
        return merged

    def reassign_reviewer(
        self,
        pr_id: str,
        old_reviewer_id: str,
        deadline: Deadline | None = None,
    ) -> ReassignResult:
        """Replace one assigned reviewer with a random eligible teammate of theirs.

        Checks run before any write; when no candidate exists the old
        reviewer stays assigned and NoCandidate is raised.
        """
        with self._store.transaction(deadline) as tx:
            pr = queries.get_pull_request(tx, pr_id)
            if pr.is_merged:
                raise PullRequestMerged(f"pull request {pr_id} is merged")
            if old_reviewer_id not in pr.assigned_reviewers:
                raise ReviewerNotAssigned(f"{old_reviewer_id} is not a reviewer of {pr_id}")
            old_reviewer = queries.get_user(tx, old_reviewer_id)

            check_deadline(deadline)
            candidate = self._selector.pick_replacement_candidate(
                tx,
                old_reviewer.team_name,
                set(pr.assigned_reviewers) | {pr.author_id},
                old_reviewer_id,
            )
            if candidate is None:
                raise NoCandidate(f"no active replacement for {old_reviewer_id} in team {old_reviewer.team_name}")

            self._remove_reviewer(tx, pr_id, old_reviewer_id)
            self._add_reviewer(tx, pr_id, candidate)
            updated = queries.get_pull_request(tx, pr_id)
        LOG.info("PR %s: reviewer %s reassigned to %s", pr_id, old_reviewer_id, candidate)
        return ReassignResult(pull_request=updated, replaced_by=candidate)

    @staticmethod
    def _add_reviewer(tx: Executor, pr_id: str, reviewer_id: str) -> None:
        tx.execute(
            "INSERT INTO pull_request_reviewers (pull_request_id, reviewer_id) VALUES (?, ?)",
            (pr_id, reviewer_id),
        )

    @staticmethod
    def _remove_reviewer(tx: Executor, pr_id: str, reviewer_id: str) -> None:
        tx.execute(
            "DELETE FROM pull_request_reviewers WHERE pull_request_id = ? AND reviewer_id = ?",
            (pr_id, reviewer_id),
        )
