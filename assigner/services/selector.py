"""Eligibility selector - uniform random reviewer picks within a team.

The pool is every active member of the team minus the excluded ids. Picks
use a fresh random.Random from rng_factory on every call, so no random
state is shared between requests. Tests pass a seeded factory.
"""

import logging
import random
from typing import Callable, Iterable

from assigner.store.base import Executor

LOG = logging.getLogger("assigner.services.selector")

DEFAULT_REVIEWERS = 2


class EligibilitySelector:
    """Computes eligible reviewers and picks among them.

    Usage:
        selector = EligibilitySelector()
        with store.transaction() as tx:
            reviewers = selector.pick_initial_reviewers(tx, "backend", "u1")
    """

    def __init__(self, rng_factory: Callable[[], random.Random] = random.Random) -> None:
        self._rng_factory = rng_factory

    def eligible_pool(self, executor: Executor, team_name: str, exclude_ids: Iterable[str] = ()) -> list[str]:
        """Active users of team_name whose id is not in exclude_ids."""
        if not team_name:
            return []
        exclude = set(exclude_ids)
        rows = executor.query_many(
            "SELECT id FROM users WHERE team_name = ? AND is_active = 1 ORDER BY id",
            (team_name,),
        )
        return [r["id"] for r in rows if r["id"] not in exclude]

    def pick_initial_reviewers(
        self,
        executor: Executor,
        team_name: str,
        author_id: str,
        limit: int = DEFAULT_REVIEWERS,
    ) -> list[str]:
        """Up to limit distinct active teammates of the author.

        The whole pool is returned when it has no more than limit users,
        otherwise a uniform sample of exactly limit users.
        """
        pool = self.eligible_pool(executor, team_name, {author_id})
        if len(pool) <= limit:
            return pool
        rng = self._rng_factory()
        rng.shuffle(pool)
        picked = pool[:limit]
        LOG.debug("Picked %s of %s candidates in team %s", picked, len(pool), team_name)
        return picked

    def pick_replacement_candidate(
        self,
        executor: Executor,
        team_name: str,
        assigned_ids: Iterable[str],
        excluded_id: str,
    ) -> str | None:
        """One random active user of team_name not in assigned_ids and not excluded_id.

        Returns None when nobody is left.
        """
        exclude = set(assigned_ids)
        exclude.add(excluded_id)
        pool = self.eligible_pool(executor, team_name, exclude)
        if not pool:
            LOG.debug("No replacement for %s in team %s", excluded_id, team_name)
            return None
        return self._rng_factory().choice(pool)
