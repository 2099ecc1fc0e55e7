"""Shared fixtures: in-memory store, seeded engine and team builders."""

import random

import pytest

from assigner.models import Team, TeamMember
from assigner.services.engine import AssignmentEngine
from assigner.services.selector import EligibilitySelector
from assigner.store.sqlite import SQLiteStore


@pytest.fixture
def store():
    s = SQLiteStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def engine(store: SQLiteStore) -> AssignmentEngine:
    """Engine with unseeded selection, as in production."""
    return AssignmentEngine(store)


@pytest.fixture
def seeded_engine(store: SQLiteStore) -> AssignmentEngine:
    """Engine whose picks repeat for the same data."""
    return AssignmentEngine(store, selector=EligibilitySelector(rng_factory=lambda: random.Random(7)))


def make_team(name: str, *user_ids: str, inactive: tuple[str, ...] = ()) -> Team:
    """Team whose usernames are the user ids in lower case."""
    return Team(
        name=name,
        members=[TeamMember(user_id=uid, username=uid.lower(), is_active=uid not in inactive) for uid in user_ids],
    )
