"""Transactional storage for teams, users, pull requests and reviewer assignments."""

from assigner.store.base import Executor, Row, Store
from assigner.store.sqlite import SQLiteStore

__all__ = ["Executor", "Row", "SQLiteStore", "Store"]
