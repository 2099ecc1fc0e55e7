"""SQLiteStore - file or in-memory store for teams, users and pull requests.

One connection is shared by all callers and guarded by a lock; every
transaction starts with BEGIN IMMEDIATE, so the database write lock is held
from the first read until commit or rollback.

Schema:
  teams                  - one row per team (name is the key)
  users                  - team_name is NULL when the user has no team
  pull_requests          - status OPEN or MERGED, timestamps as ISO-8601 UTC
  pull_request_reviewers - (pull_request_id, reviewer_id) pairs
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Sequence

from assigner.errors import OperationCancelled, StoreError, UniqueViolation
from assigner.store.base import Executor, Row, Store

if TYPE_CHECKING:
    from assigner.services.deadline import Deadline

LOG = logging.getLogger("assigner.store.sqlite")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS teams (
    name        TEXT PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS users (
    id          TEXT PRIMARY KEY,
    username    TEXT NOT NULL,
    team_name   TEXT REFERENCES teams (name),
    is_active   INTEGER NOT NULL DEFAULT 1
);
CREATE TABLE IF NOT EXISTS pull_requests (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    author_id   TEXT NOT NULL REFERENCES users (id),
    status      TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN', 'MERGED')),
    created_at  TEXT NOT NULL,
    merged_at   TEXT
);
CREATE TABLE IF NOT EXISTS pull_request_reviewers (
    pull_request_id TEXT NOT NULL REFERENCES pull_requests (id),
    reviewer_id     TEXT NOT NULL REFERENCES users (id),
    PRIMARY KEY (pull_request_id, reviewer_id)
);
CREATE INDEX IF NOT EXISTS idx_users_team        ON users (team_name);
CREATE INDEX IF NOT EXISTS idx_reviewers_user    ON pull_request_reviewers (reviewer_id);
CREATE INDEX IF NOT EXISTS idx_pull_requests_st  ON pull_requests (status);
"""

# VM instructions between deadline checks while a statement runs
_PROGRESS_STEPS = 1000


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    name = getattr(exc, "sqlite_errorname", "")
    if name in ("SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE"):
        return True
    return "UNIQUE constraint failed" in str(exc)


def _translate(exc: sqlite3.Error, deadline: Deadline | None) -> Exception:
    """Map a sqlite3 error onto the store error types."""
    if isinstance(exc, sqlite3.IntegrityError) and _is_unique_violation(exc):
        return UniqueViolation(str(exc))
    if isinstance(exc, sqlite3.OperationalError) and deadline is not None and deadline.expired():
        return OperationCancelled()
    return StoreError(f"{type(exc).__name__}: {exc}")


class _SQLiteExecutor(Executor):
    def __init__(self, conn: sqlite3.Connection, deadline: Deadline | None) -> None:
        self._conn = conn
        self._deadline = deadline

    def _run(self, statement: str, args: Sequence[Any]) -> sqlite3.Cursor:
        try:
            return self._conn.execute(statement, tuple(args))
        except sqlite3.Error as e:
            raise _translate(e, self._deadline) from e

    def execute(self, statement: str, args: Sequence[Any] = ()) -> int:
        return self._run(statement, args).rowcount

    def query_one(self, statement: str, args: Sequence[Any] = ()) -> Row | None:
        cursor = self._run(statement, args)
        try:
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise _translate(e, self._deadline) from e
        return dict(row) if row is not None else None

    def query_many(self, statement: str, args: Sequence[Any] = ()) -> list[Row]:
        cursor = self._run(statement, args)
        try:
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise _translate(e, self._deadline) from e
        return [dict(r) for r in rows]


class SQLiteStore(Store):
    """Stores teams, users and pull requests in a SQLite database.

    db_path defaults to an in-memory database; configure a file path via
    config.yaml (database.path) or DATABASE_PATH.
    """

    def __init__(self, db_path: str = ":memory:", busy_timeout: float = 5.0) -> None:
        try:
            self._conn = sqlite3.connect(
                db_path,
                timeout=busy_timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {db_path}: {e}") from e
        self._lock = threading.RLock()
        self._db_path = db_path
        LOG.debug("Opened SQLite store at %s", db_path)

    @contextmanager
    def transaction(self, deadline: Deadline | None = None) -> Iterator[Executor]:
        with self._lock:
            if deadline is not None:
                deadline.check()
                self._conn.set_progress_handler(lambda: 1 if deadline.expired() else 0, _PROGRESS_STEPS)
            try:
                self._begin(deadline)
                try:
                    yield _SQLiteExecutor(self._conn, deadline)
                    if deadline is not None:
                        deadline.check()
                except BaseException:
                    self._rollback()
                    raise
                self._conn.set_progress_handler(None, 0)
                self._commit()
            finally:
                self._conn.set_progress_handler(None, 0)

    def _begin(self, deadline: Deadline | None) -> None:
        try:
            self._conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise _translate(e, deadline) from e

    def _commit(self) -> None:
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback()
            raise StoreError(f"Commit failed: {e}") from e

    def _rollback(self) -> None:
        if not self._conn.in_transaction:
            return
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            LOG.warning("Rollback failed on %s: %s", self._db_path, e)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
