"""Abstract store interface.

The assignment engine depends on this narrow contract only: three statement
primitives on an Executor plus a transaction scope on the Store. Any
relational backend that can run parameterised SQL inside a transaction can
implement it; tests run the engine against the in-memory SQLite store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Mapping, Sequence

if TYPE_CHECKING:
    from assigner.services.deadline import Deadline

Row = Mapping[str, Any]


class Executor(ABC):
    """Runs statements inside an open transaction."""

    @abstractmethod
    def execute(self, statement: str, args: Sequence[Any] = ()) -> int:
        """Run a write statement and return the number of affected rows.

        Raises UniqueViolation when a unique or primary key collides.
        """

    @abstractmethod
    def query_one(self, statement: str, args: Sequence[Any] = ()) -> Row | None:
        """Return the first row of the result, or None when there is none."""

    @abstractmethod
    def query_many(self, statement: str, args: Sequence[Any] = ()) -> list[Row]:
        """Return all rows of the result (possibly empty)."""


class Store(ABC):
    """Transactional store used by the assignment engine.

    transaction() must take its write lock before the first statement runs,
    so two transactions never interleave a read-then-write sequence on the
    same rows. It commits when the block exits normally and rolls back on
    any exception, including OperationCancelled raised from the deadline.
    """

    @abstractmethod
    def transaction(self, deadline: Deadline | None = None) -> AbstractContextManager[Executor]:
        """Open a serialized transaction and yield its Executor."""

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
