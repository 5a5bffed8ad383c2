"""Error types for allocation planning operations.

Business errors raised by the store and the week transition engine. None of
them is fatal to the process; each is scoped to the single user action that
triggered it.

Error kinds:
- NoPriorDataError: copy source is empty (a no-op notice, not a failure)
- NoCollaboratorsError: a new week has nobody to seed; raised before any write
- PartialBulkFailure: some records of a bulk operation failed; successes are kept
- StoreUnavailable: the persistence layer cannot be reached; never retried
- StaleWeekError: the week changed since the caller read its version
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from resource_planner.allocations.transitions import TransitionResult


class AllocationError(RuntimeError):
    """Base class for allocation planning errors."""


class NoPriorDataError(AllocationError):
    """Raised when the source day or week of a copy has no allocations."""

    def __init__(self, message: str, *, source: str):
        self.source = source
        super().__init__(message)


class NoCollaboratorsError(AllocationError):
    """Raised when a new planning week has no collaborator to seed."""


class PartialBulkFailure(AllocationError):
    """Raised after a bulk operation in which some records failed.

    Attributes:
        result: TransitionResult with succeeded/attempted counts and created records
    """

    def __init__(self, result: TransitionResult):
        self.result = result
        super().__init__(
            f"{result.operation}: {result.succeeded} of {result.attempted} allocations written, {result.failed} failed"
        )


class StoreUnavailable(AllocationError):
    """Raised when the allocation store cannot be reached."""


class AllocationWriteError(AllocationError):
    """Raised when a single allocation create/update/delete is rejected."""


class AllocationNotFoundError(AllocationError):
    """Raised when an allocation id does not exist."""


class StaleWeekError(AllocationError):
    """Raised when a bulk operation targets a week changed by someone else.

    Attributes:
        expected: Version the caller based its operation on
        current: Version currently stored for the week
    """

    def __init__(self, year: int, week: int, expected: int, current: int):
        self.year = year
        self.week = week
        self.expected = expected
        self.current = current
        super().__init__(f"Week {week}/{year} is at version {current}, operation expected version {expected}")
