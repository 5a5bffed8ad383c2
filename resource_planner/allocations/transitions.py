"""Week transition engine.

Bulk operations that move planning data between days and weeks:

- copy_previous_day: overwrite a collaborator's day with the previous working day
- copy_week / copy_previous_week: real copy of a week's hours into another week
- create_next_week: placeholder week seeded on the area's vacation client
- delete_collaborator_week / delete_week / delete_collaborator_day: bulk removal

Every operation receives its (year, week, area) explicitly. Multi-record
writes are best-effort: each record succeeds or fails on its own, the batch
continues, and failures surface as PartialBulkFailure after the batch with
the successful records kept. Callers may pass the week version they read to
have the operation rejected when the target week changed in the meantime.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta

from loguru import logger

from resource_planner.allocations.directory import FallbackClientDirectory
from resource_planner.allocations.errors import (
    AllocationWriteError,
    NoCollaboratorsError,
    NoPriorDataError,
    PartialBulkFailure,
    StaleWeekError,
    StoreUnavailable,
)
from resource_planner.allocations.store import AllocationStore
from resource_planner.allocations.types import AllocationInput, AllocationRecord
from resource_planner.calendar.weeks import (
    WeekKey,
    monday_of_week,
    next_week,
    previous_working_day,
    week_key_for_date,
    week_offset_days,
)

DEFAULT_SEED_HOURS = 8.0


@dataclass
class TransitionResult:
    """Outcome of a multi-record week transition.

    Attributes:
        operation: Operation name (e.g. "copy_previous_week")
        target: Week key written to
        source: Week key read from, when the operation copies data
        attempted: Number of allocations the operation tried to write
        created: Allocations written successfully
        errors: One message per failed allocation
        deleted: Allocations removed before writing (copy_previous_day)
    """

    operation: str
    target: WeekKey
    source: WeekKey | None = None
    attempted: int = 0
    created: list[AllocationRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    deleted: int = 0

    @property
    def succeeded(self) -> int:
        return len(self.created)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded


@dataclass(frozen=True)
class PreviousDaySource:
    """Source of a copy-previous-day, shown to the user before confirming."""

    source_date: date
    allocations: list[AllocationRecord]


class WeekTransitionEngine:
    """Creates and deletes allocations in bulk for week rollover operations."""

    def __init__(
        self,
        store: AllocationStore,
        directory: FallbackClientDirectory,
        seed_hours: float = DEFAULT_SEED_HOURS,
    ):
        self.store = store
        self.directory = directory
        self.seed_hours = seed_hours

    def _check_version(self, target: WeekKey, expected_version: int | None) -> None:
        if expected_version is None:
            return
        current = self.store.get_week_version(target.year, target.week)
        if current != expected_version:
            logger.warning(
                "Rejecting stale bulk operation",
                year=target.year,
                week=target.week,
                expected_version=expected_version,
                current_version=current,
            )
            raise StaleWeekError(target.year, target.week, expected_version, current)

    def _write_batch(
        self,
        result: TransitionResult,
        allocations: list[AllocationInput],
        area_id: int | None,
    ) -> TransitionResult:
        """Upsert every allocation, counting per-record failures.

        A store outage stops the batch. When something was already committed
        (created records, or the clear step of copy_previous_day) it surfaces
        as PartialBulkFailure so the caller still sees what was written.
        """
        result.attempted = len(allocations)
        for allocation in allocations:
            try:
                result.created.append(self.store.upsert_allocation(allocation, area_id=area_id))
            except StoreUnavailable as e:
                result.errors.append(str(e))
                if not result.created and not result.deleted:
                    raise
                logger.error(
                    f"[{result.operation}] Store lost after {result.succeeded}/{result.attempted} allocations",
                    deleted=result.deleted,
                )
                raise PartialBulkFailure(result) from e
            except AllocationWriteError as e:
                logger.warning(
                    "[{operation}] Allocation skipped: {error}",
                    operation=result.operation,
                    error=str(e),
                    collaborator_id=allocation.collaborator_id,
                    client_id=allocation.client_id,
                    date=str(allocation.date),
                )
                result.errors.append(str(e))

        logger.info(
            f"[{result.operation}] {result.succeeded}/{result.attempted} allocations written",
            target=str(result.target),
            source=str(result.source) if result.source else None,
        )
        if result.failed:
            raise PartialBulkFailure(result)
        return result

    def preview_previous_day(self, collaborator_id: int, target_date: date, area_id: int | None) -> PreviousDaySource:
        """Allocations that copy_previous_day would copy onto target_date.

        Raises:
            NoPriorDataError: If the previous working day has no allocations
        """
        source_date = previous_working_day(target_date)
        allocations = self.store.list_collaborator_day(collaborator_id, source_date, area_id)
        if not allocations:
            raise NoPriorDataError(
                f"No allocations for collaborator {collaborator_id} on {source_date.isoformat()}",
                source=source_date.isoformat(),
            )
        return PreviousDaySource(source_date=source_date, allocations=allocations)

    def copy_previous_day(
        self,
        collaborator_id: int,
        target_date: date,
        area_id: int | None,
        expected_version: int | None = None,
    ) -> TransitionResult:
        """Replace a collaborator's day with a copy of the previous working day.

        The collaborator's existing allocations on target_date are deleted
        first (full overwrite, not merge); then one allocation per source
        record is created with the same client and hours. Running it twice
        yields the same allocations as running it once.

        Raises:
            NoPriorDataError: If the previous working day is empty (nothing is written)
            StaleWeekError: If expected_version is stale
            PartialBulkFailure: If some copies failed
        """
        target = week_key_for_date(target_date)
        self._check_version(target, expected_version)
        source = self.preview_previous_day(collaborator_id, target_date, area_id)

        deleted = self.store.delete_allocations_for_collaborator_day(collaborator_id, target_date, area_id)
        allocations = [
            AllocationInput(
                collaborator_id=collaborator_id,
                client_id=record.client_id,
                date=target_date,
                hours=record.hours,
                week_number=target.week,
                year=target.year,
                area_id=area_id if area_id is not None else record.area_id,
            )
            for record in source.allocations
        ]
        result = TransitionResult(
            operation="copy_previous_day",
            target=target,
            source=week_key_for_date(source.source_date),
            deleted=deleted,
        )
        return self._write_batch(result, allocations, area_id)

    def copy_week(
        self,
        source: WeekKey,
        target: WeekKey,
        area_id: int | None,
        expected_version: int | None = None,
    ) -> TransitionResult:
        """Copy every allocation of the source week into the target week.

        Dates move by the distance between the two weeks' Mondays; collaborator,
        client, hours and area are kept. Allocations already in the target
        with the same (collaborator, client, date) are replaced, not duplicated.

        Raises:
            NoPriorDataError: If the source week has no allocations
            StaleWeekError: If expected_version is stale
            PartialBulkFailure: If some copies failed
        """
        self._check_version(target, expected_version)
        records = self.store.list_allocations(source.year, source.week, area_id)
        if not records:
            raise NoPriorDataError(f"No allocations found for week {source}", source=str(source))

        offset = timedelta(days=week_offset_days(source, target))
        allocations = [
            AllocationInput(
                collaborator_id=record.collaborator_id,
                client_id=record.client_id,
                date=record.date + offset,
                hours=record.hours,
                week_number=target.week,
                year=target.year,
                area_id=record.area_id,
            )
            for record in records
        ]
        result = TransitionResult(operation="copy_week", target=target, source=source)
        return self._write_batch(result, allocations, area_id)

    def copy_previous_week(
        self,
        year: int,
        week: int,
        area_id: int | None,
        expected_version: int | None = None,
    ) -> TransitionResult:
        """Copy week (year, week) into the week that follows it."""
        return self.copy_week(WeekKey(year=year, week=week), next_week(week, year), area_id, expected_version)

    def create_next_week(
        self,
        year: int,
        week: int,
        area_id: int | None,
        expected_version: int | None = None,
    ) -> TransitionResult:
        """Seed the week after (year, week) with placeholder allocations.

        Collaborators are those with allocations in (year, week) for the area,
        or, when there are none, every collaborator assigned to the area. Each
        one gets a single allocation of seed_hours on the Monday of the new
        week, on the area's vacation client (or the global fallback client).

        Raises:
            NoCollaboratorsError: If there is nobody to seed (nothing is written)
            StaleWeekError: If expected_version is stale
            PartialBulkFailure: If some seed allocations failed
        """
        source = WeekKey(year=year, week=week)
        target = next_week(week, year)
        self._check_version(target, expected_version)

        records = self.store.list_allocations(year, week, area_id)
        collaborator_ids = list(dict.fromkeys(r.collaborator_id for r in records))
        if not collaborator_ids and area_id is not None:
            collaborator_ids = self.store.list_collaborators_for_area(area_id)
            logger.info(f"Week {source} is empty, seeding {len(collaborator_ids)} collaborators of area {area_id}")
        if not collaborator_ids:
            raise NoCollaboratorsError(f"No collaborators to seed week {target} for area {area_id}")

        client_id = self.directory.client_for_area(area_id)
        monday = monday_of_week(target.week, target.year)
        allocations = [
            AllocationInput(
                collaborator_id=collaborator_id,
                client_id=client_id,
                date=monday,
                hours=self.seed_hours,
                week_number=target.week,
                year=target.year,
                area_id=area_id,
            )
            for collaborator_id in collaborator_ids
        ]
        result = TransitionResult(operation="create_next_week", target=target, source=source)
        return self._write_batch(result, allocations, area_id)

    def delete_collaborator_week(
        self,
        collaborator_id: int,
        year: int,
        week: int,
        area_id: int | None = None,
        expected_version: int | None = None,
    ) -> int:
        """Remove a collaborator's allocations of one week. Returns the count removed."""
        self._check_version(WeekKey(year=year, week=week), expected_version)
        count = self.store.delete_allocations_for_collaborator_week(collaborator_id, year, week, area_id)
        logger.info(f"Deleted {count} allocations", collaborator_id=collaborator_id, year=year, week=week, area_id=area_id)
        return count

    def delete_week(
        self,
        year: int,
        week: int,
        area_id: int | None = None,
        expected_version: int | None = None,
    ) -> int:
        """Remove all allocations of a week, optionally for one area.

        No safety check beyond the optional version token is applied; the
        caller is responsible for confirming the deletion with the user.
        """
        self._check_version(WeekKey(year=year, week=week), expected_version)
        count = self.store.delete_allocations_for_week(year, week, area_id)
        logger.info(f"Deleted whole week ({count} allocations)", year=year, week=week, area_id=area_id)
        return count

    def delete_collaborator_day(self, collaborator_id: int, day: date, area_id: int | None = None) -> int:
        """Remove a collaborator's allocations on one date. Returns the count removed."""
        return self.store.delete_allocations_for_collaborator_day(collaborator_id, day, area_id)
