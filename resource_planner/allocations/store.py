"""Allocation store: the persistence contract used by the planning core.

Every method opens its own session through get_session(), so each call is
applied fully or not at all. Mutations bump the version token of every week
they touch inside the same transaction.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from functools import wraps
from typing import ParamSpec, TypeVar

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from resource_planner.allocations.errors import AllocationNotFoundError, AllocationWriteError, StoreUnavailable
from resource_planner.allocations.filters import area_condition, is_visible
from resource_planner.allocations.types import AllocationInput, AllocationRecord, ClientRecord
from resource_planner.db.models import Allocation, Client, Collaborator, WeekVersion
from resource_planner.db.session import get_session

P = ParamSpec("P")
R = TypeVar("R")

_INPUT_FIELDS = set(AllocationInput.model_fields)


def _store_call(func: Callable[P, R]) -> Callable[P, R]:
    """Translate connection-level database failures into StoreUnavailable."""

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"[STORE] {func.__name__} failed, store unavailable: {e}")
            raise StoreUnavailable(f"Allocation store unavailable during {func.__name__}") from e

    return wrapper


def _to_record(allocation: Allocation) -> AllocationRecord:
    return AllocationRecord(
        id=allocation.id,
        collaborator_id=allocation.collaborator_id,
        client_id=allocation.client_id,
        date=allocation.date,
        hours=allocation.hours,
        week_number=allocation.week_number,
        year=allocation.year,
        area_id=allocation.area_id,
        collaborator_name=allocation.collaborator.name if allocation.collaborator else None,
        client_name=allocation.client.name if allocation.client else None,
    )


def _bump_week_versions(db: Session, week_keys: Iterable[tuple[int, int]]) -> None:
    for year, week in set(week_keys):
        row = db.get(WeekVersion, (year, week))
        if row is None:
            db.add(WeekVersion(year=year, week_number=week, version=1))
        else:
            row.version += 1


class AllocationStore:
    """SQLAlchemy implementation of the allocation store contract."""

    @_store_call
    def list_allocations(self, year: int, week: int, area_id: int | None = None) -> list[AllocationRecord]:
        """Get all allocations listed under a planning week.

        Args:
            year: Planning year
            week: Planning week number
            area_id: Caller area scope (None = all areas)

        Returns:
            Allocation records ordered by collaborator name, then date
        """
        with get_session() as db:
            query = (
                select(Allocation)
                .join(Allocation.collaborator)
                .where(
                    Allocation.year == year,
                    Allocation.week_number == week,
                    area_condition(Allocation.area_id, area_id),
                )
                .order_by(Collaborator.name, Allocation.date, Allocation.id)
            )
            records = [_to_record(a) for a in db.execute(query).unique().scalars().all()]

        logger.debug(f"Found {len(records)} allocations for week {week}/{year}", area_id=area_id)
        return records

    @_store_call
    def list_collaborator_day(self, collaborator_id: int, day: date, area_id: int | None = None) -> list[AllocationRecord]:
        """Get one collaborator's allocations on one date."""
        with get_session() as db:
            query = (
                select(Allocation)
                .where(
                    Allocation.collaborator_id == collaborator_id,
                    Allocation.date == day,
                    area_condition(Allocation.area_id, area_id),
                )
                .order_by(Allocation.id)
            )
            return [_to_record(a) for a in db.execute(query).unique().scalars().all()]

    @_store_call
    def list_weeks_with_data(self, year: int, area_id: int | None = None) -> list[int]:
        """Distinct week numbers of a year that hold at least one allocation."""
        with get_session() as db:
            query = (
                select(Allocation.week_number)
                .where(Allocation.year == year, area_condition(Allocation.area_id, area_id))
                .distinct()
                .order_by(Allocation.week_number)
            )
            return list(db.execute(query).scalars().all())

    @_store_call
    def upsert_allocation(self, allocation: AllocationInput, area_id: int | None = None) -> AllocationRecord:
        """Create an allocation, or replace the one sharing its natural key.

        The natural key is (collaborator_id, client_id, date). On a match the
        hours, week key and area of the existing row are replaced.

        Args:
            allocation: Values to write
            area_id: Caller area scope (None = all areas); an existing row
                outside it is never taken over

        Raises:
            AllocationWriteError: If the row violates a database constraint or
                the natural key belongs to a row outside the caller's area
        """
        try:
            with get_session() as db:
                existing = db.execute(
                    select(Allocation).where(
                        Allocation.collaborator_id == allocation.collaborator_id,
                        Allocation.client_id == allocation.client_id,
                        Allocation.date == allocation.date,
                    )
                ).unique().scalar_one_or_none()

                if existing is not None and not is_visible(existing, area_id):
                    raise AllocationWriteError(
                        f"Allocation for collaborator {allocation.collaborator_id} on {allocation.date} "
                        f"belongs to area {existing.area_id}"
                    )

                touched = [(allocation.year, allocation.week_number)]
                if existing is None:
                    row = Allocation(**allocation.model_dump(include=_INPUT_FIELDS))
                    db.add(row)
                else:
                    touched.append((existing.year, existing.week_number))
                    row = existing
                    row.hours = allocation.hours
                    row.week_number = allocation.week_number
                    row.year = allocation.year
                    row.area_id = allocation.area_id

                _bump_week_versions(db, touched)
                db.flush()
                db.refresh(row)
                record = _to_record(row)
        except IntegrityError as e:
            raise AllocationWriteError(
                f"Allocation for collaborator {allocation.collaborator_id} on {allocation.date} rejected: {e.orig}"
            ) from e

        logger.debug(
            "Allocation upserted",
            allocation_id=record.id,
            collaborator_id=record.collaborator_id,
            client_id=record.client_id,
            date=str(record.date),
            hours=record.hours,
        )
        return record

    @_store_call
    def update_allocation(
        self,
        allocation_id: int,
        allocation: AllocationInput,
        area_id: int | None = None,
    ) -> AllocationRecord:
        """Overwrite every field of an allocation identified by id.

        Raises:
            AllocationNotFoundError: If no allocation with this id is visible in area_id
            AllocationWriteError: If the new values collide with another row
        """
        try:
            with get_session() as db:
                row = self._get_visible(db, allocation_id, area_id)
                if row is None:
                    raise AllocationNotFoundError(f"Allocation {allocation_id} not found")
                touched = [(row.year, row.week_number), (allocation.year, allocation.week_number)]
                for field, value in allocation.model_dump(include=_INPUT_FIELDS).items():
                    setattr(row, field, value)
                _bump_week_versions(db, touched)
                db.flush()
                db.refresh(row)
                return _to_record(row)
        except IntegrityError as e:
            raise AllocationWriteError(f"Allocation {allocation_id} update rejected: {e.orig}") from e

    @_store_call
    def delete_allocation(self, allocation_id: int, area_id: int | None = None) -> int:
        """Delete one allocation by id within the caller's area. Returns the number of rows removed."""
        with get_session() as db:
            row = self._get_visible(db, allocation_id, area_id)
            if row is None:
                return 0
            _bump_week_versions(db, [(row.year, row.week_number)])
            db.delete(row)
        return 1

    def _get_visible(self, db: Session, allocation_id: int, area_id: int | None) -> Allocation | None:
        query = select(Allocation).where(Allocation.id == allocation_id, area_condition(Allocation.area_id, area_id))
        return db.execute(query).unique().scalar_one_or_none()

    def _delete_where(self, db: Session, *conditions) -> int:
        touched = db.execute(select(Allocation.year, Allocation.week_number).where(*conditions).distinct()).all()
        if not touched:
            return 0
        # Fresh session per call, nothing in the identity map to synchronize
        result = db.execute(delete(Allocation).where(*conditions).execution_options(synchronize_session=False))
        _bump_week_versions(db, [(year, week) for year, week in touched])
        return result.rowcount

    @_store_call
    def delete_allocations_for_collaborator_day(self, collaborator_id: int, day: date, area_id: int | None = None) -> int:
        """Delete a collaborator's allocations on one date (clear step of copy-day)."""
        with get_session() as db:
            count = self._delete_where(
                db,
                Allocation.collaborator_id == collaborator_id,
                Allocation.date == day,
                area_condition(Allocation.area_id, area_id),
            )
        logger.debug(f"Deleted {count} allocations", collaborator_id=collaborator_id, date=str(day), area_id=area_id)
        return count

    @_store_call
    def delete_allocations_for_collaborator_week(
        self,
        collaborator_id: int,
        year: int,
        week: int,
        area_id: int | None = None,
    ) -> int:
        """Delete a collaborator's allocations listed under one week."""
        with get_session() as db:
            return self._delete_where(
                db,
                Allocation.collaborator_id == collaborator_id,
                Allocation.year == year,
                Allocation.week_number == week,
                area_condition(Allocation.area_id, area_id),
            )

    @_store_call
    def delete_allocations_for_week(self, year: int, week: int, area_id: int | None = None) -> int:
        """Delete every allocation listed under one week, optionally for one area."""
        with get_session() as db:
            return self._delete_where(
                db,
                Allocation.year == year,
                Allocation.week_number == week,
                area_condition(Allocation.area_id, area_id),
            )

    @_store_call
    def list_collaborators_for_area(self, area_id: int) -> list[int]:
        """Ids of collaborators assigned to an area, ordered by name."""
        with get_session() as db:
            query = select(Collaborator.id).where(Collaborator.area_id == area_id).order_by(Collaborator.name)
            return list(db.execute(query).scalars().all())

    @_store_call
    def list_clients(self) -> list[ClientRecord]:
        """All clients, ordered by id."""
        with get_session() as db:
            rows = db.execute(select(Client).order_by(Client.id)).scalars().all()
            return [ClientRecord.model_validate(row) for row in rows]

    @_store_call
    def get_week_version(self, year: int, week: int) -> int:
        """Current version token of a week (0 when never mutated)."""
        with get_session() as db:
            row = db.get(WeekVersion, (year, week))
            return row.version if row else 0
