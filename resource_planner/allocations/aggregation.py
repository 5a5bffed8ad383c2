"""Per-collaborator week grid aggregation.

Builds the structure rendered by the planning (editable) and viewer
(read-only) grids from a flat list of allocation records:

- Only records with hours > 0 are aggregated; a collaborator without any
  positive-hour record is omitted
- Day buckets cover Monday to Friday of the week window; weekend records are
  not bucketed but are part of the week total
- Totals are exact sums; rounding to one decimal is applied to the display
  fields only
"""

import math
from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel, Field

from resource_planner.allocations.types import AllocationRecord, LoadBand, Projection
from resource_planner.calendar.weeks import week_days

DEFAULT_OVER_ALLOCATION_THRESHOLD = 40.0


class DayEntry(BaseModel):
    """One client line inside a day cell."""

    allocation_id: int | None = None
    client_id: int
    client_name: str | None = None
    hours: float


class DayCell(BaseModel):
    """Allocations of one collaborator on one weekday."""

    date: date
    entries: list[DayEntry] = Field(default_factory=list)
    total: float = 0.0
    rounded_total: float = 0.0
    band: LoadBand = LoadBand.EMPTY


class CollaboratorWeek(BaseModel):
    """Grid row of one collaborator for one week."""

    collaborator_id: int
    name: str | None = None
    per_day: dict[date, DayCell]
    week_total: float
    rounded_week_total: float
    band: LoadBand


def round_hours(value: float) -> float:
    """Round to one decimal for display, halves rounding up."""
    return math.floor(value * 10 + 0.5) / 10


def classify_load(total: float, threshold: float = DEFAULT_OVER_ALLOCATION_THRESHOLD) -> LoadBand:
    """Band of an hour total.

    Strictly above the threshold is over-allocated, zero is empty and
    anything in between (threshold included) is normal.
    """
    if total > threshold:
        return LoadBand.OVER
    if total > 0:
        return LoadBand.NORMAL
    return LoadBand.EMPTY


def _day_cell(day: date, records: list[AllocationRecord], projection: Projection, threshold: float) -> DayCell:
    entries = [
        DayEntry(
            allocation_id=r.id if projection is Projection.PLANNING else None,
            client_id=r.client_id,
            client_name=r.client_name,
            hours=r.hours,
        )
        for r in sorted(records, key=lambda r: (r.client_name or "", r.client_id))
    ]
    total = math.fsum(r.hours for r in records)
    return DayCell(
        date=day,
        entries=entries,
        total=total,
        rounded_total=round_hours(total),
        band=classify_load(total, threshold),
    )


def aggregate_by_collaborator(
    allocations: Iterable[AllocationRecord],
    week: int,
    year: int,
    projection: Projection = Projection.PLANNING,
    threshold: float = DEFAULT_OVER_ALLOCATION_THRESHOLD,
) -> dict[int, CollaboratorWeek]:
    """Group a week's allocations into grid rows keyed by collaborator id.

    Args:
        allocations: Allocation records already scoped to the caller's area
        week: Planning week number of the grid
        year: Planning year of the grid
        projection: PLANNING keeps allocation ids for editing, VIEWER drops them
        threshold: Over-allocation threshold for load bands

    Returns:
        Mapping collaborator_id -> CollaboratorWeek, ordered by collaborator name
    """
    by_collaborator: dict[int, list[AllocationRecord]] = {}
    names: dict[int, str | None] = {}
    for record in allocations:
        if record.hours <= 0:
            continue
        by_collaborator.setdefault(record.collaborator_id, []).append(record)
        names.setdefault(record.collaborator_id, record.collaborator_name)

    days = week_days(week, year)
    rows: dict[int, CollaboratorWeek] = {}
    for collaborator_id in sorted(by_collaborator, key=lambda cid: (names[cid] or "", cid)):
        records = by_collaborator[collaborator_id]
        per_day = {day: _day_cell(day, [r for r in records if r.date == day], projection, threshold) for day in days}
        week_total = math.fsum(r.hours for r in records)
        rows[collaborator_id] = CollaboratorWeek(
            collaborator_id=collaborator_id,
            name=names[collaborator_id],
            per_day=per_day,
            week_total=week_total,
            rounded_week_total=round_hours(week_total),
            band=classify_load(week_total, threshold),
        )

    return rows
