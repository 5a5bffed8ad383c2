"""Request and response schemas of the allocation API."""

from datetime import date

from pydantic import BaseModel, Field

from resource_planner.allocations.aggregation import CollaboratorWeek
from resource_planner.allocations.transitions import TransitionResult
from resource_planner.allocations.types import AllocationRecord, Projection


class WeekRequest(BaseModel):
    """Week-scoped bulk operation (copy-previous-week, create-next-week)."""

    year: int = Field(ge=1900, le=2100)
    week: int = Field(ge=1, le=53)
    area_id: int | None = None
    expected_version: int | None = Field(default=None, ge=0)


class CopyWeekRequest(BaseModel):
    """Copy of one week onto another arbitrary week."""

    from_year: int = Field(ge=1900, le=2100)
    from_week: int = Field(ge=1, le=53)
    to_year: int = Field(ge=1900, le=2100)
    to_week: int = Field(ge=1, le=53)
    area_id: int | None = None
    expected_version: int | None = Field(default=None, ge=0)


class CopyPreviousDayRequest(BaseModel):
    collaborator_id: int = Field(gt=0)
    target_date: date
    area_id: int | None = None
    expected_version: int | None = Field(default=None, ge=0)


class PreviousDayPreviewResponse(BaseModel):
    collaborator_id: int
    source_date: date
    target_date: date
    allocations: list[AllocationRecord]


class TransitionResponse(BaseModel):
    """Outcome of a bulk week transition."""

    operation: str
    source_year: int | None = None
    source_week: int | None = None
    target_year: int
    target_week: int
    attempted: int
    succeeded: int
    failed: int
    deleted: int = 0
    created: list[AllocationRecord]

    @classmethod
    def from_result(cls, result: TransitionResult) -> "TransitionResponse":
        return cls(
            operation=result.operation,
            source_year=result.source.year if result.source else None,
            source_week=result.source.week if result.source else None,
            target_year=result.target.year,
            target_week=result.target.week,
            attempted=result.attempted,
            succeeded=result.succeeded,
            failed=result.failed,
            deleted=result.deleted,
            created=result.created,
        )


class DeleteResponse(BaseModel):
    deleted: int


class WeeksResponse(BaseModel):
    """Week picker data for a year."""

    year: int
    weeks_with_data: list[int]
    options: list[int]


class GridResponse(BaseModel):
    """Aggregated week grid."""

    year: int
    week: int
    projection: Projection
    version: int
    days: list[date]
    rows: list[CollaboratorWeek]
