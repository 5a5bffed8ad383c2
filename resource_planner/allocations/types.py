"""Allocation value types shared by the store, aggregation and transitions.

AllocationRecord is the read view handed out by the store (joined names
included); AllocationInput is what callers submit for a natural-key upsert.
"""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

MAX_HOURS = 168.0


class AllocationInput(BaseModel):
    """Allocation to create or replace.

    Attributes:
        collaborator_id: Collaborator the hours belong to
        client_id: Client (project) receiving the hours
        date: Calendar date of the hours
        hours: Planned hours, 0 to 168
        week_number: Planning week the row is listed under (1-53)
        year: Planning year the row is listed under
        area_id: Optional area scope of the row
    """

    collaborator_id: int = Field(gt=0)
    client_id: int = Field(gt=0)
    date: date
    hours: float = Field(ge=0, le=MAX_HOURS)
    week_number: int = Field(ge=1, le=53)
    year: int = Field(ge=1900, le=2100)
    area_id: int | None = None


class AllocationRecord(AllocationInput):
    """Stored allocation with id and display names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    collaborator_name: str | None = None
    client_name: str | None = None


class ClientRecord(BaseModel):
    """Client master data needed to resolve fallback clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    project_type_id: int | None = None
    project_category_id: int | None = None
    area_id: int | None = None


class LoadBand(StrEnum):
    """Display state of an hour total."""

    EMPTY = "empty"
    NORMAL = "normal"
    OVER = "over"


class Projection(StrEnum):
    """Grid projection: editable planning grid or read-only viewer grid."""

    PLANNING = "planning"
    VIEWER = "viewer"
