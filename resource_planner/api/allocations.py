"""Allocation planning API endpoints.

Thin HTTP layer over the allocation store, the grid aggregation and the week
transition engine. Every request is narrowed to the caller's area before it
reaches the store.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from resource_planner.allocations.aggregation import aggregate_by_collaborator
from resource_planner.allocations.errors import (
    AllocationError,
    AllocationNotFoundError,
    AllocationWriteError,
    NoCollaboratorsError,
    NoPriorDataError,
    PartialBulkFailure,
    StaleWeekError,
    StoreUnavailable,
)
from resource_planner.allocations.filters import enforce_area_scope
from resource_planner.allocations.store import AllocationStore
from resource_planner.allocations.transitions import WeekTransitionEngine
from resource_planner.allocations.types import AllocationInput, AllocationRecord, Projection
from resource_planner.api.dependencies import get_caller_area_id, get_store, get_transition_engine
from resource_planner.api.schemas import (
    CopyPreviousDayRequest,
    CopyWeekRequest,
    DeleteResponse,
    GridResponse,
    PreviousDayPreviewResponse,
    TransitionResponse,
    WeekRequest,
    WeeksResponse,
)
from resource_planner.calendar.weeks import WeekKey, planning_week_options, week_days
from resource_planner.config.settings import settings

router = APIRouter(prefix="/allocations", tags=["allocations"])


def _to_http_exception(error: AllocationError) -> HTTPException:
    """Map an allocation error to the HTTP response surfaced to the user."""
    if isinstance(error, NoPriorDataError | AllocationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, NoCollaboratorsError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    if isinstance(error, StaleWeekError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(error), "current_version": error.current},
        )
    if isinstance(error, PartialBulkFailure):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": str(error),
                "succeeded": error.result.succeeded,
                "attempted": error.result.attempted,
                "errors": error.result.errors,
            },
        )
    if isinstance(error, StoreUnavailable):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Allocation store unavailable")
    if isinstance(error, AllocationWriteError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.get("", response_model=list[AllocationRecord])
def list_allocations(
    year: int = Query(..., ge=1900, le=2100),
    week: int = Query(..., ge=1, le=53),
    area_id: int | None = Query(None, description="Area filter (ignored for area-scoped callers)"),
    caller_area_id: int | None = Depends(get_caller_area_id),
    store: AllocationStore = Depends(get_store),
) -> list[AllocationRecord]:
    """List the allocations of a week visible to the caller."""
    try:
        return store.list_allocations(year, week, enforce_area_scope(caller_area_id, area_id))
    except AllocationError as e:
        raise _to_http_exception(e) from e


@router.get("/weeks", response_model=WeeksResponse)
def list_weeks(
    year: int = Query(..., ge=1900, le=2100),
    area_id: int | None = Query(None),
    caller_area_id: int | None = Depends(get_caller_area_id),
    store: AllocationStore = Depends(get_store),
) -> WeeksResponse:
    """Weeks of a year holding data, plus the options offered by the week picker."""
    try:
        weeks = store.list_weeks_with_data(year, enforce_area_scope(caller_area_id, area_id))
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return WeeksResponse(year=year, weeks_with_data=weeks, options=planning_week_options(weeks))


@router.get("/grid", response_model=GridResponse)
def get_week_grid(
    year: int = Query(..., ge=1900, le=2100),
    week: int = Query(..., ge=1, le=53),
    area_id: int | None = Query(None),
    projection: Projection = Query(Projection.PLANNING),
    caller_area_id: int | None = Depends(get_caller_area_id),
    store: AllocationStore = Depends(get_store),
) -> GridResponse:
    """Week grid aggregated per collaborator, for the planning or viewer screen."""
    try:
        allocations = store.list_allocations(year, week, enforce_area_scope(caller_area_id, area_id))
        version = store.get_week_version(year, week)
    except AllocationError as e:
        raise _to_http_exception(e) from e

    rows = aggregate_by_collaborator(
        allocations,
        week=week,
        year=year,
        projection=projection,
        threshold=settings.over_allocation_threshold,
    )
    return GridResponse(
        year=year,
        week=week,
        projection=projection,
        version=version,
        days=week_days(week, year),
        rows=list(rows.values()),
    )


@router.post("", response_model=AllocationRecord)
def upsert_allocation(
    allocation: AllocationInput,
    caller_area_id: int | None = Depends(get_caller_area_id),
    store: AllocationStore = Depends(get_store),
) -> AllocationRecord:
    """Create an allocation or replace the hours of the one with the same natural key."""
    scoped = allocation.model_copy(update={"area_id": enforce_area_scope(caller_area_id, allocation.area_id)})
    try:
        return store.upsert_allocation(scoped, area_id=caller_area_id)
    except AllocationError as e:
        raise _to_http_exception(e) from e


@router.put("/{allocation_id}", response_model=AllocationRecord)
def update_allocation(
    allocation_id: int,
    allocation: AllocationInput,
    caller_area_id: int | None = Depends(get_caller_area_id),
    store: AllocationStore = Depends(get_store),
) -> AllocationRecord:
    """Overwrite an allocation by id; rows outside the caller's area are not found."""
    scoped = allocation.model_copy(update={"area_id": enforce_area_scope(caller_area_id, allocation.area_id)})
    try:
        return store.update_allocation(allocation_id, scoped, area_id=caller_area_id)
    except AllocationError as e:
        raise _to_http_exception(e) from e


@router.delete("/{allocation_id}", response_model=DeleteResponse)
def delete_allocation(
    allocation_id: int,
    caller_area_id: int | None = Depends(get_caller_area_id),
    store: AllocationStore = Depends(get_store),
) -> DeleteResponse:
    """Delete one allocation by id; rows outside the caller's area count as absent."""
    try:
        return DeleteResponse(deleted=store.delete_allocation(allocation_id, area_id=caller_area_id))
    except AllocationError as e:
        raise _to_http_exception(e) from e


@router.get("/copy-previous-day/preview", response_model=PreviousDayPreviewResponse)
def preview_copy_previous_day(
    collaborator_id: int = Query(..., gt=0),
    target_date: date = Query(...),
    area_id: int | None = Query(None),
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> PreviousDayPreviewResponse:
    """Allocations that a copy-previous-day would copy, for the confirmation dialog."""
    try:
        source = engine.preview_previous_day(collaborator_id, target_date, enforce_area_scope(caller_area_id, area_id))
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return PreviousDayPreviewResponse(
        collaborator_id=collaborator_id,
        source_date=source.source_date,
        target_date=target_date,
        allocations=source.allocations,
    )


@router.post("/copy-previous-day", response_model=TransitionResponse)
def copy_previous_day(
    request: CopyPreviousDayRequest,
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> TransitionResponse:
    """Overwrite a collaborator's day with the previous working day's allocations."""
    logger.info("Copy previous day requested", collaborator_id=request.collaborator_id, target_date=str(request.target_date))
    try:
        result = engine.copy_previous_day(
            request.collaborator_id,
            request.target_date,
            enforce_area_scope(caller_area_id, request.area_id),
            expected_version=request.expected_version,
        )
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return TransitionResponse.from_result(result)


@router.post("/copy", response_model=TransitionResponse)
def copy_week(
    request: CopyWeekRequest,
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> TransitionResponse:
    """Copy one week's allocations onto another week."""
    try:
        result = engine.copy_week(
            WeekKey(year=request.from_year, week=request.from_week),
            WeekKey(year=request.to_year, week=request.to_week),
            enforce_area_scope(caller_area_id, request.area_id),
            expected_version=request.expected_version,
        )
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return TransitionResponse.from_result(result)


@router.post("/copy-previous-week", response_model=TransitionResponse)
def copy_previous_week(
    request: WeekRequest,
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> TransitionResponse:
    """Copy the given week into the week that follows it."""
    try:
        result = engine.copy_previous_week(
            request.year,
            request.week,
            enforce_area_scope(caller_area_id, request.area_id),
            expected_version=request.expected_version,
        )
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return TransitionResponse.from_result(result)


@router.post("/create-next-week", response_model=TransitionResponse)
def create_next_week(
    request: WeekRequest,
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> TransitionResponse:
    """Seed the week after the given one with placeholder vacation allocations."""
    try:
        result = engine.create_next_week(
            request.year,
            request.week,
            enforce_area_scope(caller_area_id, request.area_id),
            expected_version=request.expected_version,
        )
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return TransitionResponse.from_result(result)


@router.delete("/collaborator/{collaborator_id}/day/{day}", response_model=DeleteResponse)
def delete_collaborator_day(
    collaborator_id: int,
    day: date,
    area_id: int | None = Query(None),
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> DeleteResponse:
    try:
        count = engine.delete_collaborator_day(collaborator_id, day, enforce_area_scope(caller_area_id, area_id))
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return DeleteResponse(deleted=count)


@router.delete("/collaborator/{collaborator_id}/week/{year}/{week}", response_model=DeleteResponse)
def delete_collaborator_week(
    collaborator_id: int,
    year: int,
    week: int,
    area_id: int | None = Query(None),
    expected_version: int | None = Query(None, ge=0),
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> DeleteResponse:
    try:
        count = engine.delete_collaborator_week(
            collaborator_id,
            year,
            week,
            enforce_area_scope(caller_area_id, area_id),
            expected_version=expected_version,
        )
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return DeleteResponse(deleted=count)


@router.delete("/week/{year}/{week}", response_model=DeleteResponse)
def delete_week(
    year: int,
    week: int,
    area_id: int | None = Query(None),
    expected_version: int | None = Query(None, ge=0),
    caller_area_id: int | None = Depends(get_caller_area_id),
    engine: WeekTransitionEngine = Depends(get_transition_engine),
) -> DeleteResponse:
    """Delete a whole week; the client must have confirmed this twice with the user."""
    logger.warning("Whole week deletion requested", year=year, week=week, area_id=area_id, caller_area_id=caller_area_id)
    try:
        count = engine.delete_week(
            year,
            week,
            enforce_area_scope(caller_area_id, area_id),
            expected_version=expected_version,
        )
    except AllocationError as e:
        raise _to_http_exception(e) from e
    return DeleteResponse(deleted=count)
