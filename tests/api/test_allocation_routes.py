"""Tests for the allocation API handlers.

Handlers are called directly with their dependencies, the way FastAPI would
resolve them, and errors are checked as the HTTPException they map to.
"""

from datetime import date

import pytest
from fastapi import HTTPException
from planner_ids import ACME, ANA, CARLA, CONSULTING_AREA, CONSULTING_VACATION, EMPTY_AREA, ENGINEERING_AREA, GLOBEX

from resource_planner.allocations.errors import PartialBulkFailure, StoreUnavailable
from resource_planner.allocations.transitions import TransitionResult
from resource_planner.allocations.types import AllocationInput, LoadBand, Projection
from resource_planner.api import allocations as routes
from resource_planner.api.schemas import CopyPreviousDayRequest, CopyWeekRequest, WeekRequest
from resource_planner.calendar.weeks import WeekKey

W10_MONDAY = date(2025, 3, 3)
W10_FRIDAY = date(2025, 3, 7)
W11_MONDAY = date(2025, 3, 10)


def _input(collaborator_id: int, client_id: int, day: date, hours: float, area_id: int | None) -> AllocationInput:
    return AllocationInput(
        collaborator_id=collaborator_id,
        client_id=client_id,
        date=day,
        hours=hours,
        week_number=10,
        year=2025,
        area_id=area_id,
    )


class TestReadRoutes:
    """Tests for the list, weeks and grid handlers."""

    def test_area_caller_only_lists_own_area(self, store, add_allocation):
        add_allocation(ANA, ACME, W10_MONDAY, 5.0, area_id=CONSULTING_AREA)
        add_allocation(CARLA, GLOBEX, W10_MONDAY, 6.0, area_id=ENGINEERING_AREA)

        records = routes.list_allocations(
            year=2025, week=10, area_id=CONSULTING_AREA, caller_area_id=ENGINEERING_AREA, store=store
        )

        assert [r.collaborator_id for r in records] == [CARLA]

    def test_admin_lists_all_areas(self, store, add_allocation):
        add_allocation(ANA, ACME, W10_MONDAY, 5.0, area_id=CONSULTING_AREA)
        add_allocation(CARLA, GLOBEX, W10_MONDAY, 6.0, area_id=ENGINEERING_AREA)

        records = routes.list_allocations(year=2025, week=10, area_id=None, caller_area_id=None, store=store)

        assert len(records) == 2

    def test_weeks_falls_back_to_full_range(self, store):
        response = routes.list_weeks(year=2025, area_id=None, caller_area_id=None, store=store)

        assert response.weeks_with_data == []
        assert response.options == list(range(1, 53))

    def test_weeks_lists_weeks_with_data(self, store, add_allocation):
        add_allocation(ANA, ACME, W11_MONDAY, 5.0)

        response = routes.list_weeks(year=2025, area_id=None, caller_area_id=None, store=store)

        assert response.options == [11]

    def test_grid_aggregates_week(self, store, add_allocation):
        add_allocation(ANA, ACME, W10_MONDAY, 30.0)
        add_allocation(ANA, CONSULTING_VACATION, W10_FRIDAY, 12.0)

        grid = routes.get_week_grid(
            year=2025,
            week=10,
            area_id=None,
            projection=Projection.VIEWER,
            caller_area_id=CONSULTING_AREA,
            store=store,
        )

        assert grid.version == 2
        assert grid.days[0] == W10_MONDAY
        assert len(grid.rows) == 1
        row = grid.rows[0]
        assert row.week_total == 42.0
        assert row.band == LoadBand.OVER
        assert row.per_day[W10_MONDAY].entries[0].allocation_id is None


class TestWriteRoutes:
    """Tests for single allocation writes."""

    def test_upsert_forces_caller_area(self, store):
        record = routes.upsert_allocation(
            allocation=_input(ANA, ACME, W10_MONDAY, 4.0, area_id=ENGINEERING_AREA),
            caller_area_id=CONSULTING_AREA,
            store=store,
        )

        assert record.area_id == CONSULTING_AREA

    def test_upsert_rejected_write_is_400(self, store):
        with pytest.raises(HTTPException) as exc_info:
            routes.upsert_allocation(
                allocation=_input(ANA, 999, W10_MONDAY, 4.0, area_id=None), caller_area_id=None, store=store
            )

        assert exc_info.value.status_code == 400

    def test_update_missing_allocation_is_404(self, store):
        with pytest.raises(HTTPException) as exc_info:
            routes.update_allocation(
                allocation_id=4242,
                allocation=_input(ANA, ACME, W10_MONDAY, 4.0, area_id=None),
                caller_area_id=None,
                store=store,
            )

        assert exc_info.value.status_code == 404

    def test_delete_allocation_returns_count(self, store, add_allocation):
        record = add_allocation(ANA, ACME, W10_MONDAY, 4.0)

        assert routes.delete_allocation(allocation_id=record.id, caller_area_id=None, store=store).deleted == 1
        assert routes.delete_allocation(allocation_id=record.id, caller_area_id=None, store=store).deleted == 0


class TestAreaScopedWrites:
    """Tests that a caller bound to one area cannot touch another area's rows."""

    @pytest.fixture
    def engineering_row(self, add_allocation):
        return add_allocation(CARLA, GLOBEX, W10_MONDAY, 6.0, area_id=ENGINEERING_AREA)

    def _engineering_week(self, store) -> list[tuple[int, int, float, int]]:
        return [
            (r.collaborator_id, r.client_id, r.hours, r.area_id)
            for r in store.list_allocations(2025, 10, ENGINEERING_AREA)
        ]

    def test_delete_of_foreign_row_counts_as_absent(self, store, engineering_row):
        response = routes.delete_allocation(
            allocation_id=engineering_row.id, caller_area_id=CONSULTING_AREA, store=store
        )

        assert response.deleted == 0
        assert self._engineering_week(store) == [(CARLA, GLOBEX, 6.0, ENGINEERING_AREA)]

    def test_update_of_foreign_row_is_404(self, store, engineering_row):
        with pytest.raises(HTTPException) as exc_info:
            routes.update_allocation(
                allocation_id=engineering_row.id,
                allocation=_input(CARLA, GLOBEX, W10_MONDAY, 99.0, area_id=None),
                caller_area_id=CONSULTING_AREA,
                store=store,
            )

        assert exc_info.value.status_code == 404
        assert self._engineering_week(store) == [(CARLA, GLOBEX, 6.0, ENGINEERING_AREA)]

    def test_upsert_cannot_take_over_foreign_natural_key(self, store, engineering_row):
        with pytest.raises(HTTPException) as exc_info:
            routes.upsert_allocation(
                allocation=_input(CARLA, GLOBEX, W10_MONDAY, 2.0, area_id=None),
                caller_area_id=CONSULTING_AREA,
                store=store,
            )

        assert exc_info.value.status_code == 400
        assert self._engineering_week(store) == [(CARLA, GLOBEX, 6.0, ENGINEERING_AREA)]

    def test_owning_area_can_still_update(self, store, engineering_row):
        record = routes.update_allocation(
            allocation_id=engineering_row.id,
            allocation=_input(CARLA, GLOBEX, W10_MONDAY, 7.5, area_id=None),
            caller_area_id=ENGINEERING_AREA,
            store=store,
        )

        assert (record.hours, record.area_id) == (7.5, ENGINEERING_AREA)


class TestTransitionRoutes:
    """Tests for the bulk transition handlers."""

    def test_copy_previous_week(self, transitions, add_allocation):
        add_allocation(ANA, ACME, W10_MONDAY, 5.0)

        response = routes.copy_previous_week(
            request=WeekRequest(year=2025, week=10),
            caller_area_id=CONSULTING_AREA,
            engine=transitions,
        )

        assert (response.target_year, response.target_week) == (2025, 11)
        assert response.succeeded == 1
        assert response.created[0].date == W11_MONDAY

    def test_copy_previous_week_without_data_is_404(self, transitions):
        with pytest.raises(HTTPException) as exc_info:
            routes.copy_previous_week(
                request=WeekRequest(year=2025, week=10), caller_area_id=CONSULTING_AREA, engine=transitions
            )

        assert exc_info.value.status_code == 404

    def test_copy_week(self, transitions, add_allocation):
        add_allocation(ANA, ACME, W10_MONDAY, 5.0)

        response = routes.copy_week(
            request=CopyWeekRequest(from_year=2025, from_week=10, to_year=2025, to_week=12),
            caller_area_id=None,
            engine=transitions,
        )

        assert (response.source_week, response.target_week) == (10, 12)
        assert response.created[0].date == date(2025, 3, 17)

    def test_create_next_week_without_collaborators_is_422(self, transitions):
        with pytest.raises(HTTPException) as exc_info:
            routes.create_next_week(
                request=WeekRequest(year=2025, week=10), caller_area_id=EMPTY_AREA, engine=transitions
            )

        assert exc_info.value.status_code == 422

    def test_create_next_week_seeds_vacation_client(self, transitions):
        response = routes.create_next_week(
            request=WeekRequest(year=2025, week=10, area_id=CONSULTING_AREA), caller_area_id=None, engine=transitions
        )

        assert response.operation == "create_next_week"
        assert {r.client_id for r in response.created} == {CONSULTING_VACATION}

    def test_stale_version_is_409(self, transitions, add_allocation):
        add_allocation(ANA, ACME, W10_MONDAY, 5.0)
        add_allocation(ANA, ACME, W11_MONDAY, 1.0)

        with pytest.raises(HTTPException) as exc_info:
            routes.copy_previous_week(
                request=WeekRequest(year=2025, week=10, expected_version=0),
                caller_area_id=CONSULTING_AREA,
                engine=transitions,
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail["current_version"] == 1

    def test_copy_previous_day_on_monday_without_friday_is_404(self, transitions):
        with pytest.raises(HTTPException) as exc_info:
            routes.copy_previous_day(
                request=CopyPreviousDayRequest(collaborator_id=ANA, target_date=W11_MONDAY),
                caller_area_id=CONSULTING_AREA,
                engine=transitions,
            )

        assert exc_info.value.status_code == 404

    def test_preview_then_copy_previous_day(self, transitions, add_allocation):
        add_allocation(ANA, ACME, W10_FRIDAY, 6.0)

        preview = routes.preview_copy_previous_day(
            collaborator_id=ANA,
            target_date=W11_MONDAY,
            area_id=None,
            caller_area_id=CONSULTING_AREA,
            engine=transitions,
        )
        response = routes.copy_previous_day(
            request=CopyPreviousDayRequest(collaborator_id=ANA, target_date=W11_MONDAY),
            caller_area_id=CONSULTING_AREA,
            engine=transitions,
        )

        assert preview.source_date == W10_FRIDAY
        assert [(r.client_id, r.hours) for r in response.created] == [(ACME, 6.0)]

    def test_delete_routes(self, store, transitions, add_allocation):
        add_allocation(ANA, ACME, W10_MONDAY, 5.0)
        add_allocation(ANA, ACME, W10_FRIDAY, 2.0)
        add_allocation(CARLA, GLOBEX, W10_MONDAY, 1.0, area_id=ENGINEERING_AREA)

        day = routes.delete_collaborator_day(
            collaborator_id=ANA, day=W10_FRIDAY, area_id=None, caller_area_id=None, engine=transitions
        )
        week = routes.delete_collaborator_week(
            collaborator_id=ANA,
            year=2025,
            week=10,
            area_id=None,
            expected_version=None,
            caller_area_id=None,
            engine=transitions,
        )
        whole = routes.delete_week(
            year=2025, week=10, area_id=None, expected_version=None, caller_area_id=ENGINEERING_AREA, engine=transitions
        )

        assert (day.deleted, week.deleted, whole.deleted) == (1, 1, 1)
        assert store.list_allocations(2025, 10) == []


class TestErrorMapping:
    """Tests for the error to HTTP status mapping."""

    def test_partial_failure_is_500_with_counts(self):
        result = TransitionResult(operation="copy_week", target=WeekKey(year=2025, week=11), attempted=3)
        result.errors.append("client locked")

        error = routes._to_http_exception(PartialBulkFailure(result))

        assert error.status_code == 500
        assert error.detail["succeeded"] == 0
        assert error.detail["attempted"] == 3

    def test_store_unavailable_is_503(self):
        assert routes._to_http_exception(StoreUnavailable("down")).status_code == 503
