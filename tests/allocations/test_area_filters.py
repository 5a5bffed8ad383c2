"""Tests for area scoping of allocations."""

from datetime import date

from resource_planner.allocations.filters import (
    default_area_selection,
    enforce_area_scope,
    filter_visible,
    is_visible,
)
from resource_planner.allocations.types import AllocationRecord


def _record(allocation_id: int, area_id: int | None) -> AllocationRecord:
    return AllocationRecord(
        id=allocation_id,
        collaborator_id=1,
        client_id=1,
        date=date(2025, 3, 3),
        hours=4.0,
        week_number=10,
        year=2025,
        area_id=area_id,
    )


class TestVisibility:
    """Tests for is_visible / filter_visible."""

    def test_admin_sees_every_area(self):
        records = [_record(1, 1), _record(2, 2), _record(3, None)]

        assert filter_visible(records, None) == records

    def test_area_caller_sees_only_own_area(self):
        records = [_record(1, 1), _record(2, 2), _record(3, None)]

        assert [r.id for r in filter_visible(records, 2)] == [2]

    def test_unassigned_record_hidden_from_area_caller(self):
        assert not is_visible(_record(1, None), 1)
        assert is_visible(_record(1, None), None)


class TestAreaScope:
    """Tests for the area a request is narrowed to."""

    def test_area_caller_is_forced_to_own_area(self):
        assert enforce_area_scope(caller_area_id=2, requested_area_id=1) == 2
        assert enforce_area_scope(caller_area_id=2, requested_area_id=None) == 2

    def test_admin_keeps_requested_area(self):
        assert enforce_area_scope(caller_area_id=None, requested_area_id=1) == 1
        assert enforce_area_scope(caller_area_id=None, requested_area_id=None) is None

    def test_default_selection_prefers_caller_area(self):
        assert default_area_selection(3, [1, 2, 3]) == 3

    def test_default_selection_for_admin_is_first_area(self):
        assert default_area_selection(None, [5, 2]) == 5
        assert default_area_selection(None, []) is None
