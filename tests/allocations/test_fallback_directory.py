"""Tests for the fallback client directory."""

from resource_planner.allocations.directory import FallbackClientDirectory
from resource_planner.allocations.types import ClientRecord

VACATION = 4


def _client(client_id: int, area_id: int | None, category_id: int | None) -> ClientRecord:
    return ClientRecord(id=client_id, name=f"Client {client_id}", area_id=area_id, project_category_id=category_id)


class TestFallbackClientDirectory:
    """Tests for FallbackClientDirectory."""

    def test_resolves_vacation_client_of_area(self):
        directory = FallbackClientDirectory.from_clients(
            [_client(1, 1, 1), _client(20, 1, VACATION), _client(21, 2, VACATION)],
            vacation_category_id=VACATION,
            fallback_client_id=10,
        )

        assert directory.client_for_area(1) == 20
        assert directory.client_for_area(2) == 21

    def test_area_without_vacation_client_uses_fallback(self):
        directory = FallbackClientDirectory.from_clients(
            [_client(1, 1, 1)],
            vacation_category_id=VACATION,
            fallback_client_id=10,
        )

        assert directory.vacation_client_for_area(1) is None
        assert directory.client_for_area(1) == 10

    def test_no_area_uses_fallback(self):
        directory = FallbackClientDirectory.from_clients(
            [_client(20, 1, VACATION)],
            vacation_category_id=VACATION,
            fallback_client_id=10,
        )

        assert directory.client_for_area(None) == 10

    def test_lowest_client_id_wins(self):
        directory = FallbackClientDirectory.from_clients(
            [_client(30, 1, VACATION), _client(25, 1, VACATION)],
            vacation_category_id=VACATION,
            fallback_client_id=10,
        )

        assert directory.client_for_area(1) == 25

    def test_refresh_replaces_mapping(self):
        directory = FallbackClientDirectory(vacation_category_id=VACATION, fallback_client_id=10)
        assert directory.client_for_area(1) == 10

        directory.refresh([_client(20, 1, VACATION)])

        assert directory.client_for_area(1) == 20
