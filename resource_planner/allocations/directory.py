"""Default fallback client per area.

A new planning week is seeded with placeholder hours on each area's vacation
client: the client of that area whose project category is the configured
vacation category. The map is built once from the client table and reused;
areas without such a client fall back to one global client id.
"""

from collections.abc import Iterable

from loguru import logger

from resource_planner.allocations.types import ClientRecord


class FallbackClientDirectory:
    """Resolves the default fallback client for an area."""

    def __init__(self, vacation_category_id: int, fallback_client_id: int):
        self.vacation_category_id = vacation_category_id
        self.fallback_client_id = fallback_client_id
        self._by_area: dict[int, int] = {}

    @classmethod
    def from_clients(
        cls,
        clients: Iterable[ClientRecord],
        vacation_category_id: int,
        fallback_client_id: int,
    ) -> "FallbackClientDirectory":
        directory = cls(vacation_category_id, fallback_client_id)
        directory.refresh(clients)
        return directory

    def refresh(self, clients: Iterable[ClientRecord]) -> None:
        """Rebuild the area -> vacation client map.

        When an area has several vacation clients the lowest id wins.
        """
        by_area: dict[int, int] = {}
        for client in sorted(clients, key=lambda c: c.id):
            if client.area_id is None or client.project_category_id != self.vacation_category_id:
                continue
            by_area.setdefault(client.area_id, client.id)
        self._by_area = by_area
        logger.info(
            "Fallback client directory loaded",
            areas_with_vacation_client=len(by_area),
            fallback_client_id=self.fallback_client_id,
        )

    def vacation_client_for_area(self, area_id: int | None) -> int | None:
        """The area's vacation client id, or None when the area has none."""
        if area_id is None:
            return None
        return self._by_area.get(area_id)

    def client_for_area(self, area_id: int | None) -> int:
        """The area's vacation client, or the global fallback client."""
        client_id = self.vacation_client_for_area(area_id)
        if client_id is None:
            logger.warning(f"No vacation client for area {area_id}, using fallback client {self.fallback_client_id}")
            return self.fallback_client_id
        return client_id
