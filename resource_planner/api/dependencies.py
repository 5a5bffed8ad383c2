"""FastAPI dependencies for the allocation API.

The caller's area comes from the X-Area-Id header set by the upstream
authentication layer; no header means administrative (all areas) scope.
"""

from fastapi import Depends, Header

from resource_planner.allocations.directory import FallbackClientDirectory
from resource_planner.allocations.store import AllocationStore
from resource_planner.allocations.transitions import WeekTransitionEngine
from resource_planner.config.settings import settings

# Lazy initialization so importing the router never touches the database
_store: AllocationStore | None = None
_directory: FallbackClientDirectory | None = None


def get_caller_area_id(x_area_id: int | None = Header(default=None, alias="X-Area-Id")) -> int | None:
    """Area assigned to the calling user, or None for administrative scope."""
    return x_area_id


def get_store() -> AllocationStore:
    global _store
    if _store is None:
        _store = AllocationStore()
    return _store


def load_directory(store: AllocationStore | None = None) -> FallbackClientDirectory:
    """(Re)build the fallback client directory from the client table."""
    global _directory
    _directory = FallbackClientDirectory.from_clients(
        (store or get_store()).list_clients(),
        vacation_category_id=settings.vacation_category_id,
        fallback_client_id=settings.fallback_client_id,
    )
    return _directory


def get_directory(store: AllocationStore = Depends(get_store)) -> FallbackClientDirectory:
    if _directory is None:
        return load_directory(store)
    return _directory


def get_transition_engine(
    store: AllocationStore = Depends(get_store),
    directory: FallbackClientDirectory = Depends(get_directory),
) -> WeekTransitionEngine:
    return WeekTransitionEngine(store, directory, seed_hours=settings.seed_hours)
