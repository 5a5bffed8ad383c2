"""Allocation planning core.

Store, grid aggregation, area scoping and week transition operations.
"""

from resource_planner.allocations.aggregation import aggregate_by_collaborator, classify_load, round_hours
from resource_planner.allocations.directory import FallbackClientDirectory
from resource_planner.allocations.errors import (
    AllocationError,
    NoCollaboratorsError,
    NoPriorDataError,
    PartialBulkFailure,
    StaleWeekError,
    StoreUnavailable,
)
from resource_planner.allocations.store import AllocationStore
from resource_planner.allocations.transitions import TransitionResult, WeekTransitionEngine

__all__ = [
    "AllocationError",
    "AllocationStore",
    "FallbackClientDirectory",
    "NoCollaboratorsError",
    "NoPriorDataError",
    "PartialBulkFailure",
    "StaleWeekError",
    "StoreUnavailable",
    "TransitionResult",
    "WeekTransitionEngine",
    "aggregate_by_collaborator",
    "classify_load",
    "round_hours",
]
