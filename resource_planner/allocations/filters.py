"""Area scoping for allocation reads and writes.

A caller with no assigned area has administrative scope and sees every area.
A caller with an assigned area only sees and edits that area's records. The
same predicate is applied in Python (is_visible) and in SQL (area_condition)
at the store boundary; aggregation never re-checks it.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from sqlalchemy import ColumnElement, true
from sqlalchemy.orm import InstrumentedAttribute


class _AreaScoped(Protocol):
    area_id: int | None


T = TypeVar("T", bound=_AreaScoped)


def is_visible(allocation: _AreaScoped, caller_area_id: int | None) -> bool:
    """Return True when the caller's area scope includes the allocation."""
    return caller_area_id is None or allocation.area_id == caller_area_id


def filter_visible(allocations: Iterable[T], caller_area_id: int | None) -> list[T]:
    """Keep only allocations visible to the caller."""
    return [a for a in allocations if is_visible(a, caller_area_id)]


def area_condition(column: InstrumentedAttribute, caller_area_id: int | None) -> ColumnElement[bool]:
    """SQL form of is_visible for the given area_id column."""
    if caller_area_id is None:
        return true()
    return column == caller_area_id


def enforce_area_scope(caller_area_id: int | None, requested_area_id: int | None) -> int | None:
    """Resolve the area a request is allowed to work on.

    Callers with an assigned area are forced to it regardless of what they
    asked for. Callers without one get the requested area, or None for all.
    """
    if caller_area_id is not None:
        return caller_area_id
    return requested_area_id


def default_area_selection(caller_area_id: int | None, area_ids: Sequence[int]) -> int | None:
    """Area preselected in area selector controls."""
    if caller_area_id is not None:
        return caller_area_id
    return area_ids[0] if area_ids else None
