from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""


class Area(Base):
    """Organizational area partitioning collaborators, clients and allocations."""

    __tablename__ = "areas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class ProjectCategory(Base):
    """Project category ("proyecto") a client belongs to.

    One category id is configured as the vacation category; see
    Settings.vacation_category_id.
    """

    __tablename__ = "project_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class ProjectType(Base):
    """Project type used for reporting (e.g. billable, internal)."""

    __tablename__ = "project_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class Collaborator(Base):
    """A person whose hours are planned.

    area_id is optional; a collaborator without area is only reachable by
    callers with administrative (all areas) scope.
    """

    __tablename__ = "collaborators"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    area_id: Mapped[int | None] = mapped_column(ForeignKey("areas.id"), nullable=True, index=True)


class Client(Base):
    """Allocation target, shown as "project" in the planning grid."""

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    project_type_id: Mapped[int | None] = mapped_column(ForeignKey("project_types.id"), nullable=True, index=True)
    project_category_id: Mapped[int | None] = mapped_column(ForeignKey("project_categories.id"), nullable=True, index=True)
    area_id: Mapped[int | None] = mapped_column(ForeignKey("areas.id"), nullable=True, index=True)


class Allocation(Base):
    """Hours of one collaborator on one client for one calendar date.

    Constraints:
    - Unique (collaborator_id, client_id, date): a second write to the same
      triple replaces the hours instead of adding a row
    - 0 <= hours <= 168
    - week_number and year are the planning week key the row is listed under
    """

    __tablename__ = "allocations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collaborator_id: Mapped[int] = mapped_column(ForeignKey("collaborators.id"), nullable=False, index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    area_id: Mapped[int | None] = mapped_column(ForeignKey("areas.id"), nullable=True, index=True)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: dt.datetime.now(dt.timezone.utc),
        onupdate=lambda: dt.datetime.now(dt.timezone.utc),
    )

    collaborator: Mapped[Collaborator] = relationship(lazy="joined")
    client: Mapped[Client] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("collaborator_id", "client_id", "date", name="uq_allocation_collaborator_client_date"),
        CheckConstraint("hours >= 0 AND hours <= 168", name="ck_allocation_hours_range"),
        CheckConstraint("week_number >= 1 AND week_number <= 53", name="ck_allocation_week_range"),
        Index("idx_allocations_week", "year", "week_number"),
    )


class WeekVersion(Base):
    """Optimistic version token per planning week.

    Incremented by every store mutation touching the week so a bulk
    operation started against an older version can be rejected.
    """

    __tablename__ = "week_versions"

    year: Mapped[int] = mapped_column(Integer, primary_key=True)
    week_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
