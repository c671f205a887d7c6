"""
Project records, pages, statistics, and client-side filters.

Project records are the JSON objects returned by the indexer and are kept
as plain dictionaries: the aggregation layer only needs the
``projectIdentifier`` field for moderation and a handful of numeric fields
for filtering and sorting.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


Project = dict[str, Any]

_SECONDS_PER_DAY = 86_400


class ProjectStatus(StrEnum):
    """Funding lifecycle status derived from indexer statistics."""

    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    UPCOMING = "upcoming"


class SortType(StrEnum):
    """Sort orders accepted by [apply_filters()][angorhub.models.project.apply_filters]."""

    DEFAULT = "default"
    FUNDING = "funding"
    END_DATE = "endDate"
    INVESTORS = "investors"
    NEWEST = "newest"
    AMOUNT = "amount"


def project_identifier(project: Project) -> str:
    value = project.get("projectIdentifier")
    return value if isinstance(value, str) else ""


@dataclass(frozen=True, slots=True)
class Page:
    """One page of projects produced by a single indexer call.

    Pages are immutable and are concatenated, never merged.

    Attributes:
        projects: Records in indexer order.
        offset: Offset the page was requested at.
        limit: Requested page size.
        has_more: ``len(projects) == limit``; a short page means the source
            is exhausted.
    """

    projects: tuple[Project, ...]
    offset: int
    limit: int
    has_more: bool

    @classmethod
    def from_projects(cls, projects: list[Project], offset: int, limit: int) -> Page:
        return cls(
            projects=tuple(projects),
            offset=offset,
            limit=limit,
            has_more=len(projects) == limit,
        )

    @classmethod
    def empty(cls, offset: int, limit: int) -> Page:
        return cls(projects=(), offset=offset, limit=limit, has_more=False)


@dataclass(frozen=True, slots=True)
class ProjectStats:
    """Funding statistics for one project.

    Attributes:
        amount_invested: Total invested, in satoshis.
        investor_count: Number of investments.
        target_amount: Funding goal, in satoshis.
        completion_percentage: ``round(invested / target * 100)``.
        days_remaining: Whole days until expiry, ``None`` when unknown.
        status: Derived lifecycle status.
        last_updated: Unix timestamp of the computation.
        raw: Untouched indexer payload.
    """

    amount_invested: int = 0
    investor_count: int = 0
    target_amount: int = 0
    completion_percentage: int = 0
    days_remaining: int | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    last_updated: float = 0.0
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_indexer(cls, data: dict[str, Any], now: float) -> ProjectStats:
        """Derive completion, days remaining and status from an indexer stats record."""
        invested = int(data.get("amountInvested") or 0)
        target = int(data.get("targetAmount") or 0)
        completion = round(invested / target * 100) if target > 0 else 0

        expiry = data.get("expiryDate")
        days_remaining = (
            max(0, math.ceil((float(expiry) - now) / _SECONDS_PER_DAY)) if expiry else None
        )

        start = data.get("startDate")
        if completion >= 100:
            status = ProjectStatus.COMPLETED
        elif days_remaining is not None and days_remaining <= 0:
            status = ProjectStatus.EXPIRED
        elif start and float(start) > now:
            status = ProjectStatus.UPCOMING
        else:
            status = ProjectStatus.ACTIVE

        return cls(
            amount_invested=invested,
            investor_count=int(data.get("investorCount") or 0),
            target_amount=target,
            completion_percentage=completion,
            days_remaining=days_remaining,
            status=status,
            last_updated=now,
            raw=dict(data),
        )


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProjectFilters:
    """Structural filter and sort description applied after aggregation.

    ``status=None`` matches every status. Amount bounds of 0 or ``None``
    are ignored.
    """

    search: str = ""
    status: ProjectStatus | None = None
    min_amount: int | None = None
    max_amount: int | None = None
    categories: tuple[str, ...] = ()
    sort_by: SortType = SortType.DEFAULT


@dataclass(frozen=True, slots=True)
class ProjectStatistics:
    """Totals over the unfiltered project list."""

    total_projects: int = 0
    total_funding: int = 0
    total_investors: int = 0
    average_funding: float = 0.0
    active_projects: int = 0
    completed_projects: int = 0


@dataclass(frozen=True, slots=True)
class FilteredProjects:
    projects: list[Project]
    statistics: ProjectStatistics

    @property
    def count(self) -> int:
        return len(self.projects)


def _metadata(project: Project) -> dict[str, Any]:
    metadata = project.get("metadata")
    return metadata if isinstance(metadata, dict) else {}


def _status(project: Project) -> str:
    stats = project.get("stats")
    if isinstance(stats, dict) and stats.get("status"):
        return str(stats["status"])
    return ProjectStatus.ACTIVE.value


def _number(project: Project, key: str) -> float:
    value = project.get(key)
    return float(value) if isinstance(value, int | float) else 0.0


def _matches_search(project: Project, needle: str) -> bool:
    metadata = _metadata(project)
    haystack = (
        str(metadata.get("name") or ""),
        str(metadata.get("about") or ""),
        str(metadata.get("category") or ""),
        project_identifier(project),
    )
    return any(needle in value.lower() for value in haystack)


def _sort_key(sort_by: SortType) -> Callable[[Project], float] | None:
    if sort_by == SortType.FUNDING:
        return lambda p: -_number(p, "amountInvested")
    if sort_by == SortType.INVESTORS:
        return lambda p: -_number(p, "investorCount")
    if sort_by == SortType.AMOUNT:
        return lambda p: -_number(p, "targetAmount")
    if sort_by == SortType.NEWEST:
        return lambda p: -_number(p, "createdOnBlock")
    if sort_by == SortType.END_DATE:
        return lambda p: _number(p, "expiryDate") or math.inf
    return None


def compute_statistics(projects: list[Project]) -> ProjectStatistics:
    total = len(projects)
    funding = int(sum(_number(p, "amountInvested") for p in projects))
    investors = int(sum(_number(p, "investorCount") for p in projects))
    return ProjectStatistics(
        total_projects=total,
        total_funding=funding,
        total_investors=investors,
        average_funding=funding / total if total else 0.0,
        active_projects=sum(1 for p in projects if _status(p) == ProjectStatus.ACTIVE),
        completed_projects=sum(1 for p in projects if _status(p) == ProjectStatus.COMPLETED),
    )


def apply_filters(projects: list[Project], filters: ProjectFilters) -> FilteredProjects:
    """Filter and sort ``projects``; statistics cover the unfiltered input.

    Moderation is not applied here: callers pass a list that has already
    been through [DenyListResolver.filter()][angorhub.services.denylist.DenyListResolver.filter].
    """
    result = list(projects)

    if filters.search:
        needle = filters.search.lower()
        result = [p for p in result if _matches_search(p, needle)]

    if filters.status is not None:
        result = [p for p in result if _status(p) == filters.status]

    if filters.min_amount:
        minimum = filters.min_amount
        result = [p for p in result if _number(p, "targetAmount") >= minimum]

    if filters.max_amount:
        maximum = filters.max_amount
        result = [p for p in result if _number(p, "targetAmount") <= maximum]

    if filters.categories:
        result = [p for p in result if _metadata(p).get("category") in filters.categories]

    key = _sort_key(filters.sort_by)
    if key is not None:
        result.sort(key=key)

    return FilteredProjects(projects=result, statistics=compute_statistics(list(projects)))
