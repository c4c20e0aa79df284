from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable

from .dates import is_overdue, matches_due_bucket
from .models import (
    Category,
    CategoryProgress,
    FilterDimension,
    FilteredView,
    FilterState,
    Priority,
    Task,
    ViewStats,
)

logger = logging.getLogger(__name__)

NO_CATEGORY_NAME = "No category"


def _matches_category(task: Task, value: Any) -> bool:
    if value == "all":
        return True
    if value == "uncategorized":
        return task.category_id is None
    return task.category_id == value


def _matches_priority(task: Task, value: Any) -> bool:
    if value == "all":
        return True
    return task.priority == value


def _matches_status(task: Task, value: Any) -> bool:
    if value == "completed":
        return task.completed
    if value == "incomplete":
        return not task.completed
    return True


def _percentage(completed: int, total: int) -> int:
    if not total:
        return 0
    # Round half up, 12.5 -> 13.
    return (200 * completed + total) // (2 * total)


def filter_tasks(tasks: Iterable[Task], filters: FilterState, now: datetime | None = None) -> list[Task]:
    filtered = list(tasks)
    if filters.category != "all":
        filtered = [task for task in filtered if _matches_category(task, filters.category)]
    if filters.priority != "all":
        filtered = [task for task in filtered if _matches_priority(task, filters.priority)]
    if filters.status != "all":
        filtered = [task for task in filtered if _matches_status(task, filters.status)]
    if filters.due_date != "all":
        filtered = [task for task in filtered if matches_due_bucket(task, filters.due_date, now)]
    return filtered


def category_progress(tasks: list[Task], categories: list[Category]) -> list[CategoryProgress]:
    known = {category.id for category in categories}
    totals: dict[int | None, list[int]] = {}
    for task in tasks:
        key = task.category_id if task.category_id in known else None
        counts = totals.setdefault(key, [0, 0])
        counts[0] += 1
        if task.completed:
            counts[1] += 1

    progress: list[CategoryProgress] = []
    for category in categories:
        if category.id not in totals:
            continue
        total, completed = totals[category.id]
        progress.append(
            CategoryProgress(
                category_id=category.id,
                name=category.name,
                color=category.color,
                total=total,
                completed=completed,
                percentage=_percentage(completed, total),
            )
        )
    if None in totals:
        total, completed = totals[None]
        progress.append(
            CategoryProgress(
                category_id=None,
                name=NO_CATEGORY_NAME,
                total=total,
                completed=completed,
                percentage=_percentage(completed, total),
            )
        )
    return progress


class ViewStateEngine:
    """In-memory snapshot of tasks and categories plus the active filters.

    The engine holds data only. A rendering layer reads ``view`` after each
    mutation; fetching is left to the caller, which tags every request with
    the id returned by ``begin_request``/``set_search_query`` so that a slow
    response cannot overwrite a newer one.
    """

    def __init__(self, filters: FilterState | None = None) -> None:
        self.tasks: list[Task] = []
        self.categories: list[Category] = []
        self.filters = filters or FilterState()
        self.view = FilteredView()
        self.error: str | None = None
        self._last_request_id = 0
        self._applied_request_id = 0

    @property
    def search_query(self) -> str:
        return self.filters.search

    def begin_request(self) -> int:
        self._last_request_id += 1
        return self._last_request_id

    def _is_stale(self, request_id: int | None) -> bool:
        if request_id is None:
            return False
        if request_id < self._applied_request_id:
            logger.debug(
                "Discarding stale response %s (already applied %s)", request_id, self._applied_request_id
            )
            return True
        self._applied_request_id = request_id
        return False

    def ingest_snapshot(
        self,
        tasks: Iterable[Task],
        categories: Iterable[Category],
        request_id: int | None = None,
    ) -> bool:
        if self._is_stale(request_id):
            return False
        self.tasks = list(tasks)
        self.categories = list(categories)
        self.error = None
        logger.debug("Ingested %d tasks and %d categories", len(self.tasks), len(self.categories))
        self.refresh()
        return True

    def fail_snapshot(self, message: str, request_id: int | None = None) -> bool:
        """Put the view in an error state; the previous snapshot stays in memory."""
        if self._is_stale(request_id):
            return False
        self.error = message
        self.refresh()
        return True

    def set_filter(self, dimension: FilterDimension | str, value: Any) -> None:
        dimension = FilterDimension(dimension)
        if dimension is FilterDimension.PRIORITY and value != "all":
            value = Priority(int(value))
        self.filters = replace(self.filters, **{dimension.value: value})
        logger.debug("Filter %s set to %r", dimension.value, value)
        self.refresh()

    def set_search_query(self, query: str) -> int:
        """Store the trimmed query and return the id of the fetch it requires."""
        self.filters = replace(self.filters, search=query.strip())
        return self.begin_request()

    def compute_filtered_view(self, now: datetime | None = None) -> list[Task]:
        return filter_tasks(self.tasks, self.filters, now)

    def compute_stats(self, filtered_tasks: list[Task], now: datetime | None = None) -> ViewStats:
        return ViewStats(
            total=len(filtered_tasks),
            completed=sum(1 for task in filtered_tasks if task.completed),
            overdue=sum(1 for task in filtered_tasks if is_overdue(task, now)),
            progress=category_progress(self.tasks, self.categories),
        )

    def refresh(self, now: datetime | None = None) -> FilteredView:
        filtered = self.compute_filtered_view(now)
        stats = self.compute_stats(filtered, now)
        if self.error is not None:
            self.view = FilteredView(tasks=[], stats=stats, error=self.error)
        else:
            self.view = FilteredView(tasks=filtered, stats=stats)
        return self.view

