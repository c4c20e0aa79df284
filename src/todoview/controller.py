from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, TypeVar

from .api_client import TodoApiClient
from .debounce import Debouncer
from .engine import ViewStateEngine
from .errors import TodoViewError, ValidationError
from .models import (
    DEFAULT_CATEGORY_COLOR,
    Category,
    CategoryInput,
    FilterDimension,
    Notification,
    Priority,
    Task,
    TaskInput,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

SEARCH_DEBOUNCE_SECONDS = 0.3


def _task_input(
    title: str,
    description: str | None,
    category_id: int | None,
    priority: Priority | int | None,
    due_date: datetime | None,
) -> TaskInput:
    if not title or not title.strip():
        raise ValidationError("Title is required")
    if priority is not None and int(priority) not in {level.value for level in Priority}:
        raise ValidationError("Priority must be between 1 (low) and 3 (high)")
    return TaskInput(
        title=title,
        description=description,
        category_id=category_id,
        priority=Priority(priority) if priority is not None else None,
        due_date=due_date,
    )


def _category_input(name: str, color: str | None) -> CategoryInput:
    if not name or not name.strip():
        raise ValidationError("Category name is required")
    return CategoryInput(name=name, color=color or DEFAULT_CATEGORY_COLOR)


class TodoController:
    """Operation boundary between a view layer and the TODO API.

    Every public operation catches ``TodoViewError``, logs it and turns it
    into a notification; none of them raise. Successful mutations reload
    the snapshot.
    """

    def __init__(
        self,
        client: TodoApiClient,
        engine: ViewStateEngine | None = None,
        notify: Callable[[Notification], None] | None = None,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
    ) -> None:
        self.client = client
        self.engine = engine or ViewStateEngine()
        self.notifications: list[Notification] = []
        self._notify = notify
        self._search = Debouncer(debounce_seconds, self._run_search)

    def _emit(self, level: str, message: str) -> None:
        notification = Notification(level=level, message=message)
        self.notifications.append(notification)
        if self._notify is not None:
            self._notify(notification)

    async def _guard(self, action: str, operation: Callable[[], Awaitable[R]]) -> R | None:
        try:
            return await operation()
        except TodoViewError as exc:
            logger.warning("Failed to %s: %s", action, exc)
            self._emit("error", f"Failed to {action}: {exc}")
            return None

    async def reload(self, request_id: int | None = None) -> bool:
        if request_id is None:
            request_id = self.engine.begin_request()
        search = self.engine.search_query
        try:
            tasks = await self.client.get_tasks(search)
            categories = await self.client.get_categories()
        except TodoViewError as exc:
            logger.warning("Failed to load tasks: %s", exc)
            # A superseded request still reports, but leaves the newer view alone.
            self.engine.fail_snapshot(f"Failed to load tasks: {exc}", request_id)
            self._emit("error", f"Failed to load tasks: {exc}")
            return False
        return self.engine.ingest_snapshot(tasks, categories, request_id)

    def search(self, query: str) -> None:
        """Debounced: only the last query typed within the quiet period is fetched."""
        self._search(query)

    async def _run_search(self, query: str) -> None:
        request_id = self.engine.set_search_query(query)
        await self.reload(request_id)

    async def wait_for_search(self) -> None:
        await self._search.wait()

    def set_filter(self, dimension: FilterDimension | str, value: Any) -> None:
        self.engine.set_filter(dimension, value)

    async def _mutate(self, action: str, success: str, operation: Callable[[], Awaitable[R]]) -> R | None:
        result = await self._guard(action, operation)
        if result is None:
            return None
        self._emit("info", success)
        await self.reload()
        return result

    async def create_task(
        self,
        title: str,
        description: str | None = None,
        category_id: int | None = None,
        priority: Priority | int | None = None,
        due_date: datetime | None = None,
    ) -> Task | None:
        async def operation() -> Task:
            data = _task_input(title, description, category_id, priority, due_date)
            return await self.client.create_task(data)

        return await self._mutate("create task", "Task created", operation)

    async def update_task(
        self,
        task_id: int,
        title: str,
        description: str | None = None,
        category_id: int | None = None,
        priority: Priority | int | None = None,
        due_date: datetime | None = None,
    ) -> Task | None:
        async def operation() -> Task:
            data = _task_input(title, description, category_id, priority, due_date)
            return await self.client.update_task(task_id, data)

        return await self._mutate("update task", "Task updated", operation)

    async def toggle_task(self, task_id: int) -> Task | None:
        return await self._mutate("update task", "Task updated", lambda: self.client.toggle_task(task_id))

    async def delete_task(self, task_id: int) -> bool:
        async def operation() -> bool:
            await self.client.delete_task(task_id)
            return True

        return bool(await self._mutate("delete task", "Task deleted", operation))

    async def create_category(self, name: str, color: str | None = None) -> Category | None:
        async def operation() -> Category:
            return await self.client.create_category(_category_input(name, color))

        return await self._mutate("create category", "Category created", operation)

    async def update_category(self, category_id: int, name: str, color: str | None = None) -> Category | None:
        async def operation() -> Category:
            return await self.client.update_category(category_id, _category_input(name, color))

        return await self._mutate("update category", "Category updated", operation)

    async def delete_category(self, category_id: int) -> bool:
        async def operation() -> bool:
            await self.client.delete_category(category_id)
            return True

        return bool(await self._mutate("delete category", "Category deleted", operation))
