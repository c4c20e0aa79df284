from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from .api_client import TodoApiClient
from .config import Settings
from .controller import TodoController
from .dates import format_date_for_input, parse_date_input
from .errors import ValidationError
from .logging_setup import setup_logging
from .models import DUE_DATE_CHOICES, STATUS_CHOICES, FilterDimension, Notification, Priority
from .render import category_table, notification_text, render_view

app = typer.Typer(help="Browse and edit TODO tasks from the command line")
category_app = typer.Typer(help="Manage categories")
app.add_typer(category_app, name="category")
console = Console()

R = TypeVar("R")


def _print_notification(notification: Notification) -> None:
    console.print(notification_text(notification))


def _run(operation: Callable[[TodoController], Awaitable[R]], notify: bool = True) -> R:
    settings = Settings.from_env()

    async def runner() -> R:
        async with TodoApiClient(settings.api_url, timeout=settings.timeout) as client:
            controller = TodoController(
                client,
                notify=_print_notification if notify else None,
                debounce_seconds=settings.debounce_seconds,
            )
            return await operation(controller)

    return asyncio.run(runner())


def _choice(value: str, choices: tuple[str, ...], name: str) -> str:
    if value not in choices:
        raise typer.BadParameter(f"{name} must be one of: {', '.join(choices)}")
    return value


def _parse_category_filter(value: str) -> Any:
    if value in ("all", "uncategorized"):
        return value
    try:
        return int(value)
    except ValueError as exc:
        raise typer.BadParameter("category must be 'all', 'uncategorized' or a category id") from exc


def _parse_priority(value: str | None) -> Priority | None:
    if value is None:
        return None
    try:
        return Priority(int(value))
    except ValueError:
        pass
    try:
        return Priority[value.upper()]
    except KeyError as exc:
        raise typer.BadParameter("priority must be 1-3 or low/medium/high") from exc


def _parse_due(value: str | None):
    try:
        return parse_date_input(value)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _exit_on_failure(ok: Any) -> None:
    if not ok:
        raise typer.Exit(code=1)


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    setup_logging(debug)


@app.command("list")
def list_tasks(
    category: str = typer.Option("all", "--category", help="all, uncategorized or a category id"),
    priority: str = typer.Option("all", "--priority", help="all, 1-3 or low/medium/high"),
    status: str = typer.Option("all", "--status", help="all, completed or incomplete"),
    due: str = typer.Option("all", "--due", help="all, no_due_date, overdue, today, tomorrow or this_week"),
    search: str = typer.Option("", "--search", help="Search title and description on the server"),
) -> None:
    """Show tasks, totals and progress per category."""
    category_value = _parse_category_filter(category)
    priority_value = "all" if priority == "all" else _parse_priority(priority)
    status_value = _choice(status, STATUS_CHOICES, "status")
    due_value = _choice(due, DUE_DATE_CHOICES, "due")

    async def operation(controller: TodoController) -> bool:
        controller.set_filter(FilterDimension.CATEGORY, category_value)
        controller.set_filter(FilterDimension.PRIORITY, priority_value)
        controller.set_filter(FilterDimension.STATUS, status_value)
        controller.set_filter(FilterDimension.DUE_DATE, due_value)
        request_id = controller.engine.set_search_query(search)
        ok = await controller.reload(request_id)
        console.print(render_view(controller.engine.view, controller.engine.categories))
        return ok

    _exit_on_failure(_run(operation, notify=False))


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    description: str | None = typer.Option(None, "--description", "-d"),
    category: int | None = typer.Option(None, "--category", help="Category id"),
    priority: str | None = typer.Option(None, "--priority", help="1-3 or low/medium/high"),
    due: str | None = typer.Option(None, "--due", help="YYYY-MM-DDTHH:MM or YYYY-MM-DD"),
) -> None:
    """Create a task."""
    priority_value = _parse_priority(priority)
    due_value = _parse_due(due)
    task = _run(
        lambda controller: controller.create_task(title, description, category, priority_value, due_value)
    )
    _exit_on_failure(task)
    console.print(f"Created task {task.id}: {task.title}")


@app.command()
def edit(
    task_id: int = typer.Argument(..., help="Task id"),
    title: str | None = typer.Option(None, "--title"),
    description: str | None = typer.Option(None, "--description", "-d"),
    category: int | None = typer.Option(None, "--category", help="Category id"),
    no_category: bool = typer.Option(False, "--no-category", help="Remove the category"),
    priority: str | None = typer.Option(None, "--priority", help="1-3 or low/medium/high"),
    due: str | None = typer.Option(None, "--due", help="YYYY-MM-DDTHH:MM or YYYY-MM-DD"),
    no_due: bool = typer.Option(False, "--no-due", help="Remove the due date"),
) -> None:
    """Edit a task; options left out keep their current value."""
    priority_value = _parse_priority(priority)
    due_value = _parse_due(due)

    async def operation(controller: TodoController):
        if not await controller.reload():
            return None
        current = next((task for task in controller.engine.tasks if task.id == task_id), None)
        if current is None:
            console.print(f"[red]Task {task_id} not found[/red]")
            return None
        category_id = None if no_category else (category if category is not None else current.category_id)
        due_date = None if no_due else (due_value or current.due_date)
        return await controller.update_task(
            task_id,
            title if title is not None else current.title,
            description if description is not None else current.description,
            category_id,
            priority_value or current.priority,
            due_date,
        )

    task = _run(operation)
    _exit_on_failure(task)
    due_text = format_date_for_input(task.due_date) if task.due_date else "none"
    console.print(f"Updated task {task.id}: {task.title} (due {due_text})")


@app.command()
def toggle(task_id: int = typer.Argument(..., help="Task id")) -> None:
    """Flip the completed flag of a task."""
    task = _run(lambda controller: controller.toggle_task(task_id))
    _exit_on_failure(task)
    console.print(f"Task {task.id} is now {'completed' if task.completed else 'incomplete'}")


@app.command()
def delete(
    task_id: int = typer.Argument(..., help="Task id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a task."""
    if not yes:
        typer.confirm(f"Delete task {task_id}?", abort=True)
    _exit_on_failure(_run(lambda controller: controller.delete_task(task_id)))


@category_app.command("list")
def list_categories() -> None:
    """List categories."""

    async def operation(controller: TodoController) -> bool:
        ok = await controller.reload()
        if ok:
            console.print(category_table(controller.engine.categories))
        return ok

    _exit_on_failure(_run(operation))


@category_app.command("add")
def add_category(
    name: str = typer.Argument(..., help="Category name"),
    color: str | None = typer.Option(None, "--color", help="Display color, e.g. #ff6b6b"),
) -> None:
    """Create a category."""
    category = _run(lambda controller: controller.create_category(name, color))
    _exit_on_failure(category)
    console.print(f"Created category {category.id}: {category.name}")


@category_app.command("edit")
def edit_category(
    category_id: int = typer.Argument(..., help="Category id"),
    name: str = typer.Argument(..., help="New name"),
    color: str | None = typer.Option(None, "--color", help="Display color, e.g. #ff6b6b"),
) -> None:
    """Rename or recolor a category."""
    category = _run(lambda controller: controller.update_category(category_id, name, color))
    _exit_on_failure(category)
    console.print(f"Updated category {category.id}: {category.name}")


@category_app.command("delete")
def delete_category(
    category_id: int = typer.Argument(..., help="Category id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a category that no task uses."""
    if not yes:
        typer.confirm(f"Delete category {category_id}?", abort=True)
    _exit_on_failure(_run(lambda controller: controller.delete_category(category_id)))


if __name__ == "__main__":
    app()
