from __future__ import annotations

from datetime import datetime

from rich.console import Group, RenderableType
from rich.errors import StyleSyntaxError
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .dates import classify_due_date, format_relative_due_date
from .models import Category, CategoryProgress, FilteredView, Notification, Task, ViewStats

TIER_STYLES = {
    "completed": "dim",
    "overdue": "bold red",
    "today": "yellow",
    "tomorrow": "cyan",
    "soon": "blue",
    "future": "",
}
PRIORITY_STYLES = {1: "green", 2: "yellow", 3: "red"}


def color_style(color: str | None) -> Style | str:
    if not color:
        return "dim"
    try:
        return Style.parse(color)
    except StyleSyntaxError:
        return ""


def _category_cell(task: Task, categories: dict[int, Category]) -> Text:
    category = categories.get(task.category_id) if task.category_id is not None else None
    if category is None:
        return Text("-", style="dim")
    return Text(category.name, style=color_style(category.color))


def _due_cell(task: Task, now: datetime | None) -> Text:
    if task.due_date is None:
        return Text("-", style="dim")
    tier = classify_due_date(task.due_date, task.completed, now)
    return Text(format_relative_due_date(task.due_date, now), style=TIER_STYLES[tier])


def task_table(tasks: list[Task], categories: list[Category], now: datetime | None = None) -> Table:
    lookup = {category.id: category for category in categories}
    table = Table(show_lines=False)
    table.add_column("ID", justify="right")
    table.add_column("", width=3)
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Due")
    for task in tasks:
        title = Text(task.title, style="strike dim" if task.completed else "")
        if task.description:
            title.append(f"\n{task.description}", style="italic dim")
        table.add_row(
            str(task.id),
            "[x]" if task.completed else "[ ]",
            title,
            _category_cell(task, lookup),
            Text(task.priority.label, style=PRIORITY_STYLES[int(task.priority)]),
            _due_cell(task, now),
        )
    return table


def stats_line(stats: ViewStats) -> Text:
    return Text.assemble(
        ("Total ", "bold"),
        str(stats.total),
        ("  Completed ", "bold"),
        str(stats.completed),
        ("  Overdue ", "bold red" if stats.overdue else "bold"),
        str(stats.overdue),
    )


def progress_table(progress: list[CategoryProgress]) -> Table:
    table = Table(title="Progress by category", show_header=True)
    table.add_column("Category")
    table.add_column("Done", justify="right")
    table.add_column("%", justify="right")
    for item in progress:
        table.add_row(
            Text(item.name, style=color_style(item.color)),
            f"{item.completed}/{item.total}",
            f"{item.percentage}%",
        )
    return table


def render_view(view: FilteredView, categories: list[Category], now: datetime | None = None) -> RenderableType:
    if view.error is not None:
        return Panel(Text(f"Error: {view.error}", style="red"), subtitle="Retry the command to reload")
    parts: list[RenderableType] = []
    if view.tasks:
        parts.append(task_table(view.tasks, categories, now))
    else:
        parts.append(Text("No tasks. Add one with `todoview add TITLE`.", style="dim"))
    parts.append(stats_line(view.stats))
    if view.stats.progress:
        parts.append(progress_table(view.stats.progress))
    return Group(*parts)


def category_table(categories: list[Category]) -> Table:
    table = Table()
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Color")
    for category in categories:
        table.add_row(str(category.id), Text(category.name, style=color_style(category.color)), category.color)
    return table


def notification_text(notification: Notification) -> Text:
    style = "red" if notification.level == "error" else "green"
    return Text(notification.message, style=style)
