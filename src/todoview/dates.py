from __future__ import annotations

from datetime import date, datetime, timedelta

from .errors import ValidationError
from .models import DueDateFilter, DueTier, Task

INPUT_FORMAT = "%Y-%m-%dT%H:%M"
DISPLAY_FORMAT = "%Y/%m/%d %H:%M"
SOON_DAYS = 3
WEEK_DAYS = 7


def local_now() -> datetime:
    return datetime.now().astimezone()


def to_local(value: datetime) -> datetime:
    # Naive values are taken as local wall-clock time.
    return value.astimezone()


def _resolve_now(now: datetime | None) -> datetime:
    return to_local(now) if now is not None else local_now()


def day_difference(due: datetime, now: datetime | None = None) -> int:
    """Whole calendar days from today to the due day, in local time."""
    today = _resolve_now(now).date()
    return (to_local(due).date() - today).days


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    if task.completed or task.due_date is None:
        return False
    return to_local(task.due_date) < _resolve_now(now)


def matches_due_bucket(task: Task, bucket: DueDateFilter, now: datetime | None = None) -> bool:
    if bucket == "all":
        return True
    if bucket == "no_due_date":
        return task.due_date is None
    if task.due_date is None:
        return False

    current = _resolve_now(now)
    due = to_local(task.due_date)
    today: date = current.date()
    if bucket == "overdue":
        return due < current
    if bucket == "today":
        return due.date() == today
    if bucket == "tomorrow":
        return due.date() == today + timedelta(days=1)
    if bucket == "this_week":
        return today <= due.date() <= today + timedelta(days=WEEK_DAYS)
    return False


def classify_due_date(due: datetime, completed: bool, now: datetime | None = None) -> DueTier:
    if completed:
        return "completed"
    days = day_difference(due, now)
    if days < 0:
        return "overdue"
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if days <= SOON_DAYS:
        return "soon"
    return "future"


def relative_label(days: int) -> str:
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if days == -1:
        return "yesterday"
    if days > 0:
        return f"{days} days from now"
    return f"{-days} days ago"


def format_relative_due_date(due: datetime, now: datetime | None = None) -> str:
    absolute = to_local(due).strftime(DISPLAY_FORMAT)
    return f"{absolute} ({relative_label(day_difference(due, now))})"


def format_date_for_input(value: datetime) -> str:
    return to_local(value).strftime(INPUT_FORMAT)


def parse_date_input(text: str | None) -> datetime | None:
    """Inverse of format_date_for_input; a bare date means local midnight."""
    if text is None or not text.strip():
        return None
    raw = text.strip()
    for fmt in (INPUT_FORMAT, "%Y-%m-%d"):
        try:
            return datetime.strptime(raw, fmt).astimezone()
        except ValueError:
            continue
    raise ValidationError(f"Invalid date '{raw}'; expected YYYY-MM-DDTHH:MM or YYYY-MM-DD")
