from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator

DEFAULT_CATEGORY_COLOR = "#007bff"


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Category(BaseModel):
    id: int
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Task(BaseModel):
    id: int
    title: str
    description: str | None = None
    completed: bool = False
    priority: Priority = Priority.LOW
    due_date: datetime | None = None
    category_id: int | None = None
    category: Category | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskInput(BaseModel):
    """Body of POST /tasks and PUT /tasks/{id}."""

    title: str
    description: str | None = None
    category_id: int | None = None
    priority: Priority | None = None
    due_date: datetime | None = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return value.strip()


class CategoryInput(BaseModel):
    name: str
    color: str = DEFAULT_CATEGORY_COLOR

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()


class FilterDimension(str, Enum):
    CATEGORY = "category"
    PRIORITY = "priority"
    STATUS = "status"
    DUE_DATE = "due_date"


CategoryFilter = Union[Literal["all", "uncategorized"], int]
PriorityFilter = Union[Literal["all"], Priority]
StatusFilter = Literal["all", "completed", "incomplete"]
DueDateFilter = Literal["all", "no_due_date", "overdue", "today", "tomorrow", "this_week"]
DueTier = Literal["completed", "overdue", "today", "tomorrow", "soon", "future"]

STATUS_CHOICES: tuple[str, ...] = ("all", "completed", "incomplete")
DUE_DATE_CHOICES: tuple[str, ...] = ("all", "no_due_date", "overdue", "today", "tomorrow", "this_week")


@dataclass(frozen=True)
class FilterState:
    category: CategoryFilter = "all"
    priority: PriorityFilter = "all"
    status: StatusFilter = "all"
    due_date: DueDateFilter = "all"
    search: str = ""


class CategoryProgress(BaseModel):
    # None marks the synthetic "no category" bucket.
    category_id: int | None
    name: str
    color: str | None = None
    total: int
    completed: int
    percentage: int


class ViewStats(BaseModel):
    total: int = 0
    completed: int = 0
    overdue: int = 0
    progress: list[CategoryProgress] = Field(default_factory=list)


@dataclass
class FilteredView:
    tasks: list[Task] = field(default_factory=list)
    stats: ViewStats = field(default_factory=ViewStats)
    error: str | None = None


class Notification(BaseModel):
    level: Literal["info", "error"]
    message: str
