from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, Field

from gantry.models import Task, TaskStatus, TaskPriority


class TaskUpdate(BaseModel):
    """Partial update for a task. Only fields that were set are applied."""
    title: str | None = None
    description: str | None = None
    category: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    start_date: date | None = None
    end_date: date | None = None
    planned_duration_days: int | None = None
    progress_percentage: int | None = Field(default=None, ge=0, le=100)
    dependencies: list[str] | None = None
    assigned_to: str | None = None
    color: str | None = None
    location: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class DateRange:
    """Inclusive start/end pair proposed for a task."""
    start_date: date
    end_date: date


@dataclass(frozen=True)
class TaskMutationEvent:
    """
    A task as it is now, plus the state it had before the mutation.

    previous is None the first time the engine observes the task.
    """
    task: Task
    previous: Task | None = None
