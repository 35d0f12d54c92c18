import uuid
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Task(BaseModel):
    """
    A schedulable unit of construction work.

    Key fields:
    - start_date / end_date: inclusive day range (end_date >= start_date)
    - category: free-form key matched by the QA rules ("Concrete", "Steel", ...)
    - dependencies: ids of tasks that must complete before this one starts
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str | None = None
    title: str
    description: str | None = None
    category: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    start_date: date
    end_date: date
    planned_duration_days: int | None = Field(default=None, ge=1)
    progress_percentage: int = Field(default=0, ge=0, le=100)
    dependencies: list[str] = Field(default_factory=list)
    assigned_to: str | None = None

    # Display metadata, not interpreted by the engine
    color: str | None = None
    location: str | None = None
    notes: str | None = None

    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("id", "title")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("dependencies")
    @classmethod
    def _unique_dependencies(cls, value: list[str]) -> list[str]:
        # Deduplicate while preserving order
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _check_dates(self) -> "Task":
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self

    @property
    def duration_days(self) -> int:
        """Inclusive span in days (a single-day task lasts 1 day)."""
        return (self.end_date - self.start_date).days + 1

    @property
    def planned_duration(self) -> int:
        return self.planned_duration_days or self.duration_days
