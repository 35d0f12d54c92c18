from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from gantry.models.task import TaskPriority, utc_now


class AlertStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ChecklistItem(BaseModel):
    """One required or optional step of a QA alert."""

    id: str
    text: str
    required: bool = True
    completed: bool = False
    completed_by: str | None = None
    completed_at: datetime | None = None
    notes: str | None = None


class QAAlert(BaseModel):
    """
    Inspection/compliance obligation generated for a task by a QA rule.

    At most one alert exists per (task_id, rule_type); alerts are only
    removed by an explicit delete.
    """

    id: str
    project_id: str | None = None
    task_id: str
    rule_type: str
    status: AlertStatus = AlertStatus.PENDING
    title: str
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date
    assigned_to: str | None = None
    checklist: list[ChecklistItem] = Field(default_factory=list)

    completed_by: str | None = None
    completed_at: datetime | None = None
    notified_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def get_item(self, item_id: str) -> ChecklistItem | None:
        return next((item for item in self.checklist if item.id == item_id), None)

    @property
    def all_required_done(self) -> bool:
        """True when there is at least one required item and all of them are completed."""
        required = [item for item in self.checklist if item.required]
        return bool(required) and all(item.completed for item in required)


class Notification(BaseModel):
    """Message handed to the notification sink."""

    id: str
    user_id: str
    type: str = "qa_alert"
    severity: TaskPriority = TaskPriority.MEDIUM
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: datetime = Field(default_factory=utc_now)
