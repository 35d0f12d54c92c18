from gantry.models.task import Task, TaskStatus, TaskPriority
from gantry.models.alert import AlertStatus, ChecklistItem, QAAlert, Notification

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "AlertStatus",
    "ChecklistItem",
    "QAAlert",
    "Notification",
]
