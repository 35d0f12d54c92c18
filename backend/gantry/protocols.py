"""Collaborator interfaces the engine calls at its edges."""

from dataclasses import dataclass
from typing import Protocol

from gantry.models import Notification, QAAlert, Task


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a task save."""

    success: bool
    saved: int = 0
    error: str | None = None


class TaskRepository(Protocol):
    """Task data access owned by the surrounding product."""

    def load_tasks(self, project_id: str) -> list[Task]:
        """Load every task of a project."""
        ...

    def save_task_updates(self, project_id: str, tasks: list[Task]) -> SaveResult:
        """Persist new versions of the given tasks in one transaction.

        Args:
            project_id: Project the tasks belong to
            tasks: Full task values to upsert

        Returns:
            SaveResult; success=False means nothing was written
        """
        ...

    def delete_task(self, project_id: str, task_id: str) -> SaveResult:
        """Delete a task."""
        ...


class AlertRepository(Protocol):
    """QA alert persistence."""

    def upsert_alert(self, alert: QAAlert) -> QAAlert:
        ...

    def list_live_alerts(self, project_id: str | None) -> list[QAAlert]:
        """Alerts of a project that have not been deleted, whatever their status."""
        ...

    def get_alert(self, alert_id: str) -> QAAlert | None:
        ...

    def record_checklist_completion(
        self,
        alert_id: str,
        item_id: str,
        completed_by: str,
        notes: str | None = None,
    ) -> None:
        ...

    def delete_alert(self, alert_id: str) -> bool:
        ...


class NotificationSink(Protocol):
    """Fire-and-forget notification delivery."""

    def publish(self, notification: Notification) -> None:
        ...
