"""
In-memory collaborators.

Dictionary-backed implementations of the repository protocols, used by the
tests and as the worker's default until the surrounding product plugs in its
own storage.
"""

from dataclasses import dataclass, field

from gantry.exceptions import DuplicateAlertError
from gantry.logging_config import get_logger
from gantry.models import Notification, QAAlert, Task
from gantry.protocols import SaveResult

logger = get_logger(__name__)


class InMemoryTaskRepository:
    """Tasks keyed by project, then task id (insertion ordered)."""

    def __init__(self, tasks: list[Task] | None = None):
        self._projects: dict[str, dict[str, Task]] = {}
        self.fail_saves = False
        for task in tasks or []:
            self._projects.setdefault(task.project_id or "", {})[task.id] = task

    def load_tasks(self, project_id: str) -> list[Task]:
        return list(self._projects.get(project_id, {}).values())

    def save_task_updates(self, project_id: str, tasks: list[Task]) -> SaveResult:
        if self.fail_saves:
            logger.error(f"Rejected save of {len(tasks)} tasks for project={project_id}")
            return SaveResult(success=False, error="storage unavailable")
        project = self._projects.setdefault(project_id, {})
        for task in tasks:
            project[task.id] = task
        return SaveResult(success=True, saved=len(tasks))

    def delete_task(self, project_id: str, task_id: str) -> SaveResult:
        if self.fail_saves:
            return SaveResult(success=False, error="storage unavailable")
        removed = self._projects.get(project_id, {}).pop(task_id, None)
        return SaveResult(success=removed is not None, saved=int(removed is not None))


@dataclass(frozen=True)
class ChecklistCompletion:
    alert_id: str
    item_id: str
    completed_by: str
    notes: str | None = None


class InMemoryAlertRepository:
    """
    Alerts keyed by id.

    Writing a second alert for a (project_id, task_id, rule_type) triple that has
    one under another id raises DuplicateAlertError: only a caller bypassing
    the rule engine can do that.
    """

    def __init__(self):
        self._alerts: dict[str, QAAlert] = {}
        self.completions: list[ChecklistCompletion] = []

    def upsert_alert(self, alert: QAAlert) -> QAAlert:
        for existing in self._alerts.values():
            if (
                existing.id != alert.id
                and existing.project_id == alert.project_id
                and existing.task_id == alert.task_id
                and existing.rule_type == alert.rule_type
            ):
                raise DuplicateAlertError(alert.task_id, alert.rule_type, existing.id)
        self._alerts[alert.id] = alert
        return alert

    def list_live_alerts(self, project_id: str | None) -> list[QAAlert]:
        return [alert for alert in self._alerts.values() if alert.project_id == project_id]

    def get_alert(self, alert_id: str) -> QAAlert | None:
        return self._alerts.get(alert_id)

    def record_checklist_completion(
        self,
        alert_id: str,
        item_id: str,
        completed_by: str,
        notes: str | None = None,
    ) -> None:
        self.completions.append(ChecklistCompletion(alert_id, item_id, completed_by, notes))

    def delete_alert(self, alert_id: str) -> bool:
        return self._alerts.pop(alert_id, None) is not None


class CollectingNotificationSink:
    """Keeps published notifications in a list."""

    def __init__(self):
        self.published: list[Notification] = []

    def publish(self, notification: Notification) -> None:
        logger.info(f"Notification for {notification.user_id}: {notification.title}")
        self.published.append(notification)


@dataclass
class Collaborators:
    tasks: InMemoryTaskRepository = field(default_factory=InMemoryTaskRepository)
    alerts: InMemoryAlertRepository = field(default_factory=InMemoryAlertRepository)
    notifications: CollectingNotificationSink = field(default_factory=CollectingNotificationSink)


def build_collaborators() -> Collaborators:
    """Default factory referenced by Settings.collaborators_factory."""
    return Collaborators()
