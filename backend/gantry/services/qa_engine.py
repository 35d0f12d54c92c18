"""
QA rule engine.

Turns task mutation events into QA alerts:
- match_rules() is the pure matcher over the static rule table
- QARuleEngine adds deduplication against live alerts, persistence of new
  alerts and notifications for assigned users

The engine never mutates tasks. Unknown categories simply match no rule.
"""

from collections.abc import Callable, Iterable
from datetime import date, timedelta

from gantry.logging_config import get_logger
from gantry.models import AlertStatus, ChecklistItem, Notification, QAAlert, Task, TaskPriority, TaskStatus
from gantry.models.task import utc_now
from gantry.protocols import AlertRepository, NotificationSink
from gantry.schemas import TaskMutationEvent
from gantry.services.qa_rules import DEFAULT_RULES, QARule, TriggerKind

logger = get_logger(__name__)

URGENT_PRIORITIES = {TaskPriority.HIGH, TaskPriority.CRITICAL}
URGENT_PREFIX = "[URGENT] "


def days_until(target: date, today: date) -> int:
    return (target - today).days


def rule_fires(rule: QARule, task: Task, previous: Task | None, today: date) -> bool:
    """Whether one rule fires for a task event. Category is not checked here."""
    if rule.trigger == TriggerKind.STATUS_TRANSITION:
        if task.status not in rule.trigger_statuses:
            return False
        if previous is not None and previous.status == task.status:
            return False
        if rule.progress_threshold is not None and task.progress_percentage < rule.progress_threshold:
            return False
        return True

    if task.status == TaskStatus.COMPLETED:
        return False
    remaining = days_until(task.start_date, today)
    return 0 <= remaining <= rule.trigger_days


def match_rules(
    task: Task,
    previous: Task | None,
    rules: Iterable[QARule],
    today: date,
    kinds: Iterable[TriggerKind] = tuple(TriggerKind),
) -> list[QARule]:
    """Rules that fire for this task event, in table order."""
    kinds = set(kinds)
    return [
        rule for rule in rules
        if rule.trigger in kinds
        and rule.matches_category(task.category)
        and rule_fires(rule, task, previous, today)
    ]


def alert_id_for(rule: QARule, task: Task) -> str:
    """Stable id per (project, rule type, task); task ids are only unique within a project."""
    parts = ("qa", task.project_id, rule.rule_type.value, task.id)
    return "-".join(part for part in parts if part)


def build_alert(rule: QARule, task: Task, today: date) -> QAAlert:
    """Materialize a rule match into a new alert with a fresh checklist."""
    alert_id = alert_id_for(rule, task)

    if rule.trigger == TriggerKind.SCHEDULE_PROXIMITY:
        # Due the day before work starts, but never in the past
        due_date = max(today, task.start_date - timedelta(days=1))
        status = AlertStatus.IN_PROGRESS if task.start_date == today else AlertStatus.PENDING
    else:
        due_date = today + timedelta(days=rule.due_offset_days)
        status = AlertStatus.PENDING

    return QAAlert(
        id=alert_id,
        project_id=task.project_id,
        task_id=task.id,
        rule_type=rule.rule_type.value,
        status=status,
        title=rule.title,
        description=rule.description,
        requirements=list(rule.requirements),
        priority=rule.priority,
        due_date=due_date,
        assigned_to=task.assigned_to,
        checklist=[
            ChecklistItem(id=f"{alert_id}-item-{index}", text=item.text, required=item.required)
            for index, item in enumerate(rule.checklist)
        ],
    )


def build_notification(alert: QAAlert, task: Task) -> Notification:
    """Notification for the alert's assignee, prefixed when the alert is urgent."""
    prefix = URGENT_PREFIX if alert.priority in URGENT_PRIORITIES else ""
    return Notification(
        id=f"qa-notification-{alert.id}",
        user_id=alert.assigned_to,
        type="qa_alert",
        severity=alert.priority,
        title=f"{prefix}QA Alert: {alert.title}",
        message=(
            f"{alert.description} for task \"{task.title}\" "
            f"scheduled for {task.start_date:%b %d}"
        ),
        data={
            "alert_id": alert.id,
            "task_id": alert.task_id,
            "rule_type": alert.rule_type,
            "priority": alert.priority.value,
            "due_date": alert.due_date.isoformat(),
        },
    )


class QARuleEngine:
    """
    Evaluates QA rules on task events and owns the resulting alerts.

    Re-entrant: replaying the same event finds the alert created the first
    time (by (task_id, rule_type) within the project) and creates nothing; it
    only retries a notification that never went out.
    """

    def __init__(
        self,
        alerts: AlertRepository,
        notifications: NotificationSink,
        rules: Iterable[QARule] = DEFAULT_RULES,
        today: Callable[[], date] = date.today,
    ):
        self.alerts = alerts
        self.notifications = notifications
        self.rules = tuple(rules)
        self.today = today

    def handle(self, event: TaskMutationEvent) -> list[QAAlert]:
        return self.on_task_event(event.task, event.previous)

    def on_task_event(self, task: Task, previous: Task | None = None) -> list[QAAlert]:
        """
        Evaluate every rule for a task mutation.

        Args:
            task: The task after the mutation
            previous: The task before it, or None on first observation

        Returns:
            Alerts created by this call (empty when everything already exists)
        """
        matched = match_rules(task, previous, self.rules, self.today())
        return self._materialize(task.project_id, [(rule, task) for rule in matched])

    def scan(self, project_id: str | None, tasks: Iterable[Task]) -> list[QAAlert]:
        """Schedule-proximity scan over a task snapshot (periodic or on demand)."""
        today = self.today()
        matches = [
            (rule, task)
            for task in tasks
            for rule in match_rules(task, None, self.rules, today, kinds=[TriggerKind.SCHEDULE_PROXIMITY])
        ]
        created = self._materialize(project_id, matches)
        logger.info(f"QA scan for project={project_id}: {len(created)} new alerts")
        return created

    def _materialize(self, project_id: str | None, matches: list[tuple[QARule, Task]]) -> list[QAAlert]:
        if not matches:
            return []

        today = self.today()
        live = {
            (alert.task_id, alert.rule_type): alert
            for alert in self.alerts.list_live_alerts(project_id)
        }

        created = []
        for rule, task in matches:
            key = (task.id, rule.rule_type.value)
            if key in live:
                logger.debug(f"Skipping {rule.rule_type.value} for task {task.id}: live alert exists")
                # A notification that failed to go out earlier is retried
                if live[key].status != AlertStatus.COMPLETED:
                    live[key] = self._notify(live[key], task)
                continue
            alert = self.alerts.upsert_alert(build_alert(rule, task, today))
            live[key] = alert
            logger.info(
                f"Created QA alert {alert.id} ({alert.priority.value}) "
                f"for task {task.id} '{task.title}'",
                extra={"project_id": project_id, "task_id": task.id, "alert_id": alert.id},
            )
            created.append(self._notify(alert, task))
        return created

    def _notify(self, alert: QAAlert, task: Task) -> QAAlert:
        if not alert.assigned_to or alert.notified_at is not None:
            return alert
        self.notifications.publish(build_notification(alert, task))
        notified = alert.model_copy(update={"notified_at": utc_now()})
        logger.debug(f"Notified {alert.assigned_to} about QA alert {alert.id}")
        return self.alerts.upsert_alert(notified)
