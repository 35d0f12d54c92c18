"""Dashboard queries over QA alerts."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from gantry.models import AlertStatus, QAAlert, TaskPriority


@dataclass(frozen=True)
class AlertSummary:
    total: int
    pending: int
    in_progress: int
    overdue: int
    critical: int
    completed: int


def get_overdue_alerts(alerts: Iterable[QAAlert], today: date) -> list[QAAlert]:
    """Open alerts whose due date has passed."""
    return [
        alert for alert in alerts
        if alert.status != AlertStatus.COMPLETED and alert.due_date < today
    ]


def get_critical_alerts(alerts: Iterable[QAAlert], today: date) -> list[QAAlert]:
    """Open high/critical alerts due by tomorrow."""
    tomorrow = today + timedelta(days=1)
    return [
        alert for alert in alerts
        if alert.priority in (TaskPriority.HIGH, TaskPriority.CRITICAL)
        and alert.status != AlertStatus.COMPLETED
        and alert.due_date <= tomorrow
    ]


def get_task_alerts(alerts: Iterable[QAAlert], task_id: str) -> list[QAAlert]:
    return [alert for alert in alerts if alert.task_id == task_id]


def summarize_alerts(alerts: Iterable[QAAlert], today: date) -> AlertSummary:
    alerts = list(alerts)
    return AlertSummary(
        total=len(alerts),
        pending=sum(1 for a in alerts if a.status == AlertStatus.PENDING),
        in_progress=sum(1 for a in alerts if a.status == AlertStatus.IN_PROGRESS),
        overdue=len(get_overdue_alerts(alerts, today)),
        critical=len(get_critical_alerts(alerts, today)),
        completed=sum(1 for a in alerts if a.status == AlertStatus.COMPLETED),
    )
