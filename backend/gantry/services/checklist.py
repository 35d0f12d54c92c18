"""
Checklist state machine for QA alerts.

States: pending -> in_progress -> completed.
The only automatic transition is to completed, once every required item is
done. Any other change goes through set_status() as an explicit override.
"""

from collections.abc import Callable
from datetime import datetime

from gantry.exceptions import NotFoundError, UnknownChecklistItemError
from gantry.logging_config import get_logger
from gantry.models import AlertStatus, QAAlert
from gantry.models.task import utc_now
from gantry.protocols import AlertRepository

logger = get_logger(__name__)


class ChecklistStateMachine:
    def __init__(self, alerts: AlertRepository, now: Callable[[], datetime] = utc_now):
        self.alerts = alerts
        self.now = now

    def _get(self, alert_id: str) -> QAAlert:
        alert = self.alerts.get_alert(alert_id)
        if alert is None:
            raise NotFoundError("QA alert", alert_id)
        return alert

    def complete_item(
        self,
        alert_id: str,
        item_id: str,
        completed_by: str,
        notes: str | None = None,
    ) -> QAAlert:
        """
        Mark one checklist item as done.

        Completing an already completed item is a no-op and keeps the original
        completed_by/completed_at. When the last required item is completed the
        alert moves to completed, stamped with this completer.

        Raises:
            NotFoundError: unknown alert
            UnknownChecklistItemError: item is not on this alert's checklist
        """
        alert = self._get(alert_id)
        item = alert.get_item(item_id)
        if item is None:
            logger.warning(f"Unknown checklist item {item_id} on alert {alert_id}")
            raise UnknownChecklistItemError(alert_id, item_id)
        if item.completed:
            logger.debug(f"Checklist item {item_id} already completed by {item.completed_by}")
            return alert

        now = self.now()
        done = item.model_copy(update={
            "completed": True,
            "completed_by": completed_by,
            "completed_at": now,
            "notes": notes,
        })
        updates = {
            "checklist": [done if i.id == item_id else i for i in alert.checklist],
            "updated_at": now,
        }
        alert = alert.model_copy(update=updates)

        if alert.all_required_done and alert.status != AlertStatus.COMPLETED:
            alert = alert.model_copy(update={
                "status": AlertStatus.COMPLETED,
                "completed_by": completed_by,
                "completed_at": now,
            })
            logger.info(f"QA alert {alert_id} completed: all required items done (last by {completed_by})")

        self.alerts.record_checklist_completion(alert_id, item_id, completed_by, notes)
        return self.alerts.upsert_alert(alert)

    def set_status(
        self,
        alert_id: str,
        status: AlertStatus,
        completed_by: str | None = None,
    ) -> QAAlert:
        """Administrative override; ignores the checklist."""
        alert = self._get(alert_id)
        status = AlertStatus(status)
        now = self.now()

        if status == AlertStatus.COMPLETED:
            stamps = {
                "completed_by": completed_by or alert.completed_by,
                "completed_at": alert.completed_at if alert.status == status else now,
            }
        else:
            stamps = {"completed_by": None, "completed_at": None}

        logger.info(f"QA alert {alert_id} status override: {alert.status.value} -> {status.value}")
        return self.alerts.upsert_alert(alert.model_copy(update={
            "status": status,
            "updated_at": now,
            **stamps,
        }))
