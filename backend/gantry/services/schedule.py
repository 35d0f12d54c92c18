"""
Project schedule service.

One ProjectSchedule per project wires the pieces together:
- Task mutations go through the TaskGraph (and the reschedule resolver for
  moves and date edits)
- Changed tasks are persisted through the TaskRepository; a failed save rolls
  the in-memory graph back to its previous snapshot
- Each mutation is then forwarded to the QA rule engine, best-effort: a QA
  failure is logged and never undoes the task change
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from gantry.config import Settings, get_settings
from gantry.exceptions import PersistenceError, ValidationError
from gantry.logging_config import get_logger
from gantry.models import AlertStatus, QAAlert, Task
from gantry.protocols import AlertRepository, NotificationSink, TaskRepository
from gantry.schemas import RescheduleProposal, TaskMutationEvent, TaskUpdate, TimelineLayout
from gantry.services.alert_summary import AlertSummary, summarize_alerts
from gantry.services.checklist import ChecklistStateMachine
from gantry.services.critical_path import analyze_critical_path
from gantry.services.graph import TaskGraph
from gantry.services.layout import clamp_zoom, layout
from gantry.services.qa_engine import QARuleEngine
from gantry.services.qa_rules import DEFAULT_RULES, QARule
from gantry.services.reschedule import propose_move, push_dependents

logger = get_logger(__name__)


@dataclass
class ScheduleChange:
    """Result of a task mutation."""
    tasks: list[Task] = field(default_factory=list)
    alerts: list[QAAlert] = field(default_factory=list)  # QA alerts created as a consequence
    proposal: RescheduleProposal | None = None

    @property
    def task(self) -> Task | None:
        return self.tasks[0] if self.tasks else None


class ProjectSchedule:
    """Explicit per-project handle over the task graph, QA engine and collaborators."""

    def __init__(
        self,
        project_id: str,
        tasks: TaskRepository,
        alerts: AlertRepository,
        notifications: NotificationSink,
        settings: Settings | None = None,
        rules: Iterable[QARule] = DEFAULT_RULES,
        today: Callable[[], date] = date.today,
    ):
        self.project_id = project_id
        self.tasks = tasks
        self.alerts = alerts
        self.settings = settings or get_settings()
        self.today = today
        self.graph = TaskGraph(project_id=project_id)
        self.qa = QARuleEngine(alerts, notifications, rules=rules, today=today)
        self.checklists = ChecklistStateMachine(alerts)

    def load(self) -> "ProjectSchedule":
        """(Re)build the graph from the task repository."""
        self.graph = TaskGraph.from_tasks(self.tasks.load_tasks(self.project_id), self.project_id)
        logger.info(f"Loaded project={self.project_id} with {len(self.graph)} tasks")
        return self

    # =========================================================================
    # Task mutations
    # =========================================================================

    def add_task(self, task: Task) -> ScheduleChange:
        if task.project_id is None:
            task = task.model_copy(update={"project_id": self.project_id})
        elif task.project_id != self.project_id:
            raise ValidationError(
                f"Task {task.id} belongs to project {task.project_id}, not {self.project_id}",
                details=[{"loc": ["project_id"], "msg": "project mismatch", "type": "cross_project"}],
            )

        snapshot = self.graph.copy()
        stored = self.graph.add_task(task)
        self._save(snapshot, [stored])
        alerts = self._run_qa([TaskMutationEvent(stored)])
        return ScheduleChange(tasks=[stored], alerts=alerts)

    def update_task(self, task_id: str, changes: TaskUpdate | Mapping[str, Any]) -> ScheduleChange:
        """
        Apply a partial update.

        When the dates change, dependents that now overlap are pushed forward
        in the same change and saved together with the task.
        """
        previous = self.graph.get(task_id)
        snapshot = self.graph
        candidate = self.graph.copy()
        updated = candidate.update_task(task_id, changes)

        pushed: list[Task] = []
        if (updated.start_date, updated.end_date) != (previous.start_date, previous.end_date):
            pushed = candidate.apply_date_updates(push_dependents(candidate, task_id))
            if pushed:
                logger.info(f"Date edit of task {task_id} pushed {len(pushed)} dependents forward")

        self.graph = candidate
        self._save(snapshot, [updated, *pushed])
        alerts = self._run_qa(
            [TaskMutationEvent(updated, previous)]
            + [TaskMutationEvent(task, snapshot.get(task.id)) for task in pushed]
        )
        return ScheduleChange(tasks=[updated, *pushed], alerts=alerts)

    def remove_task(self, task_id: str, cascade: bool = False) -> ScheduleChange:
        """Remove a task; with cascade=True dependents lose the reference and are re-saved."""
        dependent_ids = [task.id for task in self.graph.successors(task_id)]
        snapshot = self.graph.copy()
        removed = self.graph.remove_task(task_id, cascade=cascade)

        changed = [self.graph.get(dependent_id) for dependent_id in dependent_ids]
        if changed:
            self._save(snapshot, changed)
        result = self.tasks.delete_task(self.project_id, task_id)
        if not result.success:
            self.graph = snapshot
            raise PersistenceError(
                f"Could not delete task {task_id}: {result.error or 'unknown error'}",
                project_id=self.project_id,
            )
        return ScheduleChange(tasks=[removed, *changed])

    def move_task(self, task_id: str, day_delta: int) -> ScheduleChange:
        """
        Apply a drag gesture: move the task and push dependents forward.

        Raises ConstraintViolationError (graph untouched) when the task would
        start before its own prerequisites finish.
        """
        proposal = propose_move(self.graph, task_id, day_delta)
        if proposal.is_empty:
            return ScheduleChange(proposal=proposal)

        previous = {tid: self.graph.get(tid) for tid in proposal.updates}
        snapshot = self.graph.copy()
        updated = self.graph.apply_date_updates(proposal.updates)
        self._save(snapshot, updated)

        # Re-evaluate every moved task so proximity rules follow the new dates
        alerts = self._run_qa([TaskMutationEvent(task, previous[task.id]) for task in updated])
        return ScheduleChange(tasks=updated, alerts=alerts, proposal=proposal)

    def _save(self, snapshot: TaskGraph, changed: list[Task]) -> None:
        result = self.tasks.save_task_updates(self.project_id, changed)
        if not result.success:
            self.graph = snapshot
            logger.error(f"Save failed for project={self.project_id}, graph rolled back: {result.error}")
            raise PersistenceError(
                f"Could not save {len(changed)} task(s): {result.error or 'unknown error'}",
                project_id=self.project_id,
            )

    def _run_qa(self, events: list[TaskMutationEvent]) -> list[QAAlert]:
        created = []
        for event in events:
            try:
                created.extend(self.qa.handle(event))
            except Exception:
                logger.exception(f"QA evaluation failed for task {event.task.id}; task change kept")
        return created

    # =========================================================================
    # QA
    # =========================================================================

    def scan_qa(self) -> list[QAAlert]:
        """Schedule-proximity scan over the current graph."""
        return self.qa.scan(self.project_id, self.graph.tasks())

    def complete_checklist_item(
        self,
        alert_id: str,
        item_id: str,
        completed_by: str,
        notes: str | None = None,
    ) -> QAAlert:
        return self.checklists.complete_item(alert_id, item_id, completed_by, notes)

    def set_alert_status(self, alert_id: str, status: AlertStatus, completed_by: str | None = None) -> QAAlert:
        return self.checklists.set_status(alert_id, status, completed_by)

    def alert_summary(self) -> AlertSummary:
        return summarize_alerts(self.alerts.list_live_alerts(self.project_id), self.today())

    # =========================================================================
    # Timeline
    # =========================================================================

    def timeline(
        self,
        window_start: date,
        window_days: int,
        pixels_per_day: float | None = None,
    ) -> TimelineLayout:
        """Layout of the current graph, zoom clamped to the configured bounds."""
        zoom = clamp_zoom(
            pixels_per_day if pixels_per_day is not None else self.settings.default_pixels_per_day,
            self.settings.min_pixels_per_day,
            self.settings.max_pixels_per_day,
        )
        analysis = analyze_critical_path(self.graph)
        return layout(
            self.graph.tasks(),
            window_start,
            window_days,
            zoom,
            row_height=self.settings.row_height,
            bar_height=self.settings.bar_height,
            critical_task_ids=analysis.critical_path_task_ids if analysis else (),
        )
