"""
Critical Path Method (CPM) implementation.

Calculates:
- Forward pass: Earliest Start (ES), Earliest Finish (EF)
- Backward pass: Latest Start (LS), Latest Finish (LF)
- Slack/Float: LS - ES
- Critical Path: Tasks where slack = 0

Used by the timeline to highlight critical bars.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from gantry.logging_config import get_logger
from gantry.services.graph import TaskGraph

logger = get_logger(__name__)


@dataclass
class TaskAnalysis:
    """Analysis results for a single task."""
    task_id: str
    title: str
    duration_days: int
    # Forward pass results
    earliest_start: date
    earliest_finish: date
    # Backward pass results
    latest_start: date
    latest_finish: date
    # Slack
    total_slack: int  # Days of slack (0 = critical)
    is_critical: bool


@dataclass
class ProjectAnalysis:
    """Complete CPM analysis for a project."""
    project_id: str | None
    project_end_date: date  # Latest task finish
    task_analyses: list[TaskAnalysis]
    critical_path_task_ids: list[str]


def analyze_critical_path(graph: TaskGraph) -> ProjectAnalysis | None:
    """
    Perform complete CPM analysis on a task graph.

    Returns None for an empty graph.
    """
    order = graph.topological_order()
    if not order:
        return None

    es: dict[str, date] = {}
    ef: dict[str, date] = {}
    ls: dict[str, date] = {}
    lf: dict[str, date] = {}

    # =========================================================================
    # Forward Pass: Calculate ES and EF
    # =========================================================================
    for task in order:
        if not task.dependencies:
            # No predecessors - use the stored start_date
            es[task.id] = task.start_date
        else:
            # ES = max(EF of all predecessors) + 1 day
            es[task.id] = max(ef[p] for p in task.dependencies) + timedelta(days=1)
        ef[task.id] = es[task.id] + timedelta(days=task.duration_days - 1)

    project_end_date = max(ef.values())

    # =========================================================================
    # Backward Pass: Calculate LF and LS
    # =========================================================================
    for task in reversed(order):
        successors = graph.successors(task.id)
        if not successors:
            lf[task.id] = project_end_date
        else:
            # LF = min(LS of all successors) - 1 day
            lf[task.id] = min(ls[s.id] for s in successors) - timedelta(days=1)
        ls[task.id] = lf[task.id] - timedelta(days=task.duration_days - 1)

    # =========================================================================
    # Calculate Slack and Identify Critical Path
    # =========================================================================
    task_analyses = []
    critical_path_ids = []

    for task in order:
        slack = (ls[task.id] - es[task.id]).days
        is_critical = slack == 0
        if is_critical:
            critical_path_ids.append(task.id)

        task_analyses.append(TaskAnalysis(
            task_id=task.id,
            title=task.title,
            duration_days=task.duration_days,
            earliest_start=es[task.id],
            earliest_finish=ef[task.id],
            latest_start=ls[task.id],
            latest_finish=lf[task.id],
            total_slack=slack,
            is_critical=is_critical,
        ))

    logger.debug(f"CPM: {len(critical_path_ids)} of {len(order)} tasks critical, ends {project_end_date}")

    return ProjectAnalysis(
        project_id=graph.project_id,
        project_end_date=project_end_date,
        task_analyses=task_analyses,
        critical_path_task_ids=critical_path_ids,
    )
