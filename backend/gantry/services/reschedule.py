"""
Reschedule resolver for drag gestures on the timeline.

When a task is dragged by N days:
- The dragged task keeps its duration and shifts by N days
- It may not start before the day after its latest prerequisite ends
- Every downstream task that would now overlap a prerequisite is pushed
  forward by exactly the overlap, in topological order

Propagation is forward-only: moving a task earlier never pulls dependents back.
"""

from datetime import date, timedelta

from gantry.exceptions import ConstraintViolationError
from gantry.logging_config import get_logger
from gantry.schemas import DateRange, RescheduleProposal
from gantry.services.graph import TaskGraph

logger = get_logger(__name__)


def earliest_start(
    graph: TaskGraph,
    task_id: str,
    dates: dict[str, DateRange] | None = None,
) -> tuple[date, str] | None:
    """
    Day after the latest prerequisite end, plus the prerequisite that sets it.

    `dates` overrides the stored dates of tasks already moved in this proposal.
    Returns None for a task without prerequisites.
    """
    dates = dates or {}
    latest: tuple[date, str] | None = None
    for prereq in graph.predecessors(task_id):
        end = dates[prereq.id].end_date if prereq.id in dates else prereq.end_date
        if latest is None or end > latest[0]:
            latest = (end, prereq.id)
    if latest is None:
        return None
    return latest[0] + timedelta(days=1), latest[1]


def push_dependents(
    graph: TaskGraph,
    task_id: str,
    updates: dict[str, DateRange] | None = None,
) -> dict[str, DateRange]:
    """
    Shift every descendant of task_id forward by exactly its overlap.

    `updates` holds ranges already decided for this change (the moved task
    itself for a drag) and is extended in place. Without it, the graph's
    stored dates are taken as given, e.g. right after a date edit.
    """
    updates = {} if updates is None else updates
    downstream = graph.descendants(task_id)
    for dependent in graph.topological_order():
        if dependent.id not in downstream:
            continue
        required_start, _ = earliest_start(graph, dependent.id, updates)
        current = updates.get(dependent.id, DateRange(dependent.start_date, dependent.end_date))
        if current.start_date >= required_start:
            continue
        overlap = required_start - current.start_date
        updates[dependent.id] = DateRange(
            current.start_date + overlap,
            current.end_date + overlap,
        )
        logger.debug(f"Pushed task {dependent.id} forward by {overlap.days} days")
    return updates


def propose_move(graph: TaskGraph, task_id: str, day_delta: int) -> RescheduleProposal:
    """
    Compute the date updates caused by moving task_id by day_delta days.

    Args:
        graph: Snapshot to evaluate against (not modified)
        task_id: The dragged task
        day_delta: Calendar days to move (negative = earlier)

    Returns:
        RescheduleProposal mapping every changed task id to its new range

    Raises:
        NotFoundError: task_id is not in the graph
        ConstraintViolationError: the dragged task would start before one of
            its own prerequisites finishes
    """
    task = graph.get(task_id)
    proposal = RescheduleProposal(task_id=task_id, day_delta=day_delta)
    if day_delta == 0:
        return proposal

    shift = timedelta(days=day_delta)
    moved = DateRange(task.start_date + shift, task.end_date + shift)

    bound = earliest_start(graph, task_id)
    if bound is not None and moved.start_date < bound[0]:
        allowed, blocking_id = bound
        logger.warning(
            f"Move rejected: task {task_id} to {moved.start_date} "
            f"(earliest {allowed}, blocked by {blocking_id})"
        )
        raise ConstraintViolationError(task_id, moved.start_date, allowed, blocking_id)

    proposal.updates[task_id] = moved
    push_dependents(graph, task_id, proposal.updates)

    logger.info(
        f"Proposed move of task {task_id} by {day_delta} days: "
        f"{len(proposal.updates)} tasks affected"
    )
    return proposal


def apply_move(graph: TaskGraph, task_id: str, day_delta: int) -> RescheduleProposal:
    """Propose a move and apply it to the graph in one atomic step."""
    proposal = propose_move(graph, task_id, day_delta)
    graph.apply_date_updates(proposal.updates)
    return proposal
