"""
Timeline (Gantt) layout.

Maps task date ranges onto a pixel grid:
- x = max(0, days(window_start -> start) * pixels_per_day)
- width = max(1, (days(start -> end) + 1) * pixels_per_day)
- one row per task, ordered by start date (ties keep creation order)

The engine does not filter or clip; tasks outside the window still get a row.
"""

from collections.abc import Iterable
from datetime import date, timedelta

from gantry.logging_config import get_logger
from gantry.models import Task
from gantry.schemas import DependencyArrow, Point, TaskRow, TimelineLayout

logger = get_logger(__name__)

DEFAULT_ROW_HEIGHT = 60
DEFAULT_BAR_HEIGHT = 32
MIN_ARROW_BEND = 12.0


def days_between(start: date, end: date) -> int:
    return (end - start).days


def clamp_zoom(pixels_per_day: float, minimum: float, maximum: float) -> float:
    """Clamp a zoom level into [minimum, maximum]."""
    if minimum > maximum:
        raise ValueError(f"Invalid zoom bounds: {minimum} > {maximum}")
    return min(max(pixels_per_day, minimum), maximum)


def _arrow(from_row: TaskRow, to_row: TaskRow) -> DependencyArrow:
    start = Point(from_row.right, from_row.center_y)
    end = Point(to_row.x, to_row.center_y)
    bend = max(MIN_ARROW_BEND, abs(end.x - start.x) / 2)
    return DependencyArrow(
        from_task_id=from_row.task_id,
        to_task_id=to_row.task_id,
        points=(
            start,
            Point(start.x + bend, start.y),
            Point(end.x - bend, end.y),
            end,
        ),
    )


def layout(
    tasks: Iterable[Task],
    window_start: date,
    window_days: int,
    pixels_per_day: float,
    row_height: int = DEFAULT_ROW_HEIGHT,
    bar_height: int = DEFAULT_BAR_HEIGHT,
    critical_task_ids: Iterable[str] = (),
) -> TimelineLayout:
    """
    Compute task rectangles and dependency arrows for a date window.

    Args:
        tasks: Tasks to draw, in any order
        window_start: First visible day
        window_days: Number of visible days
        pixels_per_day: Horizontal scale (already clamped by the caller)
        row_height: Height of one row in pixels
        bar_height: Height of a task bar, centred in its row
        critical_task_ids: Tasks to flag as on the critical path

    Returns:
        TimelineLayout with rows in display order and arrows for every edge
        whose both ends are present
    """
    # Equal start dates fall back to creation time; sorted() is stable for exact ties
    ordered = sorted(tasks, key=lambda task: (task.start_date, task.created_at))
    critical = set(critical_task_ids)
    window_end = window_start + timedelta(days=window_days)
    bar_offset = max(0, (row_height - bar_height) / 2)

    rows: list[TaskRow] = []
    for index, task in enumerate(ordered):
        row_top = index * row_height
        rows.append(TaskRow(
            task_id=task.id,
            row_index=index,
            x=max(0, days_between(window_start, task.start_date) * pixels_per_day),
            y=row_top + bar_offset,
            width=max(1, (days_between(task.start_date, task.end_date) + 1) * pixels_per_day),
            height=bar_height,
            center_y=row_top + row_height / 2,
            start_date=task.start_date,
            end_date=task.end_date,
            visible=task.start_date < window_end and task.end_date >= window_start,
            is_critical=task.id in critical,
        ))

    rows_by_id = {row.task_id: row for row in rows}
    arrows = []
    for task in ordered:
        for dep_id in task.dependencies:
            if dep_id not in rows_by_id:
                continue
            arrows.append(_arrow(rows_by_id[dep_id], rows_by_id[task.id]))

    logger.debug(
        f"Laid out {len(rows)} rows and {len(arrows)} arrows "
        f"from {window_start} over {window_days} days at {pixels_per_day}px/day"
    )

    return TimelineLayout(
        window_start=window_start,
        window_days=window_days,
        pixels_per_day=pixels_per_day,
        rows=rows,
        arrows=arrows,
        total_width=window_days * pixels_per_day,
        total_height=len(rows) * row_height,
    )
