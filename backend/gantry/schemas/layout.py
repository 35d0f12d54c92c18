from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class TaskRow:
    """Screen rectangle of one task bar."""
    task_id: str
    row_index: int
    x: float
    y: float
    width: float
    height: float
    center_y: float
    start_date: date
    end_date: date
    visible: bool  # intersects the requested window
    is_critical: bool = False

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class DependencyArrow:
    """Cubic path from a prerequisite's right edge to a dependent's left edge."""
    from_task_id: str
    to_task_id: str
    points: tuple[Point, Point, Point, Point]

    @property
    def svg_path(self) -> str:
        start, c1, c2, end = self.points
        return (
            f"M {start.x:g} {start.y:g} "
            f"C {c1.x:g} {c1.y:g}, {c2.x:g} {c2.y:g}, {end.x:g} {end.y:g}"
        )


@dataclass
class TimelineLayout:
    window_start: date
    window_days: int
    pixels_per_day: float
    rows: list[TaskRow] = field(default_factory=list)
    arrows: list[DependencyArrow] = field(default_factory=list)
    total_width: float = 0.0
    total_height: float = 0.0

    def row_for(self, task_id: str) -> TaskRow | None:
        return next((row for row in self.rows if row.task_id == task_id), None)
