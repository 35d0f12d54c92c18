from gantry.schemas.task import TaskUpdate, DateRange, TaskMutationEvent
from gantry.schemas.layout import Point, TaskRow, DependencyArrow, TimelineLayout
from gantry.schemas.reschedule import RescheduleProposal

__all__ = [
    "TaskUpdate",
    "DateRange",
    "TaskMutationEvent",
    "Point",
    "TaskRow",
    "DependencyArrow",
    "TimelineLayout",
    "RescheduleProposal",
]
