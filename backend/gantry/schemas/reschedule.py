from dataclasses import dataclass, field

from gantry.schemas.task import DateRange


@dataclass
class RescheduleProposal:
    """Date changes produced by a drag; applied all-or-nothing."""
    task_id: str
    day_delta: int
    updates: dict[str, DateRange] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.updates

    @property
    def shifted_dependents(self) -> list[str]:
        """Tasks moved by propagation rather than by the drag itself."""
        return [task_id for task_id in self.updates if task_id != self.task_id]
