"""
Structured exceptions and error responses for Gantry.

Provides consistent error handling across the engine with:
- Custom exception classes carrying a stable error code
- Structured error response format for the presentation layer
"""

from typing import Any, Dict, Optional, List
from pydantic import BaseModel


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None  # Location of error (e.g., ["task", "dependencies"])
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "cycle_detected")
    message: str  # Human-readable message
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class GantryException(Exception):
    """Base exception for all Gantry errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Render this error for the caller (e.g. a blocked drag explanation)."""
        return ErrorResponse(
            error=self.error_code,
            message=self.message,
            details=[ErrorDetail(**d) for d in self.details] if self.details else None,
        )


class ValidationError(GantryException):
    """Malformed task fields or unknown ids."""

    def __init__(
        self,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        error_code: str = "validation_error",
    ):
        super().__init__(message=message, error_code=error_code, details=details)


class NotFoundError(ValidationError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
        )
        self.resource = resource
        self.resource_id = resource_id


class DuplicateTaskError(ValidationError):
    """A task with this id is already in the graph."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"Task with ID {task_id} already exists",
            error_code="duplicate_task",
        )
        self.task_id = task_id


class ReferentialIntegrityError(ValidationError):
    """Task is still listed as a prerequisite of other tasks."""

    def __init__(self, task_id: str, dependent_ids: List[str]):
        super().__init__(
            message=f"Task {task_id} is still a dependency of {len(dependent_ids)} task(s)",
            error_code="referential_integrity",
            details=[{
                "loc": ["dependencies"],
                "msg": f"Referenced by {dependent_id}",
                "type": "dependency_in_use",
            } for dependent_id in dependent_ids],
        )
        self.task_id = task_id
        self.dependent_ids = dependent_ids


class CycleDetectedError(GantryException):
    """The dependency graph would stop being acyclic."""

    def __init__(
        self,
        task_id: str,
        cycle: Optional[List[str]] = None,
        message: str = "This change would create a cycle in the task graph",
        error_code: str = "cycle_detected",
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details=[{
                "loc": ["dependencies"],
                "msg": " -> ".join(cycle) if cycle else f"Cycle through {task_id}",
                "type": "cycle_error",
            }],
        )
        self.task_id = task_id
        self.cycle = cycle or []


class SelfDependencyError(CycleDetectedError):
    """Task cannot depend on itself."""

    def __init__(self, task_id: str):
        super().__init__(
            task_id,
            cycle=[task_id, task_id],
            message="A task cannot depend on itself",
            error_code="self_dependency",
        )


class ConstraintViolationError(GantryException):
    """A reschedule would start a task before its prerequisites finish."""

    def __init__(self, task_id: str, proposed_start: Any, earliest_start: Any, blocking_task_id: str):
        super().__init__(
            message=(
                f"Task {task_id} cannot start on {proposed_start}: "
                f"prerequisite {blocking_task_id} finishes later (earliest start {earliest_start})"
            ),
            error_code="constraint_violation",
            details=[{
                "loc": ["start_date"],
                "msg": f"Earliest allowed start is {earliest_start}",
                "type": "dependency_constraint",
            }],
        )
        self.task_id = task_id
        self.proposed_start = proposed_start
        self.earliest_start = earliest_start
        self.blocking_task_id = blocking_task_id


class DuplicateAlertError(GantryException):
    """A second live alert for the same (task, rule type) was written."""

    def __init__(self, task_id: str, rule_type: str, existing_alert_id: str):
        super().__init__(
            message=f"Task {task_id} already has a live {rule_type} alert ({existing_alert_id})",
            error_code="duplicate_alert",
        )
        self.task_id = task_id
        self.rule_type = rule_type
        self.existing_alert_id = existing_alert_id


class UnknownChecklistItemError(GantryException):
    """Checklist item is not part of the alert."""

    def __init__(self, alert_id: str, item_id: str):
        super().__init__(
            message=f"Checklist item {item_id} is not part of QA alert {alert_id}",
            error_code="unknown_checklist_item",
        )
        self.alert_id = alert_id
        self.item_id = item_id


class PersistenceError(GantryException):
    """The task data-access collaborator refused an update."""

    def __init__(self, message: str, project_id: Optional[str] = None):
        super().__init__(message=message, error_code="persistence_error")
        self.project_id = project_id
