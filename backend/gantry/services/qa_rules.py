"""
Static QA trigger rules for construction activities.

Rules are plain data: one frozen QARule per (categories, trigger) pair. The
matcher in qa_engine is a single function over this table.

Two trigger kinds:
- SCHEDULE_PROXIMITY: fires when the task starts within `trigger_days`
- STATUS_TRANSITION: fires when the task enters one of `trigger_statuses`,
  optionally only once progress reaches `progress_threshold`
"""

from dataclasses import dataclass, field
from enum import Enum

from gantry.models import TaskPriority, TaskStatus


class TriggerKind(str, Enum):
    SCHEDULE_PROXIMITY = "schedule_proximity"
    STATUS_TRANSITION = "status_transition"


class AlertType(str, Enum):
    ITP = "itp"
    PRE_POUR_CHECKLIST = "pre_pour_checklist"
    ENGINEER_INSPECTION = "engineer_inspection"
    QUALITY_HOLD = "quality_hold"
    POUR_HOLD_POINT = "pour_hold_point"
    FOUNDATION_SIGNOFF = "foundation_signoff"
    STEEL_SIGNOFF = "steel_signoff"


@dataclass(frozen=True)
class ChecklistTemplateItem:
    text: str
    required: bool = True


@dataclass(frozen=True)
class QARule:
    rule_type: AlertType
    categories: tuple[str, ...]
    trigger: TriggerKind
    priority: TaskPriority
    title: str
    description: str
    requirements: tuple[str, ...] = ()
    checklist: tuple[ChecklistTemplateItem, ...] = ()
    trigger_days: int | None = None  # proximity rules
    trigger_statuses: frozenset[TaskStatus] = field(default_factory=frozenset)  # transition rules
    progress_threshold: int | None = None
    due_offset_days: int = 0

    def __post_init__(self):
        if self.trigger == TriggerKind.SCHEDULE_PROXIMITY and self.trigger_days is None:
            raise ValueError(f"{self.rule_type}: proximity rules need trigger_days")
        if self.trigger == TriggerKind.STATUS_TRANSITION and not self.trigger_statuses:
            raise ValueError(f"{self.rule_type}: transition rules need trigger_statuses")

    def matches_category(self, category: str) -> bool:
        normalized = (category or "").strip().casefold()
        return any(normalized == c.casefold() for c in self.categories)


DEFAULT_RULES: tuple[QARule, ...] = (
    QARule(
        rule_type=AlertType.ITP,
        categories=("Concrete",),
        trigger=TriggerKind.SCHEDULE_PROXIMITY,
        trigger_days=3,
        priority=TaskPriority.HIGH,
        title="ITP Required - Concrete Pour",
        description="Inspection and Test Plan must be submitted and approved before concrete pour",
        requirements=(
            "Submit ITP form to engineer",
            "Obtain engineer approval",
            "Schedule concrete quality tests",
            "Verify formwork inspections completed",
        ),
        checklist=(
            ChecklistTemplateItem("ITP form completed and submitted"),
            ChecklistTemplateItem("Engineer approval received"),
            ChecklistTemplateItem("Concrete mix design approved"),
            ChecklistTemplateItem("Formwork inspection passed"),
            ChecklistTemplateItem("Reinforcement inspection passed"),
        ),
    ),
    QARule(
        rule_type=AlertType.PRE_POUR_CHECKLIST,
        categories=("Concrete",),
        trigger=TriggerKind.SCHEDULE_PROXIMITY,
        trigger_days=1,
        priority=TaskPriority.CRITICAL,
        title="Pre-Pour Checklist - Final Verification",
        description="Critical pre-pour checklist must be completed before concrete delivery",
        requirements=(
            "Final formwork check",
            "Weather conditions verification",
            "Equipment readiness check",
            "Site access confirmation",
        ),
        checklist=(
            ChecklistTemplateItem("Weather forecast acceptable (no rain expected)"),
            ChecklistTemplateItem("Concrete pump/equipment on site and tested"),
            ChecklistTemplateItem("Site access clear for concrete trucks"),
            ChecklistTemplateItem("Formwork final inspection completed"),
            ChecklistTemplateItem("All embedments and services in place"),
            ChecklistTemplateItem("Test equipment calibrated and ready", required=False),
        ),
    ),
    QARule(
        rule_type=AlertType.ENGINEER_INSPECTION,
        categories=("Steel", "Site Work"),
        trigger=TriggerKind.SCHEDULE_PROXIMITY,
        trigger_days=2,
        priority=TaskPriority.HIGH,
        title="Engineer Inspection Required",
        description="Structural engineer inspection required before proceeding",
        requirements=(
            "Schedule engineer site visit",
            "Prepare inspection documentation",
            "Ensure work area is accessible",
            "Have drawings and specifications available",
        ),
        checklist=(
            ChecklistTemplateItem("Engineer inspection scheduled"),
            ChecklistTemplateItem("Work area cleaned and accessible"),
            ChecklistTemplateItem("Drawings and specifications on site"),
            ChecklistTemplateItem("Previous inspection points addressed"),
        ),
    ),
    QARule(
        rule_type=AlertType.QUALITY_HOLD,
        categories=("Masonry",),
        trigger=TriggerKind.SCHEDULE_PROXIMITY,
        trigger_days=1,
        priority=TaskPriority.MEDIUM,
        title="Quality Hold Point - Masonry Check",
        description="Quality check required before masonry work proceeds",
        requirements=(
            "Check material certifications",
            "Verify mortar mix proportions",
            "Inspect substrate preparation",
            "Weather conditions check",
        ),
        checklist=(
            ChecklistTemplateItem("Material certificates verified"),
            ChecklistTemplateItem("Mortar mix approved"),
            ChecklistTemplateItem("Substrate properly prepared"),
            ChecklistTemplateItem("Weather suitable for masonry work"),
        ),
    ),
    QARule(
        rule_type=AlertType.POUR_HOLD_POINT,
        categories=("Concrete",),
        trigger=TriggerKind.STATUS_TRANSITION,
        trigger_statuses=frozenset({TaskStatus.IN_PROGRESS}),
        priority=TaskPriority.CRITICAL,
        title="Hold Point - Concrete Pour Started",
        description="Pour has started: sampling and engineer attendance must be recorded",
        requirements=(
            "Sample the first delivery",
            "Cast test cylinders",
            "Record engineer attendance",
        ),
        checklist=(
            ChecklistTemplateItem("Slump test performed on first truck"),
            ChecklistTemplateItem("Test cylinders cast and labelled"),
            ChecklistTemplateItem("Engineer present at pour commencement"),
        ),
    ),
    QARule(
        rule_type=AlertType.FOUNDATION_SIGNOFF,
        categories=("Foundation",),
        trigger=TriggerKind.STATUS_TRANSITION,
        trigger_statuses=frozenset({TaskStatus.COMPLETED}),
        progress_threshold=100,
        due_offset_days=1,
        priority=TaskPriority.HIGH,
        title="Foundation Completion Sign-off",
        description="Foundation works must be signed off before structure proceeds",
        requirements=(
            "Verify set-out against survey",
            "File compaction test results",
        ),
        checklist=(
            ChecklistTemplateItem("Survey set-out verified"),
            ChecklistTemplateItem("Compaction test results filed"),
            ChecklistTemplateItem("As-built photos uploaded", required=False),
        ),
    ),
    QARule(
        rule_type=AlertType.STEEL_SIGNOFF,
        categories=("Steel",),
        trigger=TriggerKind.STATUS_TRANSITION,
        trigger_statuses=frozenset({TaskStatus.COMPLETED}),
        progress_threshold=100,
        due_offset_days=2,
        priority=TaskPriority.HIGH,
        title="Structural Steel Sign-off",
        description="Erected steel must be inspected before cladding or decking",
        requirements=(
            "Check bolt torque",
            "Inspect welds",
        ),
        checklist=(
            ChecklistTemplateItem("Bolt torque check completed"),
            ChecklistTemplateItem("Weld visual inspection passed"),
            ChecklistTemplateItem("Alignment survey recorded", required=False),
        ),
    ),
)


def rules_for_category(category: str, rules: tuple[QARule, ...] = DEFAULT_RULES) -> list[QARule]:
    return [rule for rule in rules if rule.matches_category(category)]
