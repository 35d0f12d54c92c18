"""
Tests for ProjectSchedule: persistence, rollback and the QA hand-off.
"""

import pytest

from gantry.exceptions import (
    ConstraintViolationError,
    CycleDetectedError,
    PersistenceError,
    ReferentialIntegrityError,
    ValidationError,
)
from gantry.models import AlertStatus, Task, TaskStatus
from gantry.schemas import DateRange, TaskUpdate


@pytest.fixture
def seeded(schedule, task_repo, make_task):
    """Schedule loaded with A (day 0-5) -> B (day 6-10) -> C (day 11-12)."""
    task_repo.save_task_updates(schedule.project_id, [
        make_task("A", 0, 5),
        make_task("B", 6, 10, deps=["A"]),
        make_task("C", 11, 12, deps=["B"]),
    ])
    return schedule.load()


class TestLoad:

    def test_load_builds_graph(self, seeded):
        assert [t.id for t in seeded.graph.topological_order()] == ["A", "B", "C"]

    def test_load_empty_project(self, schedule):
        assert len(schedule.load().graph) == 0


class TestAddAndUpdate:

    def test_add_persists_and_runs_qa(self, schedule, task_repo, sink, day):
        task = Task(
            id="slab",
            title="Pour Slab",
            category="Concrete",
            start_date=day(2),
            end_date=day(3),
            assigned_to="user-1",
        )

        change = schedule.add_task(task)

        assert change.task.project_id == schedule.project_id
        assert [t.id for t in task_repo.load_tasks(schedule.project_id)] == ["slab"]
        assert [a.rule_type for a in change.alerts] == ["itp"]
        assert len(sink.published) == 1

    def test_add_to_other_project_rejected(self, schedule, make_task):
        with pytest.raises(ValidationError):
            schedule.add_task(make_task("X", 0, 1, project_id="other"))

        assert len(schedule.graph) == 0

    def test_cycle_rejected_and_nothing_saved(self, seeded, task_repo):
        with pytest.raises(CycleDetectedError):
            seeded.update_task("A", {"dependencies": ["C"]})

        stored = {t.id: t for t in task_repo.load_tasks(seeded.project_id)}
        assert stored["A"].dependencies == []

    def test_status_transition_creates_alert(self, seeded):
        seeded.update_task("B", {"category": "Concrete"})

        change = seeded.update_task("B", TaskUpdate(status=TaskStatus.IN_PROGRESS))

        assert [a.rule_type for a in change.alerts] == ["pour_hold_point"]

    def test_save_failure_rolls_back(self, seeded, task_repo, day):
        task_repo.fail_saves = True

        with pytest.raises(PersistenceError) as exc_info:
            seeded.update_task("A", {"title": "Renamed"})

        assert exc_info.value.project_id == seeded.project_id
        assert seeded.graph.get("A").title == "Task A"

    def test_date_edit_pushes_dependents(self, seeded, task_repo, day):
        """
        Scenario: A's end date is edited from day 5 to day 8
        Expected: B and C shift forward by the 3-day overlap and are saved
            together with A
        """
        change = seeded.update_task("A", {"end_date": day(8)})

        assert [t.id for t in change.tasks] == ["A", "B", "C"]
        assert (seeded.graph.get("B").start_date, seeded.graph.get("B").end_date) == (day(9), day(13))
        assert (seeded.graph.get("C").start_date, seeded.graph.get("C").end_date) == (day(14), day(15))
        assert seeded.graph.find_schedule_conflicts() == []
        stored = {t.id: t for t in task_repo.load_tasks(seeded.project_id)}
        assert stored["A"].end_date == day(8)
        assert stored["B"].start_date == day(9)
        assert stored["C"].start_date == day(14)

    def test_date_edit_within_slack_pushes_nothing(self, seeded, day):
        change = seeded.update_task("A", {"start_date": day(-2), "end_date": day(3)})

        assert [t.id for t in change.tasks] == ["A"]
        assert seeded.graph.get("B").start_date == day(6)

    def test_date_edit_save_failure_rolls_back_pushes(self, seeded, task_repo, day):
        task_repo.fail_saves = True

        with pytest.raises(PersistenceError):
            seeded.update_task("A", {"end_date": day(8)})

        assert [seeded.graph.get(t).start_date for t in ("A", "B", "C")] == [day(0), day(6), day(11)]
        assert seeded.graph.get("A").end_date == day(5)

    def test_qa_failure_keeps_task_change(self, seeded, task_repo, alert_repo, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("alert store down")

        monkeypatch.setattr(alert_repo, "list_live_alerts", broken)
        seeded.update_task("A", {"category": "Concrete"})

        change = seeded.update_task("A", {"status": TaskStatus.IN_PROGRESS})

        assert change.alerts == []
        assert seeded.graph.get("A").status == TaskStatus.IN_PROGRESS
        stored = {t.id: t for t in task_repo.load_tasks(seeded.project_id)}
        assert stored["A"].status == TaskStatus.IN_PROGRESS


class TestMoveTask:

    def test_move_propagates_and_persists(self, seeded, task_repo, day):
        change = seeded.move_task("A", 3)

        assert {t.id for t in change.tasks} == {"A", "B", "C"}
        assert change.proposal.updates["B"] == DateRange(day(9), day(13))
        stored = {t.id: t for t in task_repo.load_tasks(seeded.project_id)}
        assert stored["C"].start_date == day(14)
        assert seeded.graph.find_schedule_conflicts() == []

    def test_zero_move_changes_nothing(self, seeded):
        change = seeded.move_task("A", 0)

        assert change.tasks == []
        assert change.proposal.is_empty

    def test_blocked_move_leaves_graph(self, seeded, day):
        with pytest.raises(ConstraintViolationError):
            seeded.move_task("B", -2)

        assert seeded.graph.get("B").start_date == day(6)

    def test_failed_save_rolls_back_whole_move(self, seeded, task_repo, day):
        task_repo.fail_saves = True

        with pytest.raises(PersistenceError):
            seeded.move_task("A", 3)

        assert [seeded.graph.get(t).start_date for t in ("A", "B", "C")] == [day(0), day(6), day(11)]

    def test_move_into_proximity_window_raises_alert(self, schedule, task_repo, make_task):
        task_repo.save_task_updates(schedule.project_id, [
            make_task("prep", 0, 0),
            make_task("pour", 10, 11, deps=["prep"], category="Concrete"),
        ])
        schedule.load()

        change = schedule.move_task("pour", -9)

        assert [a.rule_type for a in change.alerts] == ["itp", "pre_pour_checklist"]


class TestRemoveTask:

    def test_remove_leaf(self, seeded, task_repo):
        change = seeded.remove_task("C")

        assert change.task.id == "C"
        assert "C" not in {t.id for t in task_repo.load_tasks(seeded.project_id)}

    def test_remove_referenced_without_cascade(self, seeded):
        with pytest.raises(ReferentialIntegrityError):
            seeded.remove_task("A")

        assert "A" in seeded.graph

    def test_cascade_resaves_dependents(self, seeded, task_repo):
        change = seeded.remove_task("A", cascade=True)

        assert [t.id for t in change.tasks] == ["A", "B"]
        stored = {t.id: t for t in task_repo.load_tasks(seeded.project_id)}
        assert "A" not in stored
        assert stored["B"].dependencies == []


class TestQAAndTimeline:

    def test_scan_and_checklist_flow(self, schedule, task_repo, make_task):
        task_repo.save_task_updates(schedule.project_id, [make_task("wall", 1, 3, category="Masonry")])
        schedule.load()

        alert = schedule.scan_qa()[0]
        for item in alert.checklist:
            alert = schedule.complete_checklist_item(alert.id, item.id, completed_by="inspector")

        assert alert.status == AlertStatus.COMPLETED
        assert schedule.alert_summary().completed == 1

    def test_set_alert_status(self, schedule, make_alert):
        make_alert([("1", True)])

        alert = schedule.set_alert_status("alert-1", AlertStatus.IN_PROGRESS)

        assert alert.status == AlertStatus.IN_PROGRESS
        assert schedule.alert_summary().in_progress == 1

    def test_timeline_clamps_zoom(self, seeded, today):
        timeline = seeded.timeline(today, 30, pixels_per_day=500)

        assert timeline.pixels_per_day == 120
        assert timeline.total_width == 3600

    def test_timeline_default_zoom_and_critical_rows(self, seeded, make_task, today):
        seeded.add_task(make_task("X", 0, 1))

        timeline = seeded.timeline(today, 30)

        assert timeline.pixels_per_day == 30
        assert [row.task_id for row in timeline.rows] == ["A", "X", "B", "C"]
        assert {row.task_id for row in timeline.rows if row.is_critical} == {"A", "B", "C"}
        assert len(timeline.arrows) == 2
