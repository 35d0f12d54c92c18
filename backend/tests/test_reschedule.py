"""
Test drag rescheduling: forward propagation through dependents, preserved
slack, and the prerequisite constraint on the dragged task.
"""

import pytest

from gantry.exceptions import ConstraintViolationError, NotFoundError
from gantry.schemas import DateRange
from gantry.services.reschedule import apply_move, earliest_start, propose_move, push_dependents


class TestForwardPropagation:
    """Moving a task later pushes dependents only as far as they overlap."""

    def test_dependent_pushed_by_overlap(self, make_graph, day):
        """
        Scenario: A day 0-5 -> B day 6-10, A dragged +3
        Expected: A day 3-8, B day 9-13
        """
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]))

        proposal = propose_move(graph, "A", 3)

        assert proposal.updates == {
            "A": DateRange(day(3), day(8)),
            "B": DateRange(day(9), day(13)),
        }
        assert proposal.shifted_dependents == ["B"]

    def test_slack_absorbs_move(self, make_graph, day):
        """
        Scenario: A day 0-4 -> B day 19-21 (user left slack), A dragged +5
        Expected: B keeps its dates, only A moves
        """
        graph = make_graph(("A", 0, 4), ("B", 19, 21, ["A"]))

        proposal = propose_move(graph, "A", 5)

        assert proposal.updates == {"A": DateRange(day(5), day(9))}
        assert proposal.shifted_dependents == []

    def test_cascade_with_partial_slack(self, make_graph, day):
        """
        Scenario: A day 0-4 -> B day 7-9 -> C day 10-11, A dragged +4
        Expected: B absorbs 2 days of slack and moves 2; C moves 2
        """
        graph = make_graph(("A", 0, 4), ("B", 7, 9, ["A"]), ("C", 10, 11, ["B"]))

        proposal = propose_move(graph, "A", 4)

        assert proposal.updates["B"] == DateRange(day(9), day(11))
        assert proposal.updates["C"] == DateRange(day(12), day(13))

    def test_long_chain_propagation(self, make_graph, day):
        specs = [("T0", 0, 1)]
        for index in range(1, 20):
            start = index * 2
            specs.append((f"T{index}", start, start + 1, [f"T{index - 1}"]))
        graph = make_graph(*specs)

        proposal = propose_move(graph, "T0", 1)

        assert len(proposal.updates) == 20
        assert proposal.updates["T19"] == DateRange(day(39), day(40))

    def test_diamond_uses_latest_prerequisite(self, make_graph, day):
        """
        Scenario: A -> (B short, C long) -> D, A dragged +2
        Expected: D starts the day after C, the later of its two prerequisites
        """
        graph = make_graph(
            ("A", 0, 1),
            ("B", 2, 3, ["A"]),
            ("C", 2, 6, ["A"]),
            ("D", 7, 8, ["B", "C"]),
        )

        proposal = propose_move(graph, "A", 2)

        assert proposal.updates["B"] == DateRange(day(4), day(5))
        assert proposal.updates["C"] == DateRange(day(4), day(8))
        assert proposal.updates["D"] == DateRange(day(9), day(10))

    def test_unrelated_tasks_untouched(self, make_graph):
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]), ("X", 0, 1))

        proposal = propose_move(graph, "A", 3)

        assert "X" not in proposal.updates

    def test_dependent_held_by_other_prerequisite_stays(self, make_graph, day):
        """
        Scenario: B has two prerequisites; only the unmoved one constrains it
        Expected: B stays put
        """
        graph = make_graph(("A", 0, 1), ("Z", 0, 9), ("B", 10, 12, ["A", "Z"]))

        proposal = propose_move(graph, "A", 3)

        assert proposal.updates == {"A": DateRange(day(3), day(4))}

    def test_propose_does_not_modify_graph(self, make_graph, day):
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]))

        propose_move(graph, "A", 3)

        assert graph.get("A").start_date == day(0)
        assert graph.get("B").start_date == day(6)


class TestBackwardMoves:

    def test_moving_earlier_never_pulls_dependents(self, make_graph, day):
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]))

        proposal = propose_move(graph, "A", -4)

        assert proposal.updates == {"A": DateRange(day(-4), day(1))}

    def test_dependent_can_move_back_to_earliest_start(self, make_graph, day):
        graph = make_graph(("A", 0, 5), ("B", 9, 10, ["A"]))

        proposal = propose_move(graph, "B", -3)

        assert proposal.updates == {"B": DateRange(day(6), day(7))}

    def test_move_before_prerequisite_end_rejected(self, make_graph, day):
        """
        Scenario: A day 0-5 -> B day 6-10, B dragged -1
        Expected: ConstraintViolationError naming A; the graph is unchanged
        """
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]))

        with pytest.raises(ConstraintViolationError) as exc_info:
            apply_move(graph, "B", -1)

        error = exc_info.value
        assert error.blocking_task_id == "A"
        assert error.earliest_start == day(6)
        assert error.proposed_start == day(5)
        assert error.to_response().error == "constraint_violation"
        assert graph.get("B").start_date == day(6)

    def test_latest_prerequisite_blocks(self, make_graph):
        graph = make_graph(("A", 0, 2), ("Z", 0, 7), ("B", 8, 10, ["A", "Z"]))

        with pytest.raises(ConstraintViolationError) as exc_info:
            propose_move(graph, "B", -2)

        assert exc_info.value.blocking_task_id == "Z"


class TestEdgeCases:

    def test_zero_delta_is_empty(self, make_graph):
        graph = make_graph(("A", 0, 5), ("B", 3, 10, ["A"]))

        proposal = propose_move(graph, "A", 0)

        assert proposal.is_empty
        assert proposal.day_delta == 0

    def test_unknown_task(self, make_graph):
        graph = make_graph(("A", 0, 5))

        with pytest.raises(NotFoundError):
            propose_move(graph, "nope", 1)

    def test_root_task_moves_freely(self, make_graph, day):
        graph = make_graph(("A", 0, 5))

        proposal = propose_move(graph, "A", -30)

        assert proposal.updates == {"A": DateRange(day(-30), day(-25))}

    def test_duration_preserved(self, make_graph):
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]), ("C", 11, 20, ["B"]))

        apply_move(graph, "A", 7)

        assert [graph.get(t).duration_days for t in ("A", "B", "C")] == [6, 5, 10]
        assert graph.find_schedule_conflicts() == []


class TestEarliestStart:

    def test_no_prerequisites(self, make_graph):
        graph = make_graph(("A", 0, 5))

        assert earliest_start(graph, "A") is None

    def test_day_after_latest_end(self, make_graph, day):
        graph = make_graph(("A", 0, 5), ("Z", 0, 8), ("B", 9, 10, ["A", "Z"]))

        assert earliest_start(graph, "B") == (day(9), "Z")

    def test_overrides_take_precedence(self, make_graph, day):
        graph = make_graph(("A", 0, 5), ("B", 9, 10, ["A"]))

        assert earliest_start(graph, "B", {"A": DateRange(day(3), day(12))}) == (day(13), "A")


class TestPushDependents:

    def test_pushes_after_prerequisite_edit(self, make_graph, day):
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]), ("C", 14, 15, ["B"]), ("D", 0, 1))
        graph.update_task("A", {"end_date": day(8)})

        updates = push_dependents(graph, "A")

        assert updates == {"B": DateRange(day(9), day(13))}

    def test_extends_given_updates(self, make_graph, day):
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]))
        updates = {"A": DateRange(day(2), day(7))}

        result = push_dependents(graph, "A", updates)

        assert result is updates
        assert updates["B"] == DateRange(day(8), day(12))

    def test_no_overlap_no_updates(self, make_graph):
        graph = make_graph(("A", 0, 5), ("B", 6, 10, ["A"]))

        assert push_dependents(graph, "A") == {}
