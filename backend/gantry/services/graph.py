"""
Task graph model using NetworkX.

This module handles:
- The in-memory task set of one project and its dependency edges
- Cycle detection for dependency validation
- Topological ordering for date propagation
- Atomic application of reschedule proposals
"""

from collections.abc import Iterable, Mapping
from typing import Any

import networkx as nx
import pydantic

from gantry.exceptions import (
    CycleDetectedError,
    DuplicateTaskError,
    NotFoundError,
    ReferentialIntegrityError,
    SelfDependencyError,
    ValidationError,
)
from gantry.logging_config import get_logger
from gantry.models import Task, TaskStatus
from gantry.schemas import DateRange, TaskUpdate

logger = get_logger(__name__)


def _validate_task(data: dict[str, Any]) -> Task:
    """Build a Task, converting pydantic errors into our ValidationError."""
    try:
        return Task.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Invalid task fields for {data.get('id')}",
            details=[{
                "loc": [str(part) for part in err["loc"]],
                "msg": err["msg"],
                "type": err["type"],
            } for err in exc.errors()],
        ) from exc


def _check_acyclic(graph: nx.DiGraph, task_id: str | None = None) -> None:
    """Raise CycleDetectedError if the candidate graph has a cycle."""
    try:
        cycle_edges = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return
    cycle = [edge[0] for edge in cycle_edges] + [cycle_edges[-1][1]]
    logger.warning(f"Cycle detected while changing task {task_id}: {' -> '.join(cycle)}")
    raise CycleDetectedError(task_id or cycle[0], cycle=cycle)


class TaskGraph:
    """
    Tasks of one project and their dependency edges.

    Edges go from prerequisite -> dependent. Every mutation is validated on a
    copy of the underlying DiGraph and only swapped in once it passes, so a
    rejected call leaves the graph untouched.
    """

    def __init__(self, project_id: str | None = None):
        self.project_id = project_id
        self._graph = nx.DiGraph()
        self._next_seq = 0

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task], project_id: str | None = None) -> "TaskGraph":
        """
        Build a graph from a loaded snapshot, whatever order the tasks come in.

        Tasks are inserted prerequisites-first; among independent tasks the
        input order is kept as creation order.
        """
        tasks = list(tasks)
        by_id: dict[str, Task] = {}
        for task in tasks:
            if task.id in by_id:
                raise DuplicateTaskError(task.id)
            by_id[task.id] = task

        position = {task.id: index for index, task in enumerate(tasks)}
        ordering = nx.DiGraph()
        ordering.add_nodes_from(by_id)
        for task in tasks:
            for dep_id in task.dependencies:
                if dep_id not in by_id:
                    raise NotFoundError("Dependency task", dep_id)
                ordering.add_edge(dep_id, task.id)

        _check_acyclic(ordering)
        order = list(nx.lexicographical_topological_sort(ordering, key=position.__getitem__))

        graph = cls(project_id=project_id)
        for task_id in order:
            graph.add_task(by_id[task_id])
        logger.debug(f"Loaded graph with {len(graph)} tasks for project={project_id}")
        return graph

    # =========================================================================
    # Read access
    # =========================================================================

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def get(self, task_id: str) -> Task:
        if task_id not in self._graph:
            raise NotFoundError("Task", task_id)
        return self._graph.nodes[task_id]["task"]

    def tasks(self) -> list[Task]:
        """All tasks in creation order."""
        nodes = sorted(self._graph.nodes(data=True), key=lambda item: item[1]["seq"])
        return [data["task"] for _, data in nodes]

    def edges(self) -> list[tuple[str, str]]:
        """(prerequisite, dependent) pairs, grouped by dependent in creation order."""
        return [(dep_id, task.id) for task in self.tasks() for dep_id in task.dependencies]

    def predecessors(self, task_id: str) -> list[Task]:
        return [self.get(dep_id) for dep_id in self.get(task_id).dependencies]

    def successors(self, task_id: str) -> list[Task]:
        self.get(task_id)
        return sorted(
            (self.get(succ) for succ in self._graph.successors(task_id)),
            key=self._seq,
        )

    def descendants(self, task_id: str) -> set[str]:
        """Ids of every task that transitively depends on task_id."""
        self.get(task_id)
        return nx.descendants(self._graph, task_id)

    def copy(self) -> "TaskGraph":
        """Independent snapshot; tasks are immutable so nodes can be shared."""
        clone = TaskGraph(project_id=self.project_id)
        clone._graph = self._graph.copy()
        clone._next_seq = self._next_seq
        return clone

    def _seq(self, task: Task) -> int:
        return self._graph.nodes[task.id]["seq"]

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_task(self, task: Task) -> Task:
        """
        Add a task with its dependency edges.

        Rejects a duplicate id, an unresolved dependency id, and any edge set
        that would close a cycle.
        """
        if task.id in self._graph:
            raise DuplicateTaskError(task.id)
        self._check_dependencies(task.id, task.dependencies)

        candidate = self._graph.copy()
        candidate.add_node(task.id, task=task, seq=self._next_seq)
        for dep_id in task.dependencies:
            candidate.add_edge(dep_id, task.id)
        _check_acyclic(candidate, task.id)

        self._graph = candidate
        self._next_seq += 1
        logger.info(f"Added task: id={task.id} title='{task.title}' category={task.category!r}")
        return task

    def update_task(self, task_id: str, changes: TaskUpdate | Mapping[str, Any]) -> Task:
        """
        Apply a partial update.

        When dependencies change, acyclicity is re-checked over the whole graph.
        """
        current = self.get(task_id)
        if isinstance(changes, TaskUpdate):
            data = changes.model_dump(exclude_unset=True)
        else:
            data = dict(changes)

        if data.get("id", task_id) != task_id:
            raise ValidationError(
                "Task id cannot be changed",
                details=[{"loc": ["id"], "msg": "id is immutable", "type": "immutable_field"}],
            )

        updated = _validate_task({**current.model_dump(), **data})

        candidate = self._graph.copy()
        if updated.dependencies != current.dependencies:
            self._check_dependencies(task_id, updated.dependencies)
            candidate.remove_edges_from(list(candidate.in_edges(task_id)))
            for dep_id in updated.dependencies:
                candidate.add_edge(dep_id, task_id)
            _check_acyclic(candidate, task_id)

        candidate.nodes[task_id]["task"] = updated
        self._graph = candidate
        logger.info(f"Updated task {task_id}: {sorted(data)}")
        return updated

    def remove_task(self, task_id: str, cascade: bool = False) -> Task:
        """
        Remove a task.

        Fails while other tasks depend on it unless cascade=True, which strips
        the reference from each dependent (the dependents themselves stay).
        """
        task = self.get(task_id)
        dependents = [succ.id for succ in self.successors(task_id)]
        if dependents and not cascade:
            logger.warning(f"Refusing to remove task {task_id}: still required by {dependents}")
            raise ReferentialIntegrityError(task_id, dependents)

        candidate = self._graph.copy()
        for dependent_id in dependents:
            dependent = candidate.nodes[dependent_id]["task"]
            candidate.nodes[dependent_id]["task"] = dependent.model_copy(update={
                "dependencies": [d for d in dependent.dependencies if d != task_id],
            })
        candidate.remove_node(task_id)

        self._graph = candidate
        logger.info(
            f"Removed task {task_id}: '{task.title}'"
            + (f" (dropped reference from {len(dependents)} dependents)" if dependents else "")
        )
        return task

    def apply_date_updates(self, updates: Mapping[str, DateRange]) -> list[Task]:
        """
        Apply a set of new date ranges all-or-nothing.

        Every id and range is validated before any task is replaced.
        """
        updated_tasks = []
        for task_id, dates in updates.items():
            current = self.get(task_id)
            updated_tasks.append(_validate_task({
                **current.model_dump(),
                "start_date": dates.start_date,
                "end_date": dates.end_date,
            }))

        if not updated_tasks:
            return []

        candidate = self._graph.copy()
        for task in updated_tasks:
            candidate.nodes[task.id]["task"] = task
        self._graph = candidate

        logger.info(f"Applied date updates to {len(updated_tasks)} tasks")
        return updated_tasks

    def _check_dependencies(self, task_id: str, dependencies: list[str]) -> None:
        if task_id in dependencies:
            logger.warning(f"Self-dependency rejected: {task_id}")
            raise SelfDependencyError(task_id)
        for dep_id in dependencies:
            if dep_id not in self._graph:
                raise NotFoundError("Dependency task", dep_id)

    # =========================================================================
    # Ordering and checks
    # =========================================================================

    def topological_order(self) -> list[Task]:
        """
        Tasks ordered so that for every edge (u, v), u comes before v.

        Ties are broken by creation order so the result is deterministic.
        """
        try:
            order = list(nx.lexicographical_topological_sort(
                self._graph, key=lambda node: self._graph.nodes[node]["seq"],
            ))
        except nx.NetworkXUnfeasible:
            # Unreachable while the mutation checks hold
            logger.error("Cycle detected in task graph")
            _check_acyclic(self._graph)
            raise CycleDetectedError(self.project_id or "")
        return [self._graph.nodes[node]["task"] for node in order]

    def find_schedule_conflicts(self) -> list[tuple[str, str]]:
        """(prerequisite, dependent) pairs where the dependent starts before the prerequisite ends."""
        conflicts = []
        for dep_id, task_id in self.edges():
            if self.get(task_id).start_date <= self.get(dep_id).end_date:
                conflicts.append((dep_id, task_id))
        return conflicts

    def blocking_prerequisites(self, task_id: str) -> list[Task]:
        """Prerequisites that have not reached completed yet."""
        return [
            prereq for prereq in self.predecessors(task_id)
            if prereq.status != TaskStatus.COMPLETED
        ]
