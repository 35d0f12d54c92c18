"""
Pytest configuration and fixtures for Gantry tests.
"""

from datetime import date, timedelta

import pytest

from gantry.config import Settings
from gantry.models import ChecklistItem, QAAlert, Task
from gantry.repositories import (
    CollectingNotificationSink,
    InMemoryAlertRepository,
    InMemoryTaskRepository,
)
from gantry.services.graph import TaskGraph
from gantry.services.schedule import ProjectSchedule


# Fixed "today" so proximity rules are deterministic
TODAY = date(2026, 3, 2)
PROJECT_ID = "project-1"


def _day(offset: int) -> date:
    """Day N relative to TODAY."""
    return TODAY + timedelta(days=offset)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def project_id() -> str:
    return PROJECT_ID


@pytest.fixture
def day():
    """Day N relative to the fixed today: day(3)."""
    return _day


@pytest.fixture
def make_task():
    """Factory: make_task("A", 0, 5, deps=["X"], category="Concrete")."""

    def _make(task_id: str, start: int, end: int, deps=(), **fields) -> Task:
        fields.setdefault("title", f"Task {task_id}")
        fields.setdefault("project_id", PROJECT_ID)
        return Task(
            id=task_id,
            start_date=_day(start),
            end_date=_day(end),
            dependencies=list(deps),
            **fields,
        )

    return _make


@pytest.fixture
def make_graph(make_task):
    """Factory: make_graph(("A", 0, 5), ("B", 6, 10, ["A"]))."""

    def _make(*entries) -> TaskGraph:
        graph = TaskGraph(project_id=PROJECT_ID)
        for entry in entries:
            task_id, start, end, *rest = entry
            graph.add_task(make_task(task_id, start, end, deps=rest[0] if rest else ()))
        return graph

    return _make


@pytest.fixture
def alert_repo() -> InMemoryAlertRepository:
    return InMemoryAlertRepository()


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def sink() -> CollectingNotificationSink:
    return CollectingNotificationSink()


@pytest.fixture
def make_alert(alert_repo):
    """Factory: stores an alert whose checklist is [(item_id, required), ...]."""

    def _make(items, alert_id: str = "alert-1", **fields) -> QAAlert:
        fields.setdefault("project_id", PROJECT_ID)
        fields.setdefault("task_id", "task-1")
        fields.setdefault("rule_type", "itp")
        fields.setdefault("title", "ITP Required")
        fields.setdefault("due_date", TODAY)
        alert = QAAlert(
            id=alert_id,
            checklist=[
                ChecklistItem(id=item_id, text=f"Item {item_id}", required=required)
                for item_id, required in items
            ],
            **fields,
        )
        return alert_repo.upsert_alert(alert)

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(min_pixels_per_day=4, max_pixels_per_day=120, default_pixels_per_day=30)


@pytest.fixture
def schedule(task_repo, alert_repo, sink, settings) -> ProjectSchedule:
    return ProjectSchedule(
        PROJECT_ID,
        tasks=task_repo,
        alerts=alert_repo,
        notifications=sink,
        settings=settings,
        today=lambda: TODAY,
    )
