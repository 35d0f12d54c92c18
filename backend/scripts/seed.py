#!/usr/bin/env python3
"""
Seed script to generate a large construction schedule for performance testing.

Generates a task DAG with realistic project structure:
- Multiple parallel trades per wave
- Diamond patterns (convergence points)
- Sequential chains

Everything runs against the in-memory collaborators; no storage is touched.

Usage:
    python -m scripts.seed [--nodes 500] [--seed 42] [--benchmark]

Options:
    --nodes N     Number of tasks to generate (default: 500)
    --seed N      Random seed for a reproducible graph
    --benchmark   Time a root-task drag, a timeline layout and a QA scan
"""

import argparse
import random
import time
from datetime import date, timedelta

from gantry.models import Task
from gantry.repositories import build_collaborators
from gantry.services.schedule import ProjectSchedule

CATEGORIES = ["Foundation", "Concrete", "Steel", "Masonry", "Site Work", "Electrical", "Plumbing"]


def generate_tasks(project_id: str, num_nodes: int = 500, start: date | None = None) -> list[Task]:
    """
    Generate tasks in "waves" (levels).

    Each wave depends on 1-3 tasks from the previous three waves and starts
    after every prerequisite ends.
    """
    start = start or date.today()
    num_waves = max(10, num_nodes // 50)  # ~50 tasks per wave
    tasks_per_wave = max(1, num_nodes // num_waves)

    print(f"Generating {num_nodes} tasks in {num_waves} waves...")

    tasks: list[Task] = []
    tasks_by_wave: list[list[Task]] = []

    for wave in range(num_waves):
        wave_size = tasks_per_wave if wave < num_waves - 1 else num_nodes - len(tasks)
        wave_tasks = []

        for i in range(wave_size):
            dependencies: list[Task] = []
            if wave > 0:
                available_waves = list(range(max(0, wave - 3), wave))
                for _ in range(random.randint(1, 3)):
                    dependencies.append(random.choice(tasks_by_wave[random.choice(available_waves)]))

            task_start = max((d.end_date for d in dependencies), default=start - timedelta(days=1))
            task_start += timedelta(days=1)
            duration = random.randint(1, 10)
            task = Task(
                project_id=project_id,
                title=f"Task W{wave:02d}-{i:03d}",
                category=random.choice(CATEGORIES),
                start_date=task_start,
                end_date=task_start + timedelta(days=duration - 1),
                dependencies=[d.id for d in dependencies],
                assigned_to=f"user-{random.randint(1, 5)}",
            )
            tasks.append(task)
            wave_tasks.append(task)

        tasks_by_wave.append(wave_tasks)

    return tasks


def print_stats(schedule: ProjectSchedule) -> None:
    graph = schedule.graph
    tasks = graph.tasks()
    num_deps = len(graph.edges())
    num_roots = sum(1 for t in tasks if not t.dependencies)
    num_leaves = sum(1 for t in tasks if not graph.successors(t.id))

    print("\n=== Graph Statistics ===")
    print(f"Tasks:        {len(tasks)}")
    print(f"Dependencies: {num_deps}")
    print(f"Root tasks:   {num_roots} (no predecessors)")
    print(f"Leaf tasks:   {num_leaves} (no successors)")
    print(f"Avg deps/task: {num_deps / len(tasks) if tasks else 0:.2f}")


def run_benchmark(schedule: ProjectSchedule) -> None:
    """Drag a root task by a week, lay out the timeline and run a QA scan."""
    root = next(t for t in schedule.graph.tasks() if not t.dependencies)

    print(f"\n=== Benchmark: Moving root task {root.title} by +7 days ===")
    start_time = time.time()
    change = schedule.move_task(root.id, 7)
    print(f"Move: {(time.time() - start_time) * 1000:.2f}ms, {len(change.tasks)} tasks shifted")

    start_time = time.time()
    timeline = schedule.timeline(root.start_date, 180)
    critical = sum(1 for row in timeline.rows if row.is_critical)
    print(
        f"Layout: {(time.time() - start_time) * 1000:.2f}ms, "
        f"{len(timeline.rows)} rows, {len(timeline.arrows)} arrows, {critical} critical"
    )

    start_time = time.time()
    alerts = schedule.scan_qa()
    print(f"QA scan: {(time.time() - start_time) * 1000:.2f}ms, {len(alerts)} alerts")


def main():
    parser = argparse.ArgumentParser(description="Generate a large construction schedule")
    parser.add_argument("--nodes", type=int, default=500, help="Number of tasks to create")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--project", type=str, default="perf-test", help="Project id")
    parser.add_argument("--benchmark", action="store_true", help="Run benchmark after seeding")

    args = parser.parse_args()
    if args.seed is not None:
        random.seed(args.seed)

    print("=== Gantry Seed Script ===")

    start_time = time.time()
    tasks = generate_tasks(args.project, args.nodes)
    print(f"Generation time: {time.time() - start_time:.2f}s")

    collaborators = build_collaborators()
    collaborators.tasks.save_task_updates(args.project, tasks)

    start_time = time.time()
    schedule = ProjectSchedule(
        args.project,
        tasks=collaborators.tasks,
        alerts=collaborators.alerts,
        notifications=collaborators.notifications,
    ).load()
    print(f"Load time: {time.time() - start_time:.2f}s")

    print_stats(schedule)

    if args.benchmark:
        run_benchmark(schedule)

    print("\n=== Seeding Complete ===")


if __name__ == "__main__":
    main()
