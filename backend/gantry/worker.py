"""
ARQ Worker for background QA scans.

This worker handles:
- scan_project_qa: schedule-proximity QA scan of one project (on demand)
- scan_configured_projects: daily cron scan of GANTRY_QA_SCAN_PROJECT_IDS

Usage:
    arq gantry.worker.WorkerSettings
"""

import importlib
from typing import Any

from arq import create_pool, cron
from arq.connections import RedisSettings, ArqRedis

from gantry.config import get_settings
from gantry.services.schedule import ProjectSchedule
from gantry.logging_config import setup_logging, get_logger

# Initialize logging for the worker
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


def parse_redis_url(url: str) -> RedisSettings:
    """Parse redis URL into RedisSettings."""
    return RedisSettings.from_dsn(url)


def load_collaborators(factory_path: str) -> Any:
    """Resolve a "module:callable" path and call it."""
    module_name, _, attr = factory_path.partition(":")
    if not attr:
        raise ValueError(f"Expected 'module:callable', got {factory_path!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    return factory()


def build_schedule(ctx: dict, project_id: str) -> ProjectSchedule:
    collaborators = ctx["collaborators"]
    return ProjectSchedule(
        project_id,
        tasks=collaborators.tasks,
        alerts=collaborators.alerts,
        notifications=collaborators.notifications,
        settings=settings,
    ).load()


async def scan_project_qa(ctx: dict, project_id: str) -> str:
    """
    ARQ job: run the schedule-proximity QA scan for one project.

    Returns:
        Status message
    """
    logger.info(
        f"QA scan job started for project {project_id}",
        extra={"project_id": project_id, "job_id": ctx.get("job_id")},
    )
    schedule = build_schedule(ctx, project_id)
    if len(schedule.graph) == 0:
        return f"Project {project_id} has no tasks"

    created = schedule.scan_qa()
    return f"Created {len(created)} QA alerts for project {project_id}"


async def scan_configured_projects(ctx: dict) -> str:
    """ARQ cron job: scan every configured project; one failure does not stop the rest."""
    total = 0
    failed = []
    for project_id in settings.qa_scan_project_ids:
        try:
            schedule = build_schedule(ctx, project_id)
            total += len(schedule.scan_qa())
        except Exception:
            logger.exception(f"QA scan failed for project {project_id}", extra={"project_id": project_id})
            failed.append(project_id)

    message = f"Scanned {len(settings.qa_scan_project_ids)} projects, created {total} QA alerts"
    if failed:
        message += f" ({len(failed)} failed: {', '.join(failed)})"
    return message


async def startup(ctx: dict) -> None:
    """Worker startup - resolve the collaborators."""
    logger.info("ARQ Worker starting up...")
    logger.info(f"Redis: {settings.redis_url}")
    ctx["collaborators"] = load_collaborators(settings.collaborators_factory)


async def shutdown(ctx: dict) -> None:
    """Worker shutdown - cleanup."""
    logger.info("ARQ Worker shutting down...")


class WorkerSettings:
    """ARQ Worker configuration."""

    functions = [scan_project_qa]
    cron_jobs = [
        cron(
            scan_configured_projects,
            hour={settings.qa_scan_hour},
            minute={settings.qa_scan_minute},
            run_at_startup=False,
        ),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = parse_redis_url(settings.redis_url)
    max_jobs = 10
    job_timeout = 300  # 5 minutes max per job


# Redis pool for enqueuing jobs from the surrounding product
_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ Redis pool for enqueuing jobs."""
    global _arq_pool
    if _arq_pool is None:
        logger.debug("Creating ARQ Redis pool")
        _arq_pool = await create_pool(parse_redis_url(settings.redis_url))
    return _arq_pool


async def enqueue_qa_scan(project_id: str) -> None:
    """Enqueue an on-demand QA scan for a project."""
    pool = await get_arq_pool()
    logger.debug(f"Enqueuing QA scan job: project={project_id}")
    await pool.enqueue_job("scan_project_qa", project_id)
