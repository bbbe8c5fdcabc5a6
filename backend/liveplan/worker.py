"""
ARQ Worker for background summary refresh.

This worker handles:
- refresh_summary: Recomputes today's summary every 15 minutes and caches it
  in Redis for widgets that cannot call the engine themselves

Usage:
    arq liveplan.worker.WorkerSettings
"""

import json
from typing import Optional

from arq import Retry, cron
from arq.connections import RedisSettings

from liveplan.config import get_settings
from liveplan.database import get_planner
from liveplan.datekey import DateKey
from liveplan.exceptions import StorageError
from liveplan.logging_config import setup_logging, get_logger

# Initialize logging for the worker
setup_logging()
logger = get_logger(__name__)

settings = get_settings()

SUMMARY_KEY_PREFIX = "liveplan:summary:"
SUMMARY_TTL_SECONDS = 24 * 60 * 60


def parse_redis_url(url: str) -> RedisSettings:
    """Parse redis URL into RedisSettings."""
    # redis://localhost:6380/2 -> host=localhost, port=6380, database=2
    url = url.replace("redis://", "")
    database = 0
    if "/" in url:
        url, db = url.split("/", 1)
        if db:
            database = int(db)
    if ":" in url:
        host, port = url.split(":")
        return RedisSettings(host=host, port=int(port), database=database)
    return RedisSettings(host=url, database=database)


def summary_cache_key(day: DateKey) -> str:
    return f"{SUMMARY_KEY_PREFIX}{day}"


async def refresh_summary(ctx: dict, date: Optional[str] = None) -> str:
    """
    ARQ job: aggregate the summary for ``date`` (default today) and cache it.

    A storage failure is retried by the scheduler after
    ``refresh_retry_delay_seconds``; the engine itself never retries.
    """
    planner = ctx.get("planner") or get_planner()
    day = DateKey.parse(date) if date else planner.today()

    try:
        summary = planner.summary(day)
    except StorageError as exc:
        logger.warning(f"Summary refresh for {day} failed (try {ctx.get('job_try', 1)}): {exc}")
        raise Retry(defer=settings.refresh_retry_delay_seconds) from exc

    await ctx["redis"].set(
        summary_cache_key(day),
        json.dumps(summary.to_dict()),
        ex=SUMMARY_TTL_SECONDS,
    )
    logger.info(
        f"Refreshed summary {day}: outstanding={summary.outstanding_total} "
        f"overdue={summary.overdue_count}"
    )
    return f"Cached summary for {day}"


async def startup(ctx: dict) -> None:
    """Worker startup - open the store."""
    logger.info("ARQ Worker starting up...")
    logger.info(f"Redis: {settings.redis_url}")
    ctx["planner"] = get_planner()


async def shutdown(ctx: dict) -> None:
    """Worker shutdown - cleanup."""
    logger.info("ARQ Worker shutting down...")


class WorkerSettings:
    """ARQ Worker configuration."""

    functions = [refresh_summary]
    cron_jobs = [cron(refresh_summary, minute={0, 15, 30, 45}, run_at_startup=True)]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = parse_redis_url(settings.redis_url)
    max_jobs = 10
    max_tries = 5
    job_timeout = 60
