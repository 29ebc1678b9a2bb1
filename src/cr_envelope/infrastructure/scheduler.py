"""Active expiry path: periodic sweep on an APScheduler interval job."""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.cr_envelope.application.resolver import ExpiryResolver

SWEEP_JOB_ID = "red_envelope_expire"


def build_scheduler(resolver: ExpiryResolver, interval_seconds: int) -> AsyncIOScheduler:
    """Scheduler with the sweep job registered; caller starts and shuts it down."""
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        resolver.sweep,
        trigger="interval",
        seconds=interval_seconds,
        id=SWEEP_JOB_ID,
        max_instances=1,  # a slow sweep is never overlapped by the next tick
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
