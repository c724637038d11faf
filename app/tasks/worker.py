"""
ARQ worker configuration and job definitions.

Run worker with: arq app.tasks.worker.WorkerSettings
"""

from typing import Any

from arq.worker import func

from app.config import settings
from app.core.logging import configure_logging, get_logger
from app.tasks.email_jobs import send_password_reset_email_job
from app.tasks.queue import get_redis_settings

logger = get_logger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    """Worker startup - configure logging like the API process."""
    configure_logging()
    logger.info("arq_worker_starting", redis_url=settings.ARQ_REDIS_URL)


async def shutdown(ctx: dict[str, Any]) -> None:
    logger.info("arq_worker_shutdown")


class WorkerSettings:
    """ARQ worker configuration."""

    redis_settings = get_redis_settings()

    # Worker behavior
    max_jobs = 10
    job_timeout = 120  # 2 minutes max per job
    keep_result = settings.ARQ_KEEP_RESULT

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    functions = [
        # Results hold the job kwargs, which include the plaintext reset token
        func(send_password_reset_email_job, max_tries=settings.ARQ_MAX_TRIES, keep_result=0),
    ]
