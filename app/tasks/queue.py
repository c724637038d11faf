"""
Queue client for enqueuing arq jobs from API endpoints.

Enqueueing never raises: a request that schedules an email must not fail
because Redis is unavailable. Callers get None back instead of a job id.
"""

from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from app.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# Global pool instance (created on first use)
_pool: ArqRedis | None = None


def get_redis_settings() -> RedisSettings:
    return RedisSettings.from_dsn(settings.ARQ_REDIS_URL)


async def get_queue() -> ArqRedis:
    """Get or create the arq Redis connection pool."""
    global _pool
    if _pool is None:
        _pool = await create_pool(get_redis_settings())
        logger.info("arq_pool_created", redis_url=settings.ARQ_REDIS_URL)
    return _pool


async def enqueue_job(
    function_name: str,
    *,
    _job_id: str | None = None,
    _defer_by: float | None = None,
    **kwargs: Any,
) -> str | None:
    """
    Enqueue a job to the arq worker.

    Args:
        function_name: Name of registered arq function
        _job_id: Optional custom job ID (arq skips duplicates of a live id)
        _defer_by: Optional delay in seconds before job runs
        **kwargs: Keyword arguments for the function

    Returns:
        Job ID if enqueued successfully, None otherwise

    Example:
        await enqueue_job("send_password_reset_email_job", user_id=user.id, token=token)
    """
    try:
        pool = await get_queue()
        job = await pool.enqueue_job(
            function_name,
            _job_id=_job_id,
            _defer_by=_defer_by,
            **kwargs,
        )
    except Exception as e:
        logger.error(
            "job_enqueue_error",
            function=function_name,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None

    if job is None:
        logger.warning("job_enqueue_skipped", function=function_name, job_id=_job_id)
        return None

    # kwargs may hold secrets (reset tokens), so only names are logged
    logger.debug("job_enqueued", function=function_name, job_id=job.job_id, args=sorted(kwargs))
    return job.job_id


async def close_queue() -> None:
    """Close arq Redis connection pool (call on shutdown)."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("arq_pool_closed")
