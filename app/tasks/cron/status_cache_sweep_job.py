import asyncio

from app.celery import celery
from app.services.notifications import get_engine
from app.utils.context import set_request_id
from app.utils.logging import get_logger

logger = get_logger()


@celery.task(bind=True, max_retries=0)
def status_cache_sweep_job_task(self, request_id: str):
    """
    Hourly task removing stale flight status entries from the worker's cache.

    Args:
        request_id: The request ID from the scheduled beat task
    """
    return asyncio.run(_async_status_cache_sweep(request_id))


async def _async_status_cache_sweep(request_id: str):
    set_request_id(request_id)
    logger_ctx = logger.bind(request_id=request_id)

    try:
        cache = get_engine().cache
        removed = cache.sweep()

        logger_ctx.info(
            "Status cache sweep completed", removed=removed, remaining=len(cache)
        )

        return {
            "success": True,
            "removed": removed,
            "remaining": len(cache),
            "request_id": request_id,
        }

    except Exception as e:
        logger_ctx.error(
            "Status cache sweep exception",
            request_id=request_id,
            error=str(e),
            exc_info=True,
        )

        return {"success": False, "error": str(e), "request_id": request_id}
