from contextvars import ContextVar
from typing import Optional

# Run id of the job executing in the current context, e.g. "flight_status_cron"
_job_run_id: ContextVar[Optional[str]] = ContextVar("job_run_id", default=None)


def get_request_id() -> Optional[str]:
    return _job_run_id.get()


def set_request_id(request_id: str) -> None:
    """Tag the current context so library logs routed through loguru carry the run id."""
    _job_run_id.set(request_id)
