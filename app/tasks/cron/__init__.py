from typing import Any, Dict
import uuid

from .booking_reminder_job import booking_reminder_job_task
from .flight_status_job import flight_status_job_task
from .status_cache_sweep_job import status_cache_sweep_job_task
from .weather_alert_job import weather_alert_job_task

JOBS = {
    "booking_reminder_job": booking_reminder_job_task,
    "flight_status_job": flight_status_job_task,
    "weather_alert_job": weather_alert_job_task,
    "status_cache_sweep_job": status_cache_sweep_job_task,
}


def run_job(name: str) -> Dict[str, Any]:
    """Run one scheduled job in the current process, outside of beat."""
    try:
        task = JOBS[name]
    except KeyError:
        raise ValueError(
            f"Unknown job {name!r}, expected one of: {', '.join(sorted(JOBS))}"
        ) from None
    return task.apply(args=(f"manual_{name}_{uuid.uuid4().hex[:8]}",)).get()


__all__ = [
    "booking_reminder_job_task",
    "flight_status_job_task",
    "weather_alert_job_task",
    "status_cache_sweep_job_task",
    "JOBS",
    "run_job",
]
