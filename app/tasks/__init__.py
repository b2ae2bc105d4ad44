from .cron import *

__all__ = [
    # Scheduled/Cron Tasks
    "booking_reminder_job_task",
    "flight_status_job_task",
    "weather_alert_job_task",
    "status_cache_sweep_job_task",
]
