from datetime import timedelta

from .settings import settings

# Basic Celery Configuration
broker_url = f"redis://:{settings.REDIS_PASSWORD}@{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
result_backend = f"redis://:{settings.REDIS_PASSWORD}@{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"

# Task Discovery
include = ["app.tasks"]

# Timezone Configuration
timezone = "UTC"
enable_utc = True

# Task Result Configuration
result_expires = 3600

# Task Serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"

# Task Execution Configuration
task_track_started = True
task_time_limit = 20 * 60  # 20 minutes
task_soft_time_limit = 15 * 60  # 15 minutes

# Worker Configuration
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# No retries: the next beat tick is the retry
task_acks_late = True
task_reject_on_worker_lost = True
task_max_retries = 0

# Each job runs on its own interval; a slow job never holds back the others
beat_schedule = {
    "booking-reminder-job": {
        "task": "app.tasks.cron.booking_reminder_job.booking_reminder_job_task",
        "schedule": timedelta(minutes=settings.REMINDER_JOB_INTERVAL_MINUTES),
        "args": ("booking_reminder_cron",),
    },
    "flight-status-job": {
        "task": "app.tasks.cron.flight_status_job.flight_status_job_task",
        "schedule": timedelta(minutes=settings.FLIGHT_STATUS_JOB_INTERVAL_MINUTES),
        "args": ("flight_status_cron",),
    },
    "weather-alert-job": {
        "task": "app.tasks.cron.weather_alert_job.weather_alert_job_task",
        "schedule": timedelta(hours=settings.WEATHER_JOB_INTERVAL_HOURS),
        "args": ("weather_alert_cron",),
    },
    "status-cache-sweep-job": {
        "task": "app.tasks.cron.status_cache_sweep_job.status_cache_sweep_job_task",
        "schedule": timedelta(minutes=settings.CACHE_SWEEP_INTERVAL_MINUTES),
        "args": ("status_cache_sweep_cron",),
    },
}

# Default Queue
task_default_queue = "tripnotifier"

# Beat Scheduler Configuration
beat_schedule_filename = "tmp/celerybeat-schedule"
