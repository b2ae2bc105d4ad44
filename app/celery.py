from celery import Celery

celery = Celery("trip_notifier")

# Broker, beat schedule and worker settings live in app.config.celeryconfig
celery.config_from_object("app.config.celeryconfig")
