from celery import Celery

from campushub.core.config import get_redis_url


def make_celery(app_name: str = "campushub") -> Celery:
    redis_url = get_redis_url()
    celery = Celery(app_name, broker=redis_url, backend=redis_url)
    celery.conf.task_serializer = "json"
    celery.conf.result_serializer = "json"
    celery.conf.accept_content = ["json"]
    celery.conf.result_persistent = False
    celery.conf.task_track_started = True
    # snapshots must be written in the order they were taken
    celery.conf.worker_prefetch_multiplier = 1
    celery.conf.task_acks_late = True
    return celery


celery_app = make_celery()
