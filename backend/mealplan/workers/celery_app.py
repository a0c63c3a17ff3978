from celery import Celery

from mealplan.config import settings
from mealplan.logging import configure_logging, get_logger


celery_app = Celery("mealplan", broker=settings.redis_url, backend=settings.redis_url)
celery_app.conf.task_routes = {"mealplan.workers.tasks.*": {"queue": "celery"}}
celery_app.conf.worker_concurrency = settings.celery_worker_concurrency
# Image results are written to the plan row; nobody reads task results
celery_app.conf.task_ignore_result = True

# Import tasks so they are registered with the worker
from mealplan.workers import tasks  # noqa: F401

configure_logging()
logger = get_logger(__name__)
logger.info(
    "celery.configured broker=%s worker_concurrency=%s image_batch_size=%s",
    settings.redis_url,
    settings.celery_worker_concurrency,
    settings.image_batch_size,
)
