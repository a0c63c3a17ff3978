from celery.utils.log import get_task_logger

from mealplan.config import settings
from mealplan.errors import MealPlanError
from mealplan.logging import get_logger
from mealplan.schemas.recipe import RecipeCandidate
from mealplan.services.llm.gateway_client import GenerationGatewayClient
from mealplan.services.llm.prompts import MEAL_IMAGE_TEMPLATE
from mealplan.storage.db import get_session
from mealplan.storage.repositories import set_plan_image
from mealplan.utils.timing import time_span
from mealplan.workers.celery_app import celery_app

logger = get_task_logger(__name__)
app_logger = get_logger(__name__)


def meal_image_prompt(recipe: dict) -> str:
    ingredients = ", ".join(i.get("name", "") for i in (recipe.get("ingredients") or [])[:6] if i.get("name"))
    return MEAL_IMAGE_TEMPLATE.format(
        title=recipe.get("title", ""),
        description=recipe.get("description", ""),
        ingredients=ingredients or "seasonal produce",
    )


@celery_app.task(bind=True)
def generate_meal_images(self, plan_id: int, recipes: list[dict]):
    """Generate one image per recipe and attach it to the plan. A failed image is skipped."""
    task_id = self.request.id
    logger.info("images.batch_start task_id=%s plan_id=%s recipes=%s", task_id, plan_id, len(recipes))
    client = GenerationGatewayClient()
    generated = 0
    with time_span("images.batch", task_id=task_id, plan_id=plan_id, recipes=len(recipes)):
        for recipe in recipes:
            title = recipe.get("title", "")
            try:
                url = client.generate_image(meal_image_prompt(recipe))
            except MealPlanError as exc:
                app_logger.warning(
                    "images.recipe_failed task_id=%s plan_id=%s title=%s kind=%s error=%s",
                    task_id,
                    plan_id,
                    title,
                    exc.kind,
                    exc,
                )
                continue
            with get_session() as session:
                set_plan_image(session, plan_id, title, url)
            generated += 1
    app_logger.info("images.batch_done task_id=%s plan_id=%s generated=%s/%s", task_id, plan_id, generated, len(recipes))
    return {"plan_id": plan_id, "generated": generated}


def enqueue_image_batches(plan_id: int, recipes: list[RecipeCandidate]) -> int:
    """
    Fire one task per batch of image_batch_size recipes without waiting on any
    of them. Returns the number of batches queued.
    """
    if not settings.enable_image_generation or not recipes:
        return 0
    size = max(1, settings.image_batch_size)
    payloads = [r.model_dump(mode="json", include={"title", "description", "ingredients"}) for r in recipes]
    batches = 0
    for start in range(0, len(payloads), size):
        try:
            generate_meal_images.delay(plan_id, payloads[start : start + size])
        except Exception as exc:
            # Broker down: the plan is still usable without images
            app_logger.warning("images.enqueue_failed plan_id=%s batch=%s error=%s", plan_id, batches, exc)
            continue
        batches += 1
    app_logger.info("images.enqueued plan_id=%s recipes=%s batches=%s", plan_id, len(recipes), batches)
    return batches
