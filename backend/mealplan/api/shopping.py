from fastapi import APIRouter, Depends

from mealplan.api.deps import current_user
from mealplan.logging import get_logger
from mealplan.schemas.shopping import GenerateShoppingListRequest, GenerateShoppingListResponse
from mealplan.services.shopping.list_builder import generate_shopping_list
from mealplan.storage import db
from mealplan.storage.models import MealPlan, UserProfile

router = APIRouter()
logger = get_logger(__name__)


@router.post("/shopping-lists", response_model=GenerateShoppingListResponse)
def create_shopping_list(
    body: GenerateShoppingListRequest, user: UserProfile = Depends(current_user)
) -> GenerateShoppingListResponse:
    with db.get_session() as session:
        plan_id = body.plan_id
        if plan_id is not None:
            plan = session.get(MealPlan, plan_id)
            if plan is None or plan.user_id != user.id:
                logger.info("shopping_list.plan_ignored user_id=%s plan_id=%s", user.id, plan_id)
                plan_id = None
        shopping_list_id, result = generate_shopping_list(session, user.id, body.recipes, plan_id=plan_id)
    return GenerateShoppingListResponse(
        shopping_list_id=shopping_list_id,
        item_count=len(result.items),
        total_price=result.total_price,
        total_savings=result.total_savings,
    )
