from fastapi import APIRouter, Depends

from mealplan.errors import MealPlanError
from mealplan.logging import get_logger
from mealplan.schemas.plan import (
    DayPlan,
    GenerateMealPlanRequest,
    GenerateMealPlanResponse,
    MealPlanResponse,
    SchedulePlanRequest,
)
from mealplan.api.deps import current_user
from mealplan.services.planning.pipeline import generate_meal_plan, schedule_meal_plan
from mealplan.storage import db
from mealplan.storage.models import MealPlan, UserProfile
from mealplan.storage.repositories import get_current_plan

router = APIRouter(prefix="/meal-plans")
logger = get_logger(__name__)


class PlanNotFound(MealPlanError):
    kind = "not_found"
    status_code = 404
    user_message = "No meal plan yet."


def _plan_response(plan: MealPlan, shopping_list_id: int | None = None) -> MealPlanResponse:
    return MealPlanResponse(
        id=plan.id,
        title=plan.title,
        status=plan.status,
        duration_days=plan.duration_days,
        start_date=plan.start_date,
        days=[DayPlan.model_validate(d) for d in (plan.days or [])],
        total_cost=plan.total_cost,
        total_savings=plan.total_savings,
        shopping_list_id=shopping_list_id,
    )


@router.post("/generate", response_model=GenerateMealPlanResponse)
def generate(body: GenerateMealPlanRequest, user: UserProfile = Depends(current_user)) -> GenerateMealPlanResponse:
    """Generate candidates per meal type for the household to pick from."""
    return generate_meal_plan(user.id, body.duration_days, body.start_date)


@router.post("/schedule", response_model=MealPlanResponse)
def schedule(body: SchedulePlanRequest, user: UserProfile = Depends(current_user)) -> MealPlanResponse:
    with db.get_session() as session:
        scheduled = schedule_meal_plan(
            session,
            user.id,
            body.selected,
            body.duration_days,
            start_date=body.start_date,
            plan_id=body.plan_id,
        )
        return _plan_response(scheduled.plan, scheduled.shopping_list_id)


@router.get("/current", response_model=MealPlanResponse)
def current(user: UserProfile = Depends(current_user)) -> MealPlanResponse:
    with db.get_session() as session:
        plan = get_current_plan(session, user.id)
        if plan is None:
            raise PlanNotFound()
        return _plan_response(plan)
