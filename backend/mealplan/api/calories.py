from fastapi import APIRouter, Depends

from mealplan.api.deps import current_user
from mealplan.schemas.inventory import CalorieEstimate, CalorieEstimateRequest
from mealplan.services.llm.calorie_estimator import estimate_calories
from mealplan.storage.models import UserProfile

router = APIRouter()


@router.post("/calories/estimate", response_model=CalorieEstimate)
def estimate(body: CalorieEstimateRequest, user: UserProfile = Depends(current_user)) -> CalorieEstimate:
    """Weekly calories and macros for consumption outside the plan."""
    return estimate_calories(body.description, body.image)
