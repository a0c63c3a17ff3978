"""
Estimate calories and macros for consumption outside the meal plan
(beer at the weekend, a daily snack) from a description and/or a photo.

The model states whether its numbers are per week or per day. Daily numbers
are multiplied by 7 so the result is always weekly.
"""

import dspy

from mealplan.config import settings
from mealplan.errors import UpstreamOtherError
from mealplan.logging import get_logger
from mealplan.schemas.inventory import CalorieBreakdownItem, CalorieEstimate
from mealplan.services.llm.dspy_client import run_with_logging
from mealplan.services.llm.prompts import CALORIE_ESTIMATE_PROMPT_VERSION, CALORIE_ESTIMATE_TEMPLATE
from mealplan.utils.rounding import round_half_up

logger = get_logger(__name__)

DAYS_PER_WEEK = 7


class CalorieEstimateSignature(dspy.Signature):
    """Estimate calories and macros for the described food and drink."""

    description: str = dspy.InputField(desc="what the person eats or drinks, in their own words")
    prompt_template: str = dspy.InputField()
    calories: float = dspy.OutputField(desc="total kcal for the stated period")
    protein: float = dspy.OutputField(desc="grams")
    carbs: float = dspy.OutputField(desc="grams")
    fat: float = dspy.OutputField(desc="grams")
    per_week: bool = dspy.OutputField(desc="true when the description is weekly consumption")
    calculation: str = dspy.OutputField(desc="the arithmetic, item by item")
    breakdown: list[CalorieBreakdownItem] = dspy.OutputField(desc="one entry per item with its kcal")


class CalorieImageEstimateSignature(dspy.Signature):
    """Estimate calories and macros for the food in the photo, using the description as context."""

    description: str = dspy.InputField(desc="what the person says about the photo")
    image: dspy.Image = dspy.InputField(desc="photo of the food or drink")
    prompt_template: str = dspy.InputField()
    calories: float = dspy.OutputField(desc="total kcal for the stated period")
    protein: float = dspy.OutputField(desc="grams")
    carbs: float = dspy.OutputField(desc="grams")
    fat: float = dspy.OutputField(desc="grams")
    per_week: bool = dspy.OutputField(desc="true when the description is weekly consumption")
    calculation: str = dspy.OutputField(desc="the arithmetic, item by item")
    breakdown: list[CalorieBreakdownItem] = dspy.OutputField(desc="one entry per item with its kcal")


class CalorieEstimator(dspy.Module):
    def __init__(self, with_image: bool = False) -> None:
        super().__init__()
        signature = CalorieImageEstimateSignature if with_image else CalorieEstimateSignature
        self.predict = dspy.Predict(signature)
        self.with_image = with_image

    def forward(self, description: str, image: str | None = None) -> dspy.Prediction:
        kwargs = {"description": description, "prompt_template": CALORIE_ESTIMATE_TEMPLATE}
        if self.with_image:
            url = image if image.startswith("data:") else f"data:image/jpeg;base64,{image}"
            kwargs["image"] = dspy.Image(url=url)
        return self.predict(**kwargs)


def to_weekly_estimate(prediction: dspy.Prediction) -> CalorieEstimate:
    per_week = bool(getattr(prediction, "per_week", False))
    multiplier = 1 if per_week else DAYS_PER_WEEK
    calories = float(getattr(prediction, "calories", 0) or 0)
    weekly_calories = calories * multiplier
    breakdown = getattr(prediction, "breakdown", None) or []
    return CalorieEstimate(
        calories_per_week=round_half_up(weekly_calories),
        calories_per_day=round_half_up(weekly_calories / DAYS_PER_WEEK),
        protein=round_half_up(float(getattr(prediction, "protein", 0) or 0) * multiplier),
        carbs=round_half_up(float(getattr(prediction, "carbs", 0) or 0) * multiplier),
        fat=round_half_up(float(getattr(prediction, "fat", 0) or 0) * multiplier),
        is_weekly_input=per_week,
        calculation=getattr(prediction, "calculation", None) or None,
        breakdown=[CalorieBreakdownItem.model_validate(b) if isinstance(b, dict) else b for b in breakdown],
    )


def estimate_calories(description: str | None = None, image: str | None = None) -> CalorieEstimate:
    text = (description or "").strip() or "Estimate what is shown in the photo."
    estimator = CalorieEstimator(with_image=bool(image))
    try:
        prediction = run_with_logging(
            prompt_name="calorie_estimate",
            prompt_version=CALORIE_ESTIMATE_PROMPT_VERSION,
            fn=estimator,
            model=settings.llm_model_vision if image else None,
            description=text,
            image=image,
        )
    except Exception as e:
        logger.error("calories.estimate_failed has_image=%s error=%s", bool(image), e)
        raise UpstreamOtherError("Could not estimate calories right now") from e

    estimate = to_weekly_estimate(prediction)
    logger.info(
        "calories.estimated weekly=%s daily=%s per_week_input=%s",
        estimate.calories_per_week,
        estimate.calories_per_day,
        estimate.is_weekly_input,
    )
    return estimate
