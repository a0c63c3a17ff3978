"""Daily macro allowance left for planned meals."""

from __future__ import annotations

from typing import Iterable

from mealplan.config import settings
from mealplan.logging import get_logger
from mealplan.schemas.constraints import ExtraCalories, FixedMeal, MacroBudget
from mealplan.storage.models import UserProfile
from mealplan.utils.rounding import round_half_up

logger = get_logger(__name__)

DAYS_PER_WEEK = 7


def resolve_base_targets(profile: UserProfile | None) -> MacroBudget:
    """Profile targets, falling back to the configured defaults field by field."""
    return MacroBudget(
        calories=(profile and profile.daily_calories) or settings.default_daily_calories,
        protein_g=(profile and profile.daily_protein_target) or settings.default_daily_protein_g,
        carbs_g=(profile and profile.daily_carbs_target) or settings.default_daily_carbs_g,
        fat_g=(profile and profile.daily_fat_target) or settings.default_daily_fat_g,
    )


def extra_per_day(extras: Iterable[ExtraCalories]) -> tuple[float, float, float, float]:
    calories = protein = carbs = fat = 0.0
    for e in extras:
        calories += (e.calories_per_week or 0) / DAYS_PER_WEEK
        protein += (e.protein or 0) / DAYS_PER_WEEK
        carbs += (e.carbs or 0) / DAYS_PER_WEEK
        fat += (e.fat or 0) / DAYS_PER_WEEK
    return calories, protein, carbs, fat


def fixed_per_day(fixed_meals: Iterable[FixedMeal]) -> tuple[float, float, float, float]:
    """Every-day meals count in full; a single-day meal is spread over the week."""
    calories = protein = carbs = fat = 0.0
    for m in fixed_meals:
        divisor = 1 if m.every_day else DAYS_PER_WEEK
        calories += (m.calories or 0) / divisor
        protein += (m.protein or 0) / divisor
        carbs += (m.carbs or 0) / divisor
        fat += (m.fat or 0) / divisor
    return calories, protein, carbs, fat


def calculate_available_budget(
    base: MacroBudget,
    extras: Iterable[ExtraCalories] = (),
    fixed_meals: Iterable[FixedMeal] = (),
) -> MacroBudget:
    """available = max(0, round_half_up(base - extra/day - fixed/day)), per field."""
    extra = extra_per_day(extras)
    fixed = fixed_per_day(fixed_meals)
    base_values = (base.calories, base.protein_g, base.carbs_g, base.fat_g)
    available = [
        max(0, round_half_up(b - e - f)) for b, e, f in zip(base_values, extra, fixed)
    ]
    budget = MacroBudget(
        calories=available[0],
        protein_g=available[1],
        carbs_g=available[2],
        fat_g=available[3],
    )
    logger.info(
        "macros.available base_kcal=%s extra_kcal_day=%.1f fixed_kcal_day=%.1f available_kcal=%s",
        base.calories,
        extra[0],
        fixed[0],
        budget.calories,
    )
    return budget
