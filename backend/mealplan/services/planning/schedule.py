"""Lay the curated recipes out over the calendar by modulo rotation."""

from __future__ import annotations

from datetime import date, timedelta

from mealplan.logging import get_logger
from mealplan.schemas.constraints import CookingStyle, MealSkipFlags
from mealplan.schemas.plan import DayPlan, PlannedMeal, SelectedMeals
from mealplan.schemas.recipe import MEAL_TYPES, RecipeCandidate

logger = get_logger(__name__)


def scheduled_recipes(recipes: list[RecipeCandidate], duration_days: int) -> list[RecipeCandidate]:
    """The selected recipes that land on at least one day: the first duration_days of them."""
    return recipes[: max(0, duration_days)]


def compose_weekly_plan(
    selected: SelectedMeals,
    duration_days: int,
    cooking_style: CookingStyle = "daily",
    skip: MealSkipFlags | None = None,
    start_date: date | None = None,
) -> list[DayPlan]:
    """
    Day i gets selected[i % len(selected)] for every meal type that is not
    skipped, over the whole curated list. cooking_style only labels the log
    line; the household decides how many dishes to rotate by what it picks.
    A skipped type, or one with no selected recipes, is None on every day.
    """
    skip = skip or MealSkipFlags()
    start = start_date or date.today()

    pools: dict[str, list[PlannedMeal]] = {}
    for meal_type in MEAL_TYPES:
        if getattr(skip, meal_type):
            pools[meal_type] = []
            continue
        pools[meal_type] = [PlannedMeal.from_candidate(r) for r in getattr(selected, meal_type)]

    days: list[DayPlan] = []
    for i in range(duration_days):
        slots = {}
        for meal_type, pool in pools.items():
            slots[meal_type] = pool[i % len(pool)].model_copy(deep=True) if pool else None
        days.append(DayPlan(date=start + timedelta(days=i), **slots))

    logger.info(
        "schedule.composed days=%s style=%s %s",
        duration_days,
        cooking_style,
        " ".join(f"{m}={len(p)}" for m, p in pools.items()),
    )
    return days
