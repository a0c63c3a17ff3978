from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from mealplan.schemas.recipe import MEAL_TYPES, MealType
from mealplan.schemas.shopping import InventoryRecord, OfferRecord
from mealplan.utils.rounding import round_half_up

DietaryGoal = Literal["lose", "maintain", "gain"]
CookingStyle = Literal["daily", "prep_2", "prep_3", "prep_4"]
Season = Literal["winter", "spring", "summer", "autumn"]

# Older clients stored meal_prep_N
_COOKING_STYLE_ALIASES = {
    "meal_prep_2": "prep_2",
    "meal_prep_3": "prep_3",
    "meal_prep_4": "prep_4",
}


class MacroBudget(BaseModel):
    """Daily calorie/macro allowance. Fields are whole units and never negative."""

    calories: float = Field(default=0, ge=0)
    protein_g: float = Field(default=0, ge=0)
    carbs_g: float = Field(default=0, ge=0)
    fat_g: float = Field(default=0, ge=0)

    def per_meal(self, meal_count: int) -> "MacroBudget":
        if meal_count <= 0:
            return MacroBudget()
        return MacroBudget(
            calories=round_half_up(self.calories / meal_count),
            protein_g=round_half_up(self.protein_g / meal_count),
            carbs_g=round_half_up(self.carbs_g / meal_count),
            fat_g=round_half_up(self.fat_g / meal_count),
        )


class ExtraCalories(BaseModel):
    """Recurring consumption outside the plan, declared per week (e.g. weekend takeout)."""

    description: str = ""
    calories_per_week: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class FixedMeal(BaseModel):
    """A recurring meal the plan must not provide. day='all' means every day."""

    day: str = "all"  # all | monday .. sunday
    meal: MealType = "dinner"
    description: str = ""
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0

    @field_validator("day", mode="before")
    @classmethod
    def _lower_day(cls, v: Any) -> str:
        return str(v or "all").strip().lower()

    @property
    def every_day(self) -> bool:
        return self.day in ("all", "every_day", "daily")


class MealSkipFlags(BaseModel):
    breakfast: bool = False
    lunch: bool = False
    dinner: bool = False

    def requested(self) -> list[str]:
        return [m for m in MEAL_TYPES if not getattr(self, m)]


class UserConstraintProfile(BaseModel):
    allergens: set[str] = Field(default_factory=set)
    disliked_ingredients: set[str] = Field(default_factory=set)
    liked_ingredients: set[str] = Field(default_factory=set)
    dietary_goal: DietaryGoal = "maintain"
    household_size: int = Field(default=1, ge=1)
    preferred_chains: list[str] = Field(default_factory=list)
    cooking_style: CookingStyle = "daily"
    weekday_max_cook_time: int = 30
    weekend_max_cook_time: int = 60
    max_weekly_budget: float | None = None
    skip: MealSkipFlags = Field(default_factory=MealSkipFlags)
    generate_alternatives: int = Field(default=0, ge=0)
    extra_calories: list[ExtraCalories] = Field(default_factory=list)
    fixed_meals: list[FixedMeal] = Field(default_factory=list)

    @field_validator("cooking_style", mode="before")
    @classmethod
    def _cooking_style_alias(cls, v: Any) -> Any:
        if v is None:
            return "daily"
        return _COOKING_STYLE_ALIASES.get(v, v)

    @field_validator("household_size", mode="before")
    @classmethod
    def _household_default(cls, v: Any) -> Any:
        return 1 if not v else v


class SwipeEvent(BaseModel):
    recipe_title: str
    ingredient_names: list[str] = Field(default_factory=list)
    accepted: bool


class CriticalConstraints(BaseModel):
    allergens: list[str] = Field(default_factory=list)
    excluded_ingredients: list[str] = Field(default_factory=list)
    per_meal_target: MacroBudget = Field(default_factory=MacroBudget)
    meal_types: list[MealType] = Field(default_factory=list)
    cooking_style: CookingStyle = "daily"
    repetition_target: int = 1  # unique recipes per meal type
    fixed_meals: list[FixedMeal] = Field(default_factory=list)


class ImportantConstraints(BaseModel):
    offers: list[OfferRecord] = Field(default_factory=list)
    max_weekly_budget: float | None = None
    liked_ingredients: list[str] = Field(default_factory=list)
    season: Season = "winter"
    seasonal_ingredients: list[str] = Field(default_factory=list)


class NiceToHaveConstraints(BaseModel):
    weekday_max_cook_time: int = 30
    weekend_max_cook_time: int = 60
    inventory: list[InventoryRecord] = Field(default_factory=list)
    recent_meal_titles: list[str] = Field(default_factory=list)


class ContextConstraints(BaseModel):
    liked_recipe_titles: list[str] = Field(default_factory=list)
    dietary_goal: DietaryGoal = "maintain"
    household_size: int = 1


class ConstraintBundle(BaseModel):
    duration_days: int = 7
    start_date: date
    daily_budget: MacroBudget
    generate_alternatives: int = 0
    critical: CriticalConstraints
    important: ImportantConstraints
    nice_to_have: NiceToHaveConstraints
    context: ContextConstraints
