from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from mealplan.schemas.recipe import Ingredient, RecipeCandidate
from mealplan.schemas.shopping import ShoppingSummary


class PlannedMeal(BaseModel):
    """Denormalized copy of a chosen recipe. Carries no candidate id on purpose."""

    title: str
    description: str = ""
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    prep_time: int | None = None
    servings: int = 1
    image_url: str | None = None
    ingredients: list[Ingredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)

    @classmethod
    def from_candidate(cls, recipe: RecipeCandidate) -> "PlannedMeal":
        return cls(
            title=recipe.title,
            description=recipe.description,
            calories=recipe.calories,
            protein=recipe.protein,
            carbs=recipe.carbs,
            fat=recipe.fat,
            prep_time=recipe.prep_time,
            servings=recipe.servings,
            image_url=recipe.image_url,
            ingredients=[i.model_copy() for i in recipe.ingredients],
            instructions=list(recipe.instructions),
        )


class DayPlan(BaseModel):
    date: date
    breakfast: PlannedMeal | None = None
    lunch: PlannedMeal | None = None
    dinner: PlannedMeal | None = None


class WeeklyPlan(BaseModel):
    days: list[DayPlan] = Field(default_factory=list)
    total_cost: float = 0
    total_savings: float = 0


class GenerateMealPlanRequest(BaseModel):
    duration_days: int = Field(default=7, ge=1, le=28)
    start_date: date | None = None


class GenerateMealPlanResponse(BaseModel):
    plan_id: int
    duration_days: int
    start_date: date
    candidates: dict[str, list[RecipeCandidate]]
    shopping_summary: ShoppingSummary
    corrections: list[dict[str, Any]] = []


class SelectedMeals(BaseModel):
    breakfast: list[RecipeCandidate] = Field(default_factory=list)
    lunch: list[RecipeCandidate] = Field(default_factory=list)
    dinner: list[RecipeCandidate] = Field(default_factory=list)

    def all_recipes(self) -> list[RecipeCandidate]:
        return [*self.breakfast, *self.lunch, *self.dinner]


class SchedulePlanRequest(BaseModel):
    plan_id: int | None = None
    duration_days: int = Field(default=7, ge=1, le=28)
    start_date: date | None = None
    selected: SelectedMeals


class MealPlanResponse(BaseModel):
    id: int
    title: str
    status: str
    duration_days: int
    start_date: date
    days: list[DayPlan]
    total_cost: float | None = None
    total_savings: float | None = None
    shopping_list_id: int | None = None
