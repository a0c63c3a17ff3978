from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    api_token: str = Field(index=True, unique=True)
    display_name: Optional[str] = None
    daily_calories: Optional[int] = None
    daily_protein_target: Optional[int] = None
    daily_carbs_target: Optional[int] = None
    daily_fat_target: Optional[int] = None
    dietary_goal: str = "maintain"  # lose | maintain | gain
    people_count: int = 1
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class MealPlanPreferences(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True, unique=True)
    cooking_style: str = "daily"  # daily | prep_2 | prep_3 | prep_4
    skip_breakfast: bool = False
    skip_lunch: bool = False
    skip_dinner: bool = False
    weekday_max_cook_time: int = 30
    weekend_max_cook_time: int = 60
    max_weekly_budget: Optional[float] = None
    generate_alternatives: int = 0
    fixed_meals: Optional[list] = Field(default=None, sa_column=Column(JSON, default=None))
    extra_calories: Optional[list] = Field(default=None, sa_column=Column(JSON, default=None))


class UserAllergen(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True)
    name: str


class IngredientPreference(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True)
    ingredient_name: str
    preference: str  # like | dislike


class StoreChain(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str


class UserPreferredChain(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True)
    chain_id: int = Field(foreign_key="storechain.id")


class SwipeHistory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True)
    recipe_title: str
    ingredient_names: Optional[list] = Field(default=None, sa_column=Column(JSON, default=None))
    action: str  # accept | reject
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class InventoryItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True)
    ingredient_name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None
    category: str = "fridge"  # fridge | freezer | pantry
    is_depleted: bool = False
    expires_at: Optional[date] = None


class Offer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    chain_id: Optional[int] = Field(default=None, foreign_key="storechain.id")
    product_name: str
    offer_text: Optional[str] = None
    offer_price_dkk: Optional[float] = None
    original_price_dkk: Optional[float] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    is_active: bool = True


class MealPlan(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True)
    title: str
    status: str = "draft"  # draft (candidates only) | active (days scheduled)
    duration_days: int
    start_date: date
    candidates: Optional[dict] = Field(default=None, sa_column=Column(JSON, default=None))
    days: Optional[list] = Field(default=None, sa_column=Column(JSON, default=None))
    total_cost: Optional[float] = None
    total_savings: Optional[float] = None
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class ShoppingList(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="userprofile.id", index=True)
    meal_plan_id: Optional[int] = Field(default=None, foreign_key="mealplan.id")
    items: Optional[list] = Field(default=None, sa_column=Column(JSON, default=None))
    total_price: float = 0
    completed: bool = False
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class LLMCallLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    prompt_name: str
    prompt_version: str
    model: str
    input_payload: str
    output_payload: str
    latency_ms: int
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
