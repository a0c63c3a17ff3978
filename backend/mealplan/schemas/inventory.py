from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, model_validator

InventoryCategory = Literal["fridge", "freezer", "pantry"]
Confidence = Literal["high", "medium", "low"]


class FridgePhotoRequest(BaseModel):
    image: str = Field(min_length=1, description="base64 image or data URL")


class DetectedIngredient(BaseModel):
    name: str
    quantity: float | None = None
    unit: str | None = None
    category: InventoryCategory = "fridge"
    confidence: Confidence = "medium"


class FridgePhotoResponse(BaseModel):
    ingredients: list[DetectedIngredient]
    count: int


class InventoryTextRequest(BaseModel):
    text: str = Field(min_length=1)
    category: InventoryCategory = "fridge"


class ParsedInventoryItem(BaseModel):
    ingredient_name: str
    quantity: float | None = None
    unit: str | None = None
    category: InventoryCategory = "fridge"
    expires_at: date | None = None


class InventoryTextResponse(BaseModel):
    items: list[ParsedInventoryItem]


class CalorieEstimateRequest(BaseModel):
    description: str | None = None
    image: str | None = None

    @model_validator(mode="after")
    def _needs_input(self) -> "CalorieEstimateRequest":
        if not (self.description or "").strip() and not self.image:
            raise ValueError("description or image is required")
        return self


class CalorieBreakdownItem(BaseModel):
    item: str
    calories: float = 0


class CalorieEstimate(BaseModel):
    calories_per_week: int
    calories_per_day: int
    protein: int
    carbs: int
    fat: int
    is_weekly_input: bool
    calculation: str | None = None
    breakdown: list[CalorieBreakdownItem] = Field(default_factory=list)
