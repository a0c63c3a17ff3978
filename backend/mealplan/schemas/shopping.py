from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator

from mealplan.schemas.recipe import RecipeCandidate


class InventoryRecord(BaseModel):
    ingredient_name: str
    quantity: float = 0
    unit: str = ""
    is_depleted: bool = False
    expires_at: date | None = None
    category: str | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity_default(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def key(self) -> str:
        return self.ingredient_name.strip().lower()


class OfferRecord(BaseModel):
    id: int | None = None
    product_name: str
    offer_text: str | None = None
    chain: str | None = None
    offer_price: float | None = None
    original_price: float | None = None
    valid_from: date | None = None
    valid_until: date | None = None

    @property
    def savings(self) -> float:
        if self.offer_price is None or self.original_price is None:
            return 0.0
        return max(0.0, self.original_price - self.offer_price)

    @property
    def match_text(self) -> str:
        return f"{self.product_name} {self.offer_text or ''}".strip()


class ShoppingListItem(BaseModel):
    name: str
    amount: float
    unit: str = ""
    price: float | None = None
    offer_price: float | None = None
    offer_id: int | None = None
    is_estimate: bool = False
    checked: bool = False
    sources: list[str] = Field(default_factory=list)

    @property
    def line_price(self) -> float:
        if self.offer_price is not None:
            return self.offer_price
        if self.price is not None:
            return self.price
        return 0.0

    @property
    def savings(self) -> float:
        if self.offer_price is None or self.price is None:
            return 0.0
        return max(0.0, self.price - self.offer_price)


class ShoppingListResult(BaseModel):
    items: list[ShoppingListItem] = Field(default_factory=list)
    total_price: float = 0
    total_savings: float = 0
    covered_by_inventory: list[str] = Field(default_factory=list)


class ShoppingSummary(BaseModel):
    item_count: int = 0
    offer_item_count: int = 0
    total_price: float = 0
    total_savings: float = 0


class GenerateShoppingListRequest(BaseModel):
    recipes: list[RecipeCandidate] = Field(default_factory=list)
    plan_id: int | None = None


class GenerateShoppingListResponse(BaseModel):
    shopping_list_id: int
    item_count: int
    total_price: float
    total_savings: float
