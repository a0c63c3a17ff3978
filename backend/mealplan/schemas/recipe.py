import re
import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MEAL_TYPES = ("breakfast", "lunch", "dinner")
MealType = Literal["breakfast", "lunch", "dinner"]

# Grams per unit for mass units that feed the per-portion total
MASS_UNITS: dict[str, float] = {
    "g": 1.0,
    "gr": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "kg": 1000.0,
    "kilo": 1000.0,
    "kilogram": 1000.0,
    "kilograms": 1000.0,
}

# Millilitres per unit. Tracked separately; never part of the mass total.
VOLUME_UNITS: dict[str, float] = {
    "ml": 1.0,
    "milliliter": 1.0,
    "milliliters": 1.0,
    "dl": 100.0,
    "deciliter": 100.0,
    "deciliters": 100.0,
    "l": 1000.0,
    "liter": 1000.0,
    "liters": 1000.0,
}

_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:[.,]\d+)?)(?:\s*/\s*(\d+))?")


def parse_amount(value: Any) -> float:
    """
    Parse an amount the way the generation service writes them.
    "150" -> 150.0, "1,5" -> 1.5, "2 stk" -> 2.0, "1/2" -> 0.5, "efter smag" -> 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return 0.0
    number = float(match.group(1).replace(",", "."))
    if match.group(2):
        denominator = float(match.group(2))
        return number / denominator if denominator else 0.0
    return number


def format_amount(amount: float) -> str:
    return f"{amount:g}"


class Ingredient(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    amount: float = Field(default=0.0, ge=0)
    unit: str = ""
    corrected: bool = False

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("ingredient name must not be blank")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> float:
        return parse_amount(v)

    @field_validator("unit", mode="before")
    @classmethod
    def _normalize_unit(cls, v: Any) -> str:
        return str(v or "").strip().lower().rstrip(".")

    @property
    def key(self) -> str:
        return self.name.strip().lower()

    @property
    def is_mass(self) -> bool:
        return self.unit in MASS_UNITS

    @property
    def is_volume(self) -> bool:
        return self.unit in VOLUME_UNITS

    @property
    def grams(self) -> float:
        """Amount in grams for mass units, 0 for anything else."""
        return self.amount * MASS_UNITS.get(self.unit, 0.0)

    @property
    def milliliters(self) -> float:
        return self.amount * VOLUME_UNITS.get(self.unit, 0.0)


class OfferReference(BaseModel):
    """An offer the generation service says the recipe uses."""

    model_config = ConfigDict(extra="ignore")

    offer_text: str = ""
    store: str | None = None
    savings: float | None = None


class RecipeCandidate(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = Field(min_length=1)
    description: str = ""
    meal_type: MealType | None = None
    calories: float = Field(default=0, ge=0)  # per serving
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    prep_time: int | None = Field(default=None, ge=0)
    cook_time: int | None = Field(default=None, ge=0)
    servings: int = Field(default=1, ge=1)
    ingredients: list[Ingredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    uses_offers: list[OfferReference] = Field(default_factory=list)
    estimated_price: float | None = Field(default=None, ge=0)
    image_url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_id(cls, data: Any) -> Any:
        # A blank id counts as missing so identity falls back to the title
        if isinstance(data, dict) and data.get("id") in (None, ""):
            data = {k: v for k, v in data.items() if k != "id"}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("servings", mode="before")
    @classmethod
    def _default_servings(cls, v: Any) -> Any:
        return 1 if v in (None, "") else v

    @field_validator("instructions", mode="before")
    @classmethod
    def _split_instructions(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [line.strip() for line in v.splitlines() if line.strip()]
        return v or []

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_list(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v or []

    @property
    def identity(self) -> str:
        """
        Key used to count a recipe once, however many calendar slots reuse it:
        the id the recipe came with, else its lowercase title. Generated ids
        are unique per object and would never match.
        """
        if "id" in self.model_fields_set:
            return f"id:{self.id}"
        return f"title:{self.title.strip().lower()}"


class ValidationCorrection(BaseModel):
    """A logged quantity rewrite. Not an error: the operation always completes."""

    rule: str  # catch_all | protein | potato | legume | carb_staple
    ingredient: str
    before_amount: float
    before_unit: str
    after_amount: float
    after_unit: str
    reason: str


class ValidationResult(BaseModel):
    recipe_id: str
    title: str
    servings: int
    total_grams: float
    total_volume_ml: float
    per_portion_grams: float
    catch_all_applied: bool = False
    catch_all_passes: int = 0
    needs_review: bool = False
    corrections: list[ValidationCorrection] = Field(default_factory=list)

    @property
    def corrected(self) -> bool:
        return bool(self.corrections)

    @property
    def reasons(self) -> list[str]:
        return [c.reason for c in self.corrections]
