"""
Deterministic sanity correction of ingredient quantities.

The generation service often writes per-person amounts while declaring
several servings. Two rules fix that, in order:

1. Catch-all: when grams per portion (g/kg only) is below 300 and there is
   more than one serving, every g/kg/ml/dl/l amount is multiplied by the
   serving count.
2. Minimums: only if the catch-all did not fire, protein/potato/legume/
   carb-staple ingredients below their per-person minimum are raised to
   minimum x servings, in grams.

Amounts are only ever raised. Corrections are logged, never raised.
"""

from __future__ import annotations

from typing import Iterable

from mealplan.config import settings
from mealplan.logging import get_logger
from mealplan.schemas.recipe import (
    Ingredient,
    RecipeCandidate,
    ValidationCorrection,
    ValidationResult,
    format_amount,
)
from mealplan.utils.rounding import round_half_up

logger = get_logger(__name__)

MIN_GRAMS_PER_PORTION = 300
MAX_CATCH_ALL_PASSES = 3

# Grams per person. cheese and vegetables are reference values only.
MIN_GRAMS_PER_PERSON = {
    "protein": 100,
    "carb_staple": 70,
    "potato": 150,
    "legume": 50,
    "cheese": 25,
    "vegetables": 80,
}

# Checked in this order. A name can match several classes ("bacon og kartofler")
INGREDIENT_CLASS_KEYWORDS: dict[str, tuple[str, ...]] = {
    "protein": (
        "kød", "kylling", "laks", "bacon", "flæsk", "okse", "svin", "fisk", "rejer", "bøf",
        "torsk", "kalkun", "lam",
        "meat", "chicken", "beef", "pork", "salmon", "fish", "shrimp", "prawn", "turkey", "cod",
    ),
    "potato": ("kartof", "potato"),
    "legume": ("linse", "bønner", "kikærter", "kidney", "lentil", "bean", "chickpea"),
    "carb_staple": (
        "pasta", "spaghetti", "ris", "nudler", "penne", "fusilli", "bulgur", "couscous",
        "rice", "noodle", "grain",
    ),
}

AUTO_CORRECTED_CLASSES = ("protein", "potato", "legume", "carb_staple")

def mass_totals(ingredients: Iterable[Ingredient]) -> tuple[float, float]:
    """(grams from g/kg units, millilitres from ml/dl/l units)."""
    grams = 0.0
    ml = 0.0
    for ing in ingredients:
        grams += ing.grams
        ml += ing.milliliters
    return grams, ml


def ingredient_classes(name: str) -> list[str]:
    """Every class whose keywords occur in name, in check order."""
    lowered = name.lower()
    return [cls for cls, keywords in INGREDIENT_CLASS_KEYWORDS.items() if any(k in lowered for k in keywords)]


def classify_ingredient(name: str) -> str:
    classes = ingredient_classes(name)
    return classes[0] if classes else "other"


def apply_catch_all(recipe: RecipeCandidate, per_portion: float) -> list[ValidationCorrection]:
    """One multiply-by-servings pass over every mass/volume ingredient."""
    servings = recipe.servings
    corrections: list[ValidationCorrection] = []
    for ing in recipe.ingredients:
        if not (ing.is_mass or ing.is_volume):
            continue
        before = ing.amount
        after = float(round_half_up(before * servings))
        ing.amount = after
        ing.corrected = True
        corrections.append(
            ValidationCorrection(
                rule="catch_all",
                ingredient=ing.name,
                before_amount=before,
                before_unit=ing.unit,
                after_amount=after,
                after_unit=ing.unit,
                reason=(
                    f"CATCH-ALL: {round(per_portion)}g/portion < {MIN_GRAMS_PER_PORTION}g, "
                    f"{ing.name} {format_amount(before)}{ing.unit} -> {format_amount(after)}{ing.unit}"
                ),
            )
        )
    return corrections


def check_minimums(recipe: RecipeCandidate) -> list[ValidationCorrection]:
    """Raise protein/potato/legume/carb-staple ingredients to their per-person minimum."""
    servings = recipe.servings
    corrections: list[ValidationCorrection] = []
    for ing in recipe.ingredients:
        if not ing.is_mass:
            continue
        amount_in_grams = ing.grams
        per_person = amount_in_grams / servings
        # Every matching class is checked; the highest unmet minimum wins so a second run changes nothing
        below = [
            c
            for c in ingredient_classes(ing.name)
            if c in AUTO_CORRECTED_CLASSES and per_person < MIN_GRAMS_PER_PERSON[c]
        ]
        if not below:
            continue
        cls = max(below, key=lambda c: MIN_GRAMS_PER_PERSON[c])
        minimum = MIN_GRAMS_PER_PERSON[cls]
        corrected_amount = float(minimum * servings)
        corrections.append(
            ValidationCorrection(
                rule=cls,
                ingredient=ing.name,
                before_amount=ing.amount,
                before_unit=ing.unit,
                after_amount=corrected_amount,
                after_unit="g",
                reason=(
                    f"{cls}: {ing.name} {format_amount(amount_in_grams)}g "
                    f"({round(per_person)}g/pp) -> {format_amount(corrected_amount)}g"
                ),
            )
        )
        ing.amount = corrected_amount
        ing.unit = "g"
        ing.corrected = True
    return corrections


def validate_recipe(recipe: RecipeCandidate, max_passes: int | None = None) -> ValidationResult:
    """
    Correct recipe in place and describe what changed.

    max_passes bounds how often the catch-all may repeat while the portion
    mass stays under the threshold (default from settings, at most 3). A
    recipe still under the threshold afterwards is flagged needs_review.
    """
    passes_allowed = max_passes if max_passes is not None else settings.catch_all_max_passes
    passes_allowed = max(1, min(MAX_CATCH_ALL_PASSES, passes_allowed))
    servings = recipe.servings

    total_grams, total_ml = mass_totals(recipe.ingredients)
    per_portion = total_grams / servings
    corrections: list[ValidationCorrection] = []
    passes = 0

    while servings > 1 and per_portion < MIN_GRAMS_PER_PORTION and passes < passes_allowed:
        corrections.extend(apply_catch_all(recipe, per_portion))
        passes += 1
        total_grams, total_ml = mass_totals(recipe.ingredients)
        per_portion = total_grams / servings
        if total_grams == 0:
            # Nothing measured in grams; repeating would only inflate volumes
            break

    needs_review = passes > 0 and per_portion < MIN_GRAMS_PER_PORTION
    if passes == 0:
        corrections.extend(check_minimums(recipe))
        total_grams, total_ml = mass_totals(recipe.ingredients)
        per_portion = total_grams / servings

    result = ValidationResult(
        recipe_id=recipe.id,
        title=recipe.title,
        servings=servings,
        total_grams=total_grams,
        total_volume_ml=total_ml,
        per_portion_grams=per_portion,
        catch_all_applied=passes > 0,
        catch_all_passes=passes,
        needs_review=needs_review,
        corrections=corrections,
    )
    if corrections:
        logger.info(
            "validation.corrected title=%s servings=%s catch_all_passes=%s per_portion_g=%s corrections=%s",
            recipe.title,
            servings,
            passes,
            round(per_portion),
            "; ".join(result.reasons),
        )
    if needs_review:
        logger.warning(
            "validation.needs_review title=%s per_portion_g=%s after %s catch-all pass(es)",
            recipe.title,
            round(per_portion),
            passes,
        )
    return result


def validate_candidates(
    candidates: dict[str, list[RecipeCandidate]], max_passes: int | None = None
) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    for recipes in candidates.values():
        for recipe in recipes:
            results.append(validate_recipe(recipe, max_passes=max_passes))
    corrected = sum(1 for r in results if r.corrected)
    logger.info("validation.end recipes=%s corrected=%s", len(results), corrected)
    return results
