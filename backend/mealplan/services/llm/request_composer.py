"""
Turn a ConstraintBundle into one structured generation request.

Constraints are rendered as explicit statements per priority tier. The
service is asked for an over-generated pool, k x duration_days candidates per
requested meal type with k = max(1, alternatives + 1), so the household has
a surplus to pick and rotate from.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mealplan.logging import get_logger
from mealplan.schemas.constraints import ConstraintBundle, MacroBudget
from mealplan.services.llm.gateway_client import GenerationGatewayClient
from mealplan.services.llm.prompts import (
    ALLOWED_UNITS,
    MEAL_PLAN_PROMPT_VERSION,
    MEAL_PLAN_SYSTEM_TEMPLATE,
    MEAL_PLAN_USER_TEMPLATE,
)

logger = get_logger(__name__)

_MEAL_LABELS = {"breakfast": "breakfast", "lunch": "lunch", "dinner": "dinner"}


@dataclass
class RecipeRequest:
    system_prompt: str
    user_prompt: str
    meal_types: list[str]
    overgeneration_factor: int
    recipes_per_meal_type: int
    per_meal_target: MacroBudget
    constraint_statements: list[str] = field(default_factory=list)

    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]


def overgeneration_factor(requested_alternatives: int) -> int:
    return max(1, requested_alternatives + 1)


def _fmt_price(value: float | None) -> str:
    return "?" if value is None else f"{value:.2f}".rstrip("0").rstrip(".")


def render_constraint_statements(bundle: ConstraintBundle) -> list[str]:
    """Render every tier as explicit lines. Section headers are included."""
    c, i, n, ctx = bundle.critical, bundle.important, bundle.nice_to_have, bundle.context
    target = c.per_meal_target
    lines: list[str] = ["CRITICAL (must never be violated):"]
    lines.append(
        "- Excluded ingredients (allergies and dislikes): "
        + (", ".join(c.excluded_ingredients) if c.excluded_ingredients else "none")
    )
    if c.allergens:
        lines.append(f"- Allergies in the household: {', '.join(c.allergens)}")
    lines.append(
        f"- Per-meal target per serving: {target.calories:.0f} kcal, {target.protein_g:.0f} g protein, "
        f"{target.carbs_g:.0f} g carbs, {target.fat_g:.0f} g fat"
    )
    lines.append(f"- Meal types to plan: {', '.join(c.meal_types) if c.meal_types else 'none'}")
    if c.cooking_style == "daily":
        lines.append("- Cooking style: cook a new meal every day")
    else:
        lines.append(
            f"- Cooking style: meal prep, {c.repetition_target} different recipes per meal type rotated "
            "across the period; recipes must keep well in the fridge for several days"
        )
    for fixed in c.fixed_meals:
        when = "every day" if fixed.every_day else f"on {fixed.day}"
        lines.append(
            f"- Fixed {fixed.meal} {when}: {fixed.description or 'fixed meal'} "
            f"({fixed.calories:.0f} kcal) is already covered; do not plan for it"
        )

    lines.append("")
    lines.append("IMPORTANT:")
    if i.offers:
        lines.append("- Current offers (use these):")
        for offer in i.offers:
            savings = f", save {_fmt_price(offer.savings)} kr" if offer.savings else ""
            store = offer.chain or "unknown store"
            lines.append(
                f"  - {offer.offer_text or offer.product_name}: {_fmt_price(offer.offer_price)} kr{savings} @ {store}"
            )
    else:
        lines.append("- Current offers: none found")
    if i.max_weekly_budget:
        lines.append(f"- Weekly budget for all groceries: at most {i.max_weekly_budget:.0f} kr")
    if i.liked_ingredients:
        lines.append(f"- Ingredients the household likes: {', '.join(i.liked_ingredients)}")
    if i.seasonal_ingredients:
        lines.append(f"- In season now ({i.season}): {', '.join(i.seasonal_ingredients)}")

    lines.append("")
    lines.append("NICE-TO-HAVE:")
    lines.append(
        f"- Max cooking time: {n.weekday_max_cook_time} min on weekdays, {n.weekend_max_cook_time} min at weekends"
    )
    if n.inventory:
        lines.append("- Already in the kitchen (use first, especially items expiring soon):")
        for item in n.inventory:
            qty = f": {item.quantity:g} {item.unit}".rstrip() if item.quantity else ""
            expiry = f" (expires {item.expires_at.isoformat()})" if item.expires_at else ""
            lines.append(f"  - {item.ingredient_name}{qty}{expiry}")
    if n.recent_meal_titles:
        lines.append(f"- Recently served, avoid repeating: {', '.join(n.recent_meal_titles)}")

    lines.append("")
    lines.append("CONTEXT:")
    lines.append(f"- Dietary goal: {ctx.dietary_goal} weight")
    lines.append(
        f"- Household size: {ctx.household_size} "
        f"(set servings to {ctx.household_size} and scale ingredient amounts to all servings)"
    )
    if ctx.liked_recipe_titles:
        lines.append(f"- Recipes the household liked before: {', '.join(ctx.liked_recipe_titles)}")
    return lines


def compose_recipe_request(bundle: ConstraintBundle) -> RecipeRequest:
    meal_types = list(bundle.critical.meal_types)
    k = overgeneration_factor(bundle.generate_alternatives)
    per_type = k * bundle.duration_days
    statements = render_constraint_statements(bundle)
    system_prompt = MEAL_PLAN_SYSTEM_TEMPLATE.format(units=", ".join(ALLOWED_UNITS))
    user_prompt = MEAL_PLAN_USER_TEMPLATE.format(
        recipes_per_meal_type=per_type,
        meal_types=", ".join(_MEAL_LABELS[m] for m in meal_types),
        duration_days=bundle.duration_days,
        start_date=bundle.start_date.isoformat(),
        constraint_statements="\n".join(statements),
    )
    logger.info(
        "request.composed meal_types=%s k=%s per_type=%s per_meal_kcal=%s",
        ",".join(meal_types),
        k,
        per_type,
        bundle.critical.per_meal_target.calories,
    )
    return RecipeRequest(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        meal_types=meal_types,
        overgeneration_factor=k,
        recipes_per_meal_type=per_type,
        per_meal_target=bundle.critical.per_meal_target,
        constraint_statements=statements,
    )


def request_recipe_candidates(request: RecipeRequest, client: GenerationGatewayClient | None = None) -> str:
    """
    One synchronous call to the generation service. Returns the raw reply text.
    Raises UpstreamRateLimited, UpstreamQuotaExhausted or UpstreamOtherError.
    """
    client = client or GenerationGatewayClient()
    return client.chat(
        request.messages(),
        prompt_name="meal_plan",
        prompt_version=MEAL_PLAN_PROMPT_VERSION,
    )
