"""
Classify every planning input into four priority tiers.

critical      never violated: allergens, hard dislikes, per-meal target, meal
              types, repetition target, fixed meals
important     offers, budget, likes, seasonal produce
nice_to_have  cook-time ceilings, pantry inventory, recently served titles
context       liked recipe titles, dietary goal, household size

Pure transform: all reads happen in sources.fetch_constraint_sources.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from mealplan.config import settings
from mealplan.logging import get_logger
from mealplan.schemas.constraints import (
    ConstraintBundle,
    ContextConstraints,
    CriticalConstraints,
    ExtraCalories,
    FixedMeal,
    ImportantConstraints,
    MacroBudget,
    MealSkipFlags,
    NiceToHaveConstraints,
    SwipeEvent,
    UserConstraintProfile,
)
from mealplan.schemas.shopping import InventoryRecord, OfferRecord
from mealplan.services.allergens import expand_allergen_keywords
from mealplan.services.planning.seasons import season_for, seasonal_ingredients
from mealplan.services.planning.sources import ConstraintSources

logger = get_logger(__name__)

PREP_STYLE_RECIPES = {"prep_2": 2, "prep_3": 3, "prep_4": 4}


def _dedupe(names: Iterable[str], keep_case: bool = False) -> list[str]:
    seen: dict[str, str] = {}
    for n in names:
        cleaned = (n or "").strip()
        if cleaned:
            seen.setdefault(cleaned.lower(), cleaned if keep_case else cleaned.lower())
    return list(seen.values())


def repetition_target(cooking_style: str, duration_days: int) -> int:
    """Unique recipes per meal type: one per day for daily, N for prep_N."""
    if cooking_style in PREP_STYLE_RECIPES:
        return max(1, min(PREP_STYLE_RECIPES[cooking_style], duration_days))
    return max(1, duration_days)


def swipe_events(sources: ConstraintSources) -> list[SwipeEvent]:
    return [
        SwipeEvent(
            recipe_title=s.recipe_title,
            ingredient_names=list(s.ingredient_names or []),
            accepted=s.action == "accept",
        )
        for s in sources.swipes
    ]


def build_user_profile(sources: ConstraintSources) -> UserConstraintProfile:
    profile = sources.profile
    prefs = sources.preferences
    return UserConstraintProfile(
        allergens=set(_dedupe(sources.allergens)),
        disliked_ingredients=set(_dedupe(sources.disliked_ingredients)),
        liked_ingredients=set(_dedupe(sources.liked_ingredients)),
        dietary_goal=(profile.dietary_goal if profile and profile.dietary_goal else "maintain"),
        household_size=(profile.people_count if profile else 1),
        preferred_chains=sources.chain_names,
        cooking_style=(prefs.cooking_style if prefs else "daily"),
        weekday_max_cook_time=(prefs.weekday_max_cook_time if prefs else 30),
        weekend_max_cook_time=(prefs.weekend_max_cook_time if prefs else 60),
        max_weekly_budget=(prefs.max_weekly_budget if prefs else None),
        skip=MealSkipFlags(
            breakfast=bool(prefs and prefs.skip_breakfast),
            lunch=bool(prefs and prefs.skip_lunch),
            dinner=bool(prefs and prefs.skip_dinner),
        ),
        generate_alternatives=(prefs.generate_alternatives if prefs else 0) or 0,
        extra_calories=[ExtraCalories.model_validate(e) for e in ((prefs.extra_calories if prefs else None) or [])],
        fixed_meals=[FixedMeal.model_validate(f) for f in ((prefs.fixed_meals if prefs else None) or [])],
    )


def _offer_records(sources: ConstraintSources) -> list[OfferRecord]:
    records = [
        OfferRecord(
            id=offer.id,
            product_name=offer.product_name,
            offer_text=offer.offer_text,
            chain=chain_name,
            offer_price=offer.offer_price_dkk,
            original_price=offer.original_price_dkk,
            valid_from=offer.valid_from,
            valid_until=offer.valid_until,
        )
        for offer, chain_name in sources.offers
    ]
    # Cheapest first; offers without a price go last
    records.sort(key=lambda o: (o.offer_price is None, o.offer_price or 0.0))
    return records[: settings.offer_sample_size]


def _inventory_records(sources: ConstraintSources) -> list[InventoryRecord]:
    return [
        InventoryRecord(
            ingredient_name=item.ingredient_name,
            quantity=item.quantity,
            unit=item.unit or "",
            is_depleted=item.is_depleted,
            expires_at=item.expires_at,
            category=item.category,
        )
        for item in sources.inventory
        if not item.is_depleted
    ]


def _recent_meal_titles(sources: ConstraintSources) -> list[str]:
    titles: list[str] = []
    for plan in sources.recent_plans:
        for day in plan.days or []:
            for meal_type in ("breakfast", "lunch", "dinner"):
                meal = day.get(meal_type) if isinstance(day, dict) else None
                if meal and meal.get("title") and meal["title"] not in titles:
                    titles.append(meal["title"])
    return titles


def aggregate_constraints(
    profile: UserConstraintProfile,
    sources: ConstraintSources,
    *,
    daily_budget: MacroBudget,
    duration_days: int,
    start_date: date,
) -> ConstraintBundle:
    events = swipe_events(sources)
    rejected_ingredients = [n for e in events if not e.accepted for n in e.ingredient_names]
    accepted_ingredients = [n for e in events if e.accepted for n in e.ingredient_names]

    allergens = sorted(profile.allergens)
    excluded = _dedupe(
        [*expand_allergen_keywords(allergens), *sorted(profile.disliked_ingredients), *rejected_ingredients]
    )
    excluded_set = set(excluded)

    # Excludes win: anything excluded is dropped from the include set
    liked = [
        name
        for name in _dedupe([*sorted(profile.liked_ingredients), *accepted_ingredients])
        if name not in excluded_set
    ][: settings.liked_ingredient_cap]

    meal_types = profile.skip.requested()
    seasonal = [s for s in seasonal_ingredients(start_date) if s not in excluded_set]

    bundle = ConstraintBundle(
        duration_days=duration_days,
        start_date=start_date,
        daily_budget=daily_budget,
        generate_alternatives=profile.generate_alternatives,
        critical=CriticalConstraints(
            allergens=allergens,
            excluded_ingredients=excluded,
            per_meal_target=daily_budget.per_meal(len(meal_types)),
            meal_types=meal_types,
            cooking_style=profile.cooking_style,
            repetition_target=repetition_target(profile.cooking_style, duration_days),
            fixed_meals=profile.fixed_meals,
        ),
        important=ImportantConstraints(
            offers=_offer_records(sources),
            max_weekly_budget=profile.max_weekly_budget,
            liked_ingredients=liked,
            season=season_for(start_date),
            seasonal_ingredients=seasonal,
        ),
        nice_to_have=NiceToHaveConstraints(
            weekday_max_cook_time=profile.weekday_max_cook_time,
            weekend_max_cook_time=profile.weekend_max_cook_time,
            inventory=_inventory_records(sources),
            recent_meal_titles=_recent_meal_titles(sources),
        ),
        context=ContextConstraints(
            liked_recipe_titles=_dedupe((e.recipe_title for e in events if e.accepted), keep_case=True)[
                : settings.liked_recipe_title_cap
            ],
            dietary_goal=profile.dietary_goal,
            household_size=profile.household_size,
        ),
    )
    logger.info(
        "constraints.aggregated meal_types=%s excluded=%s liked=%s offers=%s inventory=%s failed_sources=%s",
        ",".join(meal_types) or "-",
        len(excluded),
        len(liked),
        len(bundle.important.offers),
        len(bundle.nice_to_have.inventory),
        ",".join(sources.failed) or "-",
    )
    return bundle
