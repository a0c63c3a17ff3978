"""
generateMealPlan and plan scheduling.

generate_meal_plan runs the generation pipeline for one user and stores the
candidates as a draft plan. schedule_meal_plan takes the household's curated
picks, lays them out over the calendar and makes that the active plan,
together with its shopping list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlmodel import Session

from mealplan.logging import get_logger
from mealplan.schemas.plan import DayPlan, GenerateMealPlanResponse, SelectedMeals
from mealplan.schemas.recipe import MEAL_TYPES, RecipeCandidate, ValidationResult
from mealplan.schemas.shopping import ShoppingListResult
from mealplan.services.allergens import find_allergen_hits
from mealplan.services.llm.gateway_client import GenerationGatewayClient
from mealplan.services.llm.request_composer import compose_recipe_request, request_recipe_candidates
from mealplan.services.parsing.response_parser import parse_recipe_candidates
from mealplan.services.planning.constraints import aggregate_constraints, build_user_profile
from mealplan.services.planning.macros import calculate_available_budget, resolve_base_targets
from mealplan.services.planning.schedule import compose_weekly_plan, scheduled_recipes
from mealplan.services.planning.sources import ConstraintSources, fetch_constraint_sources
from mealplan.services.shopping.list_builder import (
    build_shopping_list,
    load_shopping_inputs,
    persist_shopping_list,
    summarize,
)
from mealplan.services.validation.quantity_validator import validate_candidates
from mealplan.storage import db
from mealplan.storage import repositories as repo
from mealplan.storage.models import MealPlan
from mealplan.utils.timing import time_span
from mealplan.workers.tasks import enqueue_image_batches

logger = get_logger(__name__)


@dataclass
class ScheduledPlan:
    plan: MealPlan
    days: list[DayPlan]
    shopping_list_id: int
    shopping: ShoppingListResult


def _plan_title(start_date: date, duration_days: int) -> str:
    return f"Madplan {start_date.isoformat()} ({duration_days} dage)"


def default_selection(candidates: dict[str, list[RecipeCandidate]], repetition_target: int) -> SelectedMeals:
    """First repetition_target candidates per meal type, used for the up-front shopping estimate."""
    return SelectedMeals(**{m: candidates.get(m, [])[:repetition_target] for m in MEAL_TYPES})


def _log_excluded_hits(candidates: dict[str, list[RecipeCandidate]], excluded: list[str]) -> None:
    for recipes in candidates.values():
        for recipe in recipes:
            hits = find_allergen_hits([i.name for i in recipe.ingredients], excluded)
            if hits:
                logger.warning("meal_plan.excluded_ingredient title=%s hits=%s", recipe.title, ",".join(hits))


def _correction_report(results: list[ValidationResult]) -> list[dict]:
    return [
        {"recipe_id": r.recipe_id, "title": r.title, "reasons": r.reasons, "needs_review": r.needs_review}
        for r in results
        if r.corrected or r.needs_review
    ]


def generate_meal_plan(
    user_id: int,
    duration_days: int,
    start_date: date | None = None,
    client: GenerationGatewayClient | None = None,
) -> GenerateMealPlanResponse:
    """
    Aggregate constraints, request candidates, parse and correct them, and
    store them as the user's draft plan. Images are queued, not awaited.
    """
    start = start_date or date.today()
    with time_span("meal_plan.generate.total", user_id=user_id, duration_days=duration_days):
        sources = fetch_constraint_sources(user_id, start, duration_days)
        profile = build_user_profile(sources)
        base = resolve_base_targets(sources.profile)
        budget = calculate_available_budget(base, profile.extra_calories, profile.fixed_meals)
        bundle = aggregate_constraints(
            profile, sources, daily_budget=budget, duration_days=duration_days, start_date=start
        )

        candidates: dict[str, list[RecipeCandidate]] = {m: [] for m in MEAL_TYPES}
        results: list[ValidationResult] = []
        if bundle.critical.meal_types:
            request = compose_recipe_request(bundle)
            with time_span("meal_plan.generate.llm", user_id=user_id, per_type=request.recipes_per_meal_type):
                raw = request_recipe_candidates(request, client=client)
            candidates = parse_recipe_candidates(raw, request.meal_types)
            results = validate_candidates(candidates)
            _log_excluded_hits(candidates, bundle.critical.excluded_ingredients)
        else:
            logger.info("meal_plan.generate.skipped user_id=%s reason=all meal types skipped", user_id)

        selection = default_selection(candidates, bundle.critical.repetition_target)
        shopping = build_shopping_list(
            selection.all_recipes(), bundle.nice_to_have.inventory, bundle.important.offers
        )

        plan = MealPlan(
            user_id=user_id,
            title=_plan_title(start, duration_days),
            status="draft",
            duration_days=duration_days,
            start_date=start,
            candidates={m: [r.model_dump(mode="json") for r in candidates[m]] for m in MEAL_TYPES},
            days=[],
            total_cost=shopping.total_price,
            total_savings=shopping.total_savings,
        )
        with db.get_session() as session:
            plan = repo.replace_meal_plan(session, plan)
            plan_id = plan.id

        all_candidates = [r for m in MEAL_TYPES for r in candidates[m]]
        enqueue_image_batches(plan_id, all_candidates)

    logger.info(
        "meal_plan.generated plan_id=%s user_id=%s candidates=%s corrected=%s",
        plan_id,
        user_id,
        len(all_candidates),
        sum(1 for r in results if r.corrected),
    )
    return GenerateMealPlanResponse(
        plan_id=plan_id,
        duration_days=duration_days,
        start_date=start,
        candidates=candidates,
        shopping_summary=summarize(shopping),
        corrections=_correction_report(results),
    )


def schedule_meal_plan(
    session: Session,
    user_id: int,
    selected: SelectedMeals,
    duration_days: int,
    start_date: date | None = None,
    plan_id: int | None = None,
) -> ScheduledPlan:
    """
    Compose the calendar from the curated picks and store it as the active
    plan. When plan_id names the user's draft, that row is promoted so queued
    image tasks still land on it; every other plan of the user is removed in
    the same commit.
    """
    start = start_date or date.today()
    profile = build_user_profile(ConstraintSources(preferences=repo.get_preferences(session, user_id)))
    days = compose_weekly_plan(selected, duration_days, profile.cooking_style, profile.skip, start)

    # Only recipes that land on a day are bought, each once
    scheduled = [
        recipe
        for meal_type in profile.skip.requested()
        for recipe in scheduled_recipes(getattr(selected, meal_type), duration_days)
    ]
    inventory, offers = load_shopping_inputs(session, user_id)
    shopping = build_shopping_list(scheduled, inventory, offers)

    plan = session.get(MealPlan, plan_id) if plan_id is not None else None
    if plan is None or plan.user_id != user_id:
        plan = MealPlan(user_id=user_id, title="", duration_days=duration_days, start_date=start)
    plan.title = _plan_title(start, duration_days)
    plan.status = "active"
    plan.duration_days = duration_days
    plan.start_date = start
    plan.days = [d.model_dump(mode="json") for d in days]
    plan.total_cost = shopping.total_price
    plan.total_savings = shopping.total_savings
    plan = repo.replace_meal_plan(session, plan)
    shopping_list_id = persist_shopping_list(session, user_id, shopping, plan_id=plan.id)
    logger.info(
        "meal_plan.scheduled id=%s user_id=%s days=%s recipes=%s shopping_list_id=%s total=%s",
        plan.id,
        user_id,
        duration_days,
        len(scheduled),
        shopping_list_id,
        shopping.total_price,
    )
    return ScheduledPlan(plan=plan, days=days, shopping_list_id=shopping_list_id, shopping=shopping)
