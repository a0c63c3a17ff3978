from datetime import date, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from mealplan.errors import PersistenceError
from mealplan.logging import get_logger
from mealplan.storage.models import (
    IngredientPreference,
    InventoryItem,
    LLMCallLog,
    MealPlan,
    MealPlanPreferences,
    Offer,
    ShoppingList,
    StoreChain,
    SwipeHistory,
    UserAllergen,
    UserPreferredChain,
    UserProfile,
    utc_now,
)

logger = get_logger(__name__)


def get_user_by_token(session: Session, api_token: str) -> UserProfile | None:
    return session.exec(select(UserProfile).where(UserProfile.api_token == api_token)).first()


def get_profile(session: Session, user_id: int) -> UserProfile | None:
    return session.get(UserProfile, user_id)


def get_preferences(session: Session, user_id: int) -> MealPlanPreferences | None:
    return session.exec(
        select(MealPlanPreferences).where(MealPlanPreferences.user_id == user_id)
    ).first()


def get_allergen_names(session: Session, user_id: int) -> list[str]:
    rows = session.exec(select(UserAllergen).where(UserAllergen.user_id == user_id))
    return [r.name for r in rows if r.name]


def get_ingredient_preferences(session: Session, user_id: int) -> tuple[list[str], list[str]]:
    """Return (liked, disliked) ingredient names."""
    rows = list(
        session.exec(select(IngredientPreference).where(IngredientPreference.user_id == user_id))
    )
    liked = [r.ingredient_name for r in rows if r.preference == "like"]
    disliked = [r.ingredient_name for r in rows if r.preference == "dislike"]
    return liked, disliked


def get_preferred_chains(session: Session, user_id: int) -> list[StoreChain]:
    stmt = (
        select(StoreChain)
        .join(UserPreferredChain, UserPreferredChain.chain_id == StoreChain.id)
        .where(UserPreferredChain.user_id == user_id)
    )
    return list(session.exec(stmt))


def get_inventory(session: Session, user_id: int) -> list[InventoryItem]:
    return list(
        session.exec(
            select(InventoryItem).where(
                InventoryItem.user_id == user_id, InventoryItem.is_depleted == False  # noqa: E712
            )
        )
    )


def get_active_offers(
    session: Session,
    chain_ids: list[int] | None = None,
    window_start: date | None = None,
    window_end: date | None = None,
    limit: int | None = None,
) -> list[tuple[Offer, Optional[str]]]:
    """Active offers ordered by offer price, with the chain name. Window filters overlap."""
    stmt = (
        select(Offer, StoreChain.name)
        .join(StoreChain, StoreChain.id == Offer.chain_id, isouter=True)
        .where(Offer.is_active == True)  # noqa: E712
    )
    if chain_ids:
        stmt = stmt.where(Offer.chain_id.in_(chain_ids))
    if window_end is not None:
        stmt = stmt.where((Offer.valid_from == None) | (Offer.valid_from <= window_end))  # noqa: E711
    if window_start is not None:
        stmt = stmt.where((Offer.valid_until == None) | (Offer.valid_until >= window_start))  # noqa: E711
    stmt = stmt.order_by(Offer.offer_price_dkk)
    if limit:
        stmt = stmt.limit(limit)
    return [(offer, chain_name) for offer, chain_name in session.exec(stmt)]


def get_recent_swipes(session: Session, user_id: int, days: int) -> list[SwipeHistory]:
    since = utc_now() - timedelta(days=days)
    return list(
        session.exec(
            select(SwipeHistory)
            .where(SwipeHistory.user_id == user_id, SwipeHistory.created_at >= since)
            .order_by(SwipeHistory.created_at.desc())
        )
    )


def get_recent_plans(session: Session, user_id: int, limit: int) -> list[MealPlan]:
    return list(
        session.exec(
            select(MealPlan)
            .where(MealPlan.user_id == user_id)
            .order_by(MealPlan.created_at.desc())
            .limit(limit)
        )
    )


def get_current_plan(session: Session, user_id: int) -> MealPlan | None:
    return session.exec(
        select(MealPlan).where(MealPlan.user_id == user_id).order_by(MealPlan.created_at.desc())
    ).first()


def replace_meal_plan(session: Session, plan: MealPlan) -> MealPlan:
    """
    Make plan the user's only plan. The delete of earlier plans and the insert
    commit together, so a concurrent regeneration cannot leave zero or two plans.
    """
    try:
        stmt = select(MealPlan.id).where(MealPlan.user_id == plan.user_id)
        if plan.id is not None:
            stmt = stmt.where(MealPlan.id != plan.id)
        previous_ids = list(session.exec(stmt))
        if previous_ids:
            # Shopping lists outlive the plan; detach them first
            for shopping_list in session.exec(
                select(ShoppingList).where(ShoppingList.meal_plan_id.in_(previous_ids))
            ):
                shopping_list.meal_plan_id = None
                session.add(shopping_list)
            session.execute(delete(MealPlan).where(MealPlan.id.in_(previous_ids)))
        session.add(plan)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("meal_plan.replace_failed user_id=%s error=%s", plan.user_id, e)
        raise PersistenceError() from e
    session.refresh(plan)
    logger.info(
        "meal_plan.replaced id=%s user_id=%s status=%s removed=%s",
        plan.id,
        plan.user_id,
        plan.status,
        len(previous_ids),
    )
    return plan


def set_plan_image(session: Session, plan_id: int, recipe_title: str, image_url: str) -> int:
    """Attach image_url to every candidate and scheduled meal with this title. Returns count."""
    plan = session.get(MealPlan, plan_id)
    if plan is None:
        return 0
    updated = 0
    candidates = {k: [dict(r) for r in v] for k, v in (plan.candidates or {}).items()}
    for recipes in candidates.values():
        for recipe in recipes:
            if recipe.get("title") == recipe_title:
                recipe["image_url"] = image_url
                updated += 1
    days = [dict(d) for d in (plan.days or [])]
    for day in days:
        for meal_type in ("breakfast", "lunch", "dinner"):
            meal = day.get(meal_type)
            if meal and meal.get("title") == recipe_title:
                day[meal_type] = {**meal, "image_url": image_url}
                updated += 1
    if updated:
        # JSON columns are replaced wholesale so SQLAlchemy sees the change
        plan.candidates = candidates
        plan.days = days
        session.add(plan)
        try:
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError() from e
    return updated


def create_shopping_list(
    session: Session,
    user_id: int,
    items: list[dict],
    total_price: float,
    meal_plan_id: int | None = None,
) -> ShoppingList:
    shopping_list = ShoppingList(
        user_id=user_id,
        meal_plan_id=meal_plan_id,
        items=items,
        total_price=total_price,
    )
    try:
        session.add(shopping_list)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("shopping_list.create_failed user_id=%s error=%s", user_id, e)
        raise PersistenceError() from e
    session.refresh(shopping_list)
    logger.info(
        "shopping_list.created id=%s user_id=%s items=%s total=%.2f plan_id=%s",
        shopping_list.id,
        user_id,
        len(items),
        total_price,
        meal_plan_id,
    )
    return shopping_list


def log_llm_call(
    session: Session,
    prompt_name: str,
    prompt_version: str,
    model: str,
    input_payload: str,
    output_payload: str,
    latency_ms: int,
) -> None:
    session.add(
        LLMCallLog(
            prompt_name=prompt_name,
            prompt_version=prompt_version,
            model=model,
            input_payload=input_payload,
            output_payload=output_payload,
            latency_ms=latency_ms,
        )
    )
    session.commit()
