"""
Build a netted, priced shopping list for a set of chosen recipes.

Each recipe counts once however many calendar slots reuse it. Ingredients are
grouped by lowercase name, amounts summed with the unit of the first
occurrence (no unit conversion), netted against inventory and priced from
matching offers or the static estimate table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from sqlmodel import Session

from mealplan.logging import get_logger
from mealplan.schemas.recipe import RecipeCandidate
from mealplan.schemas.shopping import (
    InventoryRecord,
    OfferRecord,
    ShoppingListItem,
    ShoppingListResult,
    ShoppingSummary,
)
from mealplan.services.shopping.offer_matching import find_best_offer
from mealplan.services.shopping.price_estimates import find_estimated_price
from mealplan.storage import repositories as repo

logger = get_logger(__name__)

DEFAULT_UNIT = "stk"


@dataclass
class _Needed:
    amount: float
    unit: str
    sources: list[str] = field(default_factory=list)


def dedupe_recipes(recipes: Iterable[RecipeCandidate]) -> list[RecipeCandidate]:
    seen: set[str] = set()
    unique: list[RecipeCandidate] = []
    for recipe in recipes:
        if recipe.identity in seen:
            continue
        seen.add(recipe.identity)
        unique.append(recipe)
    return unique


def aggregate_ingredients(recipes: Sequence[RecipeCandidate]) -> dict[str, _Needed]:
    needed: dict[str, _Needed] = {}
    for recipe in recipes:
        for ing in recipe.ingredients:
            key = ing.key
            # An ingredient listed without a usable amount still has to be bought
            amount = ing.amount or 1.0
            entry = needed.get(key)
            if entry is None:
                needed[key] = _Needed(amount=amount, unit=ing.unit or DEFAULT_UNIT, sources=[recipe.title])
                continue
            entry.amount += amount
            if recipe.title not in entry.sources:
                entry.sources.append(recipe.title)
    return needed


def build_shopping_list(
    recipes: Iterable[RecipeCandidate],
    inventory: Sequence[InventoryRecord],
    offers: Sequence[OfferRecord],
) -> ShoppingListResult:
    recipes = list(recipes)
    unique = dedupe_recipes(recipes)
    needed = aggregate_ingredients(unique)
    stock = {item.key: item for item in inventory if not item.is_depleted}

    items: list[ShoppingListItem] = []
    covered: list[str] = []
    for key, entry in needed.items():
        in_stock = stock.get(key)
        amount = entry.amount
        if in_stock is not None:
            if in_stock.quantity >= amount:
                covered.append(key)
                continue
            amount = amount - in_stock.quantity

        item = ShoppingListItem(
            name=key[:1].upper() + key[1:],
            amount=round(amount, 2),
            unit=entry.unit,
            sources=entry.sources,
        )
        match = find_best_offer(key, offers)
        if match is not None and match[0].offer_price is not None:
            offer = match[0]
            item.offer_price = offer.offer_price
            item.price = offer.original_price
            item.offer_id = offer.id
        else:
            estimate = find_estimated_price(key)
            if estimate is not None:
                item.price = estimate
                item.is_estimate = True
        items.append(item)

    total_price = max(0.0, round(sum(i.line_price for i in items), 2))
    total_savings = round(sum(i.savings for i in items), 2)
    logger.info(
        "shopping.built recipes=%s unique=%s items=%s covered=%s offers_matched=%s total=%s",
        len(recipes),
        len(unique),
        len(items),
        len(covered),
        sum(1 for i in items if i.offer_id is not None),
        total_price,
    )
    return ShoppingListResult(
        items=items,
        total_price=total_price,
        total_savings=total_savings,
        covered_by_inventory=covered,
    )


def summarize(result: ShoppingListResult) -> ShoppingSummary:
    return ShoppingSummary(
        item_count=len(result.items),
        offer_item_count=sum(1 for i in result.items if i.offer_id is not None),
        total_price=result.total_price,
        total_savings=result.total_savings,
    )


def load_shopping_inputs(session: Session, user_id: int) -> tuple[list[InventoryRecord], list[OfferRecord]]:
    """Current inventory and the active offers of the user's preferred chains (all chains if none)."""
    inventory = [
        InventoryRecord.model_validate(row, from_attributes=True) for row in repo.get_inventory(session, user_id)
    ]
    chain_ids = [chain.id for chain in repo.get_preferred_chains(session, user_id)]
    offers = [
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
        for offer, chain_name in repo.get_active_offers(session, chain_ids)
    ]
    return inventory, offers


def persist_shopping_list(
    session: Session, user_id: int, result: ShoppingListResult, plan_id: int | None = None
) -> int:
    shopping_list = repo.create_shopping_list(
        session,
        user_id=user_id,
        items=[item.model_dump(mode="json") for item in result.items],
        total_price=result.total_price,
        meal_plan_id=plan_id,
    )
    return shopping_list.id


def generate_shopping_list(
    session: Session,
    user_id: int,
    recipes: Iterable[RecipeCandidate],
    plan_id: int | None = None,
) -> tuple[int, ShoppingListResult]:
    inventory, offers = load_shopping_inputs(session, user_id)
    result = build_shopping_list(recipes, inventory, offers)
    return persist_shopping_list(session, user_id, result, plan_id), result
