"""
Fan-out reads of everything the planner needs about one user.

Each source is read in its own thread with its own session. A failing source
is logged and replaced by its empty/default value; aggregation never aborts
because one read failed.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Optional

from mealplan.config import settings
from mealplan.logging import get_logger
from mealplan.storage import db
from mealplan.storage import repositories as repo
from mealplan.storage.models import InventoryItem, MealPlan, MealPlanPreferences, Offer, SwipeHistory, UserProfile
from mealplan.utils.timing import time_span

logger = get_logger(__name__)


@dataclass
class ConstraintSources:
    profile: Optional[UserProfile] = None
    preferences: Optional[MealPlanPreferences] = None
    allergens: list[str] = field(default_factory=list)
    liked_ingredients: list[str] = field(default_factory=list)
    disliked_ingredients: list[str] = field(default_factory=list)
    chain_ids: list[int] = field(default_factory=list)
    chain_names: list[str] = field(default_factory=list)
    inventory: list[InventoryItem] = field(default_factory=list)
    offers: list[tuple[Offer, Optional[str]]] = field(default_factory=list)
    swipes: list[SwipeHistory] = field(default_factory=list)
    recent_plans: list[MealPlan] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _read(fn: Callable[..., Any], *args: Any) -> Any:
    with db.get_session() as session:
        result = fn(session, *args)
        # Detach so values stay readable after the session closes
        session.expunge_all()
        return result


def fetch_constraint_sources(user_id: int, start_date: date, duration_days: int) -> ConstraintSources:
    window_end = start_date + timedelta(days=duration_days)
    readers: dict[str, tuple[Callable[..., Any], tuple, Any]] = {
        "profile": (repo.get_profile, (user_id,), None),
        "preferences": (repo.get_preferences, (user_id,), None),
        "allergens": (repo.get_allergen_names, (user_id,), []),
        "ingredient_preferences": (repo.get_ingredient_preferences, (user_id,), ([], [])),
        "chains": (repo.get_preferred_chains, (user_id,), []),
        "inventory": (repo.get_inventory, (user_id,), []),
        "swipes": (repo.get_recent_swipes, (user_id, settings.history_window_days), []),
        "recent_plans": (repo.get_recent_plans, (user_id, settings.recent_plan_count), []),
    }
    results: dict[str, Any] = {}
    failed: list[str] = []
    max_workers = max(1, min(settings.constraint_fetch_max_workers, len(readers)))
    with time_span("constraints.fetch", user_id=user_id, sources=len(readers)):
        with ThreadPoolExecutor(max_workers=max_workers) as ex:
            futures = {ex.submit(_read, fn, *args): name for name, (fn, args, _) in readers.items()}
            for fut in as_completed(futures):
                name = futures[fut]
                try:
                    results[name] = fut.result()
                except Exception as e:
                    logger.warning("constraints.source_failed source=%s user_id=%s error=%s", name, user_id, e)
                    results[name] = readers[name][2]
                    failed.append(name)

        chains = results["chains"] or []
        chain_ids = [c.id for c in chains if c.id is not None]
        # Offers depend on the chain ids, so they are read after the join
        try:
            offers = _read(
                repo.get_active_offers, chain_ids, start_date, window_end, settings.offer_query_limit
            )
        except Exception as e:
            logger.warning("constraints.source_failed source=offers user_id=%s error=%s", user_id, e)
            offers = []
            failed.append("offers")

    liked, disliked = results["ingredient_preferences"]
    return ConstraintSources(
        profile=results["profile"],
        preferences=results["preferences"],
        allergens=results["allergens"],
        liked_ingredients=liked,
        disliked_ingredients=disliked,
        chain_ids=chain_ids,
        chain_names=[c.name for c in chains if c.name],
        inventory=results["inventory"],
        offers=offers,
        swipes=results["swipes"],
        recent_plans=results["recent_plans"],
        failed=sorted(failed),
    )
