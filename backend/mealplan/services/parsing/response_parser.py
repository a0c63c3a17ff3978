"""
Read recipe candidates out of the generation service's raw reply.

Extraction: strip markdown fences, parse directly, otherwise parse the first
balanced {...} or [...] token. Validation: every candidate must satisfy the
RecipeCandidate schema; malformed candidates are reported in a ParseError
rather than silently dropped.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable

from pydantic import ValidationError

from mealplan.errors import ParseError
from mealplan.logging import get_logger
from mealplan.schemas.recipe import MEAL_TYPES, RecipeCandidate

logger = get_logger(__name__)

_FENCE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?")
_CLOSERS = {"{": "}", "[": "]"}


def strip_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def _balanced_end(text: str, start: int) -> int | None:
    """Index just past the token opened at text[start], or None if it never closes."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return idx + 1
    return None


def first_balanced_token(text: str) -> str | None:
    for idx, ch in enumerate(text):
        if ch in _CLOSERS:
            end = _balanced_end(text, idx)
            if end is not None:
                return text[idx:end]
    return None


def extract_json(raw: str) -> Any:
    """Parse the JSON payload in raw. Raises ParseError when there is none."""
    if not raw or not raw.strip():
        raise ParseError("The generation service returned an empty reply")
    cleaned = strip_fences(raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    token = first_balanced_token(cleaned)
    if token is None:
        logger.warning("parser.no_structure raw=%s", raw[:200])
        raise ParseError(detail={"reason": "no balanced object or array found"})
    try:
        return json.loads(token)
    except json.JSONDecodeError as e:
        logger.warning("parser.invalid_json error=%s token=%s", e, token[:200])
        raise ParseError(detail={"reason": f"invalid JSON: {e.msg}", "position": e.pos}) from e


def _group_days(days: Iterable[Any]) -> dict[str, list[Any]]:
    """Regroup day-shaped payloads ([{date, breakfast, lunch, dinner}]) by meal type."""
    grouped: dict[str, list[Any]] = {m: [] for m in MEAL_TYPES}
    for day in days:
        if not isinstance(day, dict):
            raise ParseError(detail={"reason": "day entry is not an object"})
        for meal_type in MEAL_TYPES:
            if day.get(meal_type):
                grouped[meal_type].append(day[meal_type])
    return grouped


def _group_recipes(recipes: Iterable[Any]) -> dict[str, list[Any]]:
    grouped: dict[str, list[Any]] = {m: [] for m in MEAL_TYPES}
    for recipe in recipes:
        meal_type = recipe.get("meal_type") if isinstance(recipe, dict) else None
        if meal_type not in grouped:
            raise ParseError(detail={"reason": "recipe without a valid meal_type", "recipe": str(recipe)[:200]})
        grouped[meal_type].append(recipe)
    return grouped


def _by_meal_type(data: Any) -> dict[str, list[Any]]:
    if isinstance(data, dict):
        if any(m in data for m in MEAL_TYPES):
            grouped = {}
            for meal_type in MEAL_TYPES:
                value = data.get(meal_type) or []
                if not isinstance(value, list):
                    raise ParseError(detail={"reason": f"{meal_type} is not a list"})
                grouped[meal_type] = value
            return grouped
        if isinstance(data.get("meals"), list):
            return _group_days(data["meals"])
        if isinstance(data.get("recipes"), list):
            return _group_recipes(data["recipes"])
        raise ParseError(detail={"reason": "object has no breakfast/lunch/dinner, meals or recipes key"})
    if isinstance(data, list):
        if all(isinstance(d, dict) and "meal_type" in d for d in data):
            return _group_recipes(data)
        return _group_days(data)
    raise ParseError(detail={"reason": f"unexpected top-level {type(data).__name__}"})


def parse_recipe_candidates(raw: str, requested_meal_types: Iterable[str]) -> dict[str, list[RecipeCandidate]]:
    """
    Return {breakfast, lunch, dinner} -> candidates. Types that were not
    requested are always empty lists.
    """
    requested = set(requested_meal_types)
    grouped = _by_meal_type(extract_json(raw))

    result: dict[str, list[RecipeCandidate]] = {m: [] for m in MEAL_TYPES}
    errors: list[dict[str, Any]] = []
    for meal_type in MEAL_TYPES:
        items = grouped.get(meal_type) or []
        if meal_type not in requested:
            if items:
                logger.info("parser.unrequested_dropped meal_type=%s count=%s", meal_type, len(items))
            continue
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                errors.append({"meal_type": meal_type, "index": index, "errors": ["not an object"]})
                continue
            try:
                candidate = RecipeCandidate.model_validate({**item, "meal_type": meal_type})
            except ValidationError as e:
                errors.append({
                    "meal_type": meal_type,
                    "index": index,
                    "title": item.get("title"),
                    "errors": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
                })
                continue
            result[meal_type].append(candidate)

    if errors:
        logger.warning("parser.schema_rejected count=%s first=%s", len(errors), errors[0])
        raise ParseError(
            "The generation service returned recipes that do not match the expected format",
            detail={"invalid_recipes": errors},
        )
    logger.info(
        "parser.end %s",
        " ".join(f"{m}={len(result[m])}" for m in MEAL_TYPES),
    )
    return result
