"""
Match shopping-list ingredients to retail offers.

Names are normalised to word tokens (lowercase, no digits, no units). An
offer is a candidate when one token sequence contains the other: every token
of one side appears inside a token of the other, so "mælk" finds "Letmælk"
and "hakket oksekød" finds "Oksekød". A containment that leaves a different
product behind ("æble" in "æblejuice") does not count. Offers that are not
contained can still match when their difflib similarity reaches the
threshold. Contained offers rank first, then by similarity; ties go to the
first offer.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Sequence

from mealplan.config import settings
from mealplan.logging import get_logger
from mealplan.schemas.shopping import OfferRecord

logger = get_logger(__name__)

_WORD = re.compile(r"[^\W\d_]+", re.UNICODE)

# Pack sizes and marketing words that say nothing about the product
_NOISE = {
    "g", "gr", "kg", "ml", "cl", "dl", "l", "stk", "pk", "pakke", "bakke", "ps",
    "pr", "per", "ca", "max", "maks", "frit", "valg", "for", "og", "eller", "med", "i", "af",
    "kr", "spar", "tilbud", "pris", "fx", "eks",
}

# Compound endings that turn an ingredient into another product: æble|juice, tomat|suppe
_PRODUCT_ENDINGS = (
    "juice", "saft", "most", "sauce", "sovs", "suppe", "chips", "pulver", "mix", "dressing",
    "marmelade", "syltetøj", "drik", "kage", "bar", "is", "snack",
)

# Shorter tokens only match whole tokens
_MIN_PART_LENGTH = 3


def tokenize(text: str) -> list[str]:
    return [t for t in _WORD.findall(text.lower()) if t not in _NOISE and len(t) > 1]


def _part_of(small: str, big: str) -> bool:
    if small == big:
        return True
    if len(small) < _MIN_PART_LENGTH:
        return False
    idx = big.find(small)
    if idx < 0:
        return False
    rest = big[idx + len(small):]
    return not rest.endswith(_PRODUCT_ENDINGS)


def contains(inner: Sequence[str], outer: Sequence[str]) -> bool:
    """True when every token of inner sits inside some token of outer."""
    if not inner or not outer:
        return False
    return all(any(_part_of(token, other) for other in outer) for token in inner)


def token_similarity(ingredient_tokens: Sequence[str], offer_tokens: Sequence[str]) -> float:
    """Mean over ingredient tokens of the best SequenceMatcher ratio against the offer tokens."""
    if not ingredient_tokens or not offer_tokens:
        return 0.0
    total = 0.0
    for token in ingredient_tokens:
        total += max(SequenceMatcher(None, token, other).ratio() for other in offer_tokens)
    return total / len(ingredient_tokens)


def find_best_offer(
    ingredient_name: str,
    offers: Sequence[OfferRecord],
    threshold: float | None = None,
) -> tuple[OfferRecord, float] | None:
    threshold = settings.offer_match_threshold if threshold is None else threshold
    ingredient_tokens = tokenize(ingredient_name)
    if not ingredient_tokens:
        return None

    best: OfferRecord | None = None
    best_rank: tuple[bool, float] = (False, 0.0)
    for offer in offers:
        offer_tokens = tokenize(offer.match_text)
        contained = contains(ingredient_tokens, offer_tokens) or contains(offer_tokens, ingredient_tokens)
        score = token_similarity(ingredient_tokens, offer_tokens)
        if not contained and score < threshold:
            continue
        rank = (contained, score)
        if best is None or rank > best_rank:
            best, best_rank = offer, rank
    if best is None:
        return None
    logger.debug(
        "offers.matched ingredient=%s offer=%s contained=%s score=%.2f",
        ingredient_name,
        best.product_name,
        best_rank[0],
        best_rank[1],
    )
    return best, best_rank[1]
