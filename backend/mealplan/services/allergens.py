"""
Allergen ontology.
Users pick allergens by name (Danish or English); the planner needs the
ingredient words that carry each allergen so it can state them as hard
exclusions and check generated recipes against them.
"""

from mealplan.logging import get_logger

logger = get_logger(__name__)

# Allergen code -> ingredient keywords (Danish and English)
ALLERGEN_ONTOLOGY = {
    "gluten": ["hvede", "mel", "rug", "byg", "spelt", "pasta", "brød", "couscous", "bulgur", "wheat", "flour", "bread", "barley"],
    "milk": ["mælk", "fløde", "smør", "ost", "yoghurt", "skyr", "creme fraiche", "milk", "cream", "butter", "cheese", "whey"],
    "eggs": ["æg", "mayonnaise", "egg"],
    "fish": ["fisk", "laks", "torsk", "tun", "makrel", "sild", "rødspætte", "fish", "salmon", "cod", "tuna", "anchovy"],
    "shellfish": ["rejer", "krabbe", "hummer", "muslinger", "shrimp", "prawn", "crab", "lobster", "mussel"],
    "tree_nuts": ["mandel", "valnød", "cashew", "hasselnød", "pistacie", "pekan", "almond", "walnut", "hazelnut", "pecan"],
    "peanuts": ["peanut", "jordnød"],
    "soy": ["soja", "tofu", "edamame", "miso", "soy", "tempeh"],
    "sesame": ["sesam", "tahin", "hummus", "sesame", "tahini"],
    "mustard": ["sennep", "mustard"],
    "celery": ["selleri", "celery"],
}

# Names users pick in the app -> allergen code
_ALIASES = {
    "laktose": "milk",
    "lactose": "milk",
    "mælk": "milk",
    "dairy": "milk",
    "æg": "eggs",
    "egg": "eggs",
    "fisk": "fish",
    "skaldyr": "shellfish",
    "nødder": "tree_nuts",
    "nuts": "tree_nuts",
    "jordnødder": "peanuts",
    "peanut": "peanuts",
    "soja": "soy",
    "sesam": "sesame",
    "sennep": "mustard",
    "selleri": "celery",
    "hvede": "gluten",
    "wheat": "gluten",
}


def allergen_code(name: str) -> str | None:
    key = name.strip().lower().replace(" ", "_")
    if key in ALLERGEN_ONTOLOGY:
        return key
    return _ALIASES.get(key.replace("_", " ")) or _ALIASES.get(key)


def expand_allergen_keywords(allergen_names: list[str]) -> list[str]:
    """
    Ingredient words to exclude for the given allergens.
    Unknown allergen names are kept as-is so nothing the user entered is lost.
    """
    out: list[str] = []
    for name in allergen_names:
        cleaned = name.strip().lower()
        if not cleaned:
            continue
        code = allergen_code(cleaned)
        words = [cleaned] + (ALLERGEN_ONTOLOGY[code] if code else [])
        if code is None:
            logger.debug("allergen.unknown name=%s", cleaned)
        for w in words:
            if w not in out:
                out.append(w)
    return out


def find_allergen_hits(ingredient_names: list[str], excluded: list[str]) -> list[str]:
    """Excluded words found in any ingredient name (case-insensitive substring)."""
    combined = " ".join(ingredient_names).lower()
    return sorted({word for word in excluded if word and word.lower() in combined})


def get_all_allergen_codes() -> list[str]:
    """Return all allergen codes for UI filtering."""
    return list(ALLERGEN_ONTOLOGY.keys())
