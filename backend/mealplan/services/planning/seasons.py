"""Seasonal ingredient hints (Danish produce calendar, one list per season)."""

from datetime import date

SEASON_BY_MONTH = {
    12: "winter", 1: "winter", 2: "winter",
    3: "spring", 4: "spring", 5: "spring",
    6: "summer", 7: "summer", 8: "summer",
    9: "autumn", 10: "autumn", 11: "autumn",
}

SEASONAL_INGREDIENTS = {
    "winter": ["grønkål", "rosenkål", "rødkål", "porrer", "pastinak", "selleri", "rødbeder", "hvidkål", "æbler"],
    "spring": ["asparges", "rabarber", "spinat", "forårsløg", "radiser", "ramsløg", "nye kartofler"],
    "summer": ["jordbær", "tomater", "agurk", "squash", "ærter", "nye kartofler", "hindbær", "salat", "bønner"],
    "autumn": ["græskar", "svampe", "æbler", "pærer", "blommer", "kål", "gulerødder", "porrer", "rødbeder"],
}


def season_for(day: date) -> str:
    return SEASON_BY_MONTH[day.month]


def seasonal_ingredients(day: date) -> list[str]:
    return list(SEASONAL_INGREDIENTS[season_for(day)])
