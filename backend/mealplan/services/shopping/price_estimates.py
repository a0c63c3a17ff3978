"""Static DKK price estimates for items that have no matching offer."""

ESTIMATED_PRICES: dict[str, float] = {
    # dairy
    "mælk": 12, "letmælk": 12, "minimælk": 12, "sødmælk": 14,
    "smør": 25, "margarine": 18,
    "ost": 35, "cheddar": 40, "parmesan": 45, "mozzarella": 30, "feta": 28,
    "fløde": 15, "piskefløde": 18, "cremefraiche": 16, "creme fraiche": 16,
    "yoghurt": 15, "skyr": 18, "græsk yoghurt": 20,
    "æg": 30,
    # meat and fish
    "kylling": 45, "kyllingebryst": 55, "kyllingelår": 40, "hel kylling": 50,
    "hakket oksekød": 50, "oksekød": 65, "bøf": 80, "roastbeef": 90,
    "hakket svinekød": 40, "svinekød": 50, "nakkefilet": 55, "schnitzel": 45,
    "flæsk": 35, "bacon": 30, "skinke": 35,
    "laks": 70, "torsk": 60, "rødspætte": 55, "tun": 25, "rejer": 50,
    "pølser": 25, "medister": 30,
    # vegetables
    "kartofler": 15, "kartoffel": 15, "nye kartofler": 18,
    "løg": 8, "rødløg": 10, "forårsløg": 12, "porrer": 15,
    "hvidløg": 10, "hvidløgsfed": 10,
    "gulerødder": 12, "gulerod": 12,
    "tomat": 15, "tomater": 15, "cherrytomater": 18, "hakkede tomater": 10,
    "agurk": 10, "salat": 15, "iceberg": 15, "rucola": 18,
    "spinat": 18, "broccoli": 15, "blomkål": 18, "grønkål": 15,
    "peberfrugt": 12, "chili": 8, "jalapeño": 10,
    "squash": 12, "aubergine": 15, "champignon": 18, "svampe": 18,
    "avocado": 15, "majs": 12, "ærter": 15, "bønner": 12,
    "kål": 12, "hvidkål": 12, "rødkål": 15, "spidskål": 15,
    "selleri": 15, "ingefær": 12, "citron": 8, "lime": 8,
    # fruit
    "æble": 15, "æbler": 15, "banan": 12, "bananer": 12,
    "appelsin": 18, "appelsiner": 18,
    "jordbær": 25, "hindbær": 30, "blåbær": 28,
    "vindruer": 25, "melon": 20,
    # dry goods
    "pasta": 15, "spaghetti": 15, "penne": 15, "fusilli": 15, "makaroni": 15,
    "ris": 20, "jasminris": 22, "basmatiris": 25, "brune ris": 22,
    "mel": 12, "hvedemel": 12,
    "sukker": 15, "rørsukker": 18, "flormelis": 12,
    "salt": 8, "peber": 15, "krydderier": 18,
    "olie": 30, "olivenolie": 45, "rapsolie": 25,
    "eddike": 15, "balsamico": 25,
    "sojasauce": 18, "fiskesauce": 20,
    "tomatpuré": 12, "tomatsauce": 15,
    "bouillon": 15, "hønsebouillon": 15, "oksebouillon": 15,
    "kokosmælk": 18, "kokoscreme": 20,
    # bread
    "brød": 20, "rugbrød": 22, "franskbrød": 15, "toastbrød": 18,
    "boller": 15, "pitabrød": 18, "tortilla": 20, "wraps": 20,
    "havregryn": 18, "müsli": 30, "cornflakes": 25,
    # other
    "kaffe": 40, "te": 25,
    "honning": 35, "marmelade": 20, "nutella": 35,
    "mayonnaise": 20, "ketchup": 18, "sennep": 15, "dressing": 20,
}

# Keys this short only count as whole words ("te" must not price "tomater")
_MIN_SUBSTRING_KEY = 4


def find_estimated_price(name: str) -> float | None:
    """
    Exact match first, then the longest table key found inside the name,
    so "hakket oksekød" prices as itself and "økologisk hakket oksekød"
    falls back to it rather than to "oksekød".
    """
    key = name.strip().lower()
    if not key:
        return None
    if key in ESTIMATED_PRICES:
        return ESTIMATED_PRICES[key]
    words = set(key.split())
    best: str | None = None
    for candidate in ESTIMATED_PRICES:
        if candidate in words or (len(candidate) >= _MIN_SUBSTRING_KEY and candidate in key):
            if best is None or len(candidate) > len(best):
                best = candidate
    return ESTIMATED_PRICES[best] if best else None
