from mealplan.schemas.recipe import RecipeCandidate
from mealplan.schemas.shopping import InventoryRecord, OfferRecord
from mealplan.services.shopping.list_builder import build_shopping_list, dedupe_recipes, summarize
from mealplan.services.shopping.offer_matching import find_best_offer, tokenize
from mealplan.services.shopping.price_estimates import find_estimated_price


def _recipe(title, ingredients, recipe_id=None):
    data = {
        "title": title,
        "servings": 2,
        "ingredients": [{"name": n, "amount": a, "unit": u} for n, a, u in ingredients],
    }
    if recipe_id:
        data["id"] = recipe_id
    return RecipeCandidate.model_validate(data)


def _offer(offer_id, name, price, original=None, text=None):
    return OfferRecord(
        id=offer_id, product_name=name, offer_text=text, offer_price=price, original_price=original
    )


def test_inventory_covering_need_drops_item():
    recipes = [_recipe("Omelet", [("æg", 6, "stk")])]
    result = build_shopping_list(recipes, [InventoryRecord(ingredient_name="æg", quantity=6)], [])
    assert result.items == []
    assert result.covered_by_inventory == ["æg"]


def test_inventory_nets_partial_need():
    recipes = [_recipe("Omelet", [("æg", 10, "stk")])]
    result = build_shopping_list(recipes, [InventoryRecord(ingredient_name="Æg", quantity=4)], [])
    assert len(result.items) == 1
    assert result.items[0].name == "Æg"
    assert result.items[0].amount == 6


def test_amounts_sum_by_name_with_first_unit():
    recipes = [
        _recipe("Bolognese", [("Hakket oksekød", 500, "g"), ("løg", 1, "stk")], "r1"),
        _recipe("Chili", [("hakket oksekød ", 0.4, "kg"), ("Løg", 2, "stk")], "r2"),
    ]
    result = build_shopping_list(recipes, [], [])
    by_name = {i.name: i for i in result.items}
    assert by_name["Hakket oksekød"].amount == 500.4
    assert by_name["Hakket oksekød"].unit == "g"
    assert by_name["Løg"].amount == 3
    assert by_name["Løg"].sources == ["Bolognese", "Chili"]


def test_recipe_reused_across_slots_is_counted_once():
    porridge = _recipe("Grød", [("havregryn", 100, "g")], "same")
    result = build_shopping_list([porridge, porridge.model_copy(), porridge.model_copy()], [], [])
    assert result.items[0].amount == 100


def test_dedupe_falls_back_to_title_identity():
    a = _recipe("Grød", [("havregryn", 100, "g")])
    b = _recipe(" grød", [("havregryn", 100, "g")])
    c = _recipe("Salat", [])
    assert [r.title for r in dedupe_recipes([a, b, c])] == ["Grød", "Salat"]
    assert build_shopping_list([a, b], [], []).items[0].amount == 100


def test_blank_id_counts_as_missing():
    a = RecipeCandidate.model_validate({"id": "", "title": "Grød"})
    b = RecipeCandidate.model_validate({"id": None, "title": "Grød"})
    assert a.id and a.id != b.id
    assert a.identity == b.identity


def test_source_ids_beat_shared_titles():
    a = _recipe("Salat", [("agurk", 1, "stk")], "s1")
    b = _recipe("Salat", [("agurk", 1, "stk")], "s2")
    assert len(dedupe_recipes([a, b])) == 2


def test_offer_price_used_and_total_sums_line_prices():
    recipes = [_recipe("Laks", [("laks", 400, "g"), ("citron", 1, "stk")])]
    offers = [_offer(7, "Laks", 49.95, original=79.95, text="Norsk laks 400 g")]
    result = build_shopping_list(recipes, [], offers)
    by_name = {i.name: i for i in result.items}
    assert by_name["Laks"].offer_id == 7
    assert by_name["Laks"].offer_price == 49.95
    assert by_name["Laks"].price == 79.95
    assert by_name["Citron"].is_estimate
    assert by_name["Citron"].price == 8
    assert result.total_price == round(49.95 + 8, 2)
    assert result.total_savings == 30
    summary = summarize(result)
    assert summary.item_count == 2
    assert summary.offer_item_count == 1


def test_unpriced_item_counts_as_zero_and_total_never_negative():
    recipes = [_recipe("Special", [("yuzu kosho", 1, "tsk")])]
    result = build_shopping_list(recipes, [], [])
    assert result.items[0].price is None
    assert result.total_price == 0


def test_missing_amount_counts_as_one_with_default_unit():
    recipes = [_recipe("Salat", [("agurk", "efter smag", "")])]
    item = build_shopping_list(recipes, [], []).items[0]
    assert item.amount == 1
    assert item.unit == "stk"


def test_offer_matching_rejects_partial_word():
    offers = [_offer(1, "Æblejuice", 15.0, text="1 l")]
    assert find_best_offer("æble", offers) is None


def test_offer_matching_accepts_plural_and_pack_size():
    offers = [_offer(1, "Tomater", 10.0, text="500 g, frit valg")]
    match = find_best_offer("tomat", offers)
    assert match is not None
    assert match[0].id == 1


def test_offer_matching_picks_best_score_first_on_ties():
    offers = [
        _offer(1, "Kyllingelår", 30.0),
        _offer(2, "Kyllingebryst", 45.0),
        _offer(3, "Kyllingebryst", 40.0),
    ]
    match = find_best_offer("kyllingebryst", offers)
    assert match[0].id == 2
    assert match[1] == 1.0


def test_tokenize_drops_units_and_numbers():
    assert tokenize("Hakket oksekød 8-12% 500 g") == ["hakket", "oksekød"]


def test_estimated_price_prefers_longest_key():
    assert find_estimated_price("hakket oksekød") == 50
    assert find_estimated_price("økologisk hakket oksekød") == 50
    assert find_estimated_price("tomater") == 15
    assert find_estimated_price("te") == 25
    assert find_estimated_price("grøn te") == 25
    assert find_estimated_price("yuzu") is None


def test_offer_contained_in_ingredient_name_matches():
    match = find_best_offer("hakket oksekød", [_offer(1, "Oksekød", 45.0, text="8-12% 500 g")])
    assert match is not None
    assert match[0].id == 1


def test_ingredient_contained_in_compound_offer_matches():
    assert find_best_offer("mælk", [_offer(1, "Letmælk", 11.0, text="1 l")])[0].id == 1
    assert find_best_offer("kylling", [_offer(2, "Kyllingebryst", 40.0)])[0].id == 2


def test_contained_offer_ranks_above_similar_one():
    offers = [_offer(1, "Løg", 6.0), _offer(2, "Rødløg", 9.0)]
    match = find_best_offer("rødløg", offers)
    assert match[0].id == 2
    assert match[1] == 1.0


def test_contained_offer_prices_shopping_item():
    recipes = [_recipe("Lasagne", [("hakket oksekød", 500, "g"), ("mælk", 5, "dl")])]
    offers = [_offer(1, "Oksekød", 39.0, original=55.0), _offer(2, "Letmælk", 10.0, original=13.0)]
    by_name = {i.name: i for i in build_shopping_list(recipes, [], offers).items}
    assert by_name["Hakket oksekød"].offer_id == 1
    assert by_name["Mælk"].offer_id == 2
