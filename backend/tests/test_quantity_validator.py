from mealplan.schemas.recipe import RecipeCandidate
from mealplan.services.validation.quantity_validator import (
    check_minimums,
    classify_ingredient,
    validate_candidates,
    validate_recipe,
)


def _recipe(servings, ingredients, title="Test"):
    return RecipeCandidate.model_validate(
        {
            "title": title,
            "meal_type": "dinner",
            "servings": servings,
            "ingredients": [{"name": n, "amount": a, "unit": u} for n, a, u in ingredients],
        }
    )


def _amounts(recipe):
    return [(i.name, i.amount, i.unit) for i in recipe.ingredients]


def test_catch_all_multiplies_by_servings():
    recipe = _recipe(4, [("chicken", 100, "g"), ("rice", 100, "g")])
    result = validate_recipe(recipe)
    assert _amounts(recipe) == [("chicken", 400, "g"), ("rice", 400, "g")]
    assert result.catch_all_applied
    assert result.total_grams == 800
    assert result.per_portion_grams == 200
    assert all(i.corrected for i in recipe.ingredients)


def test_catch_all_takes_priority_over_protein_minimum():
    recipe = _recipe(2, [("chicken breast", 150, "g")])
    result = validate_recipe(recipe)
    assert _amounts(recipe) == [("chicken breast", 300, "g")]
    assert [c.rule for c in result.corrections] == ["catch_all"]


def test_single_pass_flags_recipe_still_below_threshold():
    recipe = _recipe(4, [("chicken", 100, "g"), ("rice", 100, "g")])
    result = validate_recipe(recipe, max_passes=1)
    assert result.catch_all_passes == 1
    assert result.needs_review


def test_bounded_loop_reaches_threshold():
    recipe = _recipe(4, [("chicken", 100, "g"), ("rice", 100, "g")])
    result = validate_recipe(recipe, max_passes=3)
    # 200 g/portion after one pass, 800 g/portion after the second
    assert result.catch_all_passes == 2
    assert not result.needs_review
    assert _amounts(recipe) == [("chicken", 1600, "g"), ("rice", 1600, "g")]


def test_loop_bound_is_capped_at_three():
    recipe = _recipe(2, [("salt", 1, "g")])
    result = validate_recipe(recipe, max_passes=10)
    assert result.catch_all_passes == 3
    assert result.needs_review
    assert recipe.ingredients[0].amount == 8


def test_catch_all_scales_volume_but_total_counts_only_mass():
    recipe = _recipe(4, [("hakket oksekød", 125, "g"), ("mælk", 2, "dl"), ("løg", 1, "stk")])
    result = validate_recipe(recipe)
    assert _amounts(recipe) == [("hakket oksekød", 500, "g"), ("mælk", 8, "dl"), ("løg", 1, "stk")]
    assert result.total_grams == 500
    assert result.total_volume_ml == 800


def test_volume_only_recipe_still_triggers_catch_all():
    recipe = _recipe(2, [("bouillon", 5, "dl")])
    result = validate_recipe(recipe, max_passes=3)
    assert recipe.ingredients[0].amount == 10
    # Nothing in grams, so repeating would only inflate the volume
    assert result.catch_all_passes == 1
    assert result.needs_review


def test_catch_all_rounds_half_up():
    recipe = _recipe(3, [("ris", 12.5, "g")])
    validate_recipe(recipe)
    assert recipe.ingredients[0].amount == 38


def test_single_serving_never_uses_catch_all():
    recipe = _recipe(1, [("kyllingebryst", 80, "g")])
    result = validate_recipe(recipe)
    assert not result.catch_all_applied
    assert _amounts(recipe) == [("kyllingebryst", 100, "g")]
    assert result.corrections[0].rule == "protein"


def test_minimums_per_class_danish():
    recipe = _recipe(
        2,
        [
            ("laks", 150, "g"),
            ("kartofler", 200, "g"),
            ("røde linser", 60, "g"),
            ("pasta", 100, "g"),
            ("gulerødder", 300, "g"),
        ],
    )
    # 810 g / 2 = 405 g per portion, so only the minimums apply
    result = validate_recipe(recipe)
    assert not result.catch_all_applied
    assert _amounts(recipe) == [
        ("laks", 200, "g"),
        ("kartofler", 300, "g"),
        ("røde linser", 100, "g"),
        ("pasta", 140, "g"),
        ("gulerødder", 300, "g"),
    ]
    assert {c.rule for c in result.corrections} == {"protein", "potato", "legume", "carb_staple"}


def test_minimum_converts_kg_and_forces_grams():
    recipe = _recipe(4, [("oksekød", 0.3, "kg"), ("ris", 1, "kg")])
    validate_recipe(recipe)
    assert _amounts(recipe) == [("oksekød", 400, "g"), ("ris", 1, "kg")]


def test_non_mass_units_left_alone():
    recipe = _recipe(1, [("kylling", 1, "stk"), ("bacon", 2, "skiver")])
    result = validate_recipe(recipe)
    assert _amounts(recipe) == [("kylling", 1, "stk"), ("bacon", 2, "skiver")]
    assert not result.corrected


def test_minimum_check_is_idempotent():
    recipe = _recipe(2, [("kyllingebryst", 150, "g"), ("ris", 400, "g")])
    first = check_minimums(recipe)
    after_first = _amounts(recipe)
    second = check_minimums(recipe)
    assert len(first) == 1
    assert second == []
    assert _amounts(recipe) == after_first


def test_corrections_never_decrease_amounts():
    recipe = _recipe(2, [("kylling", 500, "g"), ("ris", 400, "g"), ("kartofler", 20, "g")])
    before = {i.name: i.grams for i in recipe.ingredients}
    validate_recipe(recipe)
    for ing in recipe.ingredients:
        assert ing.grams >= before[ing.name]


def test_classify_ingredient():
    assert classify_ingredient("Hakket svinekød") == "protein"
    assert classify_ingredient("bagekartofler") == "potato"
    assert classify_ingredient("kidney beans") == "legume"
    assert classify_ingredient("Basmati rice") == "carb_staple"
    assert classify_ingredient("gulerod") == "other"


def test_validate_candidates_covers_every_meal_type():
    candidates = {
        "breakfast": [_recipe(1, [("havregryn", 60, "g")], title="Grød")],
        "lunch": [],
        "dinner": [_recipe(4, [("laks", 100, "g")], title="Laks")],
    }
    results = validate_candidates(candidates)
    assert [r.title for r in results] == ["Grød", "Laks"]
    assert not results[0].corrected
    assert results[1].catch_all_applied


def test_met_protein_minimum_does_not_hide_potato_minimum():
    # 640 g over two servings keeps the catch-all out
    recipe = _recipe(2, [("bacon og kartofler", 240, "g"), ("fløde", 400, "g")])
    corrections = check_minimums(recipe)
    assert [c.rule for c in corrections] == ["potato"]
    assert recipe.ingredients[0].amount == 300
    assert check_minimums(recipe) == []


def test_several_unmet_classes_raise_to_highest_minimum_once():
    recipe = _recipe(2, [("bacon og kartofler", 100, "g"), ("fløde", 600, "g")])
    assert [c.rule for c in check_minimums(recipe)] == ["potato"]
    assert recipe.ingredients[0].amount == 300
    assert check_minimums(recipe) == []


def test_ingredient_classes_lists_every_match():
    from mealplan.services.validation.quantity_validator import ingredient_classes

    assert ingredient_classes("bacon og kartofler") == ["protein", "potato"]
    assert ingredient_classes("gulerod") == []
