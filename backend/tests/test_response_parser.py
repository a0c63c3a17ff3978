import json

import pytest

from mealplan.errors import ParseError
from mealplan.services.parsing.response_parser import (
    extract_json,
    first_balanced_token,
    parse_recipe_candidates,
    strip_fences,
)

PAYLOAD = {
    "breakfast": [
        {
            "title": "Havregrød med æbler",
            "calories": 450,
            "protein": 15,
            "carbs": 70,
            "fat": 10,
            "servings": 2,
            "ingredients": [{"name": "havregryn", "amount": "120", "unit": "g"}],
            "instructions": "Kog grøden.\nTop med æble.",
        }
    ],
    "lunch": [],
    "dinner": [
        {
            "id": "d1",
            "title": "Kylling i karry",
            "servings": 4,
            "ingredients": [
                {"name": "kyllingebryst", "amount": 600, "unit": "g"},
                {"name": "ris", "amount": "1,5", "unit": "dl"},
            ],
            "instructions": ["Steg kyllingen", "Kog risen"],
        }
    ],
}


def test_fenced_reply_equals_stripped_content():
    body = json.dumps(PAYLOAD, ensure_ascii=False)
    fenced = f"```json\n{body}\n```"
    assert extract_json(fenced) == json.loads(body)
    assert strip_fences(fenced) == body


def test_substring_fallback_finds_first_balanced_object():
    body = json.dumps(PAYLOAD, ensure_ascii=False)
    raw = f"Here is your plan:\n{body}\nEnjoy {{not json}}"
    assert extract_json(raw) == PAYLOAD


def test_balanced_token_ignores_brackets_inside_strings():
    text = 'prefix {"title": "a } tricky [ title", "n": [1, 2]} suffix'
    assert json.loads(first_balanced_token(text)) == {"title": "a } tricky [ title", "n": [1, 2]}


def test_no_structure_raises_parse_error():
    with pytest.raises(ParseError):
        extract_json("Sorry, I cannot help with that.")


def test_empty_reply_raises_parse_error():
    with pytest.raises(ParseError):
        extract_json("   ")


def test_parse_candidates_by_meal_type():
    result = parse_recipe_candidates(json.dumps(PAYLOAD), ["breakfast", "dinner"])
    assert set(result) == {"breakfast", "lunch", "dinner"}
    assert result["lunch"] == []
    breakfast = result["breakfast"][0]
    assert breakfast.meal_type == "breakfast"
    assert breakfast.instructions == ["Kog grøden.", "Top med æble."]
    assert breakfast.ingredients[0].amount == 120
    dinner = result["dinner"][0]
    assert dinner.id == "d1"
    assert dinner.ingredients[1].amount == 1.5
    assert dinner.ingredients[1].unit == "dl"


def test_unrequested_meal_types_are_empty():
    result = parse_recipe_candidates(json.dumps(PAYLOAD), ["dinner"])
    assert result["breakfast"] == []
    assert len(result["dinner"]) == 1


def test_day_shaped_payload_is_regrouped():
    days = {
        "meals": [
            {"date": "2026-01-05", "dinner": {"title": "Frikadeller", "servings": 2}},
            {"date": "2026-01-06", "dinner": {"title": "Laksefrikadeller", "servings": 2}},
        ]
    }
    result = parse_recipe_candidates(json.dumps(days), ["dinner"])
    assert [r.title for r in result["dinner"]] == ["Frikadeller", "Laksefrikadeller"]


def test_flat_recipe_list_with_meal_type():
    recipes = [
        {"title": "Rugbrød med æg", "meal_type": "lunch"},
        {"title": "Chili sin carne", "meal_type": "dinner"},
    ]
    result = parse_recipe_candidates(json.dumps(recipes), ["lunch", "dinner"])
    assert [r.title for r in result["lunch"]] == ["Rugbrød med æg"]
    assert [r.title for r in result["dinner"]] == ["Chili sin carne"]


def test_malformed_candidates_are_reported_not_dropped():
    payload = {
        "dinner": [
            {"title": "OK", "servings": 2},
            {"title": "", "servings": 2},
            {"title": "Negative", "calories": -100},
        ]
    }
    with pytest.raises(ParseError) as exc_info:
        parse_recipe_candidates(json.dumps(payload), ["dinner"])
    invalid = exc_info.value.detail["invalid_recipes"]
    assert [e["index"] for e in invalid] == [1, 2]
    assert all(e["meal_type"] == "dinner" for e in invalid)


def test_missing_servings_defaults_to_one():
    payload = {"dinner": [{"title": "Suppe", "servings": None}]}
    result = parse_recipe_candidates(json.dumps(payload), ["dinner"])
    assert result["dinner"][0].servings == 1


def test_unknown_object_shape_raises():
    with pytest.raises(ParseError):
        parse_recipe_candidates(json.dumps({"plan": "none"}), ["dinner"])
