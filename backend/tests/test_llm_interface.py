from contextlib import contextmanager
from datetime import date

import dspy
import pytest
import respx
from httpx import Response

from mealplan.errors import ParseError, UpstreamOtherError, UpstreamRateLimited
from mealplan.services.llm.calorie_estimator import estimate_calories
from mealplan.services.llm.dspy_client import run_with_logging
from mealplan.services.llm.fridge_photo import analyze_fridge_photo
from mealplan.services.llm.gateway_client import GenerationGatewayClient
from mealplan.services.llm.inventory_text import parse_inventory_text


def test_run_with_logging(monkeypatch):
    logged = {}

    def fake_log_llm_call(**kwargs):
        logged.update(kwargs)

    def dummy_fn(input_value):
        return {"output": input_value * 2}

    @contextmanager
    def fake_session():
        yield None

    monkeypatch.setattr(
        "mealplan.services.llm.dspy_client.log_llm_call",
        lambda session, **kwargs: fake_log_llm_call(**kwargs),
    )
    monkeypatch.setattr("mealplan.services.llm.dspy_client.db.get_session", fake_session)

    result = run_with_logging(
        prompt_name="unit_test",
        prompt_version="v1",
        fn=dummy_fn,
        input_value=2,
    )
    assert result == {"output": 4}
    assert logged["prompt_name"] == "unit_test"


def _fake_run(**outputs):
    def fake_run(prompt_name, prompt_version, fn, model=None, **kwargs):
        return dspy.Prediction(**outputs)

    return fake_run


def test_daily_estimate_is_scaled_to_week(monkeypatch):
    monkeypatch.setattr(
        "mealplan.services.llm.calorie_estimator.run_with_logging",
        _fake_run(calories=310, protein=7, carbs=45, fat=11, per_week=False, calculation="2 skiver + nutella", breakdown=[]),
    )
    estimate = estimate_calories("nutella mad hver dag")
    assert estimate.calories_per_week == 2170
    assert estimate.calories_per_day == 310
    assert estimate.protein == 49
    assert estimate.fat == 77
    assert estimate.is_weekly_input is False


def test_weekly_estimate_kept_as_is(monkeypatch):
    monkeypatch.setattr(
        "mealplan.services.llm.calorie_estimator.run_with_logging",
        _fake_run(
            calories=1300,
            protein=10,
            carbs=100,
            fat=0,
            per_week=True,
            calculation="10 x 130",
            breakdown=[{"item": "øl", "calories": 1300}],
        ),
    )
    estimate = estimate_calories("10 øl om ugen")
    assert estimate.calories_per_week == 1300
    assert estimate.calories_per_day == 186
    assert estimate.breakdown[0].item == "øl"


def test_estimate_failure_is_upstream_error(monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("provider down")

    monkeypatch.setattr("mealplan.services.llm.calorie_estimator.run_with_logging", boom)
    with pytest.raises(UpstreamOtherError):
        estimate_calories("en pizza")


def test_inventory_text_defaults_category(monkeypatch):
    captured = {}

    def fake_run(prompt_name, prompt_version, fn, **kwargs):
        captured.update(kwargs)
        return dspy.Prediction(
            items_json='```json\n[{"ingredient_name": "æg", "quantity": 6, "unit": "stk", "category": "pantry"},'
            ' {"ingredient_name": "mælk", "quantity": 1, "unit": "l", "expires_at": "2026-01-20"},'
            ' {"quantity": 2}]\n```'
        )

    monkeypatch.setattr("mealplan.services.llm.inventory_text.run_with_logging", fake_run)
    items = parse_inventory_text("6 æg og en liter mælk")
    assert [i.ingredient_name for i in items] == ["æg", "mælk"]
    assert all(i.category == "fridge" for i in items)
    assert items[1].expires_at == date(2026, 1, 20)
    assert captured["category"] == "fridge"


def test_inventory_text_without_json_is_parse_error(monkeypatch):
    monkeypatch.setattr(
        "mealplan.services.llm.inventory_text.run_with_logging",
        lambda prompt_name, prompt_version, fn, **kwargs: dspy.Prediction(items_json="I found nothing."),
    )
    with pytest.raises(ParseError):
        parse_inventory_text("ingenting")


@respx.mock
def test_fridge_photo_items(patched_db):
    content = (
        '{"ingredients": [{"name": "kyllingebryst", "quantity": 2, "unit": "stk", "category": "Fridge",'
        ' "confidence": "high"}, {"name": "ærter", "category": "garage", "confidence": "sure"}]}'
    )
    respx.post("https://gateway.test/v1/chat/completions").mock(
        return_value=Response(200, json={"choices": [{"message": {"content": content}}]})
    )
    client = GenerationGatewayClient(base_url="https://gateway.test/v1", api_key="sk-test")
    items = analyze_fridge_photo("aGVq", client=client)
    assert [(i.name, i.category, i.confidence) for i in items] == [
        ("kyllingebryst", "fridge", "high"),
        ("ærter", "fridge", "medium"),
    ]


@respx.mock
def test_fridge_photo_rate_limited(patched_db):
    respx.post("https://gateway.test/v1/chat/completions").mock(return_value=Response(429))
    client = GenerationGatewayClient(base_url="https://gateway.test/v1", api_key="sk-test")
    with pytest.raises(UpstreamRateLimited):
        analyze_fridge_photo("aGVq", client=client)
