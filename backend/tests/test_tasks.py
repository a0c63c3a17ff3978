from mealplan.config import settings
from mealplan.schemas.recipe import RecipeCandidate
from mealplan.workers import tasks


class FakeTask:
    def __init__(self, delay):
        self.delay = delay


def _recipes(n):
    return [
        RecipeCandidate(title=f"Ret {i}", ingredients=[{"name": "løg", "amount": 1, "unit": "stk"}])
        for i in range(n)
    ]


def test_enqueue_splits_into_batches(monkeypatch):
    calls = []
    monkeypatch.setattr(settings, "enable_image_generation", True)
    monkeypatch.setattr(settings, "image_batch_size", 3)
    monkeypatch.setattr(tasks, "generate_meal_images", FakeTask(lambda plan_id, batch: calls.append((plan_id, batch))))

    assert tasks.enqueue_image_batches(7, _recipes(7)) == 3
    assert [len(batch) for _, batch in calls] == [3, 3, 1]
    assert calls[0][0] == 7
    assert set(calls[0][1][0]) == {"title", "description", "ingredients"}


def test_enqueue_survives_broker_failure(monkeypatch):
    monkeypatch.setattr(settings, "enable_image_generation", True)

    def boom(*args):
        raise ConnectionError("redis unreachable")

    monkeypatch.setattr(tasks, "generate_meal_images", FakeTask(boom))
    assert tasks.enqueue_image_batches(1, _recipes(2)) == 0


def test_enqueue_disabled(monkeypatch):
    monkeypatch.setattr(settings, "enable_image_generation", False)
    assert tasks.enqueue_image_batches(1, _recipes(2)) == 0


def test_image_prompt_lists_ingredients():
    prompt = tasks.meal_image_prompt(
        {"title": "Boller i karry", "description": "", "ingredients": [{"name": "svinekød"}, {"name": "karry"}]}
    )
    assert "Boller i karry" in prompt
    assert "svinekød, karry" in prompt
