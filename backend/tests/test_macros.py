from mealplan.schemas.constraints import ExtraCalories, FixedMeal, MacroBudget
from mealplan.services.planning.macros import calculate_available_budget, resolve_base_targets
from mealplan.storage.models import UserProfile

BASE = MacroBudget(calories=2000, protein_g=75, carbs_g=250, fat_g=65)


def test_no_adjustments_returns_base():
    assert calculate_available_budget(BASE) == BASE


def test_weekly_extras_spread_per_day():
    extras = [ExtraCalories(description="øl i weekenden", calories_per_week=1400, carbs=70)]
    budget = calculate_available_budget(BASE, extras)
    assert budget.calories == 1800
    assert budget.carbs_g == 240
    assert budget.protein_g == 75


def test_every_day_fixed_meal_counts_in_full():
    fixed = [FixedMeal(day="all", meal="lunch", calories=500, protein=20)]
    budget = calculate_available_budget(BASE, fixed_meals=fixed)
    assert budget.calories == 1500
    assert budget.protein_g == 55


def test_single_day_fixed_meal_divided_by_seven():
    fixed = [FixedMeal(day="friday", meal="dinner", calories=700)]
    assert calculate_available_budget(BASE, fixed_meals=fixed).calories == 1900


def test_available_never_negative():
    extras = [ExtraCalories(calories_per_week=21000, fat=1000)]
    budget = calculate_available_budget(BASE, extras)
    assert budget.calories == 0
    assert budget.fat_g == 0


def test_available_equals_difference_when_non_negative():
    extras = [ExtraCalories(calories_per_week=700)]
    fixed = [FixedMeal(day="all", meal="breakfast", calories=300)]
    budget = calculate_available_budget(BASE, extras, fixed)
    assert budget.calories == 2000 - 100 - 300
    assert budget.calories >= 0


def test_base_targets_fall_back_to_defaults():
    assert resolve_base_targets(None) == BASE
    profile = UserProfile(api_token="t", daily_calories=2400, daily_protein_target=None)
    base = resolve_base_targets(profile)
    assert base.calories == 2400
    assert base.protein_g == 75


def test_per_meal_split():
    assert BASE.per_meal(2) == MacroBudget(calories=1000, protein_g=38, carbs_g=125, fat_g=32)
    assert BASE.per_meal(0) == MacroBudget()


def test_half_calories_round_up():
    # 24.5 kcal a week is 3.5 a day, leaving 1996.5
    budget = calculate_available_budget(BASE, [ExtraCalories(calories_per_week=24.5)])
    assert budget.calories == 1997


def test_per_meal_split_rounds_halves_up():
    per_meal = MacroBudget(calories=1997, protein_g=75, carbs_g=5, fat_g=65).per_meal(2)
    assert per_meal.calories == 999
    assert per_meal.protein_g == 38
    assert per_meal.carbs_g == 3
    assert per_meal.fat_g == 33
