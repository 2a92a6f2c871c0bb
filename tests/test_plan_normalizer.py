"""
Plan payload → canonical DietPlan
"""
import json
from types import SimpleNamespace

from core.models.diet_plan import MealType
from core.plan_normalizer import (
    normalize_plan_data_to_diet_plan,
    planned_meal_to_payload,
    resolve_payload_sources,
)

from factories import STANDARD_MEALS, meal


def record(plan_data, id="p1", name="Plan"):
    return SimpleNamespace(id=id, name=name, plan_data=plan_data)


def test_meals_sorted_by_start_time():
    plan = normalize_plan_data_to_diet_plan(record({"meals": STANDARD_MEALS}))
    assert [m.meal_type for m in plan.meals] == [
        MealType.breakfast, MealType.lunch, MealType.snack, MealType.dinner,
    ]


def test_first_meal_of_each_type_wins_across_sources():
    payload = {
        "meals": [meal("lunch", "12:00-14:30", 700, name="Top lunch")],
        "weekDays": [
            {"day": "Monday", "meals": [meal("lunch", "13:00-15:00", 900, name="Monday lunch"),
                                        meal("dinner", "19:00-21:00", 600)]},
            {"day": "Tuesday", "meals": [meal("dinner", "20:00-22:00", 999)]},
        ],
    }
    plan = normalize_plan_data_to_diet_plan(record(payload))

    assert [s.kind for s in resolve_payload_sources(payload)] == ["meals", "weekDays", "weekDays"]
    assert plan.meal_for(MealType.lunch).name == "Top lunch"
    assert plan.meal_for(MealType.dinner).target_calories == 600
    assert len(plan.meals) == 2


def test_bare_array_and_json_string_payloads():
    as_array = normalize_plan_data_to_diet_plan(record(STANDARD_MEALS))
    as_text = normalize_plan_data_to_diet_plan(record(json.dumps({"meals": STANDARD_MEALS})))
    assert len(as_array.meals) == 4
    assert as_array.meals == as_text.meals


def test_malformed_payloads_give_empty_plan():
    for bad in ("not json", 42, None, {"meals": "nope"}, {"weekDays": [None, 3]}):
        plan = normalize_plan_data_to_diet_plan(record(bad))
        assert plan.meals == []
        assert plan.daily_calories == 0


def test_defaults_filled_for_sparse_meal():
    plan = normalize_plan_data_to_diet_plan(record([None, "x", {"mealType": "lunch"}]))
    (lunch,) = plan.meals
    assert lunch.id == "p1-lunch-2"
    assert lunch.name == "Lunch Meal"
    assert lunch.priority == 3
    assert (lunch.time_window_start, lunch.time_window_end) == ("12:00", "14:30")
    assert lunch.target_calories == 0


def test_type_falls_back_to_name_and_unknown_types_are_skipped():
    plan = normalize_plan_data_to_diet_plan(record([
        {"mealType": "brunch", "targetCalories": 400},
        {"name": "My breakfast bowl", "targetCalories": 450},
    ]))
    assert [m.meal_type for m in plan.meals] == [MealType.breakfast]
    assert plan.meals[0].name == "My breakfast bowl"


def test_unparsable_start_sorts_last():
    plan = normalize_plan_data_to_diet_plan(record([
        meal("lunch", "later-14:00"),
        meal("dinner", "18:00-21:00"),
    ]))
    assert [m.meal_type for m in plan.meals] == [MealType.dinner, MealType.lunch]


def test_target_keys_and_clamping():
    plan = normalize_plan_data_to_diet_plan(record([
        {"mealType": "breakfast", "target_calories": 400, "protein": "30"},
        {"mealType": "lunch", "calories": -50, "targetCarbs": "lots"},
    ]))
    breakfast, lunch = plan.meals
    assert breakfast.target_calories == 400
    assert breakfast.target_protein == 30
    assert lunch.target_calories == 0
    assert lunch.target_carbs == 0


def test_foods_normalized():
    plan = normalize_plan_data_to_diet_plan(record([{
        "mealType": "lunch",
        "foods": [
            {"foodName": "Rice", "grams": 150, "calories": 200},
            {"name": ""},
            {},
            "junk",
        ],
    }]))
    foods = plan.meals[0].foods
    assert [(f.name, f.amount) for f in foods] == [
        ("Rice", "150g"),
        ("Food", "1 serving"),
        ("Food", "1 serving"),
    ]


def test_non_list_foods_become_empty():
    plan = normalize_plan_data_to_diet_plan(record([{"mealType": "lunch", "foods": "rice"}]))
    assert plan.meals[0].foods == []


def test_daily_calories_from_payload_or_sum():
    summed = normalize_plan_data_to_diet_plan(record({"meals": STANDARD_MEALS}))
    declared = normalize_plan_data_to_diet_plan(record({"meals": STANDARD_MEALS, "dailyCalories": 2100}))
    assert summed.daily_calories == 2000
    assert declared.daily_calories == 2100


def test_canonical_payload_is_readable_again():
    plan = normalize_plan_data_to_diet_plan(record({"meals": STANDARD_MEALS}))
    shifted = plan.meals[1].model_copy(update={"time_window_start": "12:45", "time_window_end": "15:15"})

    payload = planned_meal_to_payload(shifted)
    assert payload["timeWindow"] == "12:45-15:15"
    assert payload["mealType"] == "lunch"

    again = normalize_plan_data_to_diet_plan(record({"meals": [payload]}))
    assert again.meals[0] == shifted
