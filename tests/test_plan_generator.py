"""
Plan synthesis from a user profile + persisting it
"""
from datetime import datetime

from sqlalchemy import select

from core.models.diet_plan import MealType
from core.plan_generator import (
    PlanProfile,
    adjust_macros_for_goal,
    build_day_meals,
    build_plan,
    filter_foods,
    generate_plan_for_user,
    save_generated_plan,
    workout_days_for,
)
from core.plan_normalizer import get_active_diet_plan
from services.db import MealPlan, User

from factories import add_plan, add_user


def test_goal_adjusted_macros():
    assert adjust_macros_for_goal("lose", 120, 220, 70) == {"protein": 138, "carbs": 187, "fats": 70}
    assert adjust_macros_for_goal("lose", 120, 220, 10)["fats"] == 20
    assert adjust_macros_for_goal("gain", 120, 220, 70) == {"protein": 120, "carbs": 264, "fats": 70}
    assert adjust_macros_for_goal("maintain", 120.4, 220, 70)["protein"] == 120


def test_workout_patterns():
    assert workout_days_for("very_active") == workout_days_for("active")
    assert len(workout_days_for("active")) == 5
    assert workout_days_for("moderate") == {"Monday", "Wednesday", "Friday", "Saturday"}
    assert workout_days_for(None) == {"Tuesday", "Thursday", "Saturday"}


def test_restrictions_filter_library():
    names = lambda foods: [f.name for f in foods]
    assert names(filter_foods(["vegan"])) == [
        "Oats", "Tofu", "Brown rice", "Quinoa", "Mixed nuts", "Leafy greens",
    ]
    assert "Greek yogurt" in names(filter_foods(["vegetarian"]))
    assert "Egg whites" not in names(filter_foods(["gluten_free"]))
    assert names(filter_foods(["vegan", "gluten-free"])) == [
        "Tofu", "Brown rice", "Quinoa", "Mixed nuts", "Leafy greens",
    ]
    assert len(filter_foods([])) == 10


def test_day_meals_use_ratios_floors_and_sliding_foods():
    meals = build_day_meals(2000, 4, 4, 4, filter_foods([]))
    assert [m.target_calories for m in meals] == [500, 700, 600, 200]
    assert all(m.target_protein == 5 and m.target_fats == 3 for m in meals)
    assert [f.name for f in meals[0].foods] == ["Oats", "Egg whites", "Chicken breast"]
    assert [f.name for f in meals[3].foods] == ["Salmon", "Tofu", "Brown rice"]

    short = build_day_meals(2000, 120, 220, 70, filter_foods([])[:2])
    assert short[3].foods == []


def test_workout_and_rest_day_calories():
    plan = build_plan(PlanProfile(calorie_target=2000, activity_level="moderate"))
    by_day = {d.day: d for d in plan.week_days}
    assert [d.day for d in plan.week_days][0] == "Monday"
    assert by_day["Monday"].is_rest_day is False
    assert by_day["Tuesday"].is_rest_day is True
    assert sum(m.target_calories for m in by_day["Tuesday"].meals) == 1900

    lean = build_plan(PlanProfile(calorie_target=1250))
    monday = lean.week_days[0]
    assert monday.is_rest_day
    assert monday.meals[1].target_calories == 420     # 35 % of the 1200 floor


def test_profile_from_user():
    assert PlanProfile.from_user(None) == PlanProfile()
    user = User(id="u1", calorie_target=1800, goal="lose",
                preferences={"dietary_restrictions": ["Vegan", "Gluten-Free"]})
    profile = PlanProfile.from_user(user)
    assert profile.calorie_target == 1800
    assert profile.protein_target == 120
    assert profile.dietary_restrictions == ["vegan", "gluten-free"]


def test_missing_user_gets_default_plan(run_db):
    async def scenario(db):
        return await generate_plan_for_user(db, "ghost")

    plan = run_db(scenario)
    assert plan.daily_calories == 2000
    assert len(plan.week_days) == 7


def test_save_replaces_active_plan(run_db):
    async def scenario(db):
        await add_user(db, calorie_target=2000, activity_level="moderate")
        old = await add_plan(db)
        generated = await generate_plan_for_user(db, "u1")
        record = await save_generated_plan(db, generated, "u1", now=datetime(2026, 10, 19, 9, 0))
        active = (await db.execute(
            select(MealPlan).where(MealPlan.user_id == "u1", MealPlan.is_active.is_(True))
        )).scalars().all()
        return old, record, active, await get_active_diet_plan(db, "u1")

    old, record, active, diet_plan = run_db(scenario)
    assert [r.id for r in active] == [record.id]
    assert record.id != old.id
    assert record.is_ai_generated

    data = record.plan_data
    assert data["meals"] == data["weekDays"][0]["meals"]
    assert data["dailyCalories"] == 2000

    # Monday is a workout day: 2150 kcal split by ratio, half rounded up
    assert [m.meal_type for m in diet_plan.meals] == [
        MealType.breakfast, MealType.lunch, MealType.snack, MealType.dinner,
    ]
    assert diet_plan.meal_for(MealType.breakfast).target_calories == 538
    assert diet_plan.meal_for(MealType.breakfast).foods[0].amount == "50g"
