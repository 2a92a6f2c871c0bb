"""
Workout-aware targets, eating windows and carb cycling
"""
from datetime import timedelta

from core.workouts import (
    generate_carb_cycle_plan,
    get_adjusted_targets_for_date,
    get_today_carb_cycle_targets,
    get_workout_meal_windows,
)
from services.kv_store import set_item

from factories import TODAY, add_user, add_workout

BASE = dict(calorie_target=2000, protein_target=120, carbs_target=220, fats_target=70)


def test_rest_day_keeps_base_targets(run_db):
    async def scenario(db):
        await add_user(db, **BASE)
        return await get_adjusted_targets_for_date(db, "u1", TODAY)

    adj = run_db(scenario)
    assert adj.workout_intensity == "none"
    assert adj.adjusted_calories == adj.base_calories == 2000
    assert adj.reason == "No workout scheduled for this day."


def test_intensity_from_burn_and_label(run_db):
    async def scenario(db):
        await add_user(db, **BASE)
        await add_workout(db, "Monday", estimated_calories_burned=600)
        await add_workout(db, "Tuesday", intensity="Moderate")
        await add_workout(db, "Wednesday", estimated_calories_burned=100)
        return [
            await get_adjusted_targets_for_date(db, "u1", TODAY + timedelta(days=i))
            for i in range(3)
        ]

    heavy, moderate, light = run_db(scenario)
    assert (heavy.workout_intensity, heavy.adjusted_calories) == ("heavy", 2300)
    assert (heavy.adjusted_protein, heavy.adjusted_carbs, heavy.adjusted_fats) == (140, 260, 70)
    assert (moderate.workout_intensity, moderate.adjusted_calories) == ("moderate", 2150)
    assert (light.workout_intensity, light.adjusted_calories) == ("light", 2075)


def test_meal_windows_around_workout(run_db):
    async def scenario(db):
        await add_workout(db, "Monday", scheduled_time="06:00", estimated_duration_minutes=60)
        return await get_workout_meal_windows(db, "u1", TODAY)

    windows = run_db(scenario)
    assert (windows.workout_start_time, windows.workout_end_time) == ("06:00", "07:00")
    assert (windows.pre_workout.ideal_eat_time, windows.pre_workout.latest_eat_time) == ("04:30", "05:00")
    assert (windows.post_workout.ideal_eat_time, windows.post_workout.window_closes) == ("07:45", "09:00")


def test_meal_windows_wrap_past_midnight(run_db):
    async def scenario(db):
        await add_workout(db, "Monday", scheduled_time="00:30")
        await add_workout(db, "Tuesday", scheduled_time="soon")
        return (
            await get_workout_meal_windows(db, "u1", TODAY),
            await get_workout_meal_windows(db, "u1", TODAY + timedelta(days=1)),
            await get_workout_meal_windows(db, "u1", TODAY + timedelta(days=2)),
        )

    early, unparsable, none = run_db(scenario)
    assert early.pre_workout.ideal_eat_time == "23:00"
    assert early.pre_workout.latest_eat_time == "23:30"
    assert unparsable.workout_start_time == "18:00"
    assert none is None


def test_carb_cycle_pattern_and_macros(run_db):
    async def scenario(db):
        await add_user(db, goal="lose", **BASE)
        await add_workout(db, "Monday")
        await add_workout(db, "Wednesday")
        await add_workout(db, "Funday")
        return await generate_carb_cycle_plan(db, "u1")

    plan = run_db(scenario)
    assert plan.week_pattern == ["high", "low", "high", "low", "low", "low", "refeed"]
    assert (plan.high_carb_calories, plan.low_carb_calories, plan.refeed_calories) == (2160, 1860, 2240)
    assert plan.high_carb_macros.carbs == 275
    assert plan.low_carb_macros.carbs == 154
    assert (plan.refeed_macros.protein, plan.refeed_macros.carbs) == (126, 330)


def test_refeed_on_saturday_unless_cutting(run_db):
    async def scenario(db):
        await add_user(db, goal="maintain", **BASE)
        return await generate_carb_cycle_plan(db, "u1")

    assert run_db(scenario).week_pattern == ["low"] * 5 + ["refeed", "low"]


def test_today_targets_follow_stored_cycle(run_db):
    async def scenario(db):
        await add_user(db, goal="lose", **BASE)
        before = await get_today_carb_cycle_targets(db, "u1", TODAY)
        await add_workout(db, "Monday")
        plan = await generate_carb_cycle_plan(db, "u1")
        monday = await get_today_carb_cycle_targets(db, "u1", TODAY)
        sunday = await get_today_carb_cycle_targets(db, "u1", TODAY + timedelta(days=6))
        return plan, before, monday, sunday

    plan, before, monday, sunday = run_db(scenario)
    assert before.calories == 2000
    assert monday == plan.high_carb_macros
    assert sunday == plan.refeed_macros


def test_unreadable_cycle_falls_back_to_base(run_db):
    async def scenario(db):
        await set_item(db, "carb_cycle_plan_u1", "{broken")
        return await get_today_carb_cycle_targets(db, "u1", TODAY)

    targets = run_db(scenario)
    assert (targets.calories, targets.protein, targets.carbs, targets.fats) == (2000, 120, 220, 70)
