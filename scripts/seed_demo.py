"""
Seed a demo user, a generated weekly plan and a week of logged meals.

Usage
-----

    # default profile + a week where breakfast is mostly skipped
    python -m scripts.seed_demo <USER_ID>

    # custom logged meals (list of {meal_type, days_ago, time, calories})
    python -m scripts.seed_demo <USER_ID> --file path/to/logs.json
"""
from __future__ import annotations

import argparse
import asyncio
import json
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, List

from dotenv import load_dotenv
load_dotenv()

from core.helpers import to_epoch_ms
from core.plan_generator import generate_plan_for_user, save_generated_plan
from services.db import LoggedMeal, User, session_factory

# ────────────────────────────────────────────────────────────────────
_DEFAULT_LOGS: List[dict[str, Any]] = [
    *({"meal_type": "Lunch", "days_ago": d, "time": "13:10", "calories": 820} for d in range(5)),
    *({"meal_type": "Dinner", "days_ago": d, "time": "20:05", "calories": 610} for d in range(6)),
    {"meal_type": "Breakfast", "days_ago": 3, "time": "08:00", "calories": 400},
]


async def _seed(user_id: str, logs: list[dict[str, Any]]) -> None:
    async_session = await session_factory()
    async with async_session() as db:
        if await db.get(User, user_id) is None:
            db.add(User(
                id=user_id,
                name="Demo",
                calorie_target=2100,
                protein_target=130,
                carbs_target=230,
                fats_target=70,
                goal="lose",
                activity_level="moderate",
                preferences={"dietary_restrictions": []},
            ))
            await db.commit()

        plan = await generate_plan_for_user(db, user_id)
        record = await save_generated_plan(db, plan, user_id)

        today = date.today()
        for entry in logs:
            hh, mm = (int(x) for x in entry["time"].split(":"))
            eaten = datetime.combine(today - timedelta(days=entry["days_ago"]), time(hh, mm))
            db.add(LoggedMeal(
                user_id=user_id,
                meal_type=entry["meal_type"],
                consumed_at=to_epoch_ms(eaten),
                total_calories=entry["calories"],
            ))
        await db.commit()
    print(f"✓ plan {record.id} + {len(logs)} logged meals for user {user_id}")


def _load_json(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError("JSON file must contain a list of logged-meal dictionaries")
    return data


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("user_id", help="target user id")
    parser.add_argument(
        "--file",
        type=Path,
        help="optional JSON file with logged meals (overrides defaults)",
    )
    args = parser.parse_args()

    logs = _load_json(args.file) if args.file else _DEFAULT_LOGS
    asyncio.run(_seed(args.user_id, logs))


if __name__ == "__main__":
    main()
