"""
scripts/init_db.py
────────────────────────────────────────────────────────────────────────
Create the record-store tables (users, meal_plans, meals,
workout_schedules, kv_store) in the database behind DATABASE_URL.

    python -m scripts.init_db
"""
from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv
load_dotenv()

from services.db import create_all, engine

_LOG = logging.getLogger(__name__)


async def _init() -> None:
    eng = await engine()
    await create_all(eng)
    await eng.dispose()
    _LOG.info("tables created on %s", eng.url.render_as_string(hide_password=True))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_init())


if __name__ == "__main__":
    main()
