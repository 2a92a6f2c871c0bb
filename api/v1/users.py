from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.db import User, get_session
from api.v1.schemas import UserCreate, UserOut

router = APIRouter()


def _serialize(user: User) -> UserOut:
    prefs = user.preferences if isinstance(user.preferences, dict) else {}
    return UserOut(
        id=user.id,
        name=user.name,
        calorie_target=user.calorie_target,
        protein_target=user.protein_target,
        carbs_target=user.carbs_target,
        fats_target=user.fats_target,
        goal=user.goal or "maintain",
        activity_level=user.activity_level,
        dietary_restrictions=prefs.get("dietary_restrictions") or [],
    )


# ───────────────────────── create ──────────────────────────
@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_session),
) -> UserOut:
    if await db.get(User, body.id):
        raise HTTPException(status_code=409, detail="User already exists")

    data = body.model_dump(exclude={"dietary_restrictions"})
    data["goal"] = body.goal.value
    user = User(**data, preferences={"dietary_restrictions": body.dietary_restrictions})
    db.add(user)
    await db.commit()
    return _serialize(user)


# ───────────────────────── fetch one ────────────────────────
@router.get("/{user_id}", response_model=UserOut)
async def fetch_user(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> UserOut:
    usr = await db.get(User, user_id)
    if usr is None:
        raise HTTPException(status_code=404, detail="User not found")
    return _serialize(usr)
