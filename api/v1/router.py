# api/v1/router.py
from fastapi import APIRouter

from . import users, diet, workouts

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])

# everything diet-plan lives *under* the user id
api_router.include_router(diet.router, prefix="/diet", tags=["Diet plan"])
api_router.include_router(workouts.router, prefix="/workouts", tags=["Workouts"])
