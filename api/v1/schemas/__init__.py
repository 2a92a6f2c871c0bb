"""Re-export individual schema modules for easy imports."""

from .user import Goal, UserCreate, UserOut
from .diet import AdherenceOut, PlanSavedOut

__all__ = [
    "Goal",
    "UserCreate",
    "UserOut",
    "AdherenceOut",
    "PlanSavedOut",
]
