# backend/fitpet/models/__init__.py
from .user import User
from .pet import Pet, PetAnimation, PetStage
from .schedule import ScheduleEntry, TemporaryReschedule, WeekDay, WeeklySchedule
from .workout import WorkoutLog, WorkoutPlan
from .outbox import OutboxMessage

__all__ = [
    "User",
    "Pet",
    "PetAnimation",
    "PetStage",
    "ScheduleEntry",
    "TemporaryReschedule",
    "WeekDay",
    "WeeklySchedule",
    "WorkoutLog",
    "WorkoutPlan",
    "OutboxMessage",
]
