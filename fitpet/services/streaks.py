# backend/fitpet/services/streaks.py
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from .. import db
from ..clock import Clock
from ..errors import NotFoundError
from ..models.pet import Pet
from ..models.schedule import WeeklySchedule
from .pets import apply_streak_animation, heal, lock_pet_for_user
from .schedule import get_or_create_schedule, is_scheduled_workout_day

logger = logging.getLogger(__name__)


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        logger.error("Failed to parse last_streak_date %r", value)
        return None


def missed_scheduled_day(last_day: date, today: date, schedule: Optional[WeeklySchedule]) -> bool:
    """
    True if any day strictly between ``last_day`` and ``today`` was a
    scheduled workout day. No schedule counts as a miss.
    """
    if schedule is None:
        return True
    day = last_day + timedelta(days=1)
    while day < today:
        if is_scheduled_workout_day(day, schedule):
            return True
        day += timedelta(days=1)
    return False


def next_streak(pet: Pet, last_day: Optional[date], today: date, schedule: Optional[WeeklySchedule]) -> int:
    if last_day is None:
        return 1

    diff_days = (today - last_day).days
    if diff_days == 0:
        return pet.current_streak or 1
    if diff_days == 1:
        return pet.current_streak + 1
    if diff_days > 1:
        if missed_scheduled_day(last_day, today, schedule):
            logger.info("Pet %s: missed scheduled day(s) since %s. Streak reset to 1.", pet.id, last_day)
            return 1
        return pet.current_streak + 1

    logger.warning(
        "Pet %s: last_streak_date %s is after today %s. Resetting streak to 1.",
        pet.id, last_day, today,
    )
    return 1


def record_workout_completion(user_id: int, clock: Clock) -> Pet:
    """
    Credits a finished workout to the user's pet: updates the streak against
    the weekly schedule, heals once per calendar day and refreshes the
    streak animation. Dead pets are returned unchanged.
    """
    try:
        schedule = get_or_create_schedule(user_id)
    except Exception as e:
        db.session.rollback()
        logger.error("Failed to fetch user schedule for user %s: %s", user_id, e)
        schedule = None

    pet = lock_pet_for_user(user_id)
    if pet is None:
        db.session.rollback()
        logger.warning("Pet not found for user ID: %s", user_id)
        raise NotFoundError(f"Pet not found for user ID: {user_id}")

    if pet.is_dead:
        logger.info("Pet %s is dead. Streak, health and animation not updated.", pet.id)
        db.session.rollback()
        return pet

    today = clock.today()
    last_day = _as_date(pet.last_streak_date)

    pet.current_streak = next_streak(pet, last_day, today, schedule)
    pet.longest_streak = max(pet.longest_streak or 0, pet.current_streak)
    pet.last_streak_date = today

    if last_day is None or last_day < today:
        heal(pet)

    apply_streak_animation(pet)

    db.session.commit()
    logger.info(
        "Pet %s saved: streak=%s longest=%s health=%s animation=%s",
        pet.id, pet.current_streak, pet.longest_streak, pet.health_points, pet.current_animation,
    )
    return pet
