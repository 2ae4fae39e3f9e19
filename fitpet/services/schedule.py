# backend/fitpet/services/schedule.py
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from .. import db
from ..clock import Clock
from ..errors import NotFoundError, ValidationError
from ..models.schedule import ScheduleEntry, TemporaryReschedule, WeekDay, WeeklySchedule
from ..models.workout import WorkoutPlan

logger = logging.getLogger(__name__)

_ENTRY_FIELDS = ("workout_plan_id", "preferred_time", "notes")


def week_start_date(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def get_or_create_schedule(user_id: int) -> WeeklySchedule:
    """
    Base schedule for the user, always with all 7 days present.
    Missing schedule -> created with every day as rest.
    """
    schedule = WeeklySchedule.query.filter_by(user_id=user_id).first()
    changed = False

    if schedule is None:
        logger.info("No schedule found for user %s, creating new schedule", user_id)
        schedule = WeeklySchedule(user_id=user_id)
        db.session.add(schedule)
        changed = True

    present = {e.day_of_week for e in schedule.entries}
    for day in WeekDay.ALL:
        if day not in present:
            schedule.entries.append(ScheduleEntry(day_of_week=day, workout_plan_id=None))
            changed = True

    if changed:
        db.session.commit()
        logger.info("Schedule %s for user %s has all 7 entries", schedule.id, user_id)

    return schedule


def is_scheduled_workout_day(day: date, schedule: Optional[WeeklySchedule]) -> bool:
    if schedule is None or not schedule.entries:
        logger.warning(
            "Schedule or entries not available for %s. Assuming not a workout day.",
            day.isoformat(),
        )
        return False

    entry = schedule.entry_for(WeekDay.for_date(day))
    if entry is None:
        return False
    return entry.workout_plan_id is not None


def get_weekly_view(user_id: int, clock: Clock, apply_reschedules: bool = True) -> Dict[str, Any]:
    """
    Current week (Sunday first) for the frontend.

    With ``apply_reschedules`` this week's temporary reschedules are merged
    into the returned days; the stored base schedule is left unchanged.
    """
    schedule = get_or_create_schedule(user_id)
    today = clock.today()
    start = week_start_date(today)

    days = {e.day_of_week: [e.to_dict()] for e in schedule.entries}

    if apply_reschedules:
        reschedules = (
            TemporaryReschedule.query.filter_by(user_id=user_id, week_start_date=start)
            .order_by(TemporaryReschedule.created_at.asc(), TemporaryReschedule.id.asc())
            .all()
        )
        for r in reschedules:
            _merge_reschedule(days, r, start, today)

    formatted = []
    for i in range(7):
        current = start + timedelta(days=i)
        day_name = WeekDay.for_date(current)
        formatted.append(
            {
                "date": current.isoformat(),
                "day_of_week": day_name,
                "entries": days.get(day_name, []),
                "is_today": current == today,
            }
        )

    return {"name": schedule.name, "is_active": schedule.is_active, "days": formatted}


def _merge_reschedule(days: Dict[str, List[Dict[str, Any]]], r: TemporaryReschedule, start: date, today: date) -> None:
    original_date = start + timedelta(days=WeekDay.index(r.original_day_of_week))
    original = days.get(r.original_day_of_week)

    if original_date > today:
        # skipped day belongs to last week; this week's one is still ahead
        logger.debug("Reschedule %s: %s is still upcoming this week", r.id, r.original_day_of_week)
    elif original and original[0]["workout_plan_id"] == r.workout_plan_id:
        base = original[0]
        base["workout_plan_id"] = None
        base["workout_plan_name"] = None
        base["notes"] = f"(Workout moved to {r.rescheduled_to_day_of_week}) {base['notes'] or ''}".strip()
    else:
        logger.warning(
            "Reschedule %s: original entry %s no longer holds plan %s",
            r.id, r.original_day_of_week, r.workout_plan_id,
        )

    target = days.get(r.rescheduled_to_day_of_week)
    if not target:
        return

    moved = {
        "workout_plan_id": r.workout_plan_id,
        "workout_plan_name": r.workout_plan.name if r.workout_plan else None,
        "is_rescheduled": True,
    }
    base = target[0]
    if base["workout_plan_id"] is None and not base.get("is_rescheduled"):
        base.update(moved)
        base["notes"] = f"(Rescheduled from {r.original_day_of_week}) {base['notes'] or ''}".strip()
    else:
        # several workouts moved onto the same rest day
        target.append(dict(base, notes=f"(Rescheduled from {r.original_day_of_week})", **moved))


def update_schedule(user_id: int, name: Optional[str] = None, is_active: Optional[bool] = None) -> WeeklySchedule:
    schedule = get_or_create_schedule(user_id)
    if name is not None:
        schedule.name = name
    if is_active is not None:
        schedule.is_active = bool(is_active)
    db.session.commit()
    return schedule


def _validate_day(day: str) -> str:
    day = (day or "").strip().lower()
    if day not in WeekDay.ALL:
        raise ValidationError(f"Invalid day: {day}")
    return day


def update_schedule_entry(user_id: int, day: str, changes: Dict[str, Any]) -> ScheduleEntry:
    """
    Partial update of one BASE entry. Only keys present in ``changes``
    (workout_plan_id, preferred_time, notes) are applied; None clears.
    """
    day = _validate_day(day)
    schedule = get_or_create_schedule(user_id)
    entry = schedule.entry_for(day)
    if entry is None:
        raise NotFoundError(f"Schedule entry for {day} not found")

    if "workout_plan_id" in changes and changes["workout_plan_id"] is not None:
        plan = WorkoutPlan.query.filter_by(id=changes["workout_plan_id"], user_id=user_id).first()
        if plan is None:
            raise NotFoundError(f"Workout plan with ID {changes['workout_plan_id']} not found")

    for field in _ENTRY_FIELDS:
        if field in changes:
            setattr(entry, field, changes[field])

    db.session.commit()
    logger.info("Updated base entry %s (%s) for user %s", entry.id, day, user_id)
    return entry


def set_day_to_rest(user_id: int, day: str) -> ScheduleEntry:
    return update_schedule_entry(
        user_id, day, {"workout_plan_id": None, "preferred_time": None, "notes": None}
    )


def reset_schedule(user_id: int) -> WeeklySchedule:
    schedule = get_or_create_schedule(user_id)
    for entry in schedule.entries:
        entry.workout_plan_id = None
        entry.preferred_time = None
        entry.notes = None
    db.session.commit()
    logger.info("Reset base schedule %s for user %s", schedule.id, user_id)
    return schedule
