# backend/fitpet/services/reschedule.py
"""
Missed-workout reschedule allocator.

Runs once a day. For every user whose BASE schedule had a workout
yesterday and who logged nothing for that plan yesterday, the workout is
moved to the first rest day of the base schedule from today onwards,
once per (user, plan, original day, week).
"""
import logging
from datetime import timedelta
from typing import Dict, List, Optional

from .. import db
from ..clock import Clock, end_of_day, start_of_day
from ..models.schedule import ScheduleEntry, TemporaryReschedule, WeekDay, WeeklySchedule
from ..models.user import User
from .schedule import week_start_date
from .workout_logs import find_logs_in_range

logger = logging.getLogger(__name__)


def _base_entries(user_id: int) -> Dict[str, ScheduleEntry]:
    rows = (
        ScheduleEntry.query.join(WeeklySchedule, ScheduleEntry.schedule_id == WeeklySchedule.id)
        .filter(WeeklySchedule.user_id == user_id)
        .all()
    )
    return {e.day_of_week: e for e in rows}


def find_reschedule_slot(entries: Dict[str, ScheduleEntry], today_day: str, skipped_day: str) -> Optional[str]:
    """First rest day scanning forward from today, never the skipped day."""
    today_index = WeekDay.index(today_day)
    skipped_index = WeekDay.index(skipped_day)
    for i in range(7):
        idx = (today_index + i) % 7
        if idx == skipped_index:
            continue
        candidate = WeekDay.from_index(idx)
        entry = entries.get(candidate)
        if entry is not None and entry.workout_plan_id is None:
            return candidate
    return None


def check_skipped_workouts_for_user(user_id: int, clock: Clock) -> Optional[TemporaryReschedule]:
    today = clock.today()
    yesterday = today - timedelta(days=1)
    yesterday_day = WeekDay.for_date(yesterday)
    week_start = week_start_date(today)

    entries = _base_entries(user_id)
    base = entries.get(yesterday_day)
    if base is None or base.workout_plan_id is None:
        logger.debug("User %s: no workout scheduled for %s", user_id, yesterday_day)
        return None

    plan_id = base.workout_plan_id
    logs = find_logs_in_range(user_id, start_of_day(yesterday), end_of_day(yesterday), plan_id)
    if logs:
        logger.debug("User %s: workout %s for %s was logged (%s)", user_id, plan_id, yesterday_day, len(logs))
        return None

    logger.info("User %s: workout %s for %s was SKIPPED", user_id, plan_id, yesterday_day)

    existing = TemporaryReschedule.query.filter_by(
        user_id=user_id,
        original_day_of_week=yesterday_day,
        workout_plan_id=plan_id,
        week_start_date=week_start,
    ).first()
    if existing is not None:
        logger.info("User %s: workout %s already rescheduled this week", user_id, plan_id)
        return None

    target = find_reschedule_slot(entries, WeekDay.for_date(today), yesterday_day)
    if target is None:
        logger.info("User %s: no available slot this week to reschedule workout %s", user_id, plan_id)
        return None

    reschedule = TemporaryReschedule(
        user_id=user_id,
        original_day_of_week=yesterday_day,
        workout_plan_id=plan_id,
        rescheduled_to_day_of_week=target,
        week_start_date=week_start,
    )
    db.session.add(reschedule)
    db.session.commit()
    logger.info(
        "User %s: workout %s moved from %s to %s (reschedule %s)",
        user_id, plan_id, yesterday_day, target, reschedule.id,
    )
    return reschedule


def check_skipped_workouts(clock: Clock) -> List[TemporaryReschedule]:
    logger.info("Running daily check for skipped workouts...")
    user_ids = [row.id for row in User.query.with_entities(User.id).all()]
    logger.info("Checking %s users.", len(user_ids))

    created = []
    for user_id in user_ids:
        try:
            reschedule = check_skipped_workouts_for_user(user_id, clock)
        except Exception:
            db.session.rollback()
            logger.exception("Error processing user %s for skipped workouts", user_id)
            continue
        if reschedule is not None:
            created.append(reschedule)

    logger.info("Finished daily check for skipped workouts. %s rescheduled.", len(created))
    return created


def cleanup_old_reschedules(clock: Clock) -> int:
    """Deletes reschedules older than the start of last week."""
    cutoff = week_start_date(clock.today()) - timedelta(days=7)
    logger.info("Running weekly cleanup of temporary reschedules before %s", cutoff)
    try:
        deleted = (
            TemporaryReschedule.query.filter(TemporaryReschedule.week_start_date < cutoff)
            .delete(synchronize_session=False)
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Error cleaning up old reschedules")
        raise
    logger.info("Deleted %s old temporary reschedule records.", deleted)
    return deleted
