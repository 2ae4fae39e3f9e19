# backend/fitpet/services/workout_logs.py
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .. import db
from ..clock import Clock, end_of_day, start_of_day
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.workout import WorkoutLog, WorkoutPlan
from .pets import add_xp
from .schedule import week_start_date
from .streaks import record_workout_completion
from .workout_plans import find_plan

logger = logging.getLogger(__name__)

BASE_XP_FOR_WORKOUT = 20
XP_PER_EXERCISE_COMPLETED = 5


def compute_xp(plan: Optional[WorkoutPlan]) -> int:
    if plan is None:
        return BASE_XP_FOR_WORKOUT
    return BASE_XP_FOR_WORKOUT + len(plan.exercises or []) * XP_PER_EXERCISE_COMPLETED


def find_logs_in_range(
    user_id: int,
    start: datetime,
    end: datetime,
    workout_plan_id: Optional[int] = None,
) -> List[WorkoutLog]:
    """Completed logs whose end_time falls in [start, end]."""
    q = WorkoutLog.query.filter(
        WorkoutLog.user_id == user_id,
        WorkoutLog.end_time.isnot(None),
        WorkoutLog.end_time >= start,
        WorkoutLog.end_time <= end,
    )
    if workout_plan_id is not None:
        q = q.filter(WorkoutLog.workout_plan_id == workout_plan_id)
    return q.order_by(WorkoutLog.end_time.desc()).all()


def find_last_completion_date(user_id: int) -> Optional[date]:
    last = (
        WorkoutLog.query.filter(WorkoutLog.user_id == user_id, WorkoutLog.end_time.isnot(None))
        .order_by(WorkoutLog.end_time.desc())
        .first()
    )
    return last.end_time.date() if last else None


def list_logs(user_id: int, limit: int = 50) -> List[WorkoutLog]:
    return (
        WorkoutLog.query.filter_by(user_id=user_id)
        .order_by(WorkoutLog.start_time.desc())
        .limit(limit)
        .all()
    )


def find_log(log_id: int, user_id: int) -> WorkoutLog:
    log = WorkoutLog.query.filter_by(id=log_id, user_id=user_id).first()
    if log is None:
        raise NotFoundError(f"Workout log with ID {log_id} not found for user {user_id}")
    return log


def start_workout_log(user_id: int, workout_plan_id: int, clock: Clock) -> WorkoutLog:
    today = clock.today()
    if find_logs_in_range(user_id, start_of_day(today), end_of_day(today), workout_plan_id):
        raise ConflictError("You have already logged a completed workout for this plan today.")

    active = WorkoutLog.query.filter_by(
        user_id=user_id, workout_plan_id=workout_plan_id, end_time=None
    ).first()
    if active is not None:
        raise ConflictError(
            "You have an active (incomplete) session for this workout plan. "
            "Please complete or cancel it first."
        )

    find_plan(workout_plan_id, user_id)

    log = WorkoutLog(
        user_id=user_id,
        workout_plan_id=workout_plan_id,
        start_time=clock.now(),
        xp_earned=0,
    )
    db.session.add(log)
    db.session.commit()
    logger.info("Workout log %s started for user %s plan %s", log.id, user_id, workout_plan_id)
    return log


def complete_workout_log(
    log_id: int,
    user_id: int,
    clock: Clock,
    end_time: Optional[datetime] = None,
    xp_earned: Optional[int] = None,
) -> WorkoutLog:
    """
    Finalizes a session and credits the pet (streak, heal, XP).

    A pet update failure is logged and does not undo the completed log.
    """
    log = find_log(log_id, user_id)
    if log.is_completed:
        logger.info("Workout log %s already completed", log.id)
        return log

    finished = end_time or clock.now()
    if finished < log.start_time:
        raise ValidationError("end_time must be after start_time")
    log.end_time = finished

    if xp_earned is not None:
        log.xp_earned = max(0, int(xp_earned))
    elif not log.xp_earned:
        log.xp_earned = compute_xp(log.workout_plan)

    db.session.commit()
    logger.info("Workout log %s completed for user %s, xp=%s", log.id, user_id, log.xp_earned)

    try:
        record_workout_completion(user_id, clock)
        if log.xp_earned > 0:
            add_xp(user_id, log.xp_earned)
    except Exception:
        db.session.rollback()
        logger.exception("Failed to update streak or pet XP for user %s after log %s", user_id, log.id)

    return log


def delete_log(log_id: int, user_id: int) -> None:
    log = find_log(log_id, user_id)
    db.session.delete(log)
    db.session.commit()
    logger.info("Workout log %s removed for user %s", log_id, user_id)


def update_workout_log(
    log_id: int,
    user_id: int,
    clock: Clock,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    xp_earned: Optional[int] = None,
) -> WorkoutLog:
    """
    Edits times / xp. Giving an end_time to an active session completes it
    (and credits the pet); edits to an already completed log never credit
    the pet again.
    """
    log = find_log(log_id, user_id)

    if end_time is not None and not log.is_completed:
        if start_time is not None:
            log.start_time = start_time
        return complete_workout_log(log_id, user_id, clock, end_time=end_time, xp_earned=xp_earned)

    new_start = start_time or log.start_time
    new_end = end_time or log.end_time
    if new_end is not None and new_end < new_start:
        raise ValidationError("end_time must be after start_time")

    log.start_time = new_start
    log.end_time = new_end
    if xp_earned is not None:
        log.xp_earned = max(0, int(xp_earned))

    db.session.commit()
    logger.info("Workout log %s updated for user %s", log.id, user_id)
    return log


def get_stats(
    user_id: int,
    clock: Clock,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Dict[str, Any]:
    def _count_and_xp(*criteria):
        count, xp = (
            db.session.query(
                db.func.count(WorkoutLog.id),
                db.func.coalesce(db.func.sum(WorkoutLog.xp_earned), 0),
            )
            .filter(WorkoutLog.user_id == user_id, WorkoutLog.end_time.isnot(None), *criteria)
            .one()
        )
        return int(count), int(xp)

    total, total_xp = _count_and_xp()
    this_week, _ = _count_and_xp(WorkoutLog.end_time >= start_of_day(week_start_date(clock.today())))
    last = find_last_completion_date(user_id)

    stats = {
        "total_workouts": total,
        "total_xp": total_xp,
        "completed_this_week": this_week,
        "last_workout_date": last.isoformat() if last else None,
    }
    if start is not None and end is not None:
        in_range, xp_in_range = _count_and_xp(
            WorkoutLog.end_time >= start_of_day(start),
            WorkoutLog.end_time <= end_of_day(end),
        )
        stats["range"] = {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "completed": in_range,
            "xp": xp_in_range,
        }
    return stats
