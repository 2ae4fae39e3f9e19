# backend/fitpet/services/workout_plans.py
import logging
from typing import Any, Dict, List

from .. import db
from ..errors import NotFoundError
from ..models.schedule import ScheduleEntry, TemporaryReschedule, WeeklySchedule
from ..models.workout import WorkoutLog, WorkoutPlan

logger = logging.getLogger(__name__)

PLAN_FIELDS = ("name", "description", "type", "duration_minutes", "exercises")


def list_plans(user_id: int) -> List[WorkoutPlan]:
    return WorkoutPlan.query.filter_by(user_id=user_id).order_by(WorkoutPlan.id.asc()).all()


def find_plan(plan_id: int, user_id: int) -> WorkoutPlan:
    plan = WorkoutPlan.query.filter_by(id=plan_id, user_id=user_id).first()
    if plan is None:
        raise NotFoundError(f"Workout plan with ID {plan_id} not found")
    return plan


def create_plan(user_id: int, fields: Dict[str, Any]) -> WorkoutPlan:
    plan = WorkoutPlan(user_id=user_id, **{k: v for k, v in fields.items() if k in PLAN_FIELDS})
    db.session.add(plan)
    db.session.commit()
    logger.info("Workout plan %s created for user %s", plan.id, user_id)
    return plan


def update_plan(plan_id: int, user_id: int, changes: Dict[str, Any]) -> WorkoutPlan:
    plan = find_plan(plan_id, user_id)
    for field in PLAN_FIELDS:
        if field in changes:
            setattr(plan, field, changes[field])
    db.session.commit()
    logger.info("Workout plan %s updated for user %s (%s)", plan.id, user_id, ", ".join(changes))
    return plan


def delete_plan(plan_id: int, user_id: int) -> None:
    """
    Removes the plan. Base schedule days holding it become rest days,
    its temporary reschedules are dropped and past logs keep their
    history without the plan link.
    """
    plan = find_plan(plan_id, user_id)

    schedule_ids = db.select(WeeklySchedule.id).where(WeeklySchedule.user_id == user_id)
    cleared = ScheduleEntry.query.filter(
        ScheduleEntry.schedule_id.in_(schedule_ids),
        ScheduleEntry.workout_plan_id == plan.id,
    ).update({ScheduleEntry.workout_plan_id: None}, synchronize_session="fetch")
    dropped = TemporaryReschedule.query.filter_by(user_id=user_id, workout_plan_id=plan.id).delete(
        synchronize_session="fetch"
    )
    WorkoutLog.query.filter_by(user_id=user_id, workout_plan_id=plan.id).update(
        {WorkoutLog.workout_plan_id: None}, synchronize_session="fetch"
    )

    db.session.delete(plan)
    db.session.commit()
    logger.info(
        "Workout plan %s removed for user %s: %s schedule day(s) set to rest, %s reschedule(s) dropped",
        plan_id, user_id, cleared, dropped,
    )
