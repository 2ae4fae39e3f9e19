# backend/tests/test_workout_plans.py
import pytest

from fitpet.errors import NotFoundError
from fitpet.models import TemporaryReschedule, WorkoutLog
from fitpet.models.schedule import WeekDay
from fitpet.services import reschedule, schedule, workout_logs, workout_plans


def test_update_plan_changes_only_given_fields(app, make_user, make_plan):
    user = make_user()
    plan = make_plan(user, name="Push", exercises=[{"name": "pushup"}])

    plan = workout_plans.update_plan(plan.id, user.id, {"name": "Push v2", "duration_minutes": 30})
    assert plan.name == "Push v2"
    assert plan.duration_minutes == 30
    assert plan.exercises == [{"name": "pushup"}]


def test_plans_are_scoped_to_owner(app, make_user, make_plan):
    owner = make_user()
    other = make_user()
    plan = make_plan(owner)

    with pytest.raises(NotFoundError):
        workout_plans.find_plan(plan.id, other.id)
    with pytest.raises(NotFoundError):
        workout_plans.delete_plan(plan.id, other.id)
    assert [p.id for p in workout_plans.list_plans(owner.id)] == [plan.id]
    assert workout_plans.list_plans(other.id) == []


def test_delete_plan_frees_schedule_and_reschedules(app, clock, make_user, make_plan, set_days):
    user = make_user()
    plan = make_plan(user)
    keep = make_plan(user, name="Keep")
    plan_id = plan.id
    set_days(user, plan, [WeekDay.MONDAY, WeekDay.TUESDAY])
    set_days(user, keep, [WeekDay.FRIDAY])

    clock.advance_days(-2)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    workout_logs.complete_workout_log(log.id, user.id, clock)
    clock.advance_days(2)
    assert len(reschedule.check_skipped_workouts(clock)) == 1

    workout_plans.delete_plan(plan_id, user.id)

    base = schedule.get_or_create_schedule(user.id)
    assert base.entry_for(WeekDay.MONDAY).workout_plan_id is None
    assert base.entry_for(WeekDay.TUESDAY).workout_plan_id is None
    assert base.entry_for(WeekDay.FRIDAY).workout_plan_id == keep.id
    assert TemporaryReschedule.query.filter_by(user_id=user.id).count() == 0

    kept_log = WorkoutLog.query.filter_by(id=log.id).one()
    assert kept_log.workout_plan_id is None
    assert kept_log.is_completed is True
    with pytest.raises(NotFoundError):
        workout_plans.find_plan(plan_id, user.id)
