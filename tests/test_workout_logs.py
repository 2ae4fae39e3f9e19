# backend/tests/test_workout_logs.py
from datetime import timedelta

import pytest

from fitpet.clock import end_of_day, start_of_day
from fitpet.errors import ConflictError, NotFoundError, ValidationError
from fitpet.services import pets, workout_logs


def test_compute_xp_counts_exercises(app, make_user, make_plan):
    user = make_user()
    plan = make_plan(user, exercises=[{"name": "pushup"}, {"name": "squat"}])
    assert workout_logs.compute_xp(plan) == 30
    assert workout_logs.compute_xp(None) == 20


def test_complete_credits_pet(app, clock, make_user, make_plan):
    user = make_user(health_points=60)
    plan = make_plan(user, exercises=[{"name": "pushup"}, {"name": "squat"}])

    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    assert log.is_completed is False

    log = workout_logs.complete_workout_log(log.id, user.id, clock)
    assert log.is_completed is True
    assert log.xp_earned == 30

    pet = pets.find_by_user_id(user.id)
    assert pet.xp == 30
    assert pet.current_streak == 1
    assert pet.health_points == 65


def test_completing_twice_is_noop(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    workout_logs.complete_workout_log(log.id, user.id, clock)
    workout_logs.complete_workout_log(log.id, user.id, clock)
    assert pets.find_by_user_id(user.id).xp == 20


def test_start_conflicts_with_active_or_completed(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)

    with pytest.raises(ConflictError):
        workout_logs.start_workout_log(user.id, plan.id, clock)

    workout_logs.complete_workout_log(log.id, user.id, clock)
    with pytest.raises(ConflictError):
        workout_logs.start_workout_log(user.id, plan.id, clock)


def test_start_with_foreign_plan(app, clock, make_user, make_plan):
    owner = make_user()
    other = make_user()
    plan = make_plan(owner)
    with pytest.raises(NotFoundError):
        workout_logs.start_workout_log(other.id, plan.id, clock)


def test_end_before_start_rejected(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    with pytest.raises(ValidationError):
        workout_logs.complete_workout_log(
            log.id, user.id, clock, end_time=log.start_time - timedelta(minutes=5)
        )
    assert workout_logs.find_log(log.id, user.id).end_time is None


def test_completion_without_pet_still_saves_log(app, clock, make_user, make_plan):
    user = make_user(with_pet=False)
    plan = make_plan(user)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    log = workout_logs.complete_workout_log(log.id, user.id, clock, xp_earned=40)
    assert workout_logs.find_log(log.id, user.id).xp_earned == 40


def test_find_logs_in_range_by_end_time(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    workout_logs.complete_workout_log(log.id, user.id, clock)

    today = clock.today()
    assert len(workout_logs.find_logs_in_range(user.id, start_of_day(today), end_of_day(today))) == 1
    yesterday = today - timedelta(days=1)
    assert workout_logs.find_logs_in_range(user.id, start_of_day(yesterday), end_of_day(yesterday)) == []
    assert workout_logs.find_last_completion_date(user.id) == today


def test_delete_log(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    workout_logs.delete_log(log.id, user.id)
    with pytest.raises(NotFoundError):
        workout_logs.find_log(log.id, user.id)


def test_end_time_edit_completes_active_log(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user, exercises=[{"name": "squat"}])
    log = workout_logs.start_workout_log(user.id, plan.id, clock)

    log = workout_logs.update_workout_log(
        log.id, user.id, clock, end_time=log.start_time + timedelta(minutes=40)
    )
    assert log.is_completed is True
    assert log.xp_earned == 25
    pet = pets.find_by_user_id(user.id)
    assert pet.xp == 25
    assert pet.current_streak == 1


def test_editing_completed_log_does_not_credit_again(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    workout_logs.complete_workout_log(log.id, user.id, clock)

    log = workout_logs.update_workout_log(log.id, user.id, clock, xp_earned=80)
    assert log.xp_earned == 80
    assert pets.find_by_user_id(user.id).xp == 20

    with pytest.raises(ValidationError):
        workout_logs.update_workout_log(
            log.id, user.id, clock, start_time=log.end_time + timedelta(hours=1)
        )


def test_stats(app, clock, make_user, make_plan):
    user = make_user()
    plan = make_plan(user, exercises=[{"name": "pushup"}])

    clock.advance_days(-7)
    old = workout_logs.start_workout_log(user.id, plan.id, clock)
    workout_logs.complete_workout_log(old.id, user.id, clock)
    clock.advance_days(7)
    log = workout_logs.start_workout_log(user.id, plan.id, clock)
    workout_logs.complete_workout_log(log.id, user.id, clock)

    stats = workout_logs.get_stats(user.id, clock, clock.today(), clock.today())
    assert stats["total_workouts"] == 2
    assert stats["total_xp"] == 50
    assert stats["completed_this_week"] == 1
    assert stats["last_workout_date"] == clock.today().isoformat()
    assert stats["range"]["completed"] == 1
    assert stats["range"]["xp"] == 25


def test_active_log_not_counted_in_stats(app, clock, make_user, make_plan):
    user = make_user()
    workout_logs.start_workout_log(user.id, make_plan(user).id, clock)
    stats = workout_logs.get_stats(user.id, clock)
    assert stats["total_workouts"] == 0
    assert stats["total_xp"] == 0
    assert stats["last_workout_date"] is None
    assert "range" not in stats
