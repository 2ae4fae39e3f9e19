# backend/tests/test_streaks_and_decay.py
from datetime import date

from fitpet.models import PetAnimation
from fitpet.models.schedule import WeekDay
from fitpet.services import pets, streaks

MONDAY = date(2025, 5, 5)
WEDNESDAY = date(2025, 5, 7)
FRIDAY = date(2025, 5, 9)


# ------------------------------
# Streaks
# ------------------------------
def test_first_workout_starts_streak_and_heals(app, clock, make_user):
    user = make_user(health_points=50)
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 1
    assert pet.longest_streak == 1
    assert pet.last_streak_date == clock.today()
    assert pet.health_points == 55


def test_same_day_completion_is_idempotent(app, clock, make_user):
    user = make_user(health_points=50)
    streaks.record_workout_completion(user.id, clock)
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 1
    assert pet.health_points == 55


def test_consecutive_days_extend_streak(app, clock, make_user):
    user = make_user()
    streaks.record_workout_completion(user.id, clock)
    clock.advance_days(1)
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 2
    assert pet.current_animation == PetAnimation.HAPPY


def test_missed_scheduled_day_resets_streak(app, clock, make_user, make_plan, set_days):
    user = make_user(current_streak=3, longest_streak=3, last_streak_date=MONDAY)
    plan = make_plan(user)
    set_days(user, plan, [WeekDay.MONDAY, WeekDay.WEDNESDAY, WeekDay.FRIDAY])

    clock.set_fake_date(FRIDAY)
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 1
    assert pet.longest_streak == 3


def test_gap_over_rest_days_keeps_streak(app, clock, make_user, make_plan, set_days):
    user = make_user(current_streak=3, longest_streak=3, last_streak_date=MONDAY)
    plan = make_plan(user)
    set_days(user, plan, [WeekDay.MONDAY, WeekDay.FRIDAY])

    clock.set_fake_date(FRIDAY)
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 4
    assert pet.longest_streak == 4


def test_future_last_streak_date_resets(app, clock, make_user):
    user = make_user(current_streak=5, longest_streak=5, last_streak_date=FRIDAY)
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 1
    assert pet.longest_streak == 5


def test_longest_streak_never_decreases(app, clock, make_user):
    user = make_user(current_streak=1, longest_streak=9, last_streak_date=date(2025, 4, 1))
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.longest_streak == 9


def test_dead_pet_streak_untouched(app, clock, make_user):
    user = make_user(is_dead=True, health_points=0, current_animation=PetAnimation.DEAD)
    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 0
    assert pet.health_points == 0
    assert pet.last_streak_date is None


def test_missed_scheduled_day_without_schedule(app):
    assert streaks.missed_scheduled_day(MONDAY, FRIDAY, None) is True


# ------------------------------
# Daily decay (clock: Wednesday, yesterday = Tuesday)
# ------------------------------
def test_decay_after_missed_workout(app, clock, make_user, make_plan, set_days):
    user = make_user()
    set_days(user, make_plan(user), [WeekDay.TUESDAY])

    failed = pets.apply_daily_health_decay_to_all_active_pets(clock)
    assert failed == []
    assert pets.find_by_user_id(user.id).health_points == 90


def test_no_decay_after_rest_day(app, clock, make_user, make_plan, set_days):
    user = make_user()
    set_days(user, make_plan(user), [WeekDay.MONDAY, WeekDay.WEDNESDAY])

    pets.apply_daily_health_decay_to_all_active_pets(clock)
    assert pets.find_by_user_id(user.id).health_points == 100


def test_no_decay_when_worked_out_yesterday(app, clock, make_user, make_plan, set_days):
    user = make_user(last_streak_date=date(2025, 5, 6))
    set_days(user, make_plan(user), [WeekDay.TUESDAY])

    pets.apply_daily_health_decay_to_all_active_pets(clock)
    assert pets.find_by_user_id(user.id).health_points == 100


def test_decay_kills_and_dead_pet_stays_dead(app, clock, make_user, make_plan, set_days):
    user = make_user(health_points=10)
    set_days(user, make_plan(user), [WeekDay.TUESDAY, WeekDay.WEDNESDAY])

    pets.apply_daily_health_decay_to_all_active_pets(clock)
    pet = pets.find_by_user_id(user.id)
    assert pet.is_dead is True
    assert pet.current_animation == PetAnimation.DEAD

    clock.advance_days(1)
    pets.apply_daily_health_decay_to_all_active_pets(clock)
    assert pets.find_by_user_id(user.id).health_points == 0


def test_decay_into_sad(app, clock, make_user, make_plan, set_days):
    user = make_user(health_points=35)
    set_days(user, make_plan(user), [WeekDay.TUESDAY])

    pets.apply_daily_health_decay_to_all_active_pets(clock)
    pet = pets.find_by_user_id(user.id)
    assert pet.health_points == 25
    assert pet.current_animation == PetAnimation.SAD


# ------------------------------
# Failure isolation
# ------------------------------
def _schedule_unavailable(user_id):
    raise RuntimeError("schedule store down")


def test_schedule_failure_resets_streak(app, clock, make_user, monkeypatch):
    user = make_user(current_streak=3, longest_streak=3, last_streak_date=MONDAY)
    monkeypatch.setattr(streaks, "get_or_create_schedule", _schedule_unavailable)

    pet = streaks.record_workout_completion(user.id, clock)
    assert pet.current_streak == 1
    assert pet.longest_streak == 3
    assert pet.last_streak_date == WEDNESDAY


def test_schedule_failure_skips_decay(app, clock, make_user, make_plan, set_days, monkeypatch):
    user = make_user()
    set_days(user, make_plan(user), [WeekDay.TUESDAY])
    monkeypatch.setattr(pets, "get_or_create_schedule", _schedule_unavailable)

    failed = pets.apply_daily_health_decay_to_all_active_pets(clock)
    assert failed == []
    assert pets.find_by_user_id(user.id).health_points == 100


def test_decay_batch_continues_after_one_pet_fails(app, clock, make_user, make_plan, set_days, monkeypatch):
    broken = make_user()
    healthy = make_user()
    for user in (broken, healthy):
        set_days(user, make_plan(user), [WeekDay.TUESDAY])
    broken_pet_id = pets.find_by_user_id(broken.id).id

    real_decay = pets.daily_health_decay_for_pet

    def decay_or_fail(pet_id, user_id, clock):
        if pet_id == broken_pet_id:
            raise RuntimeError("row lock timeout")
        return real_decay(pet_id, user_id, clock)

    monkeypatch.setattr(pets, "daily_health_decay_for_pet", decay_or_fail)

    failed = pets.apply_daily_health_decay_to_all_active_pets(clock)
    assert failed == [broken_pet_id]
    assert pets.find_by_user_id(broken.id).health_points == 100
    assert pets.find_by_user_id(healthy.id).health_points == 90
