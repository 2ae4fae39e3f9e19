# backend/tests/conftest.py
from datetime import date

import pytest
from flask_jwt_extended import create_access_token

from config import TestConfig
from fitpet import create_app, db
from fitpet.models import Pet, User, WorkoutPlan
from fitpet.services import schedule as schedule_service

# 2025-05-07 is a Wednesday
TODAY = date(2025, 5, 7)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    app.clock.set_fake_date(TODAY)
    with app.app_context():
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def clock(app):
    return app.clock


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(username=None, with_pet=True, **pet_fields):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(email=f"{username}@example.com", username=username, display_name=username)
        user.set_password("secret123")
        db.session.add(user)
        db.session.flush()
        if with_pet:
            pet = Pet.new_default(user.id, f"{username}'s Dragon")
            for key, value in pet_fields.items():
                setattr(pet, key, value)
            db.session.add(pet)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_plan(app):
    def _make(user, name="Full body", exercises=None):
        plan = WorkoutPlan(
            user_id=user.id,
            name=name,
            type="strength",
            exercises=exercises if exercises is not None else [],
        )
        db.session.add(plan)
        db.session.commit()
        return plan

    return _make


@pytest.fixture
def set_days(app):
    """Puts ``plan`` on each of ``days`` in the user's base schedule."""

    def _set(user, plan, days):
        for day in days:
            schedule_service.update_schedule_entry(user.id, day, {"workout_plan_id": plan.id})
        return schedule_service.get_or_create_schedule(user.id)

    return _set


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _headers
