# backend/fitpet/models/workout.py
from .. import BigId, db
from ..clock import utcnow


class WorkoutPlan(db.Model):
    __tablename__ = "workout_plans"

    id = db.Column(BigId, primary_key=True)
    user_id = db.Column(BigId, db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(
        db.Enum("strength", "cardio", "hiit", "flexibility", "hybrid", name="workout_plan_type_enum"),
        nullable=False,
        default="strength",
    )
    duration_minutes = db.Column(db.Integer)
    # e.g. [{"name": "pushup", "sets": 3, "reps": 10}, ...]
    exercises = db.Column(db.JSON)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    user = db.relationship("User", backref="workout_plans")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "duration_minutes": self.duration_minutes,
            "exercises": self.exercises or [],
        }


class WorkoutLog(db.Model):
    __tablename__ = "workout_logs"

    id = db.Column(BigId, primary_key=True)
    user_id = db.Column(BigId, db.ForeignKey("users.id"), nullable=False, index=True)
    workout_plan_id = db.Column(BigId, db.ForeignKey("workout_plans.id"))
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, index=True)  # null while in progress
    xp_earned = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", backref="workout_logs")
    workout_plan = db.relationship("WorkoutPlan")

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None

    def to_dict(self):
        return {
            "id": self.id,
            "workout_plan_id": self.workout_plan_id,
            "workout_plan_name": self.workout_plan.name if self.workout_plan else None,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "xp_earned": self.xp_earned or 0,
            "status": "completed" if self.is_completed else "active",
        }
