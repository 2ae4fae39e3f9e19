# backend/fitpet/models/schedule.py
from .. import BigId, db
from ..clock import utcnow


class WeekDay:
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    # Sunday-first, matching the week_start_date anchor
    ALL = (SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY)

    @classmethod
    def index(cls, day: str) -> int:
        return cls.ALL.index(day)

    @classmethod
    def from_index(cls, index: int) -> str:
        return cls.ALL[index % 7]

    @classmethod
    def for_date(cls, d) -> str:
        # date.weekday(): Monday=0 .. Sunday=6
        return cls.ALL[(d.weekday() + 1) % 7]


_weekday_enum = db.Enum(*WeekDay.ALL, name="weekday_enum")


class WeeklySchedule(db.Model):
    __tablename__ = "weekly_schedules"

    id = db.Column(BigId, primary_key=True)
    user_id = db.Column(BigId, db.ForeignKey("users.id"), unique=True, nullable=False)
    name = db.Column(db.String(100), default="My Weekly Schedule")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    entries = db.relationship(
        "ScheduleEntry",
        back_populates="schedule",
        cascade="all, delete-orphan",
    )

    def entry_for(self, day: str):
        for entry in self.entries:
            if entry.day_of_week == day:
                return entry
        return None

    def to_dict(self):
        ordered = sorted(self.entries, key=lambda e: WeekDay.index(e.day_of_week))
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "is_active": self.is_active,
            "entries": [e.to_dict() for e in ordered],
        }


class ScheduleEntry(db.Model):
    __tablename__ = "schedule_entries"
    __table_args__ = (
        db.UniqueConstraint("schedule_id", "day_of_week", name="uq_schedule_entry_day"),
    )

    id = db.Column(BigId, primary_key=True)
    schedule_id = db.Column(BigId, db.ForeignKey("weekly_schedules.id"), nullable=False)
    day_of_week = db.Column(_weekday_enum, nullable=False)
    workout_plan_id = db.Column(BigId, db.ForeignKey("workout_plans.id"))  # null = rest day
    preferred_time = db.Column(db.String(5))  # "HH:MM"
    notes = db.Column(db.String(255))

    schedule = db.relationship("WeeklySchedule", back_populates="entries")
    workout_plan = db.relationship("WorkoutPlan")

    def to_dict(self):
        return {
            "id": self.id,
            "day_of_week": self.day_of_week,
            "workout_plan_id": self.workout_plan_id,
            "workout_plan_name": self.workout_plan.name if self.workout_plan else None,
            "preferred_time": self.preferred_time,
            "notes": self.notes,
        }


class TemporaryReschedule(db.Model):
    """
    A skipped workout moved onto a rest day for a single week.
    Base ScheduleEntry rows are never modified by a reschedule.
    """
    __tablename__ = "temporary_reschedules"
    __table_args__ = (
        db.Index("ix_temporary_reschedules_user_week", "user_id", "week_start_date"),
    )

    id = db.Column(BigId, primary_key=True)
    user_id = db.Column(BigId, db.ForeignKey("users.id"), nullable=False)
    original_day_of_week = db.Column(_weekday_enum, nullable=False)
    workout_plan_id = db.Column(BigId, db.ForeignKey("workout_plans.id"), nullable=False)
    rescheduled_to_day_of_week = db.Column(_weekday_enum, nullable=False)
    week_start_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    workout_plan = db.relationship("WorkoutPlan")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "original_day_of_week": self.original_day_of_week,
            "workout_plan_id": self.workout_plan_id,
            "rescheduled_to_day_of_week": self.rescheduled_to_day_of_week,
            "week_start_date": self.week_start_date.isoformat(),
        }
