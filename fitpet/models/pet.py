# backend/fitpet/models/pet.py
from .. import BigId, db
from ..clock import utcnow

MAX_HEALTH = 100
LOW_HEALTH_THRESHOLD = 30  # below this the pet is sad
XP_PER_LEVEL = 100


class PetStage:
    BABY = "baby"
    TEEN = "teen"
    ADULT = "adult"

    ALL = (BABY, TEEN, ADULT)


class PetAnimation:
    IDLE = "idle"
    HAPPY = "happy"
    SAD = "sad"
    DEAD = "dead"

    ALL = (IDLE, HAPPY, SAD, DEAD)


class Pet(db.Model):
    __tablename__ = "pets"

    id = db.Column(BigId, primary_key=True)
    user_id = db.Column(BigId, db.ForeignKey("users.id"), unique=True, nullable=False)
    name = db.Column(db.String(100))

    level = db.Column(db.Integer, nullable=False, default=1)
    xp = db.Column(db.Integer, nullable=False, default=0)
    stage = db.Column(db.Enum(*PetStage.ALL, name="pet_stage_enum"), nullable=False, default=PetStage.BABY)
    health_points = db.Column(db.Integer, nullable=False, default=MAX_HEALTH)

    current_streak = db.Column(db.Integer, nullable=False, default=0)
    longest_streak = db.Column(db.Integer, nullable=False, default=0)
    last_streak_date = db.Column(db.Date)

    current_animation = db.Column(
        db.Enum(*PetAnimation.ALL, name="pet_animation_enum"),
        nullable=False,
        default=PetAnimation.IDLE,
    )
    is_dead = db.Column(db.Boolean, nullable=False, default=False)
    resurrection_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    user = db.relationship("User", backref=db.backref("pet", uselist=False))

    @classmethod
    def new_default(cls, user_id: int, name: str = None) -> "Pet":
        # column defaults only apply on flush; set them here so the
        # in-memory object is usable before commit
        return cls(
            user_id=user_id,
            name=name,
            level=1,
            xp=0,
            stage=PetStage.BABY,
            health_points=MAX_HEALTH,
            current_streak=0,
            longest_streak=0,
            last_streak_date=None,
            current_animation=PetAnimation.IDLE,
            is_dead=False,
            resurrection_count=0,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "level": self.level,
            "xp": self.xp,
            "xp_to_next_level": self.level * XP_PER_LEVEL,
            "stage": self.stage,
            "health_points": self.health_points,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_streak_date": self.last_streak_date.isoformat() if self.last_streak_date else None,
            "current_animation": self.current_animation,
            "is_dead": self.is_dead,
            "resurrection_count": self.resurrection_count,
        }
