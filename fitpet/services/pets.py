# backend/fitpet/services/pets.py
"""
Pet state machine.

The ``heal`` / ``decay`` / ``gain_xp`` / ``apply_streak_animation`` helpers
mutate an in-memory Pet and never touch the session. The service functions
below them load the user's pet row with ``SELECT ... FOR UPDATE``, apply the
helpers and commit, so concurrent updates for one user are serialized while
different users never wait on each other.
"""
import logging
from datetime import timedelta
from typing import List, Optional

from .. import db
from ..clock import Clock
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.pet import (
    LOW_HEALTH_THRESHOLD,
    MAX_HEALTH,
    XP_PER_LEVEL,
    Pet,
    PetAnimation,
    PetStage,
)
from ..models.user import User
from .schedule import get_or_create_schedule, is_scheduled_workout_day

logger = logging.getLogger(__name__)

HEAL_AMOUNT = 5
DECAY_AMOUNT = 10
RESURRECT_HEALTH = MAX_HEALTH // 2
TEEN_LEVEL = 5
ADULT_LEVEL = 10


# ---------------------------------------------------------------------------
# Transitions (pure, in-memory)
# ---------------------------------------------------------------------------

def _clamp_health(value: int) -> int:
    return max(0, min(MAX_HEALTH, int(value)))


def heal(pet: Pet, amount: int = HEAL_AMOUNT) -> bool:
    """Returns True when health actually went up."""
    if pet.is_dead:
        return False

    old = pet.health_points
    pet.health_points = _clamp_health(old + amount)
    if pet.health_points <= old:
        return False

    if pet.current_animation == PetAnimation.SAD and pet.health_points >= LOW_HEALTH_THRESHOLD:
        pet.current_animation = PetAnimation.IDLE
    logger.info("Pet %s healed from %s to %s", pet.id, old, pet.health_points)
    return True


def decay(pet: Pet, amount: int = DECAY_AMOUNT) -> None:
    if pet.is_dead:
        return

    pet.health_points = _clamp_health(pet.health_points - amount)
    if pet.health_points == 0:
        pet.is_dead = True
        pet.current_animation = PetAnimation.DEAD
        logger.info("Pet %s (user %s) has DIED due to health decay", pet.id, pet.user_id)
    elif pet.health_points < LOW_HEALTH_THRESHOLD:
        pet.current_animation = PetAnimation.SAD


def _evolve(pet: Pet) -> None:
    if pet.level >= ADULT_LEVEL and pet.stage == PetStage.TEEN:
        pet.stage = PetStage.ADULT
        logger.info("Pet %s evolved to %s", pet.id, pet.stage)
    elif pet.level >= TEEN_LEVEL and pet.stage == PetStage.BABY:
        pet.stage = PetStage.TEEN
        logger.info("Pet %s evolved to %s", pet.id, pet.stage)


def gain_xp(pet: Pet, amount: int) -> int:
    """Adds XP, levels up as many times as it covers. Returns levels gained."""
    if pet.is_dead:
        return 0

    pet.xp += amount
    gained = 0
    while pet.xp >= pet.level * XP_PER_LEVEL:
        pet.xp -= pet.level * XP_PER_LEVEL
        pet.level += 1
        gained += 1
        pet.current_animation = PetAnimation.HAPPY
        _evolve(pet)
        logger.info("Pet %s leveled up to %s, remaining xp %s", pet.id, pet.level, pet.xp)
    return gained


def apply_streak_animation(pet: Pet) -> None:
    if pet.is_dead:
        return
    if pet.current_streak >= 2:
        pet.current_animation = PetAnimation.HAPPY
    elif pet.current_animation == PetAnimation.HAPPY:
        pet.current_animation = (
            PetAnimation.SAD if pet.health_points < LOW_HEALTH_THRESHOLD else PetAnimation.IDLE
        )


def revive(pet: Pet) -> None:
    if not pet.is_dead:
        raise ConflictError("Pet is not dead")
    pet.health_points = RESURRECT_HEALTH
    pet.is_dead = False
    pet.resurrection_count = (pet.resurrection_count or 0) + 1
    pet.current_animation = PetAnimation.HAPPY


def set_health(pet: Pet, value: int) -> None:
    """Direct health edit on a living pet; keeps dead/animation consistent with health."""
    if pet.is_dead:
        raise ConflictError("Pet is dead; resurrect it first")
    pet.health_points = _clamp_health(value)
    if pet.health_points == 0:
        pet.is_dead = True
        pet.current_animation = PetAnimation.DEAD
    elif pet.health_points < LOW_HEALTH_THRESHOLD:
        pet.current_animation = PetAnimation.SAD
    elif pet.current_animation == PetAnimation.SAD:
        pet.current_animation = PetAnimation.IDLE


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def lock_pet_for_user(user_id: int) -> Optional[Pet]:
    return Pet.query.filter_by(user_id=user_id).with_for_update().populate_existing().first()


def find_by_user_id(user_id: int) -> Pet:
    pet = Pet.query.filter_by(user_id=user_id).first()
    if pet is None:
        raise NotFoundError(f"Pet not found for user ID {user_id}")
    return pet


def _locked_or_404(user_id: int) -> Pet:
    pet = lock_pet_for_user(user_id)
    if pet is None:
        db.session.rollback()
        raise NotFoundError(f"Pet not found for user ID {user_id}")
    return pet


def create_pet(user_id: int, name: Optional[str] = None) -> Pet:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User with ID {user_id} not found.")

    if Pet.query.filter_by(user_id=user_id).first() is not None:
        logger.warning("User %s already has a pet. Creation aborted.", user_id)
        raise ConflictError("User already has a pet")

    pet = Pet.new_default(user_id, name or f"{user.username}'s Dragon")
    db.session.add(pet)
    db.session.commit()
    logger.info("Created pet %s for user %s", pet.id, user_id)
    return pet


def update_pet(user_id: int, name: Optional[str] = None, health_points: Optional[int] = None) -> Pet:
    """
    Owner edits. Health can only be lowered here: workouts heal, and a
    dead pet comes back through ``resurrect`` alone.
    """
    pet = _locked_or_404(user_id)
    if health_points is not None:
        if pet.is_dead:
            db.session.rollback()
            raise ConflictError("Pet is dead; resurrect it first")
        if int(health_points) > pet.health_points:
            db.session.rollback()
            raise ValidationError("health_points cannot be raised above the current value")
        set_health(pet, health_points)
    if name is not None:
        pet.name = name
    db.session.commit()
    return pet


def add_xp(user_id: int, amount: int) -> Pet:
    if amount is None or int(amount) < 0:
        raise ValidationError("xp amount must be a non-negative integer")

    pet = _locked_or_404(user_id)
    if pet.is_dead:
        logger.info("Pet %s is dead. Cannot gain XP.", pet.id)
        db.session.rollback()
        return pet

    gain_xp(pet, int(amount))
    db.session.commit()
    return pet


def resurrect(user_id: int) -> Pet:
    pet = _locked_or_404(user_id)
    try:
        revive(pet)
    except ConflictError:
        db.session.rollback()
        logger.warning("Attempted to resurrect pet %s which is not dead", pet.id)
        raise
    db.session.commit()
    logger.info("Pet %s resurrected (count=%s)", pet.id, pet.resurrection_count)
    return pet


def handle_pet_restart(user_id: int) -> Pet:
    """Throws the current pet away and starts a fresh default one."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User with ID {user_id} not found for pet restart.")

    existing = lock_pet_for_user(user_id)
    if existing is not None:
        db.session.delete(existing)
        # unique user_id: the old row must be gone before the insert
        db.session.flush()
        logger.info("Existing pet %s deleted for user %s", existing.id, user_id)

    pet = Pet.new_default(user_id, f"{user.username}'s Dragon")
    db.session.add(pet)
    db.session.commit()
    logger.info("New default pet %s created for user %s", pet.id, user_id)
    return pet


# ---------------------------------------------------------------------------
# Daily health decay
# ---------------------------------------------------------------------------

def daily_health_decay_for_pet(pet_id: int, user_id: int, clock: Clock) -> Optional[Pet]:
    """
    Takes DECAY_AMOUNT off a living pet when yesterday was a scheduled
    workout day in the owner's base schedule and nothing was logged on or
    after yesterday.
    """
    pet = Pet.query.filter_by(id=pet_id, user_id=user_id).first()
    if pet is None:
        logger.warning("daily_health_decay_for_pet: pet %s for user %s not found", pet_id, user_id)
        return None
    if pet.is_dead or pet.health_points <= 0:
        return pet

    yesterday = clock.today() - timedelta(days=1)

    try:
        schedule = get_or_create_schedule(user_id)
    except Exception as e:
        db.session.rollback()
        logger.error("Pet %s (user %s): failed to fetch schedule: %s. Skipping decay.", pet_id, user_id, e)
        return pet

    if not is_scheduled_workout_day(yesterday, schedule):
        logger.info("Pet %s (user %s): yesterday was a rest day. No decay.", pet_id, user_id)
        return pet

    pet = lock_pet_for_user(user_id)
    if pet is None or pet.id != pet_id or pet.is_dead:
        db.session.rollback()
        return pet

    missed = pet.last_streak_date is None or pet.last_streak_date < yesterday
    if not missed:
        db.session.rollback()
        return pet

    logger.info("Pet %s (user %s) missed scheduled workout on %s. Applying decay.", pet_id, user_id, yesterday)
    decay(pet)
    db.session.commit()
    return pet


def apply_daily_health_decay_to_all_active_pets(clock: Clock) -> List[int]:
    """Runs the decay for every living pet. Returns ids whose decay failed."""
    logger.info("Starting daily health decay for all active pets...")
    active = Pet.query.filter(Pet.is_dead.is_(False)).with_entities(Pet.id, Pet.user_id, Pet.health_points).all()
    logger.info("Found %s active pets for health decay.", len(active))

    failed = []
    for pet_id, user_id, health in active:
        if health <= 0:
            continue
        try:
            daily_health_decay_for_pet(pet_id, user_id, clock)
        except Exception:
            db.session.rollback()
            failed.append(pet_id)
            logger.exception("Error applying health decay to pet %s (user %s)", pet_id, user_id)

    logger.info("Finished daily health decay process. %s failed.", len(failed))
    return failed
