# backend/fitpet/services/outbox.py
"""
Transactional outbox for side effects of signup.

``enqueue`` only adds the row to the current session; the caller commits it
together with the change that produced it. ``dispatch`` / ``drain`` run
after commit and may be retried: handlers must be idempotent.
"""
import logging
from typing import Callable, Dict, List

from .. import db
from ..clock import utcnow
from ..errors import ConflictError
from ..models.outbox import OutboxMessage
from .pets import create_pet

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"
DEFAULT_MAX_ATTEMPTS = 5


def _handle_user_created(payload: Dict) -> None:
    user_id = payload.get("user_id")
    username = payload.get("username")
    if not isinstance(user_id, int) or not username:
        raise ValueError(f"invalid user.created payload: {payload!r}")
    try:
        create_pet(user_id, f"{username}'s Dragon")
    except ConflictError:
        logger.info("User %s already has a pet; user.created is a no-op", user_id)


HANDLERS: Dict[str, Callable[[Dict], None]] = {
    USER_CREATED: _handle_user_created,
}


def enqueue(topic: str, payload: Dict) -> OutboxMessage:
    message = OutboxMessage(topic=topic, payload=payload, attempts=0)
    db.session.add(message)
    return message


def dispatch(message_id: int, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> bool:
    """Processes one pending message. Returns True once it is processed."""
    message = db.session.get(OutboxMessage, message_id)
    if message is None or message.processed_at is not None:
        return message is not None
    if message.attempts >= max_attempts:
        return False

    handler = HANDLERS.get(message.topic)
    try:
        if handler is None:
            raise LookupError(f"no handler for topic {message.topic}")
        handler(message.payload or {})
    except Exception as e:
        db.session.rollback()
        # the handler may have committed or rolled back; count the attempt on a fresh load
        message = db.session.get(OutboxMessage, message_id)
        message.attempts += 1
        message.last_error = str(e)[:500]
        db.session.commit()
        logger.exception("Outbox message %s (%s) failed, attempt %s", message_id, message.topic, message.attempts)
        return False

    message.attempts += 1
    message.processed_at = utcnow()
    message.last_error = None
    db.session.commit()
    logger.info("Outbox message %s (%s) processed", message_id, message.topic)
    return True


def drain(limit: int = 100, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> List[int]:
    """Retries pending messages oldest first. Returns the processed ids."""
    pending = (
        OutboxMessage.query.filter(
            OutboxMessage.processed_at.is_(None),
            OutboxMessage.attempts < max_attempts,
        )
        .order_by(OutboxMessage.id.asc())
        .limit(limit)
        .with_entities(OutboxMessage.id)
        .all()
    )
    processed = []
    for (message_id,) in pending:
        if dispatch(message_id, max_attempts):
            processed.append(message_id)
    return processed
