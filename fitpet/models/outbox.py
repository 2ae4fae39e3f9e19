# backend/fitpet/models/outbox.py
from .. import BigId, db
from ..clock import utcnow


class OutboxMessage(db.Model):
    """
    Event row written in the same transaction as the change that caused it,
    consumed later by services.outbox.
    """
    __tablename__ = "outbox_messages"

    id = db.Column(BigId, primary_key=True)
    topic = db.Column(db.String(100), nullable=False, index=True)
    payload = db.Column(db.JSON, nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    processed_at = db.Column(db.DateTime, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "topic": self.topic,
            "payload": self.payload,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }
