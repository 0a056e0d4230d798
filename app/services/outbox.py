# app/services/outbox.py
from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.outbox import OutboxEvent

logger = logging.getLogger(__name__)

def is_notifications_enabled() -> bool:
    return settings.NOTIFICATIONS_ENABLED

def publish(db: Session, topic: str, payload: Dict[str, Any]) -> OutboxEvent:
    """Stage an event in outbox_events; it commits with the caller's transaction."""
    event = OutboxEvent(topic=topic, payload=payload, processed=False)
    db.add(event)
    db.flush()
    logger.debug("outbox event %s staged (id=%s)", topic, event.id)
    return event
