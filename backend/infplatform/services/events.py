"""
backend/infplatform/services/events.py

Event emitter: pushes domain events to a Redis queue for downstream
consumers (notifications, dashboards).

Queue:
- events:p2p: booking_created, booking_cancelled, slots_regenerated

Best effort: a failed push is logged and never fails the operation.
"""

import json
import time
import logging

from .. import redis_client as redis_module

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }

    client = redis_module.redis_client
    if client is None:
        logger.debug(f"Redis not configured, event dropped: {event_type}")
        return

    try:
        client.rpush(P2P_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
