"""
Utility functions for the EventBus:
    - ID generation
    - JSON-safe payload conversion
"""

import uuid
import logging
from enum import Enum

log = logging.getLogger(__name__)

# Topics used between the simulation and its logging collaborators.
TOPIC_VIOLATION = "safety.violation"
TOPIC_ACCIDENT = "safety.accident"
TOPIC_SAMPLE = "telemetry.sample"


# ---------- ID Helpers ----------
def new_msg_id() -> str:
    """
    Generate a globally unique message ID.

    Returns:
        str: UUID string for a new message.
    """
    return str(uuid.uuid4())


# ---------- Payload Helpers ----------
def to_payload(record) -> dict:
    """
    Turn a record into a plain dict suitable for a bus message.

    Args:
        record: Either a mapping or an object exposing ``as_dict()``.

    Returns:
        dict: A shallow copy with enum values replaced by their ``value``.

    Raises:
        TypeError: If *record* is neither a mapping nor serialisable.
    """
    if hasattr(record, "as_dict"):
        data = record.as_dict()
    elif isinstance(record, dict):
        data = dict(record)
    else:
        raise TypeError(f"cannot build a bus payload from {type(record).__name__}")
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}
