"""
bus - In-memory event transport for simulation records
======================================================

Provides a lightweight, thread-safe pub/sub layer that carries violation,
accident and telemetry records from the simulation thread to logging
collaborators, plus an HTTP forwarder for the scheduling backend.

Modules
-------
message
    :class:`BusMessage` dataclass.
event_bus
    :class:`EventBus` publish / poll transport.
metrics
    :class:`BusMetrics` counter snapshot.
forwarder
    :class:`TelemetryForwarder` HTTP shipper.
utils
    ID generation, topic names, payload conversion.
"""

from .message import BusMessage
from .event_bus import EventBus
from .metrics import BusMetrics
from .forwarder import TelemetryForwarder
from .utils import (
    TOPIC_ACCIDENT,
    TOPIC_SAMPLE,
    TOPIC_VIOLATION,
    new_msg_id,
    to_payload,
)

__all__ = [
    "BusMessage",
    "EventBus",
    "BusMetrics",
    "TelemetryForwarder",
    "TOPIC_ACCIDENT",
    "TOPIC_SAMPLE",
    "TOPIC_VIOLATION",
    "new_msg_id",
    "to_payload",
]
