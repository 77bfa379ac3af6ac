"""
BusMessage: Data structure representing an event carried by the EventBus.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BusMessage:
    """
    Represents a single event published on the EventBus.

    Attributes:
        id (str): Unique identifier for the message.
        topic (str): The topic of the message (e.g., 'safety.violation', 'telemetry.sample').
        sender (str): Component that published it (e.g., 'sim', 'bridge').
        payload (dict): JSON-compatible record contents.
        ts (float): Wall-clock timestamp (in seconds) when the message was created.
    """
    id: str
    topic: str
    sender: str
    payload: dict
    ts: float
