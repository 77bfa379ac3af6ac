"""
EventBus: In-memory pub/sub system between the simulation and its collaborators.

Supports:
    - Topic-based messaging
    - Bounded per-topic queues (oldest message evicted when full)
    - Thread-safe publish / poll
    - Logging of events

Intended usage:
    - The simulation bridge publishes violations to 'safety.violation',
      accidents to 'safety.accident' and data samples to 'telemetry.sample'
    - The telemetry forwarder polls those topics on its own thread
"""

import time
import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from .message import BusMessage
from .metrics import BusMetrics
from .utils import new_msg_id

log = logging.getLogger(__name__)


class EventBus:
    """
    Transport layer for simulation events.

    Attributes:
        max_queue (int): Maximum number of unpolled messages kept per topic.
        metrics (BusMetrics): Running counters.
    """

    def __init__(self, max_queue: int = 1000):
        """
        Initialize an EventBus instance.

        Args:
            max_queue (int): Per-topic queue capacity; must be positive.

        Raises:
            ValueError: If *max_queue* is not positive.
        """
        if max_queue <= 0:
            raise ValueError("max_queue must be positive")
        self._topics: Dict[str, Deque[BusMessage]] = {}
        self._lock = threading.Lock()
        self.max_queue = max_queue
        self.metrics = BusMetrics()

    def publish(self, topic: str, sender: str, payload: dict) -> Optional[str]:
        """
        Publish a message to a specific topic.

        Args:
            topic (str): The topic name (e.g., 'safety.accident').
            sender (str): ID of the publishing component.
            payload (dict): JSON-compatible message contents.

        Returns:
            Optional[str]: The unique message ID.
        """
        msg = BusMessage(
            id=new_msg_id(),
            topic=topic,
            sender=sender,
            payload=payload,
            ts=time.time(),
        )
        with self._lock:
            queue = self._topics.setdefault(topic, deque())
            if len(queue) >= self.max_queue:
                evicted = queue.popleft()
                self.metrics.dropped += 1
                log.warning("queue_full topic=%s evicted=%s", topic, evicted.id)
            queue.append(msg)
            self.metrics.record_publish(topic)

        log.debug("publish topic=%s sender=%s id=%s", topic, sender, msg.id)
        return msg.id

    def poll(self, topic: str) -> List[BusMessage]:
        """
        Retrieve and clear all messages from a given topic.

        Args:
            topic (str): The topic name to poll messages from.

        Returns:
            List[BusMessage]: Messages published to the topic since the last poll, oldest first.
        """
        with self._lock:
            queue = self._topics.get(topic)
            if not queue:
                return []
            msgs = list(queue)
            queue.clear()
            self.metrics.delivered += len(msgs)
        return msgs

    def pending(self, topic: str) -> int:
        """
        Number of messages waiting on *topic*.

        Args:
            topic (str): The topic name.

        Returns:
            int: Queue length.
        """
        with self._lock:
            return len(self._topics.get(topic, ()))
