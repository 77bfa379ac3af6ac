"""
BusMetrics: Tracks simple statistics for EventBus message flow.
"""

from typing import Dict


class BusMetrics:
    """
    Tracks metrics for published, delivered and evicted messages.

    Attributes:
        published (int): Total number of messages accepted by publish().
        delivered (int): Number of messages handed out by poll().
        dropped (int): Number of queued messages evicted because a topic queue was full.
        per_topic (dict): Published count per topic.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.published = 0
        self.delivered = 0
        self.dropped = 0
        self.per_topic: Dict[str, int] = {}

    def record_publish(self, topic: str) -> None:
        self.published += 1
        self.per_topic[topic] = self.per_topic.get(topic, 0) + 1

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Dictionary containing 'published', 'delivered', 'dropped' and 'per_topic'.
        """
        return {
            "published": self.published,
            "delivered": self.delivered,
            "dropped": self.dropped,
            "per_topic": dict(self.per_topic),
        }
