#!/usr/bin/env python3
"""
Tests for the event bus and the telemetry forwarder (fake HTTP session).
"""

import threading
import time
import unittest

import requests

from bus import (
    TOPIC_ACCIDENT,
    TOPIC_SAMPLE,
    TOPIC_VIOLATION,
    EventBus,
    TelemetryForwarder,
    to_payload,
)
from sim.records import ViolationRecord
from sim.types import ViolationType


class _FakeResponse:
    def __init__(self, status=200, body=None, bad_json=False):
        self.status_code = status
        self._body = body or {}
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


class _FakeSession:
    def __init__(self, fail_paths=()):
        self.fail_paths = set(fail_paths)
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json))
        for path in self.fail_paths:
            if url.endswith(path):
                raise requests.ConnectionError("refused")
        return _FakeResponse(body={"message": "ok"})


class EventBusTests(unittest.TestCase):
    def test_publish_and_poll(self):
        bus = EventBus()
        bus.publish(TOPIC_VIOLATION, "sim", {"vehicle_id": "CAR_001"})
        bus.publish(TOPIC_VIOLATION, "sim", {"vehicle_id": "CAR_002"})

        msgs = bus.poll(TOPIC_VIOLATION)

        self.assertEqual([m.payload["vehicle_id"] for m in msgs], ["CAR_001", "CAR_002"])
        self.assertEqual(bus.poll(TOPIC_VIOLATION), [])
        self.assertEqual(bus.metrics.delivered, 2)

    def test_full_queue_evicts_oldest(self):
        bus = EventBus(max_queue=2)
        for i in range(3):
            bus.publish(TOPIC_SAMPLE, "sim", {"n": i})

        self.assertEqual(bus.pending(TOPIC_SAMPLE), 2)
        self.assertEqual([m.payload["n"] for m in bus.poll(TOPIC_SAMPLE)], [1, 2])
        self.assertEqual(bus.metrics.dropped, 1)
        self.assertEqual(bus.metrics.report()["per_topic"][TOPIC_SAMPLE], 3)

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            EventBus(max_queue=0)

    def test_record_payload(self):
        record = ViolationRecord(
            type=ViolationType.RED_LIGHT_VIOLATION,
            vehicle_id="CAR_003",
            timestamp=12.0,
            direction="West",
        )
        payload = to_payload(record)
        self.assertEqual(payload["type"], "RED_LIGHT_VIOLATION")
        self.assertNotIn("speed", payload)
        with self.assertRaises(TypeError):
            to_payload(42)


class ForwarderTests(unittest.TestCase):
    def test_flush_routes_each_topic(self):
        bus = EventBus()
        bus.publish(TOPIC_VIOLATION, "sim", {"type": "SPEEDING"})
        bus.publish(TOPIC_ACCIDENT, "sim", {"id": "ACC_001"})
        bus.publish(TOPIC_SAMPLE, "sim", {"cars_present": 3})
        session = _FakeSession()
        forwarder = TelemetryForwarder(bus, "http://backend:8000/", session=session)

        self.assertEqual(forwarder.flush(), 3)

        urls = sorted(url for url, _ in session.posts)
        self.assertEqual(urls, [
            "http://backend:8000/api/log-accident",
            "http://backend:8000/api/log-data",
            "http://backend:8000/api/log-violation",
        ])
        self.assertEqual(forwarder.sent, 3)

    def test_failures_are_counted_not_raised(self):
        bus = EventBus()
        bus.publish(TOPIC_ACCIDENT, "sim", {"id": "ACC_001"})
        session = _FakeSession(fail_paths=["/api/log-accident", "/api/train-model"])
        forwarder = TelemetryForwarder(bus, "http://backend:8000", session=session)

        self.assertEqual(forwarder.flush(), 0)
        self.assertFalse(forwarder.request_training())
        self.assertEqual(forwarder.failed, 2)

    def test_training_request(self):
        session = _FakeSession()
        forwarder = TelemetryForwarder(EventBus(), "http://backend:8000", session=session)
        self.assertTrue(forwarder.request_training())
        self.assertEqual(session.posts[0][0], "http://backend:8000/api/train-model")

    def test_training_reply_without_json_is_a_failure(self):
        session = _FakeSession()
        session.post = lambda url, json=None, timeout=None: _FakeResponse(bad_json=True)
        forwarder = TelemetryForwarder(EventBus(), "http://backend:8000", session=session)

        self.assertFalse(forwarder.request_training())
        self.assertEqual(forwarder.failed, 1)


class _UnrulySession:
    """200 replies with a broken body, and an unexpected error on log-data."""

    def __init__(self):
        self.train_calls = 0
        self.lock = threading.Lock()

    def post(self, url, json=None, timeout=None):
        if url.endswith("/api/log-data"):
            raise RuntimeError("socket closed")
        if url.endswith("/api/train-model"):
            with self.lock:
                self.train_calls += 1
        return _FakeResponse(bad_json=True)


class ForwarderThreadTests(unittest.TestCase):
    def test_thread_survives_bad_replies(self):
        bus = EventBus()
        session = _UnrulySession()
        forwarder = TelemetryForwarder(
            bus, "http://backend:8000",
            poll_interval_s=0.01, train_interval_s=0.01, session=session,
        )
        forwarder._last_train = 0.0
        forwarder.start()
        try:
            bus.publish(TOPIC_SAMPLE, "sim", {"cars_present": 1})
            deadline = time.monotonic() + 2.0
            while session.train_calls < 3 and time.monotonic() < deadline:
                time.sleep(0.01)
            self.assertGreaterEqual(session.train_calls, 3)
            self.assertTrue(forwarder._thread.is_alive())

            bus.publish(TOPIC_VIOLATION, "sim", {"type": "SPEEDING"})
            deadline = time.monotonic() + 2.0
            while bus.pending(TOPIC_VIOLATION) and time.monotonic() < deadline:
                time.sleep(0.01)
            self.assertEqual(bus.pending(TOPIC_VIOLATION), 0)
        finally:
            forwarder.stop()


if __name__ == "__main__":
    unittest.main()
